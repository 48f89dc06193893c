# uploader/routers.py
from fastapi import APIRouter

from apps.uploader.schema import Blob, UserResumeLink
from .views import (create_blob, get_resume_link, get_resume_upload_link, replace_blob, retrieve_blob,
                    update_blob)

router = APIRouter(prefix="/upload")

router.get("/resume/{user_id}/", response_model=UserResumeLink)(get_resume_link)
router.get("/resume/{user_id}/upload/", response_model=UserResumeLink)(get_resume_upload_link)
router.get("/blobstore/{blob_id}/", response_model=Blob)(retrieve_blob)
router.post("/blobstore/", response_model=Blob)(create_blob)
router.put("/blobstore/", response_model=Blob)(replace_blob)
router.patch("/blobstore/", response_model=Blob)(update_blob)
