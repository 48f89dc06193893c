from fastapi import HTTPException, Request

from apps.common.exceptions import UploadError
from apps.uploader.schema import Blob, UserResumeLink


def _context(request: Request):
    return request.app.state.context


def _http_error(error: UploadError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=str(error))


async def get_resume_link(request: Request, user_id: str) -> UserResumeLink:
    try:
        return _context(request).links.issue_download_link(user_id)
    except UploadError as e:
        raise _http_error(e)


async def get_resume_upload_link(request: Request, user_id: str) -> UserResumeLink:
    try:
        return _context(request).links.issue_upload_link(user_id)
    except UploadError as e:
        raise _http_error(e)


async def retrieve_blob(request: Request, blob_id: str) -> Blob:
    try:
        return await _context(request).blobs.get(blob_id)
    except UploadError as e:
        raise _http_error(e)


async def create_blob(request: Request, blob: Blob) -> Blob:
    blobs = _context(request).blobs
    try:
        await blobs.create(blob)
        return await blobs.get(blob.id)
    except UploadError as e:
        raise _http_error(e)


async def replace_blob(request: Request, blob: Blob) -> Blob:
    blobs = _context(request).blobs
    try:
        await blobs.replace(blob)
        return await blobs.get(blob.id)
    except UploadError as e:
        raise _http_error(e)


async def update_blob(request: Request, blob: Blob) -> Blob:
    blobs = _context(request).blobs
    try:
        await blobs.merge_partial(blob)
        return await blobs.get(blob.id)
    except UploadError as e:
        raise _http_error(e)
