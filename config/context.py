"""Shared handles built once at startup and handed to the upload components."""
from dataclasses import dataclass, field
from datetime import timedelta

from apps.common.database import Database
from apps.uploader.models import BLOB_COLLECTION, BlobRecord
from apps.uploader.services import RESUME_LINK_TTL, BlobStoreManager, ResumeLinkIssuer
from apps.uploader.storage import LocalStorage, ObjectStorageClient, S3HTTPStorage
from config import settings


@dataclass
class UploadContext:
    database: Database
    storage: ObjectStorageClient
    bucket: str
    is_production: bool
    local_storage: LocalStorage
    link_ttl: timedelta = RESUME_LINK_TTL
    links: ResumeLinkIssuer = field(init=False)
    blobs: BlobStoreManager = field(init=False)

    def __post_init__(self):
        self.links = ResumeLinkIssuer(self.storage, self.bucket, self.is_production,
                                      local=self.local_storage, ttl=self.link_ttl)
        self.blobs = BlobStoreManager(self.database)


def initialize() -> UploadContext:
    """Build the context from process settings. Tortoise must be initialized separately."""
    storage = S3HTTPStorage(
        endpoint=settings.S3_ENDPOINT,
        access_key=settings.S3_ACCESS_KEY,
        secret_key=settings.S3_SECRET_KEY,
        region=settings.S3_REGION,
        virtual_host=settings.S3_VIRTUAL_HOST,
        session_token=settings.S3_SESSION_TOKEN,
    )
    return UploadContext(
        database=Database({BLOB_COLLECTION: BlobRecord}),
        storage=storage,
        bucket=settings.S3_BUCKET,
        is_production=settings.IS_PRODUCTION,
        local_storage=LocalStorage(settings.LOCAL_STORAGE_PATH),
        link_ttl=timedelta(seconds=settings.RESUME_LINK_TTL_SECONDS),
    )
