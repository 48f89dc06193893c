import json
import logging
from datetime import timedelta
from typing import Any, Dict, Mapping

from apps.common.database import Database
from apps.common.exceptions import NotFoundError, AlreadyExistsError, SerializationError
from apps.uploader.models import BLOB_COLLECTION
from apps.uploader.schema import Blob, UserResumeLink
from apps.uploader.storage import LocalStorage, ObjectStorageClient

logger = logging.getLogger(__name__)

RESUME_LINK_TTL = timedelta(minutes=15)


def resume_key(user_id: str) -> str:
    return f'resumes/{user_id}.pdf'


class ResumeLinkIssuer:
    """Issues read or write links for a user's resume.

    Production links are presigned object-store URLs; otherwise the link is
    the resume's path under the local upload directory. Neither mode checks
    that the object exists.
    """

    def __init__(self, client: ObjectStorageClient, bucket: str, is_production: bool,
                 local: LocalStorage | None = None, ttl: timedelta = RESUME_LINK_TTL):
        self.client = client
        self.bucket = bucket
        self.is_production = is_production
        self.local = local or LocalStorage('/tmp/uploads')
        self.ttl = ttl

    def _issue(self, method: str, user_id: str) -> UserResumeLink:
        if self.is_production:
            link = self.client.presign(method, self.bucket, resume_key(user_id), self.ttl)
        else:
            link = self.local.path_for(f'{user_id}.pdf')
        logger.info('issued %s resume link for %s (production=%s)', method, user_id, self.is_production)
        return UserResumeLink(id=user_id, link=link)

    def issue_download_link(self, user_id: str) -> UserResumeLink:
        return self._issue('GET', user_id)

    def issue_upload_link(self, user_id: str) -> UserResumeLink:
        return self._issue('PUT', user_id)


def flatten_data(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Round-trip ``data`` through JSON, yielding its top-level key/value mapping.

    Nested objects and arrays come back as opaque values.
    """
    try:
        flat = json.loads(json.dumps(data, allow_nan=False))
    except (TypeError, ValueError) as e:
        raise SerializationError(f'Blob data is not JSON-compatible: {e}') from e
    if not isinstance(flat, dict):
        raise SerializationError('Blob data must be a JSON object')
    return flat


class BlobStoreManager:
    """CRUD access to blob documents in the ``blobstore`` collection.

    Create is check-then-insert and merge_partial is read-modify-write; neither
    is atomic. Concurrent callers for the same id can both pass the existence
    check, and concurrent partial updates can lose one writer's keys. Callers
    that need atomicity must serialize writes to an id themselves.
    """

    def __init__(self, db: Database, collection: str = BLOB_COLLECTION):
        self.db = db
        self.collection = collection

    async def get(self, blob_id: str) -> Blob:
        document = await self.db.find_one(self.collection, {'id': blob_id})
        return Blob(**document)

    async def create(self, blob: Blob) -> None:
        try:
            await self.get(blob.id)
        except NotFoundError:
            pass
        else:
            raise AlreadyExistsError('Blob already exists.')

        await self.db.insert(self.collection, blob.model_dump())
        logger.info('created blob %s', blob.id)

    async def replace(self, blob: Blob) -> None:
        await self.db.update(self.collection, {'id': blob.id}, blob.model_dump())
        logger.info('replaced blob %s', blob.id)

    async def merge_partial(self, blob: Blob) -> None:
        """Overwrite only the top-level keys present in ``blob.data``.

        Any failure to load the existing blob is reported as NotFoundError.
        """
        try:
            existing = await self.get(blob.id)
        except Exception as e:
            logger.warning('partial update of %s rejected, lookup failed: %s', blob.id, e)
            raise NotFoundError('Blob does not exist.') from None

        merged = flatten_data(existing.data)
        merged.update(flatten_data(blob.data))

        await self.db.update(self.collection, {'id': blob.id}, Blob(id=blob.id, data=merged).model_dump())
        logger.info('merged %d keys into blob %s', len(blob.data), blob.id)
