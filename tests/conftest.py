import asyncio
import os
from datetime import timedelta

import pytest

# Settings are read at import; pin development defaults before app modules load
os.environ['IS_PRODUCTION'] = 'false'
os.environ['LOCAL_STORAGE_PATH'] = '/tmp/uploads'
os.environ.setdefault('S3_BUCKET', 'test-bucket')
os.environ.setdefault('S3_ACCESS_KEY', '')
os.environ.setdefault('S3_SECRET_KEY', '')

from apps.common.database import Database  # noqa: E402
from apps.common.exceptions import LinkGenerationError  # noqa: E402
from apps.uploader.models import BLOB_COLLECTION, BlobRecord  # noqa: E402
from apps.uploader.services import BlobStoreManager  # noqa: E402
from config.db import close_db, init_db  # noqa: E402


class RecordingStorage:
    """Object storage stand-in that remembers every presign request."""

    def __init__(self, fail_with: Exception | None = None):
        self.calls = []
        self.fail_with = fail_with

    def presign(self, method: str, bucket: str, key: str, expires: timedelta) -> str:
        self.calls.append((method, bucket, key, expires))
        if self.fail_with is not None:
            raise self.fail_with
        return f'https://signed.example/{bucket}/{key}?op={method}'


@pytest.fixture
def recording_storage():
    return RecordingStorage()


@pytest.fixture
def db_url(tmp_path):
    # file-backed so every connection Tortoise opens sees the same tables
    return f"sqlite://{tmp_path / 'upload_test.sqlite3'}"


@pytest.fixture
def run_blobs(db_url):
    """Run ``scenario(manager)`` against a fresh SQLite-backed BlobStoreManager."""

    def _run(scenario):
        async def _main():
            await init_db(db_url)
            try:
                return await scenario(BlobStoreManager(Database({BLOB_COLLECTION: BlobRecord})))
            finally:
                await close_db()

        return asyncio.run(_main())

    return _run


@pytest.fixture
def failing_storage():
    return RecordingStorage(fail_with=LinkGenerationError('S3 credentials are not configured'))
