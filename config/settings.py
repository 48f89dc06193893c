import os


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

IS_PRODUCTION = _env_bool('IS_PRODUCTION')

# object storage
S3_REGION = os.getenv('S3_REGION', 'us-east-1')
S3_BUCKET = os.getenv('S3_BUCKET', '')
S3_ENDPOINT = os.getenv('S3_ENDPOINT') or f'https://s3.{S3_REGION}.amazonaws.com'
S3_ACCESS_KEY = os.getenv('S3_ACCESS_KEY', '')
S3_SECRET_KEY = os.getenv('S3_SECRET_KEY', '')
S3_SESSION_TOKEN = os.getenv('S3_SESSION_TOKEN') or None
S3_VIRTUAL_HOST = _env_bool('S3_VIRTUAL_HOST')

RESUME_LINK_TTL_SECONDS = int(os.getenv('RESUME_LINK_TTL_SECONDS', '900'))
LOCAL_STORAGE_PATH = os.getenv('LOCAL_STORAGE_PATH', '/tmp/uploads')

# document store
UPLOAD_DB_HOST = os.getenv('UPLOAD_DB_HOST', 'sqlite://')
UPLOAD_DB_NAME = os.getenv('UPLOAD_DB_NAME', 'upload.sqlite3')
DATABASE_URL = os.getenv('DATABASE_URL') or f'{UPLOAD_DB_HOST}{UPLOAD_DB_NAME}'
