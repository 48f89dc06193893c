import logging
from typing import Optional

from tortoise import Tortoise, connections

from config.settings import DATABASE_URL

logger = logging.getLogger(__name__)

MODELS_MODULES = ['apps.uploader.models']


def tortoise_config(db_url: str) -> dict:
    return {
        'connections': {'default': db_url},
        'apps': {
            'models': {
                'models': MODELS_MODULES,
                'default_connection': 'default',
            },
        },
    }


TORTOISE_ORM = tortoise_config(DATABASE_URL)


async def init_db(db_url: Optional[str] = None, generate_schemas: bool = True) -> None:
    """Connect Tortoise to the upload database and create missing tables."""
    await Tortoise.init(config=tortoise_config(db_url or DATABASE_URL))
    if generate_schemas:
        await Tortoise.generate_schemas(safe=True)
    logger.info('database initialized')


async def close_db() -> None:
    await connections.close_all()
