import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from apps.uploader.routers import router as uploader_router
from config.context import UploadContext, initialize
from config.db import close_db, init_db
from config.middleware import RequestLogMiddleware
from config.settings import LOG_LEVEL


def create_app(context: Optional[UploadContext] = None, db_url: Optional[str] = None) -> FastAPI:
    logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db(db_url)
        app.state.context = context or initialize()
        try:
            yield
        finally:
            await close_db()

    app = FastAPI(title="Upload Service", version="0.1.0", lifespan=lifespan)
    app.add_middleware(RequestLogMiddleware)
    app.include_router(uploader_router)
    return app


app = create_app()
