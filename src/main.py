from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from src.api.health import router as health_router
from src.api.responses import directory_error_handler
from src.api.schools import get_image_sink
from src.api.schools import router as schools_router
from src.config import get_settings
from src.db.factory import get_school_store
from src.errors import SchoolDirectoryError

logger = logging.getLogger(__name__)

_settings = get_settings()
logging.basicConfig(
    level=_settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Release the database pool/client and the blob client on shutdown.

    Nothing connects at startup: the store and its schema are set up on the
    first request, so a missing configuration is reported per request.
    """
    yield

    if get_school_store.cache_info().currsize:
        await get_school_store().close()
    if get_image_sink.cache_info().currsize:
        await get_image_sink().close()


app = FastAPI(
    title="School Directory API",
    description="Submit school records with an optional image and list them",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(SchoolDirectoryError, directory_error_handler)

_cors_origins = [o.strip() for o in _settings.CORS_ORIGINS.split(",") if o.strip()] if _settings.CORS_ORIGINS else []
if _cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(health_router)
app.include_router(schools_router)

# Locally stored images are referenced by root-relative paths, so serve them
# from the same origin. check_dir=False: the directory appears on first upload.
app.mount(
    _settings.IMAGES_URL_PREFIX.rstrip("/"),
    StaticFiles(directory=str(Path(_settings.IMAGES_DIR)), check_dir=False),
    name="school-images",
)


if __name__ == "__main__":
    uvicorn.run("src.main:app", host="0.0.0.0", port=8000, reload=True)
