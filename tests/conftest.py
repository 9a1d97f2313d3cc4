"""Shared pytest fixtures for the school-directory test suite."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from src.api.schools import get_image_sink
from src.config import Settings, get_settings
from src.db.factory import get_school_store
from src.db.pooled_repo import PooledSchoolStore
from src.main import app
from src.services.images import ImageSink

# Every environment variable the settings read, including alias spellings.
_SETTINGS_ENV = (
    "NEON_DATABASE_URL",
    "DATABASE_URL",
    "NEON_HTTP_ENDPOINT",
    "MYSQL_HOST",
    "DB_HOST",
    "MYSQL_PORT",
    "DB_PORT",
    "MYSQL_USER",
    "DB_USER",
    "MYSQL_PASSWORD",
    "DB_PASSWORD",
    "MYSQL_DATABASE",
    "DB_NAME",
    "DB_POOL_SIZE",
    "APP_ENV",
    "ENVIRONMENT",
    "VERCEL",
    "USE_BLOB",
    "BLOB_READ_WRITE_TOKEN",
    "BLOB_API_URL",
    "IMAGES_DIR",
    "IMAGES_URL_PREFIX",
)


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test from an empty configuration and fresh cached singletons."""
    for key in _SETTINGS_ENV:
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    get_school_store.cache_clear()
    get_image_sink.cache_clear()
    yield
    get_settings.cache_clear()
    get_school_store.cache_clear()
    get_image_sink.cache_clear()


# ---------------------------------------------------------------------------
# Stores and sinks
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_path(tmp_path) -> str:
    """Path of a temporary SQLite database file (created on first use)."""
    return str(tmp_path / "test_schools.db")


@pytest.fixture()
def pooled_store(db_path) -> PooledSchoolStore:
    """A :class:`PooledSchoolStore` backed by a temporary SQLite file."""
    return PooledSchoolStore(f"sqlite+aiosqlite:///{db_path}", pool_size=5)


@pytest.fixture()
def images_dir(tmp_path):
    return tmp_path / "images"


@pytest.fixture()
def image_sink(images_dir) -> ImageSink:
    """A local-disk :class:`ImageSink` writing into a temporary directory."""
    return ImageSink(Settings(IMAGES_DIR=str(images_dir)), clock=lambda: 1700000000000)


# ---------------------------------------------------------------------------
# API clients
# ---------------------------------------------------------------------------


@pytest.fixture()
def test_client(pooled_store, image_sink) -> TestClient:
    """Return a FastAPI ``TestClient`` wired to the temporary store and image sink."""
    app.dependency_overrides[get_school_store] = lambda: pooled_store
    app.dependency_overrides[get_image_sink] = lambda: image_sink

    with TestClient(app) as client:
        yield client
        # Release pooled connections on the loop that opened them.
        client.portal.call(pooled_store.close)

    app.dependency_overrides.clear()


@pytest.fixture()
def unconfigured_client(image_sink) -> TestClient:
    """A client whose store is resolved from the (empty) environment."""
    app.dependency_overrides[get_image_sink] = lambda: image_sink

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


VALID_FORM = {
    "name": "Springfield High",
    "address": "12 Evergreen Terrace",
    "city": "Springfield",
    "state": "Oregon",
    "contact": "5550123456",
    "email_id": "office@springfield.edu",
}


@pytest.fixture()
def valid_form() -> dict[str, str]:
    return dict(VALID_FORM)
