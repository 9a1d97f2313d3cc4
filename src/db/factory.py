from __future__ import annotations

from functools import lru_cache

from src.config import Settings, get_settings
from src.db.base import SchoolStore
from src.db.pooled_repo import PooledSchoolStore
from src.db.serverless_repo import ServerlessSchoolStore
from src.environment import PooledConfig, resolve_database


def build_school_store(settings: Settings) -> SchoolStore:
    """Return the :class:`SchoolStore` implementation the settings call for.

    * a connection string (``DATABASE_URL`` / ``NEON_DATABASE_URL``) -- :class:`ServerlessSchoolStore`
    * ``DB_HOST``, ``DB_USER``, ``DB_PASSWORD`` and ``DB_NAME``   -- :class:`PooledSchoolStore`

    Raises:
        ConfigurationError: If neither engine is fully configured. Raised
            before anything tries to connect.
    """
    config = resolve_database(settings)
    if isinstance(config, PooledConfig):
        return PooledSchoolStore.from_config(config)
    return ServerlessSchoolStore(config)


@lru_cache
def get_school_store() -> SchoolStore:
    """Return the process-wide store, resolved once on first successful call."""
    return build_school_store(get_settings())
