from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


def _env(*names: str) -> AliasChoices:
    """Accept several spellings of one setting; the first one found wins."""
    return AliasChoices(*names)


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Where two spellings exist for the same value the more specific one is
    listed first (``MYSQL_HOST`` over ``DB_HOST``, ``NEON_DATABASE_URL`` over
    ``DATABASE_URL``).
    """

    # Serverless SQL-over-HTTP engine
    DATABASE_URL: str | None = Field(default=None, validation_alias=_env("NEON_DATABASE_URL", "DATABASE_URL"))
    NEON_HTTP_ENDPOINT: str | None = None

    # Pooled relational engine
    DB_HOST: str | None = Field(default=None, validation_alias=_env("MYSQL_HOST", "DB_HOST"))
    DB_PORT: str = Field(default="3306", validation_alias=_env("MYSQL_PORT", "DB_PORT"))
    DB_USER: str | None = Field(default=None, validation_alias=_env("MYSQL_USER", "DB_USER"))
    DB_PASSWORD: str | None = Field(default=None, validation_alias=_env("MYSQL_PASSWORD", "DB_PASSWORD"))
    DB_NAME: str | None = Field(default=None, validation_alias=_env("MYSQL_DATABASE", "DB_NAME"))
    DB_POOL_SIZE: int = 10

    # Deployment context
    APP_ENV: str = Field(default="development", validation_alias=_env("APP_ENV", "ENVIRONMENT"))
    VERCEL: str | None = None

    # Image storage
    USE_BLOB: str | None = None
    BLOB_READ_WRITE_TOKEN: str | None = None
    BLOB_API_URL: str = "https://blob.vercel-storage.com"
    IMAGES_DIR: str = "./public/schoolImages"
    IMAGES_URL_PREFIX: str = "/schoolImages"

    CORS_ORIGINS: str = ""  # Comma-separated origins, empty = same-origin only
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
