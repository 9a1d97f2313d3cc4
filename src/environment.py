"""Decide, from settings alone, which database engine and image strategy apply.

Nothing here opens a connection: every function is a pure function of the
:class:`~src.config.Settings` it is given, so configuration problems are
reported before any network I/O is attempted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

from src.config import Settings
from src.errors import ConfigurationError, ErrorCode

_LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}
_TRUTHY = {"1", "true", "yes", "on"}
_DATABASE_NAME_RE = re.compile(r"^[A-Za-z0-9_$]+$")

# (setting attribute, environment key reported to the operator)
_POOLED_KEYS = (
    ("DB_HOST", "DB_HOST"),
    ("DB_USER", "DB_USER"),
    ("DB_PASSWORD", "DB_PASSWORD"),
    ("DB_NAME", "DB_NAME"),
)


class Engine(str, Enum):
    SERVERLESS = "serverless"  # SQL over HTTP, addressed by a connection string
    POOLED = "pooled"  # relational server behind a bounded connection pool


@dataclass(frozen=True)
class ServerlessConfig:
    """Connection details for the serverless SQL-over-HTTP engine."""

    url: str
    http_endpoint: str

    engine = Engine.SERVERLESS


@dataclass(frozen=True)
class PooledConfig:
    """Connection details for the pooled relational engine."""

    host: str
    port: int
    user: str
    password: str
    database: str
    pool_size: int = 10

    engine = Engine.POOLED


DatabaseConfig = ServerlessConfig | PooledConfig


def _truthy(value: str | None) -> bool:
    return value is not None and value.strip().lower() in _TRUTHY


def _is_local_host(host: str | None) -> bool:
    return (host or "").strip("[]").lower() in _LOCAL_HOSTS


def is_production(settings: Settings) -> bool:
    """Production-like deployments get stricter configuration checks."""
    return settings.APP_ENV.strip().lower() == "production" or in_managed_hosting(settings)


def in_managed_hosting(settings: Settings) -> bool:
    """True on a managed host whose filesystem is ephemeral (Vercel sets ``VERCEL=1``)."""
    return bool(settings.VERCEL and settings.VERCEL.strip() and settings.VERCEL.strip() != "0")


def use_remote_image_store(settings: Settings) -> bool:
    """Images go to the blob store when forced on, or on a managed host that has a store token."""
    if _truthy(settings.USE_BLOB):
        return True
    return in_managed_hosting(settings) and bool(settings.BLOB_READ_WRITE_TOKEN)


def serverless_http_endpoint(url: str) -> str:
    """Derive the SQL-over-HTTP endpoint from a Neon connection string.

    ``postgresql://u:p@ep-x-123.us-east-2.aws.neon.tech/db`` maps to
    ``https://api.us-east-2.aws.neon.tech/sql``.
    """
    host = urlsplit(url).hostname or ""
    api_host = re.sub(r"^[^.]+\.", "api.", host, count=1)
    return f"https://{api_host}/sql"


def resolve_database(settings: Settings) -> DatabaseConfig:
    """Return the configuration of the active engine.

    A connection string selects the serverless engine; otherwise all four
    discrete pooled settings must be present.

    Raises:
        ConfigurationError: ``DB_CONFIG_MISSING`` naming the missing keys,
            ``DB_LOCALHOST_IN_PROD`` for a local host in production, or
            ``DB_CONFIG_INVALID`` for a database name that is not a plain
            identifier or a port that is not a number.
    """
    production = is_production(settings)

    url = (settings.DATABASE_URL or "").strip()
    if url:
        if production and _is_local_host(urlsplit(url).hostname):
            raise ConfigurationError(
                ErrorCode.DB_LOCALHOST_IN_PROD,
                "In production, DATABASE_URL must be a public Neon connection string (not localhost).",
            )
        endpoint = settings.NEON_HTTP_ENDPOINT or serverless_http_endpoint(url)
        return ServerlessConfig(url=url, http_endpoint=endpoint)

    missing = []
    for attr, key in _POOLED_KEYS:
        value = getattr(settings, attr)
        # An empty password is a valid setting; the other values must be non-empty.
        if value is None or (attr != "DB_PASSWORD" and not value.strip()):
            missing.append(key)

    if missing:
        raise ConfigurationError(
            ErrorCode.DB_CONFIG_MISSING,
            "Database is not configured. Set DATABASE_URL, or all of DB_HOST, DB_USER, DB_PASSWORD "
            f"and DB_NAME (missing: {', '.join(missing)}).",
            missing_keys=("DATABASE_URL", *missing),
        )

    host = settings.DB_HOST.strip()
    if production and _is_local_host(host):
        raise ConfigurationError(
            ErrorCode.DB_LOCALHOST_IN_PROD,
            "In production, DB_HOST must be a reachable database server (not localhost).",
        )

    database = settings.DB_NAME.strip()
    if not _DATABASE_NAME_RE.match(database):
        raise ConfigurationError(ErrorCode.DB_CONFIG_INVALID, f"Invalid database name: {database!r}")

    port = settings.DB_PORT.strip() or "3306"
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ConfigurationError(ErrorCode.DB_CONFIG_INVALID, f"Invalid database port: {settings.DB_PORT!r}")

    return PooledConfig(
        host=host,
        port=int(port),
        user=settings.DB_USER.strip(),
        password=settings.DB_PASSWORD,
        database=database,
        pool_size=settings.DB_POOL_SIZE,
    )
