"""Serverless PostgreSQL (Neon) reached by posting SQL over HTTPS.

Each statement is a single ``POST`` to the SQL-over-HTTP endpoint carrying the
connection string in a header and the statement plus positional ``$n``
parameters in a JSON body. There is no persistent database connection; only
the HTTP client is cached.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any

import httpx
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateTable

from src.db.base import NewSchool, SchoolRecord, SchoolStore, as_utc
from src.db.models import School
from src.environment import ServerlessConfig
from src.errors import PersistenceError

logger = logging.getLogger(__name__)

_SELECT_SCHOOLS = (
    "SELECT id, name, address, city, state, contact, email_id, image, "
    "to_char(created_at AT TIME ZONE 'UTC', 'YYYY-MM-DD\"T\"HH24:MI:SS.US') AS created_at "
    "FROM schools ORDER BY id DESC"
)

_INSERT_SCHOOL = (
    "INSERT INTO schools (name, address, city, state, contact, image, email_id) "
    "VALUES ($1, $2, $3, $4, $5, $6, $7)"
)


def _create_table_sql() -> str:
    """``CREATE TABLE IF NOT EXISTS`` for :class:`School`, compiled for PostgreSQL."""
    return str(CreateTable(School.__table__, if_not_exists=True).compile(dialect=postgresql.dialect())).strip()


def _parse_timestamp(value: str | None) -> datetime.datetime | None:
    if not value:
        return None
    return as_utc(datetime.datetime.fromisoformat(value))


def _to_record(row: dict[str, Any]) -> SchoolRecord:
    return SchoolRecord(
        id=int(row["id"]),
        name=row["name"],
        address=row["address"],
        city=row["city"],
        state=row["state"],
        contact=row["contact"],
        email_id=row["email_id"],
        image=row.get("image"),
        created_at=_parse_timestamp(row.get("created_at")),
    )


class ServerlessSchoolStore(SchoolStore):
    """Neon-backed implementation of :class:`SchoolStore` using *httpx*.

    Parameters
    ----------
    config:
        Connection string and derived HTTP endpoint.
    transport:
        Optional httpx transport, used by the tests to stand in for the service.
    """

    def __init__(self, config: ServerlessConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__()
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """The shared HTTP client, created on first access."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                headers={
                    "Neon-Connection-String": self._config.url,
                    "Neon-Raw-Text-Output": "true",
                    "Neon-Array-Mode": "false",
                },
            )
        return self._client

    async def _query(self, query: str, params: list[Any] | None = None) -> list[dict[str, Any]]:
        """Run one statement and return its rows as dictionaries."""
        try:
            response = await self.client.post(
                self._config.http_endpoint,
                json={"query": query, "params": params or []},
            )
        except httpx.RequestError as exc:
            logger.error("Network error talking to %s: %s", self._config.http_endpoint, exc)
            raise PersistenceError("Database is unreachable") from exc

        if response.status_code >= 400:
            try:
                message = response.json().get("message") or response.text
            except ValueError:
                message = response.text
            logger.error("SQL over HTTP failed (%s): %s", response.status_code, message)
            raise PersistenceError(f"Database query failed (HTTP {response.status_code})")

        try:
            return list(response.json().get("rows") or [])
        except (ValueError, AttributeError, TypeError) as exc:
            logger.error("Unreadable SQL over HTTP reply: %.200r", response.text)
            raise PersistenceError("Database returned an unreadable reply") from exc

    async def _create_schema(self) -> None:
        await self._query(_create_table_sql())
        logger.info("Ensured schools table exists (serverless)")

    async def list_schools(self) -> list[SchoolRecord]:
        await self.ensure_schema()
        rows = await self._query(_SELECT_SCHOOLS)
        return [_to_record(row) for row in rows]

    async def insert_school(self, school: NewSchool) -> None:
        await self.ensure_schema()
        await self._query(
            _INSERT_SCHOOL,
            [school.name, school.address, school.city, school.state, school.contact, school.image, school.email_id],
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
