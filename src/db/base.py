from __future__ import annotations

import datetime
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class NewSchool:
    """A validated, trimmed submission ready to be inserted."""

    name: str
    address: str
    city: str
    state: str
    contact: str
    email_id: str
    image: str | None = None


@dataclass(frozen=True)
class SchoolRecord:
    """A stored school as returned by every store implementation."""

    id: int
    name: str
    address: str
    city: str
    state: str
    contact: str
    email_id: str
    image: str | None
    created_at: datetime.datetime | None


def as_utc(value: datetime.datetime | None) -> datetime.datetime | None:
    """Normalise a driver timestamp to an aware UTC datetime.

    Servers that store timestamps without a zone return naive values; those
    are taken to be UTC so both engines report identical instants.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


class SchoolStore(ABC):
    """Abstract interface for persisting and listing schools.

    Implementations create their connection handle lazily on first use and
    keep it for the lifetime of the process.
    """

    def __init__(self) -> None:
        self._schema_ensured = False

    @property
    def schema_ensured(self) -> bool:
        return self._schema_ensured

    async def ensure_schema(self) -> None:
        """Create the ``schools`` table if it does not exist yet.

        Only the first successful call per process reaches the database.
        Concurrent first calls may each issue the statement; it is idempotent.
        """
        if self._schema_ensured:
            return
        await self._create_schema()
        self._schema_ensured = True

    @abstractmethod
    async def _create_schema(self) -> None:
        """Issue the engine's ``CREATE TABLE IF NOT EXISTS`` statement."""
        ...

    @abstractmethod
    async def list_schools(self) -> list[SchoolRecord]:
        """Return every school, newest identifier first."""
        ...

    @abstractmethod
    async def insert_school(self, school: NewSchool) -> None:
        """Persist a validated submission. Values are always bound as parameters."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the pool or client, if one was created."""
        ...
