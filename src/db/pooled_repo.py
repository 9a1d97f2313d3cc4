from __future__ import annotations

import logging

from sqlalchemy import URL, make_url, select, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool
from sqlalchemy.schema import CreateTable

from src.db.base import NewSchool, SchoolRecord, SchoolStore, as_utc
from src.db.models import School
from src.environment import PooledConfig
from src.errors import PersistenceError

logger = logging.getLogger(__name__)

# MySQL server error: the database named in the connection does not exist.
_ER_BAD_DB_ERROR = 1049


def _is_unknown_database(exc: OperationalError) -> bool:
    args = getattr(exc.orig, "args", ())
    return bool(args) and args[0] == _ER_BAD_DB_ERROR


def _to_record(school: School) -> SchoolRecord:
    return SchoolRecord(
        id=school.id,
        name=school.name,
        address=school.address,
        city=school.city,
        state=school.state,
        contact=school.contact,
        email_id=school.email_id,
        image=school.image,
        created_at=as_utc(school.created_at),
    )


class PooledSchoolStore(SchoolStore):
    """Relational implementation of :class:`SchoolStore` behind a bounded pool.

    Production uses MySQL through *aiomysql*; any SQLAlchemy async URL works,
    which is how the test-suite runs it against a temporary SQLite file.
    The pool holds at most ``pool_size`` connections and callers beyond that
    wait for a free one without a timeout.
    """

    def __init__(self, url: URL | str, pool_size: int = 10) -> None:
        super().__init__()
        self._url = make_url(url)
        self._pool_size = pool_size
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_config(cls, config: PooledConfig) -> PooledSchoolStore:
        url = URL.create(
            "mysql+aiomysql",
            username=config.user,
            password=config.password,
            host=config.host,
            port=config.port,
            database=config.database,
            query={"charset": "utf8mb4"},
        )
        return cls(url, pool_size=config.pool_size)

    @property
    def engine(self) -> AsyncEngine:
        """The pooled async engine, created on first access."""
        if self._engine is None:
            self._engine = create_async_engine(
                self._url,
                echo=False,
                poolclass=AsyncAdaptedQueuePool,
                pool_size=self._pool_size,
                max_overflow=0,
                pool_timeout=None,
                pool_pre_ping=True,
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(self.engine, expire_on_commit=False)
        return self._session_factory

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def _create_table(self) -> None:
        async with self.engine.begin() as conn:
            await conn.execute(CreateTable(School.__table__, if_not_exists=True))

    async def _create_database(self) -> None:
        """Create the configured database through a connection that selects none."""
        database = self._url.database
        server = create_async_engine(self._url.set(database=None), poolclass=NullPool)
        try:
            async with server.begin() as conn:
                quoted = conn.dialect.identifier_preparer.quote(database)
                await conn.execute(text(f"CREATE DATABASE IF NOT EXISTS {quoted} CHARACTER SET utf8mb4"))
        finally:
            await server.dispose()
        logger.info("Created database %s", database)

    async def _create_schema(self) -> None:
        try:
            try:
                await self._create_table()
            except OperationalError as exc:
                if not _is_unknown_database(exc):
                    raise
                await self._create_database()
                # Drop any pooled connections made before the database existed.
                await self.engine.dispose()
                await self._create_table()
        except SQLAlchemyError as exc:
            logger.error("Failed to ensure schools table: %s", exc)
            raise PersistenceError("Failed to create schools table") from exc
        logger.info("Ensured schools table exists (%s)", self._url.get_backend_name())

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def list_schools(self) -> list[SchoolRecord]:
        await self.ensure_schema()
        stmt = select(School).order_by(School.id.desc())
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return [_to_record(school) for school in result.scalars().all()]
        except SQLAlchemyError as exc:
            logger.error("Failed to list schools: %s", exc)
            raise PersistenceError("Failed to fetch schools") from exc

    async def insert_school(self, school: NewSchool) -> None:
        await self.ensure_schema()
        row = School(
            name=school.name,
            address=school.address,
            city=school.city,
            state=school.state,
            contact=school.contact,
            image=school.image,
            email_id=school.email_id,
        )
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("Failed to insert school %r: %s", school.name, exc)
            raise PersistenceError("Failed to add school") from exc

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
