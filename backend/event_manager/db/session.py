"""
Persistence gateway: async engine, connection pool and session factory.

A ``Database`` is built once in the application lifespan, kept on
``app.state.database`` and disposed at shutdown. Nothing here is a module
global, so tests and scripts can run several databases side by side.

LOCKING
=======

The registration transaction serialises competing requests for the same event
with ``SELECT ... FOR UPDATE`` on the event row. PostgreSQL provides that
directly (READ COMMITTED plus an explicit row lock).

SQLite has no row locks and silently drops FOR UPDATE. For SQLite URLs we
turn off the driver's implicit transaction handling and open every
transaction with ``BEGIN IMMEDIATE`` instead, which takes the database write
lock up front. That is coarser than a row lock but gives the same guarantee:
two transactions cannot both read the registration count before either one
inserts.

The listener cannot tell reads from writes, so on SQLite every transaction,
including the ones behind GET endpoints, takes the write lock for its
duration. Reads are short and SQLite is only used for local runs and the
test suite, so requests simply queue; PostgreSQL readers never block.
"""

from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from event_manager.core.config import Settings
from event_manager.core.logging import get_logger
from event_manager.db.base import Base

logger = get_logger(__name__)


def _install_sqlite_locking(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Stop the driver from emitting its own deferred BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Owns the engine (and its pool) for one database URL."""

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
        statement_timeout_ms: Optional[int] = None,
    ):
        self.url = make_url(url)
        engine_kwargs = {"echo": echo}

        if self.url.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"timeout": 30}
        else:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                pool_pre_ping=True,
            )
            if statement_timeout_ms and self.url.get_driver_name() == "asyncpg":
                engine_kwargs["connect_args"] = {
                    "server_settings": {"statement_timeout": str(statement_timeout_ms)}
                }

        self.engine: AsyncEngine = create_async_engine(self.url, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            _install_sqlite_locking(self.engine)

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.DEBUG,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            statement_timeout_ms=settings.DB_STATEMENT_TIMEOUT_MS,
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("database_ping_failed", error=str(e))
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("database_disposed", dialect=self.dialect)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, closed afterwards.

    Services commit their own work; closing the session rolls back anything
    left open.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
