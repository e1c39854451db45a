"""Async database engine and unit-of-work management.

The engine and session factory are built once by create_app() and handed
to every service at construction; nothing here holds a module-level
connection.

SQLite (local development and tests) needs these adjustments to behave
like PostgreSQL under concurrent writers:
- the driver's implicit BEGIN is disabled
- every transaction starts with BEGIN IMMEDIATE
- foreign key enforcement is switched on per connection
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rizon.core.config import Settings
from rizon.core.errors import StorageError

logger = logging.getLogger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database.

    Args:
        settings: Application settings.

    Returns:
        AsyncEngine with connection pre-ping (PostgreSQL) or the SQLite
        transaction recipe applied.
    """
    url = settings.database_url
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=False)
        _use_immediate_transactions(engine)
        return engine

    return create_async_engine(
        url,
        echo=settings.environment == "development" and settings.log_level == "DEBUG",
        pool_pre_ping=True,
    )


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    """Apply the pysqlite/aiosqlite explicit-BEGIN recipe."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(engine: AsyncEngine) -> SessionFactory:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def unit_of_work(session_factory: SessionFactory) -> AsyncIterator[AsyncSession]:
    """Run a block inside one database transaction.

    Commits when the block exits cleanly and rolls back on any exception.
    Database failures surface as StorageError; a failed write is never
    treated as having happened.

    Args:
        session_factory: Session factory owned by the calling service.

    Yields:
        AsyncSession with an open transaction.

    Raises:
        StorageError: If the database raises SQLAlchemyError.
    """
    try:
        async with session_factory() as db, db.begin():
            yield db
    except SQLAlchemyError as exc:
        logger.error("Storage operation failed: %s", exc)
        raise StorageError() from exc
