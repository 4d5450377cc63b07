"""SQLite engine for the metadata store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

if TYPE_CHECKING:
    from virtualfs.config import Settings


def _set_sqlite_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def create_engine(settings: Settings) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create the engine and session factory for the database under the root.

    Every new connection is switched to WAL journaling. Sessions keep their
    objects loaded after commit so records can be built from them.
    """
    engine = create_async_engine(settings.database_url, echo=settings.debug)
    event.listen(engine.sync_engine, "connect", _set_sqlite_pragmas)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return engine, session_factory
