"""Metadata store: transactional access to the ``files`` table."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError

from virtualfs.exceptions import (
    DirectoryNotFoundError,
    NotEmptyError,
    PathCollisionError,
    StoreError,
)
from virtualfs.models.base import Base
from virtualfs.models.file import FileMetadata
from virtualfs.schemas.file import FileRecord
from virtualfs.services.datetime_service import format_mod_time, parse_mod_time
from virtualfs.services.path_service import escape_like

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Sequence
    from datetime import datetime

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)

# Columns set_fields may touch; everything else goes through upsert.
_SETTABLE_FIELDS = frozenset({"mod_time", "deleted"})


def to_record(row: FileMetadata) -> FileRecord:
    """Convert an ORM row to the reader-facing record."""
    return FileRecord(
        path=row.path,
        stored_size=row.size,
        mod_time=parse_mod_time(row.mod_time),
        has_hash=row.has_hash,
        hash_value=row.hash,
        deleted=row.deleted,
        is_dir=row.is_dir,
    )


def _to_row(record: FileRecord) -> FileMetadata:
    return FileMetadata(
        path=record.path,
        size=record.stored_size,
        mod_time=format_mod_time(record.mod_time),
        has_hash=record.has_hash,
        hash=record.hash_value,
        deleted=record.deleted,
        is_dir=record.is_dir,
    )


async def _ensure_directory_rows(
    session: AsyncSession, paths: Sequence[str], stamp: str
) -> list[str]:
    """Insert or convert directory rows for paths inside the caller's transaction.

    Existing directory rows are left untouched and tombstoned file rows are
    turned into directories. A live file row raises PathCollisionError.
    """
    created: list[str] = []
    for path in paths:
        row = await session.get(FileMetadata, path)
        if row is None:
            session.add(
                FileMetadata(
                    path=path,
                    size=0,
                    mod_time=stamp,
                    has_hash=False,
                    hash="",
                    deleted=False,
                    is_dir=True,
                )
            )
            created.append(path)
        elif row.is_dir:
            continue
        elif row.deleted:
            row.size = 0
            row.mod_time = stamp
            row.has_hash = False
            row.hash = ""
            row.deleted = False
            row.is_dir = True
            created.append(path)
        else:
            raise PathCollisionError(
                f"Cannot create directory {path!r}: a file exists at that path"
            )
    return created


def _descendant_pattern(prefix: str) -> str:
    return escape_like(prefix) + "/%"


def _live_descendants_stmt(path: str) -> Select[tuple[int]]:
    return (
        select(func.count())
        .select_from(FileMetadata)
        .where(
            FileMetadata.path.like(_descendant_pattern(path), escape="\\"),
            FileMetadata.deleted.is_(False),
        )
    )


class MetadataStore:
    """Serialized CRUD over file records.

    Every public method runs in its own transaction while holding one
    store-wide lock, so mutations never interleave with each other or with
    listing scans. Failures of the database layer surface as StoreError and
    leave the table as it was before the call.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def _transaction(self) -> AsyncGenerator[AsyncSession]:
        async with self._lock:
            try:
                async with self._session_factory() as session, session.begin():
                    yield session
            except SQLAlchemyError as exc:
                logger.error("Metadata transaction failed: %s", exc)
                raise StoreError(f"Metadata transaction failed: {exc}") from exc

    async def create_tables(self) -> None:
        """Create the schema if it does not exist yet."""
        async with self._transaction() as session:
            conn = await session.connection()
            await conn.run_sync(Base.metadata.create_all)

    async def get(self, path: str) -> FileRecord | None:
        """Return the stored record for path, deleted or not."""
        async with self._transaction() as session:
            row = await session.get(FileMetadata, path)
            return to_record(row) if row is not None else None

    async def upsert(self, record: FileRecord) -> None:
        """Insert or replace the row for record.path."""
        async with self._transaction() as session:
            await session.merge(_to_row(record))

    async def commit_file(
        self, record: FileRecord, parents: Sequence[str], mod_time: datetime
    ) -> list[str]:
        """Ensure directory rows for parents and write record, in one transaction.

        A directory removal can never slip between the two, so a committed
        file always has its ancestor rows. Raises PathCollisionError if a
        directory row exists at record.path. Returns the directories created.
        """
        async with self._transaction() as session:
            created = await _ensure_directory_rows(session, parents, format_mod_time(mod_time))
            current = await session.get(FileMetadata, record.path)
            if current is not None and current.is_dir:
                raise PathCollisionError(
                    f"Cannot write file {record.path!r}: a directory exists there"
                )
            await session.merge(_to_row(record))
        return created

    async def set_fields(self, path: str, **changes: Any) -> bool:
        """Update only the given columns of one row.

        Accepts ``mod_time`` (datetime) and ``deleted`` (bool). Returns False
        when no row exists for path.
        """
        unknown = set(changes) - _SETTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot set fields: {sorted(unknown)}")
        values = dict(changes)
        if "mod_time" in values:
            values["mod_time"] = format_mod_time(values["mod_time"])
        async with self._transaction() as session:
            result = await session.execute(
                update(FileMetadata).where(FileMetadata.path == path).values(**values)
            )
            return bool(result.rowcount)

    async def delete(self, path: str) -> None:
        """Delete the directory row at path if nothing live remains under it.

        The emptiness check and the deletion share one transaction. File rows
        are never removed. Raises DirectoryNotFoundError when path has no
        directory row and NotEmptyError when live descendants exist.
        """
        async with self._transaction() as session:
            row = await session.get(FileMetadata, path)
            if row is None or not row.is_dir:
                raise DirectoryNotFoundError(path)
            live_count = int((await session.execute(_live_descendants_stmt(path))).scalar_one())
            if live_count:
                raise NotEmptyError(path, live_count)
            await session.execute(
                delete(FileMetadata).where(FileMetadata.path == path, FileMetadata.is_dir.is_(True))
            )

    async def list_by_prefix(self, prefix: str) -> list[FileRecord]:
        """Return non-deleted rows under prefix, sorted by path.

        An empty prefix selects top-level rows (no separator in the path);
        otherwise every descendant of prefix is returned, at any depth.
        """
        stmt = select(FileMetadata).where(FileMetadata.deleted.is_(False))
        if prefix:
            stmt = stmt.where(FileMetadata.path.like(_descendant_pattern(prefix), escape="\\"))
        else:
            stmt = stmt.where(FileMetadata.path.not_like("%/%"))
        stmt = stmt.order_by(FileMetadata.path)
        async with self._transaction() as session:
            result = await session.execute(stmt)
            return [to_record(row) for row in result.scalars().all()]

    async def list_live_files(self) -> list[FileRecord]:
        """Return every non-deleted file row in the store."""
        stmt = (
            select(FileMetadata)
            .where(FileMetadata.deleted.is_(False), FileMetadata.is_dir.is_(False))
            .order_by(FileMetadata.path)
        )
        async with self._transaction() as session:
            result = await session.execute(stmt)
            return [to_record(row) for row in result.scalars().all()]

    async def count_live_descendants(self, path: str) -> int:
        """Count non-deleted rows strictly under path."""
        async with self._transaction() as session:
            result = await session.execute(_live_descendants_stmt(path))
            return int(result.scalar_one())

    async def ensure_directories(self, paths: Sequence[str], mod_time: datetime) -> list[str]:
        """Insert directory rows for paths that have none, in one transaction.

        Existing directory rows are left untouched. A tombstoned file row is
        turned into a directory row. A live file row raises
        PathCollisionError and nothing from this call is committed.
        Returns the paths that were inserted or converted.
        """
        async with self._transaction() as session:
            return await _ensure_directory_rows(session, paths, format_mod_time(mod_time))

    async def list_directories(self) -> list[FileRecord]:
        """Return every directory row, sorted by path."""
        stmt = select(FileMetadata).where(FileMetadata.is_dir.is_(True)).order_by(FileMetadata.path)
        async with self._transaction() as session:
            result = await session.execute(stmt)
            return [to_record(row) for row in result.scalars().all()]
