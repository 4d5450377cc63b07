"""VirtualFS: the handle a sync driver opens against one root directory.

The handle owns the database engine, the metadata store and the content
tree for its root, and wires them into the components that implement the
collaborator contract:

- ``list`` / ``lookup``: what the destination holds (deleted paths hidden)
- ``reconcile`` / ``put``: skip, create or update one incoming file
- ``mark_deleted``: tombstone a path, keeping its metadata
- ``make_directory`` / ``remove_directory``: synthetic directories
- ``set_mod_time`` / ``open_content``: metadata-only touch, content reads

Usage::

    async with await VirtualFS.open(Settings(root_directory=root)) as vfs:
        result = await vfs.reconcile(info, stream)
"""

from __future__ import annotations

import logging
from typing import IO, TYPE_CHECKING, BinaryIO

from virtualfs.database import create_engine
from virtualfs.exceptions import InvalidPathError
from virtualfs.filesystem.content_store import ContentStore
from virtualfs.schemas.file import SUPPORTED_HASHES, FileInfo, FileRecord, ReconcileResult
from virtualfs.services.datetime_service import PRECISION, to_utc
from virtualfs.services.directory_service import DirectoryMaterializer
from virtualfs.services.listing_service import ListingService
from virtualfs.services.lock_service import PathLocks
from virtualfs.services.metadata_store import MetadataStore
from virtualfs.services.path_service import normalize_path
from virtualfs.services.reconcile_service import ReconcileEngine
from virtualfs.services.tombstone_service import TombstoneManager

if TYPE_CHECKING:
    from datetime import datetime, timedelta
    from pathlib import Path
    from types import TracebackType

    from sqlalchemy.ext.asyncio import AsyncEngine

    from virtualfs.config import Settings
    from virtualfs.schemas.file import DirEntry

logger = logging.getLogger(__name__)


class VirtualFS:
    """Metadata-indexed content cache rooted at one directory."""

    def __init__(self, settings: Settings, engine: AsyncEngine, store: MetadataStore) -> None:
        self.settings = settings
        self._engine = engine
        self.store = store
        self.content = ContentStore(settings.root_directory, chunk_size=settings.chunk_size)
        self.locks = PathLocks()
        self.materializer = DirectoryMaterializer(store)
        self.tombstones = TombstoneManager(store, self.content, settings.tombstone_suffix)
        self.listing = ListingService(store)
        self.reconciler = ReconcileEngine(
            store, self.content, self.materializer, self.tombstones, self.locks
        )

    @classmethod
    async def open(cls, settings: Settings) -> VirtualFS:
        """Create the root directory and schema, and return an open handle."""
        root = settings.root_directory
        if root.exists() and not root.is_dir():
            msg = f"Root path exists but is not a directory: {root}"
            raise NotADirectoryError(msg)
        root.mkdir(parents=True, exist_ok=True)

        engine, session_factory = create_engine(settings)
        store = MetadataStore(session_factory)
        try:
            await store.create_tables()
        except Exception:
            await engine.dispose()
            raise
        logger.info("Opened VirtualFS at %s", root)
        return cls(settings, engine, store)

    async def close(self) -> None:
        """Dispose of the database engine. The handle is unusable afterwards."""
        await self._engine.dispose()
        logger.info("Closed VirtualFS at %s", self.root_directory)

    async def __aenter__(self) -> VirtualFS:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"VirtualFS(root_directory={str(self.root_directory)!r})"

    @property
    def root_directory(self) -> Path:
        return self.settings.root_directory

    def _path(self, path: str, *, allow_root: bool = False) -> str:
        normalized = normalize_path(path, allow_root=allow_root)
        if normalized.endswith(self.settings.tombstone_suffix):
            raise InvalidPathError(
                f"Paths ending in {self.settings.tombstone_suffix!r} are reserved: {path!r}"
            )
        return normalized

    # Capabilities

    def hashes(self) -> frozenset[str]:
        return SUPPORTED_HASHES

    def precision(self) -> timedelta:
        return PRECISION

    # Listing and lookup

    async def list(self, dir_path: str = "") -> list[DirEntry | FileRecord]:
        return await self.listing.list(self._path(dir_path, allow_root=True))

    async def lookup(self, path: str) -> FileRecord:
        return await self.listing.lookup(self._path(path))

    async def live_files(self) -> list[FileRecord]:
        """Every live file record, at any depth."""
        return await self.store.list_live_files()

    async def directories(self) -> list[str]:
        """Paths of every directory record, parents before children."""
        return [record.path for record in await self.store.list_directories()]

    # Writes

    async def reconcile(self, info: FileInfo, content: IO[bytes]) -> ReconcileResult:
        path = self._path(info.path)
        if path != info.path:
            info = info.model_copy(update={"path": path})
        return await self.reconciler.reconcile(info, content)

    async def put(self, info: FileInfo, content: IO[bytes]) -> FileRecord:
        """Reconcile and return only the resulting record."""
        result = await self.reconcile(info, content)
        return result.record

    async def make_directory(self, path: str) -> None:
        path = self._path(path, allow_root=True)
        if not path:
            return
        async with self.locks.hold(path):
            await self.materializer.materialize(path)
            self.content.make_dir(path)
        logger.info("Created directory %s", path)

    async def remove_directory(self, path: str) -> None:
        path = self._path(path)
        async with self.locks.hold(path):
            await self.store.delete(path)
            self.content.remove_dir_if_empty(path)
        logger.info("Removed directory %s", path)

    async def mark_deleted(self, path: str) -> FileRecord:
        path = self._path(path)
        async with self.locks.hold(path):
            return await self.tombstones.mark_deleted(path)

    async def set_mod_time(self, path: str, mod_time: datetime) -> FileRecord:
        """Change the stored modification time without touching content."""
        path = self._path(path)
        async with self.locks.hold(path):
            record = await self.listing.lookup(path)
            mod_time = to_utc(mod_time)
            await self.store.set_fields(path, mod_time=mod_time)
        logger.debug("Set mod time of %s to %s", path, mod_time.isoformat())
        return record.model_copy(update={"mod_time": mod_time})

    # Reads

    async def open_content(self, path: str) -> BinaryIO:
        """Open the content of a live path.

        Raises NotFoundError for unknown or deleted paths and
        FileNotFoundError when the content was already consumed locally.
        """
        path = self._path(path)
        await self.listing.lookup(path)
        return self.content.open(path)
