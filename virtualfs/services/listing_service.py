"""One-level listings and exact-path lookups over stored records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from virtualfs.exceptions import DirectoryNotFoundError, NotFoundError
from virtualfs.schemas.file import DirEntry, FileRecord
from virtualfs.services.path_service import parent_of

if TYPE_CHECKING:
    from virtualfs.services.metadata_store import MetadataStore

logger = logging.getLogger(__name__)


class ListingService:
    """Translate stored records into the entries a sync driver walks."""

    def __init__(self, store: MetadataStore) -> None:
        self._store = store

    async def list(self, dir_path: str) -> list[DirEntry | FileRecord]:
        """List the direct children of dir_path ("" is the root).

        Deleted rows are never listed. Deeper descendants are excluded.
        Raises DirectoryNotFoundError for a non-root dir_path that has
        neither a directory record nor live children.
        """
        rows = await self._store.list_by_prefix(dir_path)
        entries: list[DirEntry | FileRecord] = []
        for row in rows:
            if dir_path and parent_of(row.path) != dir_path:
                continue
            if row.is_dir:
                entries.append(DirEntry(path=row.path, mod_time=row.mod_time))
            else:
                entries.append(row)

        if dir_path and not entries:
            record = await self._store.get(dir_path)
            if record is None or not record.is_dir:
                raise DirectoryNotFoundError(dir_path)

        logger.debug("Listed %d entries in directory %r", len(entries), dir_path)
        return entries

    async def lookup(self, path: str) -> FileRecord:
        """Return the live file record at path.

        Tombstoned and directory rows count as not found.
        """
        record = await self._store.get(path)
        if record is None or record.deleted or record.is_dir:
            raise NotFoundError(path)
        return record
