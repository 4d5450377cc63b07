"""Tombstones: the on-disk marker file and the ``deleted`` flag, kept in step.

A deletion is recorded twice: as a zero-byte ``<path><suffix>`` marker that
an external consumer can notice on the content tree, and as ``deleted=1`` on
the path's row so the path drops out of listings while its last-known
metadata is kept. This module is the only writer of either projection.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from virtualfs.exceptions import NotFoundError
from virtualfs.services.datetime_service import now_utc

if TYPE_CHECKING:
    from virtualfs.filesystem.content_store import ContentStore
    from virtualfs.schemas.file import FileRecord
    from virtualfs.services.metadata_store import MetadataStore

logger = logging.getLogger(__name__)


class TombstoneManager:
    """Records remote-side deletions without forgetting the path."""

    def __init__(self, store: MetadataStore, content: ContentStore, suffix: str) -> None:
        self._store = store
        self._content = content
        self.suffix = suffix

    def marker_path(self, path: str) -> str:
        return path + self.suffix

    async def mark_deleted(self, path: str) -> FileRecord:
        """Remove content, drop a marker file, and flag the row deleted.

        Raises NotFoundError when path has no file record. Marking an
        already-deleted path again refreshes the marker and timestamp.
        """
        existing = await self._store.get(path)
        if existing is None or existing.is_dir:
            raise NotFoundError(path)

        if not self._content.remove(path):
            logger.debug("Content for %s already gone before deletion", path)
        self._content.touch(self.marker_path(path))

        deleted_at = now_utc()
        await self._store.set_fields(path, deleted=True, mod_time=deleted_at)
        logger.info("Marked deleted: %s", path)
        return existing.model_copy(update={"deleted": True, "mod_time": deleted_at})

    def clear(self, path: str) -> bool:
        """Remove the marker for path ahead of the path being written again."""
        removed = self._content.remove(self.marker_path(path))
        if removed:
            logger.debug("Cleared tombstone marker for %s", path)
        return removed

    def has_marker(self, path: str) -> bool:
        return self._content.exists(self.marker_path(path))
