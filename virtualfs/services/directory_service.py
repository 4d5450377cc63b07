"""Directory materialization: synthetic records for ancestor paths."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from virtualfs.services.datetime_service import now_utc
from virtualfs.services.path_service import ancestors

if TYPE_CHECKING:
    from virtualfs.services.metadata_store import MetadataStore

logger = logging.getLogger(__name__)


class DirectoryMaterializer:
    """Keep a directory record for every ancestor of stored paths.

    Directories are never synced on their own; these records exist so that
    one-level listings and emptiness checks see the tree shape.
    """

    def __init__(self, store: MetadataStore) -> None:
        self._store = store

    async def materialize_parents(self, path: str) -> list[str]:
        """Ensure directory records for every ancestor of path."""
        return await self._ensure(ancestors(path))

    async def materialize(self, path: str) -> list[str]:
        """Ensure directory records for path itself and all its ancestors."""
        return await self._ensure([*ancestors(path), path])

    async def _ensure(self, paths: list[str]) -> list[str]:
        if not paths:
            return []
        created = await self._store.ensure_directories(paths, now_utc())
        if created:
            logger.debug("Materialized directories: %s", ", ".join(created))
        return created
