"""Reconciliation: decide whether an incoming file needs a transfer, then apply it."""

from __future__ import annotations

import asyncio
import logging
from typing import IO, TYPE_CHECKING

from virtualfs.exceptions import PathCollisionError
from virtualfs.schemas.file import HASH_MD5, FileRecord, ReconcileAction, ReconcileResult
from virtualfs.services.datetime_service import now_utc, to_utc
from virtualfs.services.path_service import ancestors

if TYPE_CHECKING:
    from virtualfs.filesystem.content_store import ContentStore
    from virtualfs.schemas.file import FileInfo
    from virtualfs.services.directory_service import DirectoryMaterializer
    from virtualfs.services.lock_service import PathLocks
    from virtualfs.services.metadata_store import MetadataStore
    from virtualfs.services.tombstone_service import TombstoneManager

logger = logging.getLogger(__name__)


def decide(existing: FileRecord | None, info: FileInfo) -> ReconcileAction:
    """Classify a candidate against the stored record for its path.

    Rules, first match wins:
    - no live file record (missing, tombstoned, or a directory) -> CREATE
    - size differs -> UPDATE
    - modification time differs at all, earlier or later -> UPDATE
    - candidate has an MD5 digest and it differs from the stored one -> UPDATE
    - otherwise -> SKIP
    """
    if existing is None or existing.deleted or existing.is_dir:
        return ReconcileAction.CREATE
    if info.size != existing.size:
        return ReconcileAction.UPDATE
    if to_utc(info.mod_time) != existing.mod_time:
        return ReconcileAction.UPDATE
    digest = info.digest(HASH_MD5)
    if digest is not None and digest.lower() != existing.hash(HASH_MD5).lower():
        return ReconcileAction.UPDATE
    return ReconcileAction.SKIP


class ReconcileEngine:
    """Applies the skip/create/update decision for one path at a time."""

    def __init__(
        self,
        store: MetadataStore,
        content: ContentStore,
        materializer: DirectoryMaterializer,
        tombstones: TombstoneManager,
        locks: PathLocks,
    ) -> None:
        self._store = store
        self._content = content
        self._materializer = materializer
        self._tombstones = tombstones
        self._locks = locks

    async def reconcile(self, info: FileInfo, stream: IO[bytes]) -> ReconcileResult:
        """Reconcile one candidate file.

        On SKIP the stream is not read and the stored record is returned.
        Otherwise the stream is copied into the content tree and the new
        record is committed afterwards, together with its ancestor directory
        rows. If the copy or the commit fails the previous record stays as it
        was, and a tombstone marker is only removed once the commit succeeded.
        """
        path = info.path
        async with self._locks.hold(path):
            existing = await self._store.get(path)
            if existing is not None and existing.is_dir:
                raise PathCollisionError(f"Cannot write file {path!r}: a directory exists there")

            action = decide(existing, info)
            if action is ReconcileAction.SKIP:
                assert existing is not None
                logger.info("Skipping identical file: %s", path)
                return ReconcileResult(action=action, record=existing)

            # Surfaces a file ancestor before any bytes are written.
            await self._materializer.materialize_parents(path)
            written = await asyncio.to_thread(self._content.write_stream, path, stream)
            if written.size != info.size:
                logger.warning(
                    "Size mismatch for %s: source reported %d bytes, received %d",
                    path,
                    info.size,
                    written.size,
                )

            record = FileRecord(
                path=path,
                stored_size=written.size,
                mod_time=to_utc(info.mod_time),
                has_hash=True,
                hash_value=written.md5,
                deleted=False,
                is_dir=False,
            )
            await self._store.commit_file(record, ancestors(path), now_utc())
            if existing is not None and existing.deleted:
                self._tombstones.clear(path)
            logger.info("%s %s (%d bytes)", action.value.capitalize(), path, written.size)
            return ReconcileResult(action=action, record=record)
