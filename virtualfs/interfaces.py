"""Capability protocols a sync driver relies on."""

from __future__ import annotations

from typing import IO, TYPE_CHECKING, BinaryIO, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime, timedelta

    from virtualfs.schemas.file import DirEntry, FileInfo, FileRecord, ReconcileResult


@runtime_checkable
class Lister(Protocol):
    """Discover what the destination already holds."""

    async def list(self, dir_path: str = "") -> list[DirEntry | FileRecord]:
        """List the direct children of a directory."""
        ...

    async def lookup(self, path: str) -> FileRecord:
        """Return the live record at path or raise NotFoundError."""
        ...


@runtime_checkable
class Reader(Protocol):
    """Read stored content back."""

    async def open_content(self, path: str) -> BinaryIO:
        """Open the content file of a live path."""
        ...


@runtime_checkable
class Writer(Protocol):
    """Apply changes coming from the remote source."""

    async def reconcile(self, info: FileInfo, content: IO[bytes]) -> ReconcileResult:
        """Create, update or skip one file."""
        ...

    async def make_directory(self, path: str) -> None:
        """Materialize a directory without content."""
        ...

    async def remove_directory(self, path: str) -> None:
        """Remove a directory that has no live descendants."""
        ...

    async def mark_deleted(self, path: str) -> FileRecord:
        """Tombstone a path."""
        ...

    async def set_mod_time(self, path: str, mod_time: datetime) -> FileRecord:
        """Change only the stored modification time."""
        ...


@runtime_checkable
class Hasher(Protocol):
    """Report digest and timestamp capabilities."""

    def hashes(self) -> frozenset[str]:
        """Digest algorithms the store computes."""
        ...

    def precision(self) -> timedelta:
        """Finest modification-time resolution kept."""
        ...
