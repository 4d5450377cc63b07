"""Exception types raised by the cache.

Convention:
- Subclasses of ``VirtualFSError`` describe outcomes the sync driver is
  expected to branch on (missing paths, non-empty directories, collisions).
- ``StoreError`` wraps any failure of a metadata transaction and is always
  chained to the underlying SQLAlchemy exception.
- Content I/O failures are plain ``OSError`` subclasses and are never
  wrapped, so callers see exactly what the filesystem reported.
"""

from __future__ import annotations


class VirtualFSError(Exception):
    """Base class for cache errors."""


class NotFoundError(VirtualFSError):
    """No live record exists for the requested path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Object not found: {path!r}")
        self.path = path


class DirectoryNotFoundError(NotFoundError):
    """No directory record exists for the requested path."""

    def __init__(self, path: str) -> None:
        VirtualFSError.__init__(self, f"Directory not found: {path!r}")
        self.path = path


class NotEmptyError(VirtualFSError):
    """Directory still has live descendants."""

    def __init__(self, path: str, live_count: int) -> None:
        super().__init__(f"Directory not empty: {path!r} ({live_count} live entries)")
        self.path = path
        self.live_count = live_count


class PathCollisionError(VirtualFSError):
    """A file and a directory would share one path."""


class InvalidPathError(VirtualFSError, ValueError):
    """Path is empty, escapes the root, or uses a reserved name."""


class UnsupportedDigestError(VirtualFSError):
    """A digest other than the single supported algorithm was requested."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Unsupported digest type: {kind!r}")
        self.kind = kind


class StoreError(VirtualFSError):
    """A metadata transaction failed.

    The operation that raised it had no effect on the metadata table.
    """
