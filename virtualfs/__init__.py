"""Metadata-indexed content cache with tombstone-based deletion signaling.

Layout under the configured root directory:
    virtualfs.db              # SQLite: one row per logical path (files table)
    <path>                    # content, present until a consumer takes it
    <path>.delete             # zero-byte tombstone marker for a remote deletion

Rows outlive content: once a file has been ingested, the consumer may move
or delete it and later syncs still see the path as present and unchanged.
"""

from virtualfs.config import Settings
from virtualfs.exceptions import (
    DirectoryNotFoundError,
    InvalidPathError,
    NotEmptyError,
    NotFoundError,
    PathCollisionError,
    StoreError,
    UnsupportedDigestError,
    VirtualFSError,
)
from virtualfs.fs import VirtualFS
from virtualfs.schemas.file import DirEntry, FileInfo, FileRecord, ReconcileAction, ReconcileResult

__all__ = [
    "DirEntry",
    "DirectoryNotFoundError",
    "FileInfo",
    "FileRecord",
    "InvalidPathError",
    "NotEmptyError",
    "NotFoundError",
    "PathCollisionError",
    "ReconcileAction",
    "ReconcileResult",
    "Settings",
    "StoreError",
    "UnsupportedDigestError",
    "VirtualFS",
    "VirtualFSError",
]
