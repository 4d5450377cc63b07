"""Pydantic schemas for records, candidates and listings."""

from virtualfs.schemas.file import (
    HASH_MD5,
    SUPPORTED_HASHES,
    DirEntry,
    FileInfo,
    FileRecord,
    ReconcileAction,
    ReconcileResult,
)

__all__ = [
    "HASH_MD5",
    "SUPPORTED_HASHES",
    "DirEntry",
    "FileInfo",
    "FileRecord",
    "ReconcileAction",
    "ReconcileResult",
]
