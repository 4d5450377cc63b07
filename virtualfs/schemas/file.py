"""File and directory schemas exchanged with the sync driver."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from virtualfs.exceptions import UnsupportedDigestError

# The single digest algorithm the store computes and compares.
HASH_MD5 = "md5"
SUPPORTED_HASHES = frozenset({HASH_MD5})


class FileInfo(BaseModel):
    """A candidate incoming file as described by the remote source."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    size: int = Field(ge=0)
    mod_time: datetime
    hashes: dict[str, str] = Field(default_factory=dict)

    def digest(self, kind: str = HASH_MD5) -> str | None:
        """Return the candidate's digest of the given kind, or None if unknown."""
        value = self.hashes.get(kind)
        return value or None


class FileRecord(BaseModel):
    """Stored state of one path, as reported to readers."""

    model_config = ConfigDict(frozen=True)

    path: str
    stored_size: int = Field(ge=0)
    mod_time: datetime
    has_hash: bool = False
    hash_value: str = ""
    deleted: bool = False
    is_dir: bool = False

    @property
    def size(self) -> int:
        """Byte count; tombstones always report 0."""
        if self.deleted:
            return 0
        return self.stored_size

    def hash(self, kind: str = HASH_MD5) -> str:
        """Return the stored digest, or "" when none was computed."""
        if kind not in SUPPORTED_HASHES:
            raise UnsupportedDigestError(kind)
        if self.has_hash:
            return self.hash_value
        return ""


class DirEntry(BaseModel):
    """A directory entry in a listing."""

    model_config = ConfigDict(frozen=True)

    path: str
    mod_time: datetime


class ReconcileAction(StrEnum):
    """Outcome of reconciling one candidate file."""

    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"


class ReconcileResult(BaseModel):
    """Decision taken for one candidate and the record it produced."""

    model_config = ConfigDict(frozen=True)

    action: ReconcileAction
    record: FileRecord
