"""Shared test fixtures for VirtualFS."""

from __future__ import annotations

import hashlib
import io
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from virtualfs.config import Settings
from virtualfs.fs import VirtualFS
from virtualfs.schemas.file import HASH_MD5, FileInfo

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

    from virtualfs.schemas.file import ReconcileResult
    from virtualfs.services.metadata_store import MetadataStore

MOD_TIME = datetime(2024, 5, 17, 9, 30, 15, 123456, tzinfo=UTC)


def md5_hex(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def make_info(
    path: str,
    data: bytes,
    *,
    mod_time: datetime = MOD_TIME,
    with_hash: bool = True,
) -> FileInfo:
    """Describe data as an incoming file at path."""
    hashes = {HASH_MD5: md5_hex(data)} if with_hash else {}
    return FileInfo(path=path, size=len(data), mod_time=mod_time, hashes=hashes)


async def put_bytes(
    vfs: VirtualFS, path: str, data: bytes, *, mod_time: datetime = MOD_TIME
) -> ReconcileResult:
    """Reconcile data at path and return the ReconcileResult."""
    return await vfs.reconcile(make_info(path, data, mod_time=mod_time), io.BytesIO(data))


class ExplodingStream(io.RawIOBase):
    """A content stream that must never be read."""

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        raise AssertionError("content stream was read on a skip")


class FailingStream(io.RawIOBase):
    """Yields one chunk, then fails like a dropped connection."""

    def __init__(self, first_chunk: bytes) -> None:
        self._first_chunk: bytes | None = first_chunk

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        if self._first_chunk is not None:
            chunk, self._first_chunk = self._first_chunk, None
            return chunk
        raise ConnectionResetError("remote closed the stream")


@pytest.fixture
def tmp_root(tmp_path: Path) -> Path:
    """Root directory for content and metadata (created on open)."""
    return tmp_path / "virtualfs_data"


@pytest.fixture
def test_settings(tmp_root: Path) -> Settings:
    """Create test settings with a temporary root directory."""
    return Settings(_env_file=None, root_directory=tmp_root)  # type: ignore[call-arg]


@pytest.fixture
async def vfs(test_settings: Settings) -> AsyncGenerator[VirtualFS]:
    """An opened VirtualFS, closed after the test."""
    handle = await VirtualFS.open(test_settings)
    yield handle
    await handle.close()


@pytest.fixture
def store(vfs: VirtualFS) -> MetadataStore:
    return vfs.store
