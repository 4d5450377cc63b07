"""Content tree under the root directory: hashed writes, removal, markers."""

from __future__ import annotations

import errno
import hashlib
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import IO, TYPE_CHECKING

from virtualfs.exceptions import InvalidPathError

if TYPE_CHECKING:
    from typing import BinaryIO

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


def hash_file(file_path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Compute the MD5 hex digest of a file."""
    md5 = hashlib.md5()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            md5.update(chunk)
    return md5.hexdigest()


@dataclass(frozen=True)
class WrittenContent:
    """Size and digest of bytes that reached the content file."""

    size: int
    md5: str


@dataclass
class ContentStore:
    """Reads and writes content files below root_dir."""

    root_dir: Path
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def full_path(self, rel_path: str) -> Path:
        """Map a logical path to its location under root_dir.

        Raises InvalidPathError if the resolved path escapes root_dir.
        """
        root = self.root_dir.resolve()
        full_path = (root / rel_path).resolve()
        if full_path == root or not full_path.is_relative_to(root):
            raise InvalidPathError(f"Path traversal detected: {rel_path}")
        return full_path

    def write_stream(self, rel_path: str, stream: BinaryIO | IO[bytes]) -> WrittenContent:
        """Copy stream into the content file, hashing the bytes as they are written.

        Bytes go to a temporary file next to the target, which replaces the
        target only once the stream is exhausted. On any failure the
        temporary file is removed and the previous content is untouched.
        """
        full_path = self.full_path(rel_path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        md5 = hashlib.md5()
        size = 0
        fd, tmp_name = tempfile.mkstemp(
            dir=full_path.parent, prefix=f".{full_path.name}.", suffix=".partial"
        )
        try:
            with os.fdopen(fd, "wb") as out:
                for chunk in iter(lambda: stream.read(self.chunk_size), b""):
                    md5.update(chunk)
                    out.write(chunk)
                    size += len(chunk)
            os.replace(tmp_name, full_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return WrittenContent(size=size, md5=md5.hexdigest())

    def open(self, rel_path: str) -> BinaryIO:
        """Open a content file for reading."""
        return open(self.full_path(rel_path), "rb")

    def exists(self, rel_path: str) -> bool:
        return self.full_path(rel_path).is_file()

    def remove(self, rel_path: str) -> bool:
        """Delete a content file. Returns True if it existed."""
        full_path = self.full_path(rel_path)
        try:
            full_path.unlink()
        except FileNotFoundError:
            return False
        return True

    def touch(self, rel_path: str) -> Path:
        """Create (or truncate to) an empty file, creating parents first."""
        full_path = self.full_path(rel_path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_bytes(b"")
        return full_path

    def make_dir(self, rel_path: str) -> None:
        self.full_path(rel_path).mkdir(parents=True, exist_ok=True)

    def remove_dir_if_empty(self, rel_path: str) -> bool:
        """Remove an on-disk directory if nothing is left in it.

        Returns False if the directory is missing or still holds files
        (typically tombstone markers or content not yet consumed).
        """
        full_path = self.full_path(rel_path)
        try:
            full_path.rmdir()
        except FileNotFoundError:
            return False
        except OSError as exc:
            if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
                logger.debug("Keeping non-empty content directory %s", full_path)
                return False
            raise
        return True
