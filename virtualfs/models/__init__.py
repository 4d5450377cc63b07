"""SQLAlchemy ORM models for VirtualFS."""

from virtualfs.models.base import Base
from virtualfs.models.file import FileMetadata

__all__ = [
    "Base",
    "FileMetadata",
]
