"""File metadata model."""

from __future__ import annotations

from sqlalchemy import Boolean, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from virtualfs.models.base import Base


class FileMetadata(Base):
    """Last-known state of one logical path.

    Rows outlive the content files they describe: an external consumer may
    delete the content at any time and the row still answers "was this seen".
    """

    __tablename__ = "files"

    path: Mapped[str] = mapped_column(Text, primary_key=True)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mod_time: Mapped[str] = mapped_column(Text, nullable=False)
    has_hash: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hash: Mapped[str] = mapped_column(Text, nullable=False, default="")
    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_dir: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (Index("idx_files_deleted", "deleted"),)
