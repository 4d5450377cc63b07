"""Cache configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """VirtualFS settings."""

    model_config = SettingsConfigDict(
        env_prefix="VIRTUALFS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # Storage
    root_directory: Path = Path("./virtualfs_data")
    database_filename: str = "virtualfs.db"

    # Content
    tombstone_suffix: str = ".delete"
    chunk_size: int = Field(default=64 * 1024, ge=1024)

    @field_validator("tombstone_suffix")
    @classmethod
    def _check_suffix(cls, value: str) -> str:
        if len(value) < 2 or not value.startswith(".") or "/" in value:
            raise ValueError("tombstone_suffix must look like '.delete'")
        return value

    @field_validator("database_filename")
    @classmethod
    def _check_database_filename(cls, value: str) -> str:
        if not value or "/" in value or value.startswith("."):
            raise ValueError("database_filename must be a plain file name")
        return value

    @property
    def database_path(self) -> Path:
        return self.root_directory / self.database_filename

    @property
    def database_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.database_path}"
