"""Tests for cache configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from virtualfs.config import Settings


class TestSettings:
    def test_default_settings(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.root_directory == Path("./virtualfs_data")
        assert s.database_filename == "virtualfs.db"
        assert s.tombstone_suffix == ".delete"
        assert s.debug is False

    def test_database_lives_in_root(self, tmp_path: Path) -> None:
        s = Settings(_env_file=None, root_directory=tmp_path)  # type: ignore[call-arg]
        assert s.database_path == tmp_path / "virtualfs.db"
        assert s.database_url == f"sqlite+aiosqlite:///{tmp_path / 'virtualfs.db'}"

    def test_env_prefix(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VIRTUALFS_ROOT_DIRECTORY", str(tmp_path / "env-root"))
        monkeypatch.setenv("VIRTUALFS_TOMBSTONE_SUFFIX", ".gone")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.root_directory == tmp_path / "env-root"
        assert s.tombstone_suffix == ".gone"

    def test_settings_from_fixture(self, test_settings: Settings, tmp_root: Path) -> None:
        assert test_settings.root_directory == tmp_root

    @pytest.mark.parametrize("suffix", ["", ".", "delete", ".a/b"])
    def test_rejects_bad_tombstone_suffix(self, suffix: str) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, tombstone_suffix=suffix)  # type: ignore[call-arg]

    @pytest.mark.parametrize("name", ["", "sub/db.sqlite", ".hidden.db"])
    def test_rejects_bad_database_filename(self, name: str) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, database_filename=name)  # type: ignore[call-arg]

    def test_rejects_tiny_chunk_size(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, chunk_size=10)  # type: ignore[call-arg]
