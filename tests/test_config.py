"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from extmgr.config import CONFIG_FILENAME, load_config
from extmgr.extension import ExtensionRepositoryId


class TestLoadConfig:
    def test_defaults(self, tmp_path: Path) -> None:
        config = load_config(home=tmp_path, environ={})

        assert config.home == tmp_path.resolve()
        assert config.repositories is None
        assert config.log_level == "INFO"
        assert config.local_repository_dir == tmp_path.resolve() / "local"
        assert config.installed_registry_path == tmp_path.resolve() / "installed.json"
        assert config.events_path == tmp_path.resolve() / "events.jsonl"

    def test_home_from_environment(self, tmp_path: Path) -> None:
        config = load_config(environ={"EXTMGR_HOME": str(tmp_path)})

        assert config.home == tmp_path.resolve()

    def test_explicit_home_wins_over_environment(self, tmp_path: Path) -> None:
        config = load_config(home=tmp_path / "cli", environ={"EXTMGR_HOME": str(tmp_path / "env")})

        assert config.home == (tmp_path / "cli").resolve()

    def test_file_in_home_is_read(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(
            """
[[repositories]]
id = "internal"
uri = "https://repo.example.org/maven"

[logging]
level = "debug"
""",
            encoding="utf-8",
        )

        config = load_config(home=tmp_path, environ={})

        assert config.repositories == (
            ExtensionRepositoryId(id="internal", type="maven", uri="https://repo.example.org/maven"),
        )
        assert config.log_level == "DEBUG"

    def test_relative_home_in_file(self, tmp_path: Path) -> None:
        path = tmp_path / "conf" / "extmgr.toml"
        path.parent.mkdir()
        path.write_text('home = "../data"\n', encoding="utf-8")

        config = load_config(path, environ={})

        assert config.home == (tmp_path / "data").resolve()

    def test_log_level_from_environment(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text('[logging]\nlevel = "DEBUG"\n', encoding="utf-8")

        config = load_config(home=tmp_path, environ={"EXTMGR_LOG_LEVEL": "warning"})

        assert config.log_level == "WARNING"

    def test_invalid_log_level(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="log level"):
            load_config(home=tmp_path, environ={"EXTMGR_LOG_LEVEL": "chatty"})

    def test_repository_without_uri(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text('[[repositories]]\nid = "broken"\n', encoding="utf-8")

        with pytest.raises(ValueError, match="id and a uri"):
            load_config(home=tmp_path, environ={})

    def test_empty_repository_list(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("repositories = []\n", encoding="utf-8")

        config = load_config(home=tmp_path, environ={})

        assert config.repositories == ()
