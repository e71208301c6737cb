"""
Extension manager configuration.

Settings come from, in order of precedence:
- explicit arguments (e.g. the CLI --home option)
- environment variables (EXTMGR_HOME, EXTMGR_LOG_LEVEL)
- the TOML file <home>/extmgr.toml (or an explicit path)
- built-in defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from .extension import ExtensionRepositoryId

ENV_HOME = "EXTMGR_HOME"
ENV_LOG_LEVEL = "EXTMGR_LOG_LEVEL"
CONFIG_FILENAME = "extmgr.toml"
DEFAULT_HOME = Path("~/.extmgr")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class ExtensionManagerConfig:
    home: Path
    repositories: tuple[ExtensionRepositoryId, ...] | None = None  # None: use defaults
    log_level: str = "INFO"

    @property
    def local_repository_dir(self) -> Path:
        return self.home / "local"

    @property
    def installed_registry_path(self) -> Path:
        return self.home / "installed.json"

    @property
    def install_dir(self) -> Path:
        return self.home / "installed"

    @property
    def events_path(self) -> Path:
        return self.home / "events.jsonl"


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _parse_repositories(raw: Any) -> tuple[ExtensionRepositoryId, ...] | None:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ValueError("repositories must be an array of tables")

    repositories: list[ExtensionRepositoryId] = []
    for entry in raw:
        entry = _coerce_dict(entry)
        repo_id = str(entry.get("id", "")).strip()
        uri = str(entry.get("uri", "")).strip()
        if not repo_id or not uri:
            raise ValueError("each repository needs an id and a uri")
        repo_type = str(entry.get("type", "maven")).strip() or "maven"
        repositories.append(ExtensionRepositoryId(id=repo_id, type=repo_type, uri=uri))
    return tuple(repositories)


def _normalize_level(value: Any) -> str:
    level = str(value).strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
    return level


def load_config(
    path: Path | None = None,
    *,
    home: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ExtensionManagerConfig:
    """
    Build the configuration.

    Raises:
        ValueError: the configuration file is malformed
    """
    import tomllib

    env = os.environ if environ is None else environ

    base_home = home or (Path(env[ENV_HOME]) if env.get(ENV_HOME) else None)

    config_path = path
    if config_path is None:
        candidate = (base_home or DEFAULT_HOME).expanduser() / CONFIG_FILENAME
        config_path = candidate if candidate.exists() else None

    data: dict[str, Any] = {}
    if config_path is not None:
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))

    if base_home is None and isinstance(data.get("home"), str) and data["home"].strip():
        file_home = Path(data["home"].strip()).expanduser()
        if not file_home.is_absolute() and config_path is not None:
            file_home = config_path.parent / file_home
        base_home = file_home

    logging_section = _coerce_dict(data.get("logging"))
    level = env.get(ENV_LOG_LEVEL) or logging_section.get("level") or "INFO"

    return ExtensionManagerConfig(
        home=(base_home or DEFAULT_HOME).expanduser().resolve(),
        repositories=_parse_repositories(data.get("repositories")),
        log_level=_normalize_level(level),
    )
