"""
Install plan and request model.

A plan is an ordered sequence of actions produced upstream (dependency
resolution is not done here) plus a leveled log. Action order is
authoritative: the planner guarantees dependency-first ordering.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any, Iterator

from .extension import Extension, ExtensionId, InstalledExtension, Namespace


class PlanActionKind(str, Enum):
    INSTALL = "install"
    UPGRADE = "upgrade"
    UNINSTALL = "uninstall"
    NONE = "none"


class InvalidPlanActionError(ValueError):
    """A plan action violates the install/upgrade previous-extension invariant."""


@dataclass(frozen=True)
class PlanAction:
    """One step of a plan."""

    kind: PlanActionKind
    extension: Extension
    previous_extension: InstalledExtension | None = None
    namespace: Namespace = None
    dependency: bool = False

    def __post_init__(self) -> None:
        if self.kind == PlanActionKind.UPGRADE and self.previous_extension is None:
            raise InvalidPlanActionError(f"Upgrade of [{self.extension}] has no previous extension")
        if self.kind == PlanActionKind.INSTALL and self.previous_extension is not None:
            raise InvalidPlanActionError(
                f"Install of [{self.extension}] carries previous extension [{self.previous_extension}]"
            )


class LogLevel(IntEnum):
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


@dataclass(frozen=True)
class LogEntry:
    """A log entry recorded while a plan was computed."""

    level: LogLevel
    message: str
    args: tuple[Any, ...] = ()
    cause: BaseException | None = None

    @property
    def formatted_message(self) -> str:
        """Message with `{}` placeholders replaced by args, in order."""
        parts = self.message.split("{}")
        if len(parts) == 1 or not self.args:
            return self.message
        out = [parts[0]]
        for i, part in enumerate(parts[1:]):
            out.append(str(self.args[i]) if i < len(self.args) else "{}")
            out.append(part)
        return "".join(out)


@dataclass
class PlanLog:
    """Ordered, leveled log attached to a plan."""

    _entries: list[LogEntry] = field(default_factory=list)

    def log(self, level: LogLevel, message: str, *args: Any, cause: BaseException | None = None) -> None:
        self._entries.append(LogEntry(level=level, message=message, args=args, cause=cause))

    def info(self, message: str, *args: Any) -> None:
        self.log(LogLevel.INFO, message, *args)

    def warning(self, message: str, *args: Any) -> None:
        self.log(LogLevel.WARNING, message, *args)

    def error(self, message: str, *args: Any, cause: BaseException | None = None) -> None:
        self.log(LogLevel.ERROR, message, *args, cause=cause)

    def entries(self, level: LogLevel | None = None) -> list[LogEntry]:
        """Entries at exactly `level` (all entries when None), in order."""
        if level is None:
            return list(self._entries)
        return [e for e in self._entries if e.level == level]

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class Plan:
    actions: tuple[PlanAction, ...] = ()
    log: PlanLog = field(default_factory=PlanLog)

    def summary(self) -> str:
        lines = [f"Install Plan ({len(self.actions)} actions)"]
        for action in self.actions:
            line = f"  {action.kind.value:<9} {action.extension}"
            if action.previous_extension is not None:
                line += f" (from {action.previous_extension.id.version})"
            if action.namespace is not None:
                line += f" on {action.namespace}"
            if action.dependency:
                line += " [dependency]"
            lines.append(line)
        errors = self.log.entries(LogLevel.ERROR)
        if errors:
            lines.append(f"  Errors: {len(errors)}")
        return "\n".join(lines)


@dataclass(frozen=True)
class InstallRequest:
    """What the caller asked to install."""

    id: tuple[str, ...] | None = None  # tracking identifier of the run
    extensions: tuple[ExtensionId, ...] = ()
    namespaces: tuple[str, ...] | None = None
    properties: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def copy(self, **changes: Any) -> InstallRequest:
        return replace(self, **changes)


# -----------------------------------------------------------------------------
# Plan files
# -----------------------------------------------------------------------------


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _extension_from_table(raw: dict[str, Any], base_dir: Path) -> dict[str, Any]:
    data = dict(raw)
    if "id" in data and isinstance(data["id"], str):
        data["id"] = {"id": data["id"], "version": str(data.pop("version", ""))}
    artifact = data.get("artifact")
    if isinstance(artifact, str) and artifact:
        path = Path(artifact)
        data["artifact"] = str(path if path.is_absolute() else base_dir / path)
    return data


def load_plan(path: Path) -> Plan:
    """
    Load a plan from TOML.

    Each `[[actions]]` table carries `kind`, optional `namespace` and
    `dependency`, an `extension` table and, for upgrades, a `previous` table.
    Top-level `[[log]]` tables (`level`, `message`) are copied to the plan log.
    """
    import tomllib

    data = tomllib.loads(path.read_text(encoding="utf-8"))
    base_dir = path.parent

    actions: list[PlanAction] = []
    for raw in data.get("actions", []):
        if not isinstance(raw, dict):
            continue

        kind = PlanActionKind(str(raw.get("kind", "install")).strip().lower())
        namespace = raw.get("namespace")
        namespace_str = str(namespace) if isinstance(namespace, str) and namespace else None

        extension = Extension.from_dict(_extension_from_table(_coerce_dict(raw.get("extension")), base_dir))

        previous = None
        previous_raw = _coerce_dict(raw.get("previous"))
        if previous_raw:
            previous_data = _extension_from_table(previous_raw, base_dir)
            previous_data.setdefault("namespace", namespace_str)
            previous = InstalledExtension.from_dict(previous_data)

        actions.append(
            PlanAction(
                kind=kind,
                extension=extension,
                previous_extension=previous,
                namespace=namespace_str,
                dependency=bool(raw.get("dependency", False)),
            )
        )

    log = PlanLog()
    for raw in data.get("log", []):
        if not isinstance(raw, dict):
            continue
        level = LogLevel[str(raw.get("level", "info")).strip().upper()]
        log.log(level, str(raw.get("message", "")))

    return Plan(actions=tuple(actions), log=log)
