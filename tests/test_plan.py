"""Tests for the plan model and plan files."""

from __future__ import annotations

from pathlib import Path

import pytest

from extmgr.extension import Extension, ExtensionId, InstalledExtension, LocalExtension
from extmgr.plan import (
    InstallRequest,
    InvalidPlanActionError,
    LogEntry,
    LogLevel,
    Plan,
    PlanAction,
    PlanActionKind,
    PlanLog,
    load_plan,
)


def _ext(coordinate: str = "a", version: str = "1.0") -> Extension:
    return Extension(id=ExtensionId(coordinate, version), type="file")


def _installed(coordinate: str = "a", version: str = "1.0") -> InstalledExtension:
    return InstalledExtension.from_local(
        LocalExtension.from_extension(_ext(coordinate, version)), namespace=None, dependency=False, installed_at=""
    )


class TestPlanAction:
    def test_upgrade_requires_previous(self) -> None:
        with pytest.raises(InvalidPlanActionError):
            PlanAction(kind=PlanActionKind.UPGRADE, extension=_ext("a", "2.0"))

    def test_install_rejects_previous(self) -> None:
        with pytest.raises(InvalidPlanActionError):
            PlanAction(kind=PlanActionKind.INSTALL, extension=_ext(), previous_extension=_installed())

    def test_valid_actions(self) -> None:
        PlanAction(kind=PlanActionKind.INSTALL, extension=_ext())
        PlanAction(kind=PlanActionKind.UPGRADE, extension=_ext("a", "2.0"), previous_extension=_installed())
        PlanAction(kind=PlanActionKind.NONE, extension=_ext())


class TestPlanLog:
    def test_formatted_message_substitutes_in_order(self) -> None:
        entry = LogEntry(LogLevel.ERROR, "Cannot install [{}] on [{}]", ("a/1.0", "wiki1"))

        assert entry.formatted_message == "Cannot install [a/1.0] on [wiki1]"

    def test_formatted_message_without_args(self) -> None:
        assert LogEntry(LogLevel.INFO, "Literal {} kept").formatted_message == "Literal {} kept"

    def test_missing_args_keep_placeholder(self) -> None:
        entry = LogEntry(LogLevel.INFO, "{} and {}", ("x",))

        assert entry.formatted_message == "x and {}"

    def test_entries_by_level(self) -> None:
        log = PlanLog()
        log.info("one")
        log.error("two")
        log.warning("three")
        log.error("four")

        assert len(log) == 4
        assert [e.message for e in log.entries(LogLevel.ERROR)] == ["two", "four"]
        assert [e.message for e in log] == ["one", "two", "three", "four"]


class TestPlan:
    def test_summary(self) -> None:
        plan = Plan(
            actions=(
                PlanAction(kind=PlanActionKind.INSTALL, extension=_ext("b"), namespace="wiki1", dependency=True),
                PlanAction(kind=PlanActionKind.UPGRADE, extension=_ext("a", "2.0"), previous_extension=_installed()),
            )
        )
        summary = plan.summary()

        assert summary.splitlines()[0] == "Install Plan (2 actions)"
        assert "b/1.0 on wiki1 [dependency]" in summary
        assert "a/2.0 (from 1.0)" in summary

    def test_request_copy_clears_id(self) -> None:
        request = InstallRequest(id=("install", "x"), extensions=(ExtensionId("a", "1.0"),), properties={"k": "v"})
        copy = request.copy(id=None)

        assert copy.id is None
        assert copy.extensions == request.extensions
        assert copy.properties == {"k": "v"}
        assert request.id == ("install", "x")


class TestLoadPlan:
    def _write(self, tmp_path: Path, text: str) -> Path:
        path = tmp_path / "plan.toml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_load_actions(self, tmp_path: Path) -> None:
        path = self._write(
            tmp_path,
            """
[[actions]]
kind = "install"
namespace = "wiki1"
dependency = true

[actions.extension]
id = "org.example:lib"
version = "1.0"
type = "file"
name = "Lib"
features = ["org.example:old-lib"]
artifact = "artifacts/lib.jar"

[[actions]]
kind = "upgrade"

[actions.extension]
id = "org.example:app"
version = "2.0"
type = "file"

[actions.previous]
id = "org.example:app"
version = "1.0"
type = "file"

[[actions]]
kind = "none"

[actions.extension]
id = "org.example:other"
version = "3.0"
type = "file"
""",
        )

        plan = load_plan(path)

        assert [a.kind for a in plan.actions] == [
            PlanActionKind.INSTALL,
            PlanActionKind.UPGRADE,
            PlanActionKind.NONE,
        ]
        lib = plan.actions[0]
        assert lib.extension.id == ExtensionId("org.example:lib", "1.0")
        assert lib.extension.features == ("org.example:old-lib",)
        assert lib.extension.artifact == tmp_path / "artifacts" / "lib.jar"
        assert lib.namespace == "wiki1"
        assert lib.dependency is True

        upgrade = plan.actions[1]
        assert isinstance(upgrade.previous_extension, InstalledExtension)
        assert upgrade.previous_extension.id == ExtensionId("org.example:app", "1.0")
        assert upgrade.previous_extension.namespace is None

    def test_load_log(self, tmp_path: Path) -> None:
        path = self._write(
            tmp_path,
            """
[[log]]
level = "warning"
message = "deprecated"

[[log]]
level = "error"
message = "Dependency not found"
""",
        )

        plan = load_plan(path)

        assert plan.actions == ()
        assert [e.level for e in plan.log] == [LogLevel.WARNING, LogLevel.ERROR]

    def test_upgrade_without_previous_is_invalid(self, tmp_path: Path) -> None:
        path = self._write(
            tmp_path,
            """
[[actions]]
kind = "upgrade"

[actions.extension]
id = "a"
version = "2.0"
type = "file"
""",
        )

        with pytest.raises(InvalidPlanActionError):
            load_plan(path)

    def test_unknown_kind(self, tmp_path: Path) -> None:
        path = self._write(
            tmp_path,
            """
[[actions]]
kind = "reinstall"

[actions.extension]
id = "a"
version = "1.0"
""",
        )

        with pytest.raises(ValueError):
            load_plan(path)
