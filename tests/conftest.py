"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from extmgr.config import ExtensionManagerConfig
from extmgr.errors import RegistryError, ResolveError, StoreError, UninstallError
from extmgr.events import ExtensionEvent, ObservationManager
from extmgr.extension import Extension, ExtensionId, InstalledExtension, LocalExtension, Namespace
from extmgr.handler import ExtensionHandler, ExtensionHandlerManager, HandlerMetadata
from extmgr.install import InstallExecutor, StaticPlanGenerator
from extmgr.plan import InstallRequest, Plan
from extmgr.progress import ProgressEvent, ProgressStack
from extmgr.repository import InstalledExtensionRepository


# -----------------------------------------------------------------------------
# Recording collaborators
# -----------------------------------------------------------------------------
#
# Every fake appends a tuple to a shared `calls` list so tests can assert the
# exact interleaving of store, resolve, handler, registry and event calls.


class RecordingLocalRepository:
    """In-memory local repository."""

    def __init__(self, calls: list[tuple[Any, ...]]):
        self.calls = calls
        self.stored: dict[ExtensionId, LocalExtension] = {}
        self.fail_store: set[str] = set()  # coordinates

    def store_extension(self, extension: Extension) -> LocalExtension:
        self.calls.append(("store", str(extension.id)))
        if extension.id.id in self.fail_store:
            raise StoreError(f"Failed to store extension [{extension}]")
        local = LocalExtension.from_extension(extension)
        self.stored[extension.id] = local
        return local

    def resolve(self, extension_id: ExtensionId) -> LocalExtension:
        self.calls.append(("resolve", str(extension_id)))
        try:
            return self.stored[extension_id]
        except KeyError as e:
            raise ResolveError(f"Can't find extension [{extension_id}] in local repository") from e


class RecordingInstalledRepository(InstalledExtensionRepository):
    """In-memory registry recording install/uninstall calls."""

    def __init__(self, calls: list[tuple[Any, ...]]):
        super().__init__()
        self.calls = calls
        self.fail_install: set[str] = set()  # coordinates
        self.fail_uninstall = False

    def install_extension(self, extension: LocalExtension, namespace: Namespace, dependency: bool) -> InstalledExtension:
        self.calls.append(("register", str(extension.id), namespace))
        if extension.id.id in self.fail_install:
            raise RegistryError(f"Failed to register extension [{extension}]")
        return super().install_extension(extension, namespace, dependency)

    def uninstall_extension(self, installed: InstalledExtension, namespace: Namespace) -> None:
        self.calls.append(("unregister", str(installed.id), namespace))
        if self.fail_uninstall:
            raise UninstallError(f"Failed to unregister extension [{installed}]")
        super().uninstall_extension(installed, namespace)


class RecordingHandler(ExtensionHandler):
    """Handler that records calls and fails on demand."""

    def __init__(self, calls: list[tuple[Any, ...]], extension_type: str = "test"):
        self.calls = calls
        self._type = extension_type
        self.fail_on: set[str] = set()  # coordinates
        self.fail_with: Exception | None = None
        self.requests: list[InstallRequest | None] = []

    @property
    def metadata(self) -> HandlerMetadata:
        return HandlerMetadata(type=self._type, description="Recording handler")

    def _maybe_fail(self, extension: Extension) -> None:
        if extension.id.id in self.fail_on:
            if self.fail_with is not None:
                raise self.fail_with
            raise RuntimeError(f"boom {extension.id}")

    def install(self, extension: LocalExtension, namespace: Namespace, request: InstallRequest | None) -> None:
        self.calls.append(("handler.install", str(extension.id), namespace))
        self.requests.append(request)
        self._maybe_fail(extension)

    def uninstall(self, installed: InstalledExtension, namespace: Namespace, request: InstallRequest | None) -> None:
        self.calls.append(("handler.uninstall", str(installed.id), namespace))
        self.requests.append(request)

    def upgrade(
        self,
        previous: InstalledExtension,
        extension: LocalExtension,
        namespace: Namespace,
        request: InstallRequest | None,
    ) -> None:
        self.calls.append(("handler.upgrade", str(previous.id), str(extension.id), namespace))
        self.requests.append(request)
        self._maybe_fail(extension)


class ExecutorEnv:
    """An executor's collaborators, sharing one call log."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.local = RecordingLocalRepository(self.calls)
        self.installed = RecordingInstalledRepository(self.calls)
        self.handler = RecordingHandler(self.calls)
        self.handlers = ExtensionHandlerManager([self.handler])
        self.observation = ObservationManager()
        self.observation.add_listener(self._on_event)
        self.events: list[tuple[ExtensionEvent, Any, Any]] = []
        self.progress = ProgressStack()
        self.progress_events: list[ProgressEvent] = []
        self.progress.add_listener(self.progress_events.append)
        self.generator: StaticPlanGenerator | None = None

    def _on_event(self, event: ExtensionEvent, source: Any, data: Any) -> None:
        self.calls.append(("event", event.event_type, str(event.extension_id), event.namespace))
        self.events.append((event, source, data))

    def executor(self, plan: Plan) -> InstallExecutor:
        self.generator = StaticPlanGenerator(plan)
        return InstallExecutor(
            self.generator,
            self.local,
            self.installed,
            self.handlers,
            self.observation,
            progress=self.progress,
        )

    def pushes(self) -> int:
        return sum(1 for e in self.progress_events if e.kind == "push")

    def pops(self) -> int:
        return sum(1 for e in self.progress_events if e.kind == "pop")


@pytest.fixture
def env() -> ExecutorEnv:
    return ExecutorEnv()


@pytest.fixture
def config(tmp_path: Path) -> ExtensionManagerConfig:
    """Configuration rooted in a temporary home."""
    return ExtensionManagerConfig(home=tmp_path / "home")
