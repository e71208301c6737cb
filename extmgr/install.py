"""
Install executor: applies an install plan.

Orchestrates: generate plan -> check plan log -> store phase -> apply phase

Key invariants:
- Actions are processed strictly in plan order, in both phases
- Every action is stored before any action is applied
- Every progress level pushed is popped, whatever the exit path
- Failing to unregister the previous version of an upgraded extension
  is logged and skipped; every other failure aborts the run
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .errors import (
    InstallCancelledError,
    InstallError,
    PlanGenerationError,
    UninstallError,
    UnsupportedActionError,
)
from .events import EventSink, ExtensionInstalledEvent, ExtensionUpgradedEvent
from .extension import Extension, InstalledExtension, LocalExtension, Namespace
from .handler import ExtensionHandlerManager
from .plan import InstallRequest, LogLevel, Plan, PlanAction, PlanActionKind
from .progress import ProgressStack
from .repository import InstalledExtensionRepository, LocalExtensionRepository

logger = logging.getLogger(__name__)

_STORED_KINDS = frozenset({PlanActionKind.INSTALL, PlanActionKind.UPGRADE})


class PlanGenerator(Protocol):
    """Computes the install plan for a request (dependency resolution lives there)."""

    def generate_plan(self, request: InstallRequest) -> Plan:
        ...


class StaticPlanGenerator:
    """Plan generator returning a plan computed beforehand."""

    def __init__(self, plan: Plan):
        self.plan = plan
        self.requests: list[InstallRequest] = []

    def generate_plan(self, request: InstallRequest) -> Plan:
        self.requests.append(request)
        return self.plan


@dataclass
class InstallResult:
    """Outcome of InstallExecutor.execute()."""

    success: bool
    error: str | None = None
    cause: BaseException | None = None


class InstallExecutor:
    """
    Applies install plans against the local and installed repositories.

    Collaborators are passed in explicitly. One executor instance runs one
    request at a time; independent requests can use independent executors.
    """

    JOBTYPE = "install"

    def __init__(
        self,
        plan_generator: PlanGenerator,
        local_repository: LocalExtensionRepository,
        installed_repository: InstalledExtensionRepository,
        handler_manager: ExtensionHandlerManager,
        observation_manager: EventSink,
        *,
        progress: ProgressStack | None = None,
    ):
        self.plan_generator = plan_generator
        self.local_repository = local_repository
        self.installed_repository = installed_repository
        self.handler_manager = handler_manager
        self.observation_manager = observation_manager
        self.progress = progress or ProgressStack()
        self._cancelled = False
        self._request: InstallRequest | None = None

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def cancel(self) -> None:
        """Ask the current run to stop before its next action."""
        self._cancelled = True

    def execute(self, request: InstallRequest) -> InstallResult:
        """
        Run the install and report the outcome instead of raising.

        Returns:
            InstallResult; on failure `error` is the message of the fatal
            error and `cause` the exception itself (with its chain).
        """
        try:
            self.run(request)
        except InstallError as e:
            logger.error("Install failed: %s", e, exc_info=e)
            return InstallResult(success=False, error=str(e), cause=e)
        return InstallResult(success=True)

    def run(self, request: InstallRequest) -> None:
        """
        Run the install.

        Raises:
            InstallError: any fatal failure (plan, store, resolve, handler,
                unsupported action, registry, cancellation)
        """
        self._cancelled = False
        self._request = request
        try:
            with self.progress.level(3):
                plan = self._generate_plan(request)

                self.progress.step()

                actions = plan.actions

                # Download all extensions
                with self.progress.level(len(actions)):
                    for action in actions:
                        self._check_cancelled()
                        self._store(action)
                        self.progress.step()

                self.progress.step()

                # Install all extensions
                with self.progress.level(len(actions)):
                    for action in actions:
                        self._check_cancelled()
                        if action.kind != PlanActionKind.NONE:
                            self._apply_action(action)
                        self.progress.step()
        finally:
            self._request = None

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _generate_plan(self, request: InstallRequest) -> Plan:
        # The plan computation must not be tracked under this run's id
        plan_request = request.copy(id=None)

        plan = self.plan_generator.generate_plan(plan_request)

        errors = plan.log.entries(LogLevel.ERROR)
        if errors:
            first = errors[0]
            error = PlanGenerationError(f"Failed to create install plan: {first.formatted_message}")
            if first.cause is not None:
                raise error from first.cause
            raise error

        return plan

    def _check_cancelled(self) -> None:
        if self._cancelled:
            raise InstallCancelledError("Install cancelled")

    def _store(self, action: PlanAction) -> None:
        if action.kind in _STORED_KINDS:
            self._store_extension(action.extension)

    def _store_extension(self, extension: Extension) -> None:
        if not isinstance(extension, LocalExtension):
            self.local_repository.store_extension(extension)

    def _apply_action(self, action: PlanAction) -> None:
        if action.kind not in _STORED_KINDS:
            raise UnsupportedActionError(f"Unsupported action [{action.kind.value}]")

        namespace = action.namespace

        with self.progress.level(2):
            local_extension = self.local_repository.resolve(action.extension.id)

            if namespace is not None:
                logger.info("Installing extension [%s] on namespace [%s]", local_extension, namespace)
            else:
                logger.info("Installing extension [%s]", local_extension)

            self.progress.step()

            self._install_extension(local_extension, action.previous_extension, namespace, action.dependency)

            if namespace is not None:
                logger.info("Successfully installed extension [%s] on namespace [%s]", local_extension, namespace)
            else:
                logger.info("Successfully installed extension [%s]", local_extension)

    def _install_extension(
        self,
        extension: LocalExtension,
        previous_extension: InstalledExtension | None,
        namespace: Namespace,
        dependency: bool,
    ) -> None:
        if previous_extension is None:
            self.handler_manager.install(extension, namespace, self._request)

            installed_extension = self.installed_repository.install_extension(extension, namespace, dependency)

            self.observation_manager.notify(
                ExtensionInstalledEvent(extension.id, namespace), self, installed_extension
            )
        else:
            self.handler_manager.upgrade(previous_extension, extension, namespace, self._request)

            try:
                self.installed_repository.uninstall_extension(previous_extension, namespace)
            except UninstallError as e:
                logger.error("Failed to uninstall extension [%s]", previous_extension, exc_info=e)

            # Not guarded: a failure here leaves the previous version unregistered
            installed_extension = self.installed_repository.install_extension(extension, namespace, dependency)

            self.observation_manager.notify(
                ExtensionUpgradedEvent(extension.id, namespace),
                self,
                (installed_extension, previous_extension),
            )
