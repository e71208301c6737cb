"""Install command: apply a plan file."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..config import ExtensionManagerConfig
from ..errors import ExtensionError
from ..events import EventLedger, ExtensionUninstalledEvent, ObservationManager
from ..handler import ExtensionHandlerManager, FileExtensionHandler
from ..install import InstallExecutor, StaticPlanGenerator
from ..plan import InstallRequest, Plan, PlanActionKind, load_plan
from ..repository import InstalledExtensionRepository, LocalExtensionRepository


def build_observation_manager(config: ExtensionManagerConfig) -> ObservationManager:
    """Event dispatch recording every event in the ledger of `config`."""
    observation_manager = ObservationManager()
    observation_manager.add_listener(EventLedger(config.events_path).on_event)
    return observation_manager


def build_executor(config: ExtensionManagerConfig, plan: Plan) -> InstallExecutor:
    """Wire an executor over the repositories and handlers of `config`."""
    observation_manager = build_observation_manager(config)

    return InstallExecutor(
        StaticPlanGenerator(plan),
        LocalExtensionRepository(config.local_repository_dir),
        InstalledExtensionRepository(config.installed_registry_path),
        ExtensionHandlerManager([FileExtensionHandler(config.install_dir)]),
        observation_manager,
    )


def run_install(config: ExtensionManagerConfig, plan_path: Path, *, dry_run: bool = False) -> int:
    console = Console()
    err = Console(stderr=True)

    try:
        plan = load_plan(plan_path)
    except (OSError, ValueError, KeyError, TypeError) as e:
        err.print(f"Invalid plan file {plan_path}: {e}", style="bold red", markup=False)
        return 2

    console.print(plan.summary(), style="dim", markup=False)

    if dry_run:
        console.print("\n[bold]DRY RUN[/bold] - No execution", style="yellow")
        return 0

    request = InstallRequest(
        id=("install", plan_path.stem),
        extensions=tuple(a.extension.id for a in plan.actions if a.kind != PlanActionKind.NONE),
    )
    result = build_executor(config, plan).execute(request)

    if not result.success:
        err.print(f"Install failed: {result.error}", style="bold red", markup=False)
        cause = result.cause.__cause__ if result.cause is not None else None
        while cause is not None:
            err.print(f"  caused by {type(cause).__name__}: {cause}", style="red", markup=False)
            cause = cause.__cause__
        return 1

    console.print("install complete.", style="green")
    return 0


def run_uninstall(
    config: ExtensionManagerConfig,
    coordinate: str,
    *,
    namespace: str | None = None,
    observation_manager: ObservationManager | None = None,
) -> int:
    err = Console(stderr=True)
    console = Console()

    registry = InstalledExtensionRepository(config.installed_registry_path)
    installed = registry.get_installed_extension(coordinate, namespace)
    if installed is None:
        where = f"namespace [{namespace}]" if namespace is not None else "root namespace"
        err.print(f"Extension [{coordinate}] is not installed on {where}", style="bold red", markup=False)
        return 1

    handlers = ExtensionHandlerManager([FileExtensionHandler(config.install_dir)])
    try:
        handlers.uninstall(installed, namespace, None)
        registry.uninstall_extension(installed, namespace)
    except ExtensionError as e:
        err.print(f"Uninstall failed: {e}", style="bold red", markup=False)
        return 1

    if observation_manager is None:
        observation_manager = build_observation_manager(config)
    observation_manager.notify(ExtensionUninstalledEvent(installed.id, namespace), None, installed)
    console.print(f"uninstalled {installed}.", style="green", markup=False)
    return 0
