"""CLI entrypoint for extmgr."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import load_config


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, markup=False)],
        force=True,
    )


@click.group()
@click.version_option(__version__, prog_name="extmgr")
@click.option(
    "--home",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Extension manager home directory (defaults to $EXTMGR_HOME or ~/.extmgr)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (defaults to <home>/extmgr.toml)",
)
@click.option("--verbose", is_flag=True, help="Log debug messages")
@click.pass_context
def cli(ctx: click.Context, home: Path | None, config_path: Path | None, verbose: bool) -> None:
    """extmgr - Apply extension install plans and query extension repositories."""
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path, home=home)
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    _configure_logging("DEBUG" if verbose else config.log_level)
    ctx.obj["config"] = config


@cli.command()
@click.argument("pattern", default="")
@click.option("--offset", type=int, default=0, show_default=True, help="Index of the first match to show")
@click.option("--limit", type=int, default=-1, show_default=True, help="Max matches to show (negative: no cap)")
@click.option("--installed", is_flag=True, help="Search installed extensions instead of local storage")
@click.option("--namespace", "-n", type=str, default=None, help="Only this namespace (with --installed)")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def search(
    ctx: click.Context,
    pattern: str,
    offset: int,
    limit: int,
    installed: bool,
    namespace: str | None,
    output_json: bool,
) -> None:
    """Search extensions by regular expression.

    PATTERN is matched anywhere in the id, description, summary, name
    or features of each extension. An empty pattern lists everything.
    """
    from .commands.extensions_cmd import run_search

    exit_code = run_search(
        ctx.obj["config"],
        pattern,
        offset=offset,
        limit=limit,
        installed=installed,
        namespace=namespace,
        output_json=output_json,
    )
    sys.exit(exit_code)


@cli.command()
@click.argument(
    "plan_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--dry-run", is_flag=True, help="Show the plan without applying it")
@click.pass_context
def install(ctx: click.Context, plan_file: Path, dry_run: bool) -> None:
    """Apply an install plan.

    PLAN_FILE is a TOML file with one [[actions]] table per action, in the
    order they must be applied.
    """
    from .commands.install_cmd import run_install

    exit_code = run_install(ctx.obj["config"], plan_file, dry_run=dry_run)
    sys.exit(exit_code)


@cli.command()
@click.argument("coordinate")
@click.option("--namespace", "-n", type=str, default=None, help="Namespace (default: global)")
@click.pass_context
def uninstall(ctx: click.Context, coordinate: str, namespace: str | None) -> None:
    """Uninstall an installed extension."""
    from .commands.install_cmd import run_uninstall

    exit_code = run_uninstall(ctx.obj["config"], coordinate, namespace=namespace)
    sys.exit(exit_code)


@cli.command("list")
@click.option("--namespace", "-n", type=str, default=None, help="Namespace (default: global)")
@click.option("--all", "all_namespaces", is_flag=True, help="Every namespace")
@click.pass_context
def list_cmd(ctx: click.Context, namespace: str | None, all_namespaces: bool) -> None:
    """List installed extensions."""
    from .commands.extensions_cmd import run_list

    exit_code = run_list(ctx.obj["config"], namespace=namespace, all_namespaces=all_namespaces)
    sys.exit(exit_code)


@cli.command()
@click.pass_context
def repositories(ctx: click.Context) -> None:
    """Show configured extension repositories."""
    from .commands.extensions_cmd import run_repositories

    exit_code = run_repositories(ctx.obj["config"])
    sys.exit(exit_code)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
