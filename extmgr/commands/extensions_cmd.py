"""Query commands: search, list, repositories."""

from __future__ import annotations

import json
import re

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import ExtensionManagerConfig
from ..extension import Extension, InstalledExtension, Namespace
from ..repository import InstalledExtensionRepository, LocalExtensionRepository
from ..repository.sources import ExtensionRepositorySource
from ..search import SearchResult


def _extensions_table(title: str, extensions: list[Extension]) -> Table:
    table = Table(title=title)
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("version")
    table.add_column("type", style="magenta")
    table.add_column("name")
    table.add_column("namespace", style="dim")

    for e in extensions:
        namespace = ""
        if isinstance(e, InstalledExtension):
            namespace = e.namespace if e.namespace is not None else "(global)"
        table.add_row(escape(e.id.id), escape(e.id.version), escape(e.type), escape(e.name or ""), escape(namespace))
    return table


def run_search(
    config: ExtensionManagerConfig,
    pattern: str,
    *,
    offset: int = 0,
    limit: int = -1,
    installed: bool = False,
    namespace: Namespace = None,
    output_json: bool = False,
) -> int:
    console = Console()
    err = Console(stderr=True)

    try:
        if installed:
            repository = InstalledExtensionRepository(config.installed_registry_path)
            result: SearchResult = repository.search(
                pattern, offset, limit, namespace=namespace, all_namespaces=namespace is None
            )
        else:
            result = LocalExtensionRepository(config.local_repository_dir).search(pattern, offset, limit)
    except re.error as e:
        err.print(f"Invalid pattern {pattern!r}: {e}", style="bold red", markup=False)
        return 2

    if output_json:
        data = {
            "total_hits": result.total_hits,
            "offset": result.offset,
            "items": [e.to_dict() for e in result],
        }
        console.print_json(json.dumps(data))
        return 0

    console.print(_extensions_table("Extensions", list(result)))
    console.print(f"total_hits: {result.total_hits} (showing {len(result)} from offset {result.offset})", style="dim")
    return 0


def run_list(config: ExtensionManagerConfig, *, namespace: Namespace = None, all_namespaces: bool = False) -> int:
    console = Console()
    repository = InstalledExtensionRepository(config.installed_registry_path)
    extensions = repository.get_installed_extensions(namespace, all_namespaces=all_namespaces)

    if not extensions:
        console.print("No installed extensions.", style="dim")
        return 0

    console.print(_extensions_table("Installed extensions", list(extensions)))
    return 0


def run_repositories(config: ExtensionManagerConfig) -> int:
    console = Console()
    repositories = ExtensionRepositorySource(config).get_extension_repositories()

    table = Table(title="Repositories")
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("type", style="magenta")
    table.add_column("uri")
    for repo in repositories:
        table.add_row(repo.id, repo.type, repo.uri)

    console.print(table)
    if config.repositories is None:
        console.print("(built-in default; configure [[repositories]] in extmgr.toml)", style="dim", markup=False)
    return 0
