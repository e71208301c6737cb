"""
Installed extension registry.

Records which extension is active in which namespace. There is at most
one installed extension per (coordinate, namespace); installing another
version of the same coordinate in the same namespace replaces it.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path

from ..errors import RegistryError, UninstallError
from ..extension import InstalledExtension, LocalExtension, Namespace
from ..search import SearchResult, search_in_collection

logger = logging.getLogger(__name__)

_Key = tuple[str, Namespace]


class InstalledExtensionRepository:
    """
    Registry of installed extensions keyed by (coordinate, namespace).

    With a `path`, the registry is loaded from and saved to a JSON
    document after every change; without one it lives in memory.
    """

    def __init__(self, path: Path | None = None):
        self.path = path
        self._lock = threading.Lock()
        self._installed: dict[_Key, InstalledExtension] = {}
        if path is not None and path.exists():
            self._load()

    def _load(self) -> None:
        assert self.path is not None
        data = json.loads(self.path.read_text(encoding="utf-8"))
        for raw in data.get("installed", []):
            installed = InstalledExtension.from_dict(raw)
            self._installed[(installed.id.id, installed.namespace)] = installed

    def _save(self) -> None:
        if self.path is None:
            return
        payload = {"installed": [e.to_dict() for e in self._sorted()]}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".tmp")
        temp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        temp_path.replace(self.path)

    def _sorted(self) -> list[InstalledExtension]:
        return sorted(self._installed.values(), key=lambda e: (e.namespace or "", e.id.id))

    def install_extension(
        self,
        extension: LocalExtension,
        namespace: Namespace,
        dependency: bool,
    ) -> InstalledExtension:
        """
        Register `extension` as installed in `namespace`.

        Raises:
            RegistryError: the registry could not be persisted
        """
        installed = InstalledExtension.from_local(
            extension,
            namespace=namespace,
            dependency=dependency,
            installed_at=datetime.now(timezone.utc).isoformat(),
        )
        key = (extension.id.id, namespace)
        with self._lock:
            replaced = self._installed.get(key)
            self._installed[key] = installed
            try:
                self._save()
            except OSError as e:
                if replaced is None:
                    del self._installed[key]
                else:
                    self._installed[key] = replaced
                raise RegistryError(f"Failed to register extension [{extension}]") from e

        if replaced is not None and replaced.id != installed.id:
            logger.debug("Replaced [%s] with [%s]", replaced, installed)
        return installed

    def uninstall_extension(self, installed: InstalledExtension, namespace: Namespace) -> None:
        """
        Remove `installed` from `namespace`.

        Raises:
            UninstallError: that exact extension is not installed in `namespace`,
                or the registry could not be persisted
        """
        key = (installed.id.id, namespace)
        with self._lock:
            current = self._installed.get(key)
            if current is None or current.id != installed.id:
                where = f"namespace [{namespace}]" if namespace is not None else "root namespace"
                raise UninstallError(f"Extension [{installed}] is not installed on {where}")
            del self._installed[key]
            try:
                self._save()
            except OSError as e:
                self._installed[key] = current
                raise UninstallError(f"Failed to unregister extension [{installed}]") from e

    def get_installed_extension(self, coordinate: str, namespace: Namespace) -> InstalledExtension | None:
        with self._lock:
            return self._installed.get((coordinate, namespace))

    def get_installed_extensions(self, namespace: Namespace = None, *, all_namespaces: bool = False) -> list[InstalledExtension]:
        """Installed extensions of `namespace`, or of every namespace."""
        with self._lock:
            extensions = self._sorted()
        if all_namespaces:
            return extensions
        return [e for e in extensions if e.namespace == namespace]

    def search(
        self,
        pattern: str | None,
        offset: int = 0,
        limit: int = -1,
        *,
        namespace: Namespace = None,
        all_namespaces: bool = True,
    ) -> SearchResult:
        extensions = self.get_installed_extensions(namespace, all_namespaces=all_namespaces)
        return search_in_collection(pattern, offset, limit, extensions)
