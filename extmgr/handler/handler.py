"""
Handler protocol for extension types.

A handler performs the physical install/upgrade/uninstall of one type
of extension (copying files, loading code, ...). Registry bookkeeping
and events are the executor's job, not the handler's.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..extension import InstalledExtension, LocalExtension, Namespace
from ..plan import InstallRequest


@dataclass(frozen=True)
class HandlerMetadata:
    """Static metadata about a handler."""

    type: str  # extension type handled, e.g. "file"
    description: str = ""


class ExtensionHandler(ABC):
    """Install mechanics for one extension type."""

    @property
    @abstractmethod
    def metadata(self) -> HandlerMetadata:
        """Return static handler metadata."""
        ...

    @abstractmethod
    def install(
        self,
        extension: LocalExtension,
        namespace: Namespace,
        request: InstallRequest | None,
    ) -> None:
        """Make `extension` available in `namespace`."""
        ...

    @abstractmethod
    def uninstall(
        self,
        installed: InstalledExtension,
        namespace: Namespace,
        request: InstallRequest | None,
    ) -> None:
        """Remove `installed` from `namespace`."""
        ...

    def upgrade(
        self,
        previous: InstalledExtension,
        extension: LocalExtension,
        namespace: Namespace,
        request: InstallRequest | None,
    ) -> None:
        """
        Replace `previous` by `extension` in `namespace`.

        Default: uninstall the previous version, then install the new one.
        """
        self.uninstall(previous, namespace, request)
        self.install(extension, namespace, request)
