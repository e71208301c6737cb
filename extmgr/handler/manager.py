"""
Extension type -> handler dispatch.

The mapping is built explicitly by whoever constructs the manager;
there is no global lookup. An extension whose type has no handler
fails with UnknownExtensionTypeError.
"""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

from ..errors import HandlerError, InstallError, UnknownExtensionTypeError
from ..extension import Extension, InstalledExtension, LocalExtension, Namespace
from ..plan import InstallRequest
from .handler import ExtensionHandler

T = TypeVar("T")


class ExtensionHandlerManager:
    """Dispatch install/upgrade/uninstall to the handler of the extension type."""

    def __init__(self, handlers: Iterable[ExtensionHandler] = ()):
        self._handlers: dict[str, ExtensionHandler] = {}
        for handler in handlers:
            self.register(handler)

    def register(self, handler: ExtensionHandler) -> None:
        """Register a handler by the extension type it handles."""
        self._handlers[handler.metadata.type] = handler

    def get(self, extension_type: str) -> ExtensionHandler:
        handler = self._handlers.get(extension_type)
        if handler is None:
            raise UnknownExtensionTypeError(extension_type)
        return handler

    def types(self) -> list[str]:
        """List all registered extension types."""
        return list(self._handlers.keys())

    @staticmethod
    def _call(action: str, extension: Extension, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except InstallError:
            raise
        except Exception as e:
            raise HandlerError(f"Failed to {action} extension [{extension}]") from e

    def install(self, extension: LocalExtension, namespace: Namespace, request: InstallRequest | None) -> None:
        handler = self.get(extension.type)
        self._call("install", extension, lambda: handler.install(extension, namespace, request))

    def upgrade(
        self,
        previous: InstalledExtension,
        extension: LocalExtension,
        namespace: Namespace,
        request: InstallRequest | None,
    ) -> None:
        handler = self.get(extension.type)
        self._call("upgrade", extension, lambda: handler.upgrade(previous, extension, namespace, request))

    def uninstall(self, installed: InstalledExtension, namespace: Namespace, request: InstallRequest | None) -> None:
        handler = self.get(installed.type)
        self._call("uninstall", installed, lambda: handler.uninstall(installed, namespace, request))
