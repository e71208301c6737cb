"""
Error taxonomy for extension operations.

Fatal errors derive from InstallError and abort an install run.
UninstallError is the only one the executor recovers from, and only
when removing the previous version during an upgrade.
"""

from __future__ import annotations


class ExtensionError(Exception):
    """Base class for all extension manager errors."""


class InstallError(ExtensionError):
    """A failure that aborts the current install run."""


class PlanGenerationError(InstallError):
    """The install plan log contains an error entry."""


class ResolveError(InstallError):
    """An extension could not be found in local storage."""


class StoreError(InstallError):
    """An extension artifact could not be persisted locally."""


class HandlerError(InstallError):
    """Type-specific install/upgrade mechanics failed."""


class UnknownExtensionTypeError(HandlerError):
    """No handler is registered for an extension type."""

    def __init__(self, extension_type: str):
        super().__init__(f"No handler registered for extension type [{extension_type}]")
        self.extension_type = extension_type


class UnsupportedActionError(InstallError):
    """A plan action kind reached a phase that cannot apply it."""


class RegistryError(InstallError):
    """The installed extension registry could not record an extension."""


class InstallCancelledError(InstallError):
    """The run was cancelled between two actions."""


class UninstallError(ExtensionError):
    """The installed extension registry could not remove an extension."""
