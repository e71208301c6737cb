"""
Handler for plain file extensions.

Installing copies the stored artifact to

    <install_root>/<namespace or _global>/<escaped coordinate>/<file name>

where the file name is `<artifact name>-<version><suffix>`.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from urllib.parse import quote

from ..errors import HandlerError
from ..extension import Extension, InstalledExtension, LocalExtension, Namespace
from ..plan import InstallRequest
from .handler import ExtensionHandler, HandlerMetadata

logger = logging.getLogger(__name__)

GLOBAL_NAMESPACE_DIR = "_global"


class FileExtensionHandler(ExtensionHandler):
    """Copies the extension artifact into an install directory."""

    def __init__(self, install_root: Path):
        self.install_root = install_root

    @property
    def metadata(self) -> HandlerMetadata:
        return HandlerMetadata(type="file", description="Copy the artifact into the install directory")

    def extension_dir(self, extension: Extension, namespace: Namespace) -> Path:
        namespace_dir = quote(namespace, safe="") if namespace is not None else GLOBAL_NAMESPACE_DIR
        return self.install_root / namespace_dir / quote(extension.id.id, safe="")

    @staticmethod
    def _file_name(extension: LocalExtension) -> str:
        artifact_name = extension.id.id.split(":")[-1] or "artifact"
        suffix = extension.artifact.suffix if extension.artifact is not None else ""
        return f"{artifact_name}-{extension.id.version}{suffix}"

    def install(self, extension: LocalExtension, namespace: Namespace, request: InstallRequest | None) -> None:
        if extension.file is None or not extension.file.exists():
            raise HandlerError(f"Extension [{extension}] has no stored artifact to install")

        target_dir = self.extension_dir(extension, namespace)
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / self._file_name(extension)
        shutil.copyfile(extension.file, target)
        logger.debug("Copied %s to %s", extension.file, target)

    def uninstall(self, installed: InstalledExtension, namespace: Namespace, request: InstallRequest | None) -> None:
        target = self.extension_dir(installed, namespace) / self._file_name(installed)
        if target.exists():
            target.unlink()
            logger.debug("Removed %s", target)
