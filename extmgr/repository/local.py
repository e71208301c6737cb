"""
Local extension repository.

Artifact bytes live in a content-addressed blob store, keyed by their
sha256 hash so identical artifacts are stored once:

    <root>/blobs/ab/ab1234....bin

Descriptors are stored as JSON next to it:

    <root>/extensions/<escaped coordinate>/<version>.json
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from pathlib import Path
from urllib.parse import quote

from ..errors import ResolveError, StoreError
from ..extension import Extension, ExtensionId, LocalExtension
from ..search import SearchResult, search_in_collection

logger = logging.getLogger(__name__)


class BlobStore:
    """Content-addressed storage for artifact bytes."""

    def __init__(self, root: Path):
        self.root = root
        self.blob_dir = root / "blobs"

    @staticmethod
    def compute_hash(content: bytes) -> str:
        return hashlib.sha256(content).hexdigest()

    def path(self, content_id: str) -> Path:
        return self.blob_dir / content_id[:2] / f"{content_id}.bin"

    def exists(self, content_id: str) -> bool:
        return self.path(content_id).exists()

    def store(self, content: bytes) -> str:
        """
        Store content and return its content_id.

        If content already exists, this is a no-op (idempotent).
        """
        content_id = self.compute_hash(content)
        blob_path = self.path(content_id)
        if blob_path.exists():
            return content_id

        blob_path.parent.mkdir(parents=True, exist_ok=True)

        # Write atomically (write to temp, then rename)
        temp_path = blob_path.with_suffix(".tmp")
        temp_path.write_bytes(content)
        temp_path.replace(blob_path)

        return content_id

    def verify(self, content_id: str) -> bool:
        """True if the blob exists and its hash still matches."""
        blob_path = self.path(content_id)
        if not blob_path.exists():
            return False
        return self.compute_hash(blob_path.read_bytes()) == content_id


class LocalExtensionRepository:
    """Extensions whose artifacts are available on local disk."""

    def __init__(self, root: Path):
        self.root = root
        self.extensions_dir = root / "extensions"
        self.blobs = BlobStore(root)
        self._lock = threading.Lock()

    def _descriptor_path(self, extension_id: ExtensionId) -> Path:
        coordinate = quote(extension_id.id, safe="")
        version = quote(extension_id.version, safe="")
        return self.extensions_dir / coordinate / f"{version}.json"

    def store_extension(self, extension: Extension) -> LocalExtension:
        """
        Copy the extension artifact and descriptor into local storage.

        Raises:
            StoreError: the artifact could not be read or written
        """
        logger.debug("Storing extension [%s]", extension)

        file: Path | None = None
        content_id: str | None = None
        if extension.artifact is not None:
            try:
                content = extension.artifact.read_bytes()
            except OSError as e:
                raise StoreError(
                    f"Failed to read artifact [{extension.artifact}] of extension [{extension}]"
                ) from e
            try:
                content_id = self.blobs.store(content)
            except OSError as e:
                raise StoreError(f"Failed to store artifact of extension [{extension}]") from e
            file = self.blobs.path(content_id)

        local = LocalExtension.from_extension(extension, file=file, content_id=content_id)

        descriptor_path = self._descriptor_path(extension.id)
        try:
            with self._lock:
                descriptor_path.parent.mkdir(parents=True, exist_ok=True)
                temp_path = descriptor_path.with_suffix(".tmp")
                temp_path.write_text(json.dumps(local.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
                temp_path.replace(descriptor_path)
        except OSError as e:
            raise StoreError(f"Failed to store descriptor of extension [{extension}]") from e

        return local

    def exists(self, extension_id: ExtensionId) -> bool:
        return self._descriptor_path(extension_id).exists()

    def resolve(self, extension_id: ExtensionId) -> LocalExtension:
        """
        Look up a stored extension.

        Raises:
            ResolveError: nothing is stored for `extension_id`
        """
        descriptor_path = self._descriptor_path(extension_id)
        try:
            data = json.loads(descriptor_path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ResolveError(f"Can't find extension [{extension_id}] in local repository") from e
        except (OSError, ValueError) as e:
            raise ResolveError(f"Failed to read extension [{extension_id}] from local repository") from e
        return LocalExtension.from_dict(data)

    def remove(self, extension_id: ExtensionId) -> None:
        """Forget a stored descriptor. Blobs are left in place."""
        with self._lock:
            self._descriptor_path(extension_id).unlink(missing_ok=True)

    def get_local_extensions(self) -> list[LocalExtension]:
        """All stored extensions, ordered by coordinate then version."""
        if not self.extensions_dir.exists():
            return []
        result: list[LocalExtension] = []
        for descriptor_path in sorted(self.extensions_dir.glob("*/*.json")):
            try:
                data = json.loads(descriptor_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("Skipping unreadable descriptor %s: %s", descriptor_path, e)
                continue
            result.append(LocalExtension.from_dict(data))
        return result

    def search(self, pattern: str | None, offset: int = 0, limit: int = -1) -> SearchResult:
        return search_in_collection(pattern, offset, limit, self.get_local_extensions())
