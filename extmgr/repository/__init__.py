"""
Extension repositories.

- local: extensions whose artifacts are stored on disk
- installed: which extensions are active in which namespace
- sources: configured remote repositories
"""

from __future__ import annotations

from .installed import InstalledExtensionRepository
from .local import BlobStore, LocalExtensionRepository

__all__ = [
    "BlobStore",
    "InstalledExtensionRepository",
    "LocalExtensionRepository",
]
