"""
Per-type extension handlers.

Each handler implements the ExtensionHandler protocol:
- install(): make an extension available in a namespace
- upgrade(): replace a previous version
- uninstall(): remove an extension from a namespace

The ExtensionHandlerManager maps extension types to handlers.
"""

from __future__ import annotations

from .file_handler import FileExtensionHandler
from .handler import ExtensionHandler, HandlerMetadata
from .manager import ExtensionHandlerManager

__all__ = [
    "ExtensionHandler",
    "ExtensionHandlerManager",
    "FileExtensionHandler",
    "HandlerMetadata",
]
