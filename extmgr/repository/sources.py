"""
Remote repository sources.

Transport is handled elsewhere; this only answers which repositories
are configured, falling back to the built-in default when none are.
"""

from __future__ import annotations

from ..config import ExtensionManagerConfig
from ..extension import ExtensionRepositoryId

DEFAULT_REPOSITORIES = (
    ExtensionRepositoryId(
        id="maven-xwiki",
        type="maven",
        uri="http://nexus.xwiki.org/nexus/content/groups/public",
    ),
)


class ExtensionRepositorySource:
    """Repositories configured for the extension manager."""

    def __init__(self, config: ExtensionManagerConfig):
        self.config = config

    def get_extension_repositories(self) -> list[ExtensionRepositoryId]:
        if self.config.repositories is not None:
            return list(self.config.repositories)
        return list(DEFAULT_REPOSITORIES)
