"""
Extension descriptors.

Lifecycle: Extension -> (store) -> LocalExtension -> (apply) -> InstalledExtension.

Descriptors are immutable. Every transition produces a new object,
the previous one is never modified.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

# None is the global namespace
Namespace = str | None


@dataclass(frozen=True)
class ExtensionId:
    """Coordinate (e.g. group:artifact[:classifier]) plus version."""

    id: str
    version: str

    def __str__(self) -> str:
        return f"{self.id}/{self.version}"

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "version": self.version}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExtensionId:
        return cls(id=str(data["id"]), version=str(data["version"]))


@dataclass(frozen=True)
class ExtensionAuthor:
    name: str
    url: str | None = None


@dataclass(frozen=True)
class ExtensionDependency:
    """Dependency on another extension; the constraint is opaque here."""

    id: str
    version_constraint: str


@dataclass(frozen=True)
class ExtensionRepositoryId:
    id: str
    type: str
    uri: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "type": self.type, "uri": self.uri}


@dataclass(frozen=True)
class Extension:
    """An extension as described by a repository."""

    id: ExtensionId
    type: str
    name: str | None = None
    summary: str | None = None
    description: str | None = None
    website: str | None = None
    authors: tuple[ExtensionAuthor, ...] = ()
    features: tuple[str, ...] = ()
    licenses: tuple[str, ...] = ()
    dependencies: tuple[ExtensionDependency, ...] = ()
    repository: ExtensionRepositoryId | None = None
    artifact: Path | None = None  # where the artifact bytes can be read before storing

    def __str__(self) -> str:
        return str(self.id)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON storage."""
        data: dict[str, Any] = {
            "id": self.id.to_dict(),
            "type": self.type,
            "name": self.name,
            "summary": self.summary,
            "description": self.description,
            "website": self.website,
            "authors": [{"name": a.name, "url": a.url} for a in self.authors],
            "features": list(self.features),
            "licenses": list(self.licenses),
            "dependencies": [
                {"id": d.id, "version_constraint": d.version_constraint}
                for d in self.dependencies
            ],
            "repository": self.repository.to_dict() if self.repository else None,
            "artifact": str(self.artifact) if self.artifact else None,
        }
        return data

    @classmethod
    def _kwargs_from_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        repo = data.get("repository")
        artifact = data.get("artifact")
        return {
            "id": ExtensionId.from_dict(data["id"]),
            "type": str(data.get("type", "")),
            "name": data.get("name"),
            "summary": data.get("summary"),
            "description": data.get("description"),
            "website": data.get("website"),
            "authors": tuple(
                ExtensionAuthor(name=a["name"], url=a.get("url")) for a in data.get("authors", [])
            ),
            "features": tuple(dict.fromkeys(data.get("features", []))),
            "licenses": tuple(data.get("licenses", [])),
            "dependencies": tuple(
                ExtensionDependency(id=d["id"], version_constraint=d["version_constraint"])
                for d in data.get("dependencies", [])
            ),
            "repository": ExtensionRepositoryId(**repo) if isinstance(repo, dict) else None,
            "artifact": Path(artifact) if artifact else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Extension:
        return cls(**cls._kwargs_from_dict(data))


@dataclass(frozen=True)
class LocalExtension(Extension):
    """An extension whose artifact is present in local storage."""

    file: Path | None = None
    content_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["file"] = str(self.file) if self.file else None
        data["content_id"] = self.content_id
        return data

    @classmethod
    def _kwargs_from_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        kwargs = super()._kwargs_from_dict(data)
        kwargs["file"] = Path(data["file"]) if data.get("file") else None
        kwargs["content_id"] = data.get("content_id")
        return kwargs

    @classmethod
    def from_extension(
        cls,
        extension: Extension,
        *,
        file: Path | None = None,
        content_id: str | None = None,
    ) -> LocalExtension:
        values = {f.name: getattr(extension, f.name) for f in fields(Extension)}
        return cls(**values, file=file, content_id=content_id)


@dataclass(frozen=True)
class InstalledExtension(LocalExtension):
    """A local extension registered in a namespace."""

    namespace: Namespace = None
    dependency: bool = False
    installed_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["namespace"] = self.namespace
        data["dependency"] = self.dependency
        data["installed_at"] = self.installed_at
        return data

    @classmethod
    def _kwargs_from_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        kwargs = super()._kwargs_from_dict(data)
        kwargs["namespace"] = data.get("namespace")
        kwargs["dependency"] = bool(data.get("dependency", False))
        kwargs["installed_at"] = str(data.get("installed_at", ""))
        return kwargs

    @classmethod
    def from_local(
        cls,
        extension: LocalExtension,
        *,
        namespace: Namespace,
        dependency: bool,
        installed_at: str,
    ) -> InstalledExtension:
        values = {f.name: getattr(extension, f.name) for f in fields(LocalExtension)}
        return cls(
            **values,
            namespace=namespace,
            dependency=dependency,
            installed_at=installed_at,
        )

