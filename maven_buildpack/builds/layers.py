"""Layers and bill-of-materials entries contributed by a build.

Layer contents (downloads, cache restoration, running Maven) are handled by
the layer framework. This module only describes the layers: their names,
paths, executables and the metadata that decides when they are rebuilt.
"""

from __future__ import annotations

import hashlib
import logging
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from maven_buildpack.builds.models import DistributionDescriptor
from maven_buildpack.types import BOMEntry

logger = logging.getLogger(__name__)

CACHE_LAYER = "cache"
APPLICATION_LAYER = "application"

# Maven's local repository, linked into the cache layer
LOCAL_REPOSITORY = Path(".m2")

# Directories that do not affect the compiled application
SOURCE_HASH_EXCLUDES = frozenset({".git", "target"})


@dataclass
class DistributionLayer:
    """Layer holding a Maven or Maven daemon distribution."""

    descriptor: DistributionDescriptor
    path: Path

    @property
    def name(self) -> str:
        return self.descriptor.id.value

    @property
    def executable(self) -> Path:
        return self.path / self.descriptor.executable_path

    @property
    def metadata(self) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            "id": self.descriptor.id.value,
            "version": self.descriptor.version,
        }
        if self.descriptor.uri:
            metadata["uri"] = self.descriptor.uri
        if self.descriptor.sha256:
            metadata["sha256"] = self.descriptor.sha256
        return metadata

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "path": str(self.path),
            "executable": str(self.executable),
            "metadata": self.metadata,
            "build": True,
            "cache": True,
        }


@dataclass
class CacheLayer:
    """Layer caching the Maven local repository between builds."""

    path: Path
    local_repository: Path = field(
        default_factory=lambda: Path.home() / LOCAL_REPOSITORY
    )

    @property
    def name(self) -> str:
        return CACHE_LAYER

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "path": str(self.path),
            "local_repository": str(self.local_repository),
            "cache": True,
        }


@dataclass
class ApplicationLayer:
    """Layer that runs the build and holds the compiled application.

    Attributes:
        command: Executable that runs the build.
        arguments: Arguments passed to the executable.
        metadata: Expected layer metadata; a change invalidates the layer.
        cache: Cache layer used by the build.
    """

    command: str
    arguments: list[str]
    metadata: dict[str, Any]
    cache: CacheLayer

    @property
    def name(self) -> str:
        return APPLICATION_LAYER

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "command": self.command,
            "arguments": list(self.arguments),
            "metadata": dict(self.metadata),
            "cache": True,
        }


Layer = DistributionLayer | CacheLayer | ApplicationLayer


class ApplicationFactory(Protocol):
    """Creates the application layer for a build."""

    def new_application(
        self,
        metadata: dict[str, Any],
        arguments: list[str],
        command: str,
        cache: CacheLayer,
    ) -> ApplicationLayer: ...


def compute_source_hash(directory: Path) -> str:
    """Compute a deterministic hash of an application source tree.

    The hash is computed over sorted relative paths, file modes (lower 9
    bits) and file contents. Build output and VCS directories are skipped.

    Args:
        directory: Application root.

    Returns:
        SHA-256 hex digest of the tree.

    Raises:
        OSError: If a file cannot be read.
    """
    hasher = hashlib.sha256()

    if not directory.exists():
        return hasher.hexdigest()

    for path in sorted(directory.rglob("*")):
        rel = path.relative_to(directory)
        if rel.parts[0] in SOURCE_HASH_EXCLUDES:
            continue
        if path.is_symlink() or not path.is_file():
            continue

        mode = stat.S_IMODE(path.stat().st_mode)
        # Hash: path\0mode\0content\0
        hasher.update(rel.as_posix().encode("utf-8"))
        hasher.update(b"\0")
        hasher.update(f"{mode:o}".encode())
        hasher.update(b"\0")
        with path.open("rb") as f:
            hasher.update(f.read())
        hasher.update(b"\0")

    return hasher.hexdigest()


class DefaultApplicationFactory:
    """Application factory that keys the layer on the source tree hash."""

    def __init__(self, application_path: Path) -> None:
        self.application_path = application_path

    def new_application(
        self,
        metadata: dict[str, Any],
        arguments: list[str],
        command: str,
        cache: CacheLayer,
    ) -> ApplicationLayer:
        expected = dict(metadata)
        expected["files"] = compute_source_hash(self.application_path)
        expected["arguments"] = list(arguments)
        logger.debug("Application layer metadata: %s", expected)
        return ApplicationLayer(
            command=command,
            arguments=list(arguments),
            metadata=expected,
            cache=cache,
        )


def bom_entry(
    descriptor: DistributionDescriptor,
    include_sbom_fields: bool = True,
) -> BOMEntry:
    """Create the build-time BOM entry for a distribution.

    Args:
        descriptor: Contributed distribution.
        include_sbom_fields: Add CPEs and PURL (buildpack API 0.7+).

    Returns:
        BOMEntry named after the distribution id.
    """
    metadata: dict[str, Any] = {"version": descriptor.version}
    if descriptor.name:
        metadata["name"] = descriptor.name
    if descriptor.uri:
        metadata["uri"] = descriptor.uri
    if descriptor.sha256:
        metadata["sha256"] = descriptor.sha256
    if include_sbom_fields:
        if descriptor.cpes:
            metadata["cpes"] = list(descriptor.cpes)
        if descriptor.purl:
            metadata["purl"] = descriptor.purl

    return BOMEntry(
        name=descriptor.id.value,
        version=descriptor.version,
        metadata=metadata,
        build=True,
        launch=False,
    )


__all__ = [
    "APPLICATION_LAYER",
    "CACHE_LAYER",
    "ApplicationFactory",
    "ApplicationLayer",
    "CacheLayer",
    "DefaultApplicationFactory",
    "DistributionLayer",
    "Layer",
    "bom_entry",
    "compute_source_hash",
]
