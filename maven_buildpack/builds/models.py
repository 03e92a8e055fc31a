"""Typed entities for a single build invocation.

Loosely typed buildpack metadata, plan entries and bindings are converted
into these immutable records at the boundary (see maven_buildpack.metadata).
Everything in maven_buildpack.builds operates on these types only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from packaging.version import InvalidVersion, Version

from maven_buildpack.types import WRAPPER_NAME, DistributionId

# Hash keys in the application layer metadata
SETTINGS_HASH_KEY = "settings-sha256"
SETTINGS_SECURITY_HASH_KEY = "settings-security-sha256"


@dataclass(frozen=True)
class DistributionDescriptor:
    """A Maven distribution declared in buildpack metadata.

    Attributes:
        id: Distribution identifier (maven or mvnd).
        version: Distribution version.
        stacks: Stacks the distribution applies to (empty or '*' = any).
        name: Optional display name.
        uri: Optional download URI.
        sha256: Optional checksum of the download.
        cpes: Declared CPE identifiers.
        purl: Declared package URL.
    """

    id: DistributionId
    version: str
    stacks: tuple[str, ...] = ()
    name: str | None = None
    uri: str | None = None
    sha256: str | None = None
    cpes: tuple[str, ...] = ()
    purl: str | None = None

    @property
    def executable_path(self) -> str:
        """Executable path relative to the distribution layer."""
        return self.id.executable

    def applies_to(self, stack_id: str | None) -> bool:
        """Check whether the distribution may be used on a stack."""
        if not self.stacks or "*" in self.stacks:
            return True
        return stack_id in self.stacks


@dataclass(frozen=True)
class Binding:
    """A platform binding mounted as a directory of secret files.

    Attributes:
        name: Binding name (directory name).
        type: Declared binding type.
        path: Directory holding the secret entries.
        secret: Secret entry name to content.
    """

    name: str
    type: str
    path: Path
    secret: dict[str, str] = field(default_factory=dict)

    def secret_file_path(self, key: str) -> Path | None:
        """Return the file path of a secret entry, or None if absent."""
        if key not in self.secret:
            return None
        return self.path / key

    def is_type(self, binding_type: str) -> bool:
        """Case-insensitive binding type match."""
        return self.type.strip().lower() == binding_type.lower()


@dataclass(frozen=True)
class ResolvedSettings:
    """Effective Maven settings files and their content hashes.

    A hash is present exactly when its path is present.
    """

    settings_path: str | None = None
    settings_hash: str | None = None
    security_path: str | None = None
    security_hash: str | None = None

    def __post_init__(self) -> None:
        if (self.settings_path is None) != (self.settings_hash is None):
            raise ValueError("settings_path and settings_hash must be set together")
        if (self.security_path is None) != (self.security_hash is None):
            raise ValueError("security_path and security_hash must be set together")

    @property
    def is_empty(self) -> bool:
        return self.settings_path is None and self.security_path is None

    def to_metadata(self) -> dict[str, Any]:
        """Cache-invalidation metadata for the application layer."""
        metadata: dict[str, Any] = {}
        if self.settings_hash is not None:
            metadata[SETTINGS_HASH_KEY] = self.settings_hash
        if self.security_hash is not None:
            metadata[SETTINGS_SECURITY_HASH_KEY] = self.security_hash
        return metadata


@dataclass(frozen=True)
class BuildConfiguration:
    """Immutable snapshot of all inputs to one build invocation.

    Attributes:
        application_path: Project root.
        layers_path: Directory the layers are created in.
        build_arguments: Raw user build-argument string.
        pom_file: POM file override (empty = none).
        settings_path: Settings path override (empty = none).
        daemon_enabled: Prefer the Maven daemon distribution.
        run_build: Run the build now (False = stage binaries only).
        plan_entry_present: A plan entry asked for the distributions.
        command: Distribution identifier requested by the plan entry.
        tty: The build runs attached to an interactive terminal.
        api: Buildpack API version.
        stack_id: Stack the build runs on.
        version_constraint: Version constraint for the maven distribution.
        distributions: Distributions declared in buildpack metadata.
        bindings: Platform bindings of type maven.
    """

    application_path: Path
    layers_path: Path
    build_arguments: str = ""
    pom_file: str = ""
    settings_path: str = ""
    daemon_enabled: bool = False
    run_build: bool = True
    plan_entry_present: bool = False
    command: str | None = None
    tty: bool = False
    api: str = "0.7"
    stack_id: str | None = None
    version_constraint: str = ""
    distributions: tuple[DistributionDescriptor, ...] = ()
    bindings: tuple[Binding, ...] = ()

    @property
    def wrapper_path(self) -> Path:
        return self.application_path / WRAPPER_NAME

    def api_at_least(self, major: int, minor: int) -> bool:
        """Compare the buildpack API version with major.minor."""
        try:
            return Version(self.api) >= Version(f"{major}.{minor}")
        except InvalidVersion:
            return False


__all__ = [
    "SETTINGS_HASH_KEY",
    "SETTINGS_SECURITY_HASH_KEY",
    "Binding",
    "BuildConfiguration",
    "DistributionDescriptor",
    "ResolvedSettings",
]
