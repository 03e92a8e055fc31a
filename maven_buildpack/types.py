"""Shared type definitions for maven_buildpack.

This module contains enums, dataclasses, and constants shared across
subpackages to avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Plan entry name and metadata keys written by the detect phase
PLAN_ENTRY_MAVEN = "maven"
PLAN_RUN_BUILD = "run-build"
PLAN_COMMAND = "command"

# Binding type and secret entries for Maven settings
BINDING_TYPE_MAVEN = "maven"
SETTINGS_SECRET = "settings.xml"
SETTINGS_SECURITY_SECRET = "settings-security.xml"

# Wrapper script bundled with the project
WRAPPER_NAME = "mvnw"


class DistributionId(str, Enum):
    """Identifier of a platform-provided Maven distribution."""

    MAVEN = "maven"
    MVND = "mvnd"

    @property
    def executable(self) -> str:
        """Executable path relative to the distribution layer."""
        return _EXECUTABLES[self]


_EXECUTABLES = {
    DistributionId.MAVEN: "bin/mvn",
    DistributionId.MVND: "bin/mvnd",
}


@dataclass(frozen=True)
class BOMEntry:
    """Bill-of-materials entry for a contributed component."""

    name: str
    version: str
    metadata: dict[str, Any] = field(default_factory=dict)
    build: bool = True
    launch: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "version": self.version,
            "metadata": dict(self.metadata),
            "build": self.build,
            "launch": self.launch,
        }


__all__ = [
    "BINDING_TYPE_MAVEN",
    "PLAN_COMMAND",
    "PLAN_ENTRY_MAVEN",
    "PLAN_RUN_BUILD",
    "SETTINGS_SECRET",
    "SETTINGS_SECURITY_SECRET",
    "WRAPPER_NAME",
    "BOMEntry",
    "DistributionId",
]
