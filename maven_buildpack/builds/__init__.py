"""Build decision module.

This module handles:
- Settings resolution and hashing
- Wrapper normalization
- Distribution selection
- Argument composition
- Layer and BOM assembly
"""

from maven_buildpack.builds.models import (
    Binding,
    BuildConfiguration,
    DistributionDescriptor,
    ResolvedSettings,
)
from maven_buildpack.builds.service import BuildError, BuildResult, MavenBuild

__all__ = [
    "Binding",
    "BuildConfiguration",
    "BuildError",
    "BuildResult",
    "DistributionDescriptor",
    "MavenBuild",
    "ResolvedSettings",
]
