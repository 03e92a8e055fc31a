"""Buildpack metadata module.

This module provides:
- Pydantic schemas for buildpack.toml and the build plan
- Loaders for metadata documents and platform bindings
- Assembly of the typed BuildConfiguration
"""

from maven_buildpack.metadata.context import create_build_configuration
from maven_buildpack.metadata.io import (
    MetadataLoadError,
    bindings_root,
    load_bindings,
    load_buildpack,
    load_plan,
)
from maven_buildpack.metadata.schema import BuildpackSchema, BuildPlanSchema

__all__ = [
    "BuildPlanSchema",
    "BuildpackSchema",
    "MetadataLoadError",
    "bindings_root",
    "create_build_configuration",
    "load_bindings",
    "load_buildpack",
    "load_plan",
]
