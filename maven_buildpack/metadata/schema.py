"""Pydantic models for buildpack metadata and build plans.

This module validates the loosely typed documents handed to the buildpack
(buildpack.toml, plan.toml) before they are converted into the typed
build entities.
"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from maven_buildpack.builds.models import DistributionDescriptor
from maven_buildpack.types import PLAN_ENTRY_MAVEN, DistributionId

logger = logging.getLogger(__name__)


def _coerce_str(v: Any) -> Any:
    # YAML reads versions like 3.9 as floats
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class ConfigurationSchema(BaseModel):
    """Schema for a [[metadata.configurations]] entry.

    Attributes:
        name: Environment variable name.
        default: Default value when the variable is not set.
        description: Human-readable description.
        build: Whether the variable applies at build time.
        launch: Whether the variable applies at launch time.
    """

    model_config = ConfigDict(extra="ignore")

    name: str
    default: str | None = None
    description: str | None = None
    build: bool | None = None
    launch: bool | None = None

    @field_validator("default", mode="before")
    @classmethod
    def validate_default(cls, v: Any) -> Any:
        """Accept numeric and boolean defaults."""
        if isinstance(v, bool):
            return str(v).lower()
        return _coerce_str(v)


class DependencySchema(BaseModel):
    """Schema for a [[metadata.dependencies]] entry.

    Attributes:
        id: Dependency identifier.
        version: Dependency version.
        name: Display name.
        uri: Download URI.
        sha256: Checksum of the download.
        stacks: Stacks the dependency applies to.
        cpes: CPE identifiers.
        purl: Package URL.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    version: str
    name: str | None = None
    uri: str | None = None
    sha256: str | None = None
    stacks: list[str] = Field(default_factory=list)
    cpes: list[str] = Field(default_factory=list)
    purl: str | None = None

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, v: Any) -> Any:
        """Accept numeric versions."""
        return _coerce_str(v)

    @field_validator("cpes", mode="before")
    @classmethod
    def validate_cpes(cls, v: Any) -> Any:
        """Accept a single CPE string."""
        if isinstance(v, str):
            return [v]
        return v

    def to_descriptor(self) -> DistributionDescriptor | None:
        """Convert to a DistributionDescriptor.

        Returns:
            DistributionDescriptor, or None if the id is not a Maven
            distribution.
        """
        try:
            distribution_id = DistributionId(self.id)
        except ValueError:
            logger.debug("Skipping dependency %s: not a Maven distribution", self.id)
            return None
        return DistributionDescriptor(
            id=distribution_id,
            version=self.version,
            stacks=tuple(self.stacks),
            name=self.name,
            uri=self.uri,
            sha256=self.sha256,
            cpes=tuple(self.cpes),
            purl=self.purl,
        )


class BuildpackMetadataSchema(BaseModel):
    """Schema for the [metadata] table of buildpack.toml."""

    model_config = ConfigDict(extra="ignore")

    configurations: list[ConfigurationSchema] = Field(default_factory=list)
    dependencies: list[DependencySchema] = Field(default_factory=list)

    def descriptors(self) -> tuple[DistributionDescriptor, ...]:
        """Maven distributions in declaration order."""
        result = []
        for dependency in self.dependencies:
            descriptor = dependency.to_descriptor()
            if descriptor is not None:
                result.append(descriptor)
        return tuple(result)

    def configuration_entries(self) -> list[dict[str, Any]]:
        """Configuration entries as plain dictionaries."""
        return [c.model_dump(exclude_none=True) for c in self.configurations]


class BuildpackSchema(BaseModel):
    """Schema for buildpack.toml.

    Attributes:
        api: Buildpack API version.
        metadata: Buildpack metadata table.
    """

    model_config = ConfigDict(extra="ignore")

    api: str = "0.7"
    metadata: BuildpackMetadataSchema = Field(default_factory=BuildpackMetadataSchema)

    @field_validator("api", mode="before")
    @classmethod
    def validate_api(cls, v: Any) -> Any:
        """Accept numeric API versions."""
        return _coerce_str(v)


class PlanEntryMetadataSchema(BaseModel):
    """Schema for the metadata of the maven plan entry.

    Attributes:
        run_build: Run the build now (False = stage binaries only).
        command: Distribution the downstream step requires.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    run_build: bool = Field(default=True, alias="run-build")
    command: str | None = None


class PlanEntrySchema(BaseModel):
    """Schema for a [[entries]] item of the build plan."""

    model_config = ConfigDict(extra="ignore")

    name: str
    metadata: PlanEntryMetadataSchema = Field(
        default_factory=PlanEntryMetadataSchema
    )


class BuildPlanSchema(BaseModel):
    """Schema for the buildpack plan."""

    model_config = ConfigDict(extra="ignore")

    entries: list[PlanEntrySchema] = Field(default_factory=list)

    def maven_entry(self) -> PlanEntrySchema | None:
        """Return the last maven entry, if any."""
        entry = None
        for candidate in self.entries:
            if candidate.name == PLAN_ENTRY_MAVEN:
                entry = candidate
        return entry


__all__ = [
    "BuildPlanSchema",
    "BuildpackMetadataSchema",
    "BuildpackSchema",
    "ConfigurationSchema",
    "DependencySchema",
    "PlanEntryMetadataSchema",
    "PlanEntrySchema",
]
