"""Build service module.

This module provides the high-level build API:
- MavenBuild.build(): resolve settings, normalize the wrapper, select
  distributions, compose arguments and assemble the layers
- BuildResult: the ordered layers and BOM entries of one invocation

Layers are only returned once every step has succeeded; a fatal error
propagates without any partial layer set.
"""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from maven_buildpack.builds.arguments import compose_arguments
from maven_buildpack.builds.distribution import select_distributions
from maven_buildpack.builds.layers import (
    CACHE_LAYER,
    ApplicationLayer,
    CacheLayer,
    DistributionLayer,
    Layer,
    bom_entry,
)
from maven_buildpack.builds.settings import resolve_settings
from maven_buildpack.builds.wrapper import normalize_wrapper

if TYPE_CHECKING:
    from maven_buildpack.builds.layers import ApplicationFactory
    from maven_buildpack.builds.models import BuildConfiguration, ResolvedSettings
    from maven_buildpack.builds.wrapper import WrapperNormalizationResult
    from maven_buildpack.types import BOMEntry

logger = logging.getLogger(__name__)


class BuildError(Exception):
    """Raised when the layers of a build cannot be constructed."""

    def __init__(self, message: str, code: str = "build_error") -> None:
        super().__init__(message)
        self.code = code


@dataclass
class BuildResult:
    """Result of a build invocation.

    Attributes:
        layers: Contributed layers in order (distributions, cache, application).
        bom: BOM entries, one per contributed distribution.
        settings: Resolved settings files.
        wrapper: Outcome of wrapper normalization, if a wrapper exists.
    """

    layers: list[Layer] = field(default_factory=list)
    bom: list[BOMEntry] = field(default_factory=list)
    settings: ResolvedSettings | None = None
    wrapper: WrapperNormalizationResult | None = None

    @property
    def layer_names(self) -> list[str]:
        return [layer.name for layer in self.layers]

    @property
    def application(self) -> ApplicationLayer | None:
        for layer in self.layers:
            if isinstance(layer, ApplicationLayer):
                return layer
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        application = self.application
        return {
            "layers": [layer.to_dict() for layer in self.layers],
            "bom": [entry.to_dict() for entry in self.bom],
            "command": application.command if application else None,
            "arguments": list(application.arguments) if application else [],
        }


class MavenBuild:
    """Decides and assembles the layers of a Maven build.

    Args:
        application_factory: Creates the application layer.
    """

    def __init__(self, application_factory: ApplicationFactory) -> None:
        self.application_factory = application_factory

    def build(self, configuration: BuildConfiguration) -> BuildResult:
        """Run the build-decision pipeline for one invocation.

        Args:
            configuration: Build configuration snapshot.

        Returns:
            BuildResult with the ordered layers and BOM entries.

        Raises:
            SettingsResolutionError: If configured settings cannot be read.
            DistributionResolutionError: If a required distribution is missing.
            BuildError: If a layer cannot be constructed.
        """
        settings = resolve_settings(
            configuration.application_path,
            configuration.bindings,
            configuration.settings_path,
        )

        wrapper_path = configuration.wrapper_path
        wrapper_present = wrapper_path.exists() or wrapper_path.is_symlink()
        wrapper_result: WrapperNormalizationResult | None = None
        if wrapper_present and configuration.run_build:
            wrapper_result = normalize_wrapper(wrapper_path)
            # Normalization is best-effort; the wrapper is used either way
            for message in wrapper_result.errors:
                logger.warning("%s, continuing with wrapper as-is", message)

        selection = select_distributions(configuration, wrapper_present)

        layers: list[Layer] = []
        bom: list[BOMEntry] = []
        include_sbom_fields = configuration.api_at_least(0, 7)
        for descriptor in selection.staged:
            layers.append(
                DistributionLayer(
                    descriptor=descriptor,
                    path=configuration.layers_path / descriptor.id.value,
                )
            )
            bom.append(bom_entry(descriptor, include_sbom_fields))

        cache = CacheLayer(path=configuration.layers_path / CACHE_LAYER)
        layers.append(cache)

        command = selection.command_path(configuration.layers_path)
        if command is not None:
            arguments = compose_arguments(settings, configuration)
            logger.info("Build command: %s", shlex.join([command, *arguments]))
            try:
                application = self.application_factory.new_application(
                    settings.to_metadata(),
                    arguments,
                    command,
                    cache,
                )
            except OSError as e:
                raise BuildError(
                    f"Unable to create application layer: {e}",
                    code="layer_error",
                ) from e
            layers.append(application)

        logger.info(
            "Contributing layers: %s", ", ".join(layer.name for layer in layers)
        )
        return BuildResult(
            layers=layers,
            bom=bom,
            settings=settings,
            wrapper=wrapper_result,
        )


__all__ = [
    "BuildError",
    "BuildResult",
    "MavenBuild",
]
