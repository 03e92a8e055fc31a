"""Build configuration assembly.

Turns validated buildpack metadata, the build plan, platform bindings and
settings into the immutable BuildConfiguration used by the build service.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from maven_buildpack.builds.models import Binding, BuildConfiguration
from maven_buildpack.config import Settings, get_settings
from maven_buildpack.types import BINDING_TYPE_MAVEN

if TYPE_CHECKING:
    from maven_buildpack.metadata.schema import BuildpackSchema, BuildPlanSchema

logger = logging.getLogger(__name__)


def settings_for_buildpack(buildpack: BuildpackSchema) -> Settings:
    """Load settings using the buildpack's configuration defaults."""
    return get_settings(buildpack.metadata.configuration_entries())


def create_build_configuration(
    application_path: Path,
    layers_path: Path,
    buildpack: BuildpackSchema,
    plan: BuildPlanSchema | None = None,
    bindings: Sequence[Binding] = (),
    settings: Settings | None = None,
    stack_id: str | None = None,
    tty: bool = False,
) -> BuildConfiguration:
    """Create the configuration snapshot for one build invocation.

    Args:
        application_path: Project root.
        layers_path: Directory the layers are created in.
        buildpack: Validated buildpack metadata.
        plan: Optional build plan; without a maven entry the build runs now.
        bindings: Platform bindings (only maven bindings are kept).
        settings: Settings; loaded with the buildpack defaults if not provided.
        stack_id: Stack the build runs on.
        tty: The build is attached to an interactive terminal.

    Returns:
        BuildConfiguration instance.
    """
    if settings is None:
        settings = settings_for_buildpack(buildpack)

    run_build = True
    command: str | None = None
    entry = plan.maven_entry() if plan is not None else None
    if entry is not None:
        run_build = entry.metadata.run_build
        command = entry.metadata.command
        logger.debug("Build plan entry: run-build=%s command=%s", run_build, command)

    return BuildConfiguration(
        application_path=application_path,
        layers_path=layers_path,
        build_arguments=settings.build_arguments,
        pom_file=settings.pom_file,
        settings_path=settings.settings_path,
        daemon_enabled=settings.daemon_enabled,
        run_build=run_build,
        plan_entry_present=entry is not None,
        command=command,
        tty=tty,
        api=buildpack.api,
        stack_id=stack_id,
        version_constraint=settings.version,
        distributions=buildpack.metadata.descriptors(),
        bindings=tuple(b for b in bindings if b.is_type(BINDING_TYPE_MAVEN)),
    )


__all__ = ["create_build_configuration", "settings_for_buildpack"]
