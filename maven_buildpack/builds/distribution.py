"""Distribution selection.

This module handles:
- Resolving declared distributions by id, stack and version constraint
- Deciding which distributions are staged as layers
- Deciding which executable runs the build (wrapper, mvn or mvnd)

Staging and running are separate questions: a stage-only invocation
contributes binaries for a later step without running anything, while a
project wrapper runs the build without any distribution being staged.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from maven_buildpack.builds.models import DistributionDescriptor
from maven_buildpack.types import DistributionId

if TYPE_CHECKING:
    from maven_buildpack.builds.models import BuildConfiguration

logger = logging.getLogger(__name__)


class DistributionResolutionError(Exception):
    """Raised when a required distribution cannot be resolved."""

    def __init__(self, message: str, code: str = "distribution_error") -> None:
        super().__init__(message)
        self.code = code


@dataclass
class DistributionSelection:
    """Which distributions to stage and what to run.

    Attributes:
        staged: Distributions contributed as layers, in declaration order.
        run_build: Whether the build runs in this invocation.
        command_id: Distribution whose executable runs the build.
        wrapper: Wrapper script that runs the build instead.
    """

    staged: list[DistributionDescriptor] = field(default_factory=list)
    run_build: bool = True
    command_id: DistributionId | None = None
    wrapper: Path | None = None

    def command_path(self, layers_path: Path) -> str | None:
        """Absolute path of the executable that runs the build.

        Args:
            layers_path: Directory the layers are created in.

        Returns:
            Executable path, or None for a stage-only invocation.
        """
        if not self.run_build:
            return None
        if self.wrapper is not None:
            return str(self.wrapper)
        if self.command_id is None:
            return None
        return str(layers_path / self.command_id.value / self.command_id.executable)


def _parse_version(version: str) -> Version | None:
    try:
        return Version(version)
    except InvalidVersion:
        return None


def version_specifier(constraint: str) -> SpecifierSet | None:
    """Turn a version constraint into a specifier set.

    A bare version ('3', '3.8', '3.8.*') matches by prefix; anything
    starting with an operator is used as-is.

    Args:
        constraint: Constraint string (e.g., BP_MAVEN_VERSION).

    Returns:
        SpecifierSet, or None if no constraint is configured.

    Raises:
        DistributionResolutionError: If the constraint is not valid.
    """
    constraint = constraint.strip()
    if not constraint:
        return None
    if constraint[0] not in "<>=!~":
        constraint = f"=={constraint.removesuffix('.*')}.*"
    try:
        return SpecifierSet(constraint)
    except InvalidSpecifier as e:
        raise DistributionResolutionError(
            f"Invalid version constraint: {constraint}",
            code="invalid_version_constraint",
        ) from e


def resolve_distribution(
    descriptors: Sequence[DistributionDescriptor],
    distribution_id: DistributionId,
    stack_id: str | None,
    constraint: str = "",
) -> DistributionDescriptor:
    """Pick the newest declared distribution matching id, stack and constraint.

    Args:
        descriptors: Declared distributions.
        distribution_id: Distribution to resolve.
        stack_id: Stack the build runs on.
        constraint: Optional version constraint.

    Returns:
        The matching DistributionDescriptor.

    Raises:
        DistributionResolutionError: If no declared distribution matches.
    """
    candidates = [
        d for d in descriptors if d.id == distribution_id and d.applies_to(stack_id)
    ]

    specifier = version_specifier(constraint)
    if specifier is not None:
        candidates = [
            d
            for d in candidates
            if (v := _parse_version(d.version)) is not None
            and specifier.contains(v, prereleases=True)
        ]

    if not candidates:
        detail = f" matching '{constraint}'" if specifier is not None else ""
        raise DistributionResolutionError(
            f"No '{distribution_id.value}' distribution{detail} declared "
            f"for stack {stack_id}",
            code="distribution_not_found",
        )

    # max() keeps the first of equal versions, i.e. declaration order
    return max(candidates, key=lambda d: _parse_version(d.version) or Version("0"))


def _declared_ids(
    descriptors: Sequence[DistributionDescriptor],
    stack_id: str | None,
) -> list[DistributionId]:
    ids: list[DistributionId] = []
    for descriptor in descriptors:
        if descriptor.applies_to(stack_id) and descriptor.id not in ids:
            ids.append(descriptor.id)
    return ids


def _requested_command(command: str | None) -> DistributionId | None:
    if not command:
        return None
    try:
        return DistributionId(command)
    except ValueError:
        logger.warning("Ignoring unknown command in build plan: %s", command)
        return None


def select_distributions(
    configuration: BuildConfiguration,
    wrapper_present: bool,
) -> DistributionSelection:
    """Decide which distributions to stage and which executable to run.

    Args:
        configuration: Build configuration.
        wrapper_present: Whether the project bundles a wrapper script.

    Returns:
        DistributionSelection.

    Raises:
        DistributionResolutionError: If a required distribution is not declared.
    """
    selection = DistributionSelection(run_build=configuration.run_build)

    if configuration.run_build:
        if wrapper_present:
            selection.wrapper = configuration.wrapper_path.absolute()
        elif configuration.daemon_enabled:
            selection.command_id = DistributionId.MVND
        else:
            selection.command_id = DistributionId.MAVEN

    constraints = {DistributionId.MAVEN: configuration.version_constraint}

    if configuration.plan_entry_present or not configuration.run_build:
        # A later step needs the binaries: stage everything declared
        staged_ids = _declared_ids(configuration.distributions, configuration.stack_id)
        required = [
            i
            for i in (
                _requested_command(configuration.command),
                selection.command_id,
            )
            if i is not None
        ]
        for distribution_id in required:
            if distribution_id not in staged_ids:
                raise DistributionResolutionError(
                    f"Build plan requires '{distribution_id.value}' but it is not "
                    f"declared for stack {configuration.stack_id}",
                    code="distribution_not_found",
                )
    elif selection.command_id is not None:
        staged_ids = [selection.command_id]
    else:
        staged_ids = []

    selection.staged = [
        resolve_distribution(
            configuration.distributions,
            distribution_id,
            configuration.stack_id,
            constraints.get(distribution_id, ""),
        )
        for distribution_id in staged_ids
    ]

    if selection.wrapper is not None:
        logger.info("Using Maven wrapper %s", selection.wrapper)
    elif selection.command_id is not None:
        logger.info("Using %s distribution", selection.command_id.value)
    else:
        logger.info("Staging distributions only, no build will run")

    return selection


__all__ = [
    "DistributionResolutionError",
    "DistributionSelection",
    "resolve_distribution",
    "select_distributions",
    "version_specifier",
]
