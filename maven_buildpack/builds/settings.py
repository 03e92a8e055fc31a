"""Maven settings resolution and hashing.

This module handles:
- Choosing the effective settings.xml (maven binding > BP_MAVEN_SETTINGS_PATH)
- Picking up settings-security.xml from a maven binding
- Computing SHA-256 hashes of the settings files for cache invalidation
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Sequence
from pathlib import Path

from maven_buildpack.builds.models import Binding, ResolvedSettings
from maven_buildpack.types import (
    BINDING_TYPE_MAVEN,
    SETTINGS_SECRET,
    SETTINGS_SECURITY_SECRET,
)

logger = logging.getLogger(__name__)

# Default chunk size for hashing
HASH_CHUNK_SIZE = 64 * 1024  # 64KB


class SettingsResolutionError(Exception):
    """Raised when the configured settings cannot be resolved."""

    def __init__(self, message: str, code: str = "settings_error") -> None:
        super().__init__(message)
        self.code = code


def compute_file_hash(
    file_path: Path,
    chunk_size: int = HASH_CHUNK_SIZE,
) -> str:
    """Compute SHA-256 hash of a file.

    Args:
        file_path: Path to the file.
        chunk_size: Size of chunks for streaming hash.

    Returns:
        SHA-256 hex digest.

    Raises:
        SettingsResolutionError: If the file cannot be read.
    """
    sha256 = hashlib.sha256()
    try:
        with file_path.open("rb") as f:
            while chunk := f.read(chunk_size):
                sha256.update(chunk)
    except OSError as e:
        raise SettingsResolutionError(
            f"Unable to read settings file {file_path}: {e}",
            code="settings_unreadable",
        ) from e
    return sha256.hexdigest()


def find_maven_binding(bindings: Sequence[Binding]) -> Binding | None:
    """Find the single binding of type maven.

    Args:
        bindings: Platform bindings.

    Returns:
        The maven binding, or None if there is none.

    Raises:
        SettingsResolutionError: If more than one maven binding exists.
    """
    matches = [b for b in bindings if b.is_type(BINDING_TYPE_MAVEN)]
    if not matches:
        return None
    if len(matches) > 1:
        names = ", ".join(sorted(b.name for b in matches))
        raise SettingsResolutionError(
            f"Multiple bindings of type '{BINDING_TYPE_MAVEN}' found: {names}",
            code="ambiguous_binding",
        )
    return matches[0]


def _resolve_from_binding(binding: Binding) -> ResolvedSettings | None:
    settings_file = binding.secret_file_path(SETTINGS_SECRET)
    if settings_file is None:
        logger.debug(
            "Binding %s has no %s entry, ignoring it", binding.name, SETTINGS_SECRET
        )
        return None

    settings_hash = compute_file_hash(settings_file)
    logger.info("Using Maven settings from binding %s", binding.name)

    security_file = binding.secret_file_path(SETTINGS_SECURITY_SECRET)
    if security_file is None:
        return ResolvedSettings(
            settings_path=str(settings_file),
            settings_hash=settings_hash,
        )

    security_hash = compute_file_hash(security_file)
    logger.info("Using Maven settings-security from binding %s", binding.name)
    return ResolvedSettings(
        settings_path=str(settings_file),
        settings_hash=settings_hash,
        security_path=str(security_file),
        security_hash=security_hash,
    )


def resolve_settings(
    application_path: Path,
    bindings: Sequence[Binding] = (),
    settings_path: str = "",
) -> ResolvedSettings:
    """Resolve the effective Maven settings files.

    Precedence:
    1. A maven binding carrying settings.xml (and optionally
       settings-security.xml) wins over everything else.
    2. A non-empty settings path override.
    3. No settings.

    Args:
        application_path: Project root, used to read relative settings paths.
        bindings: Platform bindings.
        settings_path: Settings path override (BP_MAVEN_SETTINGS_PATH).

    Returns:
        ResolvedSettings (empty when nothing is configured).

    Raises:
        SettingsResolutionError: If a configured settings file cannot be read
            or the maven binding is ambiguous.
    """
    binding = find_maven_binding(bindings)
    if binding is not None:
        resolved = _resolve_from_binding(binding)
        if resolved is not None:
            if settings_path:
                logger.debug(
                    "Ignoring settings path %s in favour of binding %s",
                    settings_path,
                    binding.name,
                )
            return resolved

    if settings_path:
        file_path = Path(settings_path)
        if not file_path.is_absolute():
            file_path = application_path / file_path
        settings_hash = compute_file_hash(file_path)
        logger.info("Using Maven settings from %s", settings_path)
        return ResolvedSettings(
            settings_path=settings_path, settings_hash=settings_hash
        )

    return ResolvedSettings()


__all__ = [
    "HASH_CHUNK_SIZE",
    "SettingsResolutionError",
    "compute_file_hash",
    "find_maven_binding",
    "resolve_settings",
]
