"""Build manifest generation.

Writes a JSON record of the decisions taken by one build invocation:
layers in order, the command and arguments of the application layer,
and the BOM entries.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from maven_buildpack import __version__

if TYPE_CHECKING:
    from maven_buildpack.builds.models import BuildConfiguration
    from maven_buildpack.builds.service import BuildResult

logger = logging.getLogger(__name__)

MANIFEST_VERSION = "1.0"


def generate_manifest(
    result: BuildResult,
    configuration: BuildConfiguration | None = None,
) -> dict[str, Any]:
    """Generate a build manifest.

    Args:
        result: Build result.
        configuration: Optional configuration the build ran with.

    Returns:
        Manifest dictionary suitable for JSON serialization.
    """
    manifest: dict[str, Any] = {
        "version": MANIFEST_VERSION,
        "generator": f"maven-buildpack {__version__}",
        "generated_at": datetime.now(timezone.utc).isoformat(),
        **result.to_dict(),
    }

    if configuration is not None:
        manifest["application_path"] = str(configuration.application_path)
        manifest["run_build"] = configuration.run_build
        if configuration.stack_id:
            manifest["stack_id"] = configuration.stack_id

    if result.wrapper is not None:
        manifest["wrapper"] = {
            "path": str(result.wrapper.path),
            "converted": result.wrapper.converted,
            "executable": result.wrapper.executable,
            "errors": list(result.wrapper.errors),
        }

    return manifest


def write_manifest(
    manifest: dict[str, Any],
    output_path: Path,
) -> Path:
    """Write a build manifest as sorted, indented JSON.

    Parent directories are created as needed.

    Args:
        manifest: Manifest from generate_manifest().
        output_path: Destination file.

    Returns:
        The destination file.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(manifest, indent=2, sort_keys=True)
    output_path.write_text(text + "\n", encoding="utf-8")

    layer_names = [layer["name"] for layer in manifest.get("layers", [])]
    logger.info(
        "Wrote build manifest (%s) to %s", ", ".join(layer_names), output_path
    )
    return output_path


__all__ = [
    "MANIFEST_VERSION",
    "generate_manifest",
    "write_manifest",
]
