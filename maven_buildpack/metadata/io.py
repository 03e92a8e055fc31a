"""Loading of buildpack metadata, build plans and platform bindings.

This module provides helpers for reading buildpack.toml and plan.toml
(TOML, YAML or JSON by extension) and for discovering platform bindings
mounted as directories of secret files.
"""

import json
import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from maven_buildpack.builds.models import Binding
from maven_buildpack.metadata.schema import BuildpackSchema, BuildPlanSchema

logger = logging.getLogger(__name__)

SERVICE_BINDING_ROOT_ENV = "SERVICE_BINDING_ROOT"

# Files in a binding directory that are not secret entries
BINDING_TYPE_FILE = "type"
BINDING_PROVIDER_FILE = "provider"


class MetadataLoadError(Exception):
    """Raised when buildpack metadata cannot be loaded."""

    def __init__(self, message: str, code: str = "metadata_error") -> None:
        super().__init__(message)
        self.code = code


def load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents as a dict."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict.

    Raises:
        ValueError: If the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping, got {type(data).__name__}")
    return data


def load_json(path: Path) -> dict[str, Any]:
    """Load a JSON file and return its contents as a dict.

    Raises:
        ValueError: If the document is not an object.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def load_document(path: Path) -> dict[str, Any]:
    """Load a TOML, YAML or JSON document, chosen by file extension.

    Args:
        path: Path to the document.

    Returns:
        Parsed document.

    Raises:
        MetadataLoadError: If the file is missing, unsupported or malformed.
    """
    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            return load_toml(path)
        if suffix in (".yaml", ".yml"):
            return load_yaml(path)
        if suffix == ".json":
            return load_json(path)
    except FileNotFoundError as e:
        raise MetadataLoadError(f"File not found: {path}", code="not_found") from e
    except (OSError, ValueError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise MetadataLoadError(
            f"Failed to parse {path}: {e}", code="parse_error"
        ) from e

    raise MetadataLoadError(
        f"Unsupported file extension: {suffix}. Use .toml, .yaml, .yml, or .json",
        code="unsupported_format",
    )


def load_buildpack(path: Path) -> BuildpackSchema:
    """Load and validate buildpack metadata (buildpack.toml).

    Raises:
        MetadataLoadError: If the file cannot be loaded or is invalid.
    """
    data = load_document(path)
    try:
        return BuildpackSchema.model_validate(data)
    except ValidationError as e:
        raise MetadataLoadError(
            f"Invalid buildpack metadata in {path}: {e}", code="validation"
        ) from e


def load_plan(path: Path) -> BuildPlanSchema:
    """Load and validate a buildpack plan (plan.toml).

    Raises:
        MetadataLoadError: If the file cannot be loaded or is invalid.
    """
    data = load_document(path)
    try:
        return BuildPlanSchema.model_validate(data)
    except ValidationError as e:
        raise MetadataLoadError(
            f"Invalid build plan in {path}: {e}", code="validation"
        ) from e


def bindings_root(platform_path: Path | None) -> Path | None:
    """Return the directory holding platform bindings.

    SERVICE_BINDING_ROOT wins over <platform>/bindings.
    """
    env_root = os.environ.get(SERVICE_BINDING_ROOT_ENV)
    if env_root:
        return Path(env_root)
    if platform_path is None:
        return None
    return platform_path / "bindings"


def load_binding(path: Path) -> Binding | None:
    """Load a binding from its directory.

    Args:
        path: Binding directory.

    Returns:
        Binding, or None if the directory has no type file.

    Raises:
        MetadataLoadError: If a binding file cannot be read.
    """
    type_file = path / BINDING_TYPE_FILE
    if not type_file.is_file():
        logger.warning(
            "Ignoring binding %s: no '%s' file", path.name, BINDING_TYPE_FILE
        )
        return None

    secret: dict[str, str] = {}
    try:
        binding_type = type_file.read_text(encoding="utf-8").strip()
        for entry in sorted(path.iterdir()):
            # Skip hidden entries such as Kubernetes '..data' links
            if entry.name.startswith("."):
                continue
            if entry.name in (BINDING_TYPE_FILE, BINDING_PROVIDER_FILE):
                continue
            if not entry.is_file():
                continue
            secret[entry.name] = entry.read_text(encoding="utf-8")
    except OSError as e:
        raise MetadataLoadError(
            f"Failed to read binding {path.name}: {e}", code="binding_error"
        ) from e

    return Binding(name=path.name, type=binding_type, path=path, secret=secret)


def load_bindings(root: Path | None) -> list[Binding]:
    """Discover bindings below a bindings root.

    Args:
        root: Bindings root directory (may be None or missing).

    Returns:
        List of bindings sorted by name.
    """
    if root is None or not root.is_dir():
        return []

    bindings: list[Binding] = []
    for path in sorted(root.iterdir()):
        if not path.is_dir() or path.name.startswith("."):
            continue
        binding = load_binding(path)
        if binding is not None:
            logger.debug("Found binding %s of type %s", binding.name, binding.type)
            bindings.append(binding)
    return bindings


__all__ = [
    "SERVICE_BINDING_ROOT_ENV",
    "MetadataLoadError",
    "bindings_root",
    "load_binding",
    "load_bindings",
    "load_buildpack",
    "load_document",
    "load_json",
    "load_plan",
    "load_toml",
    "load_yaml",
]
