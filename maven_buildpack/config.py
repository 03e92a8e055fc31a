"""Configuration settings for maven_buildpack.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence:
environment variables > buildpack.toml configuration defaults > built-in defaults.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

ENV_PREFIX = "BP_MAVEN_"
LOG_LEVEL_ENV = "BP_LOG_LEVEL"

DEFAULT_BUILD_ARGUMENTS = "-Dmaven.test.skip=true --no-transfer-progress package"

# Boolean flag spellings; anything else is read as false with a warning
TRUE_VALUES = frozenset({"1", "t", "true", "y", "yes", "on"})
FALSE_VALUES = frozenset({"", "0", "f", "false", "n", "no", "off"})

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Buildpack settings.

    Settings are loaded from environment variables with the BP_MAVEN_ prefix.
    Defaults declared in buildpack.toml are passed as init values and lose
    against the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        populate_by_name=True,
    )

    build_arguments: str = Field(
        default=DEFAULT_BUILD_ARGUMENTS,
        description="Arguments passed to the Maven build, split on whitespace",
    )
    pom_file: str = Field(
        default="",
        description="POM file passed to Maven via --file (empty = Maven default)",
    )
    settings_path: str = Field(
        default="",
        description="Path to a settings.xml used when no maven binding exists",
    )
    daemon_enabled: bool = Field(
        default=False,
        description="Use the Maven daemon (mvnd) instead of Maven",
    )
    version: str = Field(
        default="",
        description="Version constraint for the Maven distribution",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        validation_alias=LOG_LEVEL_ENV,
        description="Logging level",
    )

    @field_validator("daemon_enabled", mode="before")
    @classmethod
    def validate_daemon_enabled(cls, v: Any) -> Any:
        """Parse the flag leniently; unrecognised strings disable the daemon."""
        if not isinstance(v, str):
            return v
        value = v.strip().lower()
        if value in TRUE_VALUES:
            return True
        if value not in FALSE_VALUES:
            logger.warning(
                "Unable to parse %sDAEMON_ENABLED=%r as a boolean, using false",
                ENV_PREFIX,
                v,
            )
        return False

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> Any:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over buildpack.toml defaults passed as init values
        return (env_settings, init_settings)


def configuration_defaults(
    configurations: Iterable[Mapping[str, Any]],
) -> dict[str, Any]:
    """Map buildpack.toml configuration entries to settings field defaults.

    Entries are ``{"name": "BP_MAVEN_...", "default": "..."}``. Entries that
    do not correspond to a settings field, or carry no default, are ignored.

    Args:
        configurations: Configuration entries from buildpack metadata.

    Returns:
        Dictionary of field name to default value.
    """
    fields = set(Settings.model_fields)
    defaults: dict[str, Any] = {}
    for entry in configurations:
        name = str(entry.get("name", ""))
        if "default" not in entry:
            continue
        if name == LOG_LEVEL_ENV:
            defaults["log_level"] = entry["default"]
            continue
        if not name.startswith(ENV_PREFIX):
            continue
        field_name = name[len(ENV_PREFIX) :].lower()
        if field_name in fields:
            defaults[field_name] = entry["default"]
    return defaults


def get_settings(
    configurations: Iterable[Mapping[str, Any]] | None = None,
) -> Settings:
    """Load settings from the environment and buildpack defaults.

    Args:
        configurations: Optional buildpack.toml configuration entries.

    Returns:
        Settings instance.
    """
    if configurations is None:
        return Settings()
    return Settings(**configuration_defaults(configurations))


def render_settings_json(settings: Settings | None = None) -> str:
    """Render the effective buildpack settings as sorted JSON.

    Args:
        settings: Settings to render; loaded from the environment if omitted.

    Returns:
        JSON object keyed by settings field name.
    """
    if settings is None:
        settings = get_settings()
    return json.dumps(settings.model_dump(mode="json"), indent=2, sort_keys=True)


__all__ = [
    "DEFAULT_BUILD_ARGUMENTS",
    "Settings",
    "configuration_defaults",
    "get_settings",
    "render_settings_json",
]
