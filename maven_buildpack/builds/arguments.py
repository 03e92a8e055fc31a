"""Maven argument composition.

Composes the argument vector passed to Maven. Synthesized flags come first
in a fixed order, followed by the user's build arguments verbatim:

    -Dsettings.security=<path> --settings=<path> --batch-mode --file <pom> <user...>
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from maven_buildpack.builds.models import BuildConfiguration, ResolvedSettings

BATCH_MODE_FLAG = "--batch-mode"
BATCH_MODE_TOKENS = frozenset({BATCH_MODE_FLAG, "-B"})
FILE_FLAG = "--file"
SETTINGS_FLAG = "--settings"
SETTINGS_SECURITY_PROPERTY = "-Dsettings.security"


def tokenize_arguments(raw: str | None) -> list[str]:
    """Split a raw build-argument string on whitespace.

    Args:
        raw: Argument string (e.g., BP_MAVEN_BUILD_ARGUMENTS).

    Returns:
        List of tokens in their original order.
    """
    if not raw:
        return []
    return raw.split()


def has_batch_mode(tokens: list[str]) -> bool:
    """Check whether the user already asked for batch mode.

    Matches whole tokens only, so unrelated flags that merely contain
    the text do not count.
    """
    return any(token in BATCH_MODE_TOKENS for token in tokens)


def compose_arguments(
    settings: ResolvedSettings,
    configuration: BuildConfiguration,
) -> list[str]:
    """Compose the Maven argument vector.

    Args:
        settings: Resolved settings files.
        configuration: Build configuration (POM override, user arguments, TTY).

    Returns:
        Arguments as list of strings.
    """
    user_args = tokenize_arguments(configuration.build_arguments)
    args: list[str] = []

    if settings.security_path is not None:
        args.append(f"{SETTINGS_SECURITY_PROPERTY}={settings.security_path}")

    if settings.settings_path is not None:
        args.append(f"{SETTINGS_FLAG}={settings.settings_path}")

    # Maven prompts and renders progress when attached to a terminal
    if not configuration.tty and not has_batch_mode(user_args):
        args.append(BATCH_MODE_FLAG)

    if configuration.pom_file:
        args.extend([FILE_FLAG, configuration.pom_file])

    args.extend(user_args)
    return args


__all__ = [
    "BATCH_MODE_FLAG",
    "BATCH_MODE_TOKENS",
    "FILE_FLAG",
    "SETTINGS_FLAG",
    "SETTINGS_SECURITY_PROPERTY",
    "compose_arguments",
    "has_batch_mode",
    "tokenize_arguments",
]
