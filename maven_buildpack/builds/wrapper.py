"""Maven wrapper normalization.

Wrappers checked in from Windows machines often carry CRLF line endings and
lose their executable bit. Both are repaired on a best-effort basis: failures
are reported in the returned result and never raised, so the build proceeds
with the wrapper in whatever state it is in.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

WRAPPER_MODE = 0o755


@dataclass
class WrapperNormalizationResult:
    """Outcome of a wrapper normalization attempt.

    Attributes:
        path: Wrapper script path.
        converted: CRLF line endings were rewritten to LF.
        executable: The executable mode was applied.
        errors: Messages for the steps that failed.
    """

    path: Path
    converted: bool = False
    executable: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def convert_line_endings(path: Path) -> bool:
    """Rewrite CRLF line endings to LF in place.

    The file is left untouched when it contains no CRLF. Converted content
    goes to a sibling file that then replaces the original; a failed write
    leaves the original in place.

    Args:
        path: File to convert.

    Returns:
        True if the file was rewritten.

    Raises:
        OSError: If the file cannot be read or written.
    """
    with path.open("rb") as f:
        content = f.read()

    if b"\r\n" not in content:
        return False

    fd, name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    converted = Path(name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content.replace(b"\r\n", b"\n"))
        shutil.copymode(path, converted)
        os.replace(converted, path)
    except OSError:
        converted.unlink(missing_ok=True)
        raise
    return True


def normalize_wrapper(path: Path) -> WrapperNormalizationResult:
    """Normalize line endings and make the wrapper executable.

    Args:
        path: Wrapper script path.

    Returns:
        WrapperNormalizationResult describing what was done and what failed.
    """
    result = WrapperNormalizationResult(path=path)

    # Symlinks to devices and other special files are left alone
    if not path.is_file():
        result.errors.append(f"{path} is not a regular file")
        return result

    try:
        result.converted = convert_line_endings(path)
        if result.converted:
            logger.debug("Converted CRLF line endings in %s", path)
    except OSError as e:
        result.errors.append(f"Unable to convert line endings of {path}: {e}")

    try:
        path.chmod(WRAPPER_MODE)
        result.executable = True
    except OSError as e:
        result.errors.append(f"Unable to make {path} executable: {e}")

    return result


__all__ = [
    "WRAPPER_MODE",
    "WrapperNormalizationResult",
    "convert_line_endings",
    "normalize_wrapper",
]
