"""Binary validation helpers.

Checks that installed artifacts are present and executable, and marks
freshly written files executable.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

from fetchbin.core.logging import get_logger

LOGGER = get_logger(__name__)


class ToolStatus(str, Enum):
    """Status of a binary on disk."""

    PRESENT = "present"
    MISSING = "missing"
    NOT_EXECUTABLE = "not_executable"


def validate_binary(path: Path) -> ToolStatus:
    """Validate a single binary file.

    Args:
        path: Path to the binary file.

    Returns:
        ToolStatus indicating whether the binary is present and executable.
    """
    if not path.exists():
        return ToolStatus.MISSING

    if not os.access(path, os.X_OK):
        return ToolStatus.NOT_EXECUTABLE

    return ToolStatus.PRESENT


def set_executable(path: Path) -> None:
    """Mark a file as executable (rwxr-xr-x). No-op on Windows."""
    if os.name == "nt":
        return
    path.chmod(0o755)
    LOGGER.debug(f"Marked {path} executable")
