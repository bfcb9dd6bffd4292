"""Running external install helpers (pnpm, cargo-binstall)."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from fetchbin.core.errors import InstallHelperError
from fetchbin.core.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_HELPER_TIMEOUT = 900


def prepend_path(directory: Path, env: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Copy of ``env`` (default: os.environ) with ``directory`` first on PATH."""
    result = dict(os.environ if env is None else env)
    current = result.get("PATH", "")
    result["PATH"] = os.pathsep.join([str(directory), current]) if current else str(directory)
    return result


def run_helper(
    cmd: List[str],
    tool_name: str,
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
    timeout: int = DEFAULT_HELPER_TIMEOUT,
) -> subprocess.CompletedProcess:
    """Run a helper to completion and fail loudly on a non-zero exit.

    Args:
        cmd: Command and arguments.
        tool_name: Helper name used in log and error messages.
        cwd: Working directory.
        env: Full environment for the child (default: inherited).
        timeout: Seconds before the helper is killed.

    Returns:
        The completed process with captured text output.

    Raises:
        InstallHelperError: If the helper cannot start, times out or exits non-zero.
    """
    LOGGER.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            env=env,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise InstallHelperError(tool_name, f"timed out after {timeout} seconds") from e
    except OSError as e:
        raise InstallHelperError(tool_name, f"failed to run {cmd[0]}: {e}") from e

    for line in result.stderr.splitlines():
        LOGGER.debug(f"[{tool_name}] {line}")

    if result.returncode != 0:
        details = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
        raise InstallHelperError(tool_name, details)
    return result
