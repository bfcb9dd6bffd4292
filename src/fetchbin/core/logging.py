"""Logging helpers for fetchbin.

All modules obtain their logger through :func:`get_logger` so the CLI can
configure verbosity for the whole ``fetchbin`` namespace in one place.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "fetchbin"

_DEFAULT_FORMAT = "%(levelname)s: %(message)s"
_DEBUG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a logger nested under the ``fetchbin`` namespace.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        Configured logger instance.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure the fetchbin root logger.

    Precedence: quiet > debug > verbose > default (warnings only).

    Args:
        debug: Enable debug logging with timestamps and logger names.
        verbose: Enable info-level logging.
        quiet: Only show errors.
        stream: Output stream (default: stderr).
    """
    if quiet:
        level = logging.ERROR
    elif debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    # Replace handlers so repeated calls (e.g. in tests) don't duplicate output
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_DEBUG_FORMAT if debug else _DEFAULT_FORMAT))
    root.addHandler(handler)
    root.propagate = False
