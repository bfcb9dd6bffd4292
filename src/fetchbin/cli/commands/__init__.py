"""CLI commands package.

This module provides the base Command class and exports all command implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from argparse import Namespace
from typing import TYPE_CHECKING, Optional

from rich.console import Console

from fetchbin.bootstrap.paths import FetchbinPaths

if TYPE_CHECKING:
    from fetchbin.config.models import FetchbinConfig
    from fetchbin.core.installer import Installer


class Command(ABC):
    """Base class for CLI commands.

    All CLI commands should inherit from this class and implement
    the execute method.

    Args:
        paths: Data-root layout the command operates on.
        console: Console for user-facing output (default: stdout).
    """

    def __init__(self, paths: FetchbinPaths, console: Optional[Console] = None):
        self._paths = paths
        self._console = console or Console()

    @property
    @abstractmethod
    def name(self) -> str:
        """Command identifier.

        Returns:
            String name of the command.
        """

    @abstractmethod
    def execute(self, args: Namespace, config: "FetchbinConfig | None" = None) -> int:
        """Execute the command.

        Args:
            args: Parsed command-line arguments.
            config: Loaded fetchbin configuration.

        Returns:
            Exit code (0 for success, non-zero for error).
        """

    def _installer(self, config: "FetchbinConfig | None") -> "Installer":
        # Deferred import keeps `fetchbin --version` light
        from fetchbin.core.installer import Installer

        return Installer(self._paths, config=config)


# Import command implementations for convenience
# ruff: noqa: E402
from fetchbin.cli.commands.install import InstallCommand
from fetchbin.cli.commands.list_binaries import ListCommand
from fetchbin.cli.commands.remove import RemoveCommand
from fetchbin.cli.commands.status import StatusCommand
from fetchbin.cli.commands.update import UpdateCommand

__all__ = [
    "Command",
    "InstallCommand",
    "ListCommand",
    "RemoveCommand",
    "StatusCommand",
    "UpdateCommand",
]
