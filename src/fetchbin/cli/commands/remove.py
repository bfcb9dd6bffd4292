"""Remove command implementation."""

from __future__ import annotations

from argparse import Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fetchbin.config.models import FetchbinConfig

from fetchbin.cli.commands import Command
from fetchbin.cli.exit_codes import EXIT_FAILURE, EXIT_SUCCESS
from fetchbin.core.errors import NotInstalledError
from fetchbin.core.logging import get_logger

LOGGER = get_logger(__name__)


class RemoveCommand(Command):
    """Removes one installed binary."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "remove"

    def execute(self, args: Namespace, config: "FetchbinConfig | None" = None) -> int:
        try:
            entry = self._installer(config).remove(args.name)
        except NotInstalledError as e:
            LOGGER.error(str(e))
            return EXIT_FAILURE

        self._console.print(f"Removed [bold]{entry.binary}[/bold] {entry.version}")
        return EXIT_SUCCESS
