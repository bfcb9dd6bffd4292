"""List command implementation."""

from __future__ import annotations

from argparse import Namespace
from typing import TYPE_CHECKING

from rich.table import Table

if TYPE_CHECKING:
    from fetchbin.config.models import FetchbinConfig

from fetchbin.cli.commands import Command
from fetchbin.cli.exit_codes import EXIT_SUCCESS
from fetchbin.core.manifest import source_spec_identity


class ListCommand(Command):
    """Lists installed binaries."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "list"

    def execute(self, args: Namespace, config: "FetchbinConfig | None" = None) -> int:
        """Print each binary's name, version and ecosystem.

        Returns:
            Exit code (always 0 for list).
        """
        entries = self._installer(config).list_entries()
        if not entries:
            self._console.print("No binaries installed.")
            return EXIT_SUCCESS

        table = Table(title="Installed binaries")
        table.add_column("Name", style="bold")
        table.add_column("Version")
        table.add_column("Source")
        table.add_column("Package")
        for name, entry in entries:
            table.add_row(
                name,
                entry.version,
                entry.ecosystem.value,
                source_spec_identity(entry.source),
            )
        self._console.print(table)
        return EXIT_SUCCESS
