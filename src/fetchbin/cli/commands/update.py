"""Update command implementation."""

from __future__ import annotations

from argparse import Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fetchbin.config.models import FetchbinConfig

from fetchbin.cli.commands import Command
from fetchbin.cli.exit_codes import EXIT_FAILURE, EXIT_SUCCESS


class UpdateCommand(Command):
    """Updates every installed binary."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "update"

    def execute(self, args: Namespace, config: "FetchbinConfig | None" = None) -> int:
        """Execute the update command.

        Without --keep-going the first failure propagates and aborts the run.

        Args:
            args: Parsed command-line arguments.
            config: Loaded configuration.

        Returns:
            Exit code (1 if any binary failed with --keep-going).
        """
        report = self._installer(config).update(
            keep_going=getattr(args, "keep_going", False),
            runtimes=getattr(args, "runtimes", False),
        )

        for runtime in report.runtimes:
            self._console.print(f"Installed runtime {runtime}")
        for item in report.updated:
            self._console.print(
                f"Updated [bold]{item.name}[/bold] {item.old_version} -> {item.new_version}"
            )
        if not report.updated and not report.failed:
            self._console.print("All binaries are up to date.")
        if report.pruned:
            self._console.print(f"Pruned unused node versions: {', '.join(report.pruned)}")
        for name, message in report.failed:
            self._console.print(f"[red]Failed to update {name}:[/red] {message}")

        return EXIT_FAILURE if report.failed else EXIT_SUCCESS
