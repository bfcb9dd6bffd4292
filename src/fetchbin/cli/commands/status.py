"""Status command implementation."""

from __future__ import annotations

from argparse import Namespace
from typing import TYPE_CHECKING, Optional

from rich.table import Table

if TYPE_CHECKING:
    from fetchbin.config.models import FetchbinConfig

from fetchbin.bootstrap.platform import get_platform_info
from fetchbin.cli.commands import Command
from fetchbin.cli.exit_codes import EXIT_FAILURE, EXIT_SUCCESS
from fetchbin.core.manifest import RuntimeManifest


def _checksum_label(checksum_ok: Optional[bool]) -> str:
    if checksum_ok is None:
        return "-"
    return "[green]ok[/green]" if checksum_ok else "[red]modified[/red]"


class StatusCommand(Command):
    """Shows data root, toolchain pool and installed binary health."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "status"

    def execute(self, args: Namespace, config: "FetchbinConfig | None" = None) -> int:
        """Execute the status command.

        Returns:
            Exit code (1 if any installed binary is missing or modified).
        """
        platform_info = get_platform_info()
        runtime = RuntimeManifest.load(self._paths.runtime_manifest_path)

        self._console.print(f"fetchbin data root: {self._paths.home}")
        self._console.print(f"Platform: {platform_info.os}-{platform_info.arch}")
        node_versions = ", ".join(runtime.node.installed) or "none"
        self._console.print(
            f"Node: {node_versions} (default: {runtime.node.default or 'none'})"
        )
        self._console.print(f"pnpm: {runtime.pnpm.version or 'none'}")
        if config is not None and config.sources:
            self._console.print(f"Config: {', '.join(config.sources)}")

        statuses = self._installer(config).status()
        if not statuses:
            self._console.print("No binaries installed.")
            return EXIT_SUCCESS

        table = Table(title="Installed binaries")
        table.add_column("Name", style="bold")
        table.add_column("Version")
        table.add_column("Binary")
        table.add_column("Checksum")
        for item in statuses:
            table.add_row(
                item.name,
                item.entry.version,
                item.status.value,
                _checksum_label(item.checksum_ok),
            )
        self._console.print(table)

        return EXIT_SUCCESS if all(item.healthy for item in statuses) else EXIT_FAILURE
