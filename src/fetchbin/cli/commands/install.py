"""Install command implementation."""

from __future__ import annotations

import dataclasses
from argparse import Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fetchbin.config.models import FetchbinConfig

from fetchbin.cli.commands import Command
from fetchbin.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS
from fetchbin.core.errors import ParseError
from fetchbin.core.logging import get_logger
from fetchbin.core.models import GithubSourceConfig, PackageSpec

LOGGER = get_logger(__name__)


def build_package_spec(args: Namespace) -> PackageSpec:
    """Build the PackageSpec requested on the command line.

    Raises:
        ParseError: If the specifier is malformed, or --asset is used with a
            source other than github.
    """
    spec = PackageSpec.parse(args.spec)

    asset = getattr(args, "asset", None)
    if asset:
        if not isinstance(spec.source, GithubSourceConfig):
            raise ParseError(
                f"--asset is only supported for github sources, not {spec.source.source_type.value}"
            )
        spec.source = dataclasses.replace(spec.source, asset_pattern=asset)

    bin_name = getattr(args, "bin_name", None)
    if bin_name:
        spec.binary_name = bin_name
    return spec


class InstallCommand(Command):
    """Installs one binary."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "install"

    def execute(self, args: Namespace, config: "FetchbinConfig | None" = None) -> int:
        """Execute the install command.

        Args:
            args: Parsed command-line arguments.
            config: Loaded configuration.

        Returns:
            Exit code. Installation failures propagate as FetchbinError.
        """
        try:
            spec = build_package_spec(args)
        except ParseError as e:
            LOGGER.error(str(e))
            return EXIT_INVALID_USAGE

        result = self._installer(config).install(spec)

        self._console.print(
            f"Installed [bold]{result.name}[/bold] {result.entry.version} "
            f"({result.entry.ecosystem.value}) -> {result.link_path}"
        )
        if result.pruned:
            self._console.print(f"Pruned unused node versions: {', '.join(result.pruned)}")
        return EXIT_SUCCESS
