"""CLI runner: parses arguments, loads configuration and dispatches commands."""

from __future__ import annotations

from argparse import Namespace
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Dict, Iterable, Optional

from rich.console import Console

from fetchbin.bootstrap.paths import FetchbinPaths
from fetchbin.cli.arguments import build_parser
from fetchbin.cli.commands import (
    Command,
    InstallCommand,
    ListCommand,
    RemoveCommand,
    StatusCommand,
    UpdateCommand,
)
from fetchbin.cli.exit_codes import (
    EXIT_DOWNLOAD_FAILURE,
    EXIT_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SUCCESS,
)
from fetchbin.config import ConfigError, load_config
from fetchbin.core.errors import (
    ChecksumError,
    FetchbinError,
    NetworkError,
    RuntimeDownloadError,
    UnsupportedPlatformError,
)
from fetchbin.core.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)

# Errors that mean an artifact could not be obtained or trusted
_DOWNLOAD_ERRORS = (ChecksumError, NetworkError, RuntimeDownloadError)


def get_version() -> str:
    try:
        return version("fetchbin")
    except PackageNotFoundError:
        # Fallback for editable installs that have not yet built metadata.
        from fetchbin import __version__

        return __version__


def cli_args_to_config_overrides(args: Namespace) -> Dict[str, Any]:
    """Convert CLI flags to a config override dict."""
    overrides: Dict[str, Any] = {}
    timeout = getattr(args, "timeout", None)
    if timeout is not None:
        overrides["network"] = {"timeout": timeout}
    return overrides


def exit_code_for(error: FetchbinError) -> int:
    """Map an error to the CLI exit code."""
    if isinstance(error, _DOWNLOAD_ERRORS):
        return EXIT_DOWNLOAD_FAILURE
    if isinstance(error, (ConfigError, UnsupportedPlatformError)):
        return EXIT_INVALID_USAGE
    return EXIT_FAILURE


class CLIRunner:
    """Runs one fetchbin invocation.

    Args:
        console: Console for command output (default: stdout).
    """

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    def _commands(self, paths: FetchbinPaths) -> Dict[str, Command]:
        commands = [
            InstallCommand(paths, self._console),
            ListCommand(paths, self._console),
            UpdateCommand(paths, self._console),
            RemoveCommand(paths, self._console),
            StatusCommand(paths, self._console),
        ]
        return {command.name: command for command in commands}

    def run(self, argv: Optional[Iterable[str]] = None) -> int:
        """Parse ``argv`` and execute the selected command.

        Returns:
            Exit code.
        """
        parser = build_parser()
        argv_list = list(argv) if argv is not None else None

        try:
            args = parser.parse_args(argv_list)
        except SystemExit as e:
            # argparse exits 0 for --help and 2 for usage errors
            return EXIT_SUCCESS if e.code in (0, None) else EXIT_INVALID_USAGE

        # Configure logging as early as possible.
        configure_logging(debug=args.debug, verbose=args.verbose, quiet=args.quiet)

        if args.version:
            self._console.print(f"fetchbin {get_version()}")
            return EXIT_SUCCESS

        if not args.command:
            parser.print_help()
            return EXIT_INVALID_USAGE

        paths = FetchbinPaths.default(args.data_dir)

        try:
            config = load_config(
                data_root=paths.home,
                cli_config_path=args.config,
                cli_overrides=cli_args_to_config_overrides(args),
            )
        except ConfigError as e:
            LOGGER.error(str(e))
            return EXIT_INVALID_USAGE

        command = self._commands(paths)[args.command]
        try:
            return command.execute(args, config)
        except FetchbinError as e:
            LOGGER.error(f"{command.name} failed: {e}")
            if args.debug:
                LOGGER.exception("Traceback:")
            return exit_code_for(e)
        except KeyboardInterrupt:
            LOGGER.error("Interrupted")
            return EXIT_FAILURE
