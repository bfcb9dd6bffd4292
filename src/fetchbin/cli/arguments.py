"""Argument parser construction for the fetchbin CLI."""

from __future__ import annotations

import argparse
from pathlib import Path


def _add_global_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show fetchbin version and exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (info-level) logging.",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Reduce logging output to errors only.",
    )
    parser.add_argument(
        "--data-dir",
        metavar="PATH",
        type=Path,
        help="Data root (default: $FETCHBIN_HOME or ~/.local/share/fetchbin).",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        type=Path,
        help="Path to a config file (in addition to <data-root>/config.yml).",
    )
    parser.add_argument(
        "--timeout",
        metavar="SECONDS",
        type=float,
        help="Network timeout per request (overrides network.timeout).",
    )


def _build_install_parser(subparsers: argparse._SubParsersAction) -> None:
    install = subparsers.add_parser(
        "install",
        help="Install a binary from npm, crates.io or GitHub releases.",
        description=(
            "Install a binary. SPEC is <source>:<name>[@<version>], e.g. "
            "npm:prettier@^3, cargo:ripgrep, github:BurntSushi/ripgrep@14.1.0."
        ),
    )
    install.add_argument(
        "spec",
        metavar="SPEC",
        help="Package specifier: npm:<package>, cargo:<crate> or github:<owner>/<repo>.",
    )
    install.add_argument(
        "--asset",
        metavar="PATTERN",
        help="Release asset pattern (glob or substring). GitHub sources only.",
    )
    install.add_argument(
        "--bin",
        metavar="NAME",
        dest="bin_name",
        help="Executable to install when the package provides several.",
    )


def _build_update_parser(subparsers: argparse._SubParsersAction) -> None:
    update = subparsers.add_parser(
        "update",
        help="Update all installed binaries to their newest versions.",
    )
    update.add_argument(
        "--runtimes",
        action="store_true",
        help="Also switch the pooled node default to the current LTS.",
    )
    update.add_argument(
        "--keep-going",
        action="store_true",
        help="Continue with the remaining binaries when one fails.",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="fetchbin",
        description="fetchbin - Fetch runnable binaries from npm, crates.io and GitHub releases.",
    )
    _add_global_options(parser)

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    _build_install_parser(subparsers)
    subparsers.add_parser("list", help="List installed binaries.")
    _build_update_parser(subparsers)

    remove = subparsers.add_parser("remove", help="Remove an installed binary.")
    remove.add_argument("name", metavar="NAME", help="Installed binary name.")

    subparsers.add_parser(
        "status",
        help="Check that installed binaries are present and unmodified.",
    )

    return parser
