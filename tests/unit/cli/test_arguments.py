"""Tests for fetchbin.cli.arguments."""

from __future__ import annotations

from pathlib import Path

import pytest

from fetchbin.cli.arguments import build_parser


class TestBuildParser:
    """Tests for the argument parser."""

    def test_install_options(self) -> None:
        args = build_parser().parse_args(
            ["install", "github:sharkdp/fd@10.1.0", "--asset", "*musl*", "--bin", "fd"]
        )
        assert args.command == "install"
        assert args.spec == "github:sharkdp/fd@10.1.0"
        assert args.asset == "*musl*"
        assert args.bin_name == "fd"

    def test_global_options(self) -> None:
        args = build_parser().parse_args(
            ["--data-dir", "/tmp/fb", "--timeout", "5", "--config", "c.yml", "-v", "list"]
        )
        assert args.data_dir == Path("/tmp/fb")
        assert args.timeout == 5.0
        assert args.config == Path("c.yml")
        assert args.verbose is True
        assert args.command == "list"

    def test_update_flags(self) -> None:
        args = build_parser().parse_args(["update", "--runtimes", "--keep-going"])
        assert args.runtimes is True
        assert args.keep_going is True

    def test_update_defaults(self) -> None:
        args = build_parser().parse_args(["update"])
        assert args.runtimes is False
        assert args.keep_going is False

    def test_remove_requires_name(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["remove"])

    def test_no_command(self) -> None:
        assert build_parser().parse_args([]).command is None
