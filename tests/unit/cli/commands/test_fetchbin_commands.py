"""Tests for the fetchbin CLI commands."""

from __future__ import annotations

import io
from argparse import Namespace
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from fetchbin.bootstrap.paths import FetchbinPaths
from fetchbin.bootstrap.platform import PlatformInfo
from fetchbin.bootstrap.validation import ToolStatus
from fetchbin.cli.commands import (
    InstallCommand,
    ListCommand,
    RemoveCommand,
    StatusCommand,
    UpdateCommand,
)
from fetchbin.cli.commands.install import build_package_spec
from fetchbin.cli.exit_codes import EXIT_FAILURE, EXIT_INVALID_USAGE, EXIT_SUCCESS
from fetchbin.config.models import FetchbinConfig
from fetchbin.core.errors import NotInstalledError, ParseError
from fetchbin.core.installer import (
    BinaryStatus,
    InstallResult,
    UpdatedBinary,
    UpdateReport,
)
from fetchbin.core.manifest import (
    CargoSourceSpec,
    GithubSourceSpec,
    InstalledBinary,
    NpmSourceSpec,
)
from fetchbin.core.models import GithubSourceConfig

INSTALLER = "fetchbin.core.installer.Installer"


def entry(source, binary: str) -> InstalledBinary:
    return InstalledBinary(source=source, binary=binary, sha256="0" * 64)


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(output: io.StringIO) -> Console:
    return Console(file=output, width=200)


class TestBuildPackageSpec:
    """Tests for turning install arguments into a PackageSpec."""

    def test_asset_applies_to_github(self) -> None:
        spec = build_package_spec(Namespace(spec="github:sharkdp/fd", asset="*musl*", bin_name=None))
        assert spec.source == GithubSourceConfig(repo="sharkdp/fd", asset_pattern="*musl*")

    def test_asset_rejected_for_cargo(self) -> None:
        with pytest.raises(ParseError):
            build_package_spec(Namespace(spec="cargo:ripgrep", asset="*linux*", bin_name=None))

    def test_bin_name(self) -> None:
        spec = build_package_spec(Namespace(spec="npm:typescript@5", asset=None, bin_name="tsc"))
        assert spec.binary_name == "tsc"
        assert spec.version_req == "5"


class TestInstallCommand:
    """Tests for InstallCommand."""

    def test_prints_result(
        self, fetchbin_paths: FetchbinPaths, console: Console, output: io.StringIO
    ) -> None:
        result = InstallResult(
            name="fd",
            entry=entry(GithubSourceSpec(repo="sharkdp/fd", asset="platform", version="10.1.0"), "fd"),
            link_path=fetchbin_paths.bin_dir / "fd",
            pruned=["18.0.0"],
        )
        with patch(INSTALLER) as mock_installer:
            mock_installer.return_value.install.return_value = result
            code = InstallCommand(fetchbin_paths, console).execute(
                Namespace(spec="github:sharkdp/fd", asset=None, bin_name=None), FetchbinConfig()
            )

        assert code == EXIT_SUCCESS
        text = output.getvalue()
        assert "Installed fd 10.1.0 (github)" in text
        assert "Pruned unused node versions: 18.0.0" in text

    def test_invalid_spec(self, fetchbin_paths: FetchbinPaths, console: Console) -> None:
        with patch(INSTALLER) as mock_installer:
            code = InstallCommand(fetchbin_paths, console).execute(
                Namespace(spec="pip:requests", asset=None, bin_name=None)
            )
        assert code == EXIT_INVALID_USAGE
        mock_installer.assert_not_called()


class TestListCommand:
    """Tests for ListCommand."""

    def test_table(
        self, fetchbin_paths: FetchbinPaths, console: Console, output: io.StringIO
    ) -> None:
        entries = [
            ("rg", entry(CargoSourceSpec(crate_name="ripgrep", version="14.1.0"), "rg")),
            ("tsc", entry(NpmSourceSpec(package="typescript", version="5.4.5"), "tsc")),
        ]
        with patch(INSTALLER) as mock_installer:
            mock_installer.return_value.list_entries.return_value = entries
            code = ListCommand(fetchbin_paths, console).execute(Namespace())

        assert code == EXIT_SUCCESS
        text = output.getvalue()
        assert "ripgrep" in text
        assert "14.1.0" in text
        assert "typescript" in text


class TestRemoveCommand:
    """Tests for RemoveCommand."""

    def test_removes(
        self, fetchbin_paths: FetchbinPaths, console: Console, output: io.StringIO
    ) -> None:
        with patch(INSTALLER) as mock_installer:
            mock_installer.return_value.remove.return_value = entry(
                CargoSourceSpec(crate_name="ripgrep", version="14.1.0"), "rg"
            )
            code = RemoveCommand(fetchbin_paths, console).execute(Namespace(name="rg"))
        assert code == EXIT_SUCCESS
        assert "Removed rg 14.1.0" in output.getvalue()

    def test_not_installed(self, fetchbin_paths: FetchbinPaths, console: Console) -> None:
        with patch(INSTALLER) as mock_installer:
            mock_installer.return_value.remove.side_effect = NotInstalledError("ghost")
            code = RemoveCommand(fetchbin_paths, console).execute(Namespace(name="ghost"))
        assert code == EXIT_FAILURE


class TestUpdateCommand:
    """Tests for UpdateCommand."""

    def test_up_to_date(
        self, fetchbin_paths: FetchbinPaths, console: Console, output: io.StringIO
    ) -> None:
        with patch(INSTALLER) as mock_installer:
            mock_installer.return_value.update.return_value = UpdateReport(unchanged=["rg"])
            code = UpdateCommand(fetchbin_paths, console).execute(
                Namespace(keep_going=False, runtimes=False)
            )
        assert code == EXIT_SUCCESS
        assert "All binaries are up to date." in output.getvalue()

    def test_reports_updates_and_failures(
        self, fetchbin_paths: FetchbinPaths, console: Console, output: io.StringIO
    ) -> None:
        report = UpdateReport(
            updated=[UpdatedBinary(name="rg", old_version="14.0.0", new_version="14.1.0")],
            failed=[("fd", "network error")],
        )
        with patch(INSTALLER) as mock_installer:
            mock_installer.return_value.update.return_value = report
            code = UpdateCommand(fetchbin_paths, console).execute(
                Namespace(keep_going=True, runtimes=True)
            )

        mock_installer.return_value.update.assert_called_once_with(keep_going=True, runtimes=True)
        assert code == EXIT_FAILURE
        text = output.getvalue()
        assert "Updated rg 14.0.0 -> 14.1.0" in text
        assert "Failed to update fd: network error" in text


class TestStatusCommand:
    """Tests for StatusCommand."""

    def _run(self, paths: FetchbinPaths, console: Console, statuses) -> int:
        with patch(INSTALLER) as mock_installer, patch(
            "fetchbin.cli.commands.status.get_platform_info",
            return_value=PlatformInfo(os="linux", arch="x86_64"),
        ):
            mock_installer.return_value.status.return_value = statuses
            return StatusCommand(paths, console).execute(Namespace(), FetchbinConfig())

    def test_no_binaries(
        self, fetchbin_paths: FetchbinPaths, console: Console, output: io.StringIO
    ) -> None:
        assert self._run(fetchbin_paths, console, []) == EXIT_SUCCESS
        text = output.getvalue()
        assert "Platform: linux-x86_64" in text
        assert "No binaries installed." in text

    def test_modified_binary_fails(
        self, fetchbin_paths: FetchbinPaths, console: Console, output: io.StringIO
    ) -> None:
        status = BinaryStatus(
            name="fd",
            entry=entry(GithubSourceSpec(repo="sharkdp/fd", asset="platform", version="10.1.0"), "fd"),
            link_path=fetchbin_paths.bin_dir / "fd",
            status=ToolStatus.PRESENT,
            checksum_ok=False,
        )
        assert self._run(fetchbin_paths, console, [status]) == EXIT_FAILURE
        assert "modified" in output.getvalue()

    def test_healthy_binary(self, fetchbin_paths: FetchbinPaths, console: Console) -> None:
        status = BinaryStatus(
            name="fd",
            entry=entry(GithubSourceSpec(repo="sharkdp/fd", asset="platform", version="10.1.0"), "fd"),
            link_path=fetchbin_paths.bin_dir / "fd",
            status=ToolStatus.PRESENT,
            checksum_ok=True,
        )
        assert self._run(fetchbin_paths, console, [status]) == EXIT_SUCCESS
