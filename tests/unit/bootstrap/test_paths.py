"""Tests for fetchbin.bootstrap.paths."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

from fetchbin.bootstrap.paths import (
    FETCHBIN_HOME_ENV,
    FetchbinPaths,
    get_fetchbin_home,
    sanitize_component,
)


class TestGetFetchbinHome:
    """Tests for data root resolution."""

    def test_env_override(self, tmp_path: Path) -> None:
        with patch.dict(os.environ, {FETCHBIN_HOME_ENV: str(tmp_path)}):
            assert get_fetchbin_home() == tmp_path

    def test_xdg_data_home(self, tmp_path: Path) -> None:
        with patch.dict(os.environ, {"XDG_DATA_HOME": str(tmp_path)}, clear=True):
            assert get_fetchbin_home() == tmp_path / "fetchbin"

    def test_explicit_override_wins(self, tmp_path: Path) -> None:
        with patch.dict(os.environ, {FETCHBIN_HOME_ENV: "/elsewhere"}):
            assert FetchbinPaths.default(tmp_path).home == tmp_path


class TestFetchbinPaths:
    """Tests for the data-root layout."""

    def test_layout(self, tmp_path: Path) -> None:
        paths = FetchbinPaths(tmp_path)
        assert paths.bin_dir == tmp_path / "bin"
        assert paths.manifest_path == tmp_path / "manifest.json"
        assert paths.runtime_manifest_path == tmp_path / "runtime.json"
        assert paths.cargo_home == tmp_path / "toolchains" / "cargo"
        assert paths.toolchain_dir("node", "20.0.0") == tmp_path / "toolchains" / "node" / "20.0.0"

    def test_store_path_sanitizes_identity(self, tmp_path: Path) -> None:
        paths = FetchbinPaths(tmp_path)
        assert paths.store_path("npm", "@scope/pkg", "1.0.0") == (
            tmp_path / "store" / "npm" / "scope__pkg" / "1.0.0"
        )
        assert sanitize_component("sharkdp/fd") == "sharkdp__fd"

    def test_ensure_directories(self, tmp_path: Path) -> None:
        paths = FetchbinPaths(tmp_path / "root")
        paths.ensure_directories()
        assert paths.bin_dir.is_dir()
        assert paths.store_dir.is_dir()
        assert paths.toolchains_dir.is_dir()
