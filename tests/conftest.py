"""Shared fixtures for fetchbin tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from fetchbin.bootstrap.paths import FetchbinPaths
from fetchbin.bootstrap.platform import PlatformInfo


@pytest.fixture
def linux_platform() -> PlatformInfo:
    return PlatformInfo(os="linux", arch="x86_64")


@pytest.fixture
def windows_platform() -> PlatformInfo:
    return PlatformInfo(os="windows", arch="x86_64")


@pytest.fixture
def fetchbin_paths(tmp_path: Path) -> FetchbinPaths:
    paths = FetchbinPaths(tmp_path / "data")
    paths.ensure_directories()
    return paths
