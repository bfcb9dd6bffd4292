"""Integration tests against the public registries.

These tests resolve real packages over the network and download nothing.
They are deselected by default.

Run with: pytest -m integration tests/integration/test_live_registries.py -v
"""

from __future__ import annotations

import pytest

from fetchbin.core.models import PackageSpec
from fetchbin.core.versions import parse_version
from fetchbin.sources import CargoSource, GithubSource, NpmSource

pytestmark = pytest.mark.integration


class TestLiveResolution:
    """Resolution against npm, crates.io and GitHub."""

    def test_npm_exact_version(self) -> None:
        candidates = NpmSource().resolve(PackageSpec.parse("npm:typescript@5.4.5"))
        assert [c.version for c in candidates] == ["5.4.5"]

    def test_npm_range_is_newest_first(self) -> None:
        candidates = NpmSource().resolve(PackageSpec.parse("npm:prettier@^3"))
        versions = [parse_version(c.version) for c in candidates]
        assert versions == sorted(versions, reverse=True)
        assert all(v.major == 3 for v in versions)

    def test_cargo_latest(self) -> None:
        candidates = CargoSource().resolve(PackageSpec.parse("cargo:ripgrep"))
        assert len(candidates) == 1
        assert parse_version(candidates[0].version) is not None

    def test_github_release_with_platform_asset(self) -> None:
        candidates = GithubSource().resolve(PackageSpec.parse("github:sharkdp/fd@10.1.0"))
        assert candidates[0].version.lstrip("v") == "10.1.0"
