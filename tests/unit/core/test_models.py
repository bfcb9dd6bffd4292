"""Tests for fetchbin.core.models."""

from __future__ import annotations

import pytest

from fetchbin.core.errors import ParseError
from fetchbin.core.models import (
    CargoSourceConfig,
    GithubSourceConfig,
    NpmSourceConfig,
    PackageSpec,
    SourceType,
)


class TestPackageSpecParse:
    """Tests for PackageSpec.parse."""

    def test_npm_without_version(self) -> None:
        spec = PackageSpec.parse("npm:prettier")
        assert spec.name == "prettier"
        assert spec.source == NpmSourceConfig(package="prettier")
        assert spec.version_req is None

    def test_scoped_npm_with_version(self) -> None:
        spec = PackageSpec.parse("npm:@scope/pkg@^1")
        assert spec.name == "@scope/pkg"
        assert spec.source == NpmSourceConfig(package="@scope/pkg")
        assert spec.version_req == "^1"

    def test_scoped_npm_without_version(self) -> None:
        spec = PackageSpec.parse("npm:@biomejs/biome")
        assert spec.name == "@biomejs/biome"
        assert spec.version_req is None

    def test_cargo(self) -> None:
        spec = PackageSpec.parse("cargo:ripgrep@14.1.0")
        assert spec.source == CargoSourceConfig(crate_name="ripgrep")
        assert spec.version_req == "14.1.0"

    def test_github(self) -> None:
        spec = PackageSpec.parse("github:BurntSushi/ripgrep@v14.1.0")
        assert spec.source == GithubSourceConfig(repo="BurntSushi/ripgrep")
        assert spec.source.source_type is SourceType.GITHUB
        assert spec.version_req == "v14.1.0"

    @pytest.mark.parametrize(
        "value",
        ["prettier", "npm:", "pip:requests", "github:ripgrep"],
    )
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ParseError):
            PackageSpec.parse(value)


class TestPackageSpecHelpers:
    """Tests for PackageSpec helpers."""

    def test_default_binary_name(self) -> None:
        assert PackageSpec.parse("github:sharkdp/fd").default_binary_name == "fd"
        assert PackageSpec.parse("npm:@scope/tool").default_binary_name == "tool"
        spec = PackageSpec.parse("github:sharkdp/fd")
        spec.binary_name = "fdfind"
        assert spec.default_binary_name == "fdfind"

    def test_str_round_trips_input(self) -> None:
        assert str(PackageSpec.parse("npm:@scope/pkg@^1")) == "npm:@scope/pkg@^1"
