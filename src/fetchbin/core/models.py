"""Request-time data model.

A :class:`PackageSpec` is what the user asked for; resolvers turn it into
:class:`ResolvedVersion` candidates and fetch one of them into a
:class:`FetchedBinary`. The persisted exact-version forms live in
:mod:`fetchbin.core.manifest`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import ClassVar, Optional, Tuple, Union

from fetchbin.core.errors import ParseError


class SourceType(str, Enum):
    """Ecosystems a package can come from."""

    NPM = "npm"
    CARGO = "cargo"
    GITHUB = "github"


@dataclass(frozen=True)
class NpmSourceConfig:
    """A package on the npm registry."""

    package: str

    source_type: ClassVar[SourceType] = SourceType.NPM

    @property
    def identity(self) -> str:
        return self.package


@dataclass(frozen=True)
class CargoSourceConfig:
    """A crate on crates.io."""

    crate_name: str

    source_type: ClassVar[SourceType] = SourceType.CARGO

    @property
    def identity(self) -> str:
        return self.crate_name


@dataclass(frozen=True)
class GithubSourceConfig:
    """Release assets of a GitHub repository (``owner/repo``)."""

    repo: str
    asset_pattern: Optional[str] = None

    source_type: ClassVar[SourceType] = SourceType.GITHUB

    @property
    def identity(self) -> str:
        return self.repo


SourceConfig = Union[NpmSourceConfig, CargoSourceConfig, GithubSourceConfig]


def _split_version(value: str) -> Tuple[str, Optional[str]]:
    # The first character of a scoped npm name is '@', so only look after it
    at = value.rfind("@")
    if at <= 0:
        return value, None
    return value[:at], value[at + 1 :] or None


@dataclass
class PackageSpec:
    """A requested install.

    Attributes:
        name: Package name as given (crate, npm package or ``owner/repo``).
        source: Where the package comes from.
        version_req: Exact version, semver range or ``latest``; None means latest.
        binary_name: Executable to install when the package ships several.
    """

    name: str
    source: SourceConfig
    version_req: Optional[str] = None
    binary_name: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> "PackageSpec":
        """Parse ``<source>:<name>[@<requirement>]``.

        Args:
            value: Specifier such as ``npm:@scope/pkg@^1`` or ``github:owner/repo``.

        Returns:
            Parsed PackageSpec.

        Raises:
            ParseError: If the source prefix is missing or unknown, or the name is empty.
        """
        source_part, sep, rest = value.strip().partition(":")
        if not sep:
            raise ParseError(f"missing source prefix in '{value}' (expected npm:, cargo: or github:)")

        name, version_req = _split_version(rest)
        if not name:
            raise ParseError(f"missing package name in '{value}'")

        source: SourceConfig
        if source_part == SourceType.NPM.value:
            source = NpmSourceConfig(package=name)
        elif source_part == SourceType.CARGO.value:
            source = CargoSourceConfig(crate_name=name)
        elif source_part == SourceType.GITHUB.value:
            if "/" not in name:
                raise ParseError(f"github source must be owner/repo, got '{name}'")
            source = GithubSourceConfig(repo=name)
        else:
            raise ParseError(f"unknown source type: {source_part}")

        return cls(name=name, source=source, version_req=version_req)

    @property
    def default_binary_name(self) -> str:
        """Binary name used when none was requested: the last path segment of the name."""
        return self.binary_name or self.name.rsplit("/", 1)[-1]

    def __str__(self) -> str:
        text = f"{self.source.source_type.value}:{self.name}"
        if self.version_req:
            text += f"@{self.version_req}"
        return text


@dataclass(frozen=True)
class EngineRequirements:
    """Runtime constraints declared by a package version."""

    node: Optional[str] = None


@dataclass(frozen=True)
class ResolvedVersion:
    """One concrete version candidate returned by a resolver."""

    version: str
    download_url: Optional[str] = None
    checksum: Optional[str] = None
    engines: Optional[EngineRequirements] = None


@dataclass(frozen=True)
class RuntimeVersion:
    """A pooled toolchain version an installed binary depends on."""

    toolchain: str
    version: str


@dataclass(frozen=True)
class FetchedBinary:
    """A verified, executable artifact produced by a fetch."""

    binary_path: Path
    version: str
    sha256: str
    runtime_used: Optional[RuntimeVersion] = None
