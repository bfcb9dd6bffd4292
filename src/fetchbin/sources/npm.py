"""npm registry source.

npm packages ship JavaScript entry points rather than native binaries.
They are installed with the pooled pnpm into their own store directory,
and a small launcher script pins the pooled node interpreter so the
installed command never depends on whatever node is on PATH.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from fetchbin.bootstrap.download import DEFAULT_TIMEOUT, fetch_json
from fetchbin.bootstrap.platform import PlatformInfo, get_platform_info
from fetchbin.bootstrap.validation import set_executable
from fetchbin.config.models import DEFAULT_NPM_REGISTRY
from fetchbin.core.checksum import sha256_file
from fetchbin.core.errors import (
    AmbiguousBinariesError,
    BinaryNotFoundError,
    NoMatchingVersionError,
    ParseError,
)
from fetchbin.core.logging import get_logger
from fetchbin.core.manifest import InstalledBinary, NpmSourceSpec, package_spec_from_source
from fetchbin.core.models import (
    EngineRequirements,
    FetchedBinary,
    NpmSourceConfig,
    PackageSpec,
    ResolvedVersion,
    RuntimeVersion,
    SourceType,
)
from fetchbin.core.subprocess_runner import prepend_path, run_helper
from fetchbin.core.versions import (
    LATEST,
    matching_versions,
    normalize_version,
    parse_requirement,
    versions_match,
)
from fetchbin.runtime.node import NODE_TOOLCHAIN
from fetchbin.runtime.pool import RuntimePool
from fetchbin.sources.base import BinarySource

LOGGER = get_logger(__name__)

LAUNCHER_DIR = "bin"


def encode_package_name(package: str) -> str:
    """URL-encode a (possibly scoped) package name for the registry path."""
    return package.replace("@", "%40").replace("/", "%2F")


def package_name(package: str) -> str:
    """Unscoped part of a package name (``@scope/tool`` -> ``tool``)."""
    return package.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class NpmVersionMetadata:
    version: str
    tarball: Optional[str] = None
    bins: Dict[str, str] = field(default_factory=dict)
    engines_node: Optional[str] = None

    def to_resolved(self) -> ResolvedVersion:
        return ResolvedVersion(
            version=self.version,
            download_url=self.tarball,
            engines=EngineRequirements(node=self.engines_node) if self.engines_node else None,
        )


@dataclass(frozen=True)
class NpmPackageMetadata:
    name: str
    latest: str
    versions: Dict[str, NpmVersionMetadata]

    @classmethod
    def from_dict(cls, package: str, data: Any) -> "NpmPackageMetadata":
        """Parse a registry packument.

        ``bin`` may be a single path (named after the package) or a map of
        command name to path.

        Raises:
            ParseError: If required fields are missing or mistyped.
        """
        if not isinstance(data, dict):
            raise ParseError(f"npm metadata for {package} is not an object")
        dist_tags = data.get("dist-tags")
        if not isinstance(dist_tags, dict) or not isinstance(dist_tags.get("latest"), str):
            raise ParseError(f"npm metadata for {package} has no 'dist-tags.latest'")
        raw_versions = data.get("versions")
        if not isinstance(raw_versions, dict):
            raise ParseError(f"npm metadata for {package} has no 'versions' map")

        versions: Dict[str, NpmVersionMetadata] = {}
        for key, meta in raw_versions.items():
            if not isinstance(meta, dict):
                raise ParseError(f"npm metadata for {package}@{key} is not an object")
            bin_field = meta.get("bin")
            if isinstance(bin_field, str):
                bins = {package_name(package): bin_field}
            elif isinstance(bin_field, dict):
                bins = {str(name): str(path) for name, path in bin_field.items()}
            else:
                bins = {}
            engines = meta.get("engines")
            engines_node = engines.get("node") if isinstance(engines, dict) else None
            dist = meta.get("dist") if isinstance(meta.get("dist"), dict) else {}
            versions[key] = NpmVersionMetadata(
                version=str(meta.get("version", key)),
                tarball=dist.get("tarball"),
                bins=bins,
                engines_node=engines_node if isinstance(engines_node, str) else None,
            )

        return cls(name=str(data.get("name", package)), latest=dist_tags["latest"], versions=versions)

    def find_version(self, requested: str) -> Optional[NpmVersionMetadata]:
        return self.versions.get(requested) or self.versions.get(normalize_version(requested))


def select_binary_name(package: str, bins: Dict[str, str], requested: Optional[str]) -> str:
    """Choose which declared command to install.

    Raises:
        BinaryNotFoundError: If the package declares no commands, or ``requested`` is not one.
        AmbiguousBinariesError: If several commands exist and none was requested.
    """
    if not bins:
        raise BinaryNotFoundError(package, [])
    if requested is not None:
        if requested in bins:
            return requested
        raise BinaryNotFoundError(package, sorted(bins))
    if len(bins) > 1:
        raise AmbiguousBinariesError(bins.keys())
    return next(iter(bins))


def launcher_script(node_path: Path, entry_point: Path, windows: bool) -> str:
    """Text of a launcher running ``entry_point`` with the pooled node."""
    if windows:
        return f'@echo off\r\n"{node_path}" "{entry_point}" %*\r\n'
    return f'#!/bin/sh\nexec "{node_path}" "{entry_point}" "$@"\n'


def write_launcher(
    target_dir: Path,
    binary_name: str,
    node_path: Path,
    entry_point: Path,
    platform: PlatformInfo,
) -> Path:
    """Write the launcher for ``binary_name`` into ``target_dir/bin``."""
    launcher_dir = target_dir / LAUNCHER_DIR
    launcher_dir.mkdir(parents=True, exist_ok=True)
    file_name = f"{binary_name}.cmd" if platform.is_windows else binary_name
    launcher = launcher_dir / file_name
    if launcher.exists():
        launcher.unlink()
    with open(launcher, "w", encoding="utf-8", newline="") as f:
        f.write(launcher_script(node_path, entry_point, platform.is_windows))
    set_executable(launcher)
    return launcher


def _entry_point(target_dir: Path, package: str, name: str, bin_rel: str) -> Optional[Path]:
    """Installed file for command ``name``, or None when pnpm produced none."""
    while bin_rel.startswith("./"):
        bin_rel = bin_rel[2:]
    package_bin = target_dir / "node_modules" / package / bin_rel
    if package_bin.is_file():
        return package_bin
    link_path = target_dir / "node_modules" / ".bin" / name
    if link_path.exists():
        return link_path
    return None


class NpmSource(BinarySource):
    """Resolver for packages on the npm registry."""

    def __init__(
        self,
        registry: str = DEFAULT_NPM_REGISTRY,
        timeout: float = DEFAULT_TIMEOUT,
        platform: Optional[PlatformInfo] = None,
    ) -> None:
        self.registry = registry.rstrip("/")
        self.timeout = timeout
        self._platform = platform
        self._metadata: Dict[str, NpmPackageMetadata] = {}

    @property
    def source_type(self) -> SourceType:
        return SourceType.NPM

    @property
    def platform(self) -> PlatformInfo:
        if self._platform is None:
            self._platform = get_platform_info().require_supported()
        return self._platform

    def registry_url(self, package: str) -> str:
        return f"{self.registry}/{encode_package_name(package)}"

    def fetch_metadata(self, package: str) -> NpmPackageMetadata:
        """Fetch (once per instance) and parse the packument for ``package``."""
        if package not in self._metadata:
            data = fetch_json(self.registry_url(package), timeout=self.timeout)
            self._metadata[package] = NpmPackageMetadata.from_dict(package, data)
        return self._metadata[package]

    @staticmethod
    def _package(spec: PackageSpec) -> str:
        if not isinstance(spec.source, NpmSourceConfig):
            raise ParseError(f"npm source used with non-npm spec {spec}")
        return spec.source.package

    def resolve(self, spec: PackageSpec) -> List[ResolvedVersion]:
        package = self._package(spec)
        metadata = self.fetch_metadata(package)
        requirement = spec.version_req

        if requirement is None or requirement.strip() == LATEST:
            latest = metadata.versions.get(metadata.latest)
            if latest is None:
                raise NoMatchingVersionError(package, f"{LATEST} ({metadata.latest})")
            return [latest.to_resolved()]

        exact = metadata.find_version(requirement)
        if exact is not None:
            return [exact.to_resolved()]

        version_spec = parse_requirement(requirement)
        if version_spec is None:
            raise ParseError(f"unsupported npm version requirement: {requirement}")
        matches = matching_versions(version_spec, metadata.versions)
        if not matches:
            raise NoMatchingVersionError(package, requirement)
        return [metadata.versions[v].to_resolved() for v in matches]

    def fetch(
        self,
        spec: PackageSpec,
        version: ResolvedVersion,
        target_dir: Path,
        runtime: RuntimePool,
    ) -> FetchedBinary:
        package = self._package(spec)
        metadata = self.fetch_metadata(package)
        version_meta = metadata.find_version(version.version)
        if version_meta is None:
            raise NoMatchingVersionError(package, version.version)

        # Choose the command before any download so ambiguity fails fast
        binary_name = select_binary_name(package, version_meta.bins, spec.binary_name)

        node = runtime.get_node(version_meta.engines_node)
        pnpm = runtime.get_pnpm()

        target_dir.mkdir(parents=True, exist_ok=True)
        LOGGER.info(f"Installing {package}@{version_meta.version} with pnpm v{pnpm.version}")
        run_helper(
            [str(pnpm.pnpm_path), "add", "--ignore-scripts", f"{package}@{version_meta.version}"],
            tool_name="pnpm",
            cwd=target_dir,
            env=prepend_path(node.bin_dir),
        )

        launchers: Dict[str, Path] = {}
        for name in sorted(version_meta.bins):
            entry_point = _entry_point(target_dir, package, name, version_meta.bins[name])
            if entry_point is None:
                if name == binary_name:
                    raise BinaryNotFoundError(
                        package,
                        [
                            str(target_dir / "node_modules" / ".bin" / name),
                            str(target_dir / "node_modules" / package / version_meta.bins[name]),
                        ],
                    )
                LOGGER.debug(f"{package} declares {name} but pnpm installed no entry point for it")
                continue
            set_executable(entry_point)
            launchers[name] = write_launcher(
                target_dir, name, node.node_path.resolve(), entry_point.resolve(), self.platform
            )

        launcher = launchers[binary_name]
        return FetchedBinary(
            binary_path=launcher,
            version=version_meta.version,
            sha256=sha256_file(launcher),
            runtime_used=RuntimeVersion(toolchain=NODE_TOOLCHAIN, version=node.version),
        )

    def check_update(self, installed: InstalledBinary) -> Optional[ResolvedVersion]:
        if not isinstance(installed.source, NpmSourceSpec):
            raise ParseError(f"npm source used with non-npm install of {installed.binary}")
        spec = package_spec_from_source(installed.source, installed.binary)
        candidates = self.resolve(spec)
        if not candidates:
            return None
        latest = candidates[0]
        if versions_match(latest.version, installed.source.version):
            return None
        return latest
