"""crates.io source.

Prebuilt crate binaries are installed by the pooled cargo-binstall, which
performs its own integrity checks, into an isolated install root.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from fetchbin.bootstrap.download import DEFAULT_TIMEOUT, fetch_json
from fetchbin.bootstrap.platform import PlatformInfo, get_platform_info
from fetchbin.bootstrap.validation import ToolStatus, set_executable, validate_binary
from fetchbin.config.models import DEFAULT_CRATES_API
from fetchbin.core.checksum import sha256_file
from fetchbin.core.errors import BinaryNotFoundError, NoMatchingVersionError, ParseError
from fetchbin.core.logging import get_logger
from fetchbin.core.manifest import CargoSourceSpec, InstalledBinary, package_spec_from_source
from fetchbin.core.models import (
    CargoSourceConfig,
    FetchedBinary,
    PackageSpec,
    ResolvedVersion,
    SourceType,
)
from fetchbin.core.subprocess_runner import run_helper
from fetchbin.core.versions import (
    LATEST,
    highest_version,
    matching_versions,
    normalize_version,
    parse_requirement,
    versions_match,
)
from fetchbin.runtime.pool import RuntimePool
from fetchbin.sources.base import BinarySource

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class CrateVersion:
    num: str
    yanked: bool = False


@dataclass(frozen=True)
class CrateMetadata:
    name: str
    max_version: Optional[str]
    versions: List[CrateVersion]

    @classmethod
    def from_dict(cls, crate_name: str, data: Any) -> "CrateMetadata":
        """Parse a crates.io ``/crates/<name>`` response.

        Raises:
            ParseError: If required fields are missing or mistyped.
        """
        if not isinstance(data, dict) or not isinstance(data.get("crate"), dict):
            raise ParseError(f"crates.io response for {crate_name} has no 'crate' object")
        raw_versions = data.get("versions")
        if not isinstance(raw_versions, list):
            raise ParseError(f"crates.io response for {crate_name} has no 'versions' list")

        versions = []
        for item in raw_versions:
            if not isinstance(item, dict) or not isinstance(item.get("num"), str):
                raise ParseError(f"crates.io response for {crate_name} has a malformed version")
            versions.append(CrateVersion(num=item["num"], yanked=bool(item.get("yanked", False))))

        krate = data["crate"]
        max_version = krate.get("max_version")
        return cls(
            name=str(krate.get("name", crate_name)),
            max_version=max_version if isinstance(max_version, str) else None,
            versions=versions,
        )

    @property
    def available(self) -> List[str]:
        """Non-yanked version numbers."""
        return [version.num for version in self.versions if not version.yanked]


def resolve_crate_versions(metadata: CrateMetadata, requirement: Optional[str]) -> List[str]:
    """Select crate versions for ``requirement``, most preferred first.

    Yanked versions are never candidates. ``latest`` (or no requirement)
    prefers the ``max_version`` marker when it is available, otherwise the
    highest version.

    Raises:
        NoMatchingVersionError: If nothing is available or nothing matches.
        ParseError: If the requirement is neither an exact version nor a range.
    """
    available = metadata.available
    if not available:
        raise NoMatchingVersionError(metadata.name, requirement or LATEST)

    if requirement is None or requirement.strip() == LATEST:
        if metadata.max_version in available:
            return [metadata.max_version]
        best = highest_version(available)
        return [best] if best is not None else [available[0]]

    for candidate in (requirement.strip(), normalize_version(requirement)):
        if candidate in available:
            return [candidate]

    version_spec = parse_requirement(requirement)
    if version_spec is None:
        raise ParseError(f"unsupported cargo version requirement: {requirement}")
    matches = matching_versions(version_spec, available)
    if not matches:
        raise NoMatchingVersionError(metadata.name, requirement)
    return matches


class CargoSource(BinarySource):
    """Resolver for crates on crates.io."""

    def __init__(
        self,
        api_base: str = DEFAULT_CRATES_API,
        timeout: float = DEFAULT_TIMEOUT,
        platform: Optional[PlatformInfo] = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._platform = platform

    @property
    def source_type(self) -> SourceType:
        return SourceType.CARGO

    @property
    def platform(self) -> PlatformInfo:
        if self._platform is None:
            self._platform = get_platform_info().require_supported()
        return self._platform

    def fetch_metadata(self, crate_name: str) -> CrateMetadata:
        data = fetch_json(f"{self.api_base}/{crate_name}", timeout=self.timeout)
        return CrateMetadata.from_dict(crate_name, data)

    @staticmethod
    def _crate(spec: PackageSpec) -> str:
        if not isinstance(spec.source, CargoSourceConfig):
            raise ParseError(f"cargo source used with non-cargo spec {spec}")
        return spec.source.crate_name

    def resolve(self, spec: PackageSpec) -> List[ResolvedVersion]:
        crate_name = self._crate(spec)
        metadata = self.fetch_metadata(crate_name)
        return [
            ResolvedVersion(version=version)
            for version in resolve_crate_versions(metadata, spec.version_req)
        ]

    def fetch(
        self,
        spec: PackageSpec,
        version: ResolvedVersion,
        target_dir: Path,
        runtime: RuntimePool,
    ) -> FetchedBinary:
        crate_name = self._crate(spec)
        binstall = runtime.get_binstall()

        target_dir.mkdir(parents=True, exist_ok=True)
        runtime.cargo_home.mkdir(parents=True, exist_ok=True)
        env = dict(os.environ)
        env["CARGO_HOME"] = str(runtime.cargo_home)

        LOGGER.info(f"Installing {crate_name}@{version.version} with cargo-binstall v{binstall.version}")
        run_helper(
            [
                str(binstall.binstall_path),
                "--no-confirm",
                "--version",
                version.version,
                "--root",
                str(target_dir),
                crate_name,
            ],
            tool_name="cargo-binstall",
            env=env,
        )

        binary_name = f"{spec.binary_name or crate_name}{self.platform.exe_suffix}"
        binary_path = target_dir / "bin" / binary_name
        if not binary_path.is_file():
            raise BinaryNotFoundError(crate_name, [str(binary_path)])

        set_executable(binary_path)
        if validate_binary(binary_path) is not ToolStatus.PRESENT:
            raise BinaryNotFoundError(crate_name, [f"{binary_path} (not executable)"])

        return FetchedBinary(
            binary_path=binary_path,
            version=version.version,
            sha256=sha256_file(binary_path),
        )

    def check_update(self, installed: InstalledBinary) -> Optional[ResolvedVersion]:
        if not isinstance(installed.source, CargoSourceSpec):
            raise ParseError(f"cargo source used with non-cargo install of {installed.binary}")
        spec = package_spec_from_source(installed.source, installed.binary)
        candidates = self.resolve(spec)
        if not candidates:
            return None
        latest = candidates[0]
        if versions_match(latest.version, installed.source.version):
            return None
        return latest
