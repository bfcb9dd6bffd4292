"""GitHub releases source.

Assets are picked per release by an explicit pattern or the platform's
asset patterns. A sibling checksum file is verified when the release has
one; otherwise the download is trusted on first use with a warning.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from fetchbin.bootstrap.download import DEFAULT_TIMEOUT, fetch_bytes, fetch_text
from fetchbin.bootstrap.platform import PlatformInfo, get_platform_info, pattern_matches
from fetchbin.bootstrap.validation import set_executable
from fetchbin.config.models import DEFAULT_GITHUB_API
from fetchbin.core.archive import (
    ArchiveType,
    detect_archive_type,
    extract_archive,
    is_unsupported_archive,
    select_binary,
)
from fetchbin.core.checksum import sha256_file, verify_checksum
from fetchbin.core.errors import (
    AssetNotFoundError,
    NoMatchingVersionError,
    ParseError,
    UnsupportedArchiveError,
)
from fetchbin.core.logging import get_logger
from fetchbin.core.manifest import (
    PLATFORM_ASSET,
    GithubSourceSpec,
    InstalledBinary,
    package_spec_from_source,
)
from fetchbin.core.models import (
    FetchedBinary,
    GithubSourceConfig,
    PackageSpec,
    ResolvedVersion,
    SourceType,
)
from fetchbin.core.releases import Release, ReleaseAsset, fetch_releases
from fetchbin.core.versions import LATEST, matching_versions, parse_requirement, versions_match
from fetchbin.runtime.pool import RuntimePool
from fetchbin.sources.base import BinarySource

LOGGER = get_logger(__name__)


def asset_rank(name: str) -> int:
    """Preference of an asset by format: tar.gz, then zip, then raw, then unsupported."""
    if is_unsupported_archive(name):
        return 3
    archive_type = detect_archive_type(name)
    if archive_type is ArchiveType.TAR_GZ:
        return 0
    if archive_type is ArchiveType.ZIP:
        return 1
    return 2


def select_asset(
    release: Release,
    pattern: Optional[str],
    platform: PlatformInfo,
) -> Optional[ReleaseAsset]:
    """Pick the best deliverable asset of ``release``.

    Checksum and signature files never match. Ties in format rank keep the
    order GitHub lists the assets in.
    """
    candidates = []
    for asset in release.assets:
        if asset.is_sidecar:
            continue
        if pattern is not None:
            matched = pattern_matches(pattern, asset.name)
        else:
            matched = platform.matches_asset(asset.name)
        if matched:
            candidates.append(asset)
    if not candidates:
        return None
    return min(candidates, key=lambda asset: asset_rank(asset.name))


class GithubSource(BinarySource):
    """Resolver for GitHub release assets."""

    def __init__(
        self,
        api_base: str = DEFAULT_GITHUB_API,
        timeout: float = DEFAULT_TIMEOUT,
        platform: Optional[PlatformInfo] = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._platform = platform
        self._releases: Dict[str, List[Release]] = {}

    @property
    def source_type(self) -> SourceType:
        return SourceType.GITHUB

    @property
    def platform(self) -> PlatformInfo:
        if self._platform is None:
            self._platform = get_platform_info().require_supported()
        return self._platform

    def list_releases(self, repo: str) -> List[Release]:
        """Published, non-prerelease releases of ``repo``, newest first."""
        if repo not in self._releases:
            releases = fetch_releases(self.api_base, repo, timeout=self.timeout)
            self._releases[repo] = [r for r in releases if not r.prerelease and not r.draft]
        return self._releases[repo]

    @staticmethod
    def _source(spec: PackageSpec) -> GithubSourceConfig:
        if not isinstance(spec.source, GithubSourceConfig):
            raise ParseError(f"github source used with non-github spec {spec}")
        return spec.source

    def _candidates(self, source: GithubSourceConfig) -> List[Tuple[Release, ReleaseAsset]]:
        releases = self.list_releases(source.repo)
        found = []
        for release in releases:
            asset = select_asset(release, source.asset_pattern, self.platform)
            if asset is None:
                LOGGER.debug(f"No matching asset in {source.repo} {release.tag_name}")
                continue
            found.append((release, asset))

        if not found:
            available = releases[0].asset_names if releases else []
            raise AssetNotFoundError(source.asset_pattern or PLATFORM_ASSET, available)
        return found

    def resolve(self, spec: PackageSpec) -> List[ResolvedVersion]:
        source = self._source(spec)
        requirement = spec.version_req.strip() if spec.version_req else None
        if requirement == LATEST:
            requirement = None

        if requirement is not None:
            # An exact tag pins that release even when its assets do not match
            exact = self._exact_release(source.repo, requirement)
            if exact is not None:
                asset = select_asset(exact, source.asset_pattern, self.platform)
                if asset is None:
                    raise AssetNotFoundError(
                        source.asset_pattern or PLATFORM_ASSET, exact.asset_names
                    )
                return [ResolvedVersion(version=exact.version, download_url=asset.browser_download_url)]

        candidates = self._candidates(source)
        if requirement is not None:
            candidates = self._filter_by_range(candidates, requirement)
            if not candidates:
                raise NoMatchingVersionError(source.repo, requirement)

        return [
            ResolvedVersion(version=release.version, download_url=asset.browser_download_url)
            for release, asset in candidates
        ]

    def _exact_release(self, repo: str, requirement: str) -> Optional[Release]:
        for release in self.list_releases(repo):
            if versions_match(release.tag_name, requirement):
                return release
        return None

    @staticmethod
    def _filter_by_range(
        candidates: List[Tuple[Release, ReleaseAsset]], requirement: str
    ) -> List[Tuple[Release, ReleaseAsset]]:
        version_spec = parse_requirement(requirement)
        if version_spec is None:
            return []
        allowed = set(matching_versions(version_spec, [release.version for release, _ in candidates]))
        return [c for c in candidates if c[0].version in allowed]

    def _find_candidate(self, source: GithubSourceConfig, version: str) -> Tuple[Release, ReleaseAsset]:
        for release, asset in self._candidates(source):
            if versions_match(release.tag_name, version):
                return release, asset
        raise NoMatchingVersionError(source.repo, version)

    def fetch(
        self,
        spec: PackageSpec,
        version: ResolvedVersion,
        target_dir: Path,
        runtime: RuntimePool,
    ) -> FetchedBinary:
        source = self._source(spec)
        release, asset = self._find_candidate(source, version.version)

        if is_unsupported_archive(asset.name):
            raise UnsupportedArchiveError(asset.name)

        LOGGER.info(f"Downloading {source.repo} {release.tag_name} ({asset.name})")
        data = fetch_bytes(asset.browser_download_url, timeout=self.timeout)

        checksum_asset = release.find_checksum_asset(asset)
        if checksum_asset is None:
            LOGGER.warning(
                f"No checksum file published for {asset.name} in {source.repo} "
                f"{release.tag_name}; installing without verification"
            )
        else:
            checksum_text = fetch_text(checksum_asset.browser_download_url, timeout=self.timeout)
            verify_checksum(
                asset.name,
                checksum_text,
                data,
                allow_single_hash=checksum_asset.name == f"{asset.name}.sha256",
            )
            LOGGER.debug(f"Verified {asset.name} against {checksum_asset.name}")

        binary_name = spec.default_binary_name
        raw_name = f"{binary_name}{self.platform.exe_suffix}"
        extracted = extract_archive(data, asset.name, target_dir, raw_name=raw_name)
        binary_path = select_binary([p for p in extracted if p.is_file()], binary_name)
        set_executable(binary_path)

        return FetchedBinary(
            binary_path=binary_path,
            version=release.version,
            sha256=sha256_file(binary_path),
        )

    def check_update(self, installed: InstalledBinary) -> Optional[ResolvedVersion]:
        if not isinstance(installed.source, GithubSourceSpec):
            raise ParseError(f"github source used with non-github install of {installed.binary}")
        spec = package_spec_from_source(installed.source, installed.binary)
        candidates = self.resolve(spec)
        if not candidates:
            return None
        latest = candidates[0]
        if versions_match(latest.version, installed.source.version):
            return None
        return latest
