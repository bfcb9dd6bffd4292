"""Toolchain pool.

The pool owns the cached node interpreters, the pinned pnpm executable
and cargo-binstall. Toolchains are acquired lazily when a fetch needs
them and garbage-collected only through :meth:`RuntimePool.prune`. The
caller persists the pool with :meth:`RuntimePool.save` once per command.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from fetchbin.bootstrap.paths import FetchbinPaths
from fetchbin.bootstrap.platform import PlatformInfo, get_platform_info
from fetchbin.config.models import FetchbinConfig
from fetchbin.core.errors import NoCompatibleRuntimeError
from fetchbin.core.logging import get_logger
from fetchbin.core.manifest import RuntimeManifest, unix_timestamp
from fetchbin.core.versions import (
    LTS,
    matching_versions,
    normalize_version,
    parse_requirement,
)
from fetchbin.runtime.binstall import (
    BINSTALL_TOOLCHAIN,
    BinstallRuntime,
    download_binstall,
    fetch_binstall_release,
    resolve_binstall_runtime,
)
from fetchbin.runtime.node import (
    NODE_TOOLCHAIN,
    NodeRuntime,
    NodeVersionIndex,
    download_node,
    resolve_node_runtime,
)
from fetchbin.runtime.pnpm import (
    PNPM_TOOLCHAIN,
    PnpmRuntime,
    download_pnpm,
    fetch_latest_pnpm_version,
    resolve_pnpm_runtime,
)

LOGGER = get_logger(__name__)


@dataclass
class PruneReport:
    """Node versions deleted by a prune."""

    removed: List[str] = field(default_factory=list)


@dataclass
class RuntimeUpdateReport:
    """Toolchains refreshed by :meth:`RuntimePool.update_lts`, as ``name:version``."""

    updated: List[str] = field(default_factory=list)


def _is_exact_request(requirement: str, version: str) -> bool:
    return normalize_version(requirement.strip().lstrip("=")) == version


class RuntimePool:
    """Cache manager for node, pnpm and cargo-binstall.

    Args:
        paths: Data-root layout.
        manifest: Current pool state (loaded from runtime.json).
        config: Registry endpoints, timeout and node default.
        platform: Platform to fetch for; detected when omitted.
    """

    def __init__(
        self,
        paths: FetchbinPaths,
        manifest: Optional[RuntimeManifest] = None,
        config: Optional[FetchbinConfig] = None,
        platform: Optional[PlatformInfo] = None,
    ) -> None:
        self.paths = paths
        self.manifest = manifest or RuntimeManifest()
        self.config = config or FetchbinConfig()
        self._platform = platform

    @classmethod
    def load(
        cls,
        paths: FetchbinPaths,
        config: Optional[FetchbinConfig] = None,
        platform: Optional[PlatformInfo] = None,
    ) -> "RuntimePool":
        """Create a pool from ``runtime.json`` (empty state when absent)."""
        manifest = RuntimeManifest.load(paths.runtime_manifest_path)
        return cls(paths, manifest=manifest, config=config, platform=platform)

    @property
    def platform(self) -> PlatformInfo:
        if self._platform is None:
            self._platform = get_platform_info().require_supported()
        return self._platform

    @property
    def _timeout(self) -> float:
        return self.config.network.timeout

    # -- node -----------------------------------------------------------

    def get_node(self, requirement: Optional[str] = None) -> NodeRuntime:
        """Return a node interpreter satisfying ``requirement``.

        Without a requirement the pool default is used, then the configured
        ``runtime.node_default``. Cached versions are preferred; otherwise
        the upstream index is consulted and the release downloaded.

        Raises:
            NoCompatibleRuntimeError: If no release satisfies the requirement.
            RuntimeDownloadError: If the download fails.
        """
        requirement = requirement or self.manifest.node.default or self.config.runtime.node_default

        cached = self._find_cached_node(requirement)
        if cached is not None:
            LOGGER.debug(f"Using cached node v{cached.version} for '{requirement}'")
            return cached

        index = NodeVersionIndex.fetch(self.config.registries.node_dist, timeout=self._timeout)
        info = index.find_compatible(requirement)
        if info is None:
            raise NoCompatibleRuntimeError(requirement)

        version = info.version
        dest = self.paths.toolchain_dir(NODE_TOOLCHAIN, version)
        runtime = download_node(
            self.config.registries.node_dist, version, dest, self.platform, timeout=self._timeout
        )

        node_state = self.manifest.node
        if version not in node_state.installed:
            node_state.installed.append(version)
        if (
            node_state.default is None
            or requirement.strip().lower() == LTS
            or _is_exact_request(requirement, version)
        ):
            node_state.default = version
        node_state.last_updated = unix_timestamp()
        return runtime

    def _find_cached_node(self, requirement: str) -> Optional[NodeRuntime]:
        installed = self.manifest.node.installed

        if requirement.strip().lower() == LTS:
            version = self.manifest.node.default
        else:
            spec = parse_requirement(requirement)
            if spec is not None:
                matches = matching_versions(spec, installed)
                version = matches[0] if matches else None
            else:
                wanted = normalize_version(requirement)
                version = wanted if wanted in installed else None

        if version is None:
            return None
        return resolve_node_runtime(version, self.paths.toolchain_dir(NODE_TOOLCHAIN, version))

    # -- pnpm -----------------------------------------------------------

    def get_pnpm(self) -> PnpmRuntime:
        """Return the pinned pnpm, pinning the latest release on first use."""
        pnpm_state = self.manifest.pnpm
        if pnpm_state.version is None:
            pnpm_state.version = fetch_latest_pnpm_version(
                self.config.registries.github_api, timeout=self._timeout
            )
            pnpm_state.last_updated = unix_timestamp()
            LOGGER.info(f"Pinned pnpm v{pnpm_state.version}")
        version = normalize_version(pnpm_state.version)

        dest = self.paths.toolchain_dir(PNPM_TOOLCHAIN, version)
        cached = resolve_pnpm_runtime(version, dest, self.platform)
        if cached is not None:
            return cached

        runtime = download_pnpm(
            self.config.registries.github, version, dest, self.platform, timeout=self._timeout
        )
        pnpm_state.version = version
        pnpm_state.last_updated = unix_timestamp()
        return runtime

    # -- cargo-binstall -------------------------------------------------

    def get_binstall(self) -> BinstallRuntime:
        """Return cargo-binstall at the latest upstream version."""
        release = fetch_binstall_release(self.config.registries.github_api, timeout=self._timeout)
        dest = self.paths.toolchain_dir(BINSTALL_TOOLCHAIN, release.version)

        cached = resolve_binstall_runtime(release.version, dest)
        if cached is not None:
            return cached
        return download_binstall(release, dest, self.platform, timeout=self._timeout)

    @property
    def cargo_home(self) -> Path:
        return self.paths.cargo_home

    # -- maintenance ----------------------------------------------------

    def update_lts(self) -> RuntimeUpdateReport:
        """Make the current node LTS the default, downloading it if needed."""
        report = RuntimeUpdateReport()
        index = NodeVersionIndex.fetch(self.config.registries.node_dist, timeout=self._timeout)
        lts = index.current_lts()
        if lts is None:
            LOGGER.warning("Node version index lists no LTS release")
            return report

        version = lts.version
        node_state = self.manifest.node
        if version not in node_state.installed:
            dest = self.paths.toolchain_dir(NODE_TOOLCHAIN, version)
            download_node(
                self.config.registries.node_dist, version, dest, self.platform, timeout=self._timeout
            )
            node_state.installed.append(version)
            report.updated.append(f"{NODE_TOOLCHAIN}:{version}")
        node_state.default = version
        node_state.last_updated = unix_timestamp()
        return report

    def prune(self, used_versions: Iterable[str]) -> PruneReport:
        """Delete every cached node version not in ``used_versions``.

        The default pointer is cleared when its version is not retained.
        """
        used = set(used_versions)
        report = PruneReport()
        retained: List[str] = []
        node_state = self.manifest.node

        for version in node_state.installed:
            if version in used:
                retained.append(version)
                continue
            path = self.paths.toolchain_dir(NODE_TOOLCHAIN, version)
            if path.exists():
                shutil.rmtree(path)
            report.removed.append(version)
            LOGGER.info(f"Pruned unused node v{version}")

        node_state.installed = retained
        if node_state.default is not None and node_state.default not in used:
            node_state.default = None
        return report

    def save(self) -> None:
        """Persist pool state to runtime.json."""
        self.manifest.save(self.paths.runtime_manifest_path)
        LOGGER.debug(f"Saved runtime manifest to {self.paths.runtime_manifest_path}")
