"""Install orchestrator.

Ties resolvers, the content store, the shared bin directory, the manifest
and the toolchain pool together for the ``install``, ``update``,
``remove``, ``list`` and ``status`` commands.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from fetchbin.bootstrap.paths import FetchbinPaths
from fetchbin.bootstrap.platform import PlatformInfo
from fetchbin.bootstrap.validation import ToolStatus, validate_binary
from fetchbin.config.models import FetchbinConfig
from fetchbin.core.checksum import sha256_file
from fetchbin.core.errors import (
    FetchbinError,
    ManifestError,
    NoMatchingVersionError,
    NotInstalledError,
)
from fetchbin.core.logging import get_logger
from fetchbin.core.manifest import (
    WINDOWS_LAUNCHER_SUFFIXES,
    InstalledBinary,
    Manifest,
    NodeRuntimeSpec,
    SourceSpec,
    package_spec_from_source,
    source_spec_ecosystem,
    source_spec_from_package,
    source_spec_identity,
)
from fetchbin.core.models import FetchedBinary, PackageSpec, ResolvedVersion, SourceConfig
from fetchbin.runtime.pool import RuntimePool
from fetchbin.sources import BinarySource, get_source

LOGGER = get_logger(__name__)

SourceFactory = Callable[
    [Union[SourceConfig, SourceSpec], Optional[FetchbinConfig], Optional[PlatformInfo]],
    BinarySource,
]


@dataclass
class InstallResult:
    """Outcome of a successful install."""

    name: str
    entry: InstalledBinary
    link_path: Path
    pruned: List[str] = field(default_factory=list)


@dataclass
class UpdatedBinary:
    name: str
    old_version: str
    new_version: str


@dataclass
class UpdateReport:
    """Outcome of an update run."""

    updated: List[UpdatedBinary] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    # (name, error message) pairs collected with keep_going
    failed: List[Tuple[str, str]] = field(default_factory=list)
    runtimes: List[str] = field(default_factory=list)
    pruned: List[str] = field(default_factory=list)


@dataclass
class BinaryStatus:
    """Health of one installed binary."""

    name: str
    entry: InstalledBinary
    link_path: Path
    status: ToolStatus
    # None when the binary is missing and could not be hashed
    checksum_ok: Optional[bool] = None

    @property
    def healthy(self) -> bool:
        return self.status is ToolStatus.PRESENT and self.checksum_ok is True


def _lexists(path: Path) -> bool:
    return os.path.lexists(path)


def replace_link(target: Path, link_path: Path) -> None:
    """Point ``link_path`` at ``target``, replacing any existing entry atomically.

    The new link is created beside the old one and moved over it with
    :func:`os.replace`. Where symlinks are unavailable the target is copied.
    """
    link_path.parent.mkdir(parents=True, exist_ok=True)
    staging = link_path.with_name(f".{link_path.name}.new")
    if _lexists(staging):
        staging.unlink()

    try:
        os.symlink(target, staging)
    except (OSError, NotImplementedError) as e:
        LOGGER.debug(f"Symlink unavailable ({e}), copying {target} instead")
        shutil.copy2(target, staging)

    os.replace(staging, link_path)


def _remove_dir(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)


class Installer:
    """Runs fetchbin commands against one data root.

    Args:
        paths: Data-root layout.
        config: Registry endpoints, timeout and runtime defaults.
        pool: Toolchain pool; loaded from runtime.json when omitted.
        platform: Platform to fetch for; detected lazily when omitted.
        source_factory: Builds the resolver for a source variant.
    """

    def __init__(
        self,
        paths: FetchbinPaths,
        config: Optional[FetchbinConfig] = None,
        pool: Optional[RuntimePool] = None,
        platform: Optional[PlatformInfo] = None,
        source_factory: SourceFactory = get_source,
    ) -> None:
        self.paths = paths
        self.config = config or FetchbinConfig()
        self.platform = platform
        self.pool = pool or RuntimePool.load(paths, config=self.config, platform=platform)
        self._source_factory = source_factory

    def _source_for(self, source: Union[SourceConfig, SourceSpec]) -> BinarySource:
        return self._source_factory(source, self.config, self.platform)

    def load_manifest(self) -> Manifest:
        return Manifest.load(self.paths.manifest_path)

    def _save_manifest(self, manifest: Manifest) -> None:
        manifest.save(self.paths.manifest_path)

    def store_dir_for(self, source: SourceSpec) -> Path:
        """Store directory holding the artifact of an exact-version source."""
        return self.paths.store_path(
            source_spec_ecosystem(source).value,
            source_spec_identity(source),
            source.version,
        )

    def _fetch_into_store(
        self,
        source: BinarySource,
        spec: PackageSpec,
        resolved: ResolvedVersion,
    ) -> Tuple[FetchedBinary, Path]:
        """Fetch ``resolved`` into a freshly emptied store directory.

        Existing contents are set aside first and restored if the fetch
        fails, so other installed commands of the same package version
        keep working either way.
        """
        store_dir = self.paths.store_path(
            source.source_type.value, spec.source.identity, resolved.version
        )
        previous = store_dir.with_name(f".{store_dir.name}.previous")
        _remove_dir(previous)
        if store_dir.exists():
            LOGGER.debug(f"Clearing existing store directory {store_dir}")
            os.replace(store_dir, previous)
        store_dir.mkdir(parents=True)

        try:
            fetched = source.fetch(spec, resolved, store_dir, self.pool)
        except BaseException:
            shutil.rmtree(store_dir, ignore_errors=True)
            if previous.exists():
                os.replace(previous, store_dir)
            raise
        _remove_dir(previous)
        return fetched, store_dir

    def _refresh_siblings(
        self, manifest: Manifest, store_dir: Path, name: str, fetched: FetchedBinary
    ) -> None:
        """Re-record other commands whose files were rebuilt by the last fetch."""
        for other, entry in manifest.binaries.items():
            if other == name or self.store_dir_for(entry.source) != store_dir:
                continue
            link_path = self.paths.bin_dir / other
            if not link_path.exists():
                LOGGER.warning(f"{other} is no longer provided by {store_dir}")
                continue
            entry.sha256 = sha256_file(link_path)
            entry.runtime = NodeRuntimeSpec.from_runtime(fetched.runtime_used)

    def _is_store_shared(self, manifest: Manifest, store_dir: Path, exclude: str) -> bool:
        return any(
            self.store_dir_for(entry.source) == store_dir
            for name, entry in manifest.binaries.items()
            if name != exclude
        )

    def _prune(self, manifest: Manifest) -> List[str]:
        return self.pool.prune(manifest.used_node_versions()).removed

    # -- install --------------------------------------------------------

    def install(self, spec: PackageSpec) -> InstallResult:
        """Resolve, fetch and link ``spec``, then record it in the manifest.

        The manifest is written only after the fetch fully succeeds. Unused
        node versions are pruned afterwards and the pool is saved once.

        Raises:
            FetchbinError: Any resolution, download, verification or helper failure.
        """
        manifest = self.load_manifest()
        source = self._source_for(spec.source)

        try:
            candidates = source.resolve(spec)
            if not candidates:
                raise NoMatchingVersionError(spec.name, spec.version_req or "latest")
            resolved = candidates[0]
            LOGGER.info(f"Resolved {spec} to {resolved.version}")

            fetched, store_dir = self._fetch_into_store(source, spec, resolved)
            name = fetched.binary_path.name
            link_path = self.paths.bin_dir / name
            replace_link(fetched.binary_path, link_path)

            entry = InstalledBinary(
                source=source_spec_from_package(spec, fetched.version),
                binary=name,
                sha256=fetched.sha256,
                runtime=NodeRuntimeSpec.from_runtime(fetched.runtime_used),
            )
            previous = manifest.binaries.get(name)
            manifest.binaries[name] = entry
            self._refresh_siblings(manifest, store_dir, name, fetched)
            self._save_manifest(manifest)

            if previous is not None:
                old_store = self.store_dir_for(previous.source)
                if old_store != store_dir and not self._is_store_shared(manifest, old_store, name):
                    LOGGER.info(f"Removing replaced {name} {previous.version} from the store")
                    _remove_dir(old_store)

            pruned = self._prune(manifest)
        finally:
            self.pool.save()

        LOGGER.info(f"Installed {name} {fetched.version} -> {link_path}")
        return InstallResult(name=name, entry=entry, link_path=link_path, pruned=pruned)

    # -- update ---------------------------------------------------------

    def update(self, keep_going: bool = False, runtimes: bool = False) -> UpdateReport:
        """Update every installed binary to its newest candidate.

        By default the first failure aborts the remaining entries; entries
        updated before it stay updated. With ``keep_going`` failures are
        collected in the report and the run continues.

        Args:
            keep_going: Collect per-entry errors instead of aborting.
            runtimes: Refresh the node LTS before updating binaries.

        Returns:
            UpdateReport describing what changed.
        """
        manifest = self.load_manifest()
        report = UpdateReport()

        try:
            if runtimes:
                report.runtimes = self.pool.update_lts().updated

            for name in sorted(manifest.binaries):
                entry = manifest.binaries[name]
                try:
                    updated = self._update_entry(manifest, name, entry)
                except FetchbinError as e:
                    if not keep_going:
                        raise
                    LOGGER.error(f"Failed to update {name}: {e}")
                    report.failed.append((name, str(e)))
                    continue

                if updated is None:
                    report.unchanged.append(name)
                else:
                    report.updated.append(updated)

            report.pruned = self._prune(manifest)
        finally:
            self.pool.save()

        return report

    def _update_entry(
        self, manifest: Manifest, name: str, entry: InstalledBinary
    ) -> Optional[UpdatedBinary]:
        source = self._source_for(entry.source)
        latest = source.check_update(entry)
        if latest is None:
            LOGGER.debug(f"{name} is up to date ({entry.version})")
            return None

        LOGGER.info(f"Updating {name} {entry.version} -> {latest.version}")
        spec = package_spec_from_source(entry.source, entry.binary)
        old_store = self.store_dir_for(entry.source)
        fetched, store_dir = self._fetch_into_store(source, spec, latest)

        replace_link(fetched.binary_path, self.paths.bin_dir / name)
        manifest.binaries[name] = InstalledBinary(
            source=source_spec_from_package(spec, fetched.version),
            binary=name,
            sha256=fetched.sha256,
            runtime=NodeRuntimeSpec.from_runtime(fetched.runtime_used),
        )
        self._refresh_siblings(manifest, store_dir, name, fetched)
        self._save_manifest(manifest)

        if old_store != store_dir and not self._is_store_shared(manifest, old_store, name):
            _remove_dir(old_store)

        return UpdatedBinary(name=name, old_version=entry.version, new_version=fetched.version)

    # -- remove ---------------------------------------------------------

    def _lookup_name(self, manifest: Manifest, name: str) -> str:
        if name in manifest.binaries:
            return name
        for suffix in WINDOWS_LAUNCHER_SUFFIXES:
            if f"{name}{suffix}" in manifest.binaries:
                return f"{name}{suffix}"
        raise NotInstalledError(name)

    def remove(self, name: str) -> InstalledBinary:
        """Delete the link and store directory of ``name`` and drop its entry.

        The store directory is kept when another entry still uses it.

        Raises:
            NotInstalledError: If ``name`` is not in the manifest.
        """
        manifest = self.load_manifest()
        key = self._lookup_name(manifest, name)
        entry = manifest.binaries[key]

        link_path = self.paths.bin_dir / key
        if _lexists(link_path):
            link_path.unlink()

        store_dir = self.store_dir_for(entry.source)
        if not self._is_store_shared(manifest, store_dir, key):
            _remove_dir(store_dir)

        del manifest.binaries[key]
        self._save_manifest(manifest)
        LOGGER.info(f"Removed {key} {entry.version}")
        return entry

    # -- list / status --------------------------------------------------

    def list_entries(self) -> List[Tuple[str, InstalledBinary]]:
        """Installed binaries sorted by name."""
        manifest = self.load_manifest()
        return sorted(manifest.binaries.items())

    def status(self) -> List[BinaryStatus]:
        """Check each installed binary's link and digest against the manifest."""
        results = []
        for name, entry in self.list_entries():
            link_path = self.paths.bin_dir / name
            tool_status = validate_binary(link_path)
            checksum_ok: Optional[bool] = None
            if tool_status is not ToolStatus.MISSING:
                try:
                    checksum_ok = sha256_file(link_path) == entry.sha256.lower()
                except OSError as e:
                    raise ManifestError(f"failed to hash {link_path}: {e}") from e
            results.append(
                BinaryStatus(
                    name=name,
                    entry=entry,
                    link_path=link_path,
                    status=tool_status,
                    checksum_ok=checksum_ok,
                )
            )
        return results
