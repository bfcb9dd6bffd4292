"""Persisted manifests.

``manifest.json`` records every installed binary with the exact-version
source it came from; ``runtime.json`` records the toolchain pool. Source
and runtime specs are tagged unions serialized with a ``"type"`` key.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

from fetchbin.core.errors import ManifestError
from fetchbin.core.logging import get_logger
from fetchbin.core.models import (
    CargoSourceConfig,
    GithubSourceConfig,
    NpmSourceConfig,
    PackageSpec,
    RuntimeVersion,
    SourceType,
)

LOGGER = get_logger(__name__)

# Asset marker for github installs that relied on platform detection
PLATFORM_ASSET = "platform"

WINDOWS_LAUNCHER_SUFFIXES = (".cmd", ".exe")


def _require(data: Dict[str, Any], key: str, context: str) -> Any:
    if key not in data:
        raise ManifestError(f"missing '{key}' in {context}")
    return data[key]


@dataclass(frozen=True)
class NpmSourceSpec:
    package: str
    version: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": SourceType.NPM.value, "package": self.package, "version": self.version}


@dataclass(frozen=True)
class CargoSourceSpec:
    crate_name: str
    version: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": SourceType.CARGO.value,
            "crate_name": self.crate_name,
            "version": self.version,
        }


@dataclass(frozen=True)
class GithubSourceSpec:
    repo: str
    asset: str
    version: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": SourceType.GITHUB.value,
            "repo": self.repo,
            "asset": self.asset,
            "version": self.version,
        }


SourceSpec = Union[NpmSourceSpec, CargoSourceSpec, GithubSourceSpec]


def source_spec_from_dict(data: Dict[str, Any]) -> SourceSpec:
    """Rebuild a SourceSpec from its tagged form.

    Raises:
        ManifestError: If the tag is unknown or a field is missing.
    """
    if not isinstance(data, dict):
        raise ManifestError(f"source must be an object, got {type(data).__name__}")
    tag = data.get("type")
    if tag == SourceType.NPM.value:
        return NpmSourceSpec(
            package=_require(data, "package", "npm source"),
            version=_require(data, "version", "npm source"),
        )
    if tag == SourceType.CARGO.value:
        return CargoSourceSpec(
            crate_name=_require(data, "crate_name", "cargo source"),
            version=_require(data, "version", "cargo source"),
        )
    if tag == SourceType.GITHUB.value:
        return GithubSourceSpec(
            repo=_require(data, "repo", "github source"),
            asset=data.get("asset", PLATFORM_ASSET),
            version=_require(data, "version", "github source"),
        )
    raise ManifestError(f"unknown source type: {tag}")


def source_spec_ecosystem(source: SourceSpec) -> SourceType:
    if isinstance(source, NpmSourceSpec):
        return SourceType.NPM
    if isinstance(source, CargoSourceSpec):
        return SourceType.CARGO
    return SourceType.GITHUB


def source_spec_identity(source: SourceSpec) -> str:
    """Package, crate or repository identifier of a source spec."""
    if isinstance(source, NpmSourceSpec):
        return source.package
    if isinstance(source, CargoSourceSpec):
        return source.crate_name
    return source.repo


def _command_name(binary: Optional[str]) -> Optional[str]:
    if binary is None:
        return None
    for suffix in WINDOWS_LAUNCHER_SUFFIXES:
        if binary.lower().endswith(suffix):
            return binary[: -len(suffix)]
    return binary


def package_spec_from_source(source: SourceSpec, binary_name: Optional[str] = None) -> PackageSpec:
    """Reconstruct the request a manifest entry was installed from.

    The version requirement is left open so resolution yields the newest
    candidate; github entries keep their explicit asset pattern. A
    Windows launcher suffix on ``binary_name`` is dropped.
    """
    binary_name = _command_name(binary_name)
    if isinstance(source, NpmSourceSpec):
        return PackageSpec(
            name=source.package,
            source=NpmSourceConfig(package=source.package),
            binary_name=binary_name,
        )
    if isinstance(source, CargoSourceSpec):
        return PackageSpec(
            name=source.crate_name,
            source=CargoSourceConfig(crate_name=source.crate_name),
            binary_name=binary_name,
        )
    pattern = None if source.asset == PLATFORM_ASSET else source.asset
    return PackageSpec(
        name=source.repo,
        source=GithubSourceConfig(repo=source.repo, asset_pattern=pattern),
        binary_name=binary_name,
    )


def source_spec_from_package(spec: PackageSpec, version: str) -> SourceSpec:
    """Persisted exact-version form of ``spec`` installed at ``version``."""
    source = spec.source
    if isinstance(source, NpmSourceConfig):
        return NpmSourceSpec(package=source.package, version=version)
    if isinstance(source, CargoSourceConfig):
        return CargoSourceSpec(crate_name=source.crate_name, version=version)
    return GithubSourceSpec(
        repo=source.repo,
        asset=source.asset_pattern or PLATFORM_ASSET,
        version=version,
    )


@dataclass(frozen=True)
class NodeRuntimeSpec:
    """The node interpreter version an installed binary runs on."""

    version: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "node", "version": self.version}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodeRuntimeSpec":
        if not isinstance(data, dict) or data.get("type") != "node":
            raise ManifestError(f"unknown runtime type: {data!r}")
        return cls(version=_require(data, "version", "node runtime"))

    @classmethod
    def from_runtime(cls, runtime: Optional[RuntimeVersion]) -> Optional["NodeRuntimeSpec"]:
        if runtime is None or runtime.toolchain != "node":
            return None
        return cls(version=runtime.version)


def unix_timestamp() -> str:
    """Current time as unix seconds in string form."""
    return str(int(time.time()))


@dataclass
class InstalledBinary:
    """One manifest entry."""

    source: SourceSpec
    binary: str
    sha256: str
    installed_at: str = field(default_factory=unix_timestamp)
    runtime: Optional[NodeRuntimeSpec] = None

    @property
    def version(self) -> str:
        return self.source.version

    @property
    def ecosystem(self) -> SourceType:
        return source_spec_ecosystem(self.source)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "source": self.source.to_dict(),
            "binary": self.binary,
            "sha256": self.sha256,
            "installed_at": self.installed_at,
        }
        if self.runtime is not None:
            data["runtime"] = self.runtime.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InstalledBinary":
        if not isinstance(data, dict):
            raise ManifestError(f"binary entry must be an object, got {type(data).__name__}")
        runtime_data = data.get("runtime")
        return cls(
            source=source_spec_from_dict(_require(data, "source", "binary entry")),
            binary=_require(data, "binary", "binary entry"),
            sha256=_require(data, "sha256", "binary entry"),
            installed_at=str(data.get("installed_at", "")),
            runtime=NodeRuntimeSpec.from_dict(runtime_data) if runtime_data else None,
        )


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ManifestError(f"invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise ManifestError(f"failed to read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"{path} must contain a JSON object")
    return data


def _write_json(path: Path, data: Dict[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"failed to write {path}: {e}") from e


@dataclass
class Manifest:
    """Installed binaries keyed by name."""

    binaries: Dict[str, InstalledBinary] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "Manifest":
        """Load the manifest, or return an empty one if the file is absent.

        Raises:
            ManifestError: If the file is malformed.
        """
        if not path.exists():
            return cls()
        data = _read_json(path)
        binaries = data.get("binaries") or {}
        if not isinstance(binaries, dict):
            raise ManifestError(f"'binaries' in {path} must be an object")
        return cls(
            binaries={name: InstalledBinary.from_dict(entry) for name, entry in binaries.items()}
        )

    def save(self, path: Path) -> None:
        """Write the manifest as pretty JSON, creating parent directories."""
        _write_json(path, self.to_dict())
        LOGGER.debug(f"Saved manifest with {len(self.binaries)} entries to {path}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "binaries": {
                name: entry.to_dict() for name, entry in sorted(self.binaries.items())
            }
        }

    def used_node_versions(self) -> Set[str]:
        """Node versions still referenced by any entry."""
        return {
            entry.runtime.version
            for entry in self.binaries.values()
            if entry.runtime is not None
        }


@dataclass
class NodeRuntimeState:
    installed: List[str] = field(default_factory=list)
    default: Optional[str] = None
    last_updated: Optional[str] = None


@dataclass
class PnpmRuntimeState:
    version: Optional[str] = None
    last_updated: Optional[str] = None


@dataclass
class RuntimeManifest:
    """Toolchain pool state persisted in ``runtime.json``."""

    node: NodeRuntimeState = field(default_factory=NodeRuntimeState)
    pnpm: PnpmRuntimeState = field(default_factory=PnpmRuntimeState)

    @classmethod
    def load(cls, path: Path) -> "RuntimeManifest":
        if not path.exists():
            return cls()
        return cls.from_dict(_read_json(path))

    def save(self, path: Path) -> None:
        _write_json(path, self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuntimeManifest":
        node = data.get("node") or {}
        pnpm = data.get("pnpm") or {}
        if not isinstance(node, dict) or not isinstance(pnpm, dict):
            raise ManifestError("'node' and 'pnpm' in runtime manifest must be objects")
        installed = node.get("installed") or []
        if not isinstance(installed, list):
            raise ManifestError("'node.installed' in runtime manifest must be a list")
        return cls(
            node=NodeRuntimeState(
                installed=[str(version) for version in installed],
                default=node.get("default"),
                last_updated=node.get("last_updated"),
            ),
            pnpm=PnpmRuntimeState(
                version=pnpm.get("version"),
                last_updated=pnpm.get("last_updated"),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node": {
                "installed": list(self.node.installed),
                "default": self.node.default,
                "last_updated": self.node.last_updated,
            },
            "pnpm": {
                "version": self.pnpm.version,
                "last_updated": self.pnpm.last_updated,
            },
        }
