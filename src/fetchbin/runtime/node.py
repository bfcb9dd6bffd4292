"""Node.js interpreter management.

Resolves node versions against the upstream ``index.json`` and downloads
verified distribution archives into the toolchain directory.
"""

from __future__ import annotations

import json
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from fetchbin.bootstrap.download import DEFAULT_TIMEOUT, fetch_bytes, fetch_text
from fetchbin.bootstrap.platform import PlatformInfo
from fetchbin.core.archive import extract_archive
from fetchbin.core.checksum import lookup_checksum, parse_checksum_file, verify_digest
from fetchbin.core.errors import (
    ChecksumMissingError,
    NetworkError,
    ParseError,
    RuntimeDownloadError,
)
from fetchbin.core.logging import get_logger
from fetchbin.core.versions import LTS, matching_versions, normalize_version, parse_requirement

LOGGER = get_logger(__name__)

NODE_TOOLCHAIN = "node"


@dataclass(frozen=True)
class NodeRuntime:
    """A node interpreter available on disk."""

    version: str
    node_path: Path

    @property
    def bin_dir(self) -> Path:
        """Directory to prepend to PATH so child processes find this node."""
        return self.node_path.parent


@dataclass(frozen=True)
class NodeVersionInfo:
    version: str
    lts: Optional[str] = None
    date: str = ""

    @property
    def is_lts(self) -> bool:
        return self.lts is not None


@dataclass
class NodeVersionIndex:
    """Upstream list of node releases, newest first."""

    versions: List[NodeVersionInfo] = field(default_factory=list)

    @classmethod
    def fetch(cls, dist_base: str, timeout: float = DEFAULT_TIMEOUT) -> "NodeVersionIndex":
        return cls.parse_json(fetch_text(f"{dist_base}/index.json", timeout=timeout))

    @classmethod
    def parse_json(cls, content: str) -> "NodeVersionIndex":
        """Parse ``index.json``.

        The ``lts`` field is either ``false`` or a codename string; ``true``
        is accepted as well and recorded as ``"lts"``.

        Raises:
            ParseError: If the document is not a list of version records.
        """
        try:
            raw = json.loads(content)
        except json.JSONDecodeError as e:
            raise ParseError(f"invalid node version index: {e}") from e
        if not isinstance(raw, list):
            raise ParseError("node version index must be a list")

        versions = []
        for item in raw:
            if not isinstance(item, dict) or not isinstance(item.get("version"), str):
                raise ParseError(f"malformed node version entry: {item!r}")
            lts_value = item.get("lts")
            if isinstance(lts_value, str):
                lts: Optional[str] = lts_value
            elif lts_value is True:
                lts = LTS
            else:
                lts = None
            versions.append(
                NodeVersionInfo(
                    version=normalize_version(item["version"]),
                    lts=lts,
                    date=str(item.get("date", "")),
                )
            )
        return cls(versions=versions)

    def current_lts(self) -> Optional[NodeVersionInfo]:
        """The newest LTS release."""
        for info in self.versions:
            if info.is_lts:
                return info
        return None

    def find_compatible(self, requirement: str) -> Optional[NodeVersionInfo]:
        """Pick the release satisfying ``requirement``.

        ``lts`` selects the newest LTS release. A semver range selects the
        newest matching LTS release, falling back to the newest match. Any
        other text is treated as an exact version (leading ``v`` optional).
        """
        if requirement.strip().lower() == LTS:
            return self.current_lts()

        spec = parse_requirement(requirement)
        if spec is not None:
            by_version = {info.version: info for info in self.versions}
            matches = [by_version[v] for v in matching_versions(spec, by_version)]
            for info in matches:
                if info.is_lts:
                    return info
            return matches[0] if matches else None

        wanted = normalize_version(requirement)
        for info in self.versions:
            if info.version == wanted:
                return info
        return None


def node_archive_name(version: str, platform: PlatformInfo) -> str:
    """Distribution archive name, e.g. ``node-v20.10.0-linux-x64.tar.gz``."""
    extension = ".zip" if platform.is_windows else ".tar.gz"
    return f"node-v{version}-{platform.node_slug()}{extension}"


def node_download_url(dist_base: str, version: str, platform: PlatformInfo) -> str:
    return f"{dist_base}/v{version}/{node_archive_name(version, platform)}"


def resolve_node_runtime(version: str, dest: Path) -> Optional[NodeRuntime]:
    """Find the node executable inside an unpacked distribution.

    Archives unpack into a single ``node-v<ver>-<slug>/`` directory, so
    both ``dest/bin/node`` and ``dest/*/bin/node`` are checked (plus the
    Windows layout with ``node.exe`` at the top of that directory).
    """
    if not dest.is_dir():
        return None
    roots = [dest] + sorted(path for path in dest.iterdir() if path.is_dir())
    for root in roots:
        for candidate in (root / "bin" / "node", root / "node.exe"):
            if candidate.is_file():
                return NodeRuntime(version=version, node_path=candidate)
    return None


def download_node(
    dist_base: str,
    version: str,
    dest: Path,
    platform: PlatformInfo,
    timeout: float = DEFAULT_TIMEOUT,
) -> NodeRuntime:
    """Download, verify and unpack one node release into ``dest``.

    The archive is checked against the release's ``SHASUMS256.txt`` before
    anything is written; an existing ``dest`` is replaced.

    Raises:
        RuntimeDownloadError: On network failure or a malformed archive.
        ChecksumMissingError: If SHASUMS256.txt has no entry for the archive.
        ChecksumMismatchError: If the archive digest differs.
    """
    filename = node_archive_name(version, platform)
    base_url = f"{dist_base}/v{version}"

    try:
        checksums = parse_checksum_file(fetch_text(f"{base_url}/SHASUMS256.txt", timeout=timeout))
        expected = lookup_checksum(checksums, filename)
        if expected is None:
            raise ChecksumMissingError(filename)
        LOGGER.info(f"Downloading node v{version} ({filename})")
        data = fetch_bytes(f"{base_url}/{filename}", timeout=timeout)
    except NetworkError as e:
        raise RuntimeDownloadError(NODE_TOOLCHAIN, version, str(e)) from e

    verify_digest(filename, expected, data)

    if dest.exists():
        shutil.rmtree(dest)
    try:
        extract_archive(data, filename, dest)
    except ParseError as e:
        raise RuntimeDownloadError(NODE_TOOLCHAIN, version, str(e)) from e

    runtime = resolve_node_runtime(version, dest)
    if runtime is None:
        raise RuntimeDownloadError(NODE_TOOLCHAIN, version, "node binary not found after extraction")
    LOGGER.info(f"node v{version} installed to {runtime.node_path}")
    return runtime
