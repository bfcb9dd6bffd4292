"""cargo-binstall binary-install helper."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fetchbin.bootstrap.download import DEFAULT_TIMEOUT, fetch_bytes, fetch_text
from fetchbin.bootstrap.platform import PlatformInfo
from fetchbin.bootstrap.validation import set_executable
from fetchbin.core.archive import extract_archive, find_file
from fetchbin.core.checksum import verify_checksum
from fetchbin.core.errors import (
    AssetNotFoundError,
    NetworkError,
    ParseError,
    RuntimeDownloadError,
)
from fetchbin.core.logging import get_logger
from fetchbin.core.releases import Release, fetch_latest_release

LOGGER = get_logger(__name__)

BINSTALL_TOOLCHAIN = "cargo-binstall"
BINSTALL_REPO = "cargo-bins/cargo-binstall"
BINSTALL_CHECKSUMS = "checksums.txt"

_BINARY_NAMES = ["cargo-binstall", "cargo-binstall.exe"]


@dataclass(frozen=True)
class BinstallRuntime:
    version: str
    binstall_path: Path


def fetch_binstall_release(api_base: str, timeout: float = DEFAULT_TIMEOUT) -> Release:
    try:
        return fetch_latest_release(api_base, BINSTALL_REPO, timeout=timeout)
    except (NetworkError, ParseError) as e:
        raise RuntimeDownloadError(BINSTALL_TOOLCHAIN, "latest", str(e)) from e


def resolve_binstall_runtime(version: str, dest: Path) -> Optional[BinstallRuntime]:
    """Search ``dest`` recursively for an already unpacked cargo-binstall."""
    if not dest.is_dir():
        return None
    found = find_file(dest, _BINARY_NAMES)
    if found is None:
        return None
    return BinstallRuntime(version=version, binstall_path=found)


def download_binstall(
    release: Release,
    dest: Path,
    platform: PlatformInfo,
    timeout: float = DEFAULT_TIMEOUT,
) -> BinstallRuntime:
    """Download, verify against ``checksums.txt`` and unpack cargo-binstall.

    Raises:
        AssetNotFoundError: If the release lacks the platform archive or checksums.txt.
        RuntimeDownloadError: On network failure or if the binary is absent after unpacking.
        ChecksumMissingError: If checksums.txt has no entry for the archive.
        ChecksumMismatchError: If the archive digest differs.
    """
    version = release.version
    asset_name = platform.binstall_asset_name()

    asset = release.find_asset(asset_name)
    checksum_asset = release.find_asset(BINSTALL_CHECKSUMS)
    if asset is None:
        raise AssetNotFoundError(asset_name, release.asset_names)
    if checksum_asset is None:
        raise AssetNotFoundError(BINSTALL_CHECKSUMS, release.asset_names)

    try:
        LOGGER.info(f"Downloading cargo-binstall v{version} ({asset_name})")
        data = fetch_bytes(asset.browser_download_url, timeout=timeout)
        checksum_text = fetch_text(checksum_asset.browser_download_url, timeout=timeout)
    except NetworkError as e:
        raise RuntimeDownloadError(BINSTALL_TOOLCHAIN, version, str(e)) from e

    verify_checksum(asset_name, checksum_text, data)

    if dest.exists():
        shutil.rmtree(dest)
    try:
        extract_archive(data, asset_name, dest)
    except ParseError as e:
        raise RuntimeDownloadError(BINSTALL_TOOLCHAIN, version, str(e)) from e

    runtime = resolve_binstall_runtime(version, dest)
    if runtime is None:
        raise RuntimeDownloadError(
            BINSTALL_TOOLCHAIN, version, "cargo-binstall binary not found after extraction"
        )
    set_executable(runtime.binstall_path)
    LOGGER.info(f"cargo-binstall v{version} installed to {runtime.binstall_path}")
    return runtime
