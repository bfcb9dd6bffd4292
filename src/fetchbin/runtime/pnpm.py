"""pnpm package-install helper.

pnpm ships standalone single-file executables per platform, each with a
``<asset>.sha256`` sidecar.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fetchbin.bootstrap.download import DEFAULT_TIMEOUT, fetch_bytes, fetch_text
from fetchbin.bootstrap.platform import PlatformInfo
from fetchbin.bootstrap.validation import set_executable
from fetchbin.core.checksum import verify_checksum
from fetchbin.core.errors import NetworkError, ParseError, RuntimeDownloadError
from fetchbin.core.logging import get_logger
from fetchbin.core.releases import fetch_latest_release

LOGGER = get_logger(__name__)

PNPM_TOOLCHAIN = "pnpm"
PNPM_REPO = "pnpm/pnpm"


@dataclass(frozen=True)
class PnpmRuntime:
    version: str
    pnpm_path: Path


def pnpm_executable_name(platform: PlatformInfo) -> str:
    return f"pnpm{platform.exe_suffix}"


def fetch_latest_pnpm_version(api_base: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Version of the latest pnpm release, without the leading ``v``."""
    try:
        return fetch_latest_release(api_base, PNPM_REPO, timeout=timeout).version
    except (NetworkError, ParseError) as e:
        raise RuntimeDownloadError(PNPM_TOOLCHAIN, "latest", str(e)) from e


def resolve_pnpm_runtime(version: str, dest: Path, platform: PlatformInfo) -> Optional[PnpmRuntime]:
    pnpm_path = dest / pnpm_executable_name(platform)
    if pnpm_path.is_file():
        return PnpmRuntime(version=version, pnpm_path=pnpm_path)
    return None


def download_pnpm(
    github_base: str,
    version: str,
    dest: Path,
    platform: PlatformInfo,
    timeout: float = DEFAULT_TIMEOUT,
) -> PnpmRuntime:
    """Download and verify the pnpm executable for ``version`` into ``dest``.

    Raises:
        RuntimeDownloadError: On network failure.
        ChecksumMissingError: If the sidecar holds no usable digest.
        ChecksumMismatchError: If the executable digest differs.
    """
    asset = platform.pnpm_asset_name()
    base_url = f"{github_base}/{PNPM_REPO}/releases/download/v{version}"

    try:
        LOGGER.info(f"Downloading pnpm v{version} ({asset})")
        data = fetch_bytes(f"{base_url}/{asset}", timeout=timeout)
        checksum_text = fetch_text(f"{base_url}/{asset}.sha256", timeout=timeout)
    except NetworkError as e:
        raise RuntimeDownloadError(PNPM_TOOLCHAIN, version, str(e)) from e

    verify_checksum(asset, checksum_text, data, allow_single_hash=True)

    if dest.exists():
        shutil.rmtree(dest)
    dest.mkdir(parents=True)
    pnpm_path = dest / pnpm_executable_name(platform)
    pnpm_path.write_bytes(data)
    set_executable(pnpm_path)

    LOGGER.info(f"pnpm v{version} installed to {pnpm_path}")
    return PnpmRuntime(version=version, pnpm_path=pnpm_path)
