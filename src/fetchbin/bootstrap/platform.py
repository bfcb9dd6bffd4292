"""Platform detection and per-toolchain asset naming.

Normalizes the running OS and CPU architecture and maps them onto the
naming conventions used by upstream release assets.
"""

from __future__ import annotations

import platform as _platform
import sys
from dataclasses import dataclass
from typing import Dict, List, Tuple

import pathspec

from fetchbin.core.errors import UnsupportedPlatformError

LINUX = "linux"
MACOS = "macos"
WINDOWS = "windows"

X86_64 = "x86_64"
AARCH64 = "aarch64"
ARMV7 = "armv7"

SUPPORTED_OS = (LINUX, MACOS, WINDOWS)
SUPPORTED_ARCH = (X86_64, AARCH64)

_OS_ALIASES: Dict[str, str] = {
    "linux": LINUX,
    "darwin": MACOS,
    "win32": WINDOWS,
    "cygwin": WINDOWS,
}

_ARCH_ALIASES: Dict[str, str] = {
    "x86_64": X86_64,
    "amd64": X86_64,
    "aarch64": AARCH64,
    "arm64": AARCH64,
    "armv7l": ARMV7,
    "armv7": ARMV7,
    "arm": ARMV7,
}

# Substrings (or globs) that identify a release asset built for a platform.
_ASSET_PATTERNS: Dict[Tuple[str, str], List[str]] = {
    (LINUX, X86_64): [
        "Linux_x86_64",
        "linux-x64",
        "linux-amd64",
        "x86_64-linux",
        "x86_64-unknown-linux-gnu",
    ],
    (LINUX, AARCH64): [
        "Linux_arm64",
        "linux-arm64",
        "linux-aarch64",
        "aarch64-linux",
        "aarch64-unknown-linux-gnu",
    ],
    (MACOS, X86_64): [
        "*darwin*x64*",
        "*darwin*amd64*",
        "*macos*x64*",
        "*osx*x64*",
        "*x86_64*apple*darwin*",
    ],
    (MACOS, AARCH64): [
        "*darwin*arm64*",
        "*macos*arm64*",
        "*apple*silicon*",
        "*aarch64*apple*darwin*",
    ],
    (WINDOWS, X86_64): [
        "*windows*x64*",
        "*win64*",
        "*win*x64*",
        "*x86_64*windows*",
        "*.exe",
    ],
    (WINDOWS, AARCH64): [
        "*windows*arm64*",
        "*win*arm64*",
    ],
}

_NODE_SLUGS: Dict[Tuple[str, str], str] = {
    (LINUX, X86_64): "linux-x64",
    (LINUX, AARCH64): "linux-arm64",
    (MACOS, X86_64): "darwin-x64",
    (MACOS, AARCH64): "darwin-arm64",
    (WINDOWS, X86_64): "win-x64",
    (WINDOWS, AARCH64): "win-arm64",
}

_PNPM_ASSETS: Dict[Tuple[str, str], str] = {
    (LINUX, X86_64): "pnpm-linux-x64",
    (LINUX, AARCH64): "pnpm-linux-arm64",
    (MACOS, X86_64): "pnpm-macos-x64",
    (MACOS, AARCH64): "pnpm-macos-arm64",
    (WINDOWS, X86_64): "pnpm-win-x64.exe",
    (WINDOWS, AARCH64): "pnpm-win-arm64.exe",
}

_BINSTALL_ASSETS: Dict[Tuple[str, str], str] = {
    (LINUX, X86_64): "cargo-binstall-x86_64-unknown-linux-gnu.tgz",
    (LINUX, AARCH64): "cargo-binstall-aarch64-unknown-linux-gnu.tgz",
    (MACOS, X86_64): "cargo-binstall-x86_64-apple-darwin.zip",
    (MACOS, AARCH64): "cargo-binstall-aarch64-apple-darwin.zip",
}

GLOB_CHARS = ("*", "?", "[")


def is_glob(pattern: str) -> bool:
    """Whether ``pattern`` should be treated as a glob rather than a substring."""
    return any(char in pattern for char in GLOB_CHARS)


def glob_matches(pattern: str, name: str) -> bool:
    """Case-insensitive glob match of a file name against ``pattern``."""
    spec = pathspec.PathSpec.from_lines("gitwildmatch", [pattern.lower()])
    return spec.match_file(name.lower())


def pattern_matches(pattern: str, name: str) -> bool:
    """Match an asset name: glob when the pattern has glob characters, else substring."""
    if is_glob(pattern):
        return glob_matches(pattern, name)
    return pattern.lower() in name.lower()


@dataclass(frozen=True)
class PlatformInfo:
    """Normalized operating system and architecture."""

    os: str
    arch: str

    @property
    def key(self) -> Tuple[str, str]:
        return (self.os, self.arch)

    @property
    def is_windows(self) -> bool:
        return self.os == WINDOWS

    @property
    def exe_suffix(self) -> str:
        """Executable file suffix for this platform."""
        return ".exe" if self.is_windows else ""

    def is_supported(self) -> bool:
        return self.os in SUPPORTED_OS and self.arch in SUPPORTED_ARCH

    def require_supported(self) -> "PlatformInfo":
        """Return self, or raise if the combination is unsupported.

        Raises:
            UnsupportedPlatformError: For any OS/arch outside the supported set.
        """
        if not self.is_supported():
            raise UnsupportedPlatformError(self.os, self.arch)
        return self

    def download_filename(self, tool: str) -> str:
        """Filename template ``<tool>-<os>-<arch>[.exe]``."""
        return f"{tool}-{self.os}-{self.arch}{self.exe_suffix}"

    def asset_patterns(self) -> List[str]:
        """Patterns identifying release assets built for this platform."""
        return list(_ASSET_PATTERNS.get(self.key, []))

    def matches_asset(self, asset_name: str) -> bool:
        """Best-effort check whether an asset name targets this platform."""
        return any(pattern_matches(pattern, asset_name) for pattern in self.asset_patterns())

    def node_slug(self) -> str:
        """Platform slug used in node.js distribution archive names."""
        return self._lookup(_NODE_SLUGS)

    def pnpm_asset_name(self) -> str:
        """Name of the standalone pnpm executable for this platform."""
        return self._lookup(_PNPM_ASSETS)

    def binstall_asset_name(self) -> str:
        """Name of the cargo-binstall release archive for this platform."""
        return self._lookup(_BINSTALL_ASSETS)

    def _lookup(self, table: Dict[Tuple[str, str], str]) -> str:
        value = table.get(self.key)
        if value is None:
            raise UnsupportedPlatformError(self.os, self.arch)
        return value


def normalize_os(value: str) -> str:
    lowered = value.lower()
    for prefix, name in _OS_ALIASES.items():
        if lowered.startswith(prefix):
            return name
    return lowered


def normalize_arch(value: str) -> str:
    lowered = value.lower()
    return _ARCH_ALIASES.get(lowered, lowered)


def get_platform_info() -> PlatformInfo:
    """Detect the current platform.

    Returns:
        PlatformInfo with normalized os and arch values. Unknown values are
        kept verbatim so error messages can name them.
    """
    return PlatformInfo(
        os=normalize_os(sys.platform),
        arch=normalize_arch(_platform.machine() or "unknown"),
    )
