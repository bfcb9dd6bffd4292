"""Path management for the fetchbin data root.

Handles the data directory structure and path resolution. Every package
lives in the content store under a key of (ecosystem, identity, version);
toolchains live under ``toolchains/{name}/{version}``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Optional

# Environment variable to override the data root
FETCHBIN_HOME_ENV = "FETCHBIN_HOME"

DEFAULT_DIR_NAME = "fetchbin"


def get_fetchbin_home() -> Path:
    """Get the fetchbin data root.

    Resolution order:
    1. FETCHBIN_HOME environment variable (if set)
    2. $XDG_DATA_HOME/fetchbin
    3. ~/.local/share/fetchbin (default)

    Returns:
        Path to the fetchbin data root.
    """
    env_home = os.environ.get(FETCHBIN_HOME_ENV)
    if env_home:
        return Path(env_home)
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data) / DEFAULT_DIR_NAME
    return Path.home() / ".local" / "share" / DEFAULT_DIR_NAME


def sanitize_component(value: str) -> str:
    """Make a package identity safe to use as a single path component."""
    return value.replace("/", "__").replace("@", "")


@dataclass
class FetchbinPaths:
    """Manages paths within the fetchbin data root.

    Directory structure:
        <data-root>/
            manifest.json                         - installed binaries
            runtime.json                          - toolchain pool state
            config.yml                            - optional user config
            bin/{name}                            - links to store artifacts
            store/{ecosystem}/{id}/{version}/     - unpacked packages
            toolchains/{toolchain}/{version}/     - node, pnpm, cargo-binstall
            toolchains/cargo/                     - CARGO_HOME for cargo-binstall
    """

    home: Path

    _BIN_DIR: ClassVar[str] = "bin"
    _STORE_DIR: ClassVar[str] = "store"
    _TOOLCHAINS_DIR: ClassVar[str] = "toolchains"
    _MANIFEST: ClassVar[str] = "manifest.json"
    _RUNTIME_MANIFEST: ClassVar[str] = "runtime.json"
    _CONFIG: ClassVar[str] = "config.yml"

    @classmethod
    def default(cls, override: Optional[Path] = None) -> "FetchbinPaths":
        """Create paths from an explicit root or the default data root."""
        return cls(override if override is not None else get_fetchbin_home())

    @property
    def bin_dir(self) -> Path:
        """Shared directory of links to installed binaries."""
        return self.home / self._BIN_DIR

    @property
    def store_dir(self) -> Path:
        """Root of the content store."""
        return self.home / self._STORE_DIR

    @property
    def toolchains_dir(self) -> Path:
        """Root of the cached toolchains."""
        return self.home / self._TOOLCHAINS_DIR

    @property
    def manifest_path(self) -> Path:
        return self.home / self._MANIFEST

    @property
    def runtime_manifest_path(self) -> Path:
        return self.home / self._RUNTIME_MANIFEST

    @property
    def config_path(self) -> Path:
        return self.home / self._CONFIG

    @property
    def cargo_home(self) -> Path:
        """Isolated CARGO_HOME used by cargo-binstall."""
        return self.toolchains_dir / "cargo"

    def store_path(self, ecosystem: str, identity: str, version: str) -> Path:
        """Get the store directory for one (ecosystem, identity, version) key.

        Args:
            ecosystem: Source type, e.g. 'npm', 'cargo', 'github'.
            identity: Package, crate, or repository identifier.
            version: Exact version string.

        Returns:
            Path to the version-specific store directory.
        """
        return self.store_dir / ecosystem / sanitize_component(identity) / version

    def toolchain_dir(self, toolchain: str, version: str) -> Path:
        """Get the directory holding one cached toolchain version."""
        return self.toolchains_dir / toolchain / version

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        for directory in (self.home, self.bin_dir, self.store_dir, self.toolchains_dir):
            directory.mkdir(parents=True, exist_ok=True)
