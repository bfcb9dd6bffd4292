"""Configuration data models for fetchbin.

Defines typed configuration classes that represent config.yml structure.
Every field has a built-in default so fetchbin runs without any file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

DEFAULT_NPM_REGISTRY = "https://registry.npmjs.org"
DEFAULT_CRATES_API = "https://crates.io/api/v1/crates"
DEFAULT_GITHUB_API = "https://api.github.com"
DEFAULT_GITHUB = "https://github.com"
DEFAULT_NODE_DIST = "https://nodejs.org/dist"

DEFAULT_TIMEOUT = 60.0


@dataclass
class RegistryConfig:
    """Upstream endpoints. Override to use mirrors."""

    npm: str = DEFAULT_NPM_REGISTRY
    crates: str = DEFAULT_CRATES_API
    github_api: str = DEFAULT_GITHUB_API
    github: str = DEFAULT_GITHUB
    node_dist: str = DEFAULT_NODE_DIST


@dataclass
class RuntimeConfig:
    """Toolchain pool settings."""

    # Requirement used for node when the pool has no default yet
    node_default: str = "lts"


@dataclass
class NetworkConfig:
    """HTTP settings."""

    timeout: float = DEFAULT_TIMEOUT  # Seconds per request


@dataclass
class FetchbinConfig:
    """Complete fetchbin configuration."""

    registries: RegistryConfig = field(default_factory=RegistryConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)

    # Metadata (not from YAML)
    _config_sources: List[str] = field(default_factory=list, repr=False)

    @property
    def sources(self) -> List[str]:
        """Where this configuration was loaded from."""
        return list(self._config_sources)

