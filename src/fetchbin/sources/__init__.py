"""Per-ecosystem binary sources.

Each source implements :class:`BinarySource` independently; the
implementation is chosen by the variant of a package's source.
"""

from __future__ import annotations

from typing import Optional, Union

from fetchbin.bootstrap.platform import PlatformInfo
from fetchbin.config.models import FetchbinConfig
from fetchbin.core.manifest import (
    CargoSourceSpec,
    GithubSourceSpec,
    NpmSourceSpec,
    SourceSpec,
)
from fetchbin.core.models import (
    CargoSourceConfig,
    GithubSourceConfig,
    NpmSourceConfig,
    SourceConfig,
)
from fetchbin.sources.base import BinarySource
from fetchbin.sources.cargo import CargoSource
from fetchbin.sources.github import GithubSource
from fetchbin.sources.npm import NpmSource


def get_source(
    source: Union[SourceConfig, SourceSpec],
    config: Optional[FetchbinConfig] = None,
    platform: Optional[PlatformInfo] = None,
) -> BinarySource:
    """Create the source implementation for ``source``.

    Args:
        source: Request-time source config or persisted source spec.
        config: Registry endpoints and network timeout.
        platform: Platform to fetch for; detected lazily when omitted.

    Returns:
        A fresh BinarySource instance.
    """
    config = config or FetchbinConfig()
    timeout = config.network.timeout
    registries = config.registries

    if isinstance(source, (NpmSourceConfig, NpmSourceSpec)):
        return NpmSource(registries.npm, timeout=timeout, platform=platform)
    if isinstance(source, (CargoSourceConfig, CargoSourceSpec)):
        return CargoSource(registries.crates, timeout=timeout, platform=platform)
    if isinstance(source, (GithubSourceConfig, GithubSourceSpec)):
        return GithubSource(registries.github_api, timeout=timeout, platform=platform)
    raise TypeError(f"Unknown source variant: {type(source).__name__}")


__all__ = [
    "BinarySource",
    "CargoSource",
    "GithubSource",
    "NpmSource",
    "get_source",
]
