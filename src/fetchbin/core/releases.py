"""GitHub release metadata.

Shared by the github source and the toolchain pool, which downloads pnpm
and cargo-binstall from GitHub releases.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fetchbin.bootstrap.download import DEFAULT_TIMEOUT, fetch_json, github_headers
from fetchbin.core.errors import ParseError

CHECKSUM_MANIFEST_NAMES = ("checksums.txt", "SHASUMS256.txt", "SHA256SUMS")

# Detached metadata published next to real assets
_SIDECAR_SUFFIXES = (".sha256", ".sha256sum", ".sha512", ".sig", ".asc", ".pem", ".sbom", ".intoto.jsonl")


@dataclass(frozen=True)
class ReleaseAsset:
    name: str
    browser_download_url: str = ""
    size: int = 0

    @property
    def is_sidecar(self) -> bool:
        """Whether this asset is a checksum or signature rather than a deliverable."""
        lower = self.name.lower()
        if self.name in CHECKSUM_MANIFEST_NAMES:
            return True
        return lower.endswith(_SIDECAR_SUFFIXES)


@dataclass(frozen=True)
class Release:
    tag_name: str
    name: Optional[str] = None
    prerelease: bool = False
    draft: bool = False
    assets: List[ReleaseAsset] = field(default_factory=list)

    @property
    def version(self) -> str:
        return self.tag_name[1:] if self.tag_name.startswith("v") else self.tag_name

    @property
    def asset_names(self) -> List[str]:
        return [asset.name for asset in self.assets]

    def find_asset(self, name: str) -> Optional[ReleaseAsset]:
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None

    def find_checksum_asset(self, asset: ReleaseAsset) -> Optional[ReleaseAsset]:
        """Locate the checksum file for ``asset``.

        ``<asset>.sha256`` is preferred, then the combined manifests in
        :data:`CHECKSUM_MANIFEST_NAMES` order.
        """
        sibling = self.find_asset(f"{asset.name}.sha256")
        if sibling is not None:
            return sibling
        for manifest_name in CHECKSUM_MANIFEST_NAMES:
            found = self.find_asset(manifest_name)
            if found is not None:
                return found
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Release":
        """Build a release from GitHub API JSON.

        Raises:
            ParseError: If required fields are missing or mistyped.
        """
        if not isinstance(data, dict) or not isinstance(data.get("tag_name"), str):
            raise ParseError("GitHub release is missing 'tag_name'")
        assets_data = data.get("assets") or []
        if not isinstance(assets_data, list):
            raise ParseError(f"GitHub release {data['tag_name']} has malformed 'assets'")
        assets = []
        for item in assets_data:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                raise ParseError(f"GitHub release {data['tag_name']} has an asset without a name")
            assets.append(
                ReleaseAsset(
                    name=item["name"],
                    browser_download_url=item.get("browser_download_url") or "",
                    size=int(item.get("size") or 0),
                )
            )
        return cls(
            tag_name=data["tag_name"],
            name=data.get("name"),
            prerelease=bool(data.get("prerelease", False)),
            draft=bool(data.get("draft", False)),
            assets=assets,
        )


def fetch_releases(api_base: str, repo: str, timeout: float = DEFAULT_TIMEOUT) -> List[Release]:
    """List releases of ``repo``, newest first."""
    data = fetch_json(f"{api_base}/repos/{repo}/releases", headers=github_headers(), timeout=timeout)
    if not isinstance(data, list):
        raise ParseError(f"expected a list of releases for {repo}")
    return [Release.from_dict(item) for item in data]


def fetch_latest_release(api_base: str, repo: str, timeout: float = DEFAULT_TIMEOUT) -> Release:
    """Fetch the release GitHub marks as latest for ``repo``."""
    data = fetch_json(
        f"{api_base}/repos/{repo}/releases/latest", headers=github_headers(), timeout=timeout
    )
    return Release.from_dict(data)
