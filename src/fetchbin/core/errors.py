"""Error taxonomy for fetchbin.

Every failure the core can report is a subclass of :class:`FetchbinError`
so the CLI can turn it into a descriptive message and an exit code.
"""

from __future__ import annotations

from typing import Iterable, List


class FetchbinError(Exception):
    """Base class for all fetchbin errors."""


class NetworkError(FetchbinError):
    """A request to an upstream service failed."""

    def __init__(self, url: str, details: str):
        self.url = url
        self.details = details
        super().__init__(f"network error for {url}: {details}")


class ParseError(FetchbinError):
    """Upstream metadata or user input could not be parsed."""


class NoMatchingVersionError(FetchbinError):
    """No version satisfies the requested requirement."""

    def __init__(self, package: str, requirement: str):
        self.package = package
        self.requirement = requirement
        super().__init__(f"no versions of {package} matching {requirement}")


class AssetNotFoundError(FetchbinError):
    """No release asset matched the pattern or platform."""

    def __init__(self, pattern: str, available: Iterable[str]):
        self.pattern = pattern
        self.available: List[str] = list(available)
        super().__init__(
            f"no asset found matching pattern '{pattern}'. "
            f"Available: {', '.join(self.available) or '(none)'}"
        )


class UnsupportedArchiveError(FetchbinError):
    """The chosen asset is an archive format fetchbin does not unpack."""

    def __init__(self, asset_name: str):
        self.asset_name = asset_name
        super().__init__(f"unsupported archive format: {asset_name}")


class AmbiguousBinariesError(FetchbinError):
    """A package exposes several executables and none was selected."""

    def __init__(self, binaries: Iterable[str]):
        self.binaries: List[str] = sorted(binaries)
        super().__init__(
            f"multiple binaries found: {', '.join(self.binaries)} "
            "(select one with --bin)"
        )


class BinaryNotFoundError(FetchbinError):
    """An expected executable is absent."""

    def __init__(self, package: str, searched: Iterable[str]):
        self.package = package
        self.searched: List[str] = list(searched)
        super().__init__(
            f"binary not found for package {package}. searched: {', '.join(self.searched)}"
        )


class InstallHelperError(FetchbinError):
    """pnpm or cargo-binstall exited unsuccessfully."""

    def __init__(self, helper: str, details: str):
        self.helper = helper
        self.details = details
        super().__init__(f"{helper} failed: {details}")


class ChecksumError(FetchbinError):
    """Base class for integrity failures."""


class ChecksumMissingError(ChecksumError):
    """A required checksum entry was not present."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"checksum entry not found for {filename}")


class ChecksumMismatchError(ChecksumError):
    """The computed digest differs from the published one."""

    def __init__(self, filename: str, expected: str, actual: str):
        self.filename = filename
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"checksum mismatch for {filename}: expected {expected}, got {actual}"
        )


class UnsupportedPlatformError(FetchbinError):
    """The running OS/architecture combination is not supported."""

    def __init__(self, os_name: str, arch: str):
        self.os = os_name
        self.arch = arch
        super().__init__(f"unsupported platform: {os_name}-{arch}")


class NoCompatibleRuntimeError(FetchbinError):
    """No node release satisfies a requirement."""

    def __init__(self, requirement: str):
        self.requirement = requirement
        super().__init__(f"no compatible node version for requirement: {requirement}")


class RuntimeDownloadError(FetchbinError):
    """A toolchain could not be downloaded or unpacked."""

    def __init__(self, toolchain: str, version: str, details: str):
        self.toolchain = toolchain
        self.version = version
        self.details = details
        super().__init__(f"{toolchain} download failed for {version}: {details}")


class ManifestError(FetchbinError):
    """A manifest file could not be read or written."""


class NotInstalledError(FetchbinError):
    """A binary name has no manifest entry."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name} is not installed")
