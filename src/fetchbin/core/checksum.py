"""Checksum manifest parsing and digest verification.

Supports the three formats seen in upstream release assets:

- GNU coreutils: ``<hex>  <file>`` or ``<hex> *<file>``
- BSD: ``SHA256 (<file>) = <hex>``
- single-hash files containing one 64 character hex token
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path, PurePosixPath
from typing import Dict, Optional, Union

from fetchbin.core.errors import ChecksumMismatchError, ChecksumMissingError

_BSD_LINE = re.compile(r"^(?P<algo>[A-Za-z0-9-]+)\s*\((?P<file>.+)\)\s*=\s*(?P<hash>\S+)$")
_HEX_DIGEST = re.compile(r"^[0-9a-fA-F]{64}$")

_CHUNK_SIZE = 8192


def sha256_hex(data: bytes) -> str:
    """Return the lowercase hex sha256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def sha256_file(path: Path) -> str:
    """Return the lowercase hex sha256 digest of a file's contents."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _clean_filename(name: str) -> str:
    name = name.strip()
    while name.startswith("./"):
        name = name[2:]
    return name


def parse_checksum_file(content: str) -> Dict[str, str]:
    """Parse a checksum manifest into a filename -> digest mapping.

    Lines that are blank, comments, or otherwise unparseable are skipped.
    Digests are lowercased; leading ``./`` is stripped from filenames.

    Args:
        content: Text of the checksum manifest.

    Returns:
        Mapping of filename to lowercase hex digest.
    """
    checksums: Dict[str, str] = {}

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        bsd = _BSD_LINE.match(line)
        if bsd:
            filename = _clean_filename(bsd.group("file"))
            if filename and bsd.group("algo").lower() == "sha256":
                checksums[filename] = bsd.group("hash").lower()
            continue

        parts = line.split(None, 1)
        if len(parts) != 2:
            continue
        digest, filename = parts
        # The character before the name is the mode flag: '*' binary, ' ' text
        filename = _clean_filename(filename.lstrip("*"))
        if filename:
            checksums[filename] = digest.lower()

    return checksums


def parse_single_hash(content: str) -> Optional[str]:
    """Return the first bare sha256 digest found in ``content``, if any."""
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        token = line.split()[0]
        if _HEX_DIGEST.match(token):
            return token.lower()
    return None


def lookup_checksum(checksums: Dict[str, str], asset_name: str) -> Optional[str]:
    """Find the digest for ``asset_name``, falling back to its bare file name."""
    if asset_name in checksums:
        return checksums[asset_name]
    bare = PurePosixPath(asset_name.replace("\\", "/")).name
    return checksums.get(bare)


def verify_digest(filename: str, expected: str, data: Union[bytes, Path]) -> str:
    """Compare ``data`` against an expected digest.

    Args:
        filename: Name used in the error message.
        expected: Expected hex digest (any case).
        data: Raw bytes or a path to hash.

    Returns:
        The computed lowercase digest.

    Raises:
        ChecksumMismatchError: If the digests differ.
    """
    actual = sha256_file(data) if isinstance(data, Path) else sha256_hex(data)
    if expected.strip().lower() != actual:
        raise ChecksumMismatchError(filename, expected, actual)
    return actual


def verify_checksum(
    asset_name: str,
    checksum_text: str,
    data: bytes,
    *,
    allow_single_hash: bool = False,
) -> str:
    """Verify ``data`` against the entry for ``asset_name`` in a manifest.

    Args:
        asset_name: Name of the downloaded asset.
        checksum_text: Contents of the checksum manifest.
        data: Downloaded bytes.
        allow_single_hash: Accept a lone digest with no filename association.

    Returns:
        The verified lowercase digest.

    Raises:
        ChecksumMissingError: If no entry exists for the asset.
        ChecksumMismatchError: If the digest does not match.
    """
    expected = lookup_checksum(parse_checksum_file(checksum_text), asset_name)
    if expected is None and allow_single_hash:
        expected = parse_single_hash(checksum_text)
    if expected is None:
        raise ChecksumMissingError(asset_name)
    return verify_digest(asset_name, expected, data)
