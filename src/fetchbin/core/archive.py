"""Archive detection and safe extraction.

Only gzip-compressed tarballs, zip files and raw single-file executables
are handled. Every member path is checked against the destination before
anything is written, so crafted archives cannot escape the store.
"""

from __future__ import annotations

import io
import tarfile
import zipfile
from enum import Enum
from pathlib import Path
from typing import List, Optional

from fetchbin.core.errors import ParseError
from fetchbin.core.logging import get_logger

LOGGER = get_logger(__name__)


class ArchiveType(str, Enum):
    """Container format of a downloaded asset."""

    TAR_GZ = "tar.gz"
    ZIP = "zip"
    RAW = "raw"


UNSUPPORTED_SUFFIXES = (
    ".tar.bz2",
    ".tar.xz",
    ".tar",
    ".gz",
    ".bz2",
    ".xz",
    ".7z",
    ".rar",
)


def detect_archive_type(name: str) -> ArchiveType:
    """Classify an asset by its file name."""
    lower = name.lower()
    if lower.endswith(".tar.gz") or lower.endswith(".tgz"):
        return ArchiveType.TAR_GZ
    if lower.endswith(".zip"):
        return ArchiveType.ZIP
    return ArchiveType.RAW


def is_unsupported_archive(name: str) -> bool:
    """Whether ``name`` is an archive format fetchbin refuses to unpack."""
    lower = name.lower()
    if detect_archive_type(lower) is not ArchiveType.RAW:
        return False
    return any(lower.endswith(suffix) for suffix in UNSUPPORTED_SUFFIXES)


def _safe_member_path(dest_dir: Path, member_name: str) -> Path:
    member_path = (dest_dir / member_name).resolve()
    if not member_path.is_relative_to(dest_dir.resolve()):
        raise ParseError(f"Path traversal detected: {member_name}")
    return member_path


def _extract_symlink(dest_dir: Path, target: Path, link_name: str) -> None:
    resolved = (target.parent / link_name).resolve()
    if not resolved.is_relative_to(dest_dir.resolve()):
        LOGGER.debug(f"Skipping symlink {target} pointing outside archive root")
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.is_symlink() or target.exists():
        target.unlink()
    target.symlink_to(link_name)


def extract_tar_gz(data: bytes, dest_dir: Path) -> List[Path]:
    """Unpack a gzip tarball into ``dest_dir``.

    Symlinks are recreated only when they point inside ``dest_dir``;
    hard links and device entries are skipped.

    Args:
        data: Raw archive bytes.
        dest_dir: Destination directory (created if missing).

    Returns:
        Paths of all regular files written.

    Raises:
        ParseError: If the archive is corrupt or a member escapes ``dest_dir``.
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    extracted: List[Path] = []
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            members = tar.getmembers()
            for member in members:
                _safe_member_path(dest_dir, member.name)
            for member in members:
                if member.isdir():
                    (dest_dir / member.name).mkdir(parents=True, exist_ok=True)
                    continue
                target = dest_dir / member.name
                if member.issym():
                    _extract_symlink(dest_dir, target, member.linkname)
                    continue
                if not member.isfile():
                    LOGGER.debug(f"Skipping non-regular tar entry {member.name}")
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                source = tar.extractfile(member)
                if source is None:
                    continue
                with source, open(target, "wb") as out:
                    out.write(source.read())
                if member.mode & 0o111:
                    target.chmod(0o755)
                extracted.append(target)
    except (tarfile.TarError, EOFError, OSError) as e:
        raise ParseError(f"failed to extract tar.gz archive: {e}") from e
    return extracted


def extract_zip(data: bytes, dest_dir: Path) -> List[Path]:
    """Unpack a zip archive into ``dest_dir``.

    Returns:
        Paths of all files written.

    Raises:
        ParseError: If the archive is corrupt or a member escapes ``dest_dir``.
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    extracted: List[Path] = []
    try:
        with zipfile.ZipFile(io.BytesIO(data), "r") as zf:
            for zip_member in zf.namelist():
                _safe_member_path(dest_dir, zip_member)
            for info in zf.infolist():
                target = dest_dir / info.filename
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as source, open(target, "wb") as out:
                    out.write(source.read())
                extracted.append(target)
    except (zipfile.BadZipFile, OSError) as e:
        raise ParseError(f"failed to extract zip archive: {e}") from e
    return extracted


def write_raw(data: bytes, dest_dir: Path, file_name: str) -> Path:
    """Write an unpacked asset to ``dest_dir/file_name``."""
    dest_dir.mkdir(parents=True, exist_ok=True)
    output = dest_dir / file_name
    output.write_bytes(data)
    return output


def select_binary(paths: List[Path], binary_name: str) -> Path:
    """Pick the executable called ``binary_name`` from extracted files.

    A file named exactly ``binary_name`` or ``binary_name.exe`` wins; when
    nothing matches and the archive held a single file, that file is used.

    Raises:
        ParseError: If no file or more than one file qualifies.
    """
    candidates = {binary_name, f"{binary_name}.exe"}
    matching = [path for path in paths if path.name in candidates]

    if len(matching) == 1:
        return matching[0]
    if not matching:
        if len(paths) == 1:
            return paths[0]
        raise ParseError(
            f"archive contains {len(paths)} files but none match "
            f"expected binary name '{binary_name}'"
        )
    raise ParseError(f"multiple binaries matched for {binary_name}")


def extract_archive(
    data: bytes,
    asset_name: str,
    dest_dir: Path,
    raw_name: Optional[str] = None,
) -> List[Path]:
    """Unpack ``data`` according to the format implied by ``asset_name``.

    Raw assets are written as ``raw_name`` (default: the asset name).
    """
    archive_type = detect_archive_type(asset_name)
    if archive_type is ArchiveType.TAR_GZ:
        return extract_tar_gz(data, dest_dir)
    if archive_type is ArchiveType.ZIP:
        return extract_zip(data, dest_dir)
    return [write_raw(data, dest_dir, raw_name or asset_name)]


def find_file(root: Path, names: List[str]) -> Optional[Path]:
    """Recursively search ``root`` for the first regular file with one of ``names``."""
    for path in sorted(root.rglob("*")):
        if path.is_file() and path.name in names:
            return path
    return None
