"""Tests for fetchbin.core.archive."""

from __future__ import annotations

import io
import tarfile
import zipfile
from pathlib import Path
from typing import Dict

import pytest

from fetchbin.core.archive import (
    ArchiveType,
    detect_archive_type,
    extract_archive,
    extract_tar_gz,
    extract_zip,
    find_file,
    is_unsupported_archive,
    select_binary,
)
from fetchbin.core.errors import ParseError


def make_tar_gz(files: Dict[str, bytes], mode: int = 0o755) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = mode
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def make_zip(files: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


class TestDetectArchiveType:
    """Tests for archive classification."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("tool-linux.tar.gz", ArchiveType.TAR_GZ),
            ("tool-linux.TGZ", ArchiveType.TAR_GZ),
            ("tool-windows.zip", ArchiveType.ZIP),
            ("tool-linux-x64", ArchiveType.RAW),
            ("tool.exe", ArchiveType.RAW),
        ],
    )
    def test_detect(self, name: str, expected: ArchiveType) -> None:
        assert detect_archive_type(name) is expected

    @pytest.mark.parametrize(
        "name",
        ["tool.tar.bz2", "tool.tar.xz", "tool.tar", "tool.gz", "tool.7z", "tool.rar"],
    )
    def test_unsupported(self, name: str) -> None:
        assert is_unsupported_archive(name)

    @pytest.mark.parametrize("name", ["tool.tar.gz", "tool.zip", "tool", "tool.exe"])
    def test_supported(self, name: str) -> None:
        assert not is_unsupported_archive(name)


class TestExtraction:
    """Tests for tar.gz, zip and raw extraction."""

    def test_tar_gz_preserves_executable_bit(self, tmp_path: Path) -> None:
        data = make_tar_gz({"tool-1.0/tool": b"#!/bin/sh\n", "tool-1.0/README": b"docs"})
        extracted = extract_tar_gz(data, tmp_path)
        names = sorted(p.name for p in extracted)
        assert names == ["README", "tool"]
        assert (tmp_path / "tool-1.0" / "tool").stat().st_mode & 0o111

    def test_tar_gz_rejects_path_traversal(self, tmp_path: Path) -> None:
        data = make_tar_gz({"../escape": b"x"})
        with pytest.raises(ParseError, match="Path traversal"):
            extract_tar_gz(data, tmp_path / "dest")
        assert not (tmp_path / "escape").exists()

    def test_corrupt_tar_gz(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError):
            extract_tar_gz(b"definitely not gzip", tmp_path)

    def test_zip(self, tmp_path: Path) -> None:
        extracted = extract_zip(make_zip({"bin/tool.exe": b"MZ"}), tmp_path)
        assert extracted == [tmp_path / "bin" / "tool.exe"]

    def test_zip_rejects_path_traversal(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError, match="Path traversal"):
            extract_zip(make_zip({"../../evil": b"x"}), tmp_path / "dest")

    def test_raw_uses_requested_name(self, tmp_path: Path) -> None:
        extracted = extract_archive(b"\x7fELF", "tool-linux-x64", tmp_path, raw_name="tool")
        assert extracted == [tmp_path / "tool"]
        assert (tmp_path / "tool").read_bytes() == b"\x7fELF"


class TestSelectBinary:
    """Tests for select_binary."""

    def test_exact_name(self, tmp_path: Path) -> None:
        paths = [tmp_path / "README", tmp_path / "tool"]
        assert select_binary(paths, "tool") == tmp_path / "tool"

    def test_exe_suffix(self, tmp_path: Path) -> None:
        paths = [tmp_path / "LICENSE", tmp_path / "tool.exe"]
        assert select_binary(paths, "tool") == tmp_path / "tool.exe"

    def test_single_file_fallback(self, tmp_path: Path) -> None:
        assert select_binary([tmp_path / "tool-v1-linux"], "tool") == tmp_path / "tool-v1-linux"

    def test_no_match_among_many(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError):
            select_binary([tmp_path / "a", tmp_path / "b"], "tool")


class TestFindFile:
    """Tests for recursive search."""

    def test_finds_nested(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "cargo-binstall"
        target.parent.mkdir(parents=True)
        target.write_bytes(b"")
        assert find_file(tmp_path, ["cargo-binstall", "cargo-binstall.exe"]) == target

    def test_not_found(self, tmp_path: Path) -> None:
        assert find_file(tmp_path, ["missing"]) is None
