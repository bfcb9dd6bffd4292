"""Tests for fetchbin.runtime.node."""

from __future__ import annotations

import hashlib
import io
import json
import tarfile
from pathlib import Path
from typing import Dict
from unittest.mock import patch

import pytest

from fetchbin.bootstrap.platform import PlatformInfo
from fetchbin.core.errors import (
    ChecksumMismatchError,
    ChecksumMissingError,
    NetworkError,
    ParseError,
    RuntimeDownloadError,
)
from fetchbin.runtime.node import (
    NodeVersionIndex,
    download_node,
    node_archive_name,
    node_download_url,
    resolve_node_runtime,
)

INDEX = json.dumps(
    [
        {"version": "v22.2.0", "lts": False, "date": "2024-05-15"},
        {"version": "v20.14.0", "lts": "Iron", "date": "2024-05-28"},
        {"version": "v18.20.3", "lts": True, "date": "2024-05-21"},
    ]
)

DIST = "https://nodejs.org/dist"


def make_tar_gz(files: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


class TestNodeVersionIndex:
    """Tests for index.json parsing and version selection."""

    def test_parse_lts_values(self) -> None:
        index = NodeVersionIndex.parse_json(INDEX)
        assert [info.version for info in index.versions] == ["22.2.0", "20.14.0", "18.20.3"]
        assert index.versions[0].lts is None
        assert index.versions[1].lts == "Iron"
        assert index.versions[2].lts == "lts"

    def test_current_lts(self) -> None:
        assert NodeVersionIndex.parse_json(INDEX).current_lts().version == "20.14.0"

    def test_find_compatible_lts_keyword(self) -> None:
        assert NodeVersionIndex.parse_json(INDEX).find_compatible("lts").version == "20.14.0"

    def test_find_compatible_prefers_lts_in_range(self) -> None:
        index = NodeVersionIndex.parse_json(INDEX)
        assert index.find_compatible(">=18").version == "20.14.0"

    def test_find_compatible_falls_back_to_newest_match(self) -> None:
        index = NodeVersionIndex.parse_json(INDEX)
        assert index.find_compatible("^22").version == "22.2.0"

    def test_find_compatible_exact(self) -> None:
        index = NodeVersionIndex.parse_json(INDEX)
        assert index.find_compatible("=18.20.3").version == "18.20.3"

    def test_find_compatible_none(self) -> None:
        assert NodeVersionIndex.parse_json(INDEX).find_compatible("^99") is None

    def test_invalid_json(self) -> None:
        with pytest.raises(ParseError):
            NodeVersionIndex.parse_json("{not json")

    def test_not_a_list(self) -> None:
        with pytest.raises(ParseError):
            NodeVersionIndex.parse_json('{"version": "v1.0.0"}')

    def test_fetch_uses_dist_base(self) -> None:
        with patch("fetchbin.runtime.node.fetch_text", return_value=INDEX) as mock_fetch:
            index = NodeVersionIndex.fetch(DIST, timeout=5.0)
        mock_fetch.assert_called_once_with(f"{DIST}/index.json", timeout=5.0)
        assert len(index.versions) == 3


class TestArchiveNames:
    """Tests for distribution archive naming."""

    def test_linux(self, linux_platform: PlatformInfo) -> None:
        assert node_archive_name("20.14.0", linux_platform) == "node-v20.14.0-linux-x64.tar.gz"

    def test_windows_zip(self, windows_platform: PlatformInfo) -> None:
        assert node_archive_name("20.14.0", windows_platform) == "node-v20.14.0-win-x64.zip"

    def test_download_url(self, linux_platform: PlatformInfo) -> None:
        assert node_download_url(DIST, "20.14.0", linux_platform) == (
            f"{DIST}/v20.14.0/node-v20.14.0-linux-x64.tar.gz"
        )


class TestDownloadNode:
    """Tests for downloading and unpacking node."""

    ARCHIVE = "node-v20.14.0-linux-x64.tar.gz"

    def _archive(self) -> bytes:
        return make_tar_gz({"node-v20.14.0-linux-x64/bin/node": b"#!node"})

    def test_download_verifies_and_extracts(
        self, tmp_path: Path, linux_platform: PlatformInfo
    ) -> None:
        data = self._archive()
        shasums = f"{hashlib.sha256(data).hexdigest()}  {self.ARCHIVE}\n"
        dest = tmp_path / "node" / "20.14.0"

        with patch("fetchbin.runtime.node.fetch_text", return_value=shasums), patch(
            "fetchbin.runtime.node.fetch_bytes", return_value=data
        ):
            runtime = download_node(DIST, "20.14.0", dest, linux_platform)

        assert runtime.version == "20.14.0"
        assert runtime.node_path == dest / "node-v20.14.0-linux-x64" / "bin" / "node"
        assert runtime.bin_dir == runtime.node_path.parent

    def test_checksum_mismatch_writes_nothing(
        self, tmp_path: Path, linux_platform: PlatformInfo
    ) -> None:
        shasums = f"{'0' * 64}  {self.ARCHIVE}\n"
        dest = tmp_path / "node" / "20.14.0"

        with patch("fetchbin.runtime.node.fetch_text", return_value=shasums), patch(
            "fetchbin.runtime.node.fetch_bytes", return_value=self._archive()
        ):
            with pytest.raises(ChecksumMismatchError):
                download_node(DIST, "20.14.0", dest, linux_platform)
        assert not dest.exists()

    def test_missing_checksum_entry(self, tmp_path: Path, linux_platform: PlatformInfo) -> None:
        shasums = f"{'0' * 64}  node-v20.14.0-darwin-arm64.tar.gz\n"
        with patch("fetchbin.runtime.node.fetch_text", return_value=shasums), patch(
            "fetchbin.runtime.node.fetch_bytes"
        ) as mock_bytes:
            with pytest.raises(ChecksumMissingError):
                download_node(DIST, "20.14.0", tmp_path / "dest", linux_platform)
        mock_bytes.assert_not_called()

    def test_network_error_is_wrapped(self, tmp_path: Path, linux_platform: PlatformInfo) -> None:
        error = NetworkError(f"{DIST}/v20.14.0/SHASUMS256.txt", "HTTP 404 Not Found")
        with patch("fetchbin.runtime.node.fetch_text", side_effect=error):
            with pytest.raises(RuntimeDownloadError) as exc_info:
                download_node(DIST, "20.14.0", tmp_path / "dest", linux_platform)
        assert exc_info.value.toolchain == "node"


class TestResolveNodeRuntime:
    """Tests for locating node in an unpacked distribution."""

    def test_missing_dir(self, tmp_path: Path) -> None:
        assert resolve_node_runtime("20.14.0", tmp_path / "absent") is None

    def test_flat_layout(self, tmp_path: Path) -> None:
        (tmp_path / "bin").mkdir()
        (tmp_path / "bin" / "node").write_bytes(b"")
        runtime = resolve_node_runtime("20.14.0", tmp_path)
        assert runtime is not None
        assert runtime.node_path == tmp_path / "bin" / "node"

    def test_windows_layout(self, tmp_path: Path) -> None:
        nested = tmp_path / "node-v20.14.0-win-x64"
        nested.mkdir()
        (nested / "node.exe").write_bytes(b"")
        runtime = resolve_node_runtime("20.14.0", tmp_path)
        assert runtime is not None
        assert runtime.node_path == nested / "node.exe"
