"""Tests for fetchbin.config.loader."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from fetchbin.config import ConfigError, load_config
from fetchbin.config.loader import dict_to_config, expand_env_vars, merge_configs
from fetchbin.config.models import DEFAULT_NPM_REGISTRY


class TestLoadConfig:
    """Tests for layered config loading."""

    def test_defaults_without_files(self, tmp_path: Path) -> None:
        config = load_config(data_root=tmp_path)
        assert config.registries.npm == DEFAULT_NPM_REGISTRY
        assert config.runtime.node_default == "lts"
        assert config.network.timeout == 60.0
        assert config.sources == []

    def test_data_root_config(self, tmp_path: Path) -> None:
        (tmp_path / "config.yml").write_text(
            "registries:\n  npm: https://npm.mirror.example/\nnetwork:\n  timeout: 15\n"
        )
        config = load_config(data_root=tmp_path)
        assert config.registries.npm == "https://npm.mirror.example"
        assert config.network.timeout == 15.0
        assert config.sources == [f"data-root:{tmp_path / 'config.yml'}"]

    def test_precedence(self, tmp_path: Path) -> None:
        (tmp_path / "config.yml").write_text("network:\n  timeout: 15\nruntime:\n  node_default: '20'\n")
        custom = tmp_path / "custom.yml"
        custom.write_text("network:\n  timeout: 30\n")

        config = load_config(
            data_root=tmp_path,
            cli_config_path=custom,
            cli_overrides={"network": {"timeout": 5.0}},
        )

        assert config.network.timeout == 5.0
        assert config.runtime.node_default == "20"
        assert config.sources[-1] == "cli"

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(data_root=tmp_path, cli_config_path=tmp_path / "absent.yml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "config.yml").write_text("registries: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(data_root=tmp_path)

    def test_non_mapping_document(self, tmp_path: Path) -> None:
        (tmp_path / "config.yml").write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            load_config(data_root=tmp_path)

    def test_wrong_type_is_error(self, tmp_path: Path) -> None:
        (tmp_path / "config.yml").write_text("network:\n  timeout: soon\n")
        with pytest.raises(ConfigError, match="network.timeout"):
            load_config(data_root=tmp_path)

    def test_env_expansion(self, tmp_path: Path) -> None:
        (tmp_path / "config.yml").write_text(
            "registries:\n  npm: ${NPM_MIRROR:-https://fallback.example}\n"
        )
        with patch.dict(os.environ, {"NPM_MIRROR": "https://npm.corp.example"}):
            config = load_config(data_root=tmp_path)
        assert config.registries.npm == "https://npm.corp.example"


class TestLoaderHelpers:
    """Tests for merge and expansion helpers."""

    def test_merge_is_deep(self) -> None:
        base = {"registries": {"npm": "a", "crates": "b"}, "network": {"timeout": 1}}
        overlay = {"registries": {"npm": "c"}}
        assert merge_configs(base, overlay) == {
            "registries": {"npm": "c", "crates": "b"},
            "network": {"timeout": 1},
        }

    def test_expand_default(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            assert expand_env_vars({"x": ["${MISSING:-d}"]}) == {"x": ["d"]}

    def test_dict_to_config_strips_trailing_slash(self) -> None:
        config = dict_to_config({"registries": {"github_api": "https://ghe.example/api/v3/"}})
        assert config.registries.github_api == "https://ghe.example/api/v3"
