"""Configuration file loading and merging.

Handles loading configuration from YAML files with:
- The data-root config (<data-root>/config.yml)
- An explicit file given with --config
- Environment variable expansion (${VAR})
- Config merging with proper precedence
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from fetchbin.config.models import (
    FetchbinConfig,
    NetworkConfig,
    RegistryConfig,
    RuntimeConfig,
)
from fetchbin.config.validation import validate_config
from fetchbin.core.errors import FetchbinError
from fetchbin.core.logging import get_logger

LOGGER = get_logger(__name__)

# ${NAME} or ${NAME:-fallback}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(FetchbinError):
    """Configuration loading or parsing error."""

    pass


def load_config(
    data_root: Path,
    cli_config_path: Optional[Path] = None,
    cli_overrides: Optional[Dict[str, Any]] = None,
) -> FetchbinConfig:
    """Load configuration with proper precedence.

    Precedence (highest to lowest):
    1. CLI flags (cli_overrides)
    2. Custom config file (cli_config_path)
    3. Data-root config (<data-root>/config.yml)
    4. Built-in defaults

    Args:
        data_root: fetchbin data root holding the optional config.yml.
        cli_config_path: Optional path to custom config file (--config flag).
        cli_overrides: Dict of CLI flag overrides.

    Returns:
        Merged FetchbinConfig instance.

    Raises:
        ConfigError: If a config file is missing, unparsable or invalid.
    """
    sources: List[str] = []
    merged: Dict[str, Any] = {}

    layers = [("data-root", data_root / "config.yml", False)]
    if cli_config_path:
        layers.append(("custom", cli_config_path, True))

    for label, path, required in layers:
        if not path.exists():
            if required:
                raise ConfigError(f"Config file not found: {path}")
            continue
        try:
            layer = load_yaml_file(path)
            validate_config(layer, source=str(path))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        except ValueError as e:
            raise ConfigError(str(e)) from e
        merged = merge_configs(merged, layer)
        sources.append(f"{label}:{path}")
        LOGGER.debug(f"Loaded {label} config from {path}")

    if cli_overrides:
        merged = merge_configs(merged, cli_overrides)
        sources.append("cli")
        LOGGER.debug("Applied CLI overrides")

    config = dict_to_config(merged)
    config._config_sources = sources

    LOGGER.debug(f"Config loaded from sources: {sources}")
    return config


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Read one config layer and expand ${VAR} references in its strings.

    An empty file is an empty layer.

    Raises:
        yaml.YAMLError: If the file is not valid YAML.
        ConfigError: If the top level is not a mapping.
    """
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(data).__name__}")
    return expand_env_vars(data)


def expand_env_vars(data: Any) -> Any:
    """Substitute environment variables into every string of a parsed layer."""
    if isinstance(data, dict):
        return {k: expand_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        return ENV_VAR_PATTERN.sub(_env_var_replacer, data)
    else:
        return data


def _env_var_replacer(match: re.Match[str]) -> str:
    """Replace environment variable reference with its value."""
    var_name = match.group(1)
    default_value = match.group(2)

    value = os.environ.get(var_name)
    if value is not None:
        return value
    if default_value is not None:
        return default_value

    LOGGER.warning(f"Environment variable ${var_name} is not set and has no default")
    return ""


def merge_configs(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``base`` updated with ``overlay``.

    Nested mappings merge key by key; any other overlay value replaces the
    base value outright.
    """
    result = base.copy()

    for key, overlay_value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(overlay_value, dict):
            result[key] = merge_configs(result[key], overlay_value)
        else:
            result[key] = overlay_value

    return result


def dict_to_config(data: Dict[str, Any]) -> FetchbinConfig:
    """Convert a validated dict to a typed FetchbinConfig."""
    registries_data = data.get("registries", {})
    defaults = RegistryConfig()
    registries = RegistryConfig(
        npm=registries_data.get("npm", defaults.npm).rstrip("/"),
        crates=registries_data.get("crates", defaults.crates).rstrip("/"),
        github_api=registries_data.get("github_api", defaults.github_api).rstrip("/"),
        github=registries_data.get("github", defaults.github).rstrip("/"),
        node_dist=registries_data.get("node_dist", defaults.node_dist).rstrip("/"),
    )

    runtime_data = data.get("runtime", {})
    runtime = RuntimeConfig(
        node_default=runtime_data.get("node_default", RuntimeConfig.node_default),
    )

    network_data = data.get("network", {})
    network = NetworkConfig(
        timeout=float(network_data.get("timeout", NetworkConfig.timeout)),
    )

    return FetchbinConfig(registries=registries, runtime=runtime, network=network)
