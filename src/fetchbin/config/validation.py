"""Configuration validation for fetchbin.

Warns on unknown keys (with a close-match suggestion) and rejects values
of the wrong type, since a bad registry URL or timeout would otherwise
fail much later with a confusing network error.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from typing import Any, Dict, List, Optional, Set

from fetchbin.core.logging import get_logger

LOGGER = get_logger(__name__)

VALID_TOP_LEVEL_KEYS: Set[str] = {"registries", "runtime", "network"}

VALID_SECTION_KEYS: Dict[str, Set[str]] = {
    "registries": {"npm", "crates", "github_api", "github", "node_dist"},
    "runtime": {"node_default"},
    "network": {"timeout"},
}


@dataclass
class ConfigValidationWarning:
    """A validation warning for configuration."""

    message: str
    source: str
    key: Optional[str] = None
    suggestion: Optional[str] = None


def _unknown_key(key: str, valid: Set[str], source: str, prefix: str = "") -> ConfigValidationWarning:
    matches = get_close_matches(key, sorted(valid), n=1, cutoff=0.6)
    suggestion = matches[0] if matches else None
    full_key = f"{prefix}{key}"
    message = f"Unknown config key '{full_key}'"
    if suggestion:
        message += f" (did you mean '{prefix}{suggestion}'?)"
    return ConfigValidationWarning(message=message, source=source, key=full_key, suggestion=suggestion)


def validate_config(data: Dict[str, Any], source: str) -> List[ConfigValidationWarning]:
    """Validate a configuration dictionary.

    Unknown keys produce warnings; wrongly-typed values are errors.

    Args:
        data: Config dictionary to validate.
        source: Source file path for messages.

    Returns:
        List of validation warnings (also logged).

    Raises:
        ValueError: If a known key holds a value of the wrong type.
    """
    warnings: List[ConfigValidationWarning] = []

    for key, value in data.items():
        if key not in VALID_TOP_LEVEL_KEYS:
            warnings.append(_unknown_key(key, VALID_TOP_LEVEL_KEYS, source))
            continue
        if not isinstance(value, dict):
            raise ValueError(f"{source}: '{key}' must be a mapping")
        for sub_key, sub_value in value.items():
            if sub_key not in VALID_SECTION_KEYS[key]:
                warnings.append(
                    _unknown_key(sub_key, VALID_SECTION_KEYS[key], source, prefix=f"{key}.")
                )
                continue
            _check_type(key, sub_key, sub_value, source)

    for warning in warnings:
        LOGGER.warning(f"{warning.source}: {warning.message}")
    return warnings


def _check_type(section: str, key: str, value: Any, source: str) -> None:
    if section == "network" and key == "timeout":
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ValueError(f"{source}: 'network.timeout' must be a positive number")
        return
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{source}: '{section}.{key}' must be a non-empty string")
    if section == "registries" and not value.startswith(("https://", "http://")):
        raise ValueError(f"{source}: 'registries.{key}' must be an http(s) URL")
