"""Configuration module for fetchbin.

Provides configuration file loading, parsing, and validation with support for:
- Data-root config (<data-root>/config.yml)
- Explicit config files (--config)
- Environment variable expansion
"""

from fetchbin.config.models import (
    FetchbinConfig,
    NetworkConfig,
    RegistryConfig,
    RuntimeConfig,
)
from fetchbin.config.loader import ConfigError, load_config
from fetchbin.config.validation import validate_config, ConfigValidationWarning

__all__ = [
    "FetchbinConfig",
    "NetworkConfig",
    "RegistryConfig",
    "RuntimeConfig",
    "ConfigError",
    "load_config",
    "validate_config",
    "ConfigValidationWarning",
]
