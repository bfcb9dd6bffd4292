"""
Bootstrap module for fetchbin.

This module handles:
- Platform detection (OS + architecture) and asset-name patterns
- Data root directory management (~/.local/share/fetchbin/)
- HTTPS downloads
- Binary validation utilities
"""

from fetchbin.bootstrap.platform import get_platform_info, PlatformInfo
from fetchbin.bootstrap.paths import get_fetchbin_home, FetchbinPaths
from fetchbin.bootstrap.validation import validate_binary, set_executable, ToolStatus

__all__ = [
    "get_platform_info",
    "PlatformInfo",
    "get_fetchbin_home",
    "FetchbinPaths",
    "validate_binary",
    "set_executable",
    "ToolStatus",
]
