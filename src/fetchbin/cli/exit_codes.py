"""Exit codes for the fetchbin CLI.

- 0: Success
- 1: Operation failed (resolution, install helper, manifest, ...)
- 3: Invalid usage (bad arguments, bad specifier, missing config)
- 4: Download or verification failure (network, checksum, toolchain download)
"""

from __future__ import annotations

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INVALID_USAGE = 3
EXIT_DOWNLOAD_FAILURE = 4
