"""fetchbin - acquire runnable binaries from npm, crates.io and GitHub releases."""

from __future__ import annotations

__version__ = "0.4.0"

__all__ = ["__version__"]
