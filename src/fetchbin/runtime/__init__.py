"""Toolchain pool.

Provides the node interpreter, pnpm and cargo-binstall that npm and
cargo packages need in order to be installed and run.
"""

from fetchbin.runtime.binstall import BinstallRuntime
from fetchbin.runtime.node import NodeRuntime, NodeVersionIndex
from fetchbin.runtime.pnpm import PnpmRuntime
from fetchbin.runtime.pool import PruneReport, RuntimePool, RuntimeUpdateReport

__all__ = [
    "BinstallRuntime",
    "NodeRuntime",
    "NodeVersionIndex",
    "PnpmRuntime",
    "PruneReport",
    "RuntimePool",
    "RuntimeUpdateReport",
]
