from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from fetchbin.core.manifest import InstalledBinary
from fetchbin.core.models import FetchedBinary, PackageSpec, ResolvedVersion, SourceType
from fetchbin.runtime.pool import RuntimePool


class BinarySource(ABC):
    """Interface implemented by each ecosystem resolver.

    Implementations share no behaviour: each one owns its metadata format,
    version rules and fetch pipeline. The orchestrator picks one by the
    package's source variant (see :func:`fetchbin.sources.get_source`).
    """

    @property
    @abstractmethod
    def source_type(self) -> SourceType:
        """Ecosystem this resolver handles."""

    @abstractmethod
    def resolve(self, spec: PackageSpec) -> List[ResolvedVersion]:
        """Resolve ``spec`` to concrete versions, most preferred first.

        Raises:
            FetchbinError: A named error for any network, parse or matching failure.
        """

    @abstractmethod
    def fetch(
        self,
        spec: PackageSpec,
        version: ResolvedVersion,
        target_dir: Path,
        runtime: RuntimePool,
    ) -> FetchedBinary:
        """Fetch ``version`` into ``target_dir``.

        On success ``target_dir`` holds one verified, executable artifact.

        Args:
            spec: The request being fulfilled.
            version: Candidate returned by :meth:`resolve`.
            target_dir: Fresh store directory for this (package, version).
            runtime: Toolchain pool, mutated when toolchains are acquired.
        """

    @abstractmethod
    def check_update(self, installed: InstalledBinary) -> Optional[ResolvedVersion]:
        """Return the newest candidate if it differs from the installed version."""
