"""Version parsing and requirement matching.

Requirements use npm range syntax (``^1.2``, ``~1.2.3``, ``>=1 <2``,
``1.x``, ``a || b``) via ``semantic_version.NpmSpec``. Comma-separated
comparators (``>=1.2, <2``) and bare versions (``1.2`` meaning ``^1.2``)
are normalized first.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

import semantic_version

LATEST = "latest"
LTS = "lts"

_BARE_VERSION = re.compile(r"^v?\d+(\.\d+){0,2}([-+].*)?$")


def normalize_version(value: str) -> str:
    """Strip surrounding whitespace and a leading ``v``."""
    value = value.strip()
    return value[1:] if value.startswith("v") else value


def versions_match(left: str, right: str) -> bool:
    """Version equality ignoring a leading ``v``."""
    return normalize_version(left) == normalize_version(right)


def parse_version(value: str) -> Optional[semantic_version.Version]:
    """Parse a full ``MAJOR.MINOR.PATCH`` version, or return None."""
    try:
        return semantic_version.Version(normalize_version(value))
    except ValueError:
        return None


def parse_requirement(requirement: str) -> Optional[semantic_version.NpmSpec]:
    """Parse a version requirement, or return None when it is not a range.

    Args:
        requirement: Requirement text such as ``^1.0``, ``>=1.2, <2`` or ``1.2``.

    Returns:
        The parsed spec, or None if the text cannot be parsed.
    """
    text = requirement.strip()
    if not text or text.lower() in (LATEST, LTS):
        return None
    if _BARE_VERSION.match(text):
        text = f"^{normalize_version(text)}"
    text = re.sub(r"\s*,\s*", " ", text)
    text = re.sub(r"(>=|<=|>|<|=|\^|~)\s+", r"\1", text)
    try:
        return semantic_version.NpmSpec(text)
    except ValueError:
        return None


def matching_versions(spec: semantic_version.NpmSpec, versions: Iterable[str]) -> List[str]:
    """Return the versions satisfying ``spec``, newest first.

    Strings that are not valid semantic versions are ignored.
    """
    matches = []
    for raw in versions:
        parsed = parse_version(raw)
        if parsed is not None and spec.match(parsed):
            matches.append((parsed, raw))
    matches.sort(key=lambda item: item[0], reverse=True)
    return [raw for _, raw in matches]


def highest_version(versions: Iterable[str]) -> Optional[str]:
    """Return the highest valid semantic version in ``versions``."""
    best: Optional[semantic_version.Version] = None
    best_raw: Optional[str] = None
    for raw in versions:
        parsed = parse_version(raw)
        if parsed is not None and (best is None or parsed > best):
            best, best_raw = parsed, raw
    return best_raw
