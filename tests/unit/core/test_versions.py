"""Tests for fetchbin.core.versions."""

from __future__ import annotations

from fetchbin.core.versions import (
    highest_version,
    matching_versions,
    normalize_version,
    parse_requirement,
    versions_match,
)


class TestNormalize:
    """Tests for version normalization."""

    def test_strips_leading_v(self) -> None:
        assert normalize_version("v1.2.3") == "1.2.3"
        assert normalize_version(" 1.2.3 ") == "1.2.3"

    def test_versions_match_ignores_v(self) -> None:
        assert versions_match("v14.1.0", "14.1.0")
        assert not versions_match("14.1.0", "14.1.1")


class TestParseRequirement:
    """Tests for parse_requirement."""

    def test_latest_and_lts_are_not_ranges(self) -> None:
        assert parse_requirement("latest") is None
        assert parse_requirement("lts") is None
        assert parse_requirement("") is None

    def test_bare_version_is_caret(self) -> None:
        spec = parse_requirement("1.2")
        assert spec is not None
        assert matching_versions(spec, ["1.2.0", "1.9.9", "2.0.0"]) == ["1.9.9", "1.2.0"]

    def test_comma_separated_comparators(self) -> None:
        spec = parse_requirement(">=1.2, <2")
        assert spec is not None
        assert matching_versions(spec, ["1.1.0", "1.2.0", "1.5.0", "2.0.0"]) == ["1.5.0", "1.2.0"]

    def test_space_after_operator(self) -> None:
        spec = parse_requirement(">= 18")
        assert spec is not None
        assert matching_versions(spec, ["16.0.0", "18.1.0"]) == ["18.1.0"]

    def test_unparsable(self) -> None:
        assert parse_requirement("not-a-version") is None


class TestMatching:
    """Tests for matching_versions and highest_version."""

    def test_sorted_newest_first(self) -> None:
        spec = parse_requirement("^1.0")
        assert spec is not None
        assert matching_versions(spec, ["1.2.0", "1.3.0", "2.0.0"]) == ["1.3.0", "1.2.0"]

    def test_invalid_versions_ignored(self) -> None:
        spec = parse_requirement("^1.0")
        assert spec is not None
        assert matching_versions(spec, ["garbage", "1.0.1"]) == ["1.0.1"]

    def test_highest_version(self) -> None:
        assert highest_version(["1.2.0", "1.10.0", "1.9.0"]) == "1.10.0"
        assert highest_version([]) is None
