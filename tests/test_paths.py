"""Tests for shadowcopy.paths."""

from __future__ import annotations

import pytest

from shadowcopy.paths import format_path, path_matches_pattern, should_report_path


def test_format_path():
    assert format_path(()) == ""
    assert format_path(("a",)) == "a"
    assert format_path(("rows", 0, "id")) == "rows.0.id"


class TestPathMatchesPattern:
    """Test glob matching on dotted paths."""

    @pytest.mark.parametrize(
        ("path", "pattern", "expected"),
        [
            (("a",), "a", True),
            (("a", "b"), "a", True),
            (("ab",), "a", False),
            (("a", "b"), "a.b", True),
            (("a", "b"), "a.*", True),
            (("a", "b", "c"), "a.*", False),
            (("a",), "a.*", False),
            (("x",), "*", True),
            (("x", "y"), "*", False),
            (("a", "x", "c"), "a.*.c", True),
            (("a", "x", "d"), "a.*.c", False),
            (("anything", "at", "all"), "**", True),
            (("rows", 0), "rows.0", True),
        ],
    )
    def test_patterns(self, path: tuple[object, ...], pattern: str, expected: bool):
        assert path_matches_pattern(path, pattern) is expected

    def test_string_paths(self):
        assert path_matches_pattern("a.b", "a")
        assert not path_matches_pattern("a.b", "b")

    def test_dots_in_pattern_are_literal(self):
        assert not path_matches_pattern(("axb",), "a.b")


class TestShouldReportPath:
    """Test include/exclude filtering."""

    def test_no_filters(self):
        assert should_report_path(("a",), None, ())

    def test_exclude_wins(self):
        assert not should_report_path(("secret", "k"), None, ["secret"])
        assert not should_report_path(("secret",), ["**"], ["secret"])

    def test_include(self):
        assert should_report_path(("user", "name"), ["user.*"], ())
        assert not should_report_path(("other",), ["user.*"], ())
        assert not should_report_path(("user",), ["user.*"], ())
