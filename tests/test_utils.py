"""Unit tests for utility functions."""

from datetime import datetime, timedelta, timezone

import pytest

from gdrivesync.utils import (
    build_children_query,
    datetime_to_ns,
    is_safe_name,
    normalize_extensions,
    parse_rfc3339,
)


class TestParseRfc3339:
    """Tests for parse_rfc3339."""

    def test_zulu_with_milliseconds(self):
        dt = parse_rfc3339("2025-01-15T10:30:00.123Z")
        assert dt == datetime(2025, 1, 15, 10, 30, 0, 123000, tzinfo=timezone.utc)

    def test_offset_is_converted_to_utc(self):
        dt = parse_rfc3339("2025-01-15T12:30:00+02:00")
        assert dt == datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)
        assert dt.utcoffset() == timedelta(0)

    def test_naive_is_assumed_utc(self):
        dt = parse_rfc3339("2025-01-15T10:30:00")
        assert dt.tzinfo is not None

    @pytest.mark.parametrize("value", [None, "", "not a date"])
    def test_invalid_values(self, value):
        assert parse_rfc3339(value) is None


class TestDatetimeToNs:
    """Tests for datetime_to_ns."""

    def test_epoch(self):
        assert datetime_to_ns(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 0

    def test_exact_microseconds(self):
        dt = datetime(2024, 1, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)
        assert datetime_to_ns(dt) == 1704110400_123000000

    def test_before_epoch(self):
        dt = datetime(1969, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
        assert datetime_to_ns(dt) == -1_000_000_000


class TestNormalizeExtensions:
    """Tests for normalize_extensions."""

    def test_strips_dots_and_spaces(self):
        assert normalize_extensions([".tmp", " log "]) == ["tmp", "log"]

    def test_splits_comma_and_space_lists(self):
        assert normalize_extensions(["tmp,log", "bak iso"]) == [
            "tmp",
            "log",
            "bak",
            "iso",
        ]

    def test_removes_duplicates_and_empties(self):
        assert normalize_extensions(["tmp", ".tmp", ",", ""]) == ["tmp"]

    def test_none(self):
        assert normalize_extensions(None) == []


class TestBuildChildrenQuery:
    """Tests for build_children_query."""

    def test_without_exclusions(self):
        assert (
            build_children_query("abc", [])
            == "'abc' in parents and trashed = false"
        )

    def test_with_exclusions(self):
        query = build_children_query("abc", ["tmp", "log"])
        assert query.endswith(
            "and fileExtension != 'tmp' and fileExtension != 'log'"
        )

    def test_quotes_are_escaped(self):
        query = build_children_query("abc", ["it's"])
        assert "fileExtension != 'it\\'s'" in query


class TestIsSafeName:
    """Tests for is_safe_name."""

    @pytest.mark.parametrize("name", ["report.pdf", "..hidden", "a..b", "  x  "])
    def test_plain_names(self, name):
        assert is_safe_name(name)

    @pytest.mark.parametrize("name", ["", ".", "..", "../x", "a/b", "a\0b"])
    def test_names_leaving_the_directory(self, name):
        assert not is_safe_name(name)
