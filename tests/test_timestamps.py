"""Unit tests for timestamp utilities."""

from datetime import datetime, timedelta, timezone

import pytest

from jobmatch.utils.timestamps import ensure_utc, format_timestamp, parse_timestamp, utc_now


class TestUtcNow:
    def test_utc_now_returns_aware_utc(self):
        now = utc_now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)


class TestEnsureUtc:
    """Tests for ensure_utc."""

    def test_none(self):
        assert ensure_utc(None) is None

    def test_naive_is_treated_as_utc(self):
        assert ensure_utc(datetime(2024, 5, 1, 12, 0)) == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_other_timezone_is_converted(self):
        eastern = timezone(timedelta(hours=-5))
        result = ensure_utc(datetime(2024, 5, 1, 7, 0, tzinfo=eastern))
        assert result == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)


class TestFormatTimestamp:
    """Tests for the fixed-width storage format."""

    def test_format(self):
        value = datetime(2024, 5, 1, 12, 0, 0, 1234, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2024-05-01T12:00:00.001234Z"

    def test_none(self):
        assert format_timestamp(None) is None

    def test_lexical_order_is_chronological(self):
        earlier = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
        later = datetime(2024, 5, 1, 10, 0, tzinfo=timezone(timedelta(hours=-2)))
        assert format_timestamp(earlier) < format_timestamp(later)


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_round_trip(self):
        value = datetime(2024, 5, 1, 12, 0, 0, 1234, tzinfo=timezone.utc)
        assert parse_timestamp(format_timestamp(value)) == value

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2024-05-01T12:00:00Z", datetime(2024, 5, 1, 12, tzinfo=timezone.utc)),
            ("2024-05-01T14:00:00+02:00", datetime(2024, 5, 1, 12, tzinfo=timezone.utc)),
            ("2024-05-01T12:00:00", datetime(2024, 5, 1, 12, tzinfo=timezone.utc)),
            ("2024-05-01", datetime(2024, 5, 1, tzinfo=timezone.utc)),
        ],
    )
    def test_iso_variants(self, text, expected):
        assert parse_timestamp(text) == expected

    @pytest.mark.parametrize("text", [None, "", "   ", "yesterday"])
    def test_unparseable(self, text):
        assert parse_timestamp(text) is None
