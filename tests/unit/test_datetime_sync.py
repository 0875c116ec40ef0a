"""
Unit tests for date/time draft synchronization.

Tests merging date and time edits into the canonical timestamp, the
invalid-draft no-op, and the calendar-local frame.
"""

from datetime import date, time, timedelta, timezone

import pytest

from eventform.datetime_sync import (
    DateTimeDrafts,
    apply_date_edit,
    apply_time_edit,
    format_date_text,
    format_time_text,
    is_valid_timestamp,
    parse_date_text,
    parse_time_text,
    parse_timestamp,
    resolve_timezone,
)

UTC = timezone.utc


class TestApplyDateEdit:
    """Tests for apply_date_edit."""

    def test_replaces_calendar_date_only(self):
        result = apply_date_edit("2024-01-10T09:00:00Z", date(2024, 3, 1), UTC)
        assert result == "2024-03-01T09:00:00Z"

    @pytest.mark.parametrize(
        "current",
        [
            "2024-01-10T09:00:00Z",
            "2023-12-31T23:59:59Z",
            "2024-07-04T00:00:01.500000Z",
        ],
    )
    def test_keeps_clock_components(self, current):
        before = parse_timestamp(current)
        after = parse_timestamp(apply_date_edit(current, date(2025, 2, 28), UTC))

        assert (after.year, after.month, after.day) == (2025, 2, 28)
        assert (after.hour, after.minute, after.second, after.microsecond) == (
            before.hour,
            before.minute,
            before.second,
            before.microsecond,
        )

    def test_leap_day_target(self):
        result = apply_date_edit("2023-05-05T10:15:00Z", date(2024, 2, 29), UTC)
        assert result == "2024-02-29T10:15:00Z"

    def test_merges_in_calendar_local_frame(self):
        """23:30Z on Jan 10 is 01:30 on Jan 11 at +02:00."""
        plus_two = timezone(timedelta(hours=2))
        current = "2024-01-10T23:30:00Z"

        assert format_date_text(current, plus_two) == "2024-01-11"

        result = apply_date_edit(current, date(2024, 3, 1), plus_two)
        # 2024-03-01 01:30 at +02:00
        assert result == "2024-02-29T23:30:00Z"
        assert format_date_text(result, plus_two) == "2024-03-01"
        assert format_time_text(result, plus_two) == "01:30"

    def test_dst_zone_keeps_wall_clock(self):
        amsterdam = resolve_timezone("Europe/Amsterdam")
        # 09:00 local in winter (UTC+1)
        current = "2024-01-10T08:00:00Z"

        result = apply_date_edit(current, date(2024, 7, 1), amsterdam)

        # 09:00 local in summer (UTC+2)
        assert result == "2024-07-01T07:00:00Z"
        assert format_time_text(result, amsterdam) == "09:00"


class TestApplyTimeEdit:
    """Tests for apply_time_edit."""

    def test_replaces_hour_and_minute(self):
        result = apply_time_edit("2024-03-01T09:00:00Z", time(14, 30), UTC)
        assert result == "2024-03-01T14:30:00Z"

    def test_keeps_date_seconds_and_subseconds(self):
        result = apply_time_edit("2024-01-10T09:00:45.250Z", time(14, 30), UTC)

        parsed = parse_timestamp(result)
        assert (parsed.year, parsed.month, parsed.day) == (2024, 1, 10)
        assert (parsed.hour, parsed.minute) == (14, 30)
        assert parsed.second == 45
        assert parsed.microsecond == 250000

    def test_ignores_seconds_of_new_time(self):
        result = apply_time_edit("2024-01-10T09:00:00Z", time(14, 30, 59), UTC)
        assert result == "2024-01-10T14:30:00Z"

    def test_local_frame_can_move_utc_date(self):
        minus_five = timezone(timedelta(hours=-5))
        # 2024-01-10 18:00 local
        current = "2024-01-10T23:00:00Z"

        result = apply_time_edit(current, time(20, 15), minus_five)

        assert result == "2024-01-11T01:15:00Z"
        assert format_date_text(result, minus_five) == "2024-01-10"


class TestDraftParsing:
    """Tests for parsing the raw text of the controls."""

    @pytest.mark.parametrize("text", [None, "", "   ", "2024-13-01", "2024-02-30", "tomorrow", "01/03/2024"])
    def test_invalid_date_text(self, text):
        assert parse_date_text(text) is None

    def test_valid_date_text(self):
        assert parse_date_text(" 2024-03-01 ") == date(2024, 3, 1)

    @pytest.mark.parametrize("text", [None, "", "25:00", "12:60", "noon"])
    def test_invalid_time_text(self, text):
        assert parse_time_text(text) is None

    @pytest.mark.parametrize("text,expected", [("14:30", time(14, 30)), ("07:05:09", time(7, 5, 9))])
    def test_valid_time_text(self, text, expected):
        assert parse_time_text(text) == expected


class TestTimestamps:
    """Tests for canonical timestamp helpers."""

    def test_naive_timestamp_is_utc(self):
        assert parse_timestamp("2024-01-10T09:00:00").tzinfo == UTC

    def test_offset_timestamp_is_normalized(self):
        result = apply_time_edit("2024-01-10T10:00:00+01:00", time(11, 0), UTC)
        assert result == "2024-01-10T11:00:00Z"

    @pytest.mark.parametrize("value,expected", [("2024-01-10T09:00:00Z", True), ("not a date", False), (None, False), (42, False)])
    def test_is_valid_timestamp(self, value, expected):
        assert is_valid_timestamp(value) is expected

    def test_resolve_timezone(self):
        assert resolve_timezone("") is None
        assert resolve_timezone(None) is None
        with pytest.raises(ValueError):
            resolve_timezone("Mars/Olympus_Mons")


class TestDateTimeDrafts:
    """Tests for the date/time text buffers."""

    def test_drafts_derived_from_timestamp(self):
        drafts = DateTimeDrafts.from_timestamp("2024-01-10T09:05:00Z", UTC)

        assert drafts.date_text == "2024-01-10"
        assert drafts.time_text == "09:05"

    def test_invalid_timestamp_gives_empty_drafts(self):
        drafts = DateTimeDrafts.from_timestamp("garbage", UTC)
        assert drafts.date_text == ""
        assert drafts.time_text == ""

    def test_commit_valid_date(self):
        drafts = DateTimeDrafts.from_timestamp("2024-01-10T09:00:00Z", UTC)

        result = drafts.commit_date("2024-03-01", "2024-01-10T09:00:00Z")

        assert result == "2024-03-01T09:00:00Z"
        assert drafts.date_text == "2024-03-01"

    @pytest.mark.parametrize("text", ["", "2024-03-", None])
    def test_invalid_date_draft_is_echoed_not_committed(self, text):
        current = "2024-01-10T09:00:00Z"
        drafts = DateTimeDrafts.from_timestamp(current, UTC)

        result = drafts.commit_date(text, current)

        assert result == current
        assert drafts.date_text == (text or "")
        assert drafts.time_text == "09:00"

    def test_invalid_time_draft_is_echoed_not_committed(self):
        current = "2024-01-10T09:00:00Z"
        drafts = DateTimeDrafts.from_timestamp(current, UTC)

        result = drafts.commit_time("14:", current)

        assert result == current
        assert drafts.time_text == "14:"
        assert drafts.date_text == "2024-01-10"

    def test_time_draft_does_not_reset_date_draft(self):
        current = "2024-01-10T09:00:00Z"
        drafts = DateTimeDrafts.from_timestamp(current, UTC)
        drafts.commit_date("2024-0", current)

        drafts.commit_time("10:00", current)

        assert drafts.date_text == "2024-0"
