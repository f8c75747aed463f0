"""Tests for date, time and recurrence parsing."""

from datetime import date, datetime

import pytest

from pulseguard.extraction.dates import (
    ALL_DAYS,
    WEEKDAYS,
    day_of_week,
    describe_days,
    parse_date,
    parse_recurrence,
    parse_time_of_day,
)
from pulseguard.extraction.numbers import (
    MAX_INTERVAL_DAYS,
    interval_to_days,
    parse_quantity,
)

# A Wednesday
REF = date(2024, 6, 12)


class TestParseTimeOfDay:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("at 9am", "09:00"),
            ("9:30 pm", "21:30"),
            ("12am", "00:00"),
            ("12 p.m.", "12:00"),
            ("at 14:05", "14:05"),
            ("around noon", "12:00"),
            ("at midnight", "00:00"),
        ],
    )
    def test_valid_times(self, text, expected):
        assert parse_time_of_day(text) == expected

    def test_out_of_range_hour_is_rejected(self):
        assert parse_time_of_day("13pm") is None
        assert parse_time_of_day("25:00") is None

    def test_no_time(self):
        assert parse_time_of_day("sometime later") is None


class TestParseDate:
    def test_tomorrow_with_time(self):
        match = parse_date("tomorrow at 3pm", REF)
        assert match is not None
        assert match.date == date(2024, 6, 13)
        assert match.time == "15:00"

    def test_in_two_weeks(self):
        match = parse_date("in 2 weeks", REF)
        assert match is not None
        assert match.date == date(2024, 6, 26)

    def test_number_words(self):
        match = parse_date("in three days", REF)
        assert match is not None
        assert match.date == date(2024, 6, 15)

    def test_next_weekday_is_strictly_after_reference(self):
        assert parse_date("next monday", REF).date == date(2024, 6, 17)
        # Same weekday as the reference rolls a full week forward
        assert parse_date("next wednesday", REF).date == date(2024, 6, 19)

    def test_iso_date(self):
        match = parse_date("on 2024-07-01", REF)
        assert match is not None
        assert match.date == date(2024, 7, 1)

    def test_yearless_date_resolves_to_next_occurrence(self):
        assert parse_date("March 5", REF).date == date(2025, 3, 5)
        assert parse_date("July 4th", REF).date == date(2024, 7, 4)

    def test_accepts_datetime_reference(self):
        match = parse_date("tomorrow", datetime(2024, 6, 12, 23, 0))
        assert match.date == date(2024, 6, 13)

    def test_unresolvable(self):
        assert parse_date("sometime soon", REF) is None

    @pytest.mark.parametrize("text", ["in 10000 years", "in 200 years", "in 6000 weeks"])
    def test_huge_offsets_give_none(self, text):
        assert parse_date(text, REF) is None

    def test_century_offset_still_resolves(self):
        assert parse_date("in 99 years", REF).date == date(2123, 5, 20)

    def test_end_of_calendar(self):
        last = date(9999, 12, 31)
        assert parse_date("tomorrow", last) is None
        assert parse_date("next monday", last) is None
        assert parse_date("March 5", last) is None
        assert parse_date("today", last).date == last


class TestParseRecurrence:
    def test_every_weekday(self):
        recurrence = parse_recurrence("every weekday at 9am")
        assert recurrence is not None
        assert list(recurrence.days) == WEEKDAYS
        assert recurrence.time == "09:00"

    def test_daily_defaults_time(self):
        recurrence = parse_recurrence("daily")
        assert list(recurrence.days) == ALL_DAYS
        assert recurrence.time == "09:00"
        assert recurrence.interval_days == 1

    def test_every_n_days(self):
        recurrence = parse_recurrence("every 3 days at 8pm")
        assert recurrence.interval_days == 3
        assert recurrence.time == "20:00"

    def test_weekends(self):
        assert list(parse_recurrence("on weekends").days) == [0, 6]

    def test_named_days(self):
        recurrence = parse_recurrence("every monday and thursday")
        assert list(recurrence.days) == [1, 4]
        assert recurrence.interval_days is None

    def test_no_schedule(self):
        assert parse_recurrence("whenever") is None

    def test_oversized_interval(self):
        assert parse_recurrence("every 10000 years") is None


class TestDayHelpers:
    def test_day_of_week_starts_on_sunday(self):
        assert day_of_week(date(2024, 6, 9)) == 0
        assert day_of_week(REF) == 3
        assert day_of_week(date(2024, 6, 15)) == 6

    def test_describe_days(self):
        assert describe_days(ALL_DAYS) == "Every day"
        assert describe_days(WEEKDAYS) == "Weekdays"
        assert describe_days([6, 0]) == "Weekends"
        assert describe_days([1, 3]) == "Mon, Wed"


class TestNumbers:
    @pytest.mark.parametrize(
        "token,expected",
        [("3", 3.0), ("1.5", 1.5), ("two", 2.0), ("twenty-five", 25.0), ("an", 1.0)],
    )
    def test_parse_quantity(self, token, expected):
        assert parse_quantity(token) == expected

    def test_unknown_word(self):
        assert parse_quantity("several") is None

    def test_interval_to_days(self):
        assert interval_to_days(2, "weeks") == 14
        assert interval_to_days(3, "Months") == 90
        assert interval_to_days(0, "days") is None
        assert interval_to_days(1, "fortnight") is None

    def test_interval_upper_bound(self):
        assert interval_to_days(100, "years") == MAX_INTERVAL_DAYS
        assert interval_to_days(101, "years") is None
        assert interval_to_days(10000, "years") is None
