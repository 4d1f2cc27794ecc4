from datetime import date, time

import pytest

from tutorslot.services.time_utils import (
    clock_to_minutes,
    date_for_weekday,
    format_clock,
    minutes_to_clock,
    overlaps,
    parse_clock,
    week_window,
    weekday_of,
)


def test_touching_ranges_do_not_overlap():
    assert not overlaps(time(10, 0), time(11, 0), time(11, 0), time(12, 0))
    assert not overlaps(time(11, 0), time(12, 0), time(10, 0), time(11, 0))


def test_contained_range_overlaps():
    assert overlaps(time(10, 0), time(12, 0), time(11, 0), time(11, 30))
    assert overlaps(time(10, 0), time(11, 0), time(10, 30), time(11, 30))


def test_weekday_of_maps_sunday_to_seven():
    assert weekday_of(date(2024, 1, 8)) == 1
    assert weekday_of(date(2024, 1, 10)) == 3
    assert weekday_of(date(2024, 1, 14)) == 7


def test_week_window_spans_seven_days():
    assert week_window(date(2024, 1, 8)) == (date(2024, 1, 8), date(2024, 1, 14))


def test_date_for_weekday_from_monday_week():
    week_start = date(2024, 1, 8)
    assert date_for_weekday(week_start, 1) == date(2024, 1, 8)
    assert date_for_weekday(week_start, 3) == date(2024, 1, 10)
    assert date_for_weekday(week_start, 7) == date(2024, 1, 14)


def test_date_for_weekday_stays_inside_non_monday_week():
    week_start = date(2024, 1, 10)  # Wednesday
    assert date_for_weekday(week_start, 3) == date(2024, 1, 10)
    assert date_for_weekday(week_start, 1) == date(2024, 1, 15)
    assert date_for_weekday(week_start, 2) == date(2024, 1, 16)


def test_clock_round_trip_helpers():
    assert parse_clock("09:05") == time(9, 5)
    assert format_clock(time(9, 5)) == "09:05"
    assert clock_to_minutes("13:30") == 810
    assert minutes_to_clock(810) == time(13, 30)


@pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "noon", ""])
def test_parse_clock_rejects_malformed_values(value):
    with pytest.raises(ValueError):
        parse_clock(value)


def test_minutes_to_clock_rejects_values_past_midnight():
    with pytest.raises(ValueError, match="single day"):
        minutes_to_clock(24 * 60)
