"""Clock and calendar helpers for the weekly grid.

Clock values are minute-resolution times within one day and dates are plain
calendar dates in the academy's timezone. Nothing here converts between
timezones; the configured zone is only consulted to decide what "today" is.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from tutorslot.core.config import get_settings

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
MINUTES_PER_DAY = 24 * 60


def parse_clock(value: str) -> time:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def format_clock(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def clock_to_minutes(value: time | str) -> int:
    if isinstance(value, str):
        value = parse_clock(value)
    return value.hour * 60 + value.minute


def minutes_to_clock(total: int) -> time:
    if total < 0 or total >= MINUTES_PER_DAY:
        raise ValueError(f"{total} minutes does not fall within a single day")
    return time(total // 60, total % 60)


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    """Half-open interval test: ranges that only touch do not overlap."""
    return start_a < end_b and end_a > start_b


def weekday_of(value: date) -> int:
    return value.isoweekday()


def week_window(week_start: date) -> tuple[date, date]:
    return week_start, week_start + timedelta(days=6)


def date_for_weekday(week_start: date, weekday: int) -> date:
    # Equals week_start + (weekday - 1) days when the week starts on Monday.
    offset = (weekday - weekday_of(week_start)) % 7
    return week_start + timedelta(days=offset)


def academy_today() -> date:
    return datetime.now(ZoneInfo(get_settings().academy_timezone)).date()
