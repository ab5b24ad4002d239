from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union

from ..core.constants import DATE_FORMAT, TIME_FORMAT, WEEK_STARTS_ON
from ..core.enums import Period
from ..core.exceptions import ValidationError

TimeOfDay = Union[str, time]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, DATE_FORMAT).date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def parse_time_of_day(value: TimeOfDay) -> time:
    """Parse a wall-clock ``HH:MM`` or ``HH:MM:SS`` value.

    Raises ValueError for anything that is not a valid 24-hour time.
    """

    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid time of day: {value!r}")

    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time of day: {value!r}")

    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) == 3 else 0
    return time(hour=hours, minute=minutes, second=seconds)


def seconds_of_day(value: TimeOfDay) -> int:
    t = parse_time_of_day(value)
    return t.hour * 3600 + t.minute * 60 + t.second


def format_time_of_day(value: Union[datetime, time]) -> str:
    return value.strftime(TIME_FORMAT)


def period_range(
    period: Period,
    today: date,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Tuple[date, date]:
    """Inclusive date range for a reporting period.

    Weeks run Sunday through Saturday.
    """

    if period == Period.DAY:
        return today, today

    if period == Period.WEEK:
        offset = (today.weekday() - WEEK_STARTS_ON) % 7
        first = today - timedelta(days=offset)
        return first, first + timedelta(days=6)

    if period == Period.MONTH:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return today.replace(day=1), today.replace(day=last_day)

    if start is None or end is None:
        raise ValidationError("A custom range needs both a start and an end date")
    if start > end:
        raise ValidationError("Start date must not be after end date")
    return start, end
