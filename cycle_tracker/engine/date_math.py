"""Civil-date helpers shared by the prediction engine.

All dates are timezone-naive ``datetime.date`` values.  Day arithmetic on
``date`` is exact, so no daylight-saving adjustment can leak in.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator
from zoneinfo import ZoneInfo

DATE_FORMAT = "%Y-%m-%d"


def format_date(d: date) -> str:
    """Return ``d`` as ``YYYY-MM-DD``."""
    return d.strftime(DATE_FORMAT)


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string.

    Raises:
        ValueError: If the string is not a valid civil date.
    """
    return datetime.strptime(value, DATE_FORMAT).date()


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def days_between(a: date, b: date) -> int:
    """Absolute number of whole days between two dates."""
    return abs((b - a).days)


def date_range(start: date, end: date) -> Iterator[date]:
    """Yield every date from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_bounds(d: date) -> tuple[date, date]:
    """Return the first and last day of the month containing ``d``."""
    last_day = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=1), d.replace(day=last_day)


def add_months(d: date, months: int) -> date:
    """Shift ``d`` by whole months, clamping the day to the target month."""
    month_index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def today_in(tz_name: str) -> date:
    """Return the civil date "today" in an IANA time zone.

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If ``tz_name`` is unknown.
    """
    return datetime.now(ZoneInfo(tz_name)).date()
