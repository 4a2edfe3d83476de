"""Calendar date-key utilities

Every date exchanged with the engine is a ``YYYY-MM-DD`` key with no time of
day or time zone. Keys are parsed into ``datetime.date`` objects, never
timestamps, so all arithmetic here is timezone-agnostic.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from ledgerflow.domain.exceptions import InvalidDateKeyError

# Business weekend: Friday and Saturday
WEEKEND_DAYS = (4, 5)

PERIODS = ("month", "quarter", "year")


def format_date_key(value: date) -> str:
    """Render a date as its canonical key"""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_date_key(value) -> date:
    """
    Read a calendar date from a key, date or datetime.

    Accepts zero-padded or unpadded ``YYYY-M-D`` strings and ISO timestamps
    (the time part is discarded, not converted).

    Raises:
        InvalidDateKeyError: value is empty or not a calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateKeyError(f"Not a date key: {value!r}")

    text = value.strip()
    for separator in ("T", " "):
        text = text.split(separator, 1)[0]

    parts = text.split("-")
    if len(parts) != 3:
        raise InvalidDateKeyError(f"Not a date key: {value!r}")
    try:
        year, month, day = (int(part) for part in parts)
        return date(year, month, day)
    except ValueError as e:
        raise InvalidDateKeyError(f"Not a date key: {value!r}") from e


def coerce_date_key(value) -> Optional[str]:
    """Canonical key for value, or None when it cannot be parsed"""
    try:
        return format_date_key(parse_date_key(value))
    except InvalidDateKeyError:
        return None


def month_key(value: date) -> str:
    """``YYYY-MM`` key of the month containing value"""
    return f"{value.year:04d}-{value.month:02d}"


def month_bounds(value: date) -> Tuple[date, date]:
    """First and last day of the month containing value"""
    last_day = calendar.monthrange(value.year, value.month)[1]
    return value.replace(day=1), value.replace(day=last_day)


def add_months(value: date, months: int) -> date:
    """First day of the month ``months`` away from value's month"""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def shift_days(value: date, delta: timedelta) -> date:
    """value + delta, clamped to date.min/date.max at the calendar edges"""
    try:
        return value + delta
    except OverflowError:
        return date.max if delta > timedelta(0) else date.min


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]


def is_weekend(value: date) -> bool:
    return value.weekday() in WEEKEND_DAYS


def period_range(period: str, reference: date) -> Tuple[date, date]:
    """
    Calendar bounds of the month, quarter or year containing reference.

    Raises:
        ValueError: unknown period name
    """
    if period == "month":
        return month_bounds(reference)
    if period == "quarter":
        start = date(reference.year, (reference.month - 1) // 3 * 3 + 1, 1)
        return start, add_months(start, 3) - timedelta(days=1)
    if period == "year":
        return date(reference.year, 1, 1), date(reference.year, 12, 31)
    raise ValueError(f"Unknown period {period!r}, expected one of {PERIODS}")
