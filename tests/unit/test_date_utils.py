"""Unit tests for calendar date-key utilities"""

import pytest
from datetime import date, datetime, timedelta
from ledgerflow.domain.exceptions import InvalidDateKeyError
from ledgerflow.utils.date_utils import (
    add_months,
    coerce_date_key,
    format_date_key,
    generate_date_range,
    is_weekend,
    month_bounds,
    parse_date_key,
    period_range,
    shift_days,
)


def test_format_date_key_zero_pads():
    assert format_date_key(date(2025, 6, 3)) == "2025-06-03"


def test_parse_date_key_accepts_common_shapes():
    """Canonical, unpadded and timestamp strings all land on the same day"""
    assert parse_date_key("2025-06-03") == date(2025, 6, 3)
    assert parse_date_key("2025-6-3") == date(2025, 6, 3)
    assert parse_date_key("2025-06-03T23:59:59Z") == date(2025, 6, 3)
    assert parse_date_key("2025-06-03 08:00") == date(2025, 6, 3)
    assert parse_date_key(datetime(2025, 6, 3, 23, 0)) == date(2025, 6, 3)


@pytest.mark.parametrize("value", ["", "   ", "not-a-date", "2025-13-01", "2025-02-30", None, 20250603])
def test_parse_date_key_rejects_garbage(value):
    with pytest.raises(InvalidDateKeyError):
        parse_date_key(value)


def test_coerce_date_key_never_raises():
    assert coerce_date_key("2025-6-3") == "2025-06-03"
    assert coerce_date_key("garbage") is None
    assert coerce_date_key(None) is None


def test_month_bounds_handles_leap_february():
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


def test_add_months_crosses_year_boundaries():
    assert add_months(date(2025, 2, 14), -4) == date(2024, 10, 1)
    assert add_months(date(2025, 11, 30), 3) == date(2026, 2, 1)


def test_generate_date_range_inclusive():
    days = generate_date_range(date(2025, 1, 30), date(2025, 2, 2))
    assert days == [date(2025, 1, 30), date(2025, 1, 31), date(2025, 2, 1), date(2025, 2, 2)]


def test_is_weekend_uses_friday_and_saturday():
    assert is_weekend(date(2025, 6, 6))  # Friday
    assert is_weekend(date(2025, 6, 7))  # Saturday
    assert not is_weekend(date(2025, 6, 8))  # Sunday


def test_period_range():
    reference = date(2025, 8, 17)
    assert period_range("month", reference) == (date(2025, 8, 1), date(2025, 8, 31))
    assert period_range("quarter", reference) == (date(2025, 7, 1), date(2025, 9, 30))
    assert period_range("year", reference) == (date(2025, 1, 1), date(2025, 12, 31))

    with pytest.raises(ValueError):
        period_range("week", reference)


def test_shift_days_clamps_at_calendar_edges():
    assert shift_days(date(2025, 6, 1), timedelta(days=10)) == date(2025, 6, 11)
    assert shift_days(date(5, 1, 1), timedelta(days=-30 * 365)) == date.min
    assert shift_days(date(9990, 1, 1), timedelta(days=30 * 365)) == date.max
