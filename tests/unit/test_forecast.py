"""Unit tests for the month-end forecast"""

import pytest
from datetime import date
from ledgerflow.domain.forecast import calculate_forecast, is_recurring_expense

REFERENCE = date(2025, 6, 10)  # 20 days left in June, 6 of them Fri/Sat


def test_forecast_without_history_equals_current_balance():
    result = calculate_forecast([], current_balance=10_000, opening_balance=0, reference_date=REFERENCE)

    assert result.forecast == 10_000
    assert result.confidence_low == pytest.approx(9_500)
    assert result.confidence_high == pytest.approx(10_500)
    assert result.seasonal_factor == 1.0
    assert result.recurring_expenses == 0


def test_forecast_components(monthly_history):
    """Steady 20k monthly fees with 5k rent that has not posted yet"""
    result = calculate_forecast(monthly_history, current_balance=50_000, opening_balance=0, reference_date=REFERENCE)

    daily = 20_000 / 30
    assert result.average_monthly_income == pytest.approx(20_000)
    assert result.income_std_dev == 0
    assert result.working_days_remaining == 14
    assert result.weekend_days_remaining == 6
    assert result.projected_working_income == pytest.approx(daily * 14)
    assert result.weekend_adjustment == pytest.approx(daily * 6 * 0.4)
    assert result.recurring_expenses == pytest.approx(5_000)
    assert result.pending_income == 0
    assert result.forecast == pytest.approx(50_000 + daily * 14 - daily * 6 * 0.4 - 5_000)
    assert result.confidence_high - result.forecast == pytest.approx(result.forecast * 0.05)


def test_recurring_expense_already_posted_is_not_subtracted(monthly_history, make_transaction):
    history = monthly_history + [make_transaction("2025-06-01", 5_000, group="operational", description="Office rent")]

    result = calculate_forecast(history, current_balance=50_000, opening_balance=0, reference_date=REFERENCE)

    assert result.recurring_expenses == 0


def test_pending_income_counts_only_current_month(monthly_history, make_transaction):
    history = monthly_history + [
        make_transaction("2025-06-20", 3_000, status="pending"),
        make_transaction("2025-07-02", 9_000, status="pending"),
        make_transaction("2025-06-03", 4_000, group="other_income", status="completed"),
    ]

    result = calculate_forecast(history, current_balance=0, opening_balance=0, reference_date=REFERENCE)

    assert result.pending_income == 3_000


@pytest.mark.parametrize("june_income, expected_factor", [(30_000, 1.15), (10_000, 0.85), (22_000, 1.1)])
def test_seasonal_factor_is_clamped(monthly_history, make_transaction, june_income, expected_factor):
    history = monthly_history + [make_transaction("2024-06-05", june_income)]

    result = calculate_forecast(history, current_balance=0, opening_balance=0, reference_date=REFERENCE)

    assert result.seasonal_factor == pytest.approx(expected_factor)


def test_confidence_band_capped_at_ten_percent(make_transaction):
    history = [
        make_transaction(date(2025, month, 5), 10_000 if month % 2 else 30_000)
        for month in range(1, 6)
    ]

    result = calculate_forecast(history, current_balance=100_000, opening_balance=0, reference_date=REFERENCE)

    assert result.confidence_high - result.forecast == pytest.approx(result.forecast * 0.10)
    assert result.forecast - result.confidence_low == pytest.approx(result.forecast * 0.10)


def test_heuristics_are_configurable(monthly_history):
    result = calculate_forecast(
        monthly_history,
        current_balance=50_000,
        opening_balance=0,
        reference_date=REFERENCE,
        weekend_dampening=0.0,
        confidence_floor=0.08,
    )

    assert result.weekend_adjustment == 0
    assert result.confidence_high - result.forecast == pytest.approx(result.forecast * 0.08)


def test_negative_seasonal_income_is_floored(make_transaction):
    """Weekend dampening can never push projected income below zero"""
    result = calculate_forecast(
        [make_transaction("2025-05-05", 3_000)],
        current_balance=1_000,
        opening_balance=0,
        reference_date=date(2025, 6, 26),  # Only Fri 27 and Sat 28 plus Sun-Mon left
        weekend_dampening=5.0,
    )

    assert result.forecast == 1_000


def test_is_recurring_expense(make_transaction):
    assert is_recurring_expense(make_transaction("2025-06-01", 100, group="operational", is_recurring=True))
    assert is_recurring_expense(make_transaction("2025-06-01", 100, group="operational", description="משכורת יוני"))
    assert is_recurring_expense(make_transaction("2025-06-01", 100, group="operational", description="Monthly PAYROLL"))
    assert not is_recurring_expense(make_transaction("2025-06-01", 100, group="fee", description="rent rebate"))
    assert not is_recurring_expense(make_transaction("2025-06-01", 100, group="operational", description="Printer"))


def test_confidence_band_brackets_negative_forecast():
    """The band is measured on the forecast's magnitude, so low stays below high"""
    result = calculate_forecast([], current_balance=-10_000, opening_balance=0, reference_date=REFERENCE)

    assert result.forecast == -10_000
    assert result.confidence_low == pytest.approx(-10_500)
    assert result.confidence_high == pytest.approx(-9_500)
