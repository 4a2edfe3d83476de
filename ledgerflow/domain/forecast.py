"""Month-end balance forecast from completed transaction history"""

import statistics
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from ledgerflow.domain.models import (
    STATUS_COMPLETED,
    STATUS_PENDING,
    TYPE_EXPENSE,
    TYPE_INCOME,
    ForecastResult,
    Transaction,
)
from ledgerflow.domain.normalizer import normalize_value
from ledgerflow.utils.date_utils import add_months, coerce_date_key, is_weekend, month_bounds, month_key, parse_date_key

# Payroll and rent terms, Hebrew and English, plus the office landlord
RECURRING_KEYWORDS = (
    "משכורת",
    "שכר",
    "salary",
    "payroll",
    "rent",
    "שכירות",
    "regus",
    "רג'ס",
    "רג׳ס",
    "רגוס",
)

DEFAULT_TRAILING_MONTHS = 6
DEFAULT_WEEKEND_DAMPENING = 0.4
DEFAULT_CONFIDENCE_FLOOR = 0.05
DEFAULT_CONFIDENCE_CEILING = 0.10
DEFAULT_SEASONAL_BOUNDS = (0.85, 1.15)

# Months of history before the current one used to average recurring expenses
RECURRING_LOOKBACK_MONTHS = 4
# Trailing average ignores months older than this many years before the reference year
HISTORY_YEARS = 2


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def is_recurring_expense(transaction: Transaction, keywords: Sequence[str] = RECURRING_KEYWORDS) -> bool:
    """Expense flagged recurring, or whose description names payroll or rent"""
    if transaction.type != TYPE_EXPENSE:
        return False
    if transaction.is_recurring:
        return True
    description = (transaction.description or "").lower()
    return any(keyword.lower() in description for keyword in keywords)


def _dated(transactions: Iterable[Transaction]) -> List[tuple]:
    """(date, transaction) pairs, dropping records without a readable date"""
    pairs = []
    for txn in transactions:
        key = coerce_date_key(txn.date)
        if key is not None:
            pairs.append((parse_date_key(key), txn))
    return pairs


def calculate_forecast(
    transactions: Iterable[Transaction],
    current_balance: float,
    opening_balance: float = 0.0,
    reference_date: Optional[date] = None,
    months_for_average: int = DEFAULT_TRAILING_MONTHS,
    weekend_dampening: float = DEFAULT_WEEKEND_DAMPENING,
    confidence_floor: float = DEFAULT_CONFIDENCE_FLOOR,
    confidence_ceiling: float = DEFAULT_CONFIDENCE_CEILING,
    seasonal_bounds: Sequence[float] = DEFAULT_SEASONAL_BOUNDS,
    recurring_keywords: Sequence[str] = RECURRING_KEYWORDS,
) -> ForecastResult:
    """
    Project the balance at the end of reference_date's month.

    Steps:
    1. Monthly income/expense totals from completed transactions
    2. Trailing average income over months_for_average months before the
       current one, with its sample standard deviation
    3. Seasonal multiplier: same calendar month in prior years relative to the
       trailing average, clamped to seasonal_bounds (1.0 without history)
    4. Pending income dated in the current month
    5. Daily average income x remaining working days (Fri/Sat weekend), less
       weekend_dampening of the daily average for each remaining weekend day
    6. Recurring expense average, subtracted only when no recurring expense
       has posted this month yet
    7. forecast = current + max(0, (pending + projected - dampening) x seasonal) - recurring
    8. Band = forecast x clamp(std / average, floor, ceiling); floor when fewer
       than two months of history

    opening_balance is the period's opening balance; it only stands in as the
    seasonal baseline when there is no trailing income average.
    """
    today = reference_date or date.today()
    current_balance = normalize_value(current_balance)
    opening_balance = normalize_value(opening_balance)
    month_start, month_end = month_bounds(today)
    current_month = month_key(today)
    dated = _dated(transactions)

    # 1. Monthly history
    # Every month with any activity counts, even with zero completed income
    monthly_income: Dict[str, float] = {}
    for txn_date, txn in dated:
        key = month_key(txn_date)
        monthly_income.setdefault(key, 0.0)
        if txn.status == STATUS_COMPLETED and txn.type == TYPE_INCOME:
            monthly_income[key] += abs(normalize_value(txn.amount))

    # 2. Trailing average and spread
    earliest_year = today.year - HISTORY_YEARS
    historical_keys = sorted(
        key for key in monthly_income
        if key != current_month and int(key[:4]) >= earliest_year
    )
    incomes = [monthly_income[key] for key in historical_keys[-months_for_average:]] if months_for_average > 0 else []
    average_income = statistics.fmean(incomes) if incomes else 0.0
    income_std_dev = statistics.stdev(incomes) if len(incomes) > 1 else 0.0

    # 3. Seasonality
    same_month = [
        monthly_income[key] for key in monthly_income
        if key != current_month and key[5:7] == current_month[5:7]
    ]
    same_month_average = statistics.fmean(same_month) if same_month else 0.0
    baseline = average_income or opening_balance or 1.0
    low, high = seasonal_bounds
    seasonal_factor = _clamp(same_month_average / baseline, low, high) if same_month_average > 0 else 1.0

    # 4. Pending income this month
    pending_income = sum(
        abs(normalize_value(txn.amount))
        for txn_date, txn in dated
        if txn.type == TYPE_INCOME and txn.status == STATUS_PENDING and month_key(txn_date) == current_month
    )

    # 5. Remaining working days
    days_remaining = max(0, month_end.day - today.day)
    weekend_days = sum(1 for offset in range(1, days_remaining + 1) if is_weekend(today + timedelta(days=offset)))
    working_days = max(0, days_remaining - weekend_days)
    average_daily_income = average_income / month_end.day
    projected_working_income = average_daily_income * working_days
    weekend_adjustment = average_daily_income * weekend_days * weekend_dampening

    # 6. Recurring expenses
    lookback_start = add_months(month_start, -RECURRING_LOOKBACK_MONTHS)
    recurring_history = [
        abs(normalize_value(txn.amount))
        for txn_date, txn in dated
        if lookback_start <= txn_date < month_start and is_recurring_expense(txn, recurring_keywords)
    ]
    average_recurring = statistics.fmean(recurring_history) if recurring_history else 0.0
    posted_this_month = any(
        month_key(txn_date) == current_month and is_recurring_expense(txn, recurring_keywords)
        for txn_date, txn in dated
    )
    recurring_expenses = 0.0 if posted_this_month else average_recurring

    # 7. Point forecast
    seasonal_income = (pending_income + projected_working_income - weekend_adjustment) * seasonal_factor
    forecast = current_balance + max(0.0, seasonal_income) - recurring_expenses

    # 8. Confidence band
    spread = income_std_dev / average_income if len(incomes) > 1 and average_income > 0 else confidence_floor
    confidence_pct = _clamp(spread, confidence_floor, confidence_ceiling)
    margin = abs(forecast) * confidence_pct

    return ForecastResult(
        forecast=forecast,
        confidence_low=forecast - margin,
        confidence_high=forecast + margin,
        average_monthly_income=average_income,
        income_std_dev=income_std_dev,
        pending_income=pending_income,
        projected_working_income=projected_working_income,
        weekend_adjustment=weekend_adjustment,
        recurring_expenses=recurring_expenses,
        seasonal_factor=seasonal_factor,
        working_days_remaining=working_days,
        weekend_days_remaining=weekend_days,
    )
