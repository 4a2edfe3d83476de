"""Cash summaries - the numbers behind the daily status message and the executive report"""

from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from ledgerflow.domain.insights import counterparty_name
from ledgerflow.domain.ledger import DEFAULT_MAX_RANGE_YEARS, build_period_ledger, build_range_ledger
from ledgerflow.domain.models import (
    EXPENSE_GROUPS,
    GROUP_BANK_ADJUSTMENT,
    GROUP_FEE,
    GROUP_OTHER_INCOME,
    INCOME_GROUPS,
    STATUS_PENDING,
    DailySummary,
    DayTotal,
    ExecutiveSummary,
    ThresholdBreach,
    Transaction,
)
from ledgerflow.domain.normalizer import normalize_value
from ledgerflow.utils.date_utils import coerce_date_key, format_date_key, month_bounds, parse_date_key, shift_days

BALANCE_THRESHOLD = -150_000.0
HORIZON_DAYS = 10
OVERDUE_DAYS = 45
EXECUTIVE_OVERDUE_DAYS = 30


def build_daily_summary(
    transactions: Iterable[Transaction],
    initial_balance: float,
    today: Optional[date] = None,
    balance_threshold: float = BALANCE_THRESHOLD,
    horizon_days: int = HORIZON_DAYS,
    overdue_days: int = OVERDUE_DAYS,
    max_range_years: int = DEFAULT_MAX_RANGE_YEARS,
) -> DailySummary:
    """
    Summarize today's cash position.

    The ledger spans the current month plus horizon_days, widened to every
    transaction and seeded with the application's initial balance. Pending
    income older than overdue_days counts as overdue.
    """
    today = today or date.today()
    today_key = format_date_key(today)
    month_start, month_end = month_bounds(today)
    horizon_end = shift_days(month_end, timedelta(days=horizon_days))

    transactions: List[Transaction] = list(transactions)
    ledger = build_range_ledger(transactions, month_start, horizon_end, initial_balance, max_range_years=max_range_years)

    current_balance = ledger.balance_on(today_key)
    breach_row = ledger.first_balance_below(balance_threshold, today_key, horizon_end)
    breach = ThresholdBreach(date=breach_row.date, balance=breach_row.balance) if breach_row else None

    todays = [txn for txn in transactions if coerce_date_key(txn.date) == today_key]

    def sum_group(*groups: str) -> float:
        return sum(abs(normalize_value(txn.amount)) for txn in todays if txn.group in groups)

    bank_adjustment_today = sum(normalize_value(txn.amount) for txn in todays if txn.group == GROUP_BANK_ADJUSTMENT)

    overdue_amount = 0.0
    overdue_count = 0
    for txn in transactions:
        if txn.status != STATUS_PENDING or txn.group not in INCOME_GROUPS:
            continue
        key = coerce_date_key(txn.date)
        if key is not None and (today - parse_date_key(key)).days > overdue_days:
            overdue_count += 1
            overdue_amount += abs(normalize_value(txn.amount))

    return DailySummary(
        date=today_key,
        current_balance=current_balance,
        projected_month_end_balance=ledger.balance_on(month_end),
        first_threshold_breach=breach,
        fee_today=sum_group(GROUP_FEE),
        other_income_today=sum_group(GROUP_OTHER_INCOME),
        expenses_today=sum_group(*EXPENSE_GROUPS) + bank_adjustment_today,
        overdue_count=overdue_count,
        overdue_amount=overdue_amount,
    )


def build_executive_summary(
    transactions: Iterable[Transaction],
    initial_balance: float,
    period: str = "month",
    reference: Optional[date] = None,
    overdue_days: int = EXECUTIVE_OVERDUE_DAYS,
    max_range_years: int = DEFAULT_MAX_RANGE_YEARS,
) -> ExecutiveSummary:
    """
    Summarize the month, quarter or year containing reference.

    Balances, best and worst day come from the period ledger. Income,
    expenses and the top client count every transaction dated inside the
    period. Pending fees are counted across the whole history and are overdue
    once older than overdue_days.

    Raises:
        ValueError: unknown period name
    """
    reference = reference or date.today()
    transactions: List[Transaction] = list(transactions)
    ledger = build_period_ledger(transactions, initial_balance, period, reference, max_range_years=max_range_years)

    rows = ledger.rows
    best = max(rows, key=lambda row: row.daily_total, default=None)
    worst = min(rows, key=lambda row: row.daily_total, default=None)

    income = 0.0
    expenses = 0.0
    expenses_by_group: Dict[str, float] = {}
    client_income: Dict[str, float] = {}
    for txn in transactions:
        key = coerce_date_key(txn.date)
        if key is None or not ledger.requested_start <= key <= ledger.requested_end:
            continue
        amount = abs(normalize_value(txn.amount))
        if txn.group in INCOME_GROUPS:
            income += amount
            name = counterparty_name(txn)
            client_income[name] = client_income.get(name, 0.0) + amount
        elif txn.group in EXPENSE_GROUPS:
            expenses += amount
            expenses_by_group[txn.group] = expenses_by_group.get(txn.group, 0.0) + amount

    # Ties go to the client seen first
    top_client = max(client_income, key=client_income.get, default=None)

    pending_count = 0
    pending_amount = 0.0
    overdue_count = 0
    for txn in transactions:
        if txn.group != GROUP_FEE or txn.status != STATUS_PENDING:
            continue
        pending_count += 1
        pending_amount += abs(normalize_value(txn.amount))
        key = coerce_date_key(txn.date)
        if key is not None and (reference - parse_date_key(key)).days > overdue_days:
            overdue_count += 1

    net_profit = income - expenses
    return ExecutiveSummary(
        period=period,
        start=ledger.requested_start,
        end=ledger.requested_end,
        opening_balance=ledger.opening_balance,
        net_cashflow=sum(row.daily_total for row in rows),
        closing_balance=ledger.balance_at_end_of_request,
        best_day=DayTotal(date=best.date, total=best.daily_total) if best else None,
        worst_day=DayTotal(date=worst.date, total=worst.daily_total) if worst else None,
        bank_adjustment_net=sum(row.bank_adjustments for row in rows),
        income=income,
        expenses=expenses,
        net_profit=net_profit,
        profit_margin_pct=net_profit / income * 100 if income > 0 else 0.0,
        expenses_by_group=expenses_by_group,
        top_client=top_client,
        top_client_income=client_income.get(top_client, 0.0) if top_client else 0.0,
        pending_fee_count=pending_count,
        pending_fee_amount=pending_amount,
        overdue_fee_count=overdue_count,
    )
