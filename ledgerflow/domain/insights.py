"""Insight detectors - weak months and slow-paying counterparties"""

import statistics
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional

from ledgerflow.domain.models import (
    EXPENSE_GROUPS,
    GROUP_BANK_ADJUSTMENT,
    INCOME_GROUPS,
    STATUS_PENDING,
    Alert,
    CashflowInsights,
    ExpenseSpike,
    MonthlyPerformance,
    SlowPayer,
    Transaction,
)
from ledgerflow.domain.normalizer import normalize_value
from ledgerflow.utils.date_utils import coerce_date_key, parse_date_key

UNKNOWN_COUNTERPARTY = "Unknown counterparty"

DEFAULT_WINDOW = 3
WEAK_MONTH_WARNING_PCT = -15.0
WEAK_MONTH_HIGH_PCT = -30.0
SLOW_PAYER_WARNING_DAYS = 30
SLOW_PAYER_HIGH_DAYS = 60
EXPENSE_SPIKE_WARNING_PCT = 25.0
EXPENSE_SPIKE_HIGH_PCT = 40.0


def monthly_net(transactions: Iterable[Transaction]) -> Dict[str, float]:
    """Net result per YYYY-MM: income - expenses + signed bank adjustments"""
    totals: Dict[str, float] = {}
    for txn in transactions:
        key = coerce_date_key(txn.date)
        if key is None:
            continue
        month = key[:7]
        amount = normalize_value(txn.amount)
        totals.setdefault(month, 0.0)
        if txn.group in INCOME_GROUPS:
            totals[month] += abs(amount)
        elif txn.group in EXPENSE_GROUPS:
            totals[month] -= abs(amount)
        elif txn.group == GROUP_BANK_ADJUSTMENT:
            totals[month] += amount
    return totals


def find_weak_months(
    transactions: Iterable[Transaction],
    window: int = DEFAULT_WINDOW,
    threshold_pct: float = WEAK_MONTH_WARNING_PCT,
) -> List[MonthlyPerformance]:
    """
    Months whose net fell at least |threshold_pct| percent below the average
    net of the preceding ``window`` months with activity.

    The first month has no reference and is never flagged; neither is a month
    whose reference average is zero or negative.
    """
    net_by_month = monthly_net(transactions)
    months = sorted(net_by_month)
    weak = []

    for index, key in enumerate(months):
        reference = months[max(0, index - window):index]
        if not reference:
            continue
        reference_average = statistics.fmean(net_by_month[month] for month in reference)
        if reference_average <= 0:
            continue
        net = net_by_month[key]
        deviation = (net - reference_average) / reference_average * 100
        if deviation <= threshold_pct:
            weak.append(
                MonthlyPerformance(
                    month_key=key,
                    net_profit=net,
                    reference_average=reference_average,
                    deviation_percent=deviation,
                )
            )

    return weak


def counterparty_name(transaction: Transaction) -> str:
    """Counterparty, else description, else a shared placeholder"""
    return (
        (transaction.counterparty or "").strip()
        or (transaction.description or "").strip()
        or UNKNOWN_COUNTERPARTY
    )


def find_slow_payers(
    transactions: Iterable[Transaction],
    now: Optional[date] = None,
    min_average_days: int = SLOW_PAYER_WARNING_DAYS,
) -> List[SlowPayer]:
    """
    Counterparties whose pending income is on average at least
    min_average_days old, slowest first.

    Pending income is grouped by counterparty, falling back to the
    description when no counterparty is recorded.
    """
    today = now or date.today()
    delays: Dict[str, List[int]] = defaultdict(list)
    outstanding: Dict[str, float] = defaultdict(float)

    for txn in transactions:
        if txn.group not in INCOME_GROUPS or txn.status != STATUS_PENDING:
            continue
        key = coerce_date_key(txn.date)
        if key is None:
            continue
        name = counterparty_name(txn)
        delays[name].append(max(0, (today - parse_date_key(key)).days))
        outstanding[name] += abs(normalize_value(txn.amount))

    slow = []
    for name, ages in delays.items():
        average_delay = statistics.fmean(ages)
        if average_delay < min_average_days:
            continue
        slow.append(SlowPayer(name=name, average_delay_days=round(average_delay), pending_amount=outstanding[name]))

    slow.sort(key=lambda payer: payer.average_delay_days, reverse=True)
    return slow


def find_expense_spike(
    transactions: Iterable[Transaction],
    threshold_pct: float = EXPENSE_SPIKE_WARNING_PCT,
) -> Optional[ExpenseSpike]:
    """
    Compare the latest month with expense activity against the one before it.

    Growth must exceed threshold_pct percent; a previous month totalling zero
    never yields a spike.
    """
    totals: Dict[str, float] = {}
    for txn in transactions:
        if txn.group not in EXPENSE_GROUPS:
            continue
        key = coerce_date_key(txn.date)
        if key is None:
            continue
        totals[key[:7]] = totals.get(key[:7], 0.0) + abs(normalize_value(txn.amount))

    months = sorted(totals)
    if len(months) < 2:
        return None

    previous_month, month = months[-2], months[-1]
    previous_total, total = totals[previous_month], totals[month]
    if previous_total == 0:
        return None

    growth = (total - previous_total) * 100 / previous_total
    if growth <= threshold_pct:
        return None
    return ExpenseSpike(
        month_key=month,
        previous_month_key=previous_month,
        total=total,
        previous_total=previous_total,
        growth_percent=growth,
    )


def analyze_cashflow(
    transactions: Iterable[Transaction],
    window: int = DEFAULT_WINDOW,
    now: Optional[date] = None,
    weak_month_pct: float = WEAK_MONTH_WARNING_PCT,
    slow_payer_days: int = SLOW_PAYER_WARNING_DAYS,
    expense_spike_pct: float = EXPENSE_SPIKE_WARNING_PCT,
) -> CashflowInsights:
    """Run every detector over the same history snapshot"""
    transactions = list(transactions)
    return CashflowInsights(
        weak_months=find_weak_months(transactions, window, weak_month_pct),
        slow_payers=find_slow_payers(transactions, now, slow_payer_days),
        expense_spike=find_expense_spike(transactions, expense_spike_pct),
        reference_window_size=window,
    )


def generate_alerts(
    insights: CashflowInsights,
    weak_month_high_pct: float = WEAK_MONTH_HIGH_PCT,
    slow_payer_high_days: int = SLOW_PAYER_HIGH_DAYS,
    expense_spike_high_pct: float = EXPENSE_SPIKE_HIGH_PCT,
) -> List[Alert]:
    """Flatten insights into alerts with stable ids"""
    alerts = []

    for month in insights.weak_months:
        alerts.append(
            Alert(
                id=f"weak-month-{month.month_key}",
                kind="weak_month",
                severity="high" if month.deviation_percent <= weak_month_high_pct else "warning",
                message=(
                    f"Net result for {month.month_key} was {abs(month.deviation_percent):.1f}% below "
                    f"the average of the previous {insights.reference_window_size} months."
                ),
                related_month=month.month_key,
                amount=month.net_profit,
            )
        )

    for payer in insights.slow_payers:
        alerts.append(
            Alert(
                id=f"slow-payer-{payer.name}",
                kind="slow_payer",
                severity="high" if payer.average_delay_days >= slow_payer_high_days else "warning",
                message=(
                    f'"{payer.name}" pays after {payer.average_delay_days} days on average, '
                    f"with {round(payer.pending_amount)} outstanding."
                ),
                related_counterparty=payer.name,
                amount=payer.pending_amount,
            )
        )

    spike = insights.expense_spike
    if spike is not None:
        alerts.append(
            Alert(
                id=f"expense-spike-{spike.month_key}",
                kind="expense_spike",
                severity="high" if spike.growth_percent >= expense_spike_high_pct else "warning",
                message=(
                    f"Expenses for {spike.month_key} rose {round(spike.growth_percent)}% "
                    f"compared with {spike.previous_month_key}."
                ),
                related_month=spike.month_key,
                amount=spike.total,
            )
        )

    return alerts
