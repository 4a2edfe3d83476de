"""Ledger engine - daily rows, running balances and range ledgers"""

import bisect
import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from ledgerflow.domain.models import (
    GROUP_BANK_ADJUSTMENT,
    GROUP_FIELDS,
    STATUS_COMPLETED,
    LedgerRow,
    Transaction,
)
from ledgerflow.domain.normalizer import calculate_daily_total, normalize_value, signed_amount
from ledgerflow.utils.date_utils import (
    coerce_date_key,
    format_date_key,
    generate_date_range,
    parse_date_key,
    period_range,
    shift_days,
)

DateLike = Union[date, str]

DEFAULT_MAX_RANGE_YEARS = 30

# Reasons a transaction is left out of a range ledger
SKIP_UNPARSEABLE_DATE = "unparseable_date"
SKIP_OUT_OF_BOUNDS_DATE = "out_of_bounds_date"


def build_ledger_rows(date_keys: Iterable[DateLike], transactions: Iterable[Transaction]) -> List[LedgerRow]:
    """
    Allocate one row per date and fold transactions into their group bucket.

    Amounts are summed as absolute values, except bank adjustments which keep
    their sign. Transactions dated outside the given dates, or carrying an
    unknown group, are ignored.
    """
    rows = [LedgerRow(date=key if isinstance(key, str) else format_date_key(key)) for key in date_keys]
    row_map: Dict[str, LedgerRow] = {row.date: row for row in rows}

    for txn in transactions:
        row = row_map.get(txn.date)
        if row is None:
            continue

        field_name = GROUP_FIELDS.get(txn.group)
        if field_name is None:
            logging.debug("Ignoring transaction with unknown group", extra={"transaction_id": txn.id, "group": txn.group})
            continue

        amount = normalize_value(txn.amount)
        if txn.group != GROUP_BANK_ADJUSTMENT:
            amount = abs(amount)
        setattr(row, field_name, getattr(row, field_name) + amount)

    return rows


def _row_sort_key(row: LedgerRow) -> date:
    try:
        return parse_date_key(row.date)
    except ValueError:
        return date.min


def apply_running_balance(rows: Iterable[LedgerRow], opening_balance: float = 0.0) -> List[LedgerRow]:
    """
    Sort rows by date and annotate daily total, balance and running total.

    balance[0] = opening_balance + daily_total[0]
    balance[n] = balance[n-1] + daily_total[n]
    """
    ordered = sorted(rows, key=_row_sort_key)
    balance = normalize_value(opening_balance)

    for row in ordered:
        daily_total = calculate_daily_total(row)
        balance += daily_total
        row.daily_total = daily_total
        row.balance = balance
        row.running_total = balance

    return ordered


class Ledger:
    """Balanced, date-contiguous rows with lookup by date key"""

    def __init__(
        self,
        rows: Sequence[LedgerRow],
        opening_balance: float,
        requested_start: str,
        requested_end: str,
        skipped: Sequence[Tuple[Transaction, str]] = (),
    ):
        self.rows = list(rows)
        self.opening_balance = opening_balance
        self.requested_start = requested_start
        self.requested_end = requested_end
        self.skipped = list(skipped)
        self._keys = [row.date for row in self.rows]
        self._by_date = dict(zip(self._keys, self.rows))

    def __iter__(self) -> Iterator[LedgerRow]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def start(self) -> Optional[str]:
        return self._keys[0] if self._keys else None

    @property
    def end(self) -> Optional[str]:
        return self._keys[-1] if self._keys else None

    @property
    def extended(self) -> bool:
        """True when transactions widened the window beyond the request"""
        return (self.start, self.end) != (self.requested_start, self.requested_end)

    @property
    def terminal_balance(self) -> float:
        return self.rows[-1].balance if self.rows else self.opening_balance

    @property
    def balance_at_end_of_request(self) -> float:
        """Balance on the last requested day, e.g. the month-end balance"""
        return self.balance_on(self.requested_end)

    def row(self, key: DateLike) -> Optional[LedgerRow]:
        return self._by_date.get(coerce_date_key(key))

    def row_on_or_before(self, key: DateLike) -> Optional[LedgerRow]:
        canonical = coerce_date_key(key)
        if canonical is None:
            return None
        index = bisect.bisect_right(self._keys, canonical)
        return self.rows[index - 1] if index else None

    def balance_on(self, key: DateLike) -> float:
        """
        Balance at the end of the given day.

        Days after the ledger carry the terminal balance forward; days before
        it read the opening balance.
        """
        row = self.row_on_or_before(key)
        return row.balance if row is not None else self.opening_balance

    def rows_between(self, start: DateLike, end: DateLike) -> List[LedgerRow]:
        low, high = coerce_date_key(start), coerce_date_key(end)
        if low is None or high is None:
            return []
        return self.rows[bisect.bisect_left(self._keys, low):bisect.bisect_right(self._keys, high)]

    def first_balance_below(
        self,
        threshold: float,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> Optional[LedgerRow]:
        """First row in [start, end] whose balance is strictly below threshold"""
        candidates = self.rows_between(start or self.start, end or self.end) if self.rows else []
        for row in candidates:
            if row.balance is not None and row.balance < threshold:
                return row
        return None


def _resolve_window(start: DateLike, end: DateLike) -> Tuple[date, date]:
    start_key, end_key = coerce_date_key(start), coerce_date_key(end)
    if start_key is None and end_key is None:
        logging.warning("Unparseable ledger window, using today", extra={"start": str(start), "end": str(end)})
        today = date.today()
        return today, today
    first = parse_date_key(start_key or end_key)
    last = parse_date_key(end_key or start_key)
    if last < first:
        # Degenerate window collapses to its start day
        last = first
    return first, last


def build_range_ledger(
    transactions: Iterable[Transaction],
    start: DateLike,
    end: DateLike,
    opening_balance: float = 0.0,
    max_range_years: int = DEFAULT_MAX_RANGE_YEARS,
) -> Ledger:
    """
    Build a complete ledger for [start, end] seeded with opening_balance.

    The window is widened to the earliest and latest transaction date so that
    no activity is silently dropped. Transaction dates are normalized to
    canonical keys first. Dates that cannot be parsed, or that lie more than
    max_range_years away from the requested window, are skipped and reported
    on ``Ledger.skipped``. A requested window longer than the ceiling is
    capped at the ceiling.
    """
    window_start, window_end = _resolve_window(start, end)
    ceiling = timedelta(days=round(365.25 * max_range_years))

    if window_end - window_start > ceiling:
        logging.warning(
            "Ledger window exceeds ceiling, capping",
            extra={"start": format_date_key(window_start), "end": format_date_key(window_end), "max_range_years": max_range_years},
        )
        window_end = shift_days(window_start, ceiling)

    requested_start = format_date_key(window_start)
    requested_end = format_date_key(window_end)
    lower_bound, upper_bound = shift_days(window_start, -ceiling), shift_days(window_end, ceiling)

    normalized: List[Transaction] = []
    skipped: List[Tuple[Transaction, str]] = []
    effective_start, effective_end = window_start, window_end

    for txn in transactions:
        key = coerce_date_key(txn.date)
        if key is None:
            skipped.append((txn, SKIP_UNPARSEABLE_DATE))
            continue
        txn_date = parse_date_key(key)
        if not lower_bound <= txn_date <= upper_bound:
            skipped.append((txn, SKIP_OUT_OF_BOUNDS_DATE))
            continue
        normalized.append(txn if key == txn.date else replace(txn, date=key))
        effective_start = min(effective_start, txn_date)
        effective_end = max(effective_end, txn_date)

    if skipped:
        logging.warning(
            "Skipped transactions with malformed dates",
            extra={"skipped_ids": [txn.id for txn, _ in skipped], "count": len(skipped)},
        )

    keys = [format_date_key(day) for day in generate_date_range(effective_start, effective_end)]
    rows = apply_running_balance(build_ledger_rows(keys, normalized), opening_balance)

    return Ledger(
        rows=rows,
        opening_balance=normalize_value(opening_balance),
        requested_start=requested_start,
        requested_end=requested_end,
        skipped=skipped,
    )


def compute_opening_balance(transactions: Iterable[Transaction], initial_balance: float, start: DateLike) -> float:
    """
    Balance immediately before start: the application's initial balance plus
    every completed transaction dated earlier, signed by group.
    """
    cutoff = coerce_date_key(start)
    balance = normalize_value(initial_balance)
    if cutoff is None:
        return balance

    for txn in transactions:
        if txn.status != STATUS_COMPLETED:
            continue
        key = coerce_date_key(txn.date)
        if key is not None and key < cutoff:
            balance += signed_amount(txn)
    return balance


def build_period_ledger(
    transactions: Iterable[Transaction],
    initial_balance: float,
    period: str,
    reference: date,
    max_range_years: int = DEFAULT_MAX_RANGE_YEARS,
) -> Ledger:
    """
    Ledger for the month, quarter or year containing reference.

    Completed history before the period is folded into the opening balance,
    so only transactions dated inside the period are replayed as rows.
    """
    transactions = list(transactions)
    start, end = period_range(period, reference)
    start_key, end_key = format_date_key(start), format_date_key(end)
    opening_balance = compute_opening_balance(transactions, initial_balance, start)

    in_period = []
    for txn in transactions:
        key = coerce_date_key(txn.date)
        if key is not None and start_key <= key <= end_key:
            in_period.append(txn)

    return build_range_ledger(in_period, start, end, opening_balance, max_range_years=max_range_years)
