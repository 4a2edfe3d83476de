"""Row normalization - sign conventions shared by every ledger consumer"""

import math
from typing import Any, Mapping, Union

from ledgerflow.domain.models import (
    EXPENSE_GROUPS,
    GROUP_BANK_ADJUSTMENT,
    INCOME_GROUPS,
    LedgerRow,
    NormalizedRow,
    Transaction,
)

# Accumulator name -> legacy camelCase name still found in stored rows
_LEGACY_FIELDS = {
    "fee": "salary",
    "other_income": "otherIncome",
    "loans": "loans",
    "withdrawals": "withdrawals",
    "expenses": "expenses",
    "taxes": "taxes",
    "bank_adjustments": "bankAdjustments",
}


def normalize_value(value: Any) -> float:
    """Coerce a raw accumulator value to a finite float (0.0 otherwise)"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _raw_value(row: Union[LedgerRow, Mapping[str, Any]], name: str) -> Any:
    if isinstance(row, Mapping):
        if name in row:
            return row[name]
        return row.get(_LEGACY_FIELDS[name])
    return getattr(row, name, None)


def normalize_row(row: Union[LedgerRow, Mapping[str, Any]]) -> NormalizedRow:
    """
    Produce the signed view of a row.

    Income accumulators are clamped to >= 0, expense accumulators become
    negative magnitudes and bank adjustments keep their sign. Missing, string
    or non-finite values count as zero.
    """
    return NormalizedRow(
        fee=max(0.0, normalize_value(_raw_value(row, "fee"))),
        other_income=max(0.0, normalize_value(_raw_value(row, "other_income"))),
        loans=-abs(normalize_value(_raw_value(row, "loans"))),
        withdrawals=-abs(normalize_value(_raw_value(row, "withdrawals"))),
        expenses=-abs(normalize_value(_raw_value(row, "expenses"))),
        taxes=-abs(normalize_value(_raw_value(row, "taxes"))),
        bank_adjustments=normalize_value(_raw_value(row, "bank_adjustments")),
    )


def calculate_daily_total(row: Union[LedgerRow, Mapping[str, Any]]) -> float:
    """Net effect of one row on the balance"""
    return normalize_row(row).total()


def signed_amount(transaction: Transaction) -> float:
    """Balance contribution of a single transaction under the group sign rules"""
    amount = normalize_value(transaction.amount)
    if transaction.group in INCOME_GROUPS:
        return abs(amount)
    if transaction.group in EXPENSE_GROUPS:
        return -abs(amount)
    if transaction.group == GROUP_BANK_ADJUSTMENT:
        return amount
    return 0.0
