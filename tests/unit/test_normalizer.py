"""Unit tests for row normalization sign rules"""

import math
import pytest
from ledgerflow.domain.models import LedgerRow
from ledgerflow.domain.normalizer import calculate_daily_total, normalize_row, normalize_value, signed_amount


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        (" 12.5 ", 12.5),
        (math.nan, 0.0),
        (math.inf, 0.0),
        (-7, -7.0),
        (True, 0.0),
    ],
)
def test_normalize_value(raw, expected):
    assert normalize_value(raw) == expected


def test_normalize_row_sign_invariants():
    """Income never negative, expenses never positive, bank adjustments untouched"""
    row = LedgerRow(
        date="2025-06-10",
        fee=-100,
        other_income=50,
        loans=30,
        withdrawals=-20,
        expenses=10,
        taxes=5,
        bank_adjustments=-40,
    )

    normalized = normalize_row(row)

    assert normalized.fee == 0.0
    assert normalized.other_income == 50.0
    assert normalized.loans == -30.0
    assert normalized.withdrawals == -20.0
    assert normalized.expenses == -10.0
    assert normalized.taxes == -5.0
    assert normalized.bank_adjustments == -40.0


def test_normalize_row_accepts_raw_mapping_with_legacy_names():
    """Stored rows may hold strings, gaps and camelCase names"""
    raw = {"salary": "1000", "otherIncome": None, "expenses": "250", "bankAdjustments": "-15", "taxes": "oops"}

    normalized = normalize_row(raw)

    assert normalized.fee == 1000.0
    assert normalized.other_income == 0.0
    assert normalized.expenses == -250.0
    assert normalized.taxes == 0.0
    assert normalized.bank_adjustments == -15.0


def test_calculate_daily_total_nets_every_group():
    row = LedgerRow(date="2025-06-10", fee=1000, other_income=200, loans=300, expenses=100, bank_adjustments=-50)
    assert calculate_daily_total(row) == 750.0


def test_signed_amount_follows_group(make_transaction):
    assert signed_amount(make_transaction("2025-06-10", -500, group="fee")) == 500.0
    assert signed_amount(make_transaction("2025-06-10", 500, group="tax")) == -500.0
    assert signed_amount(make_transaction("2025-06-10", -500, group="bank_adjustment")) == -500.0
    assert signed_amount(make_transaction("2025-06-10", 500, group="mystery")) == 0.0
