"""Cashflow service - one entry point shared by every presentation consumer"""

import logging
import time
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional

from ledgerflow.config import Settings, settings as default_settings
from ledgerflow.domain.forecast import calculate_forecast
from ledgerflow.domain.insights import analyze_cashflow, generate_alerts
from ledgerflow.domain.ledger import DateLike, Ledger, build_period_ledger, build_range_ledger
from ledgerflow.domain.models import Alert, DailySummary, ExecutiveSummary, ForecastResult, Transaction
from ledgerflow.domain.overrides import LoanOverrideReconciler
from ledgerflow.domain.summary import build_daily_summary, build_executive_summary
from ledgerflow.infrastructure.database.repositories import DatabaseOverrideStore
from ledgerflow.infrastructure.database.session import create_session_factory
from ledgerflow.infrastructure.observability.logging import log_forecast, log_ledger_built, setup_logging
from ledgerflow.infrastructure.observability.metrics import (
    forecast_counter,
    ledger_build_counter,
    ledger_build_duration_histogram,
    ledger_range_extended_counter,
    record_alerts,
    record_malformed,
)
from ledgerflow.infrastructure.records import parse_transactions
from ledgerflow.utils.date_utils import format_date_key


class CashflowService:
    """Wires configuration, loan overrides and the engine functions"""

    def __init__(self, reconciler: LoanOverrideReconciler, config: Optional[Settings] = None):
        self.reconciler = reconciler
        self.config = config or default_settings

    # Transactions and overrides

    def load_transactions(self, records: Iterable[Mapping[str, Any]]) -> List[Transaction]:
        """Parse stored records and reapply loan overrides"""
        return self.reconciler.apply_overrides(parse_transactions(records))

    def correct_loan_amount(self, transaction_id: str, amount: float) -> bool:
        return self.reconciler.remember_override(transaction_id, amount)

    def clear_loan_override(self, transaction_id: str) -> None:
        self.reconciler.remove_override(transaction_id)

    def transaction_saved(self, transaction: Transaction) -> None:
        self.reconciler.record_transaction_edit(transaction)

    def transaction_deleted(self, transaction_id: str) -> None:
        self.reconciler.forget_transaction(transaction_id)

    # Ledgers

    def _observe_ledger(self, ledger: Ledger, transaction_count: int, started: float) -> Ledger:
        duration = time.perf_counter() - started
        ledger_build_counter.inc()
        ledger_build_duration_histogram.observe(duration)
        if ledger.extended:
            ledger_range_extended_counter.inc()
        for _, reason in ledger.skipped:
            record_malformed(reason)
        log_ledger_built(
            ledger.requested_start,
            ledger.requested_end,
            ledger.start,
            ledger.end,
            len(ledger),
            transaction_count,
            duration * 1000,
        )
        return ledger

    def ledger(
        self,
        transactions: List[Transaction],
        start: DateLike,
        end: DateLike,
        opening_balance: float,
    ) -> Ledger:
        """Range ledger covering [start, end] and every transaction date"""
        started = time.perf_counter()
        ledger = build_range_ledger(
            transactions,
            start,
            end,
            opening_balance,
            max_range_years=self.config.max_range_years,
        )
        return self._observe_ledger(ledger, len(transactions), started)

    def period_ledger(
        self,
        transactions: List[Transaction],
        initial_balance: float,
        period: str = "month",
        reference: Optional[date] = None,
    ) -> Ledger:
        """Ledger for the month, quarter or year containing reference"""
        started = time.perf_counter()
        ledger = build_period_ledger(
            transactions,
            initial_balance,
            period,
            reference or date.today(),
            max_range_years=self.config.max_range_years,
        )
        return self._observe_ledger(ledger, len(transactions), started)

    # Forecast, insights, summary

    def forecast(
        self,
        transactions: List[Transaction],
        current_balance: float,
        opening_balance: float,
        reference_date: Optional[date] = None,
    ) -> ForecastResult:
        reference_date = reference_date or date.today()
        result = calculate_forecast(
            transactions,
            current_balance,
            opening_balance,
            reference_date=reference_date,
            months_for_average=self.config.forecast_trailing_months,
            weekend_dampening=self.config.forecast_weekend_dampening,
            confidence_floor=self.config.forecast_confidence_floor,
            confidence_ceiling=self.config.forecast_confidence_ceiling,
            seasonal_bounds=(self.config.forecast_seasonal_min, self.config.forecast_seasonal_max),
        )
        forecast_counter.inc()
        log_forecast(format_date_key(reference_date), result.forecast, result.confidence_low, result.confidence_high)
        return result

    def alerts(self, transactions: List[Transaction], now: Optional[date] = None) -> List[Alert]:
        insights = analyze_cashflow(
            transactions,
            window=self.config.insight_window_months,
            now=now,
            weak_month_pct=self.config.weak_month_warning_pct,
            slow_payer_days=self.config.slow_payer_warning_days,
            expense_spike_pct=self.config.expense_spike_warning_pct,
        )
        alerts = generate_alerts(
            insights,
            weak_month_high_pct=self.config.weak_month_high_pct,
            slow_payer_high_days=self.config.slow_payer_high_days,
            expense_spike_high_pct=self.config.expense_spike_high_pct,
        )
        record_alerts(alerts)
        if alerts:
            logging.info("Insight alerts generated", extra={"alert_ids": [alert.id for alert in alerts]})
        return alerts

    def daily_summary(
        self,
        transactions: List[Transaction],
        initial_balance: float,
        today: Optional[date] = None,
    ) -> DailySummary:
        return build_daily_summary(
            transactions,
            initial_balance,
            today=today,
            balance_threshold=self.config.summary_balance_threshold,
            horizon_days=self.config.summary_horizon_days,
            overdue_days=self.config.summary_overdue_days,
            max_range_years=self.config.max_range_years,
        )

    def executive_summary(
        self,
        transactions: List[Transaction],
        initial_balance: float,
        period: str = "month",
        reference: Optional[date] = None,
    ) -> ExecutiveSummary:
        return build_executive_summary(
            transactions,
            initial_balance,
            period=period,
            reference=reference,
            overdue_days=self.config.executive_overdue_days,
            max_range_years=self.config.max_range_years,
        )


def create_service(config: Optional[Settings] = None) -> CashflowService:
    """Create a service with JSON logging and a database-backed override table"""
    config = config or default_settings
    setup_logging(config.log_level)

    reconciler = LoanOverrideReconciler(DatabaseOverrideStore(create_session_factory(config.database_url)))
    return CashflowService(reconciler, config)
