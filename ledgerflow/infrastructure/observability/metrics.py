"""Prometheus metrics for ledger builds, data quality, overrides, forecasts and alerts"""

from prometheus_client import Counter, Histogram

# Ledger metrics
ledger_build_counter = Counter(
    "ledgerflow_ledger_builds_total",
    "Range ledgers built",
)

ledger_range_extended_counter = Counter(
    "ledgerflow_ledger_range_extended_total",
    "Ledgers whose window was widened to cover out-of-range transactions",
)

ledger_build_duration_histogram = Histogram(
    "ledgerflow_ledger_build_seconds",
    "Range ledger build time",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

# Data quality
malformed_record_counter = Counter(
    "ledgerflow_malformed_records_total",
    "Records skipped or coerced because of malformed fields",
    ["reason"],  # unparseable_date | out_of_bounds_date | invalid_record
)

# Loan overrides
override_applied_counter = Counter(
    "ledgerflow_loan_overrides_applied_total",
    "Loan transactions whose amount was replaced by an override",
)

override_pruned_counter = Counter(
    "ledgerflow_loan_overrides_pruned_total",
    "Overrides dropped because their transaction no longer exists",
)

# Forecasts and insights
forecast_counter = Counter(
    "ledgerflow_forecasts_total",
    "Month-end forecasts computed",
)

alert_counter = Counter(
    "ledgerflow_alerts_total",
    "Insight alerts emitted",
    ["kind", "severity"],
)


def record_malformed(reason: str, count: int = 1) -> None:
    """Count records the engine had to skip or coerce"""
    if count > 0:
        malformed_record_counter.labels(reason=reason).inc(count)


def record_alerts(alerts) -> None:
    """Record alert distribution by kind and severity"""
    for alert in alerts:
        alert_counter.labels(kind=alert.kind, severity=alert.severity).inc()
