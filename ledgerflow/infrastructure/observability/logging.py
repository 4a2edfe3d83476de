"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from ledgerflow.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_ledger_built(
    requested_start: str,
    requested_end: str,
    start: str,
    end: str,
    row_count: int,
    transaction_count: int,
    duration_ms: float,
) -> None:
    """Log structured ledger build outcome"""
    logging.info(
        "Ledger built",
        extra={
            "step": "ledger_built",
            "requested_start": requested_start,
            "requested_end": requested_end,
            "effective_start": start,
            "effective_end": end,
            "extended": (start, end) != (requested_start, requested_end),
            "row_count": row_count,
            "transaction_count": transaction_count,
            "duration_ms": duration_ms,
        },
    )


def log_forecast(reference_date: str, forecast: float, confidence_low: float, confidence_high: float) -> None:
    """Log structured forecast outcome for later comparison with actuals"""
    logging.info(
        "Forecast computed",
        extra={
            "step": "forecast_complete",
            "reference_date": reference_date,
            "forecast": round(forecast, 2),
            "confidence_low": round(confidence_low, 2),
            "confidence_high": round(confidence_high, 2),
        },
    )
