"""Pydantic schemas for raw transaction records from the persistence/sync layer"""

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ledgerflow.domain.exceptions import InvalidTransactionDataError
from ledgerflow.domain.models import STATUS_COMPLETED, TYPE_EXPENSE, Transaction
from ledgerflow.infrastructure.observability.metrics import record_malformed
from ledgerflow.utils.date_utils import format_date_key, parse_date_key


class TransactionRecord(BaseModel):
    """Stored transaction as exchanged with the sync layer (camelCase or snake_case keys)"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1)
    date: str
    amount: float = 0.0
    type: str = TYPE_EXPENSE
    group: str
    category: str = ""
    description: str = ""
    status: str = STATUS_COMPLETED
    counterparty: Optional[str] = Field(default=None, alias="clientReference")
    is_recurring: bool = Field(default=False, alias="isRecurring")
    is_manual_override: bool = Field(default=False, alias="isManualOverride")
    loan_end_month: Optional[str] = Field(default=None, alias="loanEndMonth")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> str:
        if value is None or isinstance(value, bool):
            raise InvalidTransactionDataError("Transaction id is required")
        return str(value).strip()

    @field_validator("date", mode="before")
    @classmethod
    def _canonical_date(cls, value: Any) -> str:
        return format_date_key(parse_date_key(value))

    @field_validator("amount", mode="before")
    @classmethod
    def _finite_amount(cls, value: Any) -> float:
        try:
            amount = float(value)
        except (TypeError, ValueError):
            return 0.0
        return amount if math.isfinite(amount) else 0.0

    @field_validator("type", "group", "status", mode="before")
    @classmethod
    def _lower_label(cls, value: Any) -> str:
        return str(value or "").strip().lower()

    @field_validator("category", "description", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("is_recurring", "is_manual_override", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return bool(value)

    def to_domain(self) -> Transaction:
        return Transaction(
            id=self.id,
            date=self.date,
            amount=self.amount,
            type=self.type,
            group=self.group,
            category=self.category,
            description=self.description,
            status=self.status or STATUS_COMPLETED,
            counterparty=self.counterparty,
            is_recurring=self.is_recurring,
            is_manual_override=self.is_manual_override,
            loan_end_month=self.loan_end_month,
        )


def parse_transactions(records: Iterable[Mapping[str, Any]]) -> List[Transaction]:
    """
    Convert raw records to domain transactions.

    Garbage amounts become zero and dates are normalized to canonical keys.
    Records without an id, group or readable date are skipped, never raised.
    """
    transactions = []
    skipped = 0
    for raw in records:
        try:
            transactions.append(TransactionRecord.model_validate(raw).to_domain())
        except ValidationError as e:
            skipped += 1
            record_id = raw.get("id") if isinstance(raw, Mapping) else None
            logging.warning(
                "Skipping malformed transaction record",
                extra={"transaction_id": str(record_id), "errors": e.error_count()},
            )

    record_malformed("invalid_record", skipped)
    return transactions
