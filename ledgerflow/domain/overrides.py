"""Loan override reconciliation

A loan's displayed amount can be corrected without rewriting the stored
transaction: the correction lives in a separate id -> amount table that is
reapplied every time transactions are loaded. The table is the only long-lived
mutable state in the engine, so every read-modify-write goes through one lock.
"""

import logging
import math
import threading
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Protocol

from ledgerflow.domain.models import GROUP_LOAN, Transaction
from ledgerflow.infrastructure.observability.metrics import override_applied_counter, override_pruned_counter


class OverrideStore(Protocol):
    """Persistence for the override table; must support single-key writes"""

    def get_all(self) -> Dict[str, float]: ...

    def set(self, transaction_id: str, amount: float) -> None: ...

    def delete(self, transaction_id: str) -> None: ...

    def delete_many(self, transaction_ids: Iterable[str]) -> None: ...

    def replace_all(self, overrides: Dict[str, float]) -> None: ...


class InMemoryOverrideStore:
    """Process-local override table"""

    def __init__(self, initial: Dict[str, float] | None = None):
        self._data: Dict[str, float] = dict(initial or {})

    def get_all(self) -> Dict[str, float]:
        return dict(self._data)

    def set(self, transaction_id: str, amount: float) -> None:
        self._data[transaction_id] = amount

    def delete(self, transaction_id: str) -> None:
        self._data.pop(transaction_id, None)

    def delete_many(self, transaction_ids: Iterable[str]) -> None:
        for transaction_id in transaction_ids:
            self._data.pop(transaction_id, None)

    def replace_all(self, overrides: Dict[str, float]) -> None:
        self._data = dict(overrides)


def _sanitize_amount(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    return abs(amount) if math.isfinite(amount) else None


class LoanOverrideReconciler:
    """Applies and maintains manual loan amount corrections"""

    def __init__(self, store: OverrideStore):
        self.store = store
        self._lock = threading.RLock()

    def apply_overrides(self, transactions: List[Transaction]) -> List[Transaction]:
        """
        Replace the amount of every loan transaction that has an override.

        Overrides whose transaction id is absent from the list are pruned from
        the store. An empty list prunes nothing and leaves the table intact.
        Returns the very same list object when no amount changes.
        """
        with self._lock:
            overrides = self.store.get_all()
            if not overrides:
                return transactions

            # An empty snapshot cannot tell "nothing loaded yet" from "all deleted"
            if transactions:
                known_ids = {txn.id for txn in transactions}
                stale = [transaction_id for transaction_id in overrides if transaction_id not in known_ids]
                if stale:
                    self.store.delete_many(stale)
                    override_pruned_counter.inc(len(stale))
                    logging.info("Pruned stale loan overrides", extra={"transaction_ids": stale})
                    for transaction_id in stale:
                        del overrides[transaction_id]

        if not overrides:
            return transactions

        applied = 0
        enriched = []
        for txn in transactions:
            amount = overrides.get(txn.id)
            if txn.group != GROUP_LOAN or amount is None or txn.amount == amount:
                enriched.append(txn)
                continue
            enriched.append(replace(txn, amount=amount))
            applied += 1

        if not applied:
            return transactions

        override_applied_counter.inc(applied)
        return enriched

    def remember_override(self, transaction_id: str, amount: float) -> bool:
        """Record a corrected loan amount; non-finite amounts are ignored"""
        sanitized = _sanitize_amount(amount)
        if not transaction_id or sanitized is None:
            logging.warning("Ignoring invalid loan override", extra={"transaction_id": transaction_id, "amount": str(amount)})
            return False
        with self._lock:
            self.store.set(transaction_id, sanitized)
        return True

    def remove_override(self, transaction_id: str) -> None:
        with self._lock:
            self.store.delete(transaction_id)

    def get_overrides(self) -> Dict[str, float]:
        with self._lock:
            return self.store.get_all()

    def replace_overrides(self, raw: Any) -> Dict[str, float]:
        """
        Replace the whole table, e.g. when restoring a backup.

        Blank ids and non-numeric amounts are dropped; amounts are made
        non-negative. Anything that is not a mapping clears the table.
        """
        sanitized: Dict[str, float] = {}
        if isinstance(raw, dict):
            for key, value in raw.items():
                if not isinstance(key, str) or not key.strip():
                    continue
                amount = _sanitize_amount(value)
                if amount is not None:
                    sanitized[key] = amount

        with self._lock:
            self.store.replace_all(sanitized)
        return sanitized

    def record_transaction_edit(self, transaction: Transaction) -> None:
        """
        Keep the table consistent with an edited transaction.

        A loan edit stores its amount as the override. Moving a transaction
        out of the loan group clears its override, since overrides are only
        meaningful for loans.
        """
        if transaction.group == GROUP_LOAN:
            self.remember_override(transaction.id, transaction.amount)
        else:
            self.remove_override(transaction.id)

    def forget_transaction(self, transaction_id: str) -> None:
        """Drop the override of a deleted transaction"""
        self.remove_override(transaction_id)
