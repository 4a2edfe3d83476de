"""Data access layer for loan overrides"""

from typing import Callable, Dict, Iterable

from sqlalchemy.orm import Session

from ledgerflow.infrastructure.database.models import LoanOverride


class LoanOverrideRepository:
    """Repository for the loan override table"""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> Dict[str, float]:
        """Fetch the whole table as id -> amount"""
        return {row.transaction_id: row.amount for row in self.db.query(LoanOverride).all()}

    def upsert(self, transaction_id: str, amount: float) -> LoanOverride:
        """Insert or update a single override"""
        row = self.db.get(LoanOverride, transaction_id)
        if row is None:
            row = LoanOverride(transaction_id=transaction_id, amount=amount)
            self.db.add(row)
        else:
            row.amount = amount
        self.db.flush()
        return row

    def delete(self, transaction_ids: Iterable[str]) -> int:
        """Delete overrides by id, returning how many rows went away"""
        ids = list(transaction_ids)
        if not ids:
            return 0
        deleted = (
            self.db.query(LoanOverride)
            .filter(LoanOverride.transaction_id.in_(ids))
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted

    def replace_all(self, overrides: Dict[str, float]) -> None:
        """Replace the table contents in one transaction"""
        self.db.query(LoanOverride).delete(synchronize_session=False)
        self.db.add_all(
            LoanOverride(transaction_id=transaction_id, amount=amount)
            for transaction_id, amount in overrides.items()
        )
        self.db.flush()


class DatabaseOverrideStore:
    """Override store that commits each write through its own session"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_all(self) -> Dict[str, float]:
        with self.session_factory() as db:
            return LoanOverrideRepository(db).get_all()

    def set(self, transaction_id: str, amount: float) -> None:
        with self.session_factory() as db:
            LoanOverrideRepository(db).upsert(transaction_id, amount)
            db.commit()

    def delete(self, transaction_id: str) -> None:
        self.delete_many([transaction_id])

    def delete_many(self, transaction_ids: Iterable[str]) -> None:
        with self.session_factory() as db:
            LoanOverrideRepository(db).delete(transaction_ids)
            db.commit()

    def replace_all(self, overrides: Dict[str, float]) -> None:
        with self.session_factory() as db:
            LoanOverrideRepository(db).replace_all(overrides)
            db.commit()
