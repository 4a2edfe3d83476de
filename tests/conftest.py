"""Pytest fixtures for testing"""

import itertools
from datetime import date
from typing import Callable

import pytest
from sqlalchemy.orm import sessionmaker

from ledgerflow.config import Settings
from ledgerflow.domain.models import Transaction
from ledgerflow.domain.overrides import InMemoryOverrideStore, LoanOverrideReconciler
from ledgerflow.infrastructure.database.repositories import DatabaseOverrideStore
from ledgerflow.infrastructure.database.session import create_session_factory
from ledgerflow.service import CashflowService

# In-memory database shared through a single connection
TEST_DATABASE_URL = "sqlite://"

INCOME_GROUPS = ("fee", "other_income")


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Factory for transactions with sensible defaults"""
    counter = itertools.count(1)

    def factory(
        day,
        amount: float,
        group: str = "fee",
        status: str = "completed",
        **kwargs,
    ) -> Transaction:
        kwargs.setdefault("id", f"tx_{next(counter)}")
        kwargs.setdefault("type", "income" if group in INCOME_GROUPS else "expense")
        return Transaction(
            date=day if isinstance(day, str) else day.isoformat(),
            amount=amount,
            group=group,
            status=status,
            **kwargs,
        )

    return factory


@pytest.fixture
def session_factory() -> sessionmaker:
    """Fresh in-memory override table per test"""
    return create_session_factory(TEST_DATABASE_URL)


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url=TEST_DATABASE_URL, _env_file=None)


@pytest.fixture
def service(settings: Settings) -> CashflowService:
    """Service with a process-local override table"""
    return CashflowService(LoanOverrideReconciler(InMemoryOverrideStore()), settings)


@pytest.fixture
def db_service(settings: Settings, session_factory: sessionmaker) -> CashflowService:
    """Service with a database-backed override table"""
    return CashflowService(LoanOverrideReconciler(DatabaseOverrideStore(session_factory)), settings)


@pytest.fixture
def monthly_history(make_transaction) -> list[Transaction]:
    """Six months of steady fees and rent ending May 2025"""
    transactions = []
    for month in range(12, 18):
        year, month_index = 2024 + (month - 1) // 12, (month - 1) % 12 + 1
        transactions.append(make_transaction(date(year, month_index, 5), 20_000, description="Retainer"))
        transactions.append(
            make_transaction(date(year, month_index, 1), 5_000, group="operational", description="Office rent")
        )
    return transactions
