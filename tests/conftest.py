import pytest
from datetime import datetime
from decimal import Decimal
from typing import Callable, List

from ledger.database.connection import DatabaseConfig, DatabaseManager
from ledger.domain.enums import TransactionType
from ledger.domain.models import Transaction
from ledger.repositories.memory_transaction_repository import InMemoryTransactionRepository
from ledger.repositories.sqlite_transaction_repository import SQLiteTransactionRepository

FIXED_NOW = datetime(2024, 3, 10, 12, 0, 0)

@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW

@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Factory for transactions with sensible defaults"""
    counter = iter(range(1, 10_000))

    def _make(
        amount: str = "10.00",
        type: TransactionType = TransactionType.EXPENSE,
        category: str = "food",
        date: datetime = datetime(2024, 1, 15),
        description: str = "Test transaction",
        id=None,
    ) -> Transaction:
        return Transaction(
            id=id if id is not None else next(counter),
            amount=Decimal(amount),
            description=description,
            category=category,
            type=type,
            date=date,
        )

    return _make

@pytest.fixture
def scenario_transactions(make_transaction) -> List[Transaction]:
    """Salary and two food expenses across January and February 2024"""
    return [
        make_transaction(
            amount="100", type=TransactionType.INCOME, category="salary",
            date=datetime(2024, 1, 15), description="January salary",
        ),
        make_transaction(
            amount="40", category="food",
            date=datetime(2024, 1, 20), description="Coffee shop",
        ),
        make_transaction(
            amount="10", category="food",
            date=datetime(2024, 2, 1), description="Bus fare",
        ),
    ]

@pytest.fixture
def memory_repo() -> InMemoryTransactionRepository:
    return InMemoryTransactionRepository(clock=lambda: FIXED_NOW)

@pytest.fixture
def test_db(tmp_path):
    """
    Create a real test database.

    Use pytest's tmp_path fixture to create a temporary directory.
    """
    config = DatabaseConfig(tmp_path / "test.db")
    db_manager = DatabaseManager(config)
    db_manager.initialize()

    yield db_manager

    db_manager.close()

@pytest.fixture
def sqlite_repo(test_db) -> SQLiteTransactionRepository:
    return SQLiteTransactionRepository(test_db, clock=lambda: FIXED_NOW)
