import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Generator, List, Optional, Tuple

from ledger.database.connection import DatabaseManager
from ledger.domain.enums import TransactionType
from ledger.domain.errors import NotFoundError, StoreError, ValidationError
from ledger.domain.models import Transaction
from ledger.query.aggregation import RECENT_LIMIT, Aggregation, aggregate
from ledger.query.filters import DateRange, FilterCriteria, description_matches
from ledger.repositories.base import TransactionRepository

logger = logging.getLogger(__name__)

SEARCH_FUNCTION = "matches_search"


def _to_text(moment: datetime) -> str:
    """Timestamps are stored as 'YYYY-MM-DD HH:MM:SS' so text order is time order"""
    return moment.isoformat(sep=" ", timespec="seconds")


def _from_text(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def build_where(criteria: FilterCriteria) -> Tuple[str, List[Any]]:
    """
    Translate FilterCriteria into a WHERE clause and its parameters.

    Search goes through the registered matches_search function, which is
    ledger.query.description_matches, so SQL and in-memory filtering agree.
    """
    clause = "WHERE 1=1"
    params: List[Any] = []

    if criteria.type is not None:
        clause += " AND type = ?"
        params.append(criteria.type.value)

    if criteria.category is not None:
        clause += " AND category = ?"
        params.append(criteria.category)

    date_range = criteria.date_range
    if date_range is not None:
        clause += " AND date >= ? AND date <= ?"
        params.extend([_to_text(date_range.start), _to_text(date_range.end)])

    if criteria.search:
        clause += f" AND {SEARCH_FUNCTION}(description, ?)"
        params.append(criteria.search)

    return clause, params


class SQLiteTransactionRepository(TransactionRepository):
    """
    SQLite implementation of the TransactionRepository.

    Handles all database operations for transactions using raw SQL.
    Identifiers are positive integers.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db_manager
        self._clock = clock
        self._search_registered_on: Optional[sqlite3.Connection] = None

    def parse_id(self, raw_id: Any) -> int:
        if isinstance(raw_id, bool):
            raise ValidationError(f"Invalid transaction id '{raw_id}'", field="id")

        if isinstance(raw_id, int):
            transaction_id = raw_id
        else:
            text = str(raw_id).strip() if raw_id is not None else ""
            if not (text.isascii() and text.isdigit()):
                raise ValidationError(f"Invalid transaction id '{raw_id}'", field="id")
            transaction_id = int(text)

        if transaction_id < 1:
            raise ValidationError(f"Invalid transaction id '{raw_id}'", field="id")
        return transaction_id

    def create(self, transaction: Transaction) -> Transaction:
        """Insert a transaction and return it with its new id."""
        now = self._now()

        with self._guard("create transaction"):
            with self.db.transaction() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO transactions (
                        date, description, amount, type, category,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        _to_text(transaction.date),
                        transaction.description,
                        str(transaction.amount), # Store as string for precision
                        transaction.type.value,
                        transaction.category,
                        _to_text(now),
                        _to_text(now),
                    ),
                )
                transaction_id = cursor.lastrowid

        logger.debug("Created transaction %s", transaction_id)
        return self.get_by_id(transaction_id)

    def get_by_id(self, transaction_id: int) -> Transaction:
        with self._guard("read transaction"):
            row = self.db.get_connection().execute(
                "SELECT * FROM transactions WHERE id = ?",
                (transaction_id,)
            ).fetchone()

        if row is None:
            raise NotFoundError(f"Transaction with ID {transaction_id} not found")

        return self._row_to_transaction(row)

    def update(self, transaction: Transaction) -> Transaction:
        """Update an existing transaction."""
        if transaction.id is None:
            raise ValueError("Cannot update transaction without ID")

        with self._guard("update transaction"):
            with self.db.transaction() as conn:
                cursor = conn.execute(
                    """
                    UPDATE transactions
                    SET date = ?, description = ?, amount = ?, type = ?,
                        category = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        _to_text(transaction.date),
                        transaction.description,
                        str(transaction.amount),
                        transaction.type.value,
                        transaction.category,
                        _to_text(self._now()),
                        transaction.id,
                    )
                )
                updated = cursor.rowcount

        if updated == 0:
            raise NotFoundError(f"Transaction with ID {transaction.id} not found")

        return self.get_by_id(transaction.id)

    def delete(self, transaction_id: int) -> None:
        """Delete a transaction by ID."""
        with self._guard("delete transaction"):
            with self.db.transaction() as conn:
                cursor = conn.execute(
                    "DELETE FROM transactions WHERE id = ?",
                    (transaction_id,)
                )
                deleted = cursor.rowcount

        if deleted == 0:
            raise NotFoundError(f"Transaction with ID {transaction_id} not found")

        logger.debug("Deleted transaction %s", transaction_id)

    def query(
        self,
        criteria: FilterCriteria,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Transaction], int]:
        """Retrieve one ordered slice of the matching transactions."""
        where, params = build_where(criteria)

        with self._guard("query transactions"):
            conn = self._query_connection()
            total = conn.execute(
                f"SELECT COUNT(*) FROM transactions {where}", params
            ).fetchone()[0]
            rows = conn.execute(
                f"SELECT * FROM transactions {where} "
                "ORDER BY date DESC, id DESC LIMIT ? OFFSET ?",
                params + [limit, offset],
            ).fetchall()

        return [self._row_to_transaction(row) for row in rows], total

    def aggregate(
        self,
        date_range: DateRange,
        recent_limit: int = RECENT_LIMIT,
    ) -> Aggregation:
        """
        Pull the rows of the period and run the aggregation engine on them.

        SUM() over text amounts would go through floats, so grouping is not
        pushed down to SQLite.
        """
        with self._guard("aggregate transactions"):
            rows = self.db.get_connection().execute(
                "SELECT * FROM transactions WHERE date >= ? AND date <= ?",
                (_to_text(date_range.start), _to_text(date_range.end)),
            ).fetchall()

        return aggregate(
            (self._row_to_transaction(row) for row in rows),
            date_range,
            recent_limit=recent_limit,
        )

    def _query_connection(self) -> sqlite3.Connection:
        """Current connection, with the search function registered on it"""
        conn = self.db.get_connection()
        if self._search_registered_on is not conn:
            conn.create_function(SEARCH_FUNCTION, 2, description_matches, deterministic=True)
            self._search_registered_on = conn
        return conn

    @contextmanager
    def _guard(self, action: str) -> Generator[None, None, None]:
        """Convert driver failures into StoreError"""
        try:
            yield
        except sqlite3.Error as e:
            raise StoreError(f"SQLite failure during {action}: {e}") from e

    def _now(self) -> datetime:
        return self._clock().replace(microsecond=0)

    def _row_to_transaction(self, row: sqlite3.Row) -> Transaction:
        """Convert database row to Transaction object."""
        return Transaction(
            id=row["id"],
            date=_from_text(row["date"]),
            description=row["description"],
            amount=Decimal(row["amount"]),
            type=TransactionType(row["type"]),
            category=row["category"],
            created_at=_from_text(row["created_at"]),
            updated_at=_from_text(row["updated_at"]),
        )
