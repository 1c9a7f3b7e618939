import logging
import re
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Tuple

from ledger.domain.errors import NotFoundError, ValidationError
from ledger.domain.models import Transaction
from ledger.query.aggregation import RECENT_LIMIT, Aggregation, aggregate
from ledger.query.filters import DateRange, FilterCriteria, filter_transactions
from ledger.query.pagination import sort_by_date_desc
from ledger.repositories.base import TransactionRepository

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


class InMemoryTransactionRepository(TransactionRepository):
    """
    Dict-backed implementation of the TransactionRepository.

    Identifiers are uuid4 hex strings. Reads work on a snapshot, writes
    are serialized by a lock; concurrent updates to one record are
    last-write-wins.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._records: Dict[str, Transaction] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def parse_id(self, raw_id: Any) -> str:
        candidate = str(raw_id).strip().lower() if raw_id is not None else ""
        if not _ID_PATTERN.match(candidate):
            raise ValidationError(f"Invalid transaction id '{raw_id}'", field="id")
        return candidate

    def create(self, transaction: Transaction) -> Transaction:
        now = self._now()
        saved = replace(
            transaction,
            id=uuid.uuid4().hex,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._records[saved.id] = saved

        logger.debug("Created transaction %s", saved.id)
        return replace(saved)

    def get_by_id(self, transaction_id: str) -> Transaction:
        record = self._records.get(transaction_id)
        if record is None:
            raise NotFoundError(f"Transaction with ID {transaction_id} not found")
        return replace(record)

    def update(self, transaction: Transaction) -> Transaction:
        if transaction.id is None:
            raise ValueError("Cannot update transaction without ID")

        with self._lock:
            existing = self._records.get(transaction.id)
            if existing is None:
                raise NotFoundError(f"Transaction with ID {transaction.id} not found")

            updated = replace(
                transaction,
                created_at=existing.created_at,
                updated_at=self._now(),
            )
            self._records[updated.id] = updated

        return replace(updated)

    def delete(self, transaction_id: str) -> None:
        with self._lock:
            if self._records.pop(transaction_id, None) is None:
                raise NotFoundError(f"Transaction with ID {transaction_id} not found")

        logger.debug("Deleted transaction %s", transaction_id)

    def query(
        self,
        criteria: FilterCriteria,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Transaction], int]:
        matching = sort_by_date_desc(filter_transactions(self._snapshot(), criteria))
        return matching[offset:offset + limit], len(matching)

    def aggregate(
        self,
        date_range: DateRange,
        recent_limit: int = RECENT_LIMIT,
    ) -> Aggregation:
        return aggregate(self._snapshot(), date_range, recent_limit=recent_limit)

    def _snapshot(self) -> List[Transaction]:
        with self._lock:
            return [replace(record) for record in self._records.values()]

    def _now(self) -> datetime:
        return self._clock().replace(microsecond=0)
