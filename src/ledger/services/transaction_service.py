import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Generator, Iterable, List, Mapping, Optional

from ledger.config.settings import LedgerSettings
from ledger.domain.errors import StoreError
from ledger.domain.models import Transaction
from ledger.domain.validation import apply_update, build_transaction
from ledger.query.filters import DateRange, FilterCriteria, filter_transactions
from ledger.query.pagination import Page, check_paging, page_offset
from ledger.repositories.base import TransactionRepository
from ledger.services.models import StatsReport, TransactionPage

logger = logging.getLogger(__name__)

GENERIC_STORE_FAILURE = "Transaction store unavailable"

class TransactionService:
    """
    Entry point for every ledger operation.

    Validates input, checks identifiers before they reach the store and
    hides storage failures behind a generic StoreError (the detail is logged).
    """

    def __init__(
        self,
        repository: TransactionRepository,
        settings: Optional[LedgerSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.repository = repository
        self.settings = settings or LedgerSettings()
        self._clock = clock

    def create_transaction(self, fields: Mapping[str, Any]) -> Transaction:
        """
        Validate and store a new transaction.

        Args:
            fields: amount, description, category, type and optionally date

        Returns:
            The stored transaction, with id and timestamps

        Raises:
            ValidationError: If amount <= 0, a required field is missing
                or the category doesn't belong to the type
        """
        transaction = build_transaction(fields, now=self._clock())

        with self._store_operation("create"):
            created = self.repository.create(transaction)

        logger.info("Created %s transaction %s", created.type.value, created.id)
        return created

    def get_transaction(self, raw_id: Any) -> Transaction:
        transaction_id = self.repository.parse_id(raw_id)

        with self._store_operation("read"):
            return self.repository.get_by_id(transaction_id)

    def update_transaction(self, raw_id: Any, fields: Mapping[str, Any]) -> Transaction:
        """
        Apply a partial update.

        The merged record is re-validated in full, so switching the type
        without a matching category is rejected.

        Raises:
            ValidationError: Malformed id or invalid fields
            NotFoundError: If the transaction doesn't exist
        """
        transaction_id = self.repository.parse_id(raw_id)

        with self._store_operation("update"):
            existing = self.repository.get_by_id(transaction_id)
            updated = self.repository.update(apply_update(existing, fields))

        logger.info("Updated transaction %s (%s)", updated.id, ", ".join(sorted(fields)))
        return updated

    def delete_transaction(self, raw_id: Any) -> None:
        """
        Permanently delete a transaction.

        Raises:
            ValidationError: Malformed id
            NotFoundError: If the transaction doesn't exist
        """
        transaction_id = self.repository.parse_id(raw_id)

        with self._store_operation("delete"):
            self.repository.delete(transaction_id)

        logger.info("Deleted transaction %s", transaction_id)

    def list_transactions(
        self,
        type: Optional[str] = None,
        category: Optional[str] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        page: int = 1,
    ) -> TransactionPage:
        """
        Query transactions with optional filters, most recent first.

        Args:
            type: 'income' or 'expense'
            category: Exact category
            month: 1-12, only together with year
            year: 4-digit year
            search: Case-insensitive text contained in the description
            limit: Page size, defaults to the configured page size
            page: 1-indexed page number

        Returns:
            TransactionPage; a page past the end has no items

        Example:
            ### Second page of January 2024 coffee expenses
            result = service.list_transactions(
                type="expense", year=2024, month=1, search="coffee", page=2
            )
        """
        page_size = self.settings.page_size if limit is None else limit
        check_paging(page, page_size)

        criteria = FilterCriteria(
            type=type,
            category=category,
            year=year,
            month=month,
            search=search,
        )

        with self._store_operation("query"):
            items, total_count = self.repository.query(
                criteria,
                offset=page_offset(page, page_size),
                limit=page_size,
            )

        return TransactionPage(
            page=Page(
                current_page=page,
                page_size=page_size,
                total_count=total_count,
                items=items,
            ),
        )

    def get_stats(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> StatsReport:
        """Get the summary for a month, or for a whole year when month is None"""
        if year is None:
            year = self._clock().year

        date_range = DateRange.for_period(year, month)

        with self._store_operation("aggregate"):
            aggregation = self.repository.aggregate(
                date_range,
                recent_limit=self.settings.recent_limit,
            )

        return StatsReport(year=year, month=month, aggregation=aggregation)

    def refine(
        self,
        transactions: Iterable[Transaction],
        criteria: FilterCriteria,
    ) -> List[Transaction]:
        """
        Re-filter an already fetched set in memory.

        Uses the same engine as the store queries, so results agree with
        what list_transactions would return for the same criteria.
        """
        return filter_transactions(transactions, criteria)

    @contextmanager
    def _store_operation(self, action: str) -> Generator[None, None, None]:
        """Log storage failures and re-raise them without internal detail"""
        try:
            yield
        except StoreError as e:
            logger.error("Store failure during %s: %s", action, e)
            raise StoreError(GENERIC_STORE_FAILURE) from None
