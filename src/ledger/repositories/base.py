from abc import ABC, abstractmethod
from typing import Any, List, Tuple

from ledger.domain.models import Transaction, TransactionId
from ledger.query.aggregation import RECENT_LIMIT, Aggregation
from ledger.query.filters import DateRange, FilterCriteria

class TransactionRepository(ABC):
    """
    Abstract repository for transaction persistence.

    The repository pattern abstracts the data access, making it easy
    to swap storage backends. Every backend returns the same shapes:
    Transaction objects, (items, total_count) pairs and Aggregation.

    Backend failures surface as StoreError.
    """

    @abstractmethod
    def parse_id(self, raw_id: Any) -> TransactionId:
        """
        Validate an identifier before it reaches the store.

        Args:
            raw_id: Identifier as received from the caller

        Returns:
            Identifier in the backend's native form

        Raises:
            ValidationError: If the identifier is malformed
        """
        pass

    @abstractmethod
    def create(self, transaction: Transaction) -> Transaction:
        """
        Persist a new, already validated transaction.

        Args:
            transaction: Transaction without an id

        Returns:
            Transaction with id, created_at and updated_at populated
        """
        pass

    @abstractmethod
    def get_by_id(self, transaction_id: TransactionId) -> Transaction:
        """
        Retrieve a transaction by ID.

        Raises:
            NotFoundError: If no transaction has this id
        """
        pass

    @abstractmethod
    def update(self, transaction: Transaction) -> Transaction:
        """
        Replace the mutable fields of an existing transaction.

        Args:
            transaction: Transaction with updated values and its id set

        Returns:
            Updated transaction with a refreshed updated_at

        Raises:
            NotFoundError: If transaction doesn't exist
        """
        pass

    @abstractmethod
    def delete(self, transaction_id: TransactionId) -> None:
        """
        Permanently delete a transaction.

        Raises:
            NotFoundError: If transaction doesn't exist
        """
        pass

    @abstractmethod
    def query(
        self,
        criteria: FilterCriteria,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Transaction], int]:
        """
        Retrieve one slice of the matching transactions.

        Args:
            criteria: Filters to apply
            offset: Number of ordered matches to skip
            limit: Maximum number of items to return

        Returns:
            (items ordered by date desc then id desc, total number of matches)
        """
        pass

    @abstractmethod
    def aggregate(
        self,
        date_range: DateRange,
        recent_limit: int = RECENT_LIMIT,
    ) -> Aggregation:
        """
        Summarize the transactions inside a period.

        Backends may push the grouping down or feed their rows to
        ledger.query.aggregate; either way the result has the canonical shape.
        """
        pass
