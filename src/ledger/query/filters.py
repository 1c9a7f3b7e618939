"""
Filter & search engine.

FilterCriteria is the single description of "which transactions": the
in-memory pass below and the SQLite query translation both read it, and
both use description_matches for free-text search.
"""
from calendar import monthrange
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional

from ledger.domain.categories import ALL_CATEGORIES
from ledger.domain.enums import TransactionType
from ledger.domain.errors import ValidationError
from ledger.domain.models import Transaction
from ledger.domain.validation import parse_type

MIN_YEAR = 1000
MAX_YEAR = 9999


@dataclass(frozen=True)
class DateRange:
    """Inclusive [start, end] interval of effective dates"""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start > self.end:
            raise ValidationError(
                f"Date range start {self.start} is after end {self.end}",
                field="date",
            )

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    @classmethod
    def for_period(cls, year: int, month: Optional[int] = None) -> "DateRange":
        """
        Build the range covering a calendar month, or a whole year.

        Month ranges run from day 1 00:00:00 to 23:59:59 on the month's
        actual last day (leap years included).

        Example:
            DateRange.for_period(2024, 2)
            # 2024-02-01 00:00:00 .. 2024-02-29 23:59:59
        """
        check_year(year)
        if month is None:
            return cls(
                start=datetime(year, 1, 1),
                end=datetime(year, 12, 31, 23, 59, 59),
            )

        check_month(month)
        _, last_day = monthrange(year, month)
        return cls(
            start=datetime(year, month, 1),
            end=datetime(year, month, last_day, 23, 59, 59),
        )

    @staticmethod
    def label(year: int, month: Optional[int] = None) -> str:
        """Period label: 'M/YYYY' for months, 'YYYY' for years"""
        return f"{month}/{year}" if month else str(year)


def check_year(year: Any) -> int:
    if isinstance(year, bool) or not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"Year '{year}' must be a 4-digit number", field="year")
    return year


def check_month(month: Any) -> int:
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise ValidationError(f"Month '{month}' must be between 1 and 12", field="month")
    return month


@dataclass(frozen=True)
class FilterCriteria:
    """
    Optional constraints combined with logical AND.

    A month is only meaningful inside a year, so month without year is
    rejected rather than guessed.
    """
    type: Optional[TransactionType] = None
    category: Optional[str] = None
    year: Optional[int] = None
    month: Optional[int] = None
    search: Optional[str] = None

    def __post_init__(self):
        # frozen dataclass: normalised values go through object.__setattr__
        if self.type is not None:
            object.__setattr__(self, "type", parse_type(self.type))

        if self.category is not None:
            if self.category not in ALL_CATEGORIES:
                raise ValidationError(
                    f"Unknown category '{self.category}'", field="category"
                )

        if self.year is not None:
            check_year(self.year)

        if self.month is not None:
            check_month(self.month)
            if self.year is None:
                raise ValidationError(
                    "A month filter requires a year", field="month"
                )

        if self.search is not None:
            search = self.search.strip()
            object.__setattr__(self, "search", search or None)

    @property
    def date_range(self) -> Optional[DateRange]:
        if self.year is None:
            return None
        return DateRange.for_period(self.year, self.month)

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.type, self.category, self.year, self.month, self.search)
        )


def description_matches(description: Optional[str], search: Optional[str]) -> bool:
    """Case-insensitive substring containment; an empty search matches everything"""
    if not search:
        return True
    if description is None:
        return False
    return search.casefold() in description.casefold()


def matches(transaction: Transaction, criteria: FilterCriteria) -> bool:
    if criteria.type is not None and transaction.type != criteria.type:
        return False

    if criteria.category is not None and transaction.category != criteria.category:
        return False

    date_range = criteria.date_range
    if date_range is not None and not date_range.contains(transaction.date):
        return False

    return description_matches(transaction.description, criteria.search)


def filter_transactions(
    transactions: Iterable[Transaction],
    criteria: FilterCriteria,
) -> List[Transaction]:
    """
    Return the transactions matching every supplied criterion.

    Pure and order-preserving: the result keeps the input's relative order,
    and filtering a result again with the same criteria changes nothing.
    """
    return [txn for txn in transactions if matches(txn, criteria)]
