"""
Aggregation engine.

Turns a set of transactions plus a period into the canonical summary shape.
Store adapters either feed it rows or reproduce this exact shape; backend
specific grouping formats never leak past the adapter.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Tuple

from ledger.domain.enums import TransactionType
from ledger.domain.models import Transaction
from ledger.query.filters import DateRange
from ledger.query.pagination import sort_by_date_desc

RECENT_LIMIT = 5


@dataclass
class TypeTotals:
    total: Decimal = Decimal("0")
    count: int = 0

    @property
    def avg_amount(self) -> Decimal:
        if self.count == 0:
            return Decimal("0")
        return self.total / self.count

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "count": self.count, "avgAmount": self.avg_amount}


@dataclass
class CategoryTotals:
    type: TransactionType
    category: str
    total: Decimal = Decimal("0")
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "category": self.category,
            "total": self.total,
            "count": self.count,
        }


@dataclass
class Aggregation:
    """
    Period summary.

    totals_by_type always holds an entry for every TransactionType, even
    when the period has no records of that type.
    """
    date_range: DateRange
    totals_by_type: Dict[TransactionType, TypeTotals] = field(default_factory=dict)
    by_category: List[CategoryTotals] = field(default_factory=list)
    recent: List[Transaction] = field(default_factory=list)

    @property
    def income(self) -> TypeTotals:
        return self.totals_by_type[TransactionType.INCOME]

    @property
    def expense(self) -> TypeTotals:
        return self.totals_by_type[TransactionType.EXPENSE]

    @property
    def balance(self) -> Decimal:
        """Income minus expense; negative when spending exceeds income"""
        return self.income.total - self.expense.total

    @property
    def total_count(self) -> int:
        return sum(totals.count for totals in self.totals_by_type.values())


def _category_order(group: CategoryTotals) -> Tuple[Decimal, str, str]:
    return (-group.total, group.type.value, group.category)


def aggregate(
    transactions: Iterable[Transaction],
    date_range: DateRange,
    recent_limit: int = RECENT_LIMIT,
) -> Aggregation:
    """
    Summarize the transactions whose date falls inside date_range.

    Args:
        transactions: Candidate transactions; anything outside the range is ignored
        date_range: Inclusive period bounds
        recent_limit: How many of the most recent in-range records to keep

    Returns:
        Aggregation with per-type totals, per (type, category) totals sorted
        by total descending (ties by type then category name), and the most
        recent records.
    """
    in_range = [txn for txn in transactions if date_range.contains(txn.date)]

    totals_by_type = {transaction_type: TypeTotals() for transaction_type in TransactionType}
    groups: Dict[Tuple[TransactionType, str], CategoryTotals] = {}

    for txn in in_range:
        type_totals = totals_by_type[txn.type]
        type_totals.total += txn.amount
        type_totals.count += 1

        group = groups.setdefault(
            (txn.type, txn.category),
            CategoryTotals(type=txn.type, category=txn.category),
        )
        group.total += txn.amount
        group.count += 1

    return Aggregation(
        date_range=date_range,
        totals_by_type=totals_by_type,
        by_category=sorted(groups.values(), key=_category_order),
        recent=sort_by_date_desc(in_range)[:recent_limit],
    )
