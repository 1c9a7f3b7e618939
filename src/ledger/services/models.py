"""
Service layer models - DTOs for service operations.

These models represent the results of service operations, not domain
entities. Their to_dict() methods produce the shapes API consumers expect.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ledger.domain.models import Transaction
from ledger.query.aggregation import Aggregation
from ledger.query.filters import DateRange
from ledger.query.pagination import Page

@dataclass
class TransactionPage:
    """One page of a filtered transaction listing"""
    page: Page

    @property
    def items(self) -> List[Transaction]:
        return self.page.items

    @property
    def total_count(self) -> int:
        return self.page.total_count

    @property
    def total_pages(self) -> int:
        return self.page.total_pages

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [txn.to_dict() for txn in self.page.items],
            "pagination": self.page.pagination,
        }

@dataclass
class StatsReport:
    """
    Financial summary for a month or a whole year.

    Wraps the canonical Aggregation and adds the period label.
    """
    year: int
    month: Optional[int]
    aggregation: Aggregation

    @property
    def period(self) -> str:
        return DateRange.label(self.year, self.month)

    @property
    def total_income(self) -> Decimal:
        return self.aggregation.income.total

    @property
    def total_expense(self) -> Decimal:
        return self.aggregation.expense.total

    @property
    def balance(self) -> Decimal:
        return self.aggregation.balance

    @property
    def total_count(self) -> int:
        return self.aggregation.total_count

    @property
    def summary(self) -> Dict[str, Any]:
        return {
            "totalIncome": self.total_income,
            "totalExpense": self.total_expense,
            "balance": self.balance,
            "totalCount": self.total_count,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "summary": self.summary,
            "byType": {
                transaction_type.value: totals.to_dict()
                for transaction_type, totals in self.aggregation.totals_by_type.items()
            },
            "byCategory": [group.to_dict() for group in self.aggregation.by_category],
            "recentTransactions": [txn.to_dict() for txn in self.aggregation.recent],
        }
