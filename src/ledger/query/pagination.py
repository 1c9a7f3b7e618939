from dataclasses import dataclass, field
from math import ceil
from typing import Any, Dict, Iterable, List

from ledger.domain.errors import ValidationError
from ledger.domain.models import Transaction

# Rendering cap for listings, independent of the requested page size
DISPLAY_WINDOW = 20


def ordering_key(transaction: Transaction):
    """Date first, then id, so identical queries always paginate the same way"""
    return (transaction.date, transaction.id is not None, transaction.id)


def sort_by_date_desc(transactions: Iterable[Transaction]) -> List[Transaction]:
    """System-wide default ordering: most recent first, ties by id descending"""
    return sorted(transactions, key=ordering_key, reverse=True)


def check_paging(page: Any, page_size: Any) -> None:
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValidationError(f"Page '{page}' must be a positive integer", field="page")

    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise ValidationError(
            f"Page size '{page_size}' must be a positive integer", field="limit"
        )


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


@dataclass
class Page:
    """One slice of an ordered result set"""
    current_page: int
    page_size: int
    total_count: int
    items: List[Transaction] = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return ceil(self.total_count / self.page_size)

    @property
    def pagination(self) -> Dict[str, int]:
        return {
            "current": self.current_page,
            "total": self.total_pages,
            "count": len(self.items),
            "totalTransactions": self.total_count,
        }


def paginate(
    transactions: Iterable[Transaction],
    page: int,
    page_size: int,
) -> Page:
    """
    Order a filtered set and cut out one page.

    Args:
        transactions: Already-filtered transactions, in any order
        page: 1-indexed page number
        page_size: Maximum number of items on the page

    Returns:
        Page whose total_count is the size of the whole set. A page past
        the end is empty rather than an error.
    """
    check_paging(page, page_size)

    ordered = sort_by_date_desc(transactions)
    offset = page_offset(page, page_size)

    return Page(
        current_page=page,
        page_size=page_size,
        total_count=len(ordered),
        items=ordered[offset:offset + page_size],
    )


def display_window(items: List[Transaction], size: int = DISPLAY_WINDOW) -> List[Transaction]:
    return items[:size]
