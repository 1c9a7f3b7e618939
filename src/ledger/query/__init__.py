"""
Query engine for the ledger: filtering, ordering/pagination and aggregation.

All functions here are pure; they never touch a store.

Quick Start:
    >>> from ledger.query import FilterCriteria, filter_transactions, paginate
    >>>
    >>> criteria = FilterCriteria(type="expense", year=2024, month=1, search="coffee")
    >>> page = paginate(filter_transactions(transactions, criteria), page=1, page_size=10)
    >>> print(page.pagination)
"""
from ledger.query.filters import (
    DateRange,
    FilterCriteria,
    description_matches,
    filter_transactions,
    matches,
)
from ledger.query.pagination import (
    DISPLAY_WINDOW,
    Page,
    display_window,
    paginate,
    sort_by_date_desc,
)
from ledger.query.aggregation import (
    RECENT_LIMIT,
    Aggregation,
    CategoryTotals,
    TypeTotals,
    aggregate,
)

__all__ = [
    "DateRange",
    "FilterCriteria",
    "description_matches",
    "filter_transactions",
    "matches",
    "DISPLAY_WINDOW",
    "Page",
    "display_window",
    "paginate",
    "sort_by_date_desc",
    "RECENT_LIMIT",
    "Aggregation",
    "CategoryTotals",
    "TypeTotals",
    "aggregate",
]
