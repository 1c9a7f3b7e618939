"""
Fixed category catalogue.

Every category belongs to exactly one transaction type, so the valid set for
a record depends on its type.
"""
from typing import Dict, Optional, Tuple

from ledger.domain.enums import TransactionType

INCOME_CATEGORIES: Tuple[str, ...] = (
    "salary",
    "freelance",
    "investments",
    "sales",
    "other-income",
)

EXPENSE_CATEGORIES: Tuple[str, ...] = (
    "food",
    "transport",
    "housing",
    "health",
    "entertainment",
    "education",
    "clothing",
    "utilities",
    "taxes",
    "groceries",
    "other-expense",
)

CATEGORIES_BY_TYPE: Dict[TransactionType, Tuple[str, ...]] = {
    TransactionType.INCOME: INCOME_CATEGORIES,
    TransactionType.EXPENSE: EXPENSE_CATEGORIES,
}

ALL_CATEGORIES: Tuple[str, ...] = INCOME_CATEGORIES + EXPENSE_CATEGORIES

CATEGORY_LABELS: Dict[str, str] = {
    "salary": "Salary",
    "freelance": "Freelance",
    "investments": "Investments",
    "sales": "Sales",
    "other-income": "Other income",
    "food": "Food",
    "transport": "Transport",
    "housing": "Housing/Rent",
    "health": "Health",
    "entertainment": "Entertainment",
    "education": "Education",
    "clothing": "Clothing",
    "utilities": "Utilities",
    "taxes": "Taxes",
    "groceries": "Groceries",
    "other-expense": "Other expenses",
}


def categories_for(transaction_type: TransactionType) -> Tuple[str, ...]:
    """Categories permitted for the given type"""
    return CATEGORIES_BY_TYPE[transaction_type]


def is_valid_category(transaction_type: TransactionType, category: str) -> bool:
    return category in CATEGORIES_BY_TYPE[transaction_type]


def type_for_category(category: str) -> Optional[TransactionType]:
    """Return the type a category belongs to, or None if it is unknown"""
    for transaction_type, categories in CATEGORIES_BY_TYPE.items():
        if category in categories:
            return transaction_type
    return None


def label_for(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)
