"""
Input validation for transaction create and update payloads.

Payloads are plain mappings (as they arrive from a CLI, a form or a JSON
body). Every rule failure raises ValidationError naming the offending field;
nothing is coerced into a "close enough" value.
"""
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from ledger.domain.categories import categories_for, is_valid_category, type_for_category
from ledger.domain.enums import TransactionType
from ledger.domain.errors import ValidationError
from ledger.domain.models import Transaction

MAX_DESCRIPTION_LENGTH = 200

REQUIRED_FIELDS = ("amount", "description", "category", "type")
MUTABLE_FIELDS = REQUIRED_FIELDS + ("date",)


def parse_amount(value: Any) -> Decimal:
    """
    Convert an incoming amount to a strictly positive Decimal.

    Raises:
        ValidationError: If the value is not numeric, not finite, or <= 0
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError("Amount must be a number", field="amount")

    try:
        # str() first so floats keep their printed value (0.1 -> Decimal("0.1"))
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Amount '{value}' is not a valid number", field="amount")

    if not amount.is_finite():
        raise ValidationError("Amount must be a finite number", field="amount")

    if amount <= 0:
        raise ValidationError("Amount must be greater than 0", field="amount")

    return amount


def parse_type(value: Any) -> TransactionType:
    if isinstance(value, TransactionType):
        return value

    try:
        return TransactionType(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(t.value for t in TransactionType)
        raise ValidationError(
            f"Type '{value}' is invalid. Expected one of: {allowed}",
            field="type",
        )


def parse_description(value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError("Description must be text", field="description")

    description = value.strip()
    if not description:
        raise ValidationError("Description is required", field="description")

    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters",
            field="description",
        )

    return description


def parse_date(value: Any) -> datetime:
    """
    Accept a datetime, a date (midnight) or an ISO-8601 string.

    Dates are kept naive, in local time, at second precision so period
    boundaries (23:59:59 inclusive) are exact. Values carrying a UTC offset
    are converted to local time first.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Date '{value}' is not a valid ISO date", field="date")
    else:
        raise ValidationError("Date must be a date, datetime or ISO string", field="date")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)

    return parsed.replace(microsecond=0)


def check_category(transaction_type: TransactionType, category: Any) -> str:
    if not isinstance(category, str) or not category.strip():
        raise ValidationError("Category is required", field="category")

    category = category.strip()
    if not is_valid_category(transaction_type, category):
        allowed = ", ".join(categories_for(transaction_type))
        owner = type_for_category(category)
        if owner is not None:
            problem = f"Category '{category}' belongs to {owner.value} transactions"
        else:
            problem = f"Category '{category}' is not valid for {transaction_type.value} transactions"
        raise ValidationError(
            f"{problem}. Expected one of: {allowed}",
            field="category",
        )
    return category


def _reject_unknown_fields(fields: Mapping[str, Any]) -> None:
    unknown = sorted(set(fields) - set(MUTABLE_FIELDS))
    if unknown:
        raise ValidationError(
            f"Unknown or read-only field(s): {', '.join(unknown)}",
            field=unknown[0],
        )


def build_transaction(
    fields: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> Transaction:
    """
    Validate a create payload and build an unsaved Transaction.

    Args:
        fields: amount, description, category, type and optionally date
        now: Used as the effective date when none is given

    Returns:
        Transaction without id or bookkeeping timestamps

    Raises:
        ValidationError: On the first rule the payload breaks
    """
    _reject_unknown_fields(fields)

    for name in REQUIRED_FIELDS:
        value = fields.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"Field '{name}' is required", field=name)

    transaction_type = parse_type(fields["type"])
    raw_date = fields.get("date")

    return Transaction(
        amount=parse_amount(fields["amount"]),
        description=parse_description(fields["description"]),
        category=check_category(transaction_type, fields["category"]),
        type=transaction_type,
        date=parse_date(raw_date if raw_date is not None else (now or datetime.now())),
    )


def apply_update(existing: Transaction, fields: Mapping[str, Any]) -> Transaction:
    """
    Merge a partial update into an existing record and re-validate it.

    The category is always re-checked against the resulting type, so a type
    change without a compatible category is rejected.

    Returns:
        A new Transaction; the existing one is left untouched
    """
    _reject_unknown_fields(fields)

    if not fields:
        raise ValidationError("No fields to update")

    for name, value in fields.items():
        if value is None:
            raise ValidationError(f"Field '{name}' cannot be empty", field=name)

    changes = {}
    if "amount" in fields:
        changes["amount"] = parse_amount(fields["amount"])
    if "description" in fields:
        changes["description"] = parse_description(fields["description"])
    if "type" in fields:
        changes["type"] = parse_type(fields["type"])
    if "date" in fields:
        changes["date"] = parse_date(fields["date"])

    transaction_type = changes.get("type", existing.type)
    changes["category"] = check_category(
        transaction_type,
        fields.get("category", existing.category),
    )

    return replace(existing, **changes)
