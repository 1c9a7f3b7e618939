import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from ledger.domain.categories import type_for_category
from ledger.domain.enums import TransactionType
from ledger.domain.errors import ValidationError
from ledger.domain.validation import apply_update, build_transaction, parse_amount
from ledger.query.filters import DateRange
from ledger.query.pagination import sort_by_date_desc

NOW = datetime(2024, 5, 1, 9, 30, 15, 123456)

@pytest.fixture
def payload():
    return {
        "amount": "12.50",
        "description": "  Lunch with team  ",
        "category": "food",
        "type": "expense",
    }

@pytest.mark.unit
class TestBuildTransaction:
    """Test create payload validation"""

    def test_valid_payload_builds_transaction(self, payload):
        # Act
        txn = build_transaction(payload, now=NOW)

        # Assert
        assert txn.amount == Decimal("12.50")
        assert txn.description == "Lunch with team"
        assert txn.category == "food"
        assert txn.type == TransactionType.EXPENSE
        assert txn.id is None

    def test_date_defaults_to_now_without_microseconds(self, payload):
        txn = build_transaction(payload, now=NOW)

        assert txn.date == datetime(2024, 5, 1, 9, 30, 15)

    @pytest.mark.parametrize("raw, expected", [
        ("2024-01-31", datetime(2024, 1, 31)),
        ("2024-01-31T18:45:00", datetime(2024, 1, 31, 18, 45)),
        (date(2024, 2, 29), datetime(2024, 2, 29)),
    ])
    def test_date_accepts_iso_strings_and_dates(self, payload, raw, expected):
        payload["date"] = raw

        txn = build_transaction(payload, now=NOW)

        assert txn.date == expected

    @pytest.mark.parametrize("raw", [
        "2024-01-15T10:00:00+00:00",
        "2024-01-15T10:00:00Z",
        datetime(2024, 1, 15, 10, tzinfo=timezone.utc),
    ])
    def test_offset_dates_become_naive_local_time(self, payload, raw):
        payload["date"] = raw
        expected = datetime(2024, 1, 15, 10, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

        txn = build_transaction(payload, now=NOW)

        assert txn.date.tzinfo is None
        assert txn.date == expected

    def test_offset_date_sorts_with_naive_dates(self, payload):
        payload["date"] = "2024-01-15T10:00:00+02:00"
        aware = build_transaction(payload, now=NOW)
        naive = build_transaction(payload | {"date": "2024-01-20"}, now=NOW)

        assert DateRange.for_period(2024, 1).contains(aware.date)
        assert sort_by_date_desc([aware, naive]) == [naive, aware]

    def test_unparseable_date_rejected(self, payload):
        payload["date"] = "15/01/2024"

        with pytest.raises(ValidationError) as exc_info:
            build_transaction(payload, now=NOW)

        assert exc_info.value.field == "date"

    def test_zero_amount_rejected(self, payload):
        payload["amount"] = 0

        with pytest.raises(ValidationError) as exc_info:
            build_transaction(payload, now=NOW)

        assert exc_info.value.field == "amount"

    @pytest.mark.parametrize("amount", ["-5", "abc", "NaN", "Infinity", True])
    def test_invalid_amounts_rejected(self, payload, amount):
        payload["amount"] = amount

        with pytest.raises(ValidationError):
            build_transaction(payload, now=NOW)

    @pytest.mark.parametrize("missing", ["amount", "description", "category", "type"])
    def test_missing_required_field_rejected(self, payload, missing):
        del payload[missing]

        with pytest.raises(ValidationError) as exc_info:
            build_transaction(payload, now=NOW)

        assert exc_info.value.field == missing

    def test_blank_description_rejected(self, payload):
        payload["description"] = "   "

        with pytest.raises(ValidationError):
            build_transaction(payload, now=NOW)

    def test_description_longer_than_200_rejected(self, payload):
        payload["description"] = "x" * 201

        with pytest.raises(ValidationError) as exc_info:
            build_transaction(payload, now=NOW)

        assert exc_info.value.field == "description"

    def test_description_of_exactly_200_accepted(self, payload):
        payload["description"] = "x" * 200

        txn = build_transaction(payload, now=NOW)

        assert len(txn.description) == 200

    def test_category_from_other_type_rejected(self, payload):
        payload["category"] = "salary"

        with pytest.raises(ValidationError) as exc_info:
            build_transaction(payload, now=NOW)

        assert exc_info.value.field == "category"
        assert "belongs to income transactions" in exc_info.value.message

    def test_unknown_category_rejected(self, payload):
        payload["category"] = "pets"

        with pytest.raises(ValidationError) as exc_info:
            build_transaction(payload, now=NOW)

        assert "is not valid for expense transactions" in exc_info.value.message

    def test_unknown_type_rejected(self, payload):
        payload["type"] = "transfer"

        with pytest.raises(ValidationError) as exc_info:
            build_transaction(payload, now=NOW)

        assert exc_info.value.field == "type"

    def test_read_only_fields_rejected(self, payload):
        payload["id"] = "abc"

        with pytest.raises(ValidationError):
            build_transaction(payload, now=NOW)

    def test_float_amount_keeps_printed_value(self):
        assert parse_amount(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("category, expected", [
        ("salary", TransactionType.INCOME),
        ("groceries", TransactionType.EXPENSE),
        ("pets", None),
    ])
    def test_type_for_category(self, category, expected):
        assert type_for_category(category) == expected


@pytest.mark.unit
class TestApplyUpdate:
    """Test partial update validation"""

    @pytest.fixture
    def existing(self, make_transaction):
        return make_transaction(amount="20", category="food", id=7)

    def test_partial_update_keeps_other_fields(self, existing):
        updated = apply_update(existing, {"amount": "35.10"})

        assert updated.amount == Decimal("35.10")
        assert updated.description == existing.description
        assert updated.category == existing.category
        assert updated.id == 7
        assert existing.amount == Decimal("20")

    def test_type_change_without_category_rejected(self, existing):
        with pytest.raises(ValidationError) as exc_info:
            apply_update(existing, {"type": "income"})

        assert exc_info.value.field == "category"

    def test_type_change_with_compatible_category(self, existing):
        updated = apply_update(existing, {"type": "income", "category": "freelance"})

        assert updated.type == TransactionType.INCOME
        assert updated.category == "freelance"

    def test_offset_date_update_is_stored_naive(self, existing):
        updated = apply_update(existing, {"date": "2024-02-10T08:00:00-05:00"})

        assert updated.date.tzinfo is None
        assert updated.date == datetime(2024, 2, 10, 13, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

    def test_non_positive_amount_rejected(self, existing):
        with pytest.raises(ValidationError):
            apply_update(existing, {"amount": "-1"})

    def test_explicit_none_rejected(self, existing):
        with pytest.raises(ValidationError):
            apply_update(existing, {"description": None})

    def test_empty_update_rejected(self, existing):
        with pytest.raises(ValidationError):
            apply_update(existing, {})

    def test_id_cannot_be_changed(self, existing):
        with pytest.raises(ValidationError):
            apply_update(existing, {"id": 99})
