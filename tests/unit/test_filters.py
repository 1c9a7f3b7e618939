import pytest
from datetime import datetime

from ledger.domain.enums import TransactionType
from ledger.domain.errors import ValidationError
from ledger.query.filters import (
    DateRange,
    FilterCriteria,
    description_matches,
    filter_transactions,
)

@pytest.mark.unit
class TestDateRange:
    """Test period boundaries"""

    def test_month_range_covers_whole_month(self):
        date_range = DateRange.for_period(2024, 1)

        assert date_range.start == datetime(2024, 1, 1, 0, 0, 0)
        assert date_range.end == datetime(2024, 1, 31, 23, 59, 59)

    def test_february_leap_year(self):
        date_range = DateRange.for_period(2024, 2)

        assert date_range.end == datetime(2024, 2, 29, 23, 59, 59)

    def test_february_non_leap_year(self):
        date_range = DateRange.for_period(2023, 2)

        assert date_range.end == datetime(2023, 2, 28, 23, 59, 59)

    def test_year_range(self):
        date_range = DateRange.for_period(2024)

        assert date_range.start == datetime(2024, 1, 1)
        assert date_range.end == datetime(2024, 12, 31, 23, 59, 59)

    def test_bounds_are_inclusive(self):
        date_range = DateRange.for_period(2024, 4)

        assert date_range.contains(datetime(2024, 4, 1, 0, 0, 0))
        assert date_range.contains(datetime(2024, 4, 30, 23, 59, 59))
        assert not date_range.contains(datetime(2024, 5, 1, 0, 0, 0))
        assert not date_range.contains(datetime(2024, 3, 31, 23, 59, 59))

    def test_labels(self):
        assert DateRange.label(2024, 1) == "1/2024"
        assert DateRange.label(2024) == "2024"

    @pytest.mark.parametrize("year, month", [(2024, 13), (2024, 0), (24, 1), (20245, None)])
    def test_invalid_period_rejected(self, year, month):
        with pytest.raises(ValidationError):
            DateRange.for_period(year, month)


@pytest.mark.unit
class TestFilterCriteria:
    """Test criteria normalisation"""

    def test_month_without_year_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            FilterCriteria(month=3)

        assert exc_info.value.field == "month"

    def test_type_string_normalised(self):
        criteria = FilterCriteria(type="income")

        assert criteria.type == TransactionType.INCOME

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError):
            FilterCriteria(category="yachts")

    def test_blank_search_means_no_constraint(self):
        criteria = FilterCriteria(search="   ")

        assert criteria.search is None
        assert criteria.is_empty

    def test_date_range_only_with_year(self):
        assert FilterCriteria().date_range is None
        assert FilterCriteria(year=2024, month=6).date_range == DateRange.for_period(2024, 6)


@pytest.mark.unit
class TestFilterTransactions:
    """Test the filter & search engine"""

    def test_no_criteria_returns_everything_in_order(self, scenario_transactions):
        result = filter_transactions(scenario_transactions, FilterCriteria())

        assert result == scenario_transactions

    def test_search_is_case_insensitive_substring(self, make_transaction):
        transactions = [
            make_transaction(description="Coffee shop"),
            make_transaction(description="Bus fare"),
            make_transaction(description="COFFEE beans"),
        ]

        result = filter_transactions(transactions, FilterCriteria(search="coffee"))

        assert [t.description for t in result] == ["Coffee shop", "COFFEE beans"]

    def test_search_matches_inside_words(self, make_transaction):
        transactions = [make_transaction(description="Decaffeinated")]

        result = filter_transactions(transactions, FilterCriteria(search="caff"))

        assert len(result) == 1

    def test_criteria_are_combined_with_and(self, scenario_transactions):
        criteria = FilterCriteria(type="expense", year=2024, month=1)

        result = filter_transactions(scenario_transactions, criteria)

        assert [t.description for t in result] == ["Coffee shop"]

    def test_year_only_covers_full_year(self, scenario_transactions, make_transaction):
        transactions = scenario_transactions + [
            make_transaction(date=datetime(2023, 12, 31, 23, 59, 59)),
        ]

        result = filter_transactions(transactions, FilterCriteria(year=2024))

        assert result == scenario_transactions

    def test_category_filter(self, scenario_transactions):
        result = filter_transactions(scenario_transactions, FilterCriteria(category="salary"))

        assert len(result) == 1
        assert result[0].type == TransactionType.INCOME

    def test_filtering_preserves_input_order(self, scenario_transactions):
        reversed_input = list(reversed(scenario_transactions))

        result = filter_transactions(reversed_input, FilterCriteria(category="food"))

        assert [t.description for t in result] == ["Bus fare", "Coffee shop"]

    @pytest.mark.parametrize("criteria", [
        FilterCriteria(type="expense"),
        FilterCriteria(year=2024, month=1),
        FilterCriteria(search="o"),
        FilterCriteria(type="income", category="salary", year=2024),
    ])
    def test_filter_is_idempotent(self, scenario_transactions, criteria):
        once = filter_transactions(scenario_transactions, criteria)
        twice = filter_transactions(once, criteria)

        assert twice == once

    def test_description_matches_handles_empty_search(self):
        assert description_matches("anything", None)
        assert description_matches("anything", "")
        assert not description_matches(None, "x")
