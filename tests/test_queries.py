"""
Tests for the filter, sort and aggregation engines.
"""

import pytest
from collections import Counter
from datetime import date
from decimal import Decimal

from expense_tracker.models.expense import FilterCriteria, SortKey, SortOrder
from expense_tracker.queries import (
    distinct_categories,
    filter_expenses,
    format_amount,
    format_percentage,
    matches_criteria,
    sort_expenses,
    summarize_expenses,
)


class TestFilterEngine:
    """Tests for filter_expenses / matches_criteria."""

    def test_no_criteria_returns_everything_in_order(self, scenario_expenses):
        """Test empty criteria keep content and order."""
        assert filter_expenses(scenario_expenses, FilterCriteria()) == scenario_expenses
        assert filter_expenses(scenario_expenses) == scenario_expenses

    def test_filter_by_category(self, scenario_expenses):
        """Test exact category match."""
        result = filter_expenses(scenario_expenses, FilterCriteria(category="Food"))
        assert [e.id for e in result] == [1, 2]

    def test_category_match_is_case_sensitive(self, scenario_expenses):
        """Test category is not normalized."""
        assert filter_expenses(scenario_expenses, FilterCriteria(category="food")) == []

    def test_text_match_is_case_insensitive_substring(self, make):
        """Test description search."""
        expenses = [
            make(1, description="Coffee at Blue Tokai"),
            make(2, description="Bus to office"),
            make(3, description=""),
        ]
        result = filter_expenses(expenses, FilterCriteria(text="blue"))
        assert [e.id for e in result] == [1]

    def test_date_bounds_are_inclusive(self, make):
        """Test from/to include their own days."""
        expenses = [
            make(1, on="2024-01-31"),
            make(2, on="2024-02-01"),
            make(3, on="2024-02-29"),
            make(4, on="2024-03-01"),
        ]
        criteria = FilterCriteria(date_from="2024-02-01", date_to="2024-02-29")
        assert [e.id for e in filter_expenses(expenses, criteria)] == [2, 3]

    def test_current_month_bounds_behave_like_explicit_dates(self, make):
        """Test the default month range is just another date pair."""
        expenses = [make(1, on="2024-02-01"), make(2, on="2024-02-29"), make(3, on="2024-03-01")]
        month = FilterCriteria.current_month(date(2024, 2, 10))
        explicit = FilterCriteria(date_from=date(2024, 2, 1), date_to=date(2024, 2, 29))
        assert filter_expenses(expenses, month) == filter_expenses(expenses, explicit)

    def test_all_predicates_must_hold(self, make):
        """Test predicates combine with AND."""
        expenses = [
            make(1, category="Food", description="lunch", on="2024-01-05"),
            make(2, category="Food", description="lunch", on="2024-02-05"),
            make(3, category="Transit", description="lunch", on="2024-01-05"),
        ]
        criteria = FilterCriteria(
            text="LUNCH", category="Food", date_from="2024-01-01", date_to="2024-01-31",
        )
        result = filter_expenses(expenses, criteria)
        assert [e.id for e in result] == [1]
        for expense in result:
            assert matches_criteria(expense, criteria)

    def test_accepts_mapping_criteria(self, scenario_expenses):
        """Test criteria given as a plain dict."""
        result = filter_expenses(scenario_expenses, {"category": "Transit", "date_from": ""})
        assert [e.id for e in result] == [3]

    def test_empty_input(self):
        """Test an empty collection gives an empty list."""
        assert filter_expenses([], FilterCriteria(text="x")) == []

    def test_result_is_subset_and_input_untouched(self, scenario_expenses):
        """Test filtering never modifies its input."""
        before = list(scenario_expenses)
        result = filter_expenses(scenario_expenses, FilterCriteria(text="bus"))
        assert all(e in scenario_expenses for e in result)
        assert scenario_expenses == before

    def test_distinct_categories_first_seen(self, scenario_expenses):
        """Test categories listed in first-seen order."""
        assert distinct_categories(scenario_expenses) == ["Food", "Transit"]


class TestSortEngine:
    """Tests for sort_expenses."""

    def test_scenario_food_by_date_ascending(self, scenario_expenses):
        """Test the Food subset sorted by date ascending."""
        food = filter_expenses(scenario_expenses, FilterCriteria(category="Food"))
        ordered = sort_expenses(food, SortKey.DATE, SortOrder.ASC)
        assert [e.amount for e in ordered] == [Decimal("100"), Decimal("50")]

    def test_sort_by_amount_numeric(self, make):
        """Test amounts compare as numbers, not strings."""
        expenses = [make(1, "9"), make(2, "100"), make(3, "25.5")]
        ordered = sort_expenses(expenses, "amount", "asc")
        assert [e.id for e in ordered] == [1, 3, 2]

    def test_desc_is_reverse_of_asc_without_ties(self, make):
        """Test descending reverses ascending for distinct keys."""
        expenses = [make(1, "9", on="2024-01-03"), make(2, "100", on="2024-01-01"), make(3, "25", on="2024-01-02")]
        for key in (SortKey.AMOUNT, SortKey.DATE):
            asc = sort_expenses(expenses, key, SortOrder.ASC)
            desc = sort_expenses(expenses, key, SortOrder.DESC)
            assert desc == list(reversed(asc))

    def test_sort_by_category_ignores_case(self, make):
        """Test category order is not plain code-point order."""
        expenses = [make(1, category="Transit"), make(2, category="groceries"), make(3, category="Food")]
        ordered = sort_expenses(expenses, SortKey.CATEGORY, SortOrder.ASC)
        assert [e.category for e in ordered] == ["Food", "groceries", "Transit"]

    def test_sort_is_stable(self, make):
        """Test equal keys keep their input order."""
        expenses = [make(1, "5"), make(2, "5"), make(3, "1")]
        ordered = sort_expenses(expenses, SortKey.AMOUNT, SortOrder.ASC)
        assert [e.id for e in ordered] == [3, 1, 2]

    def test_sort_is_permutation_and_input_untouched(self, scenario_expenses):
        """Test the result holds the same records and the input is unchanged."""
        before = list(scenario_expenses)
        for key in SortKey:
            for order in SortOrder:
                result = sort_expenses(scenario_expenses, key, order)
                assert Counter(e.id for e in result) == Counter(e.id for e in before)
                assert result is not scenario_expenses
        assert scenario_expenses == before

    def test_no_sort_key_keeps_order(self, scenario_expenses):
        """Test sort_by=None returns a copy in input order."""
        result = sort_expenses(scenario_expenses, None, SortOrder.DESC)
        assert result == scenario_expenses
        assert result is not scenario_expenses

    def test_unknown_sort_key(self, scenario_expenses):
        """Test an unknown key is rejected."""
        with pytest.raises(ValueError):
            sort_expenses(scenario_expenses, "vendor")


class TestAggregationEngine:
    """Tests for summarize_expenses."""

    def test_scenario_totals(self, scenario_expenses):
        """Test total 175, Food 150 (~85.7%), Transit 25 (~14.3%)."""
        summary = summarize_expenses(scenario_expenses)
        assert summary.total == Decimal("175")
        assert summary.count == 3
        assert summary.by_category["Food"].subtotal == Decimal("150")
        assert summary.by_category["Food"].percentage == pytest.approx(85.714, abs=0.01)
        assert summary.by_category["Transit"].subtotal == Decimal("25")
        assert summary.by_category["Transit"].percentage == pytest.approx(14.286, abs=0.01)

    def test_subtotals_sum_to_total(self, make):
        """Test the breakdown adds up exactly."""
        expenses = [make(1, "0.10", "A"), make(2, "0.20", "B"), make(3, "0.30", "A")]
        summary = summarize_expenses(expenses)
        assert sum(b.subtotal for b in summary.by_category.values()) == summary.total
        assert summary.total == Decimal("0.60")

    def test_categories_in_first_seen_order(self, make):
        """Test accumulation order."""
        expenses = [make(1, "1", "Z"), make(2, "1", "A"), make(3, "1", "Z")]
        assert list(summarize_expenses(expenses).by_category) == ["Z", "A"]

    def test_empty_input(self):
        """Test an empty input totals zero."""
        summary = summarize_expenses([])
        assert summary.total == 0
        assert summary.by_category == {}
        assert summary.is_empty

    def test_zero_total_gives_zero_percentages(self, make):
        """Test the division by a zero total is guarded."""
        summary = summarize_expenses([make(1, "0", "Food"), make(2, "0", "Transit")])
        assert summary.total == 0
        assert all(b.percentage == 0.0 for b in summary.by_category.values())

    def test_negative_subtotal_keeps_plain_share(self, make):
        """Test a refund category gets a negative share, not zero."""
        summary = summarize_expenses([make(1, "150", "Food"), make(2, "-50", "Other")])
        assert summary.total == Decimal("100")
        assert summary.by_category["Food"].percentage == pytest.approx(150.0)
        assert summary.by_category["Other"].percentage == pytest.approx(-50.0)

    def test_category_counts(self, scenario_expenses):
        """Test per-category record counts."""
        summary = summarize_expenses(scenario_expenses)
        assert summary.by_category["Food"].count == 2
        assert summary.by_category["Transit"].count == 1

    def test_display_formatting(self):
        """Test amount and percentage formatting helpers."""
        assert format_amount(Decimal("1250"), "₹") == "₹1,250.00"
        assert format_amount(Decimal("0.5"), "$") == "$0.50"
        assert format_percentage(85.714) == "85.7%"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
