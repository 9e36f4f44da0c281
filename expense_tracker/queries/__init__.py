"""Filter, sort and aggregation package."""

from expense_tracker.queries.aggregation import (
    format_amount,
    format_percentage,
    summarize_expenses,
)
from expense_tracker.queries.filters import (
    distinct_categories,
    filter_expenses,
    matches_criteria,
)
from expense_tracker.queries.sorting import sort_expenses
from expense_tracker.queries.view import ExpenseListView

__all__ = [
    "ExpenseListView",
    "distinct_categories",
    "filter_expenses",
    "format_amount",
    "format_percentage",
    "matches_criteria",
    "sort_expenses",
    "summarize_expenses",
]
