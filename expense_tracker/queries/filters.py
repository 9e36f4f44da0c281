"""
Filter Engine

Pure functions: (expenses, criteria) -> matching subset.

All active predicates must hold (logical AND):
- text: case-insensitive substring of the description
- category: exact, case-sensitive match
- date_from / date_to: inclusive bounds

Inactive predicates (empty text/category, missing dates) match
everything. The input is never modified and its order is kept.
"""

from typing import Any, Iterable, Mapping, Union

from expense_tracker.models.expense import Expense, FilterCriteria


CriteriaLike = Union[FilterCriteria, Mapping[str, Any], None]


def _as_criteria(criteria: CriteriaLike) -> FilterCriteria:
    if criteria is None:
        return FilterCriteria()
    if isinstance(criteria, FilterCriteria):
        return criteria
    return FilterCriteria.model_validate(dict(criteria))


def matches_criteria(expense: Expense, criteria: CriteriaLike) -> bool:
    """Does ``expense`` satisfy every active predicate?"""
    criteria = _as_criteria(criteria)

    if criteria.text and criteria.text.casefold() not in expense.description.casefold():
        return False
    if criteria.category and expense.category != criteria.category:
        return False
    if criteria.date_from is not None and expense.date < criteria.date_from:
        return False
    if criteria.date_to is not None and expense.date > criteria.date_to:
        return False
    return True


def filter_expenses(
    expenses: Iterable[Expense],
    criteria: CriteriaLike = None,
) -> list[Expense]:
    """
    Return the expenses matching ``criteria``, in input order.

    An empty input, or nothing matching, gives an empty list.
    """
    criteria = _as_criteria(criteria)
    if criteria.is_empty:
        return list(expenses)
    return [e for e in expenses if matches_criteria(e, criteria)]


def distinct_categories(expenses: Iterable[Expense]) -> list[str]:
    """Categories present in ``expenses``, in first-seen order."""
    return list(dict.fromkeys(e.category for e in expenses))
