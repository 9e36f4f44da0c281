"""
Sort Engine

Orders a filtered view by date, amount or category.

The sort is stable, so records with equal keys keep their relative
input order. Descending order is produced with ``reverse=True``, which
keeps that stability guarantee. The input sequence is never modified.
"""

import locale
from typing import Any, Callable, Iterable, Optional, Union

from expense_tracker.models.expense import Expense, SortKey, SortOrder


def _category_key(expense: Expense) -> tuple[str, str]:
    # Locale collation first, raw value breaks ties deterministically
    return (locale.strxfrm(expense.category.casefold()), expense.category)


_KEY_FUNCTIONS: dict[SortKey, Callable[[Expense], Any]] = {
    SortKey.DATE: lambda e: e.date,
    SortKey.AMOUNT: lambda e: e.amount,
    SortKey.CATEGORY: _category_key,
}


def sort_expenses(
    expenses: Iterable[Expense],
    sort_by: Optional[Union[SortKey, str]] = SortKey.DATE,
    sort_order: Union[SortOrder, str] = SortOrder.ASC,
) -> list[Expense]:
    """
    Return a new list ordered by ``sort_by`` in ``sort_order``.

    ``sort_by=None`` keeps the input order.

    Raises:
        ValueError: If the key or order is not recognised
    """
    order = SortOrder(sort_order)
    if sort_by is None or sort_by == "":
        return list(expenses)

    key = SortKey(sort_by)
    return sorted(
        expenses,
        key=_KEY_FUNCTIONS[key],
        reverse=(order == SortOrder.DESC),
    )
