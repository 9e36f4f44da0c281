"""
Aggregation Engine

Total and per-category breakdown of a set of expenses.

Amounts are summed as Decimal so totals are exact. A zero total gives
0% for every category rather than a division error.
"""

from decimal import Decimal
from typing import Iterable

from expense_tracker.models.expense import (
    CategoryBreakdown,
    Expense,
    ExpenseSummary,
)


def summarize_expenses(expenses: Iterable[Expense]) -> ExpenseSummary:
    """
    Compute the total and the per-category subtotals/percentages.

    Categories appear in ``by_category`` in first-seen order.
    """
    total = Decimal("0")
    count = 0
    subtotals: dict[str, Decimal] = {}
    counts: dict[str, int] = {}

    for expense in expenses:
        total += expense.amount
        count += 1
        subtotals[expense.category] = subtotals.get(expense.category, Decimal("0")) + expense.amount
        counts[expense.category] = counts.get(expense.category, 0) + 1

    by_category = {
        category: CategoryBreakdown(
            subtotal=subtotal,
            percentage=_percentage(subtotal, total),
            count=counts[category],
        )
        for category, subtotal in subtotals.items()
    }
    return ExpenseSummary(total=total, count=count, by_category=by_category)


def _percentage(part: Decimal, total: Decimal) -> float:
    if total == 0:
        return 0.0
    return float(part / total * 100)


def format_amount(amount: Decimal, currency_symbol: str = "₹") -> str:
    """Two decimals with thousands separators, e.g. ``₹1,250.00``."""
    return f"{currency_symbol}{amount:,.2f}"


def format_percentage(percentage: float) -> str:
    """One decimal, e.g. ``85.7%``."""
    return f"{percentage:.1f}%"
