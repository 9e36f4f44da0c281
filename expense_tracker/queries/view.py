"""
Derived List View

Subscribes to an ExpenseStore and pulls filtered, sorted and aggregated
views from it on demand.

DESIGN DECISION: The view caches its derived rows and summary, and drops
the cache whenever the store reports a change or the view state
changes. Nothing derived is ever reused across a store mutation.
"""

import datetime as dt
from typing import Any, Callable, Optional

from expense_tracker.models.expense import (
    Expense,
    ExpenseSummary,
    ListViewState,
    SortKey,
    SortOrder,
)
from expense_tracker.queries.aggregation import summarize_expenses
from expense_tracker.queries.filters import distinct_categories, filter_expenses
from expense_tracker.queries.sorting import sort_expenses
from expense_tracker.store.expense_store import ExpenseStore, StoreChange


class ExpenseListView:
    """
    Filter -> sort -> {rows, summary} pipeline over a store.

    Usage:
        view = ExpenseListView(store)
        view.update_criteria(category="Food")
        rows = view.rows()
        summary = view.summary()
    """

    def __init__(
        self,
        store: ExpenseStore,
        state: Optional[ListViewState] = None,
        today: Optional[dt.date] = None,
    ):
        self._store = store
        self._state = state or ListViewState.default(today)
        self._rows: Optional[list[Expense]] = None
        self._summary: Optional[ExpenseSummary] = None
        self._unsubscribe: Optional[Callable[[], None]] = store.subscribe(self._on_store_change)

    @property
    def state(self) -> ListViewState:
        return self._state

    @property
    def is_stale(self) -> bool:
        """True when the next pull will recompute."""
        return self._rows is None

    # -------------------------------------------------------------------------
    # State changes
    # -------------------------------------------------------------------------

    def set_state(self, state: ListViewState) -> None:
        if state != self._state:
            self._state = state
            self._invalidate()

    def update_criteria(self, **changes: Any) -> None:
        self.set_state(self._state.with_criteria(**changes))

    def set_sort_key(self, sort_by: Optional[SortKey]) -> None:
        self.set_state(self._state.with_sort_key(sort_by))

    def set_sort_order(self, sort_order: SortOrder) -> None:
        self.set_state(self._state.with_sort_order(sort_order))

    def show_current_month(self, today: Optional[dt.date] = None) -> None:
        self.set_state(self._state.with_current_month(today))

    def reset(self, today: Optional[dt.date] = None) -> None:
        """Back to the default filters and sort."""
        self.set_state(ListViewState.default(today))

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def rows(self) -> list[Expense]:
        """Filtered and sorted records. Returns a fresh list each call."""
        if self._rows is None:
            filtered = filter_expenses(self._store.all(), self._state.criteria)
            self._rows = sort_expenses(
                filtered,
                self._state.sort_by,
                self._state.sort_order,
            )
        return list(self._rows)

    def summary(self) -> ExpenseSummary:
        """Aggregation over the filtered rows."""
        if self._summary is None:
            self._summary = summarize_expenses(self.rows())
        return self._summary

    def categories(self) -> list[str]:
        """Categories present in the whole store, for filter dropdowns."""
        return distinct_categories(self._store.all())

    def close(self) -> None:
        """Stop listening to the store."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_store_change(self, change: StoreChange) -> None:
        self._invalidate()

    def _invalidate(self) -> None:
        self._rows = None
        self._summary = None
