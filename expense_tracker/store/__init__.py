"""Expense store package."""

from expense_tracker.store.expense_store import (
    ChangeKind,
    ExpenseStore,
    StoreChange,
    StoreListener,
)

__all__ = ["ChangeKind", "ExpenseStore", "StoreChange", "StoreListener"]
