"""Expense form validation package."""

from expense_tracker.validation.validator import (
    MAX_DESCRIPTION_LENGTH,
    ExpenseValidationError,
    ExpenseValidator,
)

__all__ = ["MAX_DESCRIPTION_LENGTH", "ExpenseValidationError", "ExpenseValidator"]
