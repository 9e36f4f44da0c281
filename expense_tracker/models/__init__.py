"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.expense import (
    CategoryBreakdown,
    Expense,
    ExpenseDraft,
    ExpenseSummary,
    ExportArtifact,
    FilterCriteria,
    ListViewState,
    SortKey,
    SortOrder,
    User,
    ValidationIssue,
    ValidationResult,
    month_bounds,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "CategoryBreakdown",
    "Expense",
    "ExpenseDraft",
    "ExpenseSummary",
    "ExportArtifact",
    "FilterCriteria",
    "ListViewState",
    "SortKey",
    "SortOrder",
    "User",
    "ValidationIssue",
    "ValidationResult",
    "month_bounds",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
