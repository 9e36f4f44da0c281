"""
Core Data Models for Expense Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable to the REST backend's JSON shape
4. Keep derived views (filters, summaries, exports) immutable

DESIGN DECISION: Amounts are Decimal and must be finite. A record whose
amount cannot be read as a finite number is rejected here, it is never
silently treated as zero.
"""

import calendar
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class SortKey(str, Enum):
    """Fields a filtered view can be ordered by."""
    DATE = "date"
    AMOUNT = "amount"
    CATEGORY = "category"


class SortOrder(str, Enum):
    """Sort direction."""
    ASC = "asc"
    DESC = "desc"


# =============================================================================
# CORE EXPENSE MODELS
# =============================================================================

class ExpenseBase(BaseModel):
    """Fields shared by every expense shape."""
    model_config = ConfigDict(populate_by_name=True)

    amount: Decimal = Field(
        ...,
        description="Amount spent"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category label"
    )
    description: str = Field(
        default="",
        max_length=1000,
        description="Free-text description (may be empty)"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the expense (YYYY-MM-DD)"
    )

    @field_validator('amount')
    @classmethod
    def amount_must_be_finite(cls, v: Decimal) -> Decimal:
        """NaN and infinities cannot take part in sorting or totals."""
        if not v.is_finite():
            raise ValueError(f"Amount must be a finite number, got {v}")
        return v

    @field_validator('description', mode='before')
    @classmethod
    def none_description_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class ExpenseDraft(ExpenseBase):
    """
    An expense as sent to the backend on create or update.

    CRITICAL: Drafts never carry an id. Ids are assigned by the
    backend and only exist on confirmed Expense records.
    """
    user_id: int = Field(
        ...,
        alias="userId",
        description="Owning user (from the authenticated session)"
    )

    def to_payload(self) -> dict[str, Any]:
        """JSON body in the backend's wire format."""
        return self.model_dump(mode="json", by_alias=True)


class Expense(ExpenseBase):
    """
    A confirmed expense record, as returned by the backend.

    Records are immutable: edits produce a new record that replaces
    the old one by id.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = Field(
        ...,
        description="Backend-assigned identifier"
    )
    user_id: Optional[int] = Field(
        default=None,
        alias="userId",
        description="Owning user, when the backend includes it"
    )

    def to_draft(self, user_id: Optional[int] = None) -> ExpenseDraft:
        """Strip the id, e.g. to resubmit an edited copy."""
        owner = user_id if user_id is not None else self.user_id
        return ExpenseDraft(
            amount=self.amount,
            category=self.category,
            description=self.description,
            date=self.date,
            user_id=owner,
        )


# =============================================================================
# USER MODELS
# =============================================================================

class User(BaseModel):
    """
    The authenticated user.

    Only {id, name, email} is ever kept client-side; passwords are
    sent to the backend and never stored.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    id: int
    name: Optional[str] = None
    email: str = Field(..., min_length=3, max_length=320)

    @property
    def display_name(self) -> str:
        return self.name or self.email


# =============================================================================
# FILTER / VIEW STATE MODELS
# =============================================================================

def month_bounds(today: Optional[dt.date] = None) -> tuple[dt.date, dt.date]:
    """First and last calendar day of the month containing ``today``."""
    today = today or dt.date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


class FilterCriteria(BaseModel):
    """
    Active search constraints for a view.

    Empty text/category and missing dates mean "no constraint".
    Empty strings are accepted for the dates so form values can be
    passed straight through.
    """
    model_config = ConfigDict(frozen=True)

    text: str = ""
    category: str = ""
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None

    @field_validator('text', 'category', mode='before')
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator('date_from', 'date_to', mode='before')
    @classmethod
    def empty_date_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_empty(self) -> bool:
        """True when no predicate is active."""
        return not (self.text or self.category or self.date_from or self.date_to)

    @classmethod
    def current_month(cls, today: Optional[dt.date] = None) -> "FilterCriteria":
        """Default criteria: the whole of the current month."""
        first, last = month_bounds(today)
        return cls(date_from=first, date_to=last)


class ListViewState(BaseModel):
    """
    Everything a list view needs to derive its rows.

    Default state: no text or category filter, current month,
    newest first.
    """
    model_config = ConfigDict(frozen=True)

    criteria: FilterCriteria = Field(default_factory=FilterCriteria)
    sort_by: Optional[SortKey] = SortKey.DATE
    sort_order: SortOrder = SortOrder.DESC

    @classmethod
    def default(cls, today: Optional[dt.date] = None) -> "ListViewState":
        return cls(criteria=FilterCriteria.current_month(today))

    def has_custom_filters(self, today: Optional[dt.date] = None) -> bool:
        """Does anything differ from the default state?"""
        return self != self.default(today)

    def with_criteria(self, **changes: Any) -> "ListViewState":
        criteria = self.criteria.model_copy(update=changes)
        # Re-validate so "" dates collapse to None
        criteria = FilterCriteria.model_validate(criteria.model_dump())
        return self.model_copy(update={"criteria": criteria})

    def with_sort_key(self, sort_by: Optional[SortKey]) -> "ListViewState":
        """Choosing a new sort key starts in ascending order."""
        key = SortKey(sort_by) if sort_by else None
        return self.model_copy(update={"sort_by": key, "sort_order": SortOrder.ASC})

    def with_sort_order(self, sort_order: SortOrder) -> "ListViewState":
        return self.model_copy(update={"sort_order": SortOrder(sort_order)})

    def with_current_month(self, today: Optional[dt.date] = None) -> "ListViewState":
        first, last = month_bounds(today)
        return self.with_criteria(date_from=first, date_to=last)


# =============================================================================
# AGGREGATION MODELS
# =============================================================================

class CategoryBreakdown(BaseModel):
    """Subtotal of one category within a summary."""
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    percentage: float = Field(
        ...,
        description="Share of the total in percent (0 when the total is 0)"
    )
    count: int = Field(default=0, ge=0)


class ExpenseSummary(BaseModel):
    """
    Total and per-category breakdown of a set of expenses.

    ``by_category`` keeps categories in first-seen order.
    """
    model_config = ConfigDict(frozen=True)

    total: Decimal = Decimal("0")
    count: int = Field(default=0, ge=0)
    by_category: dict[str, CategoryBreakdown] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    def ranked_categories(self) -> list[tuple[str, CategoryBreakdown]]:
        """Categories by descending subtotal, for display."""
        return sorted(
            self.by_category.items(),
            key=lambda item: item[1].subtotal,
            reverse=True,
        )


# =============================================================================
# EXPORT MODELS
# =============================================================================

class ExportArtifact(BaseModel):
    """A CSV export ready to be offered for download."""
    model_config = ConfigDict(frozen=True)

    filename: str
    content: str
    row_count: int = Field(..., ge=1)
    media_type: str = "text/csv; charset=utf-8"

    def to_bytes(self) -> bytes:
        return self.content.encode("utf-8")


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating an expense form before it is submitted.

    Errors block submission; warnings are shown but do not block.
    """

    validated_at: dt.datetime = Field(
        default_factory=dt.datetime.utcnow
    )
    is_valid: bool = Field(
        ...,
        description="Can the expense be submitted?"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @model_validator(mode='after')
    def errors_make_result_invalid(self) -> 'ValidationResult':
        if self.is_valid and self.has_errors:
            raise ValueError("A result with error-level issues cannot be valid")
        return self

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def errors_for(self, field: str) -> list[ValidationIssue]:
        return [
            issue for issue in self.issues
            if issue.field == field and issue.severity == "error"
        ]
