"""
Expense Form Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Amount is a finite, non-negative number
- Category is one of the configured labels
- Date is a real calendar date in YYYY-MM-DD form
- Description length

STAGE 2 - SEMANTIC VALIDATION:
- Zero amounts
- Absurd amount detection
- Future date detection
- These only produce warnings

Stage 2 is skipped when stage 1 finds errors. A form with errors never
reaches the gateway.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the user can correct the form.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from expense_tracker.config import AppSettings, get_settings
from expense_tracker.models.expense import (
    ExpenseDraft,
    ValidationIssue,
    ValidationResult,
)


MAX_DESCRIPTION_LENGTH = 1000


class ExpenseValidationError(ValueError):
    """The expense form has error-level issues."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"Invalid expense: {messages}")


def _parse_amount(raw: Any) -> Optional[Decimal]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, (int, float)):
        return Decimal(str(raw))
    try:
        return Decimal(str(raw).strip())
    except InvalidOperation:
        return None


def _parse_date(raw: Any) -> Optional[dt.date]:
    if isinstance(raw, dt.datetime):
        return raw.date()
    if isinstance(raw, dt.date):
        return raw
    text = str(raw).strip()
    # fromisoformat also accepts compact forms on newer Pythons
    if len(text) != 10:
        return None
    try:
        return dt.date.fromisoformat(text)
    except ValueError:
        return None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ExpenseValidator:
    """
    Validates expense form data before it is sent to the backend.

    Form data is a mapping with ``amount``, ``category``,
    ``description`` and ``date`` keys, as typed by the user.
    """

    def __init__(
        self,
        categories: Optional[list[str]] = None,
        settings: Optional[AppSettings] = None,
    ):
        """
        Initialize validator.

        Args:
            categories: Allowed category labels. Defaults to the
                        configured list.
            settings: Application settings (for thresholds).
        """
        self._settings = settings or get_settings().app
        self._categories = list(categories) if categories else self._settings.categories_list

    @property
    def categories(self) -> list[str]:
        return list(self._categories)

    def _validate_schema(
        self,
        data: Mapping[str, Any],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        # Amount
        raw_amount = data.get("amount")
        if _is_blank(raw_amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
                suggested_fix="Enter how much you spent",
            ))
        else:
            amount = _parse_amount(raw_amount)
            if amount is None:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message=f"Amount '{raw_amount}' is not a number",
                    severity="error",
                    suggested_fix="Use digits only, e.g. 249.50",
                ))
            elif not amount.is_finite():
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be a finite number",
                    severity="error",
                ))
            elif amount < 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount cannot be negative",
                    severity="error",
                    suggested_fix="Enter the amount without a minus sign",
                ))

        # Category
        category = data.get("category")
        if _is_blank(category):
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
                severity="error",
                suggested_fix="Pick a category from the list",
            ))
        elif category not in self._categories:
            issues.append(ValidationIssue(
                field="category",
                issue_type="invalid_value",
                message=f"Unknown category '{category}'",
                severity="error",
                suggested_fix=f"Choose one of: {', '.join(self._categories)}",
            ))

        # Date
        raw_date = data.get("date")
        if _is_blank(raw_date):
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
                severity="error",
                suggested_fix="Pick the day the money was spent",
            ))
        elif _parse_date(raw_date) is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=f"Date '{raw_date}' is not a valid YYYY-MM-DD date",
                severity="error",
                suggested_fix="Use the format YYYY-MM-DD, e.g. 2024-01-31",
            ))

        # Description
        description = data.get("description") or ""
        if len(str(description)) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description is longer than {MAX_DESCRIPTION_LENGTH} characters",
                severity="error",
                suggested_fix="Shorten the description",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        data: Mapping[str, Any],
        today: dt.date,
    ) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation. Only ever warns.

        Assumes stage 1 passed, so amount and date parse.
        """
        issues = []
        amount = _parse_amount(data.get("amount"))
        expense_date = _parse_date(data.get("date"))
        symbol = self._settings.currency_symbol

        if amount == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="Amount is zero",
                severity="warning",
                suggested_fix="Check whether you meant to enter an amount",
            ))

        max_amount = Decimal(str(self._settings.max_expense_amount))
        if amount is not None and amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({symbol}{amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        max_future_date = today + dt.timedelta(days=self._settings.future_date_tolerance_days)
        if expense_date is not None and expense_date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({expense_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        return issues

    def validate(
        self,
        data: Mapping[str, Any],
        today: Optional[dt.date] = None,
    ) -> ValidationResult:
        """
        Run the two-stage validation pipeline.

        Args:
            data: Form values
            today: Reference date for the future-date check

        Returns:
            ValidationResult with all issues found
        """
        today = today or dt.date.today()
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(data)
        all_issues.extend(schema_issues)

        if schema_valid:
            all_issues.extend(self._validate_semantic(data, today))

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            is_valid=schema_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def build_draft(
        self,
        data: Mapping[str, Any],
        user_id: int,
        today: Optional[dt.date] = None,
    ) -> tuple[ExpenseDraft, ValidationResult]:
        """
        Validate form data and turn it into a draft for the gateway.

        Returns:
            (draft, result) - the result still carries any warnings

        Raises:
            ExpenseValidationError: If the form has error-level issues
        """
        result = self.validate(data, today)
        if not result.is_valid:
            raise ExpenseValidationError(result)

        draft = ExpenseDraft(
            amount=_parse_amount(data["amount"]),
            category=data["category"],
            description=str(data.get("description") or "").strip(),
            date=_parse_date(data["date"]),
            user_id=user_id,
        )
        return draft, result

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show next to the expense form.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if not result.is_valid:
            lines.append("❌ Please fix the following before saving:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"  • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"    → {issue.suggested_fix}")

        if result.warnings:
            lines.append("⚠️ Please double-check:")
            for warning in result.warnings:
                lines.append(f"  • {warning}")

        return "\n".join(lines)
