"""
Tests for expense form validation.
"""

import pytest
from datetime import date
from decimal import Decimal

from expense_tracker.validation import ExpenseValidationError, ExpenseValidator


TODAY = date(2024, 1, 20)


def _form(**overrides):
    data = {
        "amount": "120.50",
        "category": "Food",
        "description": "Lunch",
        "date": "2024-01-15",
    }
    data.update(overrides)
    return data


class TestSchemaValidation:
    """Stage 1: errors that block submission."""

    def test_valid_form(self, validator):
        """Test a complete form passes without issues."""
        result = validator.validate(_form(), TODAY)
        assert result.is_valid is True
        assert result.issues == []

    @pytest.mark.parametrize("amount", [None, "", "   "])
    def test_missing_amount(self, validator, amount):
        """Test amount is required."""
        result = validator.validate(_form(amount=amount), TODAY)
        assert result.is_valid is False
        assert result.errors_for("amount")[0].issue_type == "missing"

    @pytest.mark.parametrize("amount", ["abc", "12,50", "NaN", "Infinity", "-5"])
    def test_bad_amount(self, validator, amount):
        """Test non-numeric, non-finite and negative amounts."""
        result = validator.validate(_form(amount=amount), TODAY)
        assert result.is_valid is False
        assert len(result.errors_for("amount")) == 1

    def test_unknown_category(self, validator):
        """Test category must be a configured label."""
        result = validator.validate(_form(category="Crypto"), TODAY)
        assert result.errors_for("category")[0].issue_type == "invalid_value"

    def test_missing_category(self, validator):
        """Test category is required."""
        result = validator.validate(_form(category=""), TODAY)
        assert result.errors_for("category")[0].issue_type == "missing"

    @pytest.mark.parametrize("value", ["2024-02-30", "15/01/2024", "20240115", "yesterday"])
    def test_bad_date(self, validator, value):
        """Test date must be a real YYYY-MM-DD date."""
        result = validator.validate(_form(date=value), TODAY)
        assert result.errors_for("date")[0].issue_type == "invalid_format"

    def test_date_object_accepted(self, validator):
        """Test a date widget value is accepted as-is."""
        assert validator.validate(_form(date=date(2024, 1, 1)), TODAY).is_valid

    def test_missing_date(self, validator):
        """Test date is required."""
        result = validator.validate(_form(date=None), TODAY)
        assert result.errors_for("date")[0].issue_type == "missing"

    def test_description_too_long(self, validator):
        """Test the description length limit."""
        result = validator.validate(_form(description="x" * 1001), TODAY)
        assert result.errors_for("description")

    def test_errors_skip_semantic_stage(self, validator):
        """Test no warnings are produced when the form has errors."""
        result = validator.validate(_form(amount="0", category="Crypto"), TODAY)
        assert result.is_valid is False
        assert result.warnings == []


class TestSemanticValidation:
    """Stage 2: warnings that do not block submission."""

    def test_zero_amount_warns(self, validator):
        """Test a zero amount is allowed with a warning."""
        result = validator.validate(_form(amount="0"), TODAY)
        assert result.is_valid is True
        assert any("zero" in w for w in result.warnings)

    def test_huge_amount_warns(self, validator):
        """Test the sanity ceiling."""
        result = validator.validate(_form(amount="5000000"), TODAY)
        assert result.is_valid is True
        assert any("unusually high" in w for w in result.warnings)

    def test_future_date_tolerance(self, validator):
        """Test dates within the tolerance are fine, beyond it warn."""
        assert validator.validate(_form(date="2024-01-27"), TODAY).warnings == []
        result = validator.validate(_form(date="2024-01-28"), TODAY)
        assert result.is_valid is True
        assert any("future" in w for w in result.warnings)


class TestBuildDraft:
    """Tests for turning a form into a gateway draft."""

    def test_build_draft(self, validator):
        """Test the draft carries parsed values and the session user."""
        draft, result = validator.build_draft(_form(description="  Lunch  "), user_id=7, today=TODAY)
        assert draft.amount == Decimal("120.50")
        assert draft.date == date(2024, 1, 15)
        assert draft.user_id == 7
        assert draft.description == "Lunch"
        assert result.is_valid

    def test_build_draft_raises_on_errors(self, validator):
        """Test an invalid form raises with the result attached."""
        with pytest.raises(ExpenseValidationError) as exc_info:
            validator.build_draft(_form(amount="abc"), user_id=7, today=TODAY)
        assert exc_info.value.result.error_count == 1
        assert isinstance(exc_info.value, ValueError)

    def test_categories_default_to_settings(self, monkeypatch):
        """Test the configured category list is used by default."""
        monkeypatch.setenv("EXPENSE_CATEGORIES", "Rent, Food,Rent")
        assert ExpenseValidator().categories == ["Rent", "Food"]

    def test_user_friendly_summary(self, validator):
        """Test the summary mentions each error."""
        result = validator.validate(_form(amount="", category=""), TODAY)
        summary = validator.get_user_friendly_summary(result)
        assert "Amount is required" in summary
        assert "Category is required" in summary
        assert validator.get_user_friendly_summary(
            validator.validate(_form(), TODAY)
        ).startswith("✅")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
