"""
Shared fixtures for the Expense Tracker test-suite.

No network: in-memory gateways and storages stand in for the backend.
"""

from datetime import date
from decimal import Decimal

import pytest

from expense_tracker.audit import AuditLogger
from expense_tracker.config import get_settings
from expense_tracker.models.expense import Expense
from expense_tracker.services.gateway import InMemoryExpenseGateway, InMemoryUserGateway
from expense_tracker.services.session import MemorySessionStorage
from expense_tracker.session import UserSession
from expense_tracker.store import ExpenseStore
from expense_tracker.validation import ExpenseValidator


CATEGORIES = ["Food", "Transit", "Groceries", "Other"]


def make_expense(
    id: int,
    amount="10",
    category: str = "Food",
    description: str = "",
    on: str = "2024-01-01",
    user_id: int = 1,
) -> Expense:
    return Expense(
        id=id,
        amount=Decimal(str(amount)),
        category=category,
        description=description,
        date=date.fromisoformat(on),
        user_id=user_id,
    )


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; start and end every test with a clean cache."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def scenario_expenses() -> list[Expense]:
    """Three expenses: two Food, one Transit (total 175)."""
    return [
        make_expense(1, "100", "Food", "Lunch", "2024-01-05"),
        make_expense(2, "50", "Food", "Dinner", "2024-01-10"),
        make_expense(3, "25", "Transit", "Bus pass", "2024-01-01"),
    ]


@pytest.fixture
def store() -> ExpenseStore:
    return ExpenseStore(owner_id=1)


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger()


@pytest.fixture
def validator() -> ExpenseValidator:
    return ExpenseValidator(categories=CATEGORIES)


@pytest.fixture
def user_gateway() -> InMemoryUserGateway:
    return InMemoryUserGateway()


@pytest.fixture
def expense_gateway() -> InMemoryExpenseGateway:
    return InMemoryExpenseGateway()


@pytest.fixture
def session(user_gateway, audit_logger) -> UserSession:
    return UserSession(user_gateway, MemorySessionStorage(), audit_logger=audit_logger)


@pytest.fixture
def make():
    """Factory for confirmed expenses: ``make(id, amount, category, description, on)``."""
    return make_expense
