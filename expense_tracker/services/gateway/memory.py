"""
In-Memory Gateway Implementation

Same contract as the REST gateway, backed by dictionaries. Used by the
test-suite and by the offline mode of the UI.

Ids are assigned here, never by the caller, exactly like the backend.
"""

import hashlib
import hmac
import itertools
from datetime import date
from typing import Optional

from expense_tracker.models.expense import Expense, ExpenseDraft, User
from expense_tracker.services.gateway.interface import (
    ExpenseGatewayInterface,
    InvalidCredentialsError,
    NotFoundError,
    RejectedRequestError,
    UserGatewayInterface,
)


class InMemoryExpenseGateway(ExpenseGatewayInterface):
    """Expense operations against a dict keyed by id."""

    def __init__(self, expenses: Optional[list[Expense]] = None):
        self._expenses: dict[int, Expense] = {}
        for expense in expenses or []:
            self._expenses[expense.id] = expense
        start = max(self._expenses, default=0) + 1
        self._ids = itertools.count(start)

    async def list_expenses(self, user_id: int) -> list[Expense]:
        return [e for e in self._expenses.values() if e.user_id == user_id]

    async def list_expenses_on(self, user_id: int, on: date) -> list[Expense]:
        return [
            e for e in self._expenses.values()
            if e.user_id == user_id and e.date == on
        ]

    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        expense = Expense(id=next(self._ids), **draft.model_dump())
        self._expenses[expense.id] = expense
        return expense

    async def update_expense(self, expense_id: int, draft: ExpenseDraft) -> Expense:
        if expense_id not in self._expenses:
            raise NotFoundError(f"Expense {expense_id} not found", status_code=404)
        expense = Expense(id=expense_id, **draft.model_dump())
        self._expenses[expense_id] = expense
        return expense

    async def delete_expense(self, expense_id: int) -> bool:
        if self._expenses.pop(expense_id, None) is None:
            raise NotFoundError(f"Expense {expense_id} not found", status_code=404)
        return True


def _hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class InMemoryUserGateway(UserGatewayInterface):
    """User accounts kept in memory, passwords stored as SHA-256 digests."""

    def __init__(self):
        self._users: dict[int, User] = {}
        self._password_hashes: dict[int, str] = {}
        self._ids = itertools.count(1)

    async def authenticate(self, email: str, password: str) -> User:
        user = self._find_by_email(email)
        if user is None or not hmac.compare_digest(
            self._password_hashes[user.id], _hash_password(password)
        ):
            raise InvalidCredentialsError("Invalid email or password", status_code=401)
        return user

    async def register_user(self, name: str, email: str, password: str) -> User:
        if self._find_by_email(email) is not None:
            raise RejectedRequestError(f"Email already registered: {email}", status_code=409)
        user = User(id=next(self._ids), name=name, email=email)
        self._users[user.id] = user
        self._password_hashes[user.id] = _hash_password(password)
        return user

    async def get_user(self, user_id: int) -> User:
        try:
            return self._users[user_id]
        except KeyError:
            raise NotFoundError(f"User {user_id} not found", status_code=404) from None

    def _find_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        for user in self._users.values():
            if user.email.lower() == wanted:
                return user
        return None
