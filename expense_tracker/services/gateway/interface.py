"""
Abstract Gateway Interface

DESIGN DECISION: We define an abstract interface for the expense backend.
This allows us to:
1. Talk to the REST service over HTTP in production
2. Use in-memory gateways for testing and offline use
3. Keep the store and the view pipeline decoupled from transport

Every call may fail. Failures are classified by exception type so the
caller can tell "retry later" (transport) from "sign in again"
(authorization) from "that record is gone" (not found). The gateway
never retries on its own.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from expense_tracker.models.expense import Expense, ExpenseDraft, User


class ExpenseGatewayInterface(ABC):
    """
    Abstract interface for remote expense operations.

    Any backend implementation (HTTP, in-memory, ...)
    must implement these methods.
    """

    @abstractmethod
    async def list_expenses(self, user_id: int) -> list[Expense]:
        """
        List every expense owned by a user.

        Args:
            user_id: The owning user's identifier

        Returns:
            All of the user's expenses, with backend-assigned ids

        Raises:
            TransportError: If the backend is unreachable or replies garbage
            AuthorizationError: If the API credential is rejected
        """
        pass

    @abstractmethod
    async def list_expenses_on(self, user_id: int, on: date) -> list[Expense]:
        """
        List a user's expenses for a single calendar day.

        Args:
            user_id: The owning user's identifier
            on: The day to list

        Returns:
            The matching expenses
        """
        pass

    @abstractmethod
    async def create_expense(self, draft: ExpenseDraft) -> Expense:
        """
        Create a new expense.

        Args:
            draft: The expense to create (no id)

        Returns:
            The stored expense, carrying its new id

        Raises:
            TransportError, AuthorizationError, RejectedRequestError
        """
        pass

    @abstractmethod
    async def update_expense(self, expense_id: int, draft: ExpenseDraft) -> Expense:
        """
        Replace an existing expense.

        Args:
            expense_id: Id of the expense to replace
            draft: The full new content

        Returns:
            The stored expense after the update

        Raises:
            NotFoundError: If the id no longer exists
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: int) -> bool:
        """
        Delete an expense by id.

        Args:
            expense_id: Id of the expense to delete

        Returns:
            True if deleted successfully

        Raises:
            NotFoundError: If the id no longer exists
        """
        pass


class UserGatewayInterface(ABC):
    """
    Abstract interface for remote user operations.
    """

    @abstractmethod
    async def authenticate(self, email: str, password: str) -> User:
        """
        Verify credentials and return the matching user.

        Raises:
            InvalidCredentialsError: If email or password is wrong
        """
        pass

    @abstractmethod
    async def register_user(self, name: str, email: str, password: str) -> User:
        """
        Create a new user account.

        Returns:
            The created user (never includes the password)
        """
        pass

    @abstractmethod
    async def get_user(self, user_id: int) -> User:
        """
        Fetch a user by id.

        Raises:
            NotFoundError: If no such user exists
        """
        pass


class GatewayError(Exception):
    """Base exception for backend operations."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportError(GatewayError):
    """Backend unreachable, timed out, or failed server-side. Retryable."""
    pass


class MalformedResponseError(TransportError):
    """Backend replied with something that is not the expected shape."""
    pass


class AuthorizationError(GatewayError):
    """The backend rejected our credentials."""
    pass


class InvalidCredentialsError(AuthorizationError):
    """Sign-in rejected: unknown email or wrong password."""
    pass


class NotFoundError(GatewayError):
    """Entity not found on the backend (stale id)."""
    pass


class RejectedRequestError(GatewayError):
    """The backend refused the request as invalid."""
    pass
