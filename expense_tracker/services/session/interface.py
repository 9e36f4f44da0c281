"""
Session Storage Interface

A single key-value slot holding the signed-in user ({id, name, email}),
read on startup and cleared on sign-out.
"""

from abc import ABC, abstractmethod
from typing import Optional

from expense_tracker.models.expense import User


class SessionStorageInterface(ABC):
    """
    Abstract interface for persisting the current user.
    """

    @abstractmethod
    def load(self) -> Optional[User]:
        """
        Read the persisted user.

        Returns:
            The user, or None if nothing (valid) is stored.
            A corrupted slot is cleared and reported as None.
        """
        pass

    @abstractmethod
    def save(self, user: User) -> None:
        """Persist the user, replacing any previous value."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the persisted user. Clearing an empty slot is a no-op."""
        pass


class SessionStorageError(Exception):
    """The session slot could not be written."""
    pass
