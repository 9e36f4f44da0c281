"""In-memory session slot, for tests and throwaway sessions."""

from typing import Optional

from expense_tracker.models.expense import User
from expense_tracker.services.session.interface import SessionStorageInterface


class MemorySessionStorage(SessionStorageInterface):

    def __init__(self, user: Optional[User] = None):
        self._user = user

    def load(self) -> Optional[User]:
        return self._user

    def save(self, user: User) -> None:
        self._user = user

    def clear(self) -> None:
        self._user = None
