"""
Session Storage Package

Persists the signed-in user between runs.
"""

from expense_tracker.services.session.interface import (
    SessionStorageError,
    SessionStorageInterface,
)
from expense_tracker.services.session.json_file import JsonFileSessionStorage
from expense_tracker.services.session.memory import MemorySessionStorage

__all__ = [
    "JsonFileSessionStorage",
    "MemorySessionStorage",
    "SessionStorageError",
    "SessionStorageInterface",
]
