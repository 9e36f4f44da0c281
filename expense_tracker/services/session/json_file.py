"""
JSON File Session Storage

The session file is a small JSON object used as a key-value store:

    {"user": {"id": 1, "name": "Asha", "email": "asha@example.com"}}

Other keys in the file are preserved. Writes go through a temporary
file and an atomic rename so a crash never leaves half a session.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import structlog
from pydantic import ValidationError

from expense_tracker.config import SessionSettings, get_settings
from expense_tracker.models.expense import User
from expense_tracker.services.session.interface import (
    SessionStorageError,
    SessionStorageInterface,
)


logger = structlog.get_logger(__name__)


class JsonFileSessionStorage(SessionStorageInterface):
    """Session slot stored under one key of a JSON file."""

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        key: Optional[str] = None,
        settings: Optional[SessionSettings] = None,
    ):
        settings = settings or get_settings().session
        self._path = Path(path if path is not None else settings.storage_path)
        self._key = key or settings.storage_key

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[User]:
        slot = self._read_all().get(self._key)
        if slot is None:
            return None
        try:
            return User.model_validate(slot)
        except ValidationError as e:
            logger.warning("session_slot_corrupted", path=str(self._path), error=str(e))
            self.clear()
            return None

    def save(self, user: User) -> None:
        data = self._read_all()
        data[self._key] = user.model_dump(mode="json", include={"id", "name", "email"})
        self._write_all(data)

    def clear(self) -> None:
        data = self._read_all()
        if self._key in data:
            del data[self._key]
            self._write_all(data)

    def _read_all(self) -> dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning("session_file_unreadable", path=str(self._path), error=str(e))
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("session_file_corrupted", path=str(self._path), error=str(e))
            self._discard_file()
            return {}

        if not isinstance(data, dict):
            logger.warning("session_file_corrupted", path=str(self._path), error="not an object")
            self._discard_file()
            return {}
        return data

    def _write_all(self, data: dict[str, Any]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise SessionStorageError(f"Could not write session file {self._path}: {e}") from e

    def _discard_file(self) -> None:
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("session_file_not_removed", path=str(self._path), error=str(e))
