"""Durable client-side key/value storage, the Python stand-in for browser local storage."""

import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Fixed key names, shared with the web client
TOKEN_KEY = "token"
USER_KEY = "user"
REDIRECT_KEY = "redirectAfterLogin"
PENDING_DISH_KEY = "dishToAdd"


class MemoryStorage:
    """Storage that lives as long as the process. Used by tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data.keys())


class FileStorage(MemoryStorage):
    """
    JSON file backed storage.

    Every mutation rewrites the file so that a restarted client (the equivalent
    of a page reload) sees the same token and hints.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(self._load())

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed storage file %s", self.path)
            return {}
        return data

    def _flush(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f)
        os.replace(tmp_path, self.path)

    def set(self, key: str, value: Any) -> None:
        super().set(key, value)
        self._flush()

    def remove(self, key: str) -> None:
        if key in self._data:
            super().remove(key)
            self._flush()
