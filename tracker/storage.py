"""
Key-value storage backends.

Every persisted value is a string (JSON text), one entry per key, the same
contract a browser's local storage offers. Collections are always written
whole; there is no partial update of a stored value.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Mapping, Optional

import structlog


logger = structlog.get_logger(__name__)


class StorageError(Exception):
    """Raised when the backing file cannot be written."""


class KeyValueStorage(ABC):

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass

    @abstractmethod
    def set_many(self, items: Mapping[str, str]) -> None:
        """Write several keys as one all-or-nothing step."""
        pass


class MemoryStorage(KeyValueStorage):

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def set_many(self, items: Mapping[str, str]) -> None:
        self._data.update(items)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)


class JsonFileStorage(KeyValueStorage):
    """Keeps the whole key-value map in one JSON object on disk.

    Writes go through a temp file and ``os.replace`` so the file always holds
    either the previous map or the new one. A missing or unreadable file
    starts out empty.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data: Dict[str, str] = self._read()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("storage_file_unreadable", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("storage_file_wrong_shape", path=str(self.path))
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _flush(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def remove(self, key: str) -> None:
        if key not in self._data:
            return
        data = dict(self._data)
        del data[key]
        self._flush(data)
        self._data = data

    def set_many(self, items: Mapping[str, str]) -> None:
        data = {**self._data, **items}
        self._flush(data)
        self._data = data
