"""
json_store.py
-------------
Key-value stores for the persisted forest.

JsonFileStore keeps every key in one JSON document on disk and rewrites
it atomically on each set. MemoryStore is the dict-backed variant used by
tests and by the daemon when it runs without a store file.
"""

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from storage.storage_interface import KeyValueStore

logger = logging.getLogger(__name__)


class StoreFormatError(OSError):
    """The store document exists but is not a JSON object."""


class MemoryStore(KeyValueStore):
    """In-process store. Values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON file.

    Args:
        path (str | Path): location of the JSON document. Parent
            directories are created on first write. A missing file reads
            as an empty store; unparseable content raises StoreFormatError
            and is never overwritten.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            text = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise StoreFormatError(f"Store file {self.path} is not UTF-8 text: {exc}") from exc
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StoreFormatError(f"Store file {self.path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreFormatError(f"Store file {self.path} does not hold a JSON object")
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.debug(f"Wrote key {key!r} to {self.path}")
