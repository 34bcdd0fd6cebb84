"""Persisted forest with a single-slot backup.

Every durable save first copies whatever is currently stored under the
primary key into the backup key, then writes the new forest. Only one
generation of history is kept.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from storage.storage_interface import KeyValueStore, TextFileHandle

from .errors import PersistenceError
from .models import Tree, dump_tree
from .normalize import normalize_tree

logger = logging.getLogger(__name__)

STORAGE_KEY = "linkTree"
BACKUP_KEY = "linkTree_backup"


class TreeRepository:
    """
    Load and save a forest through a key-value store.

    Args:
        store (KeyValueStore): backend holding the primary and backup slots.
        file_handle (TextFileHandle | None): optional bound file. When set,
            load/persist go through it as JSON text and no backup is rotated.
        primary_key (str): key of the live forest.
        backup_key (str): key of the single backup generation.
    """

    def __init__(
        self,
        store: KeyValueStore,
        file_handle: TextFileHandle | None = None,
        primary_key: str = STORAGE_KEY,
        backup_key: str = BACKUP_KEY,
    ):
        self.store = store
        self.file_handle = file_handle
        self.primary_key = primary_key
        self.backup_key = backup_key

    def bind_file(self, handle: TextFileHandle | None) -> None:
        self.file_handle = handle
        logger.info("Bound forest to file %s", handle.name if handle else None)

    def _get(self, key: str) -> Any:
        try:
            return self.store.get(key)
        except OSError as exc:
            raise PersistenceError(f"Cannot read {key!r} from store: {exc}", log=True) from exc

    def _set(self, key: str, value: Any) -> None:
        try:
            self.store.set(key, value)
        except OSError as exc:
            raise PersistenceError(f"Cannot write {key!r} to store: {exc}", log=True) from exc

    def _read_bound_file(self) -> Any:
        assert self.file_handle is not None
        try:
            text = self.file_handle.read_text()
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Cannot read {self.file_handle.name}: {exc}", log=True) from exc
        if not text.strip():
            return []
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Bound file {self.file_handle.name} is not valid JSON: {exc}", log=True) from exc

    def load(self) -> Tree:
        raw = self._read_bound_file() if self.file_handle else self._get(self.primary_key)
        return normalize_tree(raw)

    def persist(self, tree: Tree) -> None:
        """Durably save ``tree``, rotating the previous value into the backup slot."""
        payload = dump_tree(tree)
        if self.file_handle is not None:
            try:
                self.file_handle.write_text(json.dumps(payload, ensure_ascii=False, indent=2))
            except OSError as exc:
                raise PersistenceError(f"Cannot write {self.file_handle.name}: {exc}", log=True) from exc
            logger.info("Saved forest to bound file %s", self.file_handle.name)
            return
        current = self._get(self.primary_key)
        self._set(self.backup_key, current if isinstance(current, list) else [])
        self._set(self.primary_key, payload)
        logger.info("Saved forest (%d roots); previous state kept as backup", len(payload))

    def overwrite_without_backup(self, tree: Tree) -> None:
        self._set(self.primary_key, dump_tree(tree))

    def load_backup(self) -> Tree:
        return normalize_tree(self._get(self.backup_key))


__all__ = ["BACKUP_KEY", "STORAGE_KEY", "TreeRepository"]
