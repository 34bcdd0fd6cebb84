"""Draft-then-commit editing of a persisted forest.

An EditSession holds the working draft, the snapshot taken at the last
load or commit, and a one-item move buffer for cut/paste. Mutations act
on the draft only; nothing reaches storage until commit().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Union

from . import index, operations
from .backup import TreeRepository
from .errors import CycleError
from .models import FolderNode, LinkEntry, Tree, clone_tree, dump_tree, trees_equal
from .normalize import normalize_tree
from .search import filter_tree
from .text_codec import decode_text, encode_text

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# move buffer


@dataclass(frozen=True)
class EmptyBuffer:
    pass


@dataclass(frozen=True)
class HoldingFolder:
    node: FolderNode


@dataclass(frozen=True)
class HoldingLink:
    link: LinkEntry


MoveBuffer = Union[EmptyBuffer, HoldingFolder, HoldingLink]

EMPTY = EmptyBuffer()


class EditSession:
    """
    One editing session over a TreeRepository.

    Attributes:
        draft: the live forest being edited.
        saved_snapshot: deep copy of the last loaded or committed forest.
        buffer: the cut item waiting to be pasted, if any.
        query: current search text used by view().
    """

    def __init__(self, repository: TreeRepository):
        self.repository = repository
        self.draft: Tree = []
        self.saved_snapshot: Tree = []
        self.buffer: MoveBuffer = EMPTY
        self.query = ""
        self._unconfirmed = False

    # -- state ------------------------------------------------------------

    def is_dirty(self) -> bool:
        """True while the draft holds anything not yet committed."""
        return self._unconfirmed or not trees_equal(self.draft, self.saved_snapshot)

    @property
    def dirty(self) -> bool:
        return self.is_dirty()

    def load(self) -> Tree:
        tree = self.repository.load()
        self.draft = clone_tree(tree)
        self.saved_snapshot = clone_tree(tree)
        self.buffer = EMPTY
        self._unconfirmed = False
        logger.info("Loaded forest with %d roots", len(tree))
        return self.draft

    def commit(self) -> None:
        """Persist the draft (rotating the backup) and make it the new snapshot.

        On PersistenceError nothing in the session changes.
        """
        normalized = normalize_tree(self.draft)
        self.repository.persist(normalized)
        self.draft = normalized
        self.saved_snapshot = clone_tree(normalized)
        self._unconfirmed = False
        logger.info("Committed forest with %d roots", len(normalized))

    def cancel(self) -> bool:
        """Throw away every edit since the last load or commit."""
        if not self.is_dirty():
            return False
        self.draft = clone_tree(self.saved_snapshot)
        self.buffer = EMPTY
        self._unconfirmed = False
        logger.info("Discarded draft changes")
        return True

    def restore_from_backup(self) -> bool:
        """Replace draft and snapshot with the backup generation.

        Returns False when there is no backup. The restored forest is left
        uncommitted so the caller can confirm it with commit().
        """
        backup = self.repository.load_backup()
        if not backup:
            logger.info("No backup available")
            return False
        self.draft = clone_tree(backup)
        self.saved_snapshot = clone_tree(backup)
        self.buffer = EMPTY
        self._unconfirmed = True
        logger.info("Restored %d roots from backup", len(backup))
        return True

    # -- creation and edits -------------------------------------------------

    def add_root_folder(self, title: str = "New root") -> FolderNode:
        node = FolderNode(title=title)
        self.draft.append(node)
        logger.debug("Added root folder %s", node.id)
        return node

    def add_child_folder(self, parent_id: str, title: str = "New folder") -> FolderNode | None:
        parent = index.find_folder(self.draft, parent_id)
        if parent is None:
            return None
        node = FolderNode(title=title)
        parent.children.append(node)
        logger.debug("Added folder %s under %s", node.id, parent_id)
        return node

    def add_link(self, folder_id: str, title: str = "", url: str = "") -> LinkEntry | None:
        folder = index.find_folder(self.draft, folder_id)
        if folder is None:
            return None
        link = LinkEntry(title=title, url=url)
        folder.links.append(link)
        logger.debug("Added link %s under %s", link.id, folder_id)
        return link

    def rename_folder(self, folder_id: str, title: str) -> bool:
        folder = index.find_folder(self.draft, folder_id)
        if folder is None:
            return False
        folder.title = title
        return True

    def update_link(self, link_id: str, title: str | None = None, url: str | None = None) -> bool:
        link = index.find_link(self.draft, link_id)
        if link is None:
            return False
        if title is not None:
            link.title = title
        if url is not None:
            link.url = url
        return True

    def delete_folder(self, folder_id: str) -> bool:
        removed = index.detach_folder(self.draft, folder_id)
        if removed is None:
            return False
        logger.info("Deleted folder %s (%r) with its subtree", removed.id, removed.title)
        return True

    def delete_link(self, link_id: str) -> bool:
        removed = index.detach_link(self.draft, link_id)
        if removed is None:
            return False
        logger.info("Deleted link %s", removed.id)
        return True

    # -- reordering and moves -------------------------------------------------

    def move_folder(self, folder_id: str, direction: int) -> bool:
        return operations.move_folder(self.draft, folder_id, direction)

    def move_link(self, link_id: str, direction: int) -> bool:
        return operations.move_link(self.draft, link_id, direction)

    def cut_folder(self, folder_id: str) -> bool:
        node = index.detach_folder(self.draft, folder_id)
        if node is None:
            return False
        self.buffer = HoldingFolder(node)
        logger.debug("Cut folder %s", folder_id)
        return True

    def cut_link(self, link_id: str) -> bool:
        link = index.detach_link(self.draft, link_id)
        if link is None:
            return False
        self.buffer = HoldingLink(link)
        logger.debug("Cut link %s", link_id)
        return True

    def paste_into(self, folder_id: str | None) -> bool:
        """Append the held item to ``folder_id`` (None: forest root, folders only)."""
        held = self.buffer
        at_root = folder_id is None or folder_id == index.ROOT
        if isinstance(held, HoldingFolder):
            parent = None if at_root else index.find_folder(self.draft, folder_id)
            if not at_root and parent is None:
                return False
            size = len(parent.children) if parent is not None else len(self.draft)
            if not index.insert_folder(self.draft, folder_id, size, held.node):
                return False
        elif isinstance(held, HoldingLink):
            if at_root:
                return False
            folder = index.find_folder(self.draft, folder_id)
            if folder is None:
                return False
            folder.links.append(held.link)
        else:
            return False
        self.buffer = EMPTY
        logger.debug("Pasted held item into %s", folder_id or index.ROOT)
        return True

    def discard_buffer(self) -> None:
        self.buffer = EMPTY

    def relocate_folder(self, folder_id: str, target_id: str | None, position: int | None = None) -> bool:
        """Move a folder under ``target_id`` (None: forest root) in one step.

        Raises CycleError, leaving the draft untouched, when the target is
        the folder itself or one of its descendants.
        """
        node = index.find_folder(self.draft, folder_id)
        if node is None:
            return False
        if target_id is not None and target_id != index.ROOT:
            if index.is_descendant(node, target_id):
                raise CycleError(f"Cannot move folder {folder_id!r} into its own subtree ({target_id!r})")
            if index.find_folder(self.draft, target_id) is None:
                return False
        index.detach_folder(self.draft, folder_id)
        if position is None:
            target = index.find_folder(self.draft, target_id) if target_id not in (None, index.ROOT) else None
            position = len(target.children) if target is not None else len(self.draft)
        return index.insert_folder(self.draft, target_id, position, node)

    def relocate_link(self, link_id: str, folder_id: str, position: int | None = None) -> bool:
        if index.find_folder(self.draft, folder_id) is None:
            return False
        link = index.detach_link(self.draft, link_id)
        if link is None:
            return False
        folder = index.find_folder(self.draft, folder_id)
        return index.insert_link(self.draft, folder_id, len(folder.links) if position is None else position, link)

    # -- whole-forest operations ----------------------------------------------

    def sort(self) -> None:
        operations.sort_tree_in_place(self.draft)

    def prune(self) -> None:
        self.draft = operations.prune_empty_folders(self.draft)

    def set_query(self, query: str) -> None:
        self.query = query.strip()

    def clear_query(self) -> None:
        self.query = ""

    def view(self, query: str | None = None) -> Tree:
        """Search projection of the draft; the draft itself is not touched."""
        return filter_tree(self.draft, self.query if query is None else query.strip())

    # -- import / export ------------------------------------------------------

    def export_text(self) -> str:
        return encode_text(self.draft)

    def import_text(self, text: str) -> int:
        """Replace the draft with a decoded text export; returns the number of roots."""
        self.draft = decode_text(text)
        self.buffer = EMPTY
        logger.info("Imported %d roots from text", len(self.draft))
        return len(self.draft)

    def export_json(self) -> list[dict[str, Any]]:
        return dump_tree(self.draft)

    def import_json(self, raw: Any) -> int:
        self.draft = normalize_tree(raw)
        self.buffer = EMPTY
        logger.info("Imported %d roots from interchange data", len(self.draft))
        return len(self.draft)


__all__ = [
    "EMPTY",
    "EditSession",
    "EmptyBuffer",
    "HoldingFolder",
    "HoldingLink",
    "MoveBuffer",
]
