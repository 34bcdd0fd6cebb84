"""Lookups and structural mutation primitives over a forest.

Locate functions hand back the list that directly owns the match plus
its position, so a caller can remove, replace or insert next to it with
a single write. A missing id is reported as ``None`` (or ``False`` for
inserts), never as an exception.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from .errors import CycleError
from .models import FolderNode, LinkEntry, Tree

logger = logging.getLogger(__name__)

# Parent id meaning "the forest itself".
ROOT = "__root__"


@dataclass
class FolderLocation:
    owner: list[FolderNode]
    index: int
    parent: FolderNode | None

    @property
    def node(self) -> FolderNode:
        return self.owner[self.index]


@dataclass
class LinkLocation:
    folder: FolderNode
    index: int

    @property
    def link(self) -> LinkEntry:
        return self.folder.links[self.index]


def iter_folders(tree: Tree) -> Iterator[FolderNode]:
    """Depth-first pre-order walk over every folder of the forest."""
    for node in tree:
        yield node
        yield from iter_folders(node.children)


def locate_folder(tree: Tree, folder_id: str, parent: FolderNode | None = None) -> FolderLocation | None:
    for i, node in enumerate(tree):
        if node.id == folder_id:
            return FolderLocation(tree, i, parent)
        found = locate_folder(node.children, folder_id, node)
        if found is not None:
            return found
    return None


def locate_link_owner(tree: Tree, link_id: str) -> LinkLocation | None:
    for node in tree:
        for i, link in enumerate(node.links):
            if link.id == link_id:
                return LinkLocation(node, i)
        found = locate_link_owner(node.children, link_id)
        if found is not None:
            return found
    return None


def find_folder(tree: Tree, folder_id: str) -> FolderNode | None:
    loc = locate_folder(tree, folder_id)
    return loc.node if loc else None


def find_link(tree: Tree, link_id: str) -> LinkEntry | None:
    loc = locate_link_owner(tree, link_id)
    return loc.link if loc else None


def detach_folder(tree: Tree, folder_id: str) -> FolderNode | None:
    """Remove a folder (with its whole subtree) and return it."""
    loc = locate_folder(tree, folder_id)
    if loc is None:
        return None
    return loc.owner.pop(loc.index)


def detach_link(tree: Tree, link_id: str) -> LinkEntry | None:
    loc = locate_link_owner(tree, link_id)
    if loc is None:
        return None
    return loc.folder.links.pop(loc.index)


def is_descendant(node: FolderNode, candidate_id: str) -> bool:
    """True when ``candidate_id`` is ``node`` itself or lies anywhere below it."""
    if node.id == candidate_id:
        return True
    return any(is_descendant(child, candidate_id) for child in node.children)


def _clamp(index: int, size: int) -> int:
    if index < 0:
        return 0
    return min(index, size)


def insert_folder(tree: Tree, parent_id: str | None, index: int, node: FolderNode) -> bool:
    """Insert ``node`` at ``index`` under ``parent_id`` (forest root for None/ROOT).

    ``node`` must already be detached. Raises ValueError when a folder
    with its id is still in ``tree``, CycleError when the target parent is
    the node or one of its descendants; returns False when the parent does
    not exist.
    """
    if locate_folder(tree, node.id) is not None:
        raise ValueError(f"Folder {node.id!r} is still attached; detach it before inserting")
    if parent_id is None or parent_id == ROOT:
        tree.insert(_clamp(index, len(tree)), node)
        return True
    if is_descendant(node, parent_id):
        raise CycleError(f"Cannot move folder {node.id!r} into its own subtree ({parent_id!r})")
    parent = find_folder(tree, parent_id)
    if parent is None:
        logger.debug("insert_folder: parent %s not found", parent_id)
        return False
    parent.children.insert(_clamp(index, len(parent.children)), node)
    return True


def insert_link(tree: Tree, folder_id: str, index: int, link: LinkEntry) -> bool:
    folder = find_folder(tree, folder_id)
    if folder is None:
        logger.debug("insert_link: folder %s not found", folder_id)
        return False
    folder.links.insert(_clamp(index, len(folder.links)), link)
    return True


__all__ = [
    "ROOT",
    "FolderLocation",
    "LinkLocation",
    "detach_folder",
    "detach_link",
    "find_folder",
    "find_link",
    "insert_folder",
    "insert_link",
    "is_descendant",
    "iter_folders",
    "locate_folder",
    "locate_link_owner",
]
