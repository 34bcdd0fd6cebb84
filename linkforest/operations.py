"""Reordering, sorting and pruning of a forest."""

from __future__ import annotations

import logging
from typing import Any

from .index import locate_folder, locate_link_owner
from .models import FolderNode, Tree

logger = logging.getLogger(__name__)


def swap_siblings(items: list[Any], i: int, j: int) -> None:
    """Swap two positions in place; out-of-range indices leave ``items`` untouched."""
    if i < 0 or j < 0 or i >= len(items) or j >= len(items):
        return
    items[i], items[j] = items[j], items[i]


def _step(items: list[Any], index: int, direction: int) -> bool:
    target = index + direction
    if target < 0 or target >= len(items):
        return False
    swap_siblings(items, index, target)
    return True


def move_folder(tree: Tree, folder_id: str, direction: int) -> bool:
    """Shift a folder one place up (-1) or down (+1) among its siblings."""
    loc = locate_folder(tree, folder_id)
    if loc is None:
        return False
    return _step(loc.owner, loc.index, direction)


def move_link(tree: Tree, link_id: str, direction: int) -> bool:
    loc = locate_link_owner(tree, link_id)
    if loc is None:
        return False
    return _step(loc.folder.links, loc.index, direction)


def _title_key(item: Any) -> str:
    return (item.title or "").lower()


def sort_tree_in_place(tree: Tree) -> None:
    """Sort folders and links at every level by case-insensitive title.

    There is no secondary key: the relative order of entries whose titles
    compare equal is not guaranteed to be meaningful.
    """
    tree.sort(key=_title_key)
    for node in tree:
        sort_tree_in_place(node.children)
        node.links.sort(key=_title_key)


def prune_empty_folders(tree: Tree) -> Tree:
    """Drop folders left with no links and no children once their own subtree is pruned."""
    out: list[FolderNode] = []
    for node in tree:
        node.children = prune_empty_folders(node.children)
        if not node.children and not node.links:
            logger.debug("Pruned empty folder %s (%r)", node.id, node.title)
            continue
        out.append(node)
    return out


def count_nodes(tree: Tree) -> tuple[int, int]:
    """Return (folders, links) totals over the whole forest."""
    folders = links = 0
    for node in tree:
        sub_folders, sub_links = count_nodes(node.children)
        folders += 1 + sub_folders
        links += len(node.links) + sub_links
    return folders, links


__all__ = [
    "count_nodes",
    "move_folder",
    "move_link",
    "prune_empty_folders",
    "sort_tree_in_place",
    "swap_siblings",
]
