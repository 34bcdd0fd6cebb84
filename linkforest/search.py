"""Search view over a forest: matching links plus their ancestor chain."""

from __future__ import annotations

from .models import FolderNode, LinkEntry, Tree, clone_tree


def link_matches(link: LinkEntry, query: str) -> bool:
    needle = query.lower()
    return needle in (link.title or "").lower() or needle in (link.url or "").lower()


def tree_matches(node: FolderNode, query: str) -> bool:
    """True when the folder, one of its links or any descendant matches."""
    if query.lower() in (node.title or "").lower():
        return True
    if any(link_matches(link, query) for link in node.links):
        return True
    return any(tree_matches(child, query) for child in node.children)


def _filter_node(node: FolderNode, query: str) -> FolderNode | None:
    title_match = query.lower() in (node.title or "").lower()
    links = [link.model_copy() for link in node.links if link_matches(link, query)]
    children = []
    for child in node.children:
        filtered = _filter_node(child, query)
        if filtered is not None:
            children.append(filtered)
    if title_match or links or children:
        return FolderNode(id=node.id, title=node.title, links=links, children=children)
    return None


def filter_tree(tree: Tree, query: str) -> Tree:
    """Pruned copy of ``tree`` for ``query``; the source is never modified.

    An empty query yields a full deep copy.
    """
    if not query:
        return clone_tree(tree)
    out = []
    for node in tree:
        filtered = _filter_node(node, query)
        if filtered is not None:
            out.append(filtered)
    return out


__all__ = ["filter_tree", "link_matches", "tree_matches"]
