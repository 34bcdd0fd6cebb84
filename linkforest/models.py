"""Pydantic models for the link forest: folders, links and the forest itself."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AnyUrl, BaseModel, Field, TypeAdapter, ValidationError

from .ids import new_id


class LinkEntry(BaseModel):
    """A titled url owned by exactly one folder."""

    id: str = Field(default_factory=new_id)
    title: str = ""
    url: str = ""


class FolderNode(BaseModel):
    """Folder holding ordered sub-folders and ordered links."""

    id: str = Field(default_factory=new_id)
    type: Literal["folder"] = "folder"
    title: str = ""
    children: list[FolderNode] = Field(default_factory=list)
    links: list[LinkEntry] = Field(default_factory=list)


Tree = list[FolderNode]

_url_adapter = TypeAdapter(AnyUrl)


# ---------------------------------------------------------------------------
# helpers


def clone_tree(tree: Tree) -> Tree:
    """Deep copy of a forest; no node instance is shared with the source."""
    return [node.model_copy(deep=True) for node in tree]


def dump_tree(tree: Tree) -> list[dict[str, Any]]:
    """Interchange form of a forest (plain lists and dicts)."""
    return [node.model_dump(mode="json") for node in tree]


def trees_equal(left: Tree, right: Tree) -> bool:
    return dump_tree(left) == dump_tree(right)


def is_valid_url(value: str) -> bool:
    """Syntactic url check, used for hints only."""
    if not value:
        return False
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


__all__ = [
    "FolderNode",
    "LinkEntry",
    "Tree",
    "clone_tree",
    "dump_tree",
    "is_valid_url",
    "trees_equal",
]
