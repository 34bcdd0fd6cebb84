"""Turn untrusted input into a well-formed forest.

Normalization never raises on malformed data: entries that are not
folder-shaped are dropped, missing or mistyped fields fall back to
defaults, and ids are preserved whenever they are usable so identity
survives a normalize -> mutate -> normalize round trip.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from .ids import IdSource, new_id
from .models import FolderNode, LinkEntry, Tree

logger = logging.getLogger(__name__)


@dataclass
class NormalizeReport:
    tree: Tree = field(default_factory=list)
    dropped_folders: int = 0
    defaulted_fields: int = 0


class _Normalizer:
    def __init__(self, id_source: IdSource):
        self.id_source = id_source
        self.seen_ids: set[str] = set()
        self.report = NormalizeReport()

    def run(self, raw: Any) -> NormalizeReport:
        self.report.tree = self._folders(raw)
        return self.report

    def _folders(self, raw: Any) -> list[FolderNode]:
        out = []
        for candidate in _as_list(raw):
            node = self._folder(candidate)
            if node is None:
                self.report.dropped_folders += 1
                continue
            out.append(node)
        return out

    def _folder(self, candidate: Any) -> FolderNode | None:
        data = _as_mapping(candidate)
        if data is None or data.get("type") != "folder":
            return None
        folder_id = self._claim_id(data.get("id"))
        title = self._text(data.get("title"))
        children = self._folders(data.get("children"))
        links = [self._link(item) for item in _as_list(data.get("links"))]
        return FolderNode(id=folder_id, title=title, children=children, links=links)

    def _link(self, candidate: Any) -> LinkEntry:
        data = _as_mapping(candidate)
        if data is None:
            self.report.defaulted_fields += 3
            data = {}
        return LinkEntry(
            id=self._claim_id(data.get("id")),
            title=self._text(data.get("title")),
            url=self._text(data.get("url")),
        )

    def _claim_id(self, value: Any) -> str:
        if isinstance(value, str) and value and value not in self.seen_ids:
            self.seen_ids.add(value)
            return value
        self.report.defaulted_fields += 1
        fresh = self.id_source()
        while fresh in self.seen_ids:
            fresh = self.id_source()
        self.seen_ids.add(fresh)
        return fresh

    def _text(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        self.report.defaulted_fields += 1
        return ""


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _as_mapping(value: Any) -> Mapping[str, Any] | None:
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, Mapping):
        return value
    return None


def normalize_with_report(raw: Any, id_source: IdSource = new_id) -> NormalizeReport:
    """Normalize ``raw`` and report how much of it had to be dropped or defaulted."""
    report = _Normalizer(id_source).run(raw)
    if report.dropped_folders or report.defaulted_fields:
        logger.debug(
            "Normalized forest: dropped %d folder entries, defaulted %d fields",
            report.dropped_folders,
            report.defaulted_fields,
        )
    return report


def normalize_tree(raw: Any, id_source: IdSource = new_id) -> Tree:
    return normalize_with_report(raw, id_source).tree


__all__ = ["NormalizeReport", "normalize_tree", "normalize_with_report"]
