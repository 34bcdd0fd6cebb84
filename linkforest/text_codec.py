"""Indented symbolic text format for exporting and importing a forest.

Layout::

    === LINK TREE ===

    📁 Work
      🔗 Mail
         https://mail.example
      📁 Projects
    <blank line between top-level folders>

Decoding is lenient: unknown lines are skipped and ids are always
regenerated, so a round trip keeps titles, urls, nesting and order but
not identity.
"""

from __future__ import annotations

from dataclasses import dataclass

from .ids import IdSource, new_id
from .models import FolderNode, LinkEntry, Tree

HEADER = "=== LINK TREE ==="
FOLDER_MARK = "📁"
LINK_MARK = "🔗"
INDENT = "  "
URL_PREFIX = "http"


def encode_text(tree: Tree) -> str:
    lines = [HEADER, ""]

    def walk(nodes: list[FolderNode], depth: int) -> None:
        indent = INDENT * depth
        for node in nodes:
            lines.append(f"{indent}{FOLDER_MARK} {node.title}")
            for link in node.links:
                lines.append(f"{indent}{INDENT}{LINK_MARK} {link.title}")
                lines.append(f"{indent}     {link.url}")
            walk(node.children, depth + 1)
            if depth == 0:
                lines.append("")

    walk(tree, 0)
    return "\n".join(lines)


@dataclass
class _Frame:
    depth: float
    folder: FolderNode | None
    children: list[FolderNode]


def _strip_mark(content: str, mark: str) -> str:
    return content.replace(mark, "", 1).strip()


def decode_text(text: str, id_source: IdSource = new_id) -> Tree:
    root: Tree = []
    stack = [_Frame(-1, None, root)]
    pending: LinkEntry | None = None

    for line in text.split("\n"):
        line = line.removesuffix("\r")
        if not line.strip() or line.startswith("==="):
            continue
        depth = (len(line) - len(line.lstrip(" "))) / 2
        content = line.strip()

        if content.startswith(FOLDER_MARK):
            folder = FolderNode(id=id_source(), title=_strip_mark(content, FOLDER_MARK))
            while len(stack) > 1 and stack[-1].depth >= depth:
                stack.pop()
            stack[-1].children.append(folder)
            stack.append(_Frame(depth, folder, folder.children))
            pending = None
        elif content.startswith(LINK_MARK):
            owner = stack[-1].folder
            if owner is None:
                pending = None
                continue
            pending = LinkEntry(id=id_source(), title=_strip_mark(content, LINK_MARK), url="")
            owner.links.append(pending)
        elif content.startswith(URL_PREFIX):
            if pending is not None:
                pending.url = content

    return root


__all__ = ["HEADER", "decode_text", "encode_text"]
