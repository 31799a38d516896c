"""Minimal HTML tree for the isolation pass.

Rendered markup is parsed into an arena: every node lives in one list and
refers to its parent and children by integer id, so the tree can be
walked and edited in place without reference cycles. Serialization writes
the tree back with as little normalization as possible:

- attribute order and valueless attributes are preserved;
- character references in text are kept verbatim;
- ``<script>``/``<style>`` content is raw text;
- void elements get no end tag, self-closing tags stay self-closing.

Built on the standard library ``html.parser``. The parser does not invent
``<html>``/``<head>``/``<body>`` wrappers, so documents and fragments parse
the same way.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from html.parser import HTMLParser

from plenti.utils.constants import RAW_TEXT_ELEMENTS, VOID_ELEMENTS

ROOT = 0


class NodeKind(Enum):
    ROOT = "root"
    ELEMENT = "element"
    TEXT = "text"
    RAW = "raw"  # comments, doctypes, processing instructions


@dataclass(slots=True)
class HtmlNode:
    kind: NodeKind
    tag: str = ""
    attrs: list[list[str | None]] = field(default_factory=list)
    data: str = ""
    parent: int = -1
    children: list[int] = field(default_factory=list)
    self_closing: bool = False


class HtmlTree:
    """Arena of ``HtmlNode`` objects rooted at id ``ROOT``."""

    __slots__ = ("nodes",)

    def __init__(self) -> None:
        self.nodes: list[HtmlNode] = [HtmlNode(NodeKind.ROOT)]

    def __getitem__(self, node_id: int) -> HtmlNode:
        return self.nodes[node_id]

    def add(self, node: HtmlNode, parent: int) -> int:
        node_id = len(self.nodes)
        node.parent = parent
        self.nodes.append(node)
        self.nodes[parent].children.append(node_id)
        return node_id

    def children(self, node_id: int = ROOT) -> list[int]:
        return self.nodes[node_id].children

    def parent(self, node_id: int) -> int:
        return self.nodes[node_id].parent

    def get_attr(self, node_id: int, name: str) -> str | None:
        for key, value in self.nodes[node_id].attrs:
            if key == name:
                return value if value is not None else ""
        return None

    def has_attr(self, node_id: int, name: str) -> bool:
        return any(key == name for key, _ in self.nodes[node_id].attrs)

    def set_attr(self, node_id: int, name: str, value: str) -> None:
        """Replace the first ``name`` attribute, or append one."""
        for pair in self.nodes[node_id].attrs:
            if pair[0] == name:
                pair[1] = value
                return
        self.nodes[node_id].attrs.append([name, value])

    def walk(self, node_id: int = ROOT) -> Iterator[int]:
        """Pre-order traversal below ``node_id`` (excluded)."""
        stack = list(reversed(self.nodes[node_id].children))
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self.nodes[current].children))

    def serialize(self, node_id: int = ROOT) -> str:
        out: list[str] = []
        self._write(node_id, out)
        return "".join(out)

    def _write(self, node_id: int, out: list[str]) -> None:
        node = self.nodes[node_id]
        if node.kind is NodeKind.ROOT:
            for child in node.children:
                self._write(child, out)
        elif node.kind is NodeKind.TEXT or node.kind is NodeKind.RAW:
            out.append(node.data)
        else:
            out.append(f"<{node.tag}")
            for name, value in node.attrs:
                out.append(f" {name}" if value is None else f' {name}="{value.replace(chr(34), "&quot;")}"')
            if node.self_closing and not node.children:
                out.append("/>")
                return
            out.append(">")
            if node.tag in VOID_ELEMENTS:
                return
            for child in node.children:
                self._write(child, out)
            out.append(f"</{node.tag}>")


class _TreeBuilder(HTMLParser):
    """Feeds ``html.parser`` events into an ``HtmlTree``."""

    def __init__(self, tree: HtmlTree) -> None:
        super().__init__(convert_charrefs=False)
        self.tree = tree
        self.open: list[int] = [ROOT]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        node_id = self.tree.add(
            HtmlNode(NodeKind.ELEMENT, tag=tag, attrs=[[k, v] for k, v in attrs]), self.open[-1]
        )
        if tag not in VOID_ELEMENTS:
            self.open.append(node_id)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.tree.add(
            HtmlNode(NodeKind.ELEMENT, tag=tag, attrs=[[k, v] for k, v in attrs], self_closing=True),
            self.open[-1],
        )

    def handle_endtag(self, tag: str) -> None:
        # Close up to the nearest matching open element; stray end tags are dropped.
        for index in range(len(self.open) - 1, 0, -1):
            if self.tree[self.open[index]].tag == tag:
                del self.open[index:]
                return

    def handle_data(self, data: str) -> None:
        parent = self.open[-1]
        kind = NodeKind.TEXT
        if parent != ROOT and self.tree[parent].tag in RAW_TEXT_ELEMENTS:
            kind = NodeKind.RAW
        children = self.tree.children(parent)
        if children and self.tree[children[-1]].kind is kind and kind is NodeKind.TEXT:
            self.tree[children[-1]].data += data
            return
        self.tree.add(HtmlNode(kind, data=data), parent)

    def handle_entityref(self, name: str) -> None:
        self.handle_data(f"&{name};")

    def handle_charref(self, name: str) -> None:
        self.handle_data(f"&#{name};")

    def handle_comment(self, data: str) -> None:
        self.tree.add(HtmlNode(NodeKind.RAW, data=f"<!--{data}-->"), self.open[-1])

    def handle_decl(self, decl: str) -> None:
        self.tree.add(HtmlNode(NodeKind.RAW, data=f"<!{decl}>"), self.open[-1])

    def handle_pi(self, data: str) -> None:
        self.tree.add(HtmlNode(NodeKind.RAW, data=f"<?{data}>"), self.open[-1])

    def unknown_decl(self, data: str) -> None:
        self.tree.add(HtmlNode(NodeKind.RAW, data=f"<![{data}]>"), self.open[-1])


def parse_html(markup: str) -> HtmlTree:
    """Parse a document or fragment into an ``HtmlTree``."""
    tree = HtmlTree()
    builder = _TreeBuilder(tree)
    builder.feed(markup)
    builder.close()
    return tree
