"""Minimal rendered-document tree used for selection mapping.

The preview's HTML is parsed once into ``Element``/``Text`` nodes with
parent pointers. Only what selection handling needs is modelled: tree
walking, text content, boundary points, ranges and selections.
"""

from __future__ import annotations

from collections.abc import Iterator

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

LINE_START_ATTR = "data-line-start"
CONTAINER_CLASS = "markdown-content"

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


class Node:
    """Base tree node. Equality is identity."""

    def __init__(self) -> None:
        self.parent: Element | None = None

    @property
    def line_start(self) -> int | None:
        return None

    @property
    def text_content(self) -> str:
        raise NotImplementedError

    def ancestors(self, include_self: bool = True) -> Iterator[Node]:
        node: Node | None = self if include_self else self.parent
        while node is not None:
            yield node
            node = node.parent

    def is_within(self, root: Node) -> bool:
        """True if ``root`` is this node or one of its ancestors."""
        return any(node is root for node in self.ancestors())

    def detach(self) -> None:
        if self.parent is not None:
            self.parent.remove(self)


class Text(Node):
    def __init__(self, data: str) -> None:
        super().__init__()
        self.data = data

    @property
    def text_content(self) -> str:
        return self.data

    def __repr__(self) -> str:
        return f"Text({self.data!r})"


class Element(Node):
    def __init__(
        self,
        tag: str,
        attrs: dict[str, str] | None = None,
        children: list[Node] | None = None,
    ) -> None:
        super().__init__()
        self.tag = tag
        self.attrs: dict[str, str] = dict(attrs or {})
        self.children: list[Node] = []
        for child in children or []:
            self.append(child)

    def __repr__(self) -> str:
        return f"Element({self.tag!r}, line_start={self.line_start})"

    @property
    def line_start(self) -> int | None:
        raw = self.attrs.get(LINE_START_ATTR)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            return None

    @property
    def text_content(self) -> str:
        return "".join(node.data for node in self.iter_text())

    def append(self, child: Node) -> Node:
        child.detach()
        child.parent = self
        self.children.append(child)
        return child

    def remove(self, child: Node) -> None:
        self.children.remove(child)
        child.parent = None

    def iter_descendants(self) -> Iterator[Node]:
        """Yield every descendant in document order."""
        for child in self.children:
            yield child
            if isinstance(child, Element):
                yield from child.iter_descendants()

    def iter_text(self) -> Iterator[Text]:
        for node in self.iter_descendants():
            if isinstance(node, Text):
                yield node

    def find_all(self, tag: str) -> list[Element]:
        return [n for n in self.iter_descendants() if isinstance(n, Element) and n.tag == tag]

    def path_of(self, node: Node) -> list[int]:
        """Child-index path from this element down to ``node``."""
        path: list[int] = []
        current = node
        while current is not self:
            parent = current.parent
            if parent is None:
                raise ValueError("node is not inside this element")
            path.append(parent.children.index(current))
            current = parent
        path.reverse()
        return path

    def node_at(self, path: list[int]) -> Node:
        """Inverse of ``path_of``. Raises ``LookupError`` on a bad path."""
        node: Node = self
        for index in path:
            if not isinstance(node, Element) or index < 0 or index >= len(node.children):
                raise LookupError(f"invalid node path: {path}")
            node = node.children[index]
        return node


class BoundaryPoint:
    """A position in the tree, as in the DOM.

    For a ``Text`` node ``offset`` counts characters; for an ``Element`` it
    counts children (the point sits before child ``offset``).
    """

    __slots__ = ("node", "offset")

    def __init__(self, node: Node, offset: int) -> None:
        self.node = node
        self.offset = offset

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoundaryPoint):
            return NotImplemented
        return self.node is other.node and self.offset == other.offset

    def __hash__(self) -> int:
        return hash((id(self.node), self.offset))

    def __repr__(self) -> str:
        return f"BoundaryPoint({self.node!r}, {self.offset})"

    @property
    def max_offset(self) -> int:
        if isinstance(self.node, Text):
            return len(self.node.data)
        if isinstance(self.node, Element):
            return len(self.node.children)
        return 0


def _text_starts(container: Element) -> dict[Node, int]:
    """Character offset (within ``container.text_content``) where each node starts."""
    starts: dict[Node, int] = {container: 0}
    position = 0
    for node in container.iter_descendants():
        starts[node] = position
        if isinstance(node, Text):
            position += len(node.data)
    return starts


def text_position(container: Element, point: BoundaryPoint, starts: dict[Node, int] | None = None) -> int:
    """Map a boundary point to a character offset in the container's text."""
    if starts is None:
        starts = _text_starts(container)
    node = point.node
    if node not in starts:
        raise ValueError("boundary point is outside the container")
    offset = max(0, min(point.offset, point.max_offset))
    if isinstance(node, Text):
        return starts[node] + offset
    if not isinstance(node, Element):
        raise TypeError(f"unsupported boundary node: {type(node).__name__}")
    if offset < len(node.children):
        return starts[node.children[offset]]
    return starts[node] + len(node.text_content)


class Range:
    """A start/end pair of boundary points in document order."""

    def __init__(self, start: BoundaryPoint, end: BoundaryPoint) -> None:
        self.start = start
        self.end = end

    @property
    def collapsed(self) -> bool:
        return self.start == self.end

    def clone(self) -> Range:
        return Range(
            BoundaryPoint(self.start.node, self.start.offset),
            BoundaryPoint(self.end.node, self.end.offset),
        )

    def is_valid_within(self, container: Element) -> bool:
        """Both endpoints still attached to ``container`` with in-bounds offsets."""
        for point in (self.start, self.end):
            if not point.node.is_within(container):
                return False
            if point.offset < 0 or point.offset > point.max_offset:
                return False
        return True

    def text(self, container: Element) -> str:
        starts = _text_starts(container)
        begin = text_position(container, self.start, starts)
        end = text_position(container, self.end, starts)
        return container.text_content[begin:end]


class Selection:
    """A user selection: where it started (anchor) and where it ended (focus)."""

    def __init__(self, anchor: BoundaryPoint | None, focus: BoundaryPoint | None) -> None:
        self.anchor = anchor
        self.focus = focus

    @classmethod
    def of(cls, anchor_node: Node, anchor_offset: int, focus_node: Node, focus_offset: int) -> Selection:
        return cls(BoundaryPoint(anchor_node, anchor_offset), BoundaryPoint(focus_node, focus_offset))

    @property
    def is_collapsed(self) -> bool:
        return self.anchor is None or self.focus is None or self.anchor == self.focus

    def within(self, container: Element) -> bool:
        return (
            self.anchor is not None
            and self.focus is not None
            and self.anchor.node.is_within(container)
            and self.focus.node.is_within(container)
        )

    def to_range(self, container: Element) -> Range:
        """Order anchor/focus into a ``Range`` (backwards selections flip)."""
        if self.anchor is None or self.focus is None:
            raise ValueError("selection has no endpoints")
        starts = _text_starts(container)
        anchor_pos = text_position(container, self.anchor, starts)
        focus_pos = text_position(container, self.focus, starts)
        if focus_pos < anchor_pos:
            return Range(self.focus, self.anchor)
        return Range(self.anchor, self.focus)

    def to_string(self, container: Element) -> str:
        if self.is_collapsed or not self.within(container):
            return ""
        return self.to_range(container).text(container)


def _convert(source: Tag, target: Element) -> None:
    for child in source.children:
        if isinstance(child, Tag):
            attrs = {
                key: " ".join(value) if isinstance(value, list) else str(value)
                for key, value in child.attrs.items()
            }
            element = Element(child.name, attrs)
            target.append(element)
            _convert(child, element)
        elif isinstance(child, NavigableString) and not isinstance(child, _SKIPPED_STRINGS):
            target.append(Text(str(child)))


def parse_fragment(html: str) -> Element:
    """Parse rendered HTML into a tree rooted at the preview container."""
    soup = BeautifulSoup(html, "html.parser")
    container = Element("div", {"class": CONTAINER_CLASS})
    _convert(soup, container)
    return container
