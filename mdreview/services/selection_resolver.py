"""Map a selection in the rendered preview back to source line numbers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mdreview.core.dom import BoundaryPoint, Element, Node, Selection, Text
from mdreview.core.metrics import record_selection_resolution
from mdreview.schemas.selection import SelectionAnchor, SelectionPointPayload, SelectionPayload

logger = logging.getLogger(__name__)


def nearest_annotated(node: Node) -> Element | None:
    """Closest ancestor-or-self carrying a source line annotation."""
    for candidate in node.ancestors():
        if isinstance(candidate, Element) and candidate.line_start is not None:
            return candidate
    return None


def line_at_point(point: BoundaryPoint) -> int | None:
    """Source line of a single selection endpoint.

    The annotated ancestor gives the block's first line; newlines inside the
    endpoint's own text node before the offset push it further down.
    """
    annotated = nearest_annotated(point.node)
    if annotated is None:
        return None

    extra_newlines = 0
    if isinstance(point.node, Text):
        extra_newlines = point.node.data[: max(point.offset, 0)].count("\n")

    return annotated.line_start + extra_newlines


@dataclass(frozen=True)
class ResolvedSelection:
    anchor: SelectionAnchor
    selected_text: str


def resolve_with_text(selection: Selection, container: Element) -> ResolvedSelection | None:
    """Resolve a selection to its line anchor and the selected text.

    Returns ``None`` for collapsed selections, selections leaving the
    container, and endpoints without an annotated ancestor.
    """
    if selection.is_collapsed or not selection.within(container):
        record_selection_resolution(False)
        return None

    anchor_line = line_at_point(selection.anchor)
    focus_line = line_at_point(selection.focus)
    if anchor_line is None or focus_line is None:
        record_selection_resolution(False)
        return None

    start_line = min(anchor_line, focus_line)
    end_line = max(anchor_line, focus_line)

    # Double-click / line-end selections pick up the newline that opens the
    # next block; don't count that block.
    selected_text = selection.to_string(container)
    if selected_text.endswith("\n") and start_line < end_line:
        end_line = start_line + selected_text.rstrip("\n").count("\n")

    record_selection_resolution(True)
    return ResolvedSelection(
        anchor=SelectionAnchor(start_line=start_line, end_line=end_line),
        selected_text=selected_text,
    )


def resolve_selection(selection: Selection, container: Element) -> SelectionAnchor | None:
    resolved = resolve_with_text(selection, container)
    return resolved.anchor if resolved else None


def _point_from_payload(container: Element, payload: SelectionPointPayload) -> BoundaryPoint:
    point = BoundaryPoint(container.node_at(payload.path), payload.offset)
    if point.offset > point.max_offset:
        raise LookupError(f"offset {point.offset} past end of node")
    return point


def selection_from_payload(container: Element, payload: SelectionPayload) -> Selection | None:
    """Rebuild a selection sent as child-index paths. Bad paths give ``None``."""
    try:
        anchor = _point_from_payload(container, payload.anchor)
        focus = _point_from_payload(container, payload.focus)
    except LookupError:
        logger.debug("Selection path does not exist in rendered tree")
        return None
    return Selection(anchor, focus)
