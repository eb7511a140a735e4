"""Selection-to-comment controller.

State machine driving the comment popover of the preview::

    IDLE --selection--> SELECTED --open_composer--> COMPOSING
      ^                    |                            |
      +----- clear --------+<----- submit / cancel -----+

Layout (client rectangles) and the clipboard are injected ports so the
controller runs against any front end, or against fakes in tests.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from mdreview.core.dom import Element, Node, Range, Selection
from mdreview.core.errors import ClipboardError
from mdreview.core.structured_logging import log_json
from mdreview.schemas.comment import Comment
from mdreview.schemas.selection import SelectionAnchor
from mdreview.services.comment_export import format_comment, format_comments
from mdreview.services.comment_store import CommentStore
from mdreview.services.selection_resolver import resolve_with_text

logger = logging.getLogger(__name__)

POPOVER_OFFSET_PX = 8


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    def translated(self, dx: float, dy: float) -> Rect:
        return Rect(self.left + dx, self.top + dy, self.width, self.height)


class LayoutPort(Protocol):
    """Geometry of the rendered preview, in viewport coordinates."""

    def client_rects(self, range_: Range) -> list[Rect]: ...

    def bounding_rect(self, range_: Range) -> Rect: ...

    def container_rect(self) -> Rect: ...

    def container_scroll(self) -> tuple[float, float]: ...


class ClipboardPort(Protocol):
    """Writes text to the clipboard; may return an awaitable."""

    def write_text(self, text: str) -> Any: ...


class ControllerState(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    COMPOSING = "composing"


@dataclass(frozen=True)
class PopoverPosition:
    x: float
    y: float
    composing: bool = False


@dataclass
class PendingSelection:
    anchor: SelectionAnchor
    range: Range
    text: str


class SelectionCommentController:
    """Owns the pending anchor, the draft and the popover/highlight state."""

    def __init__(
        self,
        layout: LayoutPort,
        clipboard: ClipboardPort | None = None,
        container: Element | None = None,
        store: CommentStore | None = None,
    ) -> None:
        self.layout = layout
        self.clipboard = clipboard
        self.container = container
        self.store = store
        self.state = ControllerState.IDLE
        self.pending: PendingSelection | None = None
        self.popover: PopoverPosition | None = None
        self.highlight: list[Rect] = []
        self.draft = ""

    def attach(self, container: Element, store: CommentStore | None) -> None:
        """Point the controller at freshly rendered content.

        An open draft survives; its frozen range now refers to detached
        nodes and is rejected on submit.
        """
        switching_files = store is not self.store
        self.container = container
        self.store = store
        if self.state is ControllerState.COMPOSING and not switching_files:
            return
        self._reset()

    # -- selection -------------------------------------------------------

    def on_selection_change(self, selection: Selection | None) -> None:
        if self.state is ControllerState.COMPOSING:
            return

        if selection is None or self.container is None:
            self._reset()
            return

        resolved = resolve_with_text(selection, self.container)
        if resolved is None:
            self._reset()
            return

        live_range = selection.to_range(self.container)
        self.pending = PendingSelection(
            anchor=resolved.anchor,
            range=live_range,
            text=resolved.selected_text,
        )
        rect = self.layout.bounding_rect(live_range)
        self.popover = PopoverPosition(
            x=rect.left + rect.width / 2,
            y=rect.top - POPOVER_OFFSET_PX,
        )
        self.state = ControllerState.SELECTED

    def open_composer(self) -> bool:
        """Freeze the pending selection and start a draft."""
        if self.state is not ControllerState.SELECTED or self.pending is None:
            return False

        self.pending.range = self.pending.range.clone()
        rects = self.layout.client_rects(self.pending.range)
        self.highlight = self._container_relative(rects)

        if rects:
            top_rect = min(rects, key=lambda r: r.top)
            self.popover = PopoverPosition(
                x=top_rect.left,
                y=top_rect.top - POPOVER_OFFSET_PX,
                composing=True,
            )
        elif self.popover is not None:
            self.popover = PopoverPosition(self.popover.x, self.popover.y, composing=True)

        self.draft = ""
        self.state = ControllerState.COMPOSING
        return True

    def _container_relative(self, rects: list[Rect]) -> list[Rect]:
        container_rect = self.layout.container_rect()
        scroll_left, scroll_top = self.layout.container_scroll()
        return [
            r.translated(scroll_left - container_rect.left, scroll_top - container_rect.top)
            for r in rects
        ]

    # -- composing -------------------------------------------------------

    def set_draft(self, text: str) -> None:
        if self.state is ControllerState.COMPOSING:
            self.draft = text

    @property
    def can_submit(self) -> bool:
        return self.state is ControllerState.COMPOSING and bool(self.draft.strip())

    def submit(self) -> Comment | None:
        """Store the draft against the frozen anchor and return to idle."""
        if not self.can_submit:
            return None

        pending = self.pending
        if (
            pending is None
            or self.store is None
            or self.container is None
            or not pending.range.is_valid_within(self.container)
        ):
            log_json(logger, logging.INFO, "comment_draft_discarded", reason="stale_anchor")
            self._reset()
            return None

        comment = self.store.add(
            self.draft,
            pending.text,
            pending.anchor.start_line,
            pending.anchor.end_line,
        )
        log_json(
            logger,
            logging.INFO,
            "comment_added",
            file_path=self.store.file_path,
            comment_id=comment.id,
            start_line=comment.start_line,
            end_line=comment.end_line,
        )
        self._reset()
        return comment

    def cancel(self) -> None:
        if self.state is ControllerState.COMPOSING:
            self._reset()

    def on_key(self, key: str, ctrl: bool = False, meta: bool = False) -> None:
        if self.state is not ControllerState.COMPOSING:
            return
        if key == "Enter" and (ctrl or meta):
            self.submit()
        elif key == "Escape":
            self.cancel()

    def on_pointer_down(self, target: Node | None, in_popover: bool = False) -> None:
        """Clicks outside the preview and popover drop the pending selection."""
        if self.state is ControllerState.COMPOSING or in_popover:
            return
        if target is not None and self.container is not None and target.is_within(self.container):
            return
        self._reset()

    def _reset(self) -> None:
        self.state = ControllerState.IDLE
        self.pending = None
        self.popover = None
        self.highlight = []
        self.draft = ""

    # -- comment list actions -------------------------------------------

    def copy_comment(self, comment: Comment) -> bool:
        if self.store is None:
            return False
        return self._copy(format_comment(self.store.file_path, comment))

    def copy_all(self) -> bool:
        if self.store is None or len(self.store) == 0:
            return False
        return self._copy(format_comments(self.store.file_path, self.store.list()))

    def _copy(self, text: str) -> bool:
        if self.clipboard is None:
            return False
        try:
            result = self.clipboard.write_text(text)
        except ClipboardError as exc:
            log_json(logger, logging.WARNING, "clipboard_copy_failed", error=str(exc))
            return False
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            task.add_done_callback(_log_copy_failure)
        return True


def _log_copy_failure(task: asyncio.Future) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log_json(logger, logging.WARNING, "clipboard_copy_failed", error=str(exc))
