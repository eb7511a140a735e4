"""Hosting view for one open markdown file.

Loads content, renders the annotated tree, binds the file's comment store
and re-targets the selection controller. Fetches are not cancelled; a
generation counter makes late results of superseded loads a no-op.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from mdreview.core.dom import Element
from mdreview.core.structured_logging import log_json
from mdreview.services.annotator import MarkdownRenderer
from mdreview.services.comment_store import CommentRepository, CommentStore
from mdreview.services.controller import SelectionCommentController
from mdreview.services.file_service import MarkdownDocument

logger = logging.getLogger(__name__)

DocumentLoader = Callable[[str], Awaitable[MarkdownDocument]]


class DocumentView:
    def __init__(
        self,
        loader: DocumentLoader,
        renderer: MarkdownRenderer,
        repository: CommentRepository,
        controller: SelectionCommentController,
    ) -> None:
        self.loader = loader
        self.renderer = renderer
        self.repository = repository
        self.controller = controller
        self.generation = 0
        self.path: str | None = None
        self.document: MarkdownDocument | None = None
        self.tree: Element | None = None
        self.store: CommentStore | None = None

    @property
    def comments_key(self) -> str | None:
        """Comments are keyed by path; single-file documents fall back to the file name."""
        if self.document is None:
            return self.path
        return self.document.path or self.path or self.document.filename

    async def open(self, path: str) -> MarkdownDocument | None:
        """Load ``path``; returns ``None`` if a newer load superseded this one."""
        self.generation += 1
        generation = self.generation
        self.path = path

        document = await self.loader(path)

        if generation != self.generation:
            log_json(
                logger,
                logging.DEBUG,
                "document_load_discarded",
                path=path,
                generation=generation,
                current_generation=self.generation,
            )
            return None

        self.document = document
        self.tree = self.renderer.render_tree(document.content)
        self.store = self.repository.store_for(self.comments_key)
        self.controller.attach(self.tree, self.store)
        return document

    async def reload(self) -> MarkdownDocument | None:
        if self.path is None:
            return None
        return await self.open(self.path)

    async def handle_path_changed(self, path: str) -> bool:
        """Reload when the changed file is the one on screen."""
        if self.path is None or path != self.path:
            return False
        return await self.reload() is not None
