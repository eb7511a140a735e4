"""Per-file comment stores persisted to local key-value storage."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from operator import attrgetter
from typing import Any, Literal
from uuid import uuid4

from pydantic import ValidationError

from mdreview.core.errors import EmptyCommentError, StorageError
from mdreview.core.metrics import record_comment_mutation, record_storage_failure
from mdreview.core.storage import KeyValueStorage
from mdreview.core.structured_logging import log_json
from mdreview.schemas.comment import Comment

logger = logging.getLogger(__name__)

COMMENTS_STORAGE_KEY = "md-preview-comments"

SortOrder = Literal["start_line", "created_at", "insertion"]


class CommentListing:
    """Read-only, restartable iteration over a snapshot of a store.

    Sorting happens on each iteration; ``sorted`` is stable so ties keep
    insertion order.
    """

    def __init__(self, comments: list[Comment], sort_by: SortOrder = "start_line") -> None:
        if sort_by not in ("start_line", "created_at", "insertion"):
            raise ValueError(f"Unsupported sort order: {sort_by}")
        self._comments = tuple(comments)
        self._sort_by = sort_by

    def __iter__(self) -> Iterator[Comment]:
        if self._sort_by == "insertion":
            return iter(self._comments)
        return iter(sorted(self._comments, key=attrgetter(self._sort_by)))

    def __len__(self) -> int:
        return len(self._comments)


class CommentStore:
    """Insertion-ordered comments of a single file."""

    def __init__(
        self,
        file_path: str,
        comments: list[Comment] | None = None,
        on_change: Callable[[str, list[Comment]], None] | None = None,
    ) -> None:
        self.file_path = file_path
        self._comments: dict[str, Comment] = {c.id: c for c in comments or []}
        self._on_change = on_change

    def __len__(self) -> int:
        return len(self._comments)

    def __contains__(self, comment_id: object) -> bool:
        return comment_id in self._comments

    def get(self, comment_id: str) -> Comment | None:
        return self._comments.get(comment_id)

    def add(self, text: str, selected_text: str, start_line: int, end_line: int) -> Comment:
        """Append a new comment. Raises ``EmptyCommentError`` on blank text."""
        text = text.strip()
        if not text:
            raise EmptyCommentError()

        comment = Comment(
            id=str(uuid4()),
            text=text,
            selected_text=selected_text,
            start_line=start_line,
            end_line=end_line,
            created_at=datetime.now(UTC),
        )
        self._comments[comment.id] = comment
        record_comment_mutation("add")
        self._changed()
        return comment

    def edit(self, comment_id: str, new_text: str) -> Comment | None:
        """Replace a comment's text; ``None`` if the id is unknown or text is blank."""
        existing = self._comments.get(comment_id)
        new_text = new_text.strip()
        if existing is None or not new_text:
            return None

        updated = existing.model_copy(update={"text": new_text})
        self._comments[comment_id] = updated
        record_comment_mutation("edit")
        self._changed()
        return updated

    def delete(self, comment_id: str) -> bool:
        if self._comments.pop(comment_id, None) is None:
            return False
        record_comment_mutation("delete")
        self._changed()
        return True

    def delete_all(self) -> None:
        self._comments.clear()
        record_comment_mutation("delete_all")
        self._changed()

    def list(self, sort_by: SortOrder = "start_line") -> CommentListing:
        return CommentListing(list(self._comments.values()), sort_by)

    def to_storage(self) -> list[dict[str, Any]]:
        return [c.to_storage() for c in self._comments.values()]

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self.file_path, list(self._comments.values()))


class CommentRepository:
    """All comment stores of one profile, kept under a single storage key.

    The persisted value maps file path to a list of comment JSON objects.
    The in-memory stores are authoritative; storage failures are logged and
    never propagate out of a mutation. While the stored value cannot be
    read, writes are held back so other files' comments are not overwritten.
    """

    def __init__(self, storage: KeyValueStorage, key: str = COMMENTS_STORAGE_KEY) -> None:
        self.storage = storage
        self.key = key
        self._stores: dict[str, CommentStore] = {}
        self._snapshot: dict[str, list[dict[str, Any]]] | None = None
        self._unsaved: set[str] = set()

    @property
    def read_degraded(self) -> bool:
        return self._snapshot is None and bool(self._unsaved)

    def _load_snapshot(self) -> dict[str, list[dict[str, Any]]] | None:
        """The persisted mapping, or ``None`` while storage cannot be read."""
        if self._snapshot is not None:
            return self._snapshot

        try:
            raw = self.storage.get(self.key)
        except StorageError as exc:
            record_storage_failure("read")
            log_json(logger, logging.ERROR, "comments_load_failed", key=self.key, error=str(exc))
            return None

        if raw is None:
            raw = {}
        elif not isinstance(raw, dict):
            log_json(logger, logging.WARNING, "comments_invalid_payload", key=self.key)
            raw = {}

        self._snapshot = {
            path: records for path, records in raw.items() if isinstance(records, list)
        }
        return self._snapshot

    def _parse(self, file_path: str, records: list[Any]) -> list[Comment]:
        comments: list[Comment] = []
        for record in records:
            try:
                comments.append(Comment.model_validate(record))
            except ValidationError as exc:
                log_json(
                    logger,
                    logging.WARNING,
                    "comment_record_skipped",
                    file_path=file_path,
                    error=str(exc),
                )
        return comments

    def store_for(self, file_path: str) -> CommentStore:
        """The single store instance for ``file_path``."""
        store = self._stores.get(file_path)
        if store is None:
            records = (self._load_snapshot() or {}).get(file_path, [])
            store = CommentStore(file_path, self._parse(file_path, records), on_change=self._persist)
            self._stores[file_path] = store
        return store

    def file_paths(self) -> list[str]:
        """Paths that have persisted comments (including emptied ones)."""
        return sorted(set(self._load_snapshot() or {}) | set(self._stores))

    def _persist(self, file_path: str, comments: list[Comment]) -> None:
        self._unsaved.add(file_path)
        snapshot = self._load_snapshot()
        if snapshot is None:
            record_storage_failure("write")
            log_json(
                logger,
                logging.ERROR,
                "comments_persist_skipped",
                file_path=file_path,
                reason="storage_unreadable",
            )
            return

        for path in self._unsaved:
            if path == file_path:
                snapshot[path] = [c.to_storage() for c in comments]
            else:
                snapshot[path] = self._stores[path].to_storage()
        self._unsaved.clear()
        try:
            self.storage.set(self.key, snapshot)
        except StorageError as exc:
            record_storage_failure("write")
            log_json(
                logger,
                logging.ERROR,
                "comments_persist_failed",
                file_path=file_path,
                error=str(exc),
            )
