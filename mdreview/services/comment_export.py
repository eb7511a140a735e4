"""Clipboard text formats for review comments."""

from collections.abc import Iterable

from mdreview.schemas.comment import Comment

COMMENT_SEPARATOR = "\n------------------------------------\n"
SELECTION_PREVIEW_CHARS = 50


def format_line_range(comment: Comment) -> str:
    if comment.start_line == comment.end_line:
        return f"L{comment.start_line}"
    return f"L{comment.start_line}-{comment.end_line}"


def format_comment(filename: str, comment: Comment) -> str:
    """``path:L3`` header followed by the comment text."""
    return f"{filename}:{format_line_range(comment)}\n{comment.text}"


def format_comments(filename: str, comments: Iterable[Comment]) -> str:
    return COMMENT_SEPARATOR.join(format_comment(filename, c) for c in comments)


def truncate_selection(text: str, limit: int = SELECTION_PREVIEW_CHARS) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text
