"""Unit tests for clipboard comment formats."""

from datetime import UTC, datetime

from mdreview.schemas.comment import Comment
from mdreview.services.comment_export import (
    COMMENT_SEPARATOR,
    format_comment,
    format_comments,
    format_line_range,
    truncate_selection,
)


def _comment(text: str, start: int, end: int) -> Comment:
    return Comment(
        id=f"id-{start}-{end}",
        text=text,
        start_line=start,
        end_line=end,
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


def test_line_range_uses_single_line_form_when_equal():
    assert format_line_range(_comment("x", 3, 3)) == "L3"
    assert format_line_range(_comment("x", 3, 5)) == "L3-5"


def test_format_comment_prefixes_path_and_range():
    assert format_comment("docs/guide.md", _comment("Fix typo", 12, 14)) == "docs/guide.md:L12-14\nFix typo"


def test_format_comments_joins_with_separator():
    text = format_comments("README.md", [_comment("first", 1, 1), _comment("second", 4, 6)])

    assert text == "README.md:L1\nfirst\n------------------------------------\nREADME.md:L4-6\nsecond"
    assert text.count(COMMENT_SEPARATOR) == 1


def test_format_comments_of_nothing_is_empty():
    assert format_comments("README.md", []) == ""


def test_truncate_selection_adds_ellipsis_past_limit():
    assert truncate_selection("short") == "short"
    assert truncate_selection("a" * 50) == "a" * 50
    assert truncate_selection("a" * 51) == "a" * 50 + "..."
    assert truncate_selection("abcdef", limit=3) == "abc..."
