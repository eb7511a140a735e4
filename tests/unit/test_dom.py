"""Unit tests for the rendered-document tree."""

import pytest

from mdreview.core.dom import (
    BoundaryPoint,
    Element,
    Node,
    Range,
    Selection,
    Text,
    parse_fragment,
    text_position,
)


def _sample_tree() -> Element:
    return parse_fragment(
        '<h1 data-line-start="1">Title</h1>\n'
        '<p data-line-start="3">Some <strong>bold</strong> text</p>\n'
        "<!-- ignored comment -->"
    )


def test_parse_fragment_wraps_content_in_preview_container():
    root = _sample_tree()

    assert root.tag == "div"
    assert root.attrs["class"] == "markdown-content"
    assert [c.tag for c in root.children if isinstance(c, Element)] == ["h1", "p"]
    assert root.text_content == "Title\nSome bold text\n"


def test_line_start_reads_integer_attribute_only():
    assert Element("p", {"data-line-start": "12"}).line_start == 12
    assert Element("p", {"data-line-start": "twelve"}).line_start is None
    assert Element("p").line_start is None
    assert Text("x").line_start is None


def test_parse_fragment_joins_multi_valued_attributes():
    root = parse_fragment('<code class="language-python highlight">x</code>')

    assert root.children[0].attrs["class"] == "language-python highlight"


def test_path_of_and_node_at_are_inverse():
    root = _sample_tree()
    bold_text = root.find_all("strong")[0].children[0]

    path = root.path_of(bold_text)

    assert path == [2, 1, 0]
    assert root.node_at(path) is bold_text


@pytest.mark.parametrize("path", [[99], [0, 0, 0], [-1]])
def test_node_at_rejects_invalid_paths(path):
    with pytest.raises(LookupError):
        _sample_tree().node_at(path)


def test_append_moves_node_between_parents():
    first = Element("p")
    second = Element("p")
    text = Text("moved")
    first.append(text)

    second.append(text)

    assert first.children == []
    assert text.parent is second
    assert not text.is_within(first)


def test_text_position_handles_text_and_element_points():
    root = _sample_tree()
    paragraph = root.find_all("p")[0]
    some = paragraph.children[0]

    assert text_position(root, BoundaryPoint(some, 2)) == len("Title\n") + 2
    assert text_position(root, BoundaryPoint(paragraph, 1)) == len("Title\nSome ")
    assert text_position(root, BoundaryPoint(paragraph, 3)) == len("Title\nSome bold text")


def test_text_position_rejects_unknown_node_kinds():
    root = _sample_tree()
    placeholder = root.append(Node())

    with pytest.raises(TypeError):
        text_position(root, BoundaryPoint(placeholder, 0))


def test_backwards_selection_orders_range_by_document_position():
    root = _sample_tree()
    title = root.find_all("h1")[0].children[0]
    tail = root.find_all("p")[0].children[2]

    selection = Selection.of(tail, 3, title, 2)
    range_ = selection.to_range(root)

    assert range_.start.node is title
    assert range_.end.node is tail
    assert selection.to_string(root) == "tle\nSome bold te"


def test_collapsed_selection_has_no_text():
    root = _sample_tree()
    title = root.find_all("h1")[0].children[0]

    selection = Selection.of(title, 1, title, 1)

    assert selection.is_collapsed
    assert selection.to_string(root) == ""
    assert Selection(None, None).is_collapsed


def test_range_becomes_invalid_once_nodes_are_detached():
    root = _sample_tree()
    title = root.find_all("h1")[0].children[0]
    range_ = Range(BoundaryPoint(title, 0), BoundaryPoint(title, 5))
    frozen = range_.clone()

    assert frozen.is_valid_within(root)

    fresh = _sample_tree()
    assert not frozen.is_valid_within(fresh)

    title.parent.remove(title)
    assert not frozen.is_valid_within(root)


def test_range_with_out_of_bounds_offset_is_invalid():
    root = _sample_tree()
    title = root.find_all("h1")[0].children[0]

    assert not Range(BoundaryPoint(title, 0), BoundaryPoint(title, 50)).is_valid_within(root)
