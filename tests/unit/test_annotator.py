"""Unit tests for line-annotated markdown rendering."""

import pytest

from mdreview.core.dom import Element
from mdreview.services.annotator import MarkdownRenderer
from tests.conftest import GUIDE_MD


@pytest.fixture
def renderer() -> MarkdownRenderer:
    return MarkdownRenderer()


def _lines_by_tag(tree: Element, tag: str) -> list[int | None]:
    return [el.line_start for el in tree.find_all(tag)]


def test_block_constructs_carry_their_start_line(renderer):
    tree = renderer.render_tree(GUIDE_MD)

    assert _lines_by_tag(tree, "h1") == [1]
    assert _lines_by_tag(tree, "p")[0] == 3
    assert _lines_by_tag(tree, "li") == [6, 7]
    assert _lines_by_tag(tree, "blockquote") == [9]
    assert _lines_by_tag(tree, "pre") == [11]


def test_headings_of_every_level_are_annotated(renderer):
    source = "\n\n".join(f"{'#' * level} Heading {level}" for level in range(1, 7))

    tree = renderer.render_tree(source)

    for level in range(1, 7):
        assert _lines_by_tag(tree, f"h{level}") == [2 * level - 1]


def test_table_cells_take_the_line_of_their_row(renderer):
    tree = renderer.render_tree(GUIDE_MD)

    assert _lines_by_tag(tree, "th") == [15, 15]
    assert _lines_by_tag(tree, "td") == [17, 17]


def test_inline_nodes_are_not_annotated(renderer):
    tree = renderer.render_tree("Some **bold** and `code`\n")

    assert tree.find_all("strong")[0].line_start is None
    assert tree.find_all("code")[0].line_start is None
    assert tree.find_all("p")[0].line_start == 1


def test_indented_code_block_is_annotated(renderer):
    tree = renderer.render_tree("intro\n\n    indented code\n")

    assert _lines_by_tag(tree, "pre") == [3]


def test_fenced_code_is_highlighted_with_language_class(renderer):
    html = renderer.render("```python\nprint('hi')\n```\n")

    assert '<pre data-line-start="1"><code class="language-python">' in html
    assert "<span" in html


def test_unknown_language_is_escaped_not_highlighted(renderer):
    html = renderer.render("```nosuchlang\n<b>x</b>\n```\n")

    assert 'class="language-nosuchlang"' in html
    assert "&lt;b&gt;x&lt;/b&gt;" in html
    assert "<span" not in html


def test_mermaid_fence_renders_diagram_container(renderer):
    html = renderer.render("text\n\n```mermaid\ngraph TD; A-->B\n```\n")

    assert '<div class="mermaid" data-line-start="3">graph TD; A--&gt;B\n</div>' in html


def test_raw_html_is_not_passed_through(renderer):
    html = renderer.render("<script>alert(1)</script>\n")

    assert "<script>" not in html


def test_gfm_extensions_are_enabled(renderer):
    html = renderer.render("~~gone~~\n\n- [x] done\n- [ ] todo\n")

    assert "<s>gone</s>" in html
    assert 'type="checkbox"' in html


def test_highlight_css_targets_preview_code_blocks(renderer):
    assert ".markdown-content pre" in renderer.highlight_css()
