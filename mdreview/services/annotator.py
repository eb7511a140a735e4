"""Markdown rendering with source-line annotations.

Every block-level construct (paragraph, heading, list item, blockquote,
code block, table cell) is rendered with ``data-line-start`` holding the
1-based source line where the construct begins. Selections made in the
preview are mapped back to source lines through these attributes.
"""

from __future__ import annotations

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml, unescapeAll
from markdown_it.rules_core import StateCore
from markdown_it.token import Token
from mdit_py_plugins.tasklists import tasklists_plugin
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from mdreview.core.dom import LINE_START_ATTR, Element, parse_fragment

ANNOTATED_OPEN_TOKENS = frozenset(
    {
        "paragraph_open",
        "heading_open",
        "list_item_open",
        "blockquote_open",
        "th_open",
        "td_open",
    }
)

DIAGRAM_LANGUAGES = frozenset({"mermaid"})


def source_line(token: Token) -> int | None:
    """1-based line where the token's construct starts, if the parser knows it."""
    if token.map and len(token.map) == 2:
        return token.map[0] + 1
    return None


def _annotate_line_positions(state: StateCore) -> None:
    # Table cells carry no map of their own; they start on their row's line.
    row_line: int | None = None
    for token in state.tokens:
        if token.type == "tr_open":
            row_line = source_line(token)
            continue
        if token.type not in ANNOTATED_OPEN_TOKENS:
            continue
        line = source_line(token)
        if line is None and token.type in ("th_open", "td_open"):
            line = row_line
        if line is not None:
            token.attrSet(LINE_START_ATTR, str(line))


class MarkdownRenderer:
    """Converts markdown to line-annotated HTML with code highlighting."""

    def __init__(self, highlight_code: bool = True) -> None:
        self.highlight_code = highlight_code
        self._formatter = HtmlFormatter(nowrap=True)
        self._md = (
            MarkdownIt("commonmark", {"html": False})
            .enable("table")
            .enable("strikethrough")
        )
        self._md.use(tasklists_plugin)
        self._md.core.ruler.push("line_positions", _annotate_line_positions)
        self._md.renderer.rules["fence"] = self._render_fence
        self._md.renderer.rules["code_block"] = self._render_code_block

    @staticmethod
    def _line_attr(token: Token) -> str:
        line = source_line(token)
        if line is None:
            return ""
        return f' {LINE_START_ATTR}="{line}"'

    def _highlight(self, code: str, lang: str) -> str:
        if not lang or not self.highlight_code:
            return escapeHtml(code)
        try:
            lexer = get_lexer_by_name(lang)
        except ClassNotFound:
            return escapeHtml(code)
        return highlight(code, lexer, self._formatter)

    def _render_fence(self, tokens, idx, options, env) -> str:
        token = tokens[idx]
        info = unescapeAll(token.info).strip() if token.info else ""
        lang = info.split(maxsplit=1)[0] if info else ""
        line_attr = self._line_attr(token)

        if lang.lower() in DIAGRAM_LANGUAGES:
            return f'<div class="{lang.lower()}"{line_attr}>{escapeHtml(token.content)}</div>\n'

        class_attr = f' class="language-{escapeHtml(lang)}"' if lang else ""
        body = self._highlight(token.content, lang)
        return f"<pre{line_attr}><code{class_attr}>{body}</code></pre>\n"

    def _render_code_block(self, tokens, idx, options, env) -> str:
        token = tokens[idx]
        return f"<pre{self._line_attr(token)}><code>{escapeHtml(token.content)}</code></pre>\n"

    def render(self, source: str) -> str:
        """Render markdown source to an HTML fragment."""
        return self._md.render(source)

    def render_tree(self, source: str) -> Element:
        """Render and parse into the preview container tree."""
        return parse_fragment(self.render(source))

    def highlight_css(self, style: str = "default") -> str:
        """Stylesheet for the highlighted code spans."""
        return HtmlFormatter(style=style).get_style_defs(".markdown-content pre")
