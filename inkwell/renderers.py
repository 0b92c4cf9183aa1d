"""Markdown rendering for Inkwell.

Article bodies are Markdown converted to HTML with mistune. Embedded code is
treated as opaque text: fenced blocks naming a language Pygments knows are
colourised, everything else is escaped into ``<pre><code>``. Code is never
executed or analysed beyond lexing for presentation.

Key functions:
- render_markdown: Convert a Markdown body to HTML.
- pygments_css: Stylesheet matching the highlighted markup.
"""

from __future__ import annotations

import re

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .html_utils import escape_html

PLUGINS = ["strikethrough", "footnotes", "table", "url"]


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text, possibly containing inline HTML.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _ArticleRenderer(mistune.HTMLRenderer):
    """HTML renderer adding heading anchors and typographic code blocks."""

    def __init__(self):
        super().__init__(escape=False)
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading with a unique, auto-generated ID."""
        base_id = _generate_heading_id(text) or "section"
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a fenced code block in fixed-width presentation.

        Args:
            code: The code content.
            info: Fence info string; its first word names the language.

        Returns:
            HTML string, highlighted when the language is known.
        """
        lang = info.split()[0] if info and info.strip() else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"


def render_markdown(body: str) -> str:
    """Render a Markdown body to HTML.

    A new renderer is created per call so heading IDs never leak between
    documents and repeated calls give identical output.

    Args:
        body: Markdown source.

    Returns:
        Rendered HTML.
    """
    markdown = mistune.create_markdown(renderer=_ArticleRenderer(), plugins=PLUGINS)
    return markdown(body)


def pygments_css() -> str:
    """Return Pygments CSS rules for the .highlight class."""
    return HtmlFormatter().get_style_defs(".highlight")
