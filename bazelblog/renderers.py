"""Content renderers for BazelBlog.

This module turns source text into the HTML body of a content item. Each
renderer handles one source type.

Key classes:
- MarkdownRenderer: Renders Markdown to HTML with heading ids and syntax highlighting.
- LegacyHTMLRenderer: Extracts the body of a hand-written HTML page.
- RendererRegistry: Picks the renderer for a source file.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .html_utils import escape_html, extract_body
from .utils import is_html, is_markdown

logger = logging.getLogger(__name__)

MARKDOWN_PLUGINS = ["strikethrough", "table", "url", "task_lists"]


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-") or "heading"


class _HighlightRenderer(mistune.HTMLRenderer):
    """Markdown renderer with heading anchors and Pygments highlighting.

    Raw HTML in the source is passed through unchanged.
    """

    def __init__(self):
        super().__init__(escape=False)
        self._used_ids: dict[str, int] = {}

    def _unique_id(self, text: str) -> str:
        slug = _generate_heading_id(text)
        seen = self._used_ids.get(slug)
        self._used_ids[slug] = 0 if seen is None else seen + 1
        return slug if seen is None else f"{slug}-{seen + 1}"

    def heading(self, text: str, level: int, **attrs) -> str:
        return f'<h{level} id="{self._unique_id(text)}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Highlight fenced code when the info string names a known lexer.

        Unknown or missing languages render as an escaped ``<pre><code>`` block
        tagged with ``language-<name>`` when a name was given.
        """
        lang = info.split()[0] if info and info.strip() else None
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


class MarkdownRenderer:
    """Renders Markdown content to HTML.

    Supports headings, emphasis, lists, links, tables, strikethrough, task
    lists and autolinked URLs. Line breaks inside paragraphs are kept as
    ``<br />``. Rendering never raises: on an internal failure the source
    is returned as escaped literal text.
    """

    @property
    def source_type(self) -> str:
        return "markdown"

    def can_render(self, path: Path) -> bool:
        return is_markdown(path)

    def render(self, content: str) -> str:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source content.

        Returns:
            Rendered HTML.
        """
        markdown = mistune.create_markdown(
            renderer=_HighlightRenderer(),
            hard_wrap=True,
            plugins=MARKDOWN_PLUGINS,
        )
        try:
            return markdown(content)
        except Exception as exc:  # noqa: BLE001 - malformed input degrades to text
            logger.debug("Markdown rendering failed (%s); using literal text", exc)
            return f"<p>{escape_html(content)}</p>\n"


class LegacyHTMLRenderer:
    """Handles hand-written HTML pages kept for backward compatibility.

    Only the part between ``<body>`` and ``</body>`` is used; without those
    markers the whole file is the body.
    """

    @property
    def source_type(self) -> str:
        return "html"

    def can_render(self, path: Path) -> bool:
        return is_html(path)

    def render(self, content: str) -> str:
        return extract_body(content)


class RendererRegistry:
    """Maps source files to renderers; the first renderer that accepts a path wins."""

    def __init__(self):
        self._renderers: list = [MarkdownRenderer(), LegacyHTMLRenderer()]

    def register(self, renderer) -> None:
        """Add a renderer with ``can_render(path)`` and ``render(text)`` methods."""
        self._renderers.append(renderer)

    def get_renderer(self, path: Path):
        """Return the renderer for ``path``, or None for unsupported files."""
        return next((r for r in self._renderers if r.can_render(path)), None)


default_renderer_registry = RendererRegistry()
