"""Template rendering engine for BazelBlog.

This module uses Jinja2 to render the fixed set of output templates (index,
post, page, feed and stylesheet). Built-in templates ship in the package's
``templates/`` directory; a site may override any of them by placing a file
of the same name in its ``themes/`` directory.

Key class:
- TemplateEngine: Jinja2 environment with the date filters used by the templates.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from markupsafe import Markup
from pygments.formatters import HtmlFormatter

from .utils import format_compact_date, format_long_date, format_rfc822

BUILTIN_TEMPLATES_DIR = Path(__file__).parent / "templates"
THEMES_DIR = "themes"

__all__ = ["BUILTIN_TEMPLATES_DIR", "TemplateEngine", "cdata"]


def cdata(value: str) -> Markup:
    """Make text safe to place inside a ``<![CDATA[ ... ]]>`` section."""
    return Markup(str(value).replace("]]>", "]]]]><![CDATA[>"))


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        site_root: Root directory of the site, or None for built-ins only.
        env: Jinja2 environment.
    """

    def __init__(self, site_root: Path | None = None):
        """Initialize the template engine.

        Args:
            site_root: Site whose ``themes/`` directory may override templates.
        """
        self.site_root = site_root
        search_path = []
        if site_root is not None:
            search_path.append(site_root / THEMES_DIR)
        search_path.append(BUILTIN_TEMPLATES_DIR)
        self.env = Environment(
            loader=FileSystemLoader(search_path),
            autoescape=select_autoescape(["html", "xml", "html.jinja", "xml.jinja"]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        self._install_filters()

    def _install_filters(self) -> None:
        """Install the date and CDATA filters."""
        self.env.filters["compact_date"] = format_compact_date
        self.env.filters["long_date"] = format_long_date
        self.env.filters["rfc822"] = format_rfc822
        self.env.filters["cdata"] = cdata
        self.env.globals["pygments_css"] = self._pygments_css()

    @staticmethod
    def _pygments_css() -> str:
        """Return Pygments CSS styles for syntax highlighting.

        Returns:
            CSS string for the .highlight class.
        """
        return HtmlFormatter().get_style_defs(".highlight")

    def render(self, name: str, **context: Any) -> str:
        """Render a named template.

        Args:
            name: Template file name, e.g. ``index.html.jinja``.
            **context: Variables to make available in the template.

        Returns:
            Rendered text.
        """
        return self.env.get_template(name).render(**context)
