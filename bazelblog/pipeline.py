"""Render pipeline for BazelBlog.

Turns the site configuration plus the loaded posts and pages into the fixed
set of output artifacts:

- ``style.css``: theme variables followed by the shared stylesheet.
- ``index.html``: homepage with posts grouped under year headings.
- ``posts/<name>.html`` and ``pages/<name>.html``: one file per item.
- ``feed.xml``: RSS feed, newest first.

Every render step writes straight to disk. A failed write raises ``OSError``
and leaves whatever was already written in place; the build orchestrator
decides what that means for the output directory.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from .config import SiteConfig
from .content import Page, Post
from .feeds import RSSFeedGenerator
from .styles import css_variables
from .templates import TemplateEngine


class RenderPipeline:
    """Writes all output artifacts for one build.

    Attributes:
        config: Site configuration (read only).
        posts: Posts, newest first.
        pages: Pages in navigation order.
        output_dir: Directory receiving the artifacts.
        engine: Template engine.
    """

    def __init__(
        self,
        config: SiteConfig,
        posts: list[Post],
        pages: list[Page],
        output_dir: Path,
        engine: TemplateEngine | None = None,
    ):
        self.config = config
        self.posts = posts
        self.pages = pages
        self.output_dir = output_dir
        self.engine = engine or TemplateEngine()

    def render_css(self) -> Path:
        css = self.engine.render(
            "style.css.jinja",
            variables=css_variables(self.config.color_scheme, self.config.font),
        )
        return self._write("style.css", css)

    def render_index(self) -> Path:
        html = self.engine.render(
            "index.html.jinja",
            config=self.config,
            pages=self.pages,
            posts=self.posts,
            root="",
        )
        return self._write("index.html", html)

    def render_posts(self) -> list[Path]:
        written = []
        for post in self.posts:
            html = self.engine.render(
                "post.html.jinja",
                config=self.config,
                pages=self.pages,
                post=post,
                root="../",
            )
            written.append(self._write(post.url, html))
        return written

    def render_pages(self) -> list[Path]:
        written = []
        for page in self.pages:
            html = self.engine.render(
                "page.html.jinja",
                config=self.config,
                pages=self.pages,
                page=page,
                root="../",
            )
            written.append(self._write(page.url, html))
        return written

    def render_feed(self, build_date: datetime | None = None) -> Path:
        return RSSFeedGenerator(self.engine).write(
            self.output_dir, self.posts, self.config, build_date
        )

    def _write(self, relative: str, content: str) -> Path:
        target = self.output_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return target
