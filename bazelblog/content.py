"""Content loading for BazelBlog.

This module scans the ``posts/`` and ``pages/`` source directories and turns
each file into an immutable ``Post`` or ``Page`` record with rendered HTML.

Key classes:
- Post / Page: Frozen dataclasses for one content item.
- FileContentLoader: Lists candidate source files in scan order.
- ContentProcessor: Builds Post and Page records from those files.

Key functions:
- load_posts / load_pages: Convenience wrappers used by the build.

Posts come back sorted newest first. The sort is stable, so posts with the
same date keep their scan order (sorted filename order).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .extractors import (
    CompositeMetadataExtractor,
    page_metadata_extractor,
    post_metadata_extractor,
)
from .renderers import RendererRegistry, default_renderer_registry
from .utils import is_html, is_markdown, title_from_filename

logger = logging.getLogger(__name__)

POSTS_DIR = "posts"
PAGES_DIR = "pages"


@dataclass(frozen=True)
class Page:
    """A standalone page linked from the site navigation.

    Attributes:
        title: Human-readable title.
        body: Rendered HTML body.
        source_filename: Name of the source file.
        url: Output path relative to the site root, e.g. ``pages/about.html``.
    """

    title: str
    body: str
    source_filename: str
    url: str


@dataclass(frozen=True)
class Post:
    """A dated blog post.

    Attributes:
        title: Human-readable title.
        body: Rendered HTML body.
        source_filename: Name of the source file.
        url: Output path relative to the site root, e.g. ``posts/hello.html``.
        date: Publication date (timezone aware).
    """

    title: str
    body: str
    source_filename: str
    url: str
    date: datetime


def _read_source(path: Path) -> str:
    """Read a source file as UTF-8, replacing undecodable bytes."""
    data = path.read_bytes()
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.warning("%s is not valid UTF-8 (%s); decoding with replacements", path.name, exc)
        return data.decode("utf-8", errors="replace")


def output_url(prefix: str, filename: str) -> str:
    """Return the output path for a source file.

    Examples:
        >>> output_url("posts", "First Steps.md")
        'posts/First Steps.html'
    """
    return f"{prefix}/{Path(filename).stem}.html"


class FileContentLoader:
    """Lists the source files of one content directory.

    Only direct children are considered. A missing directory yields no files;
    an unreadable one raises ``OSError``.

    Attributes:
        source_dir: Directory to scan.
    """

    def __init__(self, source_dir: Path, include_html: bool = False):
        self.source_dir = source_dir
        self.include_html = include_html

    def iter_files(self) -> list[Path]:
        """Return candidate files in sorted filename order."""
        if not self.source_dir.exists():
            return []
        files: list[Path] = []
        for path in sorted(self.source_dir.iterdir(), key=lambda p: p.name):
            if not path.is_file():
                continue
            if is_markdown(path) or (self.include_html and is_html(path)):
                files.append(path)
        return files


class ContentProcessor:
    """Builds Post and Page records from source files.

    Attributes:
        renderer_registry: Registry used to pick a renderer per file.
    """

    def __init__(
        self,
        renderer_registry: RendererRegistry | None = None,
        post_extractor: CompositeMetadataExtractor | None = None,
        page_extractor: CompositeMetadataExtractor | None = None,
    ):
        self.renderer_registry = renderer_registry or default_renderer_registry
        self.post_extractor = post_extractor or post_metadata_extractor
        self.page_extractor = page_extractor or page_metadata_extractor

    def load_posts(self, source_dir: Path) -> list[Post]:
        """Load every Markdown post in ``source_dir``.

        Args:
            source_dir: The ``posts/`` source directory.

        Returns:
            Posts sorted by date, newest first.
        """
        posts: list[Post] = []
        for path in FileContentLoader(source_dir).iter_files():
            posts.append(self.build_post(path))
        return sorted(posts, key=lambda post: post.date, reverse=True)

    def load_pages(self, source_dir: Path) -> list[Page]:
        """Load Markdown and legacy HTML pages in ``source_dir``.

        When two files map to the same output URL, the one processed last
        wins and a warning is logged.

        Args:
            source_dir: The ``pages/`` source directory.

        Returns:
            Pages in scan order.
        """
        by_url: dict[str, Page] = {}
        for path in FileContentLoader(source_dir, include_html=True).iter_files():
            page = self.build_page(path)
            previous = by_url.pop(page.url, None)
            if previous is not None:
                logger.warning(
                    "%s and %s both produce %s; using %s",
                    previous.source_filename,
                    page.source_filename,
                    page.url,
                    page.source_filename,
                )
            by_url[page.url] = page
        return list(by_url.values())

    def build_post(self, path: Path) -> Post:
        raw = _read_source(path)
        metadata = self.post_extractor.extract(raw, path)
        return Post(
            title=metadata.title,
            body=self._render(path, metadata.body),
            source_filename=path.name,
            url=output_url(POSTS_DIR, path.name),
            date=metadata.date,
        )

    def build_page(self, path: Path) -> Page:
        raw = _read_source(path)
        if is_html(path):
            # Legacy pages carry no frontmatter; the whole file is the source.
            return Page(
                title=title_from_filename(path.name),
                body=self._render(path, raw),
                source_filename=path.name,
                url=output_url(PAGES_DIR, path.name),
            )
        metadata = self.page_extractor.extract(raw, path)
        return Page(
            title=metadata.title,
            body=self._render(path, metadata.body),
            source_filename=path.name,
            url=output_url(PAGES_DIR, path.name),
        )

    def _render(self, path: Path, text: str) -> str:
        renderer = self.renderer_registry.get_renderer(path)
        if renderer is None:
            return text
        return renderer.render(text)


def load_posts(source_dir: Path) -> list[Post]:
    """Load posts from ``source_dir`` with the default processor."""
    return ContentProcessor().load_posts(source_dir)


def load_pages(source_dir: Path) -> list[Page]:
    """Load pages from ``source_dir`` with the default processor."""
    return ContentProcessor().load_pages(source_dir)
