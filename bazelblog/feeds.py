"""Feed generation for BazelBlog.

This module renders the RSS 2.0 syndication feed (``feed.xml``). Posts are
listed newest first; ``lastBuildDate`` carries the build timestamp, which is
the only part of the build output that changes between identical builds.

Classes:
    FeedGenerator: Abstract base class for feed generators.
    RSSFeedGenerator: Generates the RSS feed from the ``feed.xml.jinja`` template.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import SiteConfig
    from .content import Post
    from .templates import TemplateEngine


class FeedGenerator(ABC):
    """Abstract base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def generate(
        self,
        posts: Iterable[Post],
        config: SiteConfig,
        build_date: datetime,
    ) -> str:
        """Generate feed content from posts."""
        ...

    def write(
        self,
        output_dir: Path,
        posts: Iterable[Post],
        config: SiteConfig,
        build_date: datetime | None = None,
    ) -> Path:
        """Generate and write the feed to the output directory.

        Args:
            output_dir: Directory to write the feed file to.
            posts: Posts, newest first.
            config: Site configuration.
            build_date: Timestamp for ``lastBuildDate``; defaults to now.

        Returns:
            Path of the written file.

        Raises:
            OSError: If the file cannot be written.
        """
        build_date = build_date or datetime.now(timezone.utc)
        content = self.generate(posts, config, build_date)
        output_path = output_dir / self.filename
        output_path.write_text(content, encoding="utf-8")
        return output_path


class RSSFeedGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed for content syndication.

    Attributes:
        engine: Template engine providing ``feed.xml.jinja``.
    """

    def __init__(self, engine: TemplateEngine):
        self.engine = engine

    @property
    def filename(self) -> str:
        return "feed.xml"

    def generate(
        self,
        posts: Iterable[Post],
        config: SiteConfig,
        build_date: datetime,
    ) -> str:
        """Generate RSS feed content.

        Args:
            posts: Posts, newest first.
            config: Site configuration (title, description, base URL).
            build_date: Timestamp for ``lastBuildDate``.

        Returns:
            RSS XML content.
        """
        return self.engine.render(
            "feed.xml.jinja",
            config=config,
            base_url=config.base_url.rstrip("/"),
            posts=list(posts),
            build_date=build_date,
        )
