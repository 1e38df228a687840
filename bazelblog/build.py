"""Site building functionality for BazelBlog.

This module sequences a full build. Stages run in a fixed order and the
first failure aborts the rest:

    load-config -> reset-output -> load-posts -> load-pages -> render-css
    -> render-index -> render-posts -> render-pages -> render-feed

The output directory is removed and recreated before any content is read,
so no stale files survive a build. There are no retries.

Key functions:
- build_site: Main function to build the entire site.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import TemplateError

from .config import ConfigStore, SiteConfig
from .content import PAGES_DIR, POSTS_DIR, ContentProcessor, Page, Post
from .errors import BuildError, ConfigError
from .pipeline import RenderPipeline
from .templates import TemplateEngine
from .utils import ensure_clean_dir

logger = logging.getLogger(__name__)

PUBLIC_DIR = "public"

STAGES = (
    "load-config",
    "reset-output",
    "load-posts",
    "load-pages",
    "render-css",
    "render-index",
    "render-posts",
    "render-pages",
    "render-feed",
)


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        posts: Posts rendered, newest first.
        pages: Pages rendered.
        output_dir: Directory where the site was built.
        built_at: When the build completed.
    """

    posts: list[Post]
    pages: list[Page]
    output_dir: Path
    built_at: datetime


def build_site(
    site_root: Path,
    output_dir: Path | None = None,
    config_store: ConfigStore | None = None,
    build_date: datetime | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        site_root: Root directory of the site.
        output_dir: Optional directory to build into instead of ``public/``.
        config_store: Optional config store; defaults to the site's ``bazel.yaml``.
        build_date: Optional timestamp for the feed; defaults to now.

    Returns:
        BuildResult describing the build.

    Raises:
        BuildError: Tagged with the stage that failed.
    """
    output_dir = output_dir or (site_root / PUBLIC_DIR)
    store = config_store or ConfigStore(site_root)
    processor = ContentProcessor()

    with _stage("load-config"):
        config: SiteConfig = store.load()
    with _stage("reset-output"):
        ensure_clean_dir(output_dir)
    with _stage("load-posts"):
        posts = processor.load_posts(site_root / POSTS_DIR)
    with _stage("load-pages"):
        pages = processor.load_pages(site_root / PAGES_DIR)

    pipeline = RenderPipeline(
        config, posts, pages, output_dir, engine=TemplateEngine(site_root)
    )
    with _stage("render-css"):
        pipeline.render_css()
    with _stage("render-index"):
        pipeline.render_index()
    with _stage("render-posts"):
        pipeline.render_posts()
    with _stage("render-pages"):
        pipeline.render_pages()
    with _stage("render-feed"):
        pipeline.render_feed(build_date)

    built_at = datetime.now(timezone.utc)
    logger.info(
        "Built %d posts and %d pages into %s", len(posts), len(pages), output_dir
    )
    return BuildResult(posts=posts, pages=pages, output_dir=output_dir, built_at=built_at)


@contextmanager
def _stage(name: str) -> Iterator[None]:
    """Run one build stage, converting any failure into a BuildError."""
    logger.debug("Build stage: %s", name)
    try:
        yield
    except BuildError:
        raise
    except Exception as exc:
        raise BuildError(name, _format_error_message(exc), exc) from exc


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    if isinstance(exc, ConfigError):
        return str(exc)
    if isinstance(exc, OSError):
        target = f" ({exc.filename})" if exc.filename else ""
        return f"{exc.strerror or exc}{target}"
    if isinstance(exc, TemplateError):
        return f"Template error: {exc}"
    return f"{type(exc).__name__}: {exc}"
