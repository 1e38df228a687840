"""Utility functions for BazelBlog.

This module contains small helpers used throughout the codebase: filename
handling, lenient date parsing, the date formats used in rendered output,
and output directory management.

Key functions:
    title_from_filename: Derive a fallback title from a source filename.
    filename_for_title: Turn a title into a source filename stem.
    parse_date: Leniently parse human-written dates.
    file_mtime: File modification time as an aware datetime.
    format_compact_date / format_long_date / format_rfc822: Output date formats.
    ensure_clean_dir: Remove and recreate a directory.
    is_markdown / is_html: Source type checks.
"""

from __future__ import annotations

import shutil
from datetime import date, datetime, timezone
from pathlib import Path

# Tried in order after ISO 8601.
DATE_FORMATS = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y %H:%M",
    "%b %d, %Y %H:%M",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%d.%m.%Y",
    "%a, %d %b %Y %H:%M:%S %z",
    "%a, %d %b %Y %H:%M:%S %Z",
    "%a %b %d %H:%M:%S %Y",
)

RFC822_FORMAT = "%a, %d %b %Y %H:%M:%S %z"


def title_from_filename(filename: str) -> str:
    """Return the filename without its extension, trimmed.

    Args:
        filename: Source filename such as ``First Steps.md``.

    Returns:
        Fallback title for the content item.

    Examples:
        >>> title_from_filename("First Steps.md")
        'First Steps'
    """
    return Path(filename).stem.strip()


def filename_for_title(title: str) -> str:
    """Return the source filename stem used for a new post or page.

    Examples:
        >>> filename_for_title("Hello World")
        'Hello_World'
    """
    return title.strip().replace(" ", "_")


def _aware(value: datetime) -> datetime:
    # Naive values are treated as UTC so feed output does not depend on the host.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_date(value: object) -> datetime | None:
    """Parse a frontmatter date value.

    Accepts ``datetime``/``date`` objects (as produced by YAML), ISO 8601
    strings and the common human-readable forms in ``DATE_FORMATS``.

    Args:
        value: Raw frontmatter value.

    Returns:
        Timezone-aware datetime, or None when the value cannot be parsed.

    Examples:
        >>> parse_date("July 1, 2025")
        datetime.datetime(2025, 7, 1, 0, 0, tzinfo=datetime.timezone.utc)
    """
    if isinstance(value, datetime):
        return _aware(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None
    text = " ".join(value.split())
    if not text:
        return None
    try:
        return _aware(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return _aware(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return None


def file_mtime(path: Path) -> datetime:
    """Return the modification time of a file as a local, aware datetime."""
    return datetime.fromtimestamp(path.stat().st_mtime).astimezone()


def format_compact_date(value: datetime) -> str:
    """Format a date for the index listing, e.g. ``1 Jul``."""
    return f"{value.day} {value:%b}"


def format_long_date(value: datetime) -> str:
    """Format a date for post pages, e.g. ``July 1, 2025``."""
    return f"{value:%B} {value.day}, {value.year}"


def format_rfc822(value: datetime) -> str:
    """Format a date for RSS, e.g. ``Tue, 01 Jul 2025 00:00:00 +0000``."""
    return _aware(value).strftime(RFC822_FORMAT)


def ensure_clean_dir(path: Path) -> None:
    """Remove a directory tree and recreate it empty.

    Unlike a best-effort cleanup, any failure to remove or create the
    directory propagates as ``OSError``.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    path.mkdir(parents=True, exist_ok=True)


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension.
    """
    return path.suffix == ".md"


def is_html(path: Path) -> bool:
    """Check if a path is a plain HTML file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .html extension.
    """
    return path.suffix == ".html"


def is_ignored_name(name: str) -> bool:
    """Return True for editor temp files and dotfiles."""
    return name.startswith(".") or name.endswith(".tmp")
