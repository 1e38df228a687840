"""Metadata extractors for BazelBlog.

Source files may open with a YAML frontmatter block between ``---`` lines.
This module splits that block from the body and derives the title and date
of a content item, falling back to the filename and the file modification
time whenever the frontmatter is missing, malformed or incomplete.

Key classes:
- TitleExtractor: Title from frontmatter, else from the filename.
- DateExtractor: Date from frontmatter, else from the file mtime.
- CompositeMetadataExtractor: Runs the frontmatter split and the extractors.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from .utils import file_mtime, parse_date, title_from_filename

logger = logging.getLogger(__name__)

# An empty block ("---" directly after the opening line) is tried first.
FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?:---|(.*?)\r?\n---)[ \t]*(?:\r?\n|\Z)", re.DOTALL
)


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter from content.

    Args:
        text: Raw file content. A leading byte order mark is ignored.

    Returns:
        Tuple of (frontmatter dict, remaining content). Missing or malformed
        frontmatter yields an empty dict and the full text.
    """
    text = text.lstrip("\ufeff")
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1) or "") or {}
    except yaml.YAMLError as exc:
        logger.debug("Ignoring malformed frontmatter: %s", exc)
        return {}, text
    if not isinstance(data, dict):
        return {}, text
    return data, text[match.end() :]


@dataclass
class Metadata:
    """Metadata extracted from one source file."""

    title: str
    body: str
    date: datetime | None = None
    frontmatter: dict[str, Any] = field(default_factory=dict)


class TitleExtractor:
    """Uses the frontmatter ``title`` and falls back to the filename."""

    def extract(self, frontmatter: dict[str, Any], path: Path) -> str:
        title = frontmatter.get("title")
        if title is not None and str(title).strip():
            return str(title).strip()
        return title_from_filename(path.name)


class DateExtractor:
    """Parses the frontmatter ``date`` and falls back to the file mtime.

    A date that cannot be parsed is never fatal.
    """

    def extract(self, frontmatter: dict[str, Any], path: Path) -> datetime:
        raw = frontmatter.get("date")
        if raw is not None and raw != "":
            parsed = parse_date(raw)
            if parsed is not None:
                return parsed
            logger.debug("Unparseable date %r in %s; using file mtime", raw, path)
        return file_mtime(path)


class CompositeMetadataExtractor:
    """Splits frontmatter from the body and runs the title/date extractors.

    Attributes:
        title_extractor: Extractor for the title.
        date_extractor: Extractor for the date, or None when items carry no date.
    """

    def __init__(
        self,
        title_extractor: TitleExtractor | None = None,
        date_extractor: DateExtractor | None = None,
    ):
        self.title_extractor = title_extractor or TitleExtractor()
        self.date_extractor = date_extractor

    def extract(self, content: str, path: Path) -> Metadata:
        """Extract all metadata from content.

        Args:
            content: Source content.
            path: Path to the source file.

        Returns:
            Metadata with the body stripped of frontmatter and surrounding whitespace.
        """
        frontmatter, body = extract_frontmatter(content)
        title = self.title_extractor.extract(frontmatter, path)
        date = self.date_extractor.extract(frontmatter, path) if self.date_extractor else None
        return Metadata(title=title, body=body.strip(), date=date, frontmatter=frontmatter)


post_metadata_extractor = CompositeMetadataExtractor(date_extractor=DateExtractor())
page_metadata_extractor = CompositeMetadataExtractor()
