"""Versioned migration steps for BazelBlog sites.

Each step is a ``Migration`` value: the version range it upgrades across, a
description, and a plain ``apply(site_root)`` function. Steps hold no state,
so each can be exercised on its own without the upgrade engine.

Three steps change files on disk:

- 1.1.7 -> 1.1.8 resets an unknown color scheme to the default.
- 1.4.0 -> 1.4.1 converts a legacy JSON ``bazel.yaml`` to YAML, keeping a
  timestamped backup of the original.
- 1.4.1 -> 1.4.2 moves flat ``public/*.html`` output into ``public/posts/``
  and ``public/pages/`` according to the matching source files.

The others record features that live in the tool itself and are picked up
by the rebuild that follows every upgrade.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .build import PUBLIC_DIR
from .config import (
    CONFIG_FILENAME,
    COLOR_SCHEMES,
    DEFAULT_COLOR_SCHEME,
    ConfigStore,
    SiteConfig,
)
from .content import PAGES_DIR, POSTS_DIR

logger = logging.getLogger(__name__)

CORE_ARTIFACTS = frozenset({"index.html", "style.css", "feed.xml"})


@dataclass(frozen=True)
class Migration:
    """One upgrade step.

    Attributes:
        from_version: Lowest site version the step applies to.
        to_version: Version the site is at after the step.
        description: Human-readable summary.
        apply: Function performing the step on a site root.
    """

    from_version: str
    to_version: str
    description: str
    apply: Callable[[Path], None]


def _notes(*lines: str) -> Callable[[Path], None]:
    def apply(site_root: Path) -> None:
        for line in lines:
            logger.info("  - %s", line)

    return apply


def convert_json_config(site_root: Path, now: datetime | None = None) -> Path | None:
    """Rewrite a legacy JSON config file as YAML.

    The file is only touched when its content starts with ``{``. The original
    text is written to ``bazel.yaml.json-backup.<YYYYmmdd-HHMMSS>`` first.

    Args:
        site_root: Root directory of the site.
        now: Timestamp used for the backup name; defaults to now.

    Returns:
        Path of the backup, or None if nothing was converted.

    Raises:
        OSError: If the backup or the new config cannot be written.
        json.JSONDecodeError: If the legacy file is not valid JSON.
    """
    store = ConfigStore(site_root)
    if not store.path.is_file():
        return None
    text = store.path.read_text(encoding="utf-8")
    if not text.strip().startswith("{"):
        return None

    logger.info("  - Converting JSON config to YAML")
    now = now or datetime.now()
    backup = store.path.with_name(f"{CONFIG_FILENAME}.json-backup.{now:%Y%m%d-%H%M%S}")
    backup.write_text(text, encoding="utf-8")
    logger.info("  - JSON config backed up to %s", backup.name)

    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("legacy config is not a JSON object")
    store.save(SiteConfig.from_dict(data))
    return backup


def migrate_directory_structure(site_root: Path) -> list[Path]:
    """Sort flat output files into ``posts/`` and ``pages/`` subdirectories.

    A top-level ``public/<name>.html`` moves to ``public/posts/`` when
    ``posts/<name>.md`` exists, otherwise to ``public/pages/`` when
    ``pages/<name>.md`` or ``pages/<name>.html`` exists. Anything else stays
    put, and the index, stylesheet and feed never move.

    Args:
        site_root: Root directory of the site.

    Returns:
        New locations of the moved files.
    """
    public = site_root / PUBLIC_DIR
    if not public.is_dir():
        return []

    posts_out = public / POSTS_DIR
    pages_out = public / PAGES_DIR
    posts_out.mkdir(exist_ok=True)
    pages_out.mkdir(exist_ok=True)

    moved: list[Path] = []
    for entry in sorted(public.iterdir(), key=lambda p: p.name):
        if not entry.is_file() or entry.name in CORE_ARTIFACTS:
            continue
        if entry.suffix != ".html":
            continue
        markdown_name = f"{entry.stem}.md"
        if (site_root / POSTS_DIR / markdown_name).is_file():
            target = posts_out / entry.name
        elif (site_root / PAGES_DIR / markdown_name).is_file() or (
            site_root / PAGES_DIR / entry.name
        ).is_file():
            target = pages_out / entry.name
        else:
            continue
        entry.rename(target)
        logger.info("  - Moved %s -> %s", entry.name, target.relative_to(public).as_posix())
        moved.append(target)

    if moved:
        logger.info("  - Migrated %d files to the organized structure", len(moved))
    else:
        logger.info("  - No files needed migration")
    return moved


def reset_unknown_color_scheme(site_root: Path) -> bool:
    """Replace an unrecognised ``theme.color_scheme`` with the default.

    Legacy JSON config files are rewritten as JSON so the later format
    conversion still sees them.

    Returns:
        True if the config file was changed.
    """
    store = ConfigStore(site_root)
    if not store.path.is_file():
        return False
    text = store.path.read_text(encoding="utf-8")
    if text.strip().startswith("{"):
        data = json.loads(text)
        theme = data.get("theme")
        if not isinstance(theme, dict):
            theme = data["theme"] = {}
        if theme.get("color_scheme") in COLOR_SCHEMES:
            return False
        theme["color_scheme"] = DEFAULT_COLOR_SCHEME
        store.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    else:
        config = store.load()
        if config.color_scheme in COLOR_SCHEMES:
            return False
        config.set_color_scheme(DEFAULT_COLOR_SCHEME)
        store.save(config)
    logger.info("  - Reset unknown color scheme to %s", DEFAULT_COLOR_SCHEME)
    return True


def _upgrade_themes(site_root: Path) -> None:
    logger.info("  - Added 3li7e theme")
    logger.info("  - Improved markdown page support")
    reset_unknown_color_scheme(site_root)


def _upgrade_config_format(site_root: Path) -> None:
    convert_json_config(site_root)


def _upgrade_directory_structure(site_root: Path) -> None:
    migrate_directory_structure(site_root)


MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        "0.0.0",
        "1.1.0",
        "Add version tracking and theme improvements",
        _notes("Adding version tracking"),
    ),
    Migration(
        "1.1.0",
        "1.1.5",
        "Remove dark mode media query interference",
        _notes("Updating CSS generation (removing dark mode conflicts)"),
    ),
    Migration(
        "1.1.5",
        "1.1.7",
        "Enhanced UI with colorful menus and improved navigation spacing",
        _notes("Updated navigation spacing"),
    ),
    Migration(
        "1.1.7",
        "1.1.8",
        "Added 3li7e retro CRT theme and enhanced post/page editing functionality",
        _upgrade_themes,
    ),
    Migration(
        "1.1.8",
        "1.4.0",
        "Added comprehensive markdown documentation and improved user experience",
        _notes("Documentation improvements"),
    ),
    Migration(
        "1.4.0",
        "1.4.1",
        "Project cleanup and config format migration",
        _upgrade_config_format,
    ),
    Migration(
        "1.4.1",
        "1.4.2",
        "Improved site structure with organized directories",
        _upgrade_directory_structure,
    ),
)
