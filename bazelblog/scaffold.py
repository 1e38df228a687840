"""Site and content scaffolding for BazelBlog.

Creates new sites with a starter layout, creates posts and pages with a
frontmatter header, finds existing content by name and opens it in the
configured editor.

Set ``BAZEL_SKIP_EDITOR=1`` to create content without launching an editor.
"""

from __future__ import annotations

import os
import shlex
import subprocess
from datetime import datetime, timezone
from pathlib import Path

import yaml

from . import __version__
from .config import ConfigStore, SiteConfig
from .content import PAGES_DIR, POSTS_DIR
from .errors import ScaffoldError
from .registry import Registry
from .templates import THEMES_DIR
from .upgrade import SiteVersion, save_site_version
from .utils import filename_for_title, format_long_date

SKIP_EDITOR_ENV = "BAZEL_SKIP_EDITOR"

SITE_DESCRIPTION = (
    "Welcome to Bazel! This is your new static site. "
    "Edit this description in bazel.yaml to make it your own."
)
REGISTRY_DESCRIPTION = "Welcome to Bazel! This is your new static site."

SAMPLE_POSTS = (
    (
        "First Steps",
        "July 1, 2025",
        "## Getting Started with Bazel\n\n"
        "Bazel is a simple and fast static site generator. Start by creating posts!",
    ),
    (
        "Design Ideas",
        "June 20, 2025",
        "## Designing a Great Static Site\n\n"
        "Consider theme and layout for your site's content. "
        "Use Bazel's options for customization.",
    ),
)

ABOUT_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>About</title>
</head>
<body>
    <h1>About Bazel</h1>
    <p>Welcome to your new static site generated with <strong>Bazel</strong>, a fast and simple static site generator.</p>

    <h2>Getting Started</h2>
    <h3>Creating Posts</h3>
    <pre><code>bazel post new "Your Post Title"</code></pre>
    <p>This creates a Markdown file in <code>posts/</code> and opens it in your editor.</p>

    <h3>Creating Pages</h3>
    <pre><code>bazel page new "Your Page Title"</code></pre>
    <p>This creates a Markdown file in <code>pages/</code>.</p>

    <h3>Building Your Site</h3>
    <pre><code>bazel build</code></pre>
    <p>This generates every HTML file and the feed in <code>public/</code>.</p>

    <h3>Development Server</h3>
    <pre><code>bazel serve</code></pre>
    <p>Preview the site at <code>http://localhost:3000</code>; pages reload when you save.</p>

    <h3>Configuration</h3>
    <p>Customize the site in <code>bazel.yaml</code>: title and description, theme colors and fonts, base URL and social links.</p>

    <h3>Themes</h3>
    <ul>
        <li><code>pika-beach</code> - A warm, beach-inspired theme (default)</li>
        <li><code>catppuccin-latte</code> - A light, elegant theme</li>
        <li><code>catppuccin-mocha</code> - A dark, modern theme</li>
        <li><code>3li7e</code> - A retro green-on-black CRT monitor theme</li>
    </ul>

    <h2>Next Steps</h2>
    <p>Start by creating your first post or customizing this about page. Happy blogging!</p>
</body>
</html>
"""


def new_site(target: Path, registry: Registry | None = None) -> Path:
    """Create a new site at ``target`` and register it.

    Args:
        target: Directory for the site; created if missing, must be empty.
        registry: Registry to record the site in; defaults to the user's.

    Returns:
        Resolved site root.

    Raises:
        ScaffoldError: If ``target`` is not empty or cannot be written.
        RegistryError: If the site cannot be registered.
    """
    root = target.resolve()
    if root.exists() and (not root.is_dir() or any(root.iterdir())):
        raise ScaffoldError(f"Refusing to initialize into non-empty directory: {root}")

    try:
        for folder in (POSTS_DIR, PAGES_DIR, THEMES_DIR):
            (root / folder).mkdir(parents=True, exist_ok=True)

        config = SiteConfig(
            site_name=root.name, title="Bazel Blog!", description=SITE_DESCRIPTION
        )
        ConfigStore(root).save(config)

        (root / PAGES_DIR / "about.html").write_text(ABOUT_PAGE, encoding="utf-8")
        for title, date, body in SAMPLE_POSTS:
            frontmatter = {"title": title, "date": date}
            _write_content(root / POSTS_DIR / f"{title}.md", frontmatter, body)

        record = SiteVersion(version=__version__, last_upgrade=datetime.now(timezone.utc))
        save_site_version(root, record)
    except OSError as exc:
        raise ScaffoldError(f"failed to create site at {root}: {exc}") from exc

    registry = registry or Registry.load()
    registry.add_site(root.name, root, REGISTRY_DESCRIPTION)
    return root


def new_post(site_root: Path, title: str, now: datetime | None = None) -> Path:
    """Create ``posts/<title>.md`` with title, date and time frontmatter."""
    now = now or datetime.now()
    frontmatter = {"title": title, "date": format_long_date(now), "time": now.strftime("%H:%M")}
    return _create(site_root / POSTS_DIR, "post", title, frontmatter, "Start writing here...")


def new_page(site_root: Path, title: str, now: datetime | None = None) -> Path:
    """Create ``pages/<title>.md`` with a heading matching the title."""
    now = now or datetime.now()
    frontmatter = {"title": title, "date": format_long_date(now)}
    body = f"# {title}\n\nStart writing here..."
    return _create(site_root / PAGES_DIR, "page", title, frontmatter, body)


def _create(folder: Path, kind: str, title: str, frontmatter: dict, body: str) -> Path:
    title = title.strip()
    if not title or "/" in title or "\\" in title:
        raise ScaffoldError(f"invalid {kind} title: {title!r}")
    path = folder / f"{filename_for_title(title)}.md"
    if path.exists():
        raise ScaffoldError(f"{kind} already exists: {path.name}")
    try:
        folder.mkdir(parents=True, exist_ok=True)
        _write_content(path, frontmatter, body)
    except OSError as exc:
        raise ScaffoldError(f"failed to create {kind}: {exc}") from exc
    return path


def _write_content(path: Path, frontmatter: dict, body: str) -> None:
    header = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    path.write_text(f"---\n{header}---\n\n{body}\n", encoding="utf-8")


def list_posts(site_root: Path) -> list[str]:
    """Return post names (filenames without ``.md``), sorted."""
    folder = site_root / POSTS_DIR
    if not folder.is_dir():
        return []
    return sorted(p.stem for p in folder.iterdir() if p.is_file() and p.suffix == ".md")


def list_pages(site_root: Path) -> list[str]:
    """Return page names for ``.md`` and ``.html`` files, sorted."""
    folder = site_root / PAGES_DIR
    if not folder.is_dir():
        return []
    return sorted(
        {p.stem for p in folder.iterdir() if p.is_file() and p.suffix in (".md", ".html")}
    )


def find_post(site_root: Path, name: str) -> Path:
    path = site_root / POSTS_DIR / f"{name}.md"
    if not path.is_file():
        raise ScaffoldError(f"post not found: {name}")
    return path


def find_page(site_root: Path, name: str) -> Path:
    """Locate a page by name, preferring Markdown over legacy HTML."""
    for suffix in (".md", ".html"):
        path = site_root / PAGES_DIR / f"{name}{suffix}"
        if path.is_file():
            return path
    raise ScaffoldError(f"page not found: {name}")


def delete_post(site_root: Path, name: str) -> Path:
    """Remove the source of post ``name`` and return the deleted path.

    The rendered page disappears from ``public/`` on the next build.

    Raises:
        ScaffoldError: If the post does not exist or cannot be removed.
    """
    return _delete(find_post(site_root, name), "post")


def delete_page(site_root: Path, name: str) -> Path:
    """Remove the source of page ``name`` (Markdown before legacy HTML)."""
    return _delete(find_page(site_root, name), "page")


def _delete(path: Path, kind: str) -> Path:
    try:
        path.unlink()
    except OSError as exc:
        raise ScaffoldError(f"failed to delete {kind} {path.name}: {exc}") from exc
    return path


def open_in_editor(path: Path, config: SiteConfig) -> None:
    """Open ``path`` in the configured editor and wait for it to exit.

    Raises:
        ScaffoldError: If the editor cannot be started or exits with an error.
    """
    if os.environ.get(SKIP_EDITOR_ENV) == "1":
        return
    command = shlex.split(config.resolved_editor()) + [str(path)]
    try:
        subprocess.run(command, check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise ScaffoldError(f"failed to open editor: {exc}") from exc
