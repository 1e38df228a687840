"""Command-line interface for BazelBlog.

This module defines the CLI commands using Click framework.
Site-bound commands run against the current directory when it holds a
``bazel.yaml``; otherwise the user picks one of the registered sites.

Commands:
- new site: Scaffold a new site and register it.
- build: Build the site into ``public/``.
- serve: Run development server with live reload.
- upgrade: Apply pending site upgrades and rebuild.
- sites: List registered sites.
- post / page: Create, edit, delete and list content.
- theme / font: Pick the color scheme or font.
- config: Show or change site settings.
- version: Print the tool version.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

import click
import questionary

from . import __version__
from .config import (
    COLOR_SCHEMES,
    CONFIG_FILENAME,
    EDITORS,
    FONTS,
    SOCIAL_PLATFORMS,
    ConfigStore,
    SiteConfig,
)
from .errors import BazelError
from .registry import Registry

logger = logging.getLogger(__name__)

LOG_LEVELS = ["critical", "error", "warning", "info", "debug"]
CONFIG_KEYS = ["site_name", "title", "description", "base_url", "editor"]


def _configure_logging(level_name: str | None) -> None:
    level_str = (level_name or "info").upper()
    if level_str not in {lvl.upper() for lvl in LOG_LEVELS}:
        level_str = "INFO"
    logging.basicConfig(
        level=getattr(logging, level_str, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.debug("Logging configured at %s", level_str)


@contextmanager
def _reporting() -> Iterator[None]:
    """Turn tool errors into a one-line ``Error: ...`` message and exit status 1."""
    try:
        yield
    except (BazelError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(version=__version__, prog_name="bazel")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    envvar="BAZEL_LOG_LEVEL",
    default="info",
    show_default=True,
    help="Logging verbosity (also read from BAZEL_LOG_LEVEL).",
)
def cli(log_level: str):
    """Bazel static site generator."""
    _configure_logging(log_level)


@cli.group()
def new():
    """Create new sites."""


@new.command("site")
@click.argument("name")
def new_site_command(name: str):
    """Scaffold a new site in NAME and register it."""
    from .scaffold import new_site

    with _reporting():
        root = new_site(Path(name))
    click.echo(f"Created new site: {name}")
    click.echo(f"Site '{root.name}' registered at {root}")
    click.echo("You can now run bazel commands from anywhere!")


@cli.command()
def build():
    """Build the site into the public/ directory."""
    from .build import build_site
    from .errors import BuildError

    root = _site_root()
    try:
        result = build_site(root)
    except BuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  Stage: {exc.stage}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    click.echo(
        f"Built {len(result.posts)} posts and {len(result.pages)} pages "
        f"into {result.output_dir}"
    )


@cli.command()
@click.option("--port", type=int, default=3000, show_default=True, help="Port to serve on")
def serve(port: int):
    """Run dev server with live reload."""
    from .server import DevServer

    root = _site_root()
    with _reporting():
        DevServer(root, port=port).start()


@cli.command()
def upgrade():
    """Upgrade the site to the current tool version and rebuild it."""
    from .upgrade import UpgradeEngine

    root = _site_root()
    with _reporting():
        result = UpgradeEngine().run(root)
    if not result.upgraded:
        click.echo(f"Site is already up to date (version {result.start_version})")
        return
    for migration in result.applied:
        click.echo(f"  applied {migration.to_version}: {migration.description}")
    click.echo(f"Site upgraded from {result.start_version} to {result.final_version}")


@cli.command()
def sites():
    """List registered sites."""
    with _reporting():
        registry = Registry.load()
        registry.validate_sites()
        registry.save()

    if not registry.sites:
        click.echo("No Bazel sites found in registry.")
        click.echo("Create a new site with: bazel new site <name>")
        return

    click.echo("Registered Bazel Sites:")
    click.echo("")
    for index, site in enumerate(registry.sites, start=1):
        click.echo(f"{index}. {site.name}")
        click.echo(f"   {site.path}")
        if site.description:
            click.echo(f"   {site.description}")
        click.echo(f"   Last used: {_format_last_used(site.last_used)}")
        click.echo("")
    click.echo(f"Total: {len(registry.sites)} site(s)")


@cli.command()
def version():
    """Print the tool version."""
    click.echo(f"bazel version {__version__}")
    if (Path.cwd() / CONFIG_FILENAME).is_file():
        from .upgrade import check_site_version

        with _reporting():
            click.echo(f"site version {check_site_version(Path.cwd())}")


@cli.group()
def post():
    """Create, edit, delete and list posts."""


@post.command("new")
@click.argument("title")
def post_new(title: str):
    """Create a post titled TITLE and open it in the editor."""
    from .scaffold import new_post, open_in_editor

    root = _site_root()
    with _reporting():
        path = new_post(root, title)
        click.echo(f"Created {path.relative_to(root)}")
        open_in_editor(path, ConfigStore(root).load())


@post.command("edit")
@click.argument("name", required=False)
def post_edit(name: str | None):
    """Open an existing post in the editor."""
    from .scaffold import find_post, list_posts, open_in_editor

    root = _site_root()
    with _reporting():
        name = name or _pick("Select post:", list_posts(root), "No posts found.")
        open_in_editor(find_post(root, name), ConfigStore(root).load())


@post.command("delete")
@click.argument("name", required=False)
@click.option("--yes", "-y", is_flag=True, help="Delete without asking for confirmation")
def post_delete(name: str | None, yes: bool):
    """Delete a post (prompts when NAME is omitted)."""
    from .scaffold import delete_post, find_post, list_posts

    root = _site_root()
    with _reporting():
        name = name or _pick("Select post to delete:", list_posts(root), "No posts found.")
        find_post(root, name)
        if not yes and not _confirm(f"Delete post '{name}'?"):
            click.echo("Cancelled")
            return
        delete_post(root, name)
    click.echo(f"Deleted post: {name}")


@post.command("list")
def post_list():
    """List posts."""
    from .scaffold import list_posts

    root = _site_root()
    _echo_names(list_posts(root), "No posts found.")


@cli.group()
def page():
    """Create, edit, delete and list pages."""


@page.command("new")
@click.argument("title")
def page_new(title: str):
    """Create a page titled TITLE and open it in the editor."""
    from .scaffold import new_page, open_in_editor

    root = _site_root()
    with _reporting():
        path = new_page(root, title)
        click.echo(f"Created {path.relative_to(root)}")
        open_in_editor(path, ConfigStore(root).load())


@page.command("edit")
@click.argument("name", required=False)
def page_edit(name: str | None):
    """Open an existing page in the editor."""
    from .scaffold import find_page, list_pages, open_in_editor

    root = _site_root()
    with _reporting():
        name = name or _pick("Select page:", list_pages(root), "No pages found.")
        open_in_editor(find_page(root, name), ConfigStore(root).load())


@page.command("delete")
@click.argument("name", required=False)
@click.option("--yes", "-y", is_flag=True, help="Delete without asking for confirmation")
def page_delete(name: str | None, yes: bool):
    """Delete a page (prompts when NAME is omitted)."""
    from .scaffold import delete_page, find_page, list_pages

    root = _site_root()
    with _reporting():
        name = name or _pick("Select page to delete:", list_pages(root), "No pages found.")
        find_page(root, name)
        if not yes and not _confirm(f"Delete page '{name}'?"):
            click.echo("Cancelled")
            return
        delete_page(root, name)
    click.echo(f"Deleted page: {name}")


@page.command("list")
def page_list():
    """List pages."""
    from .scaffold import list_pages

    root = _site_root()
    _echo_names(list_pages(root), "No pages found.")


@cli.command()
@click.argument("name", type=click.Choice(COLOR_SCHEMES), required=False)
def theme(name: str | None):
    """Set the color scheme (prompts when NAME is omitted)."""
    root = _site_root()
    with _reporting():
        store = ConfigStore(root)
        config = store.load()
        name = name or _pick(
            "Select color scheme:", COLOR_SCHEMES, default=config.color_scheme
        )
        config.set_color_scheme(name)
        store.save(config)
    click.echo(f"Color scheme set to {name}")


@cli.command()
@click.argument("name", type=click.Choice(FONTS), required=False)
def font(name: str | None):
    """Set the font (prompts when NAME is omitted)."""
    root = _site_root()
    with _reporting():
        store = ConfigStore(root)
        config = store.load()
        name = name or _pick("Select font:", FONTS, default=config.font)
        config.set_font(name)
        store.save(config)
    click.echo(f"Font set to {name}")


@cli.group("config")
def config_group():
    """Show or change site settings."""


@config_group.command("show")
def config_show():
    """Print the site settings."""
    root = _site_root()
    with _reporting():
        config = ConfigStore(root).load()
    _echo_config(config)


@config_group.command("set")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
@click.argument("value")
def config_set(key: str, value: str):
    """Set KEY to VALUE."""
    if key == "editor" and value not in EDITORS:
        raise click.BadParameter(
            f"must be one of: {', '.join(EDITORS)}", param_hint="'VALUE'"
        )
    root = _site_root()
    with _reporting():
        store = ConfigStore(root)
        config = store.load()
        setattr(config, key, value)
        store.save(config)
    click.echo(f"{key} set to {value}")


@config_group.command("social")
@click.argument("platform", type=click.Choice(SOCIAL_PLATFORMS))
@click.argument("url", required=False)
@click.option("--remove", is_flag=True, help="Remove the link instead of setting it")
def config_social(platform: str, url: str | None, remove: bool):
    """Set or remove the social link for PLATFORM."""
    if not remove and not url:
        raise click.UsageError("URL is required unless --remove is given")
    root = _site_root()
    with _reporting():
        store = ConfigStore(root)
        config = store.load()
        if remove:
            config.remove_social(platform)
        else:
            config.set_social(platform, url)
        store.save(config)
    click.echo(f"Removed {platform} link" if remove else f"{platform} set to {url}")


def _site_root() -> Path:
    """Return the site to operate on.

    The current directory wins when it holds a config file. Otherwise the
    user picks a registered site, whose ``last_used`` is then refreshed.
    """
    cwd = Path.cwd()
    if (cwd / CONFIG_FILENAME).is_file():
        return cwd

    with _reporting():
        registry = Registry.load()
        registry.validate_sites()
        registry.save()
    if not registry.sites:
        raise click.ClickException(
            "Not in a Bazel site and no sites are registered. "
            "Create one with: bazel new site <name>"
        )

    choices = [
        questionary.Choice(title=f"{site.name} ({site.path})", value=site.path)
        for site in sorted(registry.sites, key=lambda s: s.last_used, reverse=True)
    ]
    selected = questionary.select(
        "Select a site:", choices=choices, style=_questionary_style()
    ).ask()
    if selected is None:
        raise click.Abort()

    root = Path(selected)
    with _reporting():
        registry.touch_last_used(root)
    click.echo(f"Working with site: {root.name}")
    return root


def _pick(
    message: str, choices: list[str], empty: str = "", default: str | None = None
) -> str:
    if not choices:
        raise click.ClickException(empty)
    answer = questionary.select(
        message,
        choices=choices,
        default=default if default in choices else None,
        style=_questionary_style(),
    ).ask()
    if answer is None:
        raise click.Abort()
    return answer


def _confirm(message: str) -> bool:
    answer = questionary.confirm(message, default=False, style=_questionary_style()).ask()
    if answer is None:
        raise click.Abort()
    return answer


def _echo_names(names: list[str], empty: str) -> None:
    if not names:
        click.echo(empty)
        return
    for name in names:
        click.echo(name)


def _echo_config(config: SiteConfig) -> None:
    click.echo(f"site_name:    {config.site_name}")
    click.echo(f"title:        {config.title}")
    click.echo(f"description:  {config.description}")
    click.echo(f"base_url:     {config.base_url}")
    click.echo(f"color_scheme: {config.color_scheme}")
    click.echo(f"font:         {config.font}")
    click.echo(f"editor:       {config.editor}")
    if config.socials:
        click.echo("socials:")
        for platform, url in sorted(config.socials.items()):
            click.echo(f"  {platform}: {url}")


def _format_last_used(last_used: datetime) -> str:
    elapsed = datetime.now(timezone.utc) - last_used
    if elapsed.total_seconds() < 24 * 3600:
        return f"{int(elapsed.total_seconds() // 3600)} hours ago"
    return f"{last_used:%b} {last_used.day}, {last_used.year}"


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
