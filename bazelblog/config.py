"""Site configuration for BazelBlog.

Each site keeps its settings in ``bazel.yaml`` at the site root. This module
defines the ``SiteConfig`` record, the closed enumerations for themes, fonts,
editors and social platforms, and ``ConfigStore`` which loads and saves the
file.

Load policy: a missing file yields the defaults; a file that exists but
cannot be read or decoded raises ``ConfigError`` rather than silently
falling back to defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

CONFIG_FILENAME = "bazel.yaml"

DEFAULT_COLOR_SCHEME = "pika-beach"
DEFAULT_FONT = "pika-serif"

COLOR_SCHEMES = [
    "pika-beach",
    "catppuccin-latte",
    "catppuccin-frappe",
    "catppuccin-macchiato",
    "catppuccin-mocha",
    "dracula",
    "nord",
    "tokyo-night",
    "3li7e",
]

FONTS = [
    "pika-serif",
    "system",
    "serif",
    "monospace",
    "arial",
    "helvetica",
    "georgia",
    "times",
]

EDITORS = [
    "auto",
    "vim",
    "nvim",
    "nano",
    "emacs",
    "hx",
    "vi",
    "code",
    "subl",
    "atom",
    "gedit",
    "kate",
]

SOCIAL_PLATFORMS = [
    "twitter",
    "github",
    "linkedin",
    "facebook",
    "instagram",
    "youtube",
    "mastodon",
    "email",
]


@dataclass
class SiteConfig:
    """Settings for one site.

    Attributes:
        site_name: Short name used in the registry.
        title: Site title shown in the header and feed.
        description: Intro text on the homepage and feed description.
        base_url: Absolute URL the site is deployed at (used by the feed).
        color_scheme: One of ``COLOR_SCHEMES``.
        font: One of ``FONTS``.
        editor: Editor command, or ``auto`` to use ``$EDITOR``.
        socials: Mapping of platform name to profile URL.
    """

    site_name: str = ""
    title: str = "My Bazel Site"
    description: str = "A static site generated with Bazel"
    base_url: str = "https://example.com"
    color_scheme: str = DEFAULT_COLOR_SCHEME
    font: str = DEFAULT_FONT
    editor: str = "auto"
    socials: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SiteConfig:
        """Build a config from the persisted nested mapping.

        Unknown keys are ignored and missing keys keep their defaults.
        """
        defaults = cls()
        theme = data.get("theme") or {}
        if not isinstance(theme, dict):
            theme = {}
        socials = data.get("socials") or {}
        if not isinstance(socials, dict):
            socials = {}
        return cls(
            site_name=str(data.get("site_name") or ""),
            title=_str_or(data.get("title"), defaults.title),
            description=_str_or(data.get("description"), defaults.description),
            base_url=_str_or(data.get("base_url"), defaults.base_url),
            color_scheme=_str_or(theme.get("color_scheme"), defaults.color_scheme),
            font=_str_or(theme.get("font"), defaults.font),
            editor=_str_or(data.get("editor"), defaults.editor),
            socials={str(k): str(v) for k, v in socials.items()},
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the nested mapping written to ``bazel.yaml``."""
        return {
            "site_name": self.site_name,
            "title": self.title,
            "description": self.description,
            "base_url": self.base_url,
            "theme": {"color_scheme": self.color_scheme, "font": self.font},
            "socials": dict(self.socials),
            "editor": self.editor,
        }

    def set_color_scheme(self, scheme: str) -> None:
        self.color_scheme = scheme

    def set_font(self, font: str) -> None:
        self.font = font

    def set_editor(self, editor: str) -> None:
        self.editor = editor

    def set_social(self, platform: str, url: str) -> None:
        self.socials[platform] = url

    def remove_social(self, platform: str) -> None:
        self.socials.pop(platform, None)

    def resolved_editor(self) -> str:
        """Return the editor command to launch.

        ``auto`` (or an empty setting) defers to ``$EDITOR`` and then ``vi``.
        """
        if not self.editor or self.editor == "auto":
            return os.environ.get("EDITOR") or "vi"
        return self.editor


def _str_or(value: Any, default: str) -> str:
    if value is None:
        return default
    return str(value)


class ConfigStore:
    """Loads and saves ``bazel.yaml`` for a site.

    Attributes:
        site_root: Root directory of the site.
        path: Path to the config file.
    """

    def __init__(self, site_root: Path):
        self.site_root = site_root
        self.path = site_root / CONFIG_FILENAME

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> SiteConfig:
        """Load the site configuration.

        Returns:
            The stored configuration, or defaults when the file is absent.

        Raises:
            ConfigError: If the file exists but cannot be read or parsed.
        """
        if not self.path.exists():
            return SiteConfig()
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(self.path, f"failed to read config file: {exc}") from exc
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(self.path, f"failed to parse config file: {exc}") from exc
        if data is None:
            return SiteConfig()
        if not isinstance(data, dict):
            raise ConfigError(self.path, "config file must contain a mapping")
        return SiteConfig.from_dict(data)

    def save(self, config: SiteConfig) -> None:
        """Write the configuration back to disk.

        Raises:
            OSError: If the file cannot be written.
        """
        text = yaml.safe_dump(
            config.to_dict(), sort_keys=False, allow_unicode=True, default_flow_style=False
        )
        self.path.write_text(text, encoding="utf-8")
