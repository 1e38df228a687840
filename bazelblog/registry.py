"""Registry of known BazelBlog sites.

The registry is a small JSON file listing every site created or opened with
the tool, so site-bound commands can offer a picker when run outside a site.
It lives at ``~/.config/bazel/sites.json`` unless ``BAZEL_REGISTRY`` points
elsewhere.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import CONFIG_FILENAME
from .errors import RegistryError

logger = logging.getLogger(__name__)

REGISTRY_ENV = "BAZEL_REGISTRY"


def default_registry_path() -> Path:
    override = os.environ.get(REGISTRY_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "bazel" / "sites.json"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SiteEntry:
    """One registered site.

    Attributes:
        name: Site name.
        path: Absolute path of the site root.
        created_at: When the site was first registered.
        last_used: When the site was last selected or registered.
        description: Free-form description.
    """

    name: str
    path: str
    created_at: datetime = field(default_factory=_now)
    last_used: datetime = field(default_factory=_now)
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "created_at": self.created_at.isoformat(),
            "last_used": self.last_used.isoformat(),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SiteEntry:
        return cls(
            name=str(data["name"]),
            path=str(data["path"]),
            created_at=_parse_timestamp(data.get("created_at")),
            last_used=_parse_timestamp(data.get("last_used")),
            description=str(data.get("description") or ""),
        )


def _parse_timestamp(value: Any) -> datetime:
    if not value:
        return _now()
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Registry:
    """In-memory view of the registry file.

    Mutating methods save immediately.

    Attributes:
        path: Location of the JSON file.
        sites: Registered sites in registration order.
    """

    def __init__(self, path: Path | None = None, sites: list[SiteEntry] | None = None):
        self.path = path or default_registry_path()
        self.sites = sites or []

    @classmethod
    def load(cls, path: Path | None = None) -> Registry:
        """Read the registry, returning an empty one when the file is absent.

        Raises:
            RegistryError: If the file exists but cannot be read or decoded.
        """
        path = path or default_registry_path()
        if not path.exists():
            return cls(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            sites = [SiteEntry.from_dict(item) for item in data.get("sites") or []]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            raise RegistryError(f"failed to read registry file {path}: {exc}") from exc
        return cls(path, sites)

    def save(self) -> None:
        """Write the registry file, creating its directory as needed.

        Raises:
            RegistryError: If the file cannot be written.
        """
        payload = {"sites": [site.to_dict() for site in self.sites]}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise RegistryError(f"failed to write registry file {self.path}: {exc}") from exc

    def add_site(self, name: str, path: Path, description: str = "") -> SiteEntry:
        """Register a site, updating the entry if its path is already known."""
        key = str(path.resolve())
        entry = self._find_by_path(key)
        if entry:
            entry.name = name
            entry.description = description
            entry.last_used = _now()
        else:
            entry = SiteEntry(name=name, path=key, description=description)
            self.sites.append(entry)
        self.save()
        return entry

    def remove_site(self, path: Path) -> SiteEntry:
        """Unregister the site at ``path``.

        Raises:
            RegistryError: If no site is registered at ``path``.
        """
        entry = self._find_by_path(str(path.resolve()))
        if entry is None:
            raise RegistryError(f"site not found in registry: {path}")
        self.sites.remove(entry)
        self.save()
        return entry

    def touch_last_used(self, path: Path) -> None:
        """Mark the site at ``path`` as just used; unknown paths are ignored."""
        entry = self._find_by_path(str(path.resolve()))
        if entry is None:
            return
        entry.last_used = _now()
        self.save()

    def find_by_name(self, name: str) -> SiteEntry | None:
        for site in self.sites:
            if site.name == name:
                return site
        return None

    def validate_sites(self) -> list[SiteEntry]:
        """Drop entries whose site config file no longer exists.

        Returns:
            The entries that were dropped.
        """
        kept, dropped = [], []
        for site in self.sites:
            if (Path(site.path) / CONFIG_FILENAME).is_file():
                kept.append(site)
            else:
                dropped.append(site)
        for site in dropped:
            logger.info("Dropping missing site from registry: %s (%s)", site.name, site.path)
        self.sites = kept
        return dropped

    def _find_by_path(self, key: str) -> SiteEntry | None:
        for site in self.sites:
            if site.path == key:
                return site
        return None
