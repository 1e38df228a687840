"""Site upgrade engine for BazelBlog.

Each site records the tool version it was last upgraded with in
``.bazel-version``. ``UpgradeEngine.run`` walks the declared migrations in
order, applies every step whose range covers the site's version, records
the new version and rebuilds the site once.

Versions compare numerically per component, so ``1.10.0`` is newer than
``1.9.0``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from . import __version__
from .build import build_site
from .config import ConfigStore
from .errors import BuildError, MigrationError, UpgradeError, VersionFileError
from .migrations import MIGRATIONS, Migration

logger = logging.getLogger(__name__)

VERSION_FILE = ".bazel-version"
INITIAL_VERSION = "0.0.0"


@dataclass
class SiteVersion:
    """Persisted version record of a site.

    Attributes:
        version: Tool version the site was last upgraded with.
        last_upgrade: When the last upgrade finished.
        features: Feature flags recorded by the tool.
    """

    version: str = INITIAL_VERSION
    last_upgrade: datetime | None = None
    features: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "last_upgrade": self.last_upgrade.isoformat() if self.last_upgrade else None,
            "features": dict(self.features),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SiteVersion:
        last_upgrade = data.get("last_upgrade")
        return cls(
            version=str(data.get("version") or INITIAL_VERSION),
            last_upgrade=datetime.fromisoformat(last_upgrade) if last_upgrade else None,
            features=dict(data.get("features") or {}),
        )


def load_site_version(site_root: Path) -> SiteVersion | None:
    """Read ``.bazel-version`` from a site.

    Returns:
        The record, or None when the file does not exist.

    Raises:
        VersionFileError: If the file exists but cannot be read or decoded.
    """
    path = site_root / VERSION_FILE
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("expected a JSON object")
        return SiteVersion.from_dict(data)
    except (OSError, ValueError) as exc:
        raise VersionFileError(path, f"failed to read version file: {exc}") from exc


def save_site_version(site_root: Path, record: SiteVersion) -> Path:
    """Write ``.bazel-version``.

    Raises:
        OSError: If the file cannot be written.
    """
    path = site_root / VERSION_FILE
    path.write_text(json.dumps(record.to_dict(), indent=2), encoding="utf-8")
    return path


def check_site_version(site_root: Path) -> str:
    """Return the recorded version of a site, ``0.0.0`` if none is recorded."""
    record = load_site_version(site_root)
    return record.version if record else INITIAL_VERSION


def parse_version(version: str) -> tuple[int, int, int]:
    """Split ``major.minor.patch`` into integers.

    Missing or non-numeric components count as zero.
    """
    parts = version.strip().lstrip("v").split(".")
    numbers = []
    for part in (parts + ["0", "0", "0"])[:3]:
        try:
            numbers.append(int(part))
        except ValueError:
            numbers.append(0)
    return numbers[0], numbers[1], numbers[2]


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1 as ``a`` is older than, equal to or newer than ``b``."""
    left, right = parse_version(a), parse_version(b)
    return (left > right) - (left < right)


def plan_upgrade(
    current: str, target: str, migrations: Sequence[Migration] = MIGRATIONS
) -> list[Migration]:
    """Select the steps that take a site from ``current`` towards ``target``.

    Steps are considered in declaration order. A step is eligible when the
    running version is at least its ``from_version`` and below its
    ``to_version``; taking it advances the running version to ``to_version``.
    """
    if compare_versions(current, target) >= 0:
        return []
    plan = []
    for migration in migrations:
        if (
            compare_versions(current, migration.from_version) >= 0
            and compare_versions(current, migration.to_version) < 0
        ):
            plan.append(migration)
            current = migration.to_version
    return plan


@dataclass
class UpgradeResult:
    """Outcome of an upgrade run.

    Attributes:
        start_version: Version recorded before the run.
        final_version: Version recorded after the run.
        applied: Steps applied, in order.
    """

    start_version: str
    final_version: str
    applied: list[Migration] = field(default_factory=list)

    @property
    def upgraded(self) -> bool:
        return bool(self.applied)


class UpgradeEngine:
    """Applies pending migrations to a site.

    Attributes:
        migrations: Declared steps, in order.
        tool_version: Version of the running tool.
        build: Called once with the site root after a successful upgrade.
    """

    def __init__(
        self,
        migrations: Sequence[Migration] = MIGRATIONS,
        tool_version: str = __version__,
        build: Callable[[Path], object] = build_site,
    ):
        self.migrations = list(migrations)
        self.tool_version = tool_version
        self.build = build

    def run(self, site_root: Path) -> UpgradeResult:
        """Upgrade a site to the tool version.

        Nothing is persisted unless every step succeeds.

        Raises:
            UpgradeError: If ``site_root`` is not a site, the version record
                cannot be saved or the rebuild fails.
            VersionFileError: If ``.bazel-version`` is corrupt.
            MigrationError: If a step fails.
        """
        if not ConfigStore(site_root).exists():
            raise UpgradeError(f"not a Bazel site (no config file in {site_root})")

        record = load_site_version(site_root) or SiteVersion()
        start = record.version
        logger.info("Current site version: %s", start)
        logger.info("Tool version: %s", self.tool_version)

        plan = plan_upgrade(start, self.tool_version, self.migrations)
        if not plan:
            logger.info("No upgrades needed")
            return UpgradeResult(start_version=start, final_version=start)

        for migration in plan:
            logger.info("Applying upgrade %s: %s", migration.to_version, migration.description)
            try:
                migration.apply(site_root)
            except Exception as exc:
                raise MigrationError(migration, exc) from exc

        record.version = plan[-1].to_version
        record.last_upgrade = datetime.now(timezone.utc)
        try:
            save_site_version(site_root, record)
        except OSError as exc:
            raise UpgradeError(f"failed to save version file: {exc}") from exc

        logger.info("Rebuilding site with new features")
        try:
            self.build(site_root)
        except BuildError as exc:
            raise UpgradeError(f"rebuild after upgrade failed: {exc}") from exc
        logger.info("Site upgraded to version %s", record.version)
        return UpgradeResult(start_version=start, final_version=record.version, applied=plan)
