"""Exception types shared across BazelBlog.

Filesystem failures surface as plain ``OSError``; everything the tool raises
itself derives from ``BazelError`` so the CLI can report it uniformly.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .migrations import Migration


class BazelError(Exception):
    """Base class for errors reported to the user."""


class ConfigError(BazelError):
    """The site configuration file exists but cannot be read or decoded.

    Attributes:
        path: Path to the offending config file.
    """

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class BuildError(BazelError):
    """Error during a site build, tagged with the stage that failed.

    Attributes:
        stage: Name of the build stage (e.g. ``render-posts``).
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        stage: str,
        message: str,
        original_error: Exception | None = None,
    ):
        self.stage = stage
        self.message = message
        self.original_error = original_error
        super().__init__(f"{stage}: {message}")


class VersionFileError(BazelError):
    """The persisted site version record exists but cannot be decoded."""

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class MigrationError(BazelError):
    """A migration step failed; the upgrade chain was aborted.

    Attributes:
        migration: The step that failed.
        original_error: Underlying cause.
    """

    def __init__(self, migration: Migration, original_error: Exception):
        self.migration = migration
        self.original_error = original_error
        super().__init__(
            f"failed to apply upgrade {migration.to_version} "
            f"({migration.description}): {original_error}"
        )


class UpgradeError(BazelError):
    """The upgrade could not start or could not be finalized."""


class RegistryError(BazelError):
    """The site registry cannot be read or written."""


class ScaffoldError(BazelError):
    """Creating a site, post or page failed."""
