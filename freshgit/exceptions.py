"""Custom error hierarchy for freshgit.

Only batch-fatal conditions are raised; per-repository problems are logged
and reported through :class:`freshgit.models.ProcessOutcome`.
"""

from __future__ import annotations

from pathlib import Path


class FreshgitError(RuntimeError):
    """Base error for the CLI."""


class ConfigError(FreshgitError):
    """Raised when the configuration file is missing, unreadable or invalid."""


class MissingSourceError(FreshgitError):
    """Raised when the source folder does not exist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Source folder doesn't exist, aborting: {path}")


class MissingListFileError(FreshgitError):
    """Raised when at least one declared repository list file is missing."""

    def __init__(self, missing: list[Path]):
        self.missing = list(missing)
        listed = ", ".join(str(path) for path in self.missing)
        super().__init__(f"At least one file doesn't exist, aborting: {listed}")


class ValidationError(FreshgitError):
    """Raised when a value fails validation."""


__all__ = [
    "FreshgitError",
    "ConfigError",
    "MissingSourceError",
    "MissingListFileError",
    "ValidationError",
]
