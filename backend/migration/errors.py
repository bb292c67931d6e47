"""
Error taxonomy for the legacy image migration.

URL classification skips are not errors - the classifier simply returns False.

- FetchError / UploadError: per-URL, caught by the field migrator and
  remembered in the migration cache.
- PersistError: per-row, caught by the orchestrator.
- FatalConfigError: raised before any row is processed; the CLI exits 1.
"""

from typing import Optional


class MigrationError(Exception):
    """Base class for all migration errors."""


class FetchError(MigrationError):
    """Legacy host did not return the image (non-200, transport error, timeout)."""

    def __init__(self, reason: str, status: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.status = status


class UploadError(MigrationError):
    """Object store rejected the write."""


class PersistError(MigrationError):
    """Update statement for a row failed."""


class FatalConfigError(MigrationError):
    """Missing required configuration or unreachable relational store."""
