"""
Worker logging utilities with Protocol + Mixin pattern.

Provides trait-like logging functionality for the migration run.
Each context defines its worker type and context format, the mixin provides
consistent log_debug/log_info/log_warning/log_error methods.

Usage:
    class RowContext(WorkerLoggerMixin):
        worker_type = WorkerType.MIGRATOR

        def __init__(self, table: str, record_id: object):
            self.table = table
            self.record_id = record_id

        def _log_context(self) -> str:
            return f"table={self.table}:id={self.record_id}"

    ctx = RowContext("hiolabs_goods", 7)
    ctx.log_info("Updated")  # [ImageMigrator:table=hiolabs_goods:id=7] Updated
"""

import logging
from enum import Enum
from typing import Optional, Protocol

logger = logging.getLogger()
logger.setLevel(logging.INFO)


class WorkerType(Enum):
    """Worker type enum for log prefix identification."""
    MIGRATOR = "ImageMigrator"
    CACHE = "MigrationCache"


class WorkerLoggerProtocol(Protocol):
    """
    Protocol defining what classes using WorkerLoggerMixin must provide.

    This enables type checking - mypy will error if a class uses the mixin
    but doesn't define worker_type or _log_context().
    """
    worker_type: WorkerType

    def _log_context(self) -> str:
        """Return context string like 'run' or 'table=hiolabs_goods:id=7'."""
        ...


class WorkerLoggerMixin:
    """
    Mixin providing log_debug/log_info/log_warning/log_error methods.

    Classes using this mixin must satisfy WorkerLoggerProtocol:
    - Define worker_type: WorkerType class attribute
    - Implement _log_context() -> str method

    Log format: [WorkerType:context] message
    In dry-run mode: [DRY-RUN][WorkerType:context] message

    Examples:
    - [ImageMigrator:run] Starting migration
    - [DRY-RUN][ImageMigrator:table=hiolabs_goods:id=7] 2 fields changed
    """

    # Set by subclass __init__ to add [DRY-RUN] prefix
    dry_run: bool = False

    def _log_prefix(self: WorkerLoggerProtocol) -> str:
        """Build log prefix from worker type and context."""
        dry_prefix = "[DRY-RUN]" if getattr(self, 'dry_run', False) else ""
        return f"{dry_prefix}[{self.worker_type.value}:{self._log_context()}]"

    def log_debug(self: WorkerLoggerProtocol, message: str) -> None:
        """Log debug message with worker prefix."""
        logger.debug(f"{self._log_prefix()} {message}")

    def log_info(self: WorkerLoggerProtocol, message: str) -> None:
        """Log info message with worker prefix."""
        logger.info(f"{self._log_prefix()} {message}")

    def log_warning(self: WorkerLoggerProtocol, message: str) -> None:
        """Log warning message with worker prefix."""
        logger.warning(f"{self._log_prefix()} {message}")

    def log_error(self: WorkerLoggerProtocol, message: str) -> None:
        """Log error message with worker prefix."""
        logger.error(f"{self._log_prefix()} {message}")


# =============================================================================
# Concrete Context Classes
# =============================================================================

class MigrationLogContext(WorkerLoggerMixin):
    """
    Logging context for the batch orchestrator and field migrator.

    Log format:
    - [ImageMigrator:run] message                 (no table bound)
    - [ImageMigrator:table=X] message             (table bound)
    - [ImageMigrator:table=X:id=Y] message        (row bound)
    - [ImageMigrator:table=X:id=Y:field=Z] message
    """
    worker_type = WorkerType.MIGRATOR

    def __init__(
        self,
        table: Optional[str] = None,
        record_id: object = None,
        field: Optional[str] = None,
        dry_run: bool = False,
    ):
        self.table = table
        self.record_id = record_id
        self.field = field
        self.dry_run = dry_run

    def for_table(self, table: str) -> "MigrationLogContext":
        return MigrationLogContext(table, dry_run=self.dry_run)

    def for_row(self, record_id: object) -> "MigrationLogContext":
        return MigrationLogContext(self.table, record_id, dry_run=self.dry_run)

    def for_field(self, field: str) -> "MigrationLogContext":
        return MigrationLogContext(self.table, self.record_id, field, dry_run=self.dry_run)

    def _log_context(self) -> str:
        if self.table is None:
            return "run"
        parts = [f"table={self.table}"]
        if self.record_id is not None:
            parts.append(f"id={self.record_id}")
        if self.field is not None:
            parts.append(f"field={self.field}")
        return ":".join(parts)


class CacheLogContext(WorkerLoggerMixin):
    """
    Logging context for migration cache resolutions.

    Log format: [MigrationCache:url=X] message
    """
    worker_type = WorkerType.CACHE

    def __init__(self, url: str, dry_run: bool = False):
        self.url = url
        self.dry_run = dry_run

    def _log_context(self) -> str:
        return f"url={self.url}"
