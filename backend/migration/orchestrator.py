"""
Batch Orchestrator

Walks every configured table, row and field, migrates legacy image
references through the FieldMigrator, and persists changed rows.

Run states:
    IDLE -> CONNECTING -> MIGRATING (tables -> rows -> fields) -> FINALIZING -> DONE

Workflow per table:
1. Full-table scan of primary key + configured fields (one query)
2. For each row, migrate every field:
   - URL fields resolve inline
   - HTML fields resolve embedded URLs on a bounded worker pool
3. If any field changed, issue one UPDATE for the row (skipped in dry run)
4. Check limit (rows updated, not scanned) - stops both row and table loops

Failure isolation:
- Per-URL fetch/upload failures are handled by the FieldMigrator
- Unexpected errors inside one field are recorded as a failed URL and the
  row continues
- PersistError on one row is logged and the run continues with the next row
- The session is always closed, even on abort

Log Format:
All logs use prefix [ImageMigrator:table=X:id=Y] ([DRY-RUN] in dry run).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Sequence

from sqlalchemy.orm import Session

from db.record_service import fetch_rows, update_row
from migration.errors import PersistError
from migration.field_migrator import DEFAULT_CONCURRENCY, FieldMigrator
from migration.tables import FieldKind, MIGRATION_TABLES, TableMigrationSpec, select_tables
from migration.types import FieldResult, RunCounters
from utils.worker_logging import MigrationLogContext

PROGRESS_EVERY = 1000


class RunState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    MIGRATING = "migrating"
    FINALIZING = "finalizing"
    DONE = "done"


@dataclass
class RunOptions:
    """Options from the command line."""
    dry_run: bool = False
    limit: int = 0  # 0 = unlimited
    concurrency: int = DEFAULT_CONCURRENCY
    tables: List[str] = field(default_factory=list)  # empty = all configured tables
    table_prefix: str = ""

    @property
    def has_limit(self) -> bool:
        return self.limit > 0


@dataclass
class RunReport:
    """Final counters plus every failed URL with its reason."""
    counters: RunCounters
    failures: Dict[str, str] = field(default_factory=dict)

    def format_summary(self) -> str:
        c = self.counters
        lines = [
            "[DONE] Migration finished",
            f"[DONE] Scanned rows: {c.scanned_rows}",
            f"[DONE] Updated rows: {c.updated_rows}",
            f"[DONE] Migrated fields: {c.migrated_fields}",
            f"[DONE] Unique uploads: {c.unique_uploads}",
            f"[DONE] Failed URLs: {c.failed_urls}",
        ]
        if self.failures:
            lines.append("[FAILED_URLS]")
            lines.extend(f"{url} -> {reason}" for url, reason in self.failures.items())
        return "\n".join(lines)


class BatchOrchestrator:
    """
    Args:
        session_factory: Callable returning a new Session (opened in CONNECTING)
        field_migrator: FieldMigrator sharing the run's MigrationCache
        options: RunOptions
        tables: Table specs to consider (filtered by options.tables)
        _fetch_rows: Row query function (for testing)
        _update_row: Row update function (for testing)
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        field_migrator: FieldMigrator,
        options: RunOptions,
        tables: Sequence[TableMigrationSpec] = MIGRATION_TABLES,
        _fetch_rows=fetch_rows,
        _update_row=update_row,
    ):
        self.session_factory = session_factory
        self.field_migrator = field_migrator
        self.options = options
        self.tables = select_tables(options.tables, tables)
        self._fetch_rows = _fetch_rows
        self._update_row = _update_row
        self.counters = RunCounters()
        self.state = RunState.IDLE
        self.log = MigrationLogContext(dry_run=options.dry_run)

    @property
    def cache(self):
        return self.field_migrator.cache

    def limit_reached(self) -> bool:
        return self.options.has_limit and self.counters.updated_rows >= self.options.limit

    async def run(self) -> RunReport:
        """Run the whole migration and return the final report."""
        opts = self.options
        self.log.log_info(
            f"Starting migration dry_run={opts.dry_run}, limit={opts.limit or 'unlimited'}, "
            f"concurrency={opts.concurrency}, tables={','.join(opts.tables) or 'ALL'}"
        )

        self.state = RunState.CONNECTING
        db = self.session_factory()
        try:
            self.state = RunState.MIGRATING
            for spec in self.tables:
                await self.migrate_table(db, spec)
                if self.limit_reached():
                    break
        finally:
            self.state = RunState.FINALIZING
            db.close()

        self.counters.unique_uploads = self.cache.uploaded_count
        failures = self.cache.failures
        self.counters.failed_urls = len(failures)
        self.state = RunState.DONE
        return RunReport(counters=self.counters, failures=failures)

    async def migrate_table(self, db: Session, spec: TableMigrationSpec) -> None:
        table_name = spec.qualified_name(self.options.table_prefix)
        log = self.log.for_table(table_name)
        rows = self._fetch_rows(db, table_name, spec.primary_key, spec.field_names)
        log.log_info(f"Scanning table, rows={len(rows)}")

        for idx, row in enumerate(rows):
            if idx > 0 and idx % PROGRESS_EVERY == 0:
                log.log_info(f"Progress {idx}/{len(rows)}")
            await self.migrate_row(db, spec, table_name, row, log)
            if self.limit_reached():
                log.log_info(f"Reached limit={self.options.limit}, stopping early")
                break

        log.log_info("Finished table")

    async def migrate_row(
        self,
        db: Session,
        spec: TableMigrationSpec,
        table_name: str,
        row: Dict[str, Any],
        table_log: MigrationLogContext,
    ) -> Dict[str, Any]:
        """
        Migrate all configured fields of one row and persist the changes.

        Returns:
            Changed field -> new value (empty if nothing changed)
        """
        self.counters.scanned_rows += 1
        record_id = row.get(spec.primary_key)
        log = table_log.for_row(record_id)

        updates: Dict[str, Any] = {}
        for field_spec in spec.fields:
            result = await self.migrate_field(field_spec.name, field_spec.kind, row.get(field_spec.name), log)
            if result.changed:
                updates[field_spec.name] = result.new_value

        if not updates:
            return updates

        if not self.options.dry_run:
            try:
                self._update_row(db, table_name, spec.primary_key, record_id, updates)
            except PersistError as e:
                log.log_error(f"Persist failed, row skipped: {e}")
                return {}

        self.counters.updated_rows += 1
        self.counters.migrated_fields += len(updates)
        log.log_info(f"Updated fields: {', '.join(updates)}")
        return updates

    async def migrate_field(
        self,
        name: str,
        kind: FieldKind,
        value: Any,
        row_log: MigrationLogContext,
    ) -> FieldResult:
        log = row_log.for_field(name)
        try:
            if kind == FieldKind.HTML:
                return await self.field_migrator.migrate_html_field(value, log)
            return await self.field_migrator.migrate_single_url_field(value, log)
        except Exception as e:
            if isinstance(value, str) and value.strip():
                self.cache.record_failure(value.strip(), e)
            log.log_warning(f"Field migration failed -> {e}")
            return FieldResult(False, value)
