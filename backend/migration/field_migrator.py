"""
Field Migrator

Computes the new value of one record field. Two entry points share the
migration cache:

- migrate_single_url_field(): the whole value is one image URL
- migrate_html_field(): rich text; every embedded legacy image URL is
  resolved on a bounded worker pool, then substituted literally at every
  occurrence once all workers finish

Per-URL failures (FetchError / UploadError) are remembered by the cache,
logged here, and never propagate: the failing URL is left untouched while
the rest of the field is still rewritten.
"""

import asyncio
from typing import Dict, List, Optional

from migration.cache import MigrationCache
from migration.classifier import UrlClassifier
from migration.errors import MigrationError
from migration.extractor import extract_urls, replace_urls
from migration.types import FieldResult
from utils.worker_logging import MigrationLogContext

DEFAULT_CONCURRENCY = 10


class FieldMigrator:
    """
    Args:
        cache: Shared MigrationCache for the run
        classifier: UrlClassifier deciding which URLs to migrate
        concurrency: Worker pool size for HTML fields
    """

    def __init__(
        self,
        cache: MigrationCache,
        classifier: UrlClassifier,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        self.cache = cache
        self.classifier = classifier
        self.concurrency = concurrency if concurrency > 0 else DEFAULT_CONCURRENCY

    async def migrate_single_url_field(
        self,
        value: object,
        log: Optional[MigrationLogContext] = None,
    ) -> FieldResult:
        """Migrate a field whose whole value is a single URL."""
        log = log or MigrationLogContext(dry_run=self.cache.dry_run)
        if not value or not isinstance(value, str):
            return FieldResult(False, value)

        url = value.strip()
        if not self.classifier.is_migratable_image(url):
            return FieldResult(False, value)

        try:
            migrated_url = await self.cache.resolve(url)
        except MigrationError as e:
            log.log_warning(f"URL migration failed: {url} -> {e}")
            return FieldResult(False, value)

        return FieldResult(migrated_url != value, migrated_url)

    async def migrate_html_field(
        self,
        text: object,
        log: Optional[MigrationLogContext] = None,
    ) -> FieldResult:
        """Migrate every legacy image URL embedded in a rich-text field."""
        log = log or MigrationLogContext(dry_run=self.cache.dry_run)
        if not text or not isinstance(text, str):
            return FieldResult(False, text)

        urls = sorted(u for u in extract_urls(text) if self.classifier.is_migratable_image(u))
        if not urls:
            return FieldResult(False, text)

        resolved = await self._resolve_all(urls, log)
        replacements = {url: new for url, new in resolved.items() if new != url}
        if not replacements:
            return FieldResult(False, text)

        return FieldResult(True, replace_urls(text, replacements))

    async def _resolve_all(self, urls: List[str], log: MigrationLogContext) -> Dict[str, str]:
        """Resolve urls on min(concurrency, len(urls)) workers; failed URLs are omitted."""
        queue: "asyncio.Queue[str]" = asyncio.Queue()
        for url in urls:
            queue.put_nowait(url)
        replacements: Dict[str, str] = {}

        async def worker() -> None:
            while True:
                try:
                    url = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    replacements[url] = await self.cache.resolve(url)
                except Exception as e:
                    self.cache.record_failure(url, e)
                    log.log_warning(f"Embedded URL migration failed: {url} -> {e}")

        pool_size = min(self.concurrency, len(urls))
        await asyncio.gather(*(worker() for _ in range(pool_size)))
        return replacements
