"""
Migration cache: one outcome per source URL per run.

The cache is the only structure shared by concurrent workers. It guarantees
that a source URL is fetched and uploaded at most once per run:

- a recorded outcome is returned (or its failure re-raised) immediately
- a resolution already in flight is awaited, not duplicated
- otherwise the caller claims the URL by installing a future, runs
  fetch -> derive key -> upload, records the outcome, then resolves the
  future for any waiters

Claiming happens without an await between the lookup and the insert, so
it is atomic on the event loop.
"""

import asyncio
from datetime import date
from typing import Dict, Optional

from migration.errors import MigrationError
from migration.fetcher import LegacyFetcher
from migration.keys import derive_key, utc_run_date
from migration.types import UrlOutcome
from migration.uploader import ObjectStoreUploader
from utils.worker_logging import CacheLogContext


class MigrationCache:
    """
    Process-scoped URL -> outcome map with single-attempt resolution.

    Args:
        fetcher: Open LegacyFetcher
        uploader: ObjectStoreUploader (upload skipped in dry run, public_url always used)
        dry_run: Compute references without uploading
        run_date: Date segment for derived keys (defaults to today, UTC)
    """

    def __init__(
        self,
        fetcher: LegacyFetcher,
        uploader: ObjectStoreUploader,
        dry_run: bool = False,
        run_date: Optional[date] = None,
    ):
        self.fetcher = fetcher
        self.uploader = uploader
        self.dry_run = dry_run
        self.run_date = run_date or utc_run_date()
        self._outcomes: Dict[str, UrlOutcome] = {}
        self._in_flight: Dict[str, "asyncio.Future[UrlOutcome]"] = {}

    def __contains__(self, url: object) -> bool:
        return url in self._outcomes or url in self._in_flight

    def __len__(self) -> int:
        return len(self._outcomes)

    def get(self, url: str) -> Optional[UrlOutcome]:
        return self._outcomes.get(url)

    @property
    def uploaded_count(self) -> int:
        """Unique URLs migrated successfully (uploaded, or would-be uploaded in dry run)."""
        return sum(1 for o in self._outcomes.values() if o.succeeded)

    @property
    def failures(self) -> Dict[str, str]:
        """Failed source URL -> reason, in first-seen order."""
        return {url: o.reason for url, o in self._outcomes.items() if not o.succeeded}

    def record_failure(self, url: str, error: Exception) -> UrlOutcome:
        """Record a failure caught outside resolve(); an existing outcome is kept."""
        existing = self._outcomes.get(url)
        if existing is not None:
            return existing
        outcome = UrlOutcome(source_url=url, error=error)
        self._outcomes[url] = outcome
        return outcome

    @staticmethod
    def _unwrap(outcome: UrlOutcome) -> str:
        if outcome.error is not None:
            raise outcome.error
        return outcome.migrated_url  # type: ignore[return-value]

    async def resolve(self, url: str) -> str:
        """
        Migrate url once and return its new public reference.

        Raises:
            MigrationError: The stored (or fresh) failure for this URL
        """
        outcome = self._outcomes.get(url)
        if outcome is not None:
            return self._unwrap(outcome)

        pending = self._in_flight.get(url)
        if pending is not None:
            return self._unwrap(await asyncio.shield(pending))

        future: "asyncio.Future[UrlOutcome]" = asyncio.get_running_loop().create_future()
        self._in_flight[url] = future
        try:
            outcome = await self._migrate(url)
        except BaseException:
            # Cancelled mid-flight: release the claim so waiters don't hang
            self._in_flight.pop(url, None)
            future.cancel()
            raise

        self._outcomes[url] = outcome
        self._in_flight.pop(url, None)
        future.set_result(outcome)
        return self._unwrap(outcome)

    async def _migrate(self, url: str) -> UrlOutcome:
        log = CacheLogContext(url, dry_run=self.dry_run)
        try:
            image = await self.fetcher.fetch(url)
            key = derive_key(url, image.content_type, self.run_date)
            if self.dry_run:
                migrated_url = self.uploader.public_url(key)
            else:
                migrated_url = await asyncio.to_thread(
                    self.uploader.upload, key, image.body, image.content_type
                )
        except MigrationError as e:
            return UrlOutcome(source_url=url, error=e)
        except Exception as e:
            log.log_error(f"Unexpected error: {e!r}")
            return UrlOutcome(source_url=url, error=e)

        log.log_debug(f"Migrated -> {migrated_url}")
        return UrlOutcome(source_url=url, migrated_url=migrated_url)
