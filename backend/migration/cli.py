#!/usr/bin/env python3
"""
Migrate legacy-hosted images referenced by shop records into the object store.

Usage:
    legacy-image-migrate --dry-run
    legacy-image-migrate --limit=50 --concurrency=5 --tables=goods,goods_gallery
    python -m migration.cli --dry-run

Configuration is read from the environment (.env.local takes precedence
over .env) - see config/settings.py.

Exit codes:
    0  run completed (failed URLs are listed in the summary, not fatal)
    1  missing configuration, unreachable database, or unexpected abort
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from config.settings import Settings, load_settings
from db.session import create_db_engine, create_session_factory
from migration.cache import MigrationCache
from migration.classifier import UrlClassifier
from migration.errors import FatalConfigError
from migration.fetcher import LegacyFetcher
from migration.field_migrator import DEFAULT_CONCURRENCY, FieldMigrator
from migration.orchestrator import BatchOrchestrator, RunOptions, RunReport
from migration.uploader import ObjectStoreUploader, build_s3_client

logger = logging.getLogger()


def parse_tables(raw: str) -> List[str]:
    """'goods, ad,,' -> ['goods', 'ad']"""
    return [t.strip() for t in (raw or "").split(",") if t.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Migrate legacy-hosted images into the object store and rewrite record fields",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and report changes without uploading or updating rows",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=0,
        help="Stop after N updated rows (0 = unlimited)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help=f"Worker pool size per HTML field (default {DEFAULT_CONCURRENCY})",
    )
    parser.add_argument(
        "--tables",
        default="",
        help="Comma-separated table names to migrate (default: all configured tables)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def options_from_args(args: argparse.Namespace, settings: Settings) -> RunOptions:
    return RunOptions(
        dry_run=args.dry_run,
        limit=max(args.limit, 0),
        concurrency=args.concurrency if args.concurrency > 0 else DEFAULT_CONCURRENCY,
        tables=parse_tables(args.tables),
        table_prefix=settings.TABLE_PREFIX,
    )


async def run_migration(settings: Settings, options: RunOptions) -> RunReport:
    """Wire collaborators from settings and run the orchestrator."""
    classifier = UrlClassifier(
        migrated_domain=settings.get_storage_domain(),
        legacy_host_patterns=settings.get_legacy_host_patterns(),
        store_domain_markers=settings.get_store_domain_markers(),
    )
    uploader = ObjectStoreUploader(
        build_s3_client(
            settings.STORAGE_REGION,
            settings.STORAGE_ACCESS_KEY_ID,
            settings.STORAGE_ACCESS_KEY_SECRET,
            settings.STORAGE_ENDPOINT_URL,
        ),
        bucket=settings.STORAGE_BUCKET,
        domain=settings.get_storage_domain(),
    )
    engine = create_db_engine(settings.DATABASE_URL)
    try:
        async with LegacyFetcher(
            classifier.is_legacy_host,
            allow_insecure_legacy_hosts=settings.ALLOW_INSECURE_LEGACY_HOSTS,
            timeout=settings.FETCH_TIMEOUT_SECONDS,
        ) as fetcher:
            cache = MigrationCache(fetcher, uploader, dry_run=options.dry_run)
            orchestrator = BatchOrchestrator(
                create_session_factory(engine),
                FieldMigrator(cache, classifier, concurrency=options.concurrency),
                options,
            )
            return await orchestrator.run()
    finally:
        engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        settings = load_settings()
        options = options_from_args(args, settings)
        report = asyncio.run(run_migration(settings, options))
    except FatalConfigError as e:
        logger.error(f"[FATAL] {e}")
        return 1
    except Exception:
        logger.exception("[FATAL] Migration aborted")
        return 1

    print(report.format_summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
