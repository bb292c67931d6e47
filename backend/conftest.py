"""
Pytest configuration and fixtures for testing.

- Relational store: in-memory SQLite engine with the shop tables created
  from scratch for every test (no external database needed)
- Legacy hosts: fetcher replaced by an AsyncMock serving canned responses
- Object store: uploader replaced by a MagicMock with a real public_url()
"""
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from migration.__tests__.migration_test_utils import (
    CDN_DOMAIN,
    LEGACY_HOST,
    RUN_DATE,
    make_fetcher,
    make_uploader,
)
from migration.cache import MigrationCache
from migration.classifier import UrlClassifier

SHOP_SCHEMA = (
    "CREATE TABLE hiolabs_goods (id INTEGER PRIMARY KEY, list_pic_url TEXT, "
    "https_pic_url TEXT, goods_desc TEXT)",
    "CREATE TABLE hiolabs_ad (id INTEGER PRIMARY KEY, image_url TEXT)",
    "CREATE TABLE hiolabs_user (id INTEGER PRIMARY KEY, avatar TEXT)",
)


@pytest.fixture
def classifier() -> UrlClassifier:
    return UrlClassifier(
        migrated_domain=CDN_DOMAIN,
        legacy_host_patterns=[LEGACY_HOST, "yanxuan.nosdn.127.net"],
        store_domain_markers=[".aliyuncs.com/"],
    )


@pytest.fixture
def uploader() -> MagicMock:
    return make_uploader()


@pytest.fixture
def fetcher() -> MagicMock:
    return make_fetcher({})


@pytest.fixture
def cache(fetcher, uploader) -> MigrationCache:
    return MigrationCache(fetcher, uploader, dry_run=False, run_date=RUN_DATE)


@pytest.fixture(scope="function")
def test_engine():
    """
    In-memory SQLite engine with the shop tables.

    StaticPool keeps the single in-memory database alive across sessions.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        for ddl in SHOP_SCHEMA:
            conn.execute(text(ddl))
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def test_session_factory(test_engine):
    return sessionmaker(bind=test_engine)


@pytest.fixture(scope="function")
def test_db(test_session_factory):
    """Session on the in-memory database, closed after the test."""
    db = test_session_factory()
    try:
        yield db
    finally:
        db.close()
