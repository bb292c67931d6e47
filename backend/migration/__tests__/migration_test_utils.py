"""
Shared test helpers for migration tests.

Fakes for the two network collaborators:
- make_fetcher(): AsyncMock-backed LegacyFetcher serving canned responses
- make_uploader(): MagicMock ObjectStoreUploader returning real public URLs
"""
from datetime import date
from typing import Dict, Union
from unittest.mock import AsyncMock, MagicMock

from migration.errors import FetchError
from migration.fetcher import LegacyFetcher
from migration.types import FetchedImage
from migration.uploader import ObjectStoreUploader

CDN_DOMAIN = "https://cdn.shop.example"
LEGACY_HOST = "img.legacy.example"
RUN_DATE = date(2024, 5, 1)


def png(url: str = "") -> FetchedImage:
    """Canned PNG response."""
    return FetchedImage(body=b"\x89PNG" + url.encode("utf-8"), content_type="image/png")


def make_fetcher(responses: Dict[str, Union[FetchedImage, Exception]]) -> MagicMock:
    """
    Fetcher mock serving canned responses.

    Unknown URLs answer with a PNG; Exception values are raised.
    fetcher.fetch.await_count / await_args_list record every download.
    """
    async def fetch(url: str) -> FetchedImage:
        response = responses.get(url, png(url))
        if isinstance(response, Exception):
            raise response
        return response

    fetcher = MagicMock(spec=LegacyFetcher)
    fetcher.fetch = AsyncMock(side_effect=fetch)
    return fetcher


def make_uploader(domain: str = CDN_DOMAIN) -> MagicMock:
    """Uploader mock; upload() returns the public URL like the real one."""
    uploader = MagicMock(spec=ObjectStoreUploader)
    uploader.public_url.side_effect = lambda key: f"{domain}/{key}"
    uploader.upload.side_effect = lambda key, body, content_type=None: f"{domain}/{key}"
    return uploader


def not_found() -> FetchError:
    return FetchError("download_failed_status_404", status=404)
