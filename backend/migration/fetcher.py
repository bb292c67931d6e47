"""
Legacy image fetcher.

Downloads image bytes from legacy hosts with httpx. Legacy hosts commonly
serve expired or self-signed certificates, so TLS verification can be
relaxed - but only for legacy URLs (plain http://, which may redirect to
https, or a configured legacy host), and only when
allow_insecure_legacy_hosts is on. https:// URLs on other hosts are fetched
with full verification.

Usage:
    async with LegacyFetcher(classifier.is_legacy_host, timeout=5.0) as fetcher:
        image = await fetcher.fetch("http://yanxuan.nosdn.127.net/abc.png")
        image.body, image.content_type
"""

from typing import Callable, Dict, Optional

import httpx

from migration.errors import FetchError
from migration.types import FetchedImage

DEFAULT_TIMEOUT = 5.0
USER_AGENT = "Mozilla/5.0 (compatible; legacy-image-migrator/1.0)"


def is_plain_http(url: str) -> bool:
    return url[:7].lower() == "http://"


def normalize_content_type(raw: Optional[str]) -> str:
    """'Image/PNG; charset=binary' -> 'image/png'"""
    return (raw or "").split(";")[0].strip().lower()


class LegacyFetcher:
    """
    Async fetcher holding one verified and one relaxed httpx client.

    Args:
        is_legacy_host: Predicate deciding whether a URL is on a listed legacy host
        allow_insecure_legacy_hosts: Relax TLS verification for listed legacy hosts
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        is_legacy_host: Callable[[str], bool],
        allow_insecure_legacy_hosts: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.is_legacy_host = is_legacy_host
        self.allow_insecure_legacy_hosts = allow_insecure_legacy_hosts
        self.timeout = timeout
        self._transport = transport
        self._verified: Optional[httpx.AsyncClient] = None
        self._relaxed: Optional[httpx.AsyncClient] = None

    def get_headers(self) -> Dict[str, str]:
        return {"User-Agent": USER_AGENT}

    def _build_client(self, verify: bool) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            verify=verify,
            timeout=self.timeout,
            follow_redirects=True,
            headers=self.get_headers(),
            transport=self._transport,
        )

    async def __aenter__(self) -> "LegacyFetcher":
        self._verified = self._build_client(verify=True)
        if self.allow_insecure_legacy_hosts:
            self._relaxed = self._build_client(verify=False)
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        for client in (self._verified, self._relaxed):
            if client is not None:
                await client.aclose()
        self._verified = None
        self._relaxed = None

    def client_for(self, url: str) -> httpx.AsyncClient:
        """Pick the relaxed client only for legacy URLs."""
        if self._verified is None:
            raise RuntimeError("LegacyFetcher used outside of 'async with'")
        if self._relaxed is not None and (is_plain_http(url) or self.is_legacy_host(url)):
            return self._relaxed
        return self._verified

    async def fetch(self, url: str) -> FetchedImage:
        """
        Download one image.

        Raises:
            FetchError: reason "download_failed_status_<code>" on non-200,
                "download_failed_timeout" or "download_failed_<ExceptionName>"
                on transport errors.
        """
        client = self.client_for(url)
        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            raise FetchError("download_failed_timeout") from e
        except httpx.HTTPError as e:
            raise FetchError(f"download_failed_{type(e).__name__}") from e

        if response.status_code != 200:
            raise FetchError(
                f"download_failed_status_{response.status_code}",
                status=response.status_code,
            )

        return FetchedImage(
            body=response.content,
            content_type=normalize_content_type(response.headers.get("content-type")),
        )
