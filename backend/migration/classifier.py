"""
URL classification for the legacy image migration.

Two independent checks, both of which must pass before a URL is migrated:

1. should_migrate(): host eligibility
   - must be an absolute http(s) URL
   - must not already point at the migrated domain or the object store itself
   - must not be a loop-back host
   - plain http:// is always eligible (legacy insecure host); https:// is
     eligible only on a configured legacy host
2. looks_like_image(): content likelihood
   - known image extension in the path, or a legacy host (which only
     serves images, often without extensions)

Both checks are pure and stateless, so re-running the migration over
already-rewritten rows is a no-op.
"""

import ipaddress
import re
from typing import Iterable, Optional
from urllib.parse import urlsplit

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".svg")

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_PLAIN_HTTP_RE = re.compile(r"^http://", re.IGNORECASE)
_IMAGE_PATH_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|bmp|svg)(\?|#|$)", re.IGNORECASE)
LOOPBACK_NAMES = frozenset({"localhost"})


def _hostname(url: str) -> Optional[str]:
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


def is_loopback_host(host: Optional[str]) -> bool:
    """localhost, *.localhost, 127.0.0.0/8 and ::1"""
    if not host:
        return False
    if host in LOOPBACK_NAMES or host.endswith(".localhost"):
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


class UrlClassifier:
    """
    Decides whether a URL is a legacy image reference that must be migrated.

    Args:
        migrated_domain: Public domain of migrated objects (already-migrated
            URLs start with it). Empty disables the prefix check.
        legacy_host_patterns: Host substrings identifying legacy image hosts.
        store_domain_markers: Substrings identifying URLs that already live
            in the object store (e.g. ".aliyuncs.com/").
    """

    def __init__(
        self,
        migrated_domain: str = "",
        legacy_host_patterns: Iterable[str] = (),
        store_domain_markers: Iterable[str] = (),
    ):
        self.migrated_domain = migrated_domain.rstrip("/")
        self.legacy_host_patterns = [p.lower() for p in legacy_host_patterns if p]
        self.store_domain_markers = [m for m in store_domain_markers if m]

    def is_legacy_host(self, url: str) -> bool:
        """True if the URL's host matches any configured legacy host pattern."""
        host = _hostname(url)
        if not host:
            return False
        return any(pattern in host for pattern in self.legacy_host_patterns)

    def should_migrate(self, raw_url: object) -> bool:
        if not raw_url or not isinstance(raw_url, str):
            return False
        url = raw_url.strip()
        if not _SCHEME_RE.match(url):
            return False
        if self.migrated_domain and url.startswith(self.migrated_domain):
            return False
        if is_loopback_host(_hostname(url)):
            return False
        if any(marker in url for marker in self.store_domain_markers):
            return False
        if _PLAIN_HTTP_RE.match(url):
            return True
        return self.is_legacy_host(url)

    def looks_like_image(self, raw_url: object) -> bool:
        if not raw_url or not isinstance(raw_url, str):
            return False
        if _IMAGE_PATH_RE.search(raw_url):
            return True
        return self.is_legacy_host(raw_url)

    def is_migratable_image(self, url: object) -> bool:
        """Both checks combined - the only gate in front of the migration cache."""
        return self.should_migrate(url) and self.looks_like_image(url)
