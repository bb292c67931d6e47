"""
Deterministic object-store keys for migrated images.

Key format: legacy-migration/<YYYY-MM-DD>/<md5(source_url)><ext>

The digest is over the source URL, not the bytes, so the key is known
before upload and re-running on the same date overwrites instead of
duplicating. MD5 is fine here - it only spreads keys, it is not a
security boundary.
"""

import hashlib
import re
from datetime import date, datetime, timezone
from typing import Optional

from migration.classifier import IMAGE_EXTENSIONS

KEY_PREFIX = "legacy-migration"
DEFAULT_EXTENSION = ".jpg"

CONTENT_TYPE_TO_EXT = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
    "image/svg+xml": ".svg",
}

_URL_EXT_RE = re.compile(r"\.([a-zA-Z0-9]+)(?:\?|#|$)")


def utc_run_date() -> date:
    """Today's date in UTC - the date segment of every key in a run."""
    return datetime.now(timezone.utc).date()


def infer_ext_from_url(url: str) -> str:
    """Known image extension from the URL path, or empty string."""
    match = _URL_EXT_RE.search(url)
    if not match:
        return ""
    ext = f".{match.group(1).lower()}"
    return ext if ext in IMAGE_EXTENSIONS else ""


def choose_extension(source_url: str, content_type: str) -> str:
    """Content type wins, then the URL path, then .jpg."""
    return (
        CONTENT_TYPE_TO_EXT.get(content_type or "", "")
        or infer_ext_from_url(source_url)
        or DEFAULT_EXTENSION
    )


def derive_key(source_url: str, content_type: str, run_date: Optional[date] = None) -> str:
    """
    Build the storage key for a source URL.

    Args:
        source_url: Original legacy URL (hashed verbatim)
        content_type: Normalized media type reported by the legacy host
        run_date: Date segment; defaults to today (UTC)

    Returns:
        e.g. "legacy-migration/2024-05-01/0cc175b9c0f1b6a831c399e269772661.png"
    """
    day = (run_date or utc_run_date()).isoformat()
    digest = hashlib.md5(source_url.encode("utf-8")).hexdigest()
    return f"{KEY_PREFIX}/{day}/{digest}{choose_extension(source_url, content_type)}"
