"""
Typed structures passed between migration components.
"""

from dataclasses import dataclass, asdict
from typing import Optional


@dataclass(frozen=True)
class FetchedImage:
    """Bytes and normalized media type returned by the legacy fetcher."""
    body: bytes
    content_type: str  # lowercase, parameters stripped; may be empty


@dataclass(frozen=True)
class UrlOutcome:
    """
    Terminal result of migrating one source URL.

    Exactly one of migrated_url / error is set. Immutable once recorded.
    """
    source_url: str
    migrated_url: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def reason(self) -> str:
        if self.error is None:
            return ""
        return str(self.error) or type(self.error).__name__


@dataclass(frozen=True)
class FieldResult:
    """New value of one field and whether it differs from the stored value."""
    changed: bool
    new_value: object


@dataclass
class RunCounters:
    """
    Aggregate counters for one run.

    Owned by the orchestrator; only incremented after field work completes.
    """
    scanned_rows: int = 0
    updated_rows: int = 0
    migrated_fields: int = 0
    unique_uploads: int = 0
    failed_urls: int = 0

    def to_dict(self) -> dict:
        return asdict(self)
