from pydantic import ValidationError
from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path

from migration.errors import FatalConfigError

# Get absolute path to backend directory (config/settings.py -> backend/)
_backend_dir = Path(__file__).parent.parent
_env_local = _backend_dir / '.env.local'
_env_file = _backend_dir / '.env'


class Settings(BaseSettings):
    """Migration settings"""

    # Relational store
    DATABASE_URL: str  # Required - SQLAlchemy URL of the shop database
    TABLE_PREFIX: str = "hiolabs_"

    # Object store (S3-compatible)
    STORAGE_REGION: str  # Required
    STORAGE_BUCKET: str  # Required
    STORAGE_ACCESS_KEY_ID: str  # Required
    STORAGE_ACCESS_KEY_SECRET: str  # Required
    STORAGE_DOMAIN: str = ""  # Public domain migrated references point at
    STORAGE_ENDPOINT_URL: str = ""  # Optional endpoint for non-AWS stores

    # Comma-separated substrings that mark a URL as already living in the object store
    STORE_DOMAIN_MARKERS: str = ".aliyuncs.com/"

    # Legacy hosts - comma-separated host patterns
    LEGACY_HOST_PATTERNS: str = "yanxuan.nosdn.127.net,nos.netease.com"
    # Legacy hosts serve expired/self-signed certificates; only listed hosts are relaxed
    ALLOW_INSECURE_LEGACY_HOSTS: bool = True
    FETCH_TIMEOUT_SECONDS: float = 5.0

    class Config:
        # Prioritize .env.local for local development, fallback to .env
        # Use absolute paths to avoid working directory issues
        env_file = str(_env_local) if _env_local.exists() else str(_env_file)
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from environment file

    def get_storage_domain(self) -> str:
        """Public storage domain without trailing slashes"""
        return self.STORAGE_DOMAIN.rstrip("/")

    def get_legacy_host_patterns(self) -> List[str]:
        """Parse and return legacy host patterns as a list"""
        return [p.strip() for p in self.LEGACY_HOST_PATTERNS.split(",") if p.strip()]

    def get_store_domain_markers(self) -> List[str]:
        """Parse and return object-store domain markers as a list"""
        return [m.strip() for m in self.STORE_DOMAIN_MARKERS.split(",") if m.strip()]


_REQUIRED_STORAGE_FIELDS = (
    "STORAGE_REGION",
    "STORAGE_BUCKET",
    "STORAGE_ACCESS_KEY_ID",
    "STORAGE_ACCESS_KEY_SECRET",
)


def load_settings(**overrides) -> Settings:
    """
    Load settings from environment / .env files.

    Raises:
        FatalConfigError: If required settings are missing or object-store
            credentials are blank.
    """
    try:
        loaded = Settings(**overrides)  # type: ignore[call-arg]  # Pydantic loads from .env
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise FatalConfigError(f"Invalid configuration: {', '.join(missing)}") from e

    blank = [name for name in _REQUIRED_STORAGE_FIELDS if not getattr(loaded, name).strip()]
    if blank:
        raise FatalConfigError(f"Object store configuration incomplete: {', '.join(blank)}")

    return loaded
