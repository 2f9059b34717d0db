"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.
All tunables and credentials are accessed exclusively through this module;
never call ``os.getenv`` directly elsewhere in the codebase.

Usage::

    from readthrough.config.settings import get_settings

    settings = get_settings()
    timeout = settings.request_timeout
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration backed by environment variables and an optional .env file.

    Every field carries a default so the analyzer can be embedded as a library
    without any environment at all.  Secrets (object storage keys) should never
    be committed to version control.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Application behaviour
    # ------------------------------------------------------------------

    app_name: str = "Readthrough"
    """Human-readable service name shown in the OpenAPI docs."""

    site_url: str = "http://localhost:8000"
    """Public URL of this service.  Linked from the attribution bar injected
    into every processed page."""

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL.

    ``DEBUG`` also enables the activated-rules panel in processed pages."""

    allowed_origins: list[str] = ["http://localhost:8000"]
    """Origins permitted by the CORS middleware."""

    # ------------------------------------------------------------------
    # Network
    # ------------------------------------------------------------------

    verify_ssl: bool = True
    """Verify upstream TLS certificates for the status probe and direct fetch."""

    status_check_timeout: float = 5.0
    """Timeout (seconds) of the pre-flight status probe."""

    request_timeout: float = 30.0
    """Timeout (seconds) of the direct HTTP fetch."""

    wayback_timeout: float = 30.0
    """Timeout (seconds) applied to each Wayback Machine request."""

    browser_timeout: float = 60.0
    """Navigation timeout (seconds) of the headless browser fetch."""

    browser_engine: Literal["chromium", "firefox", "webkit"] = "firefox"
    """Browser engine used by the fallback chain and by domain rules that
    request browser rendering without naming an engine."""

    browser_ws_endpoint: Optional[str] = None
    """WebSocket endpoint of a remote Playwright browser server.  When ``None``
    a local browser is launched for every fetch."""

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    cache_backend: Literal["disk", "s3", "none"] = "disk"
    """Where raw fetched HTML is kept.  ``none`` disables caching."""

    cache_dir: Path = Path(".cache/readthrough")
    """Directory of the ``disk`` cache backend."""

    # ------------------------------------------------------------------
    # MinIO / S3-compatible object storage (``s3`` cache backend)
    # ------------------------------------------------------------------

    minio_endpoint: str = "localhost:9000"
    """Host:port of the MinIO (or S3-compatible) endpoint, without a scheme prefix."""

    minio_root_user: str = "minioadmin"
    """MinIO access key (equivalent to AWS_ACCESS_KEY_ID)."""

    minio_root_password: str = "minioadmin"
    """MinIO secret key (equivalent to AWS_SECRET_ACCESS_KEY)."""

    minio_bucket: str = "readthrough-cache"
    """Bucket holding cached pages."""

    minio_secure: bool = False
    """Whether to use TLS when connecting to MinIO.  Set to True in production."""

    minio_prefix: str = "cache/"
    """Object key prefix for cached pages."""

    # ------------------------------------------------------------------
    # Access policy
    # ------------------------------------------------------------------

    extra_blocked_domains: Annotated[list[str], NoDecode] = []
    """Hosts blocked in addition to
    :data:`readthrough.config.deny_lists.BLOCKED_DOMAINS`.

    Accepts a JSON list or a comma-separated string in the environment."""

    @field_validator("extra_blocked_domains", mode="before")
    @classmethod
    def _split_domains(cls, value: object) -> object:
        if isinstance(value, str):
            if value.strip().startswith("["):
                return json.loads(value)
            return [part.strip().lower() for part in value.split(",") if part.strip()]
        return value

    @property
    def debug(self) -> bool:
        """``True`` when the service runs with ``LOG_LEVEL=DEBUG``."""
        return self.log_level.upper() == "DEBUG"


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    Uses ``functools.lru_cache`` so that Pydantic Settings reads the environment
    and .env file exactly once per process lifetime.  In tests, call
    ``get_settings.cache_clear()`` after patching environment variables.

    Returns:
        Settings: The validated settings object.
    """
    return Settings()
