"""Pipeline settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.  Every
variable is prefixed with ``EXTRACTION_`` (e.g. ``EXTRACTION_POOL_SIZE=3``)
and may also be supplied through a ``.env`` file.

Usage::

    from content_extraction.config.settings import get_settings

    settings = get_settings()
    pool_size = settings.pool_size
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

QualityTier = Literal["thumbnail", "standard", "high", "ultra"]


class Settings(BaseSettings):
    """Scalar configuration for the extraction pipeline.

    All fields have defaults; nothing is required to start the pipeline.
    """

    model_config = SettingsConfigDict(
        env_prefix="EXTRACTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Renderer pool
    # ------------------------------------------------------------------

    pool_size: int = Field(default=5, ge=1)
    """Maximum number of live headless-browser instances."""

    poll_interval: float = Field(default=0.1, gt=0)
    """Seconds between acquisition attempts while the pool is saturated."""

    headless: bool = True
    """Run Chromium headless.  Only set to ``False`` when debugging locally."""

    # ------------------------------------------------------------------
    # Timeouts and HTTP behaviour
    # ------------------------------------------------------------------

    request_timeout: float = Field(default=30.0, gt=0)
    """Navigation timeout (seconds) for the rendering tier."""

    http_timeout: float = Field(default=15.0, gt=0)
    """Timeout (seconds) for plain HTTP GETs in the fallback tiers and image fetches."""

    max_redirects: int = Field(default=5, ge=0)
    """Redirect hops followed by the plain HTTP client before giving up."""

    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    """Browser user-agent sent by both the renderer and the HTTP client."""

    accept_language: str = "en-US,en;q=0.9"
    """``Accept-Language`` header sent with plain HTTP requests."""

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    image_quality: QualityTier = "high"
    """Quality tier used when re-encoding the lead image."""

    image_formats: bool = False
    """Also emit WebP/AVIF variants of the enhanced lead image."""

    # ------------------------------------------------------------------
    # Application behaviour
    # ------------------------------------------------------------------

    app_name: str = "Content Extraction"
    """Human-readable name shown in the OpenAPI docs."""

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    metrics_enabled: bool = True
    """Expose Prometheus metrics at ``GET /metrics``."""


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings singleton.

    In tests, call ``get_settings.cache_clear()`` after patching environment
    variables.
    """
    return Settings()
