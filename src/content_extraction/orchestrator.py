"""Tiered extraction orchestrator.

Runs the tiers in a fixed trust/cost order as a small state machine::

    PRIMARY --fail--> ARTICLE --fail--> METADATA --fail--> DONE (stub)
       |                 |                  |
       +----success------+------success-----+-------------> DONE

Any exception from a tier moves to the next state and is remembered in
``tier_errors`` under the tier's strategy name.  :meth:`extract` never
raises.  When the metadata tier fetched the page but found neither title
nor text, its own unsuccessful result is returned.  When every tier failed
outright the caller gets a stub result whose title is the domain and whose
``error`` is the last failure.

Usage::

    async with ExtractionOrchestrator.create() as orchestrator:
        result = await orchestrator.extract("https://example.com/post")
"""

from __future__ import annotations

import time
from enum import Enum
from types import TracebackType

import httpx
import structlog

from content_extraction.config.settings import Settings, get_settings
from content_extraction.core.logging_config import extraction_url_var
from content_extraction.core.models import ExtractionResult, Strategy
from content_extraction.core.text import detect_media_type
from content_extraction.extractors.article import ArticleFallbackExtractor
from content_extraction.extractors.base import Extractor, failure_result
from content_extraction.extractors.metadata import MetadataOnlyFallback
from content_extraction.extractors.primary import PrimaryExtractor
from content_extraction.monitoring.strategy_monitor import StrategyMonitor
from content_extraction.scraper.http_fetcher import build_http_client
from content_extraction.scraper.image_enhancer import ImageEnhancer
from content_extraction.scraper.image_selector import ImageSelector
from content_extraction.scraper.pool import ResourcePool
from content_extraction.scraper.renderer import RendererLauncher, playwright_launcher

logger = structlog.get_logger(__name__)


class ExtractionState(str, Enum):
    """States of one :meth:`ExtractionOrchestrator.extract` run."""

    PRIMARY = "primary"
    ARTICLE = "article"
    METADATA = "metadata"
    DONE = "done"


_NEXT_STATE: dict[ExtractionState, ExtractionState] = {
    ExtractionState.PRIMARY: ExtractionState.ARTICLE,
    ExtractionState.ARTICLE: ExtractionState.METADATA,
    ExtractionState.METADATA: ExtractionState.DONE,
}


class ExtractionOrchestrator:
    """Single entry point of the pipeline.

    Args:
        primary: Rendering tier.
        article: trafilatura tier.
        metadata: Metadata-only tier.
        monitor: The monitor shared by the tiers.
        pool: Renderer pool to close in :meth:`aclose`, when owned.
        client: HTTP client to close in :meth:`aclose`, when owned.
    """

    def __init__(
        self,
        primary: Extractor,
        article: Extractor,
        metadata: Extractor,
        *,
        monitor: StrategyMonitor,
        pool: ResourcePool | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._tiers: dict[ExtractionState, Extractor] = {
            ExtractionState.PRIMARY: primary,
            ExtractionState.ARTICLE: article,
            ExtractionState.METADATA: metadata,
        }
        self.monitor = monitor
        self.pool = pool
        self._client = client

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        *,
        launcher: RendererLauncher | None = None,
    ) -> ExtractionOrchestrator:
        """Wire every tier from *settings*.

        Args:
            settings: Pipeline settings; defaults to :func:`get_settings`.
            launcher: Renderer launcher for the pool; defaults to headless
                Chromium via Playwright.
        """
        settings = settings or get_settings()
        monitor = StrategyMonitor(export_metrics=settings.metrics_enabled)
        client = build_http_client(settings)
        pool = ResourcePool(
            launcher
            or playwright_launcher(user_agent=settings.user_agent, headless=settings.headless),
            max_size=settings.pool_size,
            poll_interval=settings.poll_interval,
        )
        enhancer = ImageEnhancer(
            client,
            default_tier=settings.image_quality,
            timeout=settings.http_timeout,
            emit_formats=settings.image_formats,
        )
        primary = PrimaryExtractor(
            pool,
            ImageSelector(),
            enhancer,
            monitor,
            request_timeout=settings.request_timeout,
            image_tier=settings.image_quality,
        )
        article = ArticleFallbackExtractor(client, monitor, timeout=settings.http_timeout)
        metadata = MetadataOnlyFallback(client, monitor, timeout=settings.http_timeout)
        return cls(primary, article, metadata, monitor=monitor, pool=pool, client=client)

    async def extract(self, url: str) -> ExtractionResult:
        """Extract *url* with the first tier that succeeds.  Never raises."""
        token = extraction_url_var.set(url)
        start = time.perf_counter()
        try:
            result = await self._run(url)
        finally:
            extraction_url_var.reset(token)

        logger.info(
            "extraction_complete",
            url=url,
            method=result.method,
            success=result.success,
            tier_errors=len(result.tier_errors),
            elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result

    async def _run(self, url: str) -> ExtractionResult:
        tier_errors: dict[str, str] = {}
        result: ExtractionResult | None = None
        state = ExtractionState.PRIMARY

        while state is not ExtractionState.DONE:
            extractor = self._tiers[state]
            name = extractor.strategy.value
            try:
                candidate = await extractor.extract(url)
            except Exception as exc:
                tier_errors[name] = str(exc) or type(exc).__name__
                logger.info("tier_failed", tier=name, url=url, error=tier_errors[name])
                state = _NEXT_STATE[state]
                continue

            if candidate.success:
                result = candidate
                state = ExtractionState.DONE
                continue

            tier_errors[name] = candidate.error or "unsuccessful result"
            state = _NEXT_STATE[state]
            # A fetched page keeps whatever the last tier found in it.
            if state is ExtractionState.DONE and candidate.method == name:
                result = candidate

        if result is None:
            last_error = next(reversed(tier_errors.values()), "all extraction tiers failed")
            result = failure_result(url, Strategy.FAILED.value, last_error)

        result.tier_errors = tier_errors
        if result.media_metadata is None:
            result.media_type = detect_media_type(url)
        return result

    async def aclose(self) -> None:
        """Shut down owned renderers and the HTTP client."""
        if self.pool is not None:
            await self.pool.close_all()
        if self._client is not None:
            await self._client.aclose()

    async def __aenter__(self) -> ExtractionOrchestrator:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
