"""Rendering tier: headless browser from the pool, full DOM extraction.

The highest-fidelity and most expensive technique.  A renderer is leased
from the :class:`~content_extraction.scraper.pool.ResourcePool`, the page is
loaded in its own tab, and text, metadata and the lead image are read from
the rendered DOM.  The tab is closed and the renderer released on every
exit path.
"""

from __future__ import annotations

import logging

from content_extraction.core.exceptions import ContentNotFound
from content_extraction.core.models import ExtractionResult, ImageMetadata, Strategy
from content_extraction.core.text import detect_media_type, extract_domain, make_excerpt
from content_extraction.extractors.base import Extractor
from content_extraction.monitoring.strategy_monitor import StrategyMonitor
from content_extraction.scraper.config import MAX_TEXT_CHARS
from content_extraction.scraper.html_metadata import (
    extract_main_text,
    extract_page_metadata,
    parse_html,
)
from content_extraction.scraper.image_enhancer import ImageEnhancer
from content_extraction.scraper.image_selector import ImageSelector
from content_extraction.scraper.pool import ResourcePool
from content_extraction.scraper.renderer import DomSnapshot, PageSession

logger = logging.getLogger(__name__)


class PrimaryExtractor(Extractor):
    """Extracts content from a fully rendered page.

    Args:
        pool: Renderer pool to lease browsers from.
        selector: Lead-image candidate ranker.
        enhancer: Lead-image fetcher/re-encoder (also takes screenshots).
        monitor: Shared strategy monitor.
        request_timeout: Navigation timeout in seconds.
        image_tier: Quality tier passed to the enhancer.
    """

    strategy = Strategy.PRIMARY

    def __init__(
        self,
        pool: ResourcePool,
        selector: ImageSelector,
        enhancer: ImageEnhancer,
        monitor: StrategyMonitor,
        *,
        request_timeout: float = 30.0,
        image_tier: str = "high",
    ) -> None:
        super().__init__(monitor)
        self.pool = pool
        self.selector = selector
        self.enhancer = enhancer
        self.request_timeout = request_timeout
        self.image_tier = image_tier

    async def _extract(self, url: str) -> ExtractionResult:
        async with self.pool.lease() as handle:
            page = await handle.renderer.new_page()
            try:
                await page.navigate(url, timeout_ms=int(self.request_timeout * 1000))
                snapshot = await page.snapshot()
                result = self._build_result(url, snapshot)
                await self._attach_lead_image(result, page, snapshot)
            finally:
                await page.close()
        return result

    def _build_result(self, url: str, snapshot: DomSnapshot) -> ExtractionResult:
        soup = parse_html(snapshot.html)
        meta = extract_page_metadata(soup)
        text = extract_main_text(soup, max_chars=MAX_TEXT_CHARS)
        if not text:
            raise ContentNotFound("rendered page contains no readable text", details={"url": url})

        return ExtractionResult(
            title=meta.title,
            url=url,
            domain=extract_domain(url),
            method=self.strategy.value,
            success=True,
            content=text,
            text_content=text,
            excerpt=make_excerpt(meta.description, text),
            description=meta.description,
            author=meta.author,
            date_published=meta.date_published,
            site_name=meta.site_name,
            language=meta.language,
            keywords=meta.keywords,
            media_type=detect_media_type(url),
        )

    async def _attach_lead_image(
        self, result: ExtractionResult, page: PageSession, snapshot: DomSnapshot
    ) -> None:
        """Select and enhance the lead image, or fall back to a screenshot.

        A failed screenshot leaves the result without an image.
        """
        candidates = self.selector.collect_candidates(
            snapshot.html, snapshot.url, snapshot.image_sizes
        )
        best = self.selector.select_best(candidates)

        if best is not None:
            image = await self.enhancer.enhance(best, self.image_tier)
            result.lead_image_url = best.url
        else:
            try:
                image = await self.enhancer.capture_screenshot(page, snapshot.url)
            except Exception as exc:
                logger.info("primary: screenshot fallback failed for %s: %s", snapshot.url, exc)
                return
            # A screenshot has no remote URL of its own.
            result.lead_image_url = image.enhanced_url

        result.lead_image = image
        if result.media_type == "image" and image.enhanced:
            result.media_metadata = ImageMetadata.from_enhanced(image)
