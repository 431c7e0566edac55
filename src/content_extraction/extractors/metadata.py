"""Metadata-only tier: plain GET, ``<meta>``/``<title>`` parsing, no scripts.

The last resort.  It never raises: an unreachable page becomes a failure
result whose title is the domain, so callers always get something to show.
"""

from __future__ import annotations

import logging

import httpx

from content_extraction.core.exceptions import NetworkFailure, ScrapingError
from content_extraction.core.models import ExtractionResult, Strategy
from content_extraction.core.text import detect_media_type, extract_domain, make_excerpt
from content_extraction.extractors.base import Extractor, failure_result
from content_extraction.monitoring.strategy_monitor import StrategyMonitor
from content_extraction.scraper.config import METADATA_TEXT_CHARS
from content_extraction.scraper.html_metadata import (
    UNTITLED,
    extract_main_text,
    extract_page_metadata,
    parse_html,
)
from content_extraction.scraper.http_fetcher import fetch_url
from content_extraction.scraper.image_selector import make_absolute_url

logger = logging.getLogger(__name__)


class MetadataOnlyFallback(Extractor):
    """Reads declared metadata and a capped body text from the raw HTML.

    Args:
        client: Shared HTTP client (carries the browser user agent and the
            redirect limit).
        monitor: Shared strategy monitor.
        timeout: GET timeout in seconds.
    """

    strategy = Strategy.METADATA

    def __init__(
        self,
        client: httpx.AsyncClient,
        monitor: StrategyMonitor,
        *,
        timeout: float = 15.0,
    ) -> None:
        super().__init__(monitor)
        self.client = client
        self.timeout = timeout

    async def extract(self, url: str) -> ExtractionResult:
        """Return a result for *url*; never raises.

        A page that was fetched yields a ``metadata`` result even when it
        declares nothing.  Only a failed GET turns into the ``failed`` stub;
        the attempt itself is still recorded under this tier.
        """
        try:
            return await super().extract(url)
        except ScrapingError as exc:
            return failure_result(url, Strategy.FAILED.value, str(exc))

    async def _extract(self, url: str) -> ExtractionResult:
        fetched = await fetch_url(url, client=self.client, timeout=self.timeout)
        if not fetched.ok:
            logger.info("metadata: GET failed for %s: %s", url, fetched.error)
            raise NetworkFailure(
                f"GET failed: {fetched.error}",
                details={"url": url, "status_code": fetched.status_code},
            )

        base_url = fetched.final_url or url
        soup = parse_html(fetched.html or "")
        meta = extract_page_metadata(soup)
        text = extract_main_text(soup, max_chars=METADATA_TEXT_CHARS)
        found_title = meta.title != UNTITLED

        return ExtractionResult(
            title=meta.title if found_title else extract_domain(url),
            url=url,
            domain=extract_domain(url),
            method=self.strategy.value,
            success=found_title or bool(text),
            content=text,
            text_content=text,
            excerpt=make_excerpt(meta.description, text),
            description=meta.description,
            author=meta.author,
            date_published=meta.date_published,
            lead_image_url=make_absolute_url(meta.image_url or "", base_url) or None,
            site_name=meta.site_name,
            language=meta.language,
            keywords=meta.keywords,
            media_type=detect_media_type(url),
            error=None if found_title or text else "page declares no title and has no text",
        )
