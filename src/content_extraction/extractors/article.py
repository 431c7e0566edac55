"""Article tier: plain GET plus trafilatura, no browser.

Cheaper than rendering and robust against pages that block headless
browsers, but blind to content injected by JavaScript.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
import trafilatura

from content_extraction.core.exceptions import ContentNotFound, NetworkFailure
from content_extraction.core.models import ExtractionResult, Strategy
from content_extraction.core.text import (
    collapse_whitespace,
    detect_media_type,
    extract_domain,
    make_excerpt,
)
from content_extraction.extractors.base import Extractor
from content_extraction.monitoring.strategy_monitor import StrategyMonitor
from content_extraction.scraper.html_metadata import extract_title, parse_html
from content_extraction.scraper.http_fetcher import fetch_url
from content_extraction.scraper.image_selector import make_absolute_url

logger = logging.getLogger(__name__)


def _meta_str(meta: Any, name: str) -> str | None:
    value = getattr(meta, name, None) if meta is not None else None
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _meta_list(meta: Any, name: str) -> list[str]:
    value = getattr(meta, name, None) if meta is not None else None
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str) and v]
    return []


class ArticleFallbackExtractor(Extractor):
    """Extracts the main article with trafilatura from the raw HTML.

    Args:
        client: Shared HTTP client.
        monitor: Shared strategy monitor.
        timeout: GET timeout in seconds.
    """

    strategy = Strategy.ARTICLE

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

    async def _extract(self, url: str) -> ExtractionResult:
        fetched = await fetch_url(url, client=self.client, timeout=self.timeout)
        if not fetched.ok:
            raise NetworkFailure(
                f"GET failed: {fetched.error}",
                details={"url": url, "status_code": fetched.status_code},
            )
        html = fetched.html or ""
        base_url = fetched.final_url or url

        text, meta = await asyncio.to_thread(self._parse, html, base_url)
        if not text:
            raise ContentNotFound("no article text found", details={"url": url})

        title = _meta_str(meta, "title") or extract_title(parse_html(html))
        description = _meta_str(meta, "description") or ""
        image = _meta_str(meta, "image")
        return ExtractionResult(
            title=title,
            url=url,
            domain=extract_domain(url),
            method=self.strategy.value,
            success=True,
            content=text,
            text_content=text,
            excerpt=make_excerpt(description, text),
            description=description,
            author=_meta_str(meta, "author"),
            date_published=_meta_str(meta, "date"),
            lead_image_url=make_absolute_url(image or "", base_url) or None,
            site_name=_meta_str(meta, "sitename"),
            language=_meta_str(meta, "language"),
            keywords=_meta_list(meta, "tags") or _meta_list(meta, "categories"),
            media_type=detect_media_type(url),
        )

    @staticmethod
    def _parse(html: str, url: str) -> tuple[str, Any]:
        extracted = trafilatura.extract(
            html,
            url=url,
            include_comments=False,
            include_tables=True,
            output_format="txt",
        )
        meta = trafilatura.extract_metadata(html, default_url=url)
        text = collapse_whitespace(extracted) if extracted else ""
        logger.debug("article: trafilatura extracted %d chars from %s", len(text), url)
        return text, meta
