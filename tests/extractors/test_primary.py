"""Unit tests for the rendering tier, driven by the in-memory browser farm."""

from __future__ import annotations

import httpx
import pytest
import respx

from content_extraction.core.exceptions import (
    ContentNotFound,
    NavigationTimeout,
    RendererLaunchFailure,
)
from content_extraction.extractors.primary import PrimaryExtractor
from content_extraction.scraper.image_enhancer import ImageEnhancer
from content_extraction.scraper.image_selector import ImageSelector
from content_extraction.scraper.pool import ResourcePool

URL = "https://magazine.example.com/features/long-read"
OG_IMAGE = "https://cdn.example.com/features/hero.jpg"

BODY = " ".join(f"sentence{i} about the harbour redevelopment plan." for i in range(120))
FULL_PAGE = f"""
<html lang="en"><head>
  <title>Long read | Magazine</title>
  <meta property="og:title" content="The harbour, rebuilt">
  <meta property="og:description" content="How the harbour was rebuilt.">
  <meta property="og:image" content="{OG_IMAGE}">
  <meta property="og:site_name" content="Magazine">
  <meta name="author" content="Lee Longform">
</head><body>
  <header>Site header</header>
  <article><p>{BODY}</p></article>
</body></html>
"""
TEXT_ONLY_PAGE = f"<html><body><main><p>{BODY}</p></main></body></html>"


@pytest.fixture
def pool(browser_farm) -> ResourcePool:
    return ResourcePool(browser_farm.launch, max_size=2, poll_interval=0.01)


@pytest.fixture
def primary(pool, http_client, monitor) -> PrimaryExtractor:
    return PrimaryExtractor(
        pool, ImageSelector(), ImageEnhancer(http_client), monitor, request_timeout=7.5
    )


@pytest.mark.asyncio
class TestPrimaryExtractor:
    async def test_full_page(self, primary, pool, browser_farm, monitor, image_bytes) -> None:
        browser_farm.pages[URL] = FULL_PAGE
        with respx.mock() as mock:
            mock.get(OG_IMAGE).mock(
                return_value=httpx.Response(200, content=image_bytes(1600, 900))
            )
            result = await primary.extract(URL)

        assert result.success
        assert result.method == "playwright"
        assert result.title == "The harbour, rebuilt"
        assert result.author == "Lee Longform"
        assert result.site_name == "Magazine"
        assert result.excerpt == "How the harbour was rebuilt."
        assert "Site header" not in result.text_content
        assert result.word_count >= 500
        assert result.lead_image_url == OG_IMAGE
        assert result.lead_image is not None and result.lead_image.enhanced
        assert result.media_type == "text"

        assert browser_farm.navigations == [(URL, 7500)]
        assert all(page.closed for page in browser_farm.opened_pages)
        assert pool.in_use_count == 0
        assert monitor.get_metrics().strategy_success == {"playwright": 1}

    async def test_text_capped_at_5000_chars(self, primary, browser_farm) -> None:
        long_body = "word " * 3000
        browser_farm.pages[URL] = f"<html><body><article>{long_body}</article></body></html>"
        browser_farm.screenshot = None

        result = await primary.extract(URL)

        assert len(result.text_content) <= 5000

    async def test_screenshot_when_no_candidates(self, primary, browser_farm, image_bytes) -> None:
        browser_farm.pages[URL] = TEXT_ONLY_PAGE
        browser_farm.screenshot = image_bytes(1920, 1080)

        result = await primary.extract(URL)

        assert result.lead_image is not None
        assert (result.lead_image.width, result.lead_image.height) == (1200, 630)
        assert result.lead_image_url.startswith("data:image/jpeg;base64,")

    async def test_failed_screenshot_means_no_image(self, primary, browser_farm) -> None:
        browser_farm.pages[URL] = TEXT_ONLY_PAGE

        result = await primary.extract(URL)

        assert result.success
        assert result.lead_image is None
        assert result.lead_image_url is None

    async def test_degraded_image_keeps_original_url(self, primary, browser_farm) -> None:
        browser_farm.pages[URL] = FULL_PAGE
        with respx.mock() as mock:
            mock.get(OG_IMAGE).mock(return_value=httpx.Response(403))
            result = await primary.extract(URL)

        assert result.success
        assert result.lead_image_url == OG_IMAGE
        assert result.lead_image.quality == 0

    async def test_navigation_timeout(self, primary, pool, browser_farm, monitor) -> None:
        browser_farm.navigate_error = NavigationTimeout("too slow")

        with pytest.raises(NavigationTimeout):
            await primary.extract(URL)

        assert browser_farm.open_pages == 0
        assert pool.in_use_count == 0
        metrics = monitor.get_metrics()
        assert metrics.failure_count == 1
        assert metrics.domain_stats["magazine.example.com"].success_rate == 0

    async def test_empty_page(self, primary, browser_farm) -> None:
        browser_farm.pages[URL] = "<html><body><script>app()</script></body></html>"

        with pytest.raises(ContentNotFound):
            await primary.extract(URL)

        assert browser_farm.open_pages == 0

    async def test_launch_failure(self, primary, browser_farm) -> None:
        browser_farm.launch_error = OSError("no chromium")

        with pytest.raises(RendererLaunchFailure):
            await primary.extract(URL)

    async def test_image_url_gets_image_metadata(self, primary, browser_farm, image_bytes) -> None:
        image_url = "https://cdn.example.com/gallery/photo.png"
        browser_farm.pages[image_url] = (
            f'<html><body><main><img src="{image_url}" width="1200" height="800">'
            f"<p>{BODY}</p></main></body></html>"
        )
        with respx.mock() as mock:
            mock.get(image_url).mock(
                return_value=httpx.Response(200, content=image_bytes(1200, 800, "PNG"))
            )
            result = await primary.extract(image_url)

        assert result.media_type == "image"
        assert result.media_metadata is not None
        assert result.media_metadata.kind == "image"
        assert result.media_metadata.width == result.lead_image.width
