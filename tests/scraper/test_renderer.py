"""Unit tests for the Playwright page session, with the Playwright page mocked."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from content_extraction.core.exceptions import NavigationTimeout
from content_extraction.scraper.config import SCROLL_MAX_STEPS, SCROLL_STEP_PX
from content_extraction.scraper.renderer import _AUTO_SCROLL_JS, PlaywrightPage

URL = "https://example.com/gallery"


def _session() -> tuple[PlaywrightPage, AsyncMock]:
    page = AsyncMock()
    return PlaywrightPage(AsyncMock(), page), page


@pytest.mark.asyncio
class TestPlaywrightPageNavigate:
    async def test_scrolls_after_load(self) -> None:
        session, page = _session()

        await session.navigate(URL, timeout_ms=5000)

        page.goto.assert_awaited_once_with(URL, wait_until="domcontentloaded", timeout=5000)
        script, args = page.evaluate.await_args.args
        assert script == _AUTO_SCROLL_JS
        assert args["step"] == SCROLL_STEP_PX
        assert args["maxSteps"] == SCROLL_MAX_STEPS

    async def test_scroll_failure_is_not_fatal(self) -> None:
        session, page = _session()
        page.evaluate.side_effect = PlaywrightError("execution context was destroyed")

        await session.navigate(URL, timeout_ms=5000)

        page.evaluate.assert_awaited_once()

    async def test_missed_network_idle_still_scrolls(self) -> None:
        session, page = _session()
        page.wait_for_load_state.side_effect = PlaywrightTimeoutError("idle timeout")

        await session.navigate(URL, timeout_ms=5000)

        page.evaluate.assert_awaited_once()

    async def test_goto_timeout_raises_without_scrolling(self) -> None:
        session, page = _session()
        page.goto.side_effect = PlaywrightTimeoutError("goto timeout")

        with pytest.raises(NavigationTimeout):
            await session.navigate(URL, timeout_ms=5000)

        page.evaluate.assert_not_awaited()
