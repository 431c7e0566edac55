"""Renderer capability: headless-browser pages behind a small interface.

The pool and the primary tier only talk to :class:`Renderer` and
:class:`PageSession`, so the browser engine is swappable (tests use an
in-memory fake).  The default implementation drives Chromium through
Playwright's async API.

Install Playwright and download the Chromium browser binary::

    pip install playwright>=1.48
    playwright install chromium
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from content_extraction.core.exceptions import NavigationTimeout, ScrapingError
from content_extraction.scraper.config import (
    BROWSER_LAUNCH_ARGS,
    SCROLL_DELAY_MS,
    SCROLL_MAX_STEPS,
    SCROLL_STEP_PX,
    STEALTH_INIT_SCRIPT,
    VIEWPORT_HEIGHT,
    VIEWPORT_WIDTH,
)

logger = logging.getLogger(__name__)

#: Collects ``[currentSrc, naturalWidth, naturalHeight]`` for loaded images.
_IMAGE_SIZES_JS = """
() => Array.from(document.images)
    .filter((img) => img.currentSrc && img.naturalWidth > 0)
    .map((img) => [img.currentSrc, img.naturalWidth, img.naturalHeight])
"""

#: Scrolls down in steps until the bottom or the step limit, then back to the top.
_AUTO_SCROLL_JS = """
async ({ step, maxSteps, delayMs }) => {
    for (let i = 0; i < maxSteps; i++) {
        const before = window.scrollY;
        window.scrollBy(0, step);
        await new Promise((resolve) => setTimeout(resolve, delayMs));
        if (window.scrollY === before) break;
    }
    window.scrollTo(0, 0);
}
"""

#: Resolves once every ``<img>`` on the page has loaded or errored.
_WAIT_FOR_IMAGES_JS = """
() => Promise.all(
    Array.from(document.images)
        .filter((img) => !img.complete)
        .map((img) => new Promise((resolve) => { img.onload = img.onerror = resolve; }))
)
"""


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


@dataclass
class DomSnapshot:
    """Rendered state of a page after navigation settled.

    Attributes:
        html: Serialised DOM (``document.documentElement.outerHTML``).
        url: Final URL after redirects and client-side navigation.
        image_sizes: Natural pixel size of each loaded image, keyed by its
            absolute ``currentSrc``.
    """

    html: str
    url: str
    image_sizes: dict[str, tuple[int, int]] = field(default_factory=dict)


class PageSession(ABC):
    """One browser tab, owned by a single extraction."""

    @abstractmethod
    async def navigate(self, url: str, *, timeout_ms: int) -> None:
        """Load *url* and wait for DOM and network stability.

        Raises:
            NavigationTimeout: If the document did not load within the timeout.
            ScrapingError: For any other navigation failure.
        """

    @abstractmethod
    async def snapshot(self) -> DomSnapshot:
        """Return the rendered DOM of the current page."""

    @abstractmethod
    async def screenshot(self, *, width: int, height: int) -> bytes:
        """Capture a JPEG of the top ``width`` x ``height`` region of the page."""

    @abstractmethod
    async def close(self) -> None:
        """Close the tab and any per-page browser context."""


class Renderer(ABC):
    """A running headless-browser instance."""

    @abstractmethod
    async def new_page(self) -> PageSession:
        """Open an isolated tab."""

    @abstractmethod
    async def close(self) -> None:
        """Terminate the browser process."""


RendererLauncher = Callable[[], Awaitable[Renderer]]
"""Zero-argument coroutine function that starts a new :class:`Renderer`."""


# ---------------------------------------------------------------------------
# Playwright implementation
# ---------------------------------------------------------------------------


class PlaywrightPage(PageSession):
    """:class:`PageSession` backed by a Playwright page in its own context."""

    def __init__(self, context: BrowserContext, page: Page) -> None:
        self._context = context
        self._page = page

    async def navigate(self, url: str, *, timeout_ms: int) -> None:
        try:
            await self._page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(
                f"navigation did not complete within {timeout_ms} ms",
                details={"url": url},
            ) from exc
        except PlaywrightError as exc:
            raise ScrapingError(
                f"navigation failed: {exc.message}",
                code="NAVIGATION_FAILED",
                details={"url": url},
            ) from exc

        # Long-polling pages never reach network idle; the DOM is already
        # usable at this point, so a missed idle state is not fatal.
        try:
            await self._page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug("renderer: network never went idle for %s", url)

        await self._scroll_for_lazy_content(url)

    async def _scroll_for_lazy_content(self, url: str) -> None:
        try:
            await self._page.evaluate(
                _AUTO_SCROLL_JS,
                {"step": SCROLL_STEP_PX, "maxSteps": SCROLL_MAX_STEPS, "delayMs": SCROLL_DELAY_MS},
            )
        except PlaywrightError as exc:
            logger.debug("renderer: auto-scroll failed for %s: %s", url, exc.message)

    async def snapshot(self) -> DomSnapshot:
        html = await self._page.content()
        sizes: dict[str, tuple[int, int]] = {}
        try:
            for src, width, height in await self._page.evaluate(_IMAGE_SIZES_JS):
                sizes[src] = (int(width), int(height))
        except PlaywrightError as exc:
            logger.debug("renderer: could not read image sizes: %s", exc.message)
        return DomSnapshot(html=html, url=self._page.url, image_sizes=sizes)

    async def screenshot(self, *, width: int, height: int) -> bytes:
        await self._page.set_viewport_size({"width": width, "height": height})
        await self._page.wait_for_load_state("networkidle")
        await self._page.evaluate(_WAIT_FOR_IMAGES_JS)
        return await self._page.screenshot(
            type="jpeg",
            quality=95,
            clip={"x": 0, "y": 0, "width": width, "height": height},
        )

    async def close(self) -> None:
        try:
            await self._page.close()
        finally:
            await self._context.close()


class PlaywrightRenderer(Renderer):
    """A Chromium browser plus the Playwright driver that launched it."""

    def __init__(self, playwright: Playwright, browser: Browser, *, user_agent: str) -> None:
        self._playwright = playwright
        self._browser = browser
        self._user_agent = user_agent

    async def new_page(self) -> PlaywrightPage:
        context = await self._browser.new_context(
            user_agent=self._user_agent,
            viewport={"width": VIEWPORT_WIDTH, "height": VIEWPORT_HEIGHT},
        )
        await context.add_init_script(STEALTH_INIT_SCRIPT)
        page = await context.new_page()
        return PlaywrightPage(context, page)

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


def playwright_launcher(*, user_agent: str, headless: bool = True) -> RendererLauncher:
    """Return a launcher that starts hardened headless Chromium instances.

    Args:
        user_agent: User agent applied to every browser context.
        headless: Whether to run without a visible window.

    Returns:
        A coroutine function suitable for :class:`~.pool.ResourcePool`.
    """

    async def launch() -> Renderer:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=headless,
                args=list(BROWSER_LAUNCH_ARGS),
            )
        except BaseException:
            await playwright.stop()
            raise
        logger.info("renderer: launched chromium (headless=%s)", headless)
        return PlaywrightRenderer(playwright, browser, user_agent=user_agent)

    return launch
