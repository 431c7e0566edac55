"""Shared pytest fixtures for content extraction tests.

Fixture summary
---------------
settings        Settings with a fast poll interval and metrics enabled.
monitor         Fresh StrategyMonitor per test.
browser_farm    In-memory renderer factory; records launches and pages.
http_client     httpx.AsyncClient for respx-mocked requests.

Nothing here launches a real browser or touches the network: rendering goes
through :class:`FakeRenderer` and HTTP through ``respx``.
"""

from __future__ import annotations

import asyncio
import io
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from PIL import Image

from content_extraction.config.settings import Settings, get_settings
from content_extraction.monitoring.strategy_monitor import StrategyMonitor
from content_extraction.scraper.renderer import DomSnapshot, PageSession, Renderer


# ---------------------------------------------------------------------------
# Image helper
# ---------------------------------------------------------------------------


def make_image_bytes(width: int, height: int, fmt: str = "JPEG", color: Any = (200, 30, 30)) -> bytes:
    """Encode a solid-colour image of the given size."""
    mode = "RGBA" if fmt == "PNG" and len(color) == 4 else "RGB"
    buffer = io.BytesIO()
    Image.new(mode, (width, height), color).save(buffer, fmt)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Fake renderer
# ---------------------------------------------------------------------------


class FakePage(PageSession):
    """A tab that serves HTML from its farm's ``pages`` map."""

    def __init__(self, farm: "BrowserFarm") -> None:
        self.farm = farm
        self.url = "about:blank"
        self.closed = False

    async def navigate(self, url: str, *, timeout_ms: int) -> None:
        self.farm.navigations.append((url, timeout_ms))
        if self.farm.navigate_error is not None:
            raise self.farm.navigate_error
        self.url = url

    async def snapshot(self) -> DomSnapshot:
        return DomSnapshot(
            html=self.farm.pages.get(self.url, ""),
            url=self.url,
            image_sizes=dict(self.farm.image_sizes),
        )

    async def screenshot(self, *, width: int, height: int) -> bytes:
        if self.farm.screenshot is None:
            raise RuntimeError("screenshot unavailable")
        return self.farm.screenshot

    async def close(self) -> None:
        self.closed = True
        self.farm.open_pages -= 1


class FakeRenderer(Renderer):
    def __init__(self, farm: "BrowserFarm") -> None:
        self.farm = farm
        self.closed = False

    async def new_page(self) -> FakePage:
        self.farm.open_pages += 1
        page = FakePage(self.farm)
        self.farm.opened_pages.append(page)
        return page

    async def close(self) -> None:
        self.closed = True


class BrowserFarm:
    """Configurable in-memory stand-in for a browser engine.

    Attributes:
        pages: HTML served per URL after navigation.
        navigate_error: Raised from every ``navigate`` call when set.
        screenshot: JPEG bytes returned from ``screenshot``; raises if ``None``.
        launch_delay: Seconds each launch takes.
        launch_error: Raised from every launch when set.
    """

    def __init__(self) -> None:
        self.pages: dict[str, str] = {}
        self.image_sizes: dict[str, tuple[int, int]] = {}
        self.navigate_error: BaseException | None = None
        self.screenshot: bytes | None = None
        self.launch_delay = 0.0
        self.launch_error: BaseException | None = None
        self.renderers: list[FakeRenderer] = []
        self.opened_pages: list[FakePage] = []
        self.navigations: list[tuple[str, int]] = []
        self.open_pages = 0

    async def launch(self) -> Renderer:
        if self.launch_delay:
            await asyncio.sleep(self.launch_delay)
        if self.launch_error is not None:
            raise self.launch_error
        renderer = FakeRenderer(self)
        self.renderers.append(renderer)
        return renderer


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(poll_interval=0.01, request_timeout=5.0, http_timeout=5.0, pool_size=2)


@pytest.fixture
def monitor() -> StrategyMonitor:
    return StrategyMonitor()


@pytest.fixture
def browser_farm() -> BrowserFarm:
    return BrowserFarm()


@pytest_asyncio.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(follow_redirects=True, max_redirects=5) as client:
        yield client


@pytest.fixture
def image_bytes():
    """Return :func:`make_image_bytes` for tests that need encoded images."""
    return make_image_bytes
