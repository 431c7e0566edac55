"""Unit tests for the renderer pool.

Uses the in-memory :class:`BrowserFarm` from ``conftest.py``; no browser is
launched.
"""

from __future__ import annotations

import asyncio

import pytest

from content_extraction.core.exceptions import RendererLaunchFailure
from content_extraction.scraper.pool import ResourcePool


@pytest.mark.asyncio
class TestAcquireRelease:
    async def test_launches_lazily(self, browser_farm) -> None:
        pool = ResourcePool(browser_farm.launch, max_size=3, poll_interval=0.01)
        assert pool.size == 0

        handle = await pool.acquire()

        assert pool.size == 1
        assert pool.in_use_count == 1
        assert handle.renderer is browser_farm.renderers[0]

    async def test_released_renderer_is_reused(self, browser_farm) -> None:
        pool = ResourcePool(browser_farm.launch, max_size=3, poll_interval=0.01)

        first = await pool.acquire()
        pool.release(first)
        second = await pool.acquire()

        assert second is first
        assert pool.launched_total == 1
        assert not browser_farm.renderers[0].closed

    async def test_release_of_unleased_handle_is_ignored(self, browser_farm) -> None:
        pool = ResourcePool(browser_farm.launch, max_size=1, poll_interval=0.01)
        handle = await pool.acquire()
        pool.release(handle)

        pool.release(handle)

        assert pool.in_use_count == 0
        assert pool.idle_count == 1

    async def test_saturated_pool_waits_for_release(self, browser_farm) -> None:
        pool = ResourcePool(browser_farm.launch, max_size=1, poll_interval=0.01)
        held = await pool.acquire()

        waiter = asyncio.create_task(pool.acquire())
        await asyncio.sleep(0.05)
        assert not waiter.done()

        pool.release(held)
        handle = await asyncio.wait_for(waiter, timeout=1.0)

        assert handle is held
        assert pool.launched_total == 1

    async def test_launch_failure_raises_and_frees_slot(self, browser_farm) -> None:
        browser_farm.launch_error = OSError("chromium missing")
        pool = ResourcePool(browser_farm.launch, max_size=1, poll_interval=0.01)

        with pytest.raises(RendererLaunchFailure) as exc_info:
            await pool.acquire()

        assert exc_info.value.code == "RENDERER_LAUNCH_FAILED"
        assert exc_info.value.retryable is True
        assert pool.size == 0

        browser_farm.launch_error = None
        handle = await asyncio.wait_for(pool.acquire(), timeout=1.0)
        assert handle is not None


@pytest.mark.asyncio
class TestConcurrency:
    async def test_never_exceeds_max_size(self, browser_farm) -> None:
        browser_farm.launch_delay = 0.02
        pool = ResourcePool(browser_farm.launch, max_size=3, poll_interval=0.005)
        peak = 0

        async def worker() -> None:
            nonlocal peak
            async with pool.lease():
                peak = max(peak, pool.in_use_count)
                await asyncio.sleep(0.01)

        await asyncio.gather(*(worker() for _ in range(20)))

        assert len(browser_farm.renderers) <= 3
        assert pool.launched_total <= 3
        assert peak <= 3
        assert pool.in_use_count == 0

    async def test_lease_releases_on_exception(self, browser_farm) -> None:
        pool = ResourcePool(browser_farm.launch, max_size=1, poll_interval=0.01)

        with pytest.raises(RuntimeError):
            async with pool.lease():
                raise RuntimeError("extraction blew up")

        assert pool.in_use_count == 0
        assert pool.idle_count == 1

    async def test_lease_releases_on_cancellation(self, browser_farm) -> None:
        pool = ResourcePool(browser_farm.launch, max_size=1, poll_interval=0.01)
        entered = asyncio.Event()

        async def slow() -> None:
            async with pool.lease():
                entered.set()
                await asyncio.sleep(10)

        task = asyncio.create_task(slow())
        await entered.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert pool.in_use_count == 0


@pytest.mark.asyncio
async def test_close_all_closes_every_renderer(browser_farm) -> None:
    pool = ResourcePool(browser_farm.launch, max_size=2, poll_interval=0.01)
    first = await pool.acquire()
    await pool.acquire()
    pool.release(first)

    await pool.close_all()

    assert pool.size == 0
    assert all(r.closed for r in browser_farm.renderers)


def test_max_size_must_be_positive(browser_farm) -> None:
    with pytest.raises(ValueError):
        ResourcePool(browser_farm.launch, max_size=0)
