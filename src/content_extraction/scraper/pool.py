"""Bounded pool of headless-browser renderers.

Renderer startup is expensive, so instances are launched lazily up to
``max_size`` and then reused: ``release`` returns an instance to the idle
set instead of shutting it down.  When every instance is leased,
``acquire`` polls at a fixed interval until one is released.  Capacity
exhaustion is therefore a wait, never an error.

Usage::

    pool = ResourcePool(playwright_launcher(user_agent=ua), max_size=5)
    async with pool.lease() as handle:
        page = await handle.renderer.new_page()
        ...
    await pool.close_all()
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from content_extraction.core.exceptions import RendererLaunchFailure
from content_extraction.monitoring.metrics import (
    renderer_launches_total,
    renderer_pool_in_use,
    renderer_pool_live,
)
from content_extraction.scraper.renderer import Renderer, RendererLauncher

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE: int = 5
DEFAULT_POLL_INTERVAL: float = 0.1


@dataclass(eq=False)
class RendererHandle:
    """Opaque lease on one pooled renderer.

    Compared by identity.  Valid only between ``acquire`` and ``release``
    and never shared between two callers.
    """

    renderer: Renderer
    handle_id: int
    launched_at: float = field(default_factory=time.monotonic)


class ResourcePool:
    """Lazily-launched, bounded set of renderers.

    Args:
        launcher: Coroutine function that starts one renderer.
        max_size: Maximum number of live renderers (launches in flight count).
        poll_interval: Seconds between attempts while saturated.
    """

    def __init__(
        self,
        launcher: RendererLauncher,
        *,
        max_size: int = DEFAULT_POOL_SIZE,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._launcher = launcher
        self.max_size = max_size
        self._poll_interval = poll_interval
        self._handles: list[RendererHandle] = []
        self._in_use: set[RendererHandle] = set()
        self._launching = 0
        self._ids = itertools.count(1)
        self.launched_total = 0
        """Number of renderers ever launched by this pool (instrumentation)."""

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        """Live renderers, idle or leased."""
        return len(self._handles)

    @property
    def in_use_count(self) -> int:
        return len(self._in_use)

    @property
    def idle_count(self) -> int:
        return len(self._handles) - len(self._in_use)

    # ------------------------------------------------------------------
    # Acquire / release
    # ------------------------------------------------------------------

    async def acquire(self) -> RendererHandle:
        """Return an idle renderer, launching or waiting as needed.

        Raises:
            RendererLaunchFailure: If a new renderer had to be launched and
                the launch failed.  Not retried here.
        """
        waited = False
        while True:
            for handle in self._handles:
                if handle not in self._in_use:
                    self._mark_in_use(handle)
                    return handle

            # The capacity check and the reservation happen without an
            # intervening await, so concurrent callers cannot both claim
            # the last slot.
            if len(self._handles) + self._launching < self.max_size:
                return await self._launch()

            if not waited:
                logger.debug("pool: saturated at %d renderers, waiting", self.max_size)
                waited = True
            await asyncio.sleep(self._poll_interval)

    def release(self, handle: RendererHandle) -> None:
        """Return *handle* to the idle set.  The renderer keeps running."""
        if handle not in self._in_use:
            logger.warning("pool: release of handle %d that is not leased", handle.handle_id)
            return
        self._in_use.discard(handle)
        renderer_pool_in_use.set(len(self._in_use))

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[RendererHandle]:
        """Acquire a renderer for the duration of an ``async with`` block.

        The handle is released on every exit path, including exceptions and
        task cancellation.
        """
        handle = await self.acquire()
        try:
            yield handle
        finally:
            self.release(handle)

    async def close_all(self) -> None:
        """Terminate every pooled renderer and empty the pool."""
        handles, self._handles = self._handles, []
        self._in_use.clear()
        results = await asyncio.gather(
            *(h.renderer.close() for h in handles), return_exceptions=True
        )
        for handle, outcome in zip(handles, results):
            if isinstance(outcome, BaseException):
                logger.warning(
                    "pool: error closing renderer %d: %s", handle.handle_id, outcome
                )
        renderer_pool_live.set(0)
        renderer_pool_in_use.set(0)
        logger.info("pool: closed %d renderers", len(handles))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _mark_in_use(self, handle: RendererHandle) -> None:
        self._in_use.add(handle)
        renderer_pool_in_use.set(len(self._in_use))

    async def _launch(self) -> RendererHandle:
        self._launching += 1
        try:
            renderer = await self._launcher()
        except Exception as exc:
            renderer_launches_total.labels(outcome="failure").inc()
            logger.warning("pool: renderer launch failed: %s", exc)
            raise RendererLaunchFailure(
                f"renderer launch failed: {exc}",
                details={"pool_size": len(self._handles)},
            ) from exc
        finally:
            self._launching -= 1

        handle = RendererHandle(renderer=renderer, handle_id=next(self._ids))
        self._handles.append(handle)
        self._mark_in_use(handle)
        self.launched_total += 1
        renderer_launches_total.labels(outcome="success").inc()
        renderer_pool_live.set(len(self._handles))
        logger.info(
            "pool: launched renderer %d (%d/%d)",
            handle.handle_id,
            len(self._handles),
            self.max_size,
        )
        return handle
