"""Abstract base class for the extraction tiers.

Every tier subclasses ``Extractor`` and implements ``_extract``.  The base
class owns the timing and the monitor bookkeeping so that each attempt is
recorded exactly once, whether it succeeds or fails:

Example usage::

    from content_extraction.extractors.base import Extractor

    class MyTier(Extractor):
        strategy = Strategy.ARTICLE

        async def _extract(self, url: str) -> ExtractionResult: ...
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

from content_extraction.core.exceptions import ScrapingError
from content_extraction.core.models import ExtractionResult, Strategy
from content_extraction.core.text import extract_domain
from content_extraction.monitoring.strategy_monitor import StrategyMonitor

logger = logging.getLogger(__name__)


def failure_result(url: str, method: str, error: str) -> ExtractionResult:
    """Build the unsuccessful result shape shared by every tier.

    The title falls back to the domain so that a failed extraction still
    renders as something recognisable.
    """
    domain = extract_domain(url)
    return ExtractionResult(
        title=domain,
        url=url,
        domain=domain,
        method=method,
        success=False,
        error=error,
    )


class Extractor(ABC):
    """One extraction technique.

    Class Attributes:
        strategy: The :class:`~content_extraction.core.models.Strategy` this
            tier reports in ``ExtractionResult.method``.

    Args:
        monitor: Shared monitor every attempt is recorded to.
    """

    strategy: Strategy

    def __init__(self, monitor: StrategyMonitor) -> None:
        self.monitor = monitor

    async def extract(self, url: str) -> ExtractionResult:
        """Run the tier against *url* and record the attempt.

        Raises:
            ScrapingError: If the tier cannot produce a result.  Unexpected
                exceptions are wrapped so callers only see this hierarchy.
        """
        start = time.perf_counter()
        try:
            result = await self._extract(url)
        except ScrapingError as exc:
            self._record_failure(url, str(exc), start)
            raise
        except Exception as exc:
            self._record_failure(url, str(exc), start)
            raise ScrapingError(
                f"{self.strategy.value} tier failed: {exc}",
                code="EXTRACTION_FAILED",
                details={"url": url, "exception": type(exc).__name__},
            ) from exc

        result.load_time_ms = (time.perf_counter() - start) * 1000
        self.monitor.record(result, result.load_time_ms)
        return result

    @abstractmethod
    async def _extract(self, url: str) -> ExtractionResult:
        """Produce a result for *url* or raise a :class:`ScrapingError`."""

    def _record_failure(self, url: str, error: str, start: float) -> None:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("extractor: %s failed for %s: %s", self.strategy.value, url, error)
        self.monitor.record(failure_result(url, self.strategy.value, error), elapsed_ms)
