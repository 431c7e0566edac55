"""In-memory success/latency aggregates for extraction attempts.

The monitor is an injected collaborator rather than a module-level
singleton: the orchestrator owns one instance and hands it to every tier,
and tests build their own.  Its aggregates live for the lifetime of the
process only.

Every :meth:`StrategyMonitor.record` call also feeds the process-wide
Prometheus metrics in :mod:`content_extraction.monitoring.metrics`.
"""

from __future__ import annotations

import logging
import threading

from content_extraction.core.models import DomainStats, ExtractionResult, ScrapingMetrics, Strategy
from content_extraction.monitoring.metrics import (
    extraction_attempts_total,
    extraction_duration_seconds,
)

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY: str = Strategy.PRIMARY.value


def _running_mean(previous: float, value: float, count: int) -> float:
    """Fold *value* into a mean that already covers ``count - 1`` samples."""
    return (previous * (count - 1) + value) / count


class StrategyMonitor:
    """Aggregates totals, per-strategy successes and per-domain statistics.

    Safe to share between coroutines and worker threads: every mutation and
    every snapshot happens under one lock.

    Args:
        export_metrics: Also update the Prometheus counters on each record.
    """

    def __init__(self, *, export_metrics: bool = True) -> None:
        self._lock = threading.Lock()
        self._metrics = ScrapingMetrics()
        self.export_metrics = export_metrics

    def record(self, result: ExtractionResult, load_time_ms: float) -> None:
        """Fold one attempt into the aggregates.

        Args:
            result: The attempt's result; failed attempts carry
                ``success=False``.
            load_time_ms: Wall-clock duration of the attempt.
        """
        with self._lock:
            metrics = self._metrics
            metrics.total_requests += 1
            if result.success:
                metrics.success_count += 1
                metrics.strategy_success[result.method] = (
                    metrics.strategy_success.get(result.method, 0) + 1
                )
            else:
                metrics.failure_count += 1
            metrics.average_load_time = _running_mean(
                metrics.average_load_time, load_time_ms, metrics.total_requests
            )

            stats = metrics.domain_stats.setdefault(result.domain, DomainStats())
            stats.count += 1
            stats.success_rate = _running_mean(
                stats.success_rate, 1.0 if result.success else 0.0, stats.count
            )
            stats.avg_load_time = _running_mean(stats.avg_load_time, load_time_ms, stats.count)

        if self.export_metrics:
            outcome = "success" if result.success else "failure"
            extraction_attempts_total.labels(strategy=result.method, outcome=outcome).inc()
            extraction_duration_seconds.labels(strategy=result.method).observe(
                load_time_ms / 1000.0
            )

        logger.debug(
            "monitor: recorded %s attempt for %s (success=%s, %.1f ms)",
            result.method,
            result.domain,
            result.success,
            load_time_ms,
        )

    def get_metrics(self) -> ScrapingMetrics:
        """Return a deep copy of the current aggregates."""
        with self._lock:
            return self._metrics.copy()

    def recommend_strategy(self, domain: str) -> str:
        """Suggest a strategy name for *domain*.

        Strategy keys are plain method names, so a domain rarely matches one
        and the default is returned.  The recommendation is advisory and is
        never used to reorder tiers.
        """
        with self._lock:
            if domain not in self._metrics.domain_stats:
                return DEFAULT_STRATEGY
            matching = [
                (name, count)
                for name, count in self._metrics.strategy_success.items()
                if domain in name
            ]
        if not matching:
            return DEFAULT_STRATEGY
        matching.sort(key=lambda item: item[1], reverse=True)
        return matching[0][0]

    def reset(self) -> None:
        """Drop every aggregate (used between tests)."""
        with self._lock:
            self._metrics = ScrapingMetrics()
