"""Prometheus metrics for the extraction pipeline.

All metrics are module-level singletons registered on the default
``REGISTRY``.  They are process-wide counterparts of the in-memory
:class:`~content_extraction.monitoring.strategy_monitor.StrategyMonitor`
aggregates and are exposed by the API at ``GET /metrics``.

Metrics defined here:

  extraction_attempts_total{strategy, outcome}
      Counter: one increment per tier attempt (outcome: success, failure).

  extraction_duration_seconds{strategy}
      Histogram: wall-clock duration of each tier attempt.

  renderer_pool_live
      Gauge: live headless-browser instances owned by the pool.

  renderer_pool_in_use
      Gauge: instances currently leased to an extraction.

  renderer_launches_total{outcome}
      Counter: browser launches (outcome: success, failure).

  image_enhancements_total{outcome}
      Counter: lead-image processing (outcome: enhanced, degraded, screenshot).

Usage::

    from content_extraction.monitoring.metrics import extraction_attempts_total
    extraction_attempts_total.labels(strategy="playwright", outcome="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# Extraction attempts
# ---------------------------------------------------------------------------

extraction_attempts_total: Counter = Counter(
    "extraction_attempts_total",
    "Extraction tier attempts by strategy and outcome.",
    labelnames=["strategy", "outcome"],
)

extraction_duration_seconds: Histogram = Histogram(
    "extraction_duration_seconds",
    "Wall-clock duration of extraction tier attempts in seconds.",
    labelnames=["strategy"],
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0],
)

# ---------------------------------------------------------------------------
# Renderer pool
# ---------------------------------------------------------------------------

renderer_pool_live: Gauge = Gauge(
    "renderer_pool_live",
    "Live headless-browser instances owned by the renderer pool.",
)

renderer_pool_in_use: Gauge = Gauge(
    "renderer_pool_in_use",
    "Renderer instances currently leased to an extraction.",
)

renderer_launches_total: Counter = Counter(
    "renderer_launches_total",
    "Headless-browser launches by outcome.",
    labelnames=["outcome"],
)

# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

image_enhancements_total: Counter = Counter(
    "image_enhancements_total",
    "Lead-image processing by outcome (enhanced, degraded, screenshot).",
    labelnames=["outcome"],
)


# ---------------------------------------------------------------------------
# Response helper
# ---------------------------------------------------------------------------


def get_metrics_response() -> tuple[bytes, str]:
    """Generate a Prometheus text-format metrics response.

    Returns:
        A tuple of (body_bytes, content_type_string) suitable for constructing
        a FastAPI ``Response`` object.
    """
    from prometheus_client import CONTENT_TYPE_LATEST, generate_latest  # noqa: PLC0415

    return generate_latest(), CONTENT_TYPE_LATEST
