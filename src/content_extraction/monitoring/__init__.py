"""Extraction observability: in-memory strategy aggregates and Prometheus metrics."""

from content_extraction.monitoring.strategy_monitor import StrategyMonitor

__all__ = ["StrategyMonitor"]
