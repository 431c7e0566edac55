"""Unit tests for the in-memory strategy monitor."""

from __future__ import annotations

import threading

from content_extraction.core.models import ExtractionResult, Strategy
from content_extraction.monitoring.strategy_monitor import StrategyMonitor


def _result(success: bool = True, method: str = Strategy.PRIMARY.value, domain: str = "example.com") -> ExtractionResult:
    return ExtractionResult(
        title="t",
        url=f"https://{domain}/",
        domain=domain,
        method=method,
        success=success,
        error=None if success else "boom",
    )


class TestRecord:
    def test_average_load_time(self, monitor: StrategyMonitor) -> None:
        monitor.record(_result(), 100)
        monitor.record(_result(), 300)

        assert monitor.get_metrics().average_load_time == 200

    def test_counts_successes_and_failures(self, monitor: StrategyMonitor) -> None:
        monitor.record(_result(), 10)
        monitor.record(_result(success=False), 10)
        monitor.record(_result(method=Strategy.ARTICLE.value), 10)

        metrics = monitor.get_metrics()
        assert metrics.total_requests == 3
        assert metrics.success_count == 2
        assert metrics.failure_count == 1
        assert metrics.strategy_success == {"playwright": 1, "trafilatura": 1}

    def test_domain_stats(self, monitor: StrategyMonitor) -> None:
        monitor.record(_result(domain="a.com"), 100)
        monitor.record(_result(domain="a.com", success=False), 200)
        monitor.record(_result(domain="b.com"), 50)

        stats = monitor.get_metrics().domain_stats
        assert stats["a.com"].count == 2
        assert stats["a.com"].success_rate == 0.5
        assert stats["a.com"].avg_load_time == 150
        assert stats["b.com"].success_rate == 1.0

    def test_get_metrics_returns_a_copy(self, monitor: StrategyMonitor) -> None:
        monitor.record(_result(), 10)
        snapshot = monitor.get_metrics()
        snapshot.total_requests = 99
        snapshot.domain_stats["example.com"].count = 99

        fresh = monitor.get_metrics()
        assert fresh.total_requests == 1
        assert fresh.domain_stats["example.com"].count == 1

    def test_concurrent_records_are_not_lost(self, monitor: StrategyMonitor) -> None:
        def worker() -> None:
            for _ in range(200):
                monitor.record(_result(), 1)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert monitor.get_metrics().total_requests == 1600

    def test_reset(self, monitor: StrategyMonitor) -> None:
        monitor.record(_result(), 10)
        monitor.reset()

        assert monitor.get_metrics().total_requests == 0


class TestRecommendStrategy:
    def test_unknown_domain_gets_default(self, monitor: StrategyMonitor) -> None:
        assert monitor.recommend_strategy("never-seen.com") == "playwright"

    def test_known_domain_without_matching_key_gets_default(self, monitor: StrategyMonitor) -> None:
        monitor.record(_result(method=Strategy.ARTICLE.value), 10)

        assert monitor.recommend_strategy("example.com") == "playwright"

    def test_highest_count_domain_key_wins(self, monitor: StrategyMonitor) -> None:
        for _ in range(3):
            monitor.record(_result(method="trafilatura:example.com"), 10)
        monitor.record(_result(method="playwright:example.com"), 10)
        monitor.record(_result(method="playwright:other.org", domain="other.org"), 10)
        monitor.record(_result(success=False, method="metadata:example.com"), 10)

        assert monitor.recommend_strategy("example.com") == "trafilatura:example.com"
        assert monitor.recommend_strategy("other.org") == "playwright:other.org"


def test_to_dict_is_camel_case(monitor: StrategyMonitor) -> None:
    monitor.record(_result(), 120)

    data = monitor.get_metrics().to_dict()
    assert data["totalRequests"] == 1
    assert data["domainStats"]["example.com"]["avgLoadTime"] == 120
