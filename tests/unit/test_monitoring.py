"""Unit tests for in-process monitoring metrics and alerts."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.services.monitoring import CitationCheck, MonitoringService


class _StepClock:
    def __init__(self, *values: float) -> None:
        self._values = iter(values)

    def __call__(self) -> float:
        return next(self._values)


def test_successful_request_records_latency_and_cost() -> None:
    monitor = MonitoringService(clock=_StepClock(0.0, 0.5))

    with monitor.track_request("llm", "topics"):
        pass
    monitor.track_success("llm", tokens=2000)

    assert monitor.total_requests == 1
    assert monitor.success_rate == 1.0
    assert monitor.average_response_time_ms == pytest.approx(500.0)
    assert monitor.cost_metrics()["daily_cost"] == pytest.approx(0.006)
    assert monitor.cost_metrics()["token_usage"]["llm"] == 2000
    assert monitor.cost_metrics()["request_breakdown"]["topics"] == 1
    assert monitor.active_alerts() == []


def test_failed_request_is_reraised_and_alerts_on_error_rate() -> None:
    monitor = MonitoringService(clock=_StepClock(0.0, 0.1))

    with pytest.raises(RuntimeError):
        with monitor.track_request("perplexity", "content_ideas"):
            raise RuntimeError("upstream 502")

    assert monitor.failed_requests == 1
    assert monitor.error_rate("perplexity") == 1.0
    alerts = monitor.active_alerts()
    assert [alert.type for alert in alerts] == ["error"]
    assert alerts[0].metadata["error"] == "upstream 502"


def test_slow_request_raises_performance_alert() -> None:
    monitor = MonitoringService(clock=_StepClock(0.0, 12.0))

    with monitor.track_request("perplexity", "topics"):
        pass

    alert = monitor.active_alerts()[0]
    assert alert.type == "performance"
    assert alert.metadata["duration_ms"] == 12000


def test_citation_validation_buckets_authority() -> None:
    monitor = MonitoringService()

    monitor.track_citation_validation(
        [
            CitationCheck(is_valid=True, validation_time_ms=100, authority_score=95),
            CitationCheck(is_valid=True, validation_time_ms=200, authority_score=75),
            CitationCheck(is_valid=True, validation_time_ms=300, authority_score=50),
            CitationCheck(is_valid=False, validation_time_ms=400),
        ]
    )

    citations = monitor.citation_metrics()
    assert citations["valid_citations"] == 3
    assert citations["broken_citations"] == 1
    assert citations["high_authority_count"] == 1
    assert citations["medium_authority_count"] == 1
    assert citations["low_authority_count"] == 1
    assert citations["average_validation_time_ms"] == 250.0
    assert monitor.citation_accuracy == 0.75
    assert monitor.source_reliability == pytest.approx(0.525)


def test_alignment_is_a_running_mean_with_low_score_alert() -> None:
    monitor = MonitoringService()

    monitor.track_expertise_alignment(0.8, "Leadership")
    assert monitor.active_alerts() == []
    monitor.track_expertise_alignment(0.4, "Leadership")

    assert monitor.expertise_alignment == pytest.approx(0.6)
    assert monitor.active_alerts()[0].type == "quality"


def test_low_cache_hit_rate_alerts_and_recommends_caching() -> None:
    monitor = MonitoringService()

    monitor.track_cache_performance(0.2)

    assert monitor.active_alerts()[0].metadata == {"hit_rate": 0.2}
    assert "cache" in [item["type"] for item in monitor.recommendations()]


def test_resolve_alert() -> None:
    monitor = MonitoringService()
    alert = monitor.create_alert("cost", "low", "Budget at 50%")

    assert monitor.resolve_alert(alert.id) is True
    assert monitor.resolve_alert("alert_missing") is False
    assert monitor.active_alerts() == []
    assert monitor.dashboard()["alerts"][0]["resolved"] is True


def test_health_score_for_idle_service() -> None:
    monitor = MonitoringService()

    # Only the response-time component contributes when nothing has run yet
    assert monitor.health_score() == 20


def test_reset_daily_metrics_keeps_monthly_cost() -> None:
    monitor = MonitoringService()
    monitor.track_success("perplexity", tokens=1000)

    monitor.reset_daily_metrics()

    assert monitor.daily_cost == 0.0
    assert monitor.monthly_cost == pytest.approx(0.002)


def test_validation_is_timed_without_counting_as_a_request() -> None:
    monitor = MonitoringService(clock=_StepClock(0.0, 0.3))

    with monitor.track_validation():
        pass

    assert monitor.total_requests == 0
    assert monitor.service_requests["perplexity"] == 0
    assert monitor.performance_metrics()["api_latency_ms"]["validation"] == 300.0
    assert monitor.cost_metrics()["request_breakdown"]["validation"] == 1


class _MovableNow:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current


def test_costs_roll_over_with_the_calendar() -> None:
    now = _MovableNow(datetime(2026, 5, 31, 23, 0, tzinfo=timezone.utc))
    monitor = MonitoringService(now=now)
    monitor.track_success("llm", tokens=1000)

    now.current += timedelta(hours=2)
    costs = monitor.cost_metrics()

    assert costs["daily_cost"] == 0.0
    assert costs["monthly_cost"] == 0.0
    assert costs["token_usage"]["llm"] == 0

    monitor.track_success("llm", tokens=1000)
    now.current += timedelta(days=1)

    assert monitor.cost_metrics()["daily_cost"] == 0.0
    assert monitor.cost_metrics()["monthly_cost"] == pytest.approx(0.003)
