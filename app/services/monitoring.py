"""In-process quality, performance and cost metrics with threshold alerts."""

from __future__ import annotations

import logging
import time
import uuid
from collections import deque
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

logger = logging.getLogger(__name__)

ServiceName = Literal["perplexity", "llm"]
RequestType = Literal["topics", "content_ideas", "validation"]
AlertType = Literal["performance", "cost", "quality", "error"]
Severity = Literal["low", "medium", "high", "critical"]

LATENCY_WINDOW = 100
VALIDATION_WINDOW = 1000
MAX_ALERTS = 100

COST_PER_1K_TOKENS: dict[str, float] = {"perplexity": 0.002, "llm": 0.003}

SLOW_RESPONSE_MS = 10_000
ERROR_RATE_ALERT = 0.1
CACHE_HIT_RATE_ALERT = 0.3
FALLBACK_RATE_ALERT = 0.05
ALIGNMENT_ALERT = 0.6

HEALTH_WEIGHTS = {
    "success_rate": 0.3,
    "response_time": 0.2,
    "citation_accuracy": 0.2,
    "cache_hit_rate": 0.15,
    "expertise_alignment": 0.15,
}


@dataclass
class MonitoringAlert:
    id: str
    type: AlertType
    severity: Severity
    message: str
    timestamp: datetime
    metadata: dict[str, Any] = field(default_factory=dict)
    resolved: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass
class CitationCheck:
    is_valid: bool
    validation_time_ms: float
    authority_score: int | None = None


def _average(values: Iterable[float]) -> float:
    items = list(values)
    return sum(items) / len(items) if items else 0.0


class MonitoringService:
    """Aggregates request outcomes into dashboard metrics.

    All state is in memory and per process. Daily and monthly costs roll over
    lazily on the first tracked event of a new calendar day or month.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._clock = clock
        self._now = now
        self._tracking_day = now().date()
        self.total_requests = 0
        self.successful_requests = 0
        self.failed_requests = 0
        self.fallbacks = 0
        self.request_times: deque[float] = deque(maxlen=LATENCY_WINDOW)
        self.service_latency: dict[str, deque[float]] = {
            "perplexity": deque(maxlen=LATENCY_WINDOW),
            "llm": deque(maxlen=LATENCY_WINDOW),
            "validation": deque(maxlen=LATENCY_WINDOW),
        }
        self.service_requests: dict[str, int] = {"perplexity": 0, "llm": 0}
        self.service_errors: dict[str, int] = {"perplexity": 0, "llm": 0}
        self.token_usage: dict[str, int] = {"perplexity": 0, "llm": 0}
        self.daily_cost = 0.0
        self.monthly_cost = 0.0
        self.request_breakdown: dict[str, int] = {"topics": 0, "content_ideas": 0, "validation": 0}

        self.total_citations = 0
        self.valid_citations = 0
        self.broken_citations = 0
        self.authority_buckets: dict[str, int] = {"high": 0, "medium": 0, "low": 0}
        self.validation_times: deque[float] = deque(maxlen=VALIDATION_WINDOW)

        self.cache_hit_rate = 0.0
        self.alignment_samples = 0
        self.expertise_alignment = 0.0
        self.alerts: deque[MonitoringAlert] = deque(maxlen=MAX_ALERTS)

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    @contextmanager
    def track_request(self, service: ServiceName, request_type: RequestType) -> Iterator[None]:
        """Time a call to an external service; failures are counted and re-raised."""
        self._roll_over()
        self.total_requests += 1
        self.service_requests[service] += 1
        self.request_breakdown[request_type] += 1
        started = self._clock()
        try:
            yield
        except Exception as exc:
            self._record_duration(service, started)
            self.track_error(service, exc)
            raise
        self._record_duration(service, started)

    @contextmanager
    def track_validation(self) -> Iterator[None]:
        """Time a source validation batch without counting it as a service request."""
        self._roll_over()
        self.request_breakdown["validation"] += 1
        started = self._clock()
        try:
            yield
        finally:
            self.service_latency["validation"].append((self._clock() - started) * 1000)

    def _record_duration(self, service: str, started: float) -> None:
        duration_ms = (self._clock() - started) * 1000
        self.request_times.append(duration_ms)
        self.service_latency[service].append(duration_ms)
        if duration_ms > SLOW_RESPONSE_MS:
            self.create_alert(
                "performance",
                "high",
                f"Slow response detected for {service}: {duration_ms:.0f}ms",
                service=service,
                duration_ms=round(duration_ms),
            )

    def track_success(self, service: ServiceName, tokens: int = 0) -> None:
        self._roll_over()
        self.successful_requests += 1
        if tokens:
            self.token_usage[service] += tokens
            cost = tokens / 1000 * COST_PER_1K_TOKENS[service]
            self.daily_cost += cost
            self.monthly_cost += cost

    def track_error(self, service: ServiceName, error: BaseException) -> None:
        self.failed_requests += 1
        self.service_errors[service] += 1
        rate = self.error_rate(service)
        if rate > ERROR_RATE_ALERT:
            self.create_alert(
                "error",
                "high",
                f"High error rate detected for {service}: {rate * 100:.1f}%",
                service=service,
                error=str(error),
            )

    def track_citation_validation(self, checks: Iterable[CitationCheck]) -> None:
        for check in checks:
            self.total_citations += 1
            self.validation_times.append(check.validation_time_ms)
            if not check.is_valid:
                self.broken_citations += 1
                continue
            self.valid_citations += 1
            if check.authority_score is None:
                continue
            if check.authority_score >= 90:
                self.authority_buckets["high"] += 1
            elif check.authority_score >= 70:
                self.authority_buckets["medium"] += 1
            else:
                self.authority_buckets["low"] += 1

    def track_cache_performance(self, hit_rate: float) -> None:
        """Record the current cache hit rate as a 0-1 fraction."""
        self.cache_hit_rate = hit_rate
        if hit_rate < CACHE_HIT_RATE_ALERT:
            self.create_alert(
                "performance",
                "medium",
                f"Low cache hit rate: {hit_rate * 100:.1f}%",
                hit_rate=hit_rate,
            )

    def track_fallback(self, reason: str) -> None:
        self.fallbacks += 1
        rate = self.fallback_rate
        if rate > FALLBACK_RATE_ALERT:
            self.create_alert(
                "performance",
                "high",
                f"High fallback rate: {rate * 100:.1f}%",
                reason=reason,
                fallback_rate=rate,
            )

    def track_expertise_alignment(self, score: float, primary_expertise: str | None = None) -> None:
        self.alignment_samples += 1
        self.expertise_alignment += (score - self.expertise_alignment) / self.alignment_samples
        if score < ALIGNMENT_ALERT:
            self.create_alert(
                "quality",
                "medium",
                f"Low expertise alignment detected: {score * 100:.1f}%",
                score=score,
                primary_expertise=primary_expertise,
            )

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def create_alert(
        self, alert_type: AlertType, severity: Severity, message: str, **metadata: Any
    ) -> MonitoringAlert:
        alert = MonitoringAlert(
            id=f"alert_{uuid.uuid4().hex[:12]}",
            type=alert_type,
            severity=severity,
            message=message,
            timestamp=self._now(),
            metadata=metadata,
        )
        self.alerts.append(alert)
        logger.warning(
            "Monitoring alert raised",
            extra={"alert_type": alert_type, "severity": severity, "alert_message": message},
        )
        return alert

    def resolve_alert(self, alert_id: str) -> bool:
        for alert in self.alerts:
            if alert.id == alert_id:
                alert.resolved = True
                return True
        return False

    def active_alerts(self) -> list[MonitoringAlert]:
        return [alert for alert in self.alerts if not alert.resolved]

    # ------------------------------------------------------------------
    # Derived metrics
    # ------------------------------------------------------------------

    def error_rate(self, service: str) -> float:
        requests = self.service_requests.get(service, 0)
        return self.service_errors.get(service, 0) / requests if requests else 0.0

    @property
    def success_rate(self) -> float:
        return self.successful_requests / self.total_requests if self.total_requests else 0.0

    @property
    def average_response_time_ms(self) -> float:
        return _average(self.request_times)

    @property
    def citation_accuracy(self) -> float:
        return self.valid_citations / self.total_citations if self.total_citations else 0.0

    @property
    def source_reliability(self) -> float:
        if not self.total_citations:
            return 0.0
        weighted = (
            self.authority_buckets["high"] * 1.0
            + self.authority_buckets["medium"] * 0.7
            + self.authority_buckets["low"] * 0.4
        )
        return weighted / self.total_citations

    @property
    def fallback_rate(self) -> float:
        return self.fallbacks / self.total_requests if self.total_requests else 0.0

    @property
    def cost_per_request(self) -> float:
        return self.daily_cost / self.total_requests if self.total_requests else 0.0

    def health_score(self) -> int:
        response_score = max(0.0, 1 - self.average_response_time_ms / SLOW_RESPONSE_MS)
        score = (
            self.success_rate * HEALTH_WEIGHTS["success_rate"]
            + response_score * HEALTH_WEIGHTS["response_time"]
            + self.citation_accuracy * HEALTH_WEIGHTS["citation_accuracy"]
            + self.cache_hit_rate * HEALTH_WEIGHTS["cache_hit_rate"]
            + self.expertise_alignment * HEALTH_WEIGHTS["expertise_alignment"]
        )
        return round(score * 100)

    def recommendations(self) -> list[dict[str, str]]:
        recommendations: list[dict[str, str]] = []
        if self.cache_hit_rate < 0.5:
            recommendations.append(
                {
                    "type": "cache",
                    "priority": "high",
                    "recommendation": "Increase cache TTL for stable content types and use narrower cache keys",
                    "impact": "Reduce API costs by 30-50% and improve response times",
                }
            )
        if self.daily_cost > 10:
            recommendations.append(
                {
                    "type": "cost",
                    "priority": "medium",
                    "recommendation": "Cache more aggressively and route simple queries to smaller models",
                    "impact": "Reduce daily costs by 20-40%",
                }
            )
        if self.average_response_time_ms > 5000:
            recommendations.append(
                {
                    "type": "performance",
                    "priority": "high",
                    "recommendation": "Run research streams in parallel and lower request timeouts",
                    "impact": "Improve response times by 40-60%",
                }
            )
        if self.citation_accuracy < 0.8:
            recommendations.append(
                {
                    "type": "quality",
                    "priority": "medium",
                    "recommendation": "Tighten source validation and extend the trusted domain list",
                    "impact": "Increase citation accuracy by 15-25%",
                }
            )
        return recommendations

    def quality_metrics(self) -> dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "average_response_time_ms": round(self.average_response_time_ms, 1),
            "citation_accuracy": round(self.citation_accuracy, 4),
            "source_reliability": round(self.source_reliability, 4),
            "cost_per_request": round(self.cost_per_request, 6),
            "expertise_alignment": round(self.expertise_alignment, 4),
        }

    def citation_metrics(self) -> dict[str, Any]:
        return {
            "total_citations": self.total_citations,
            "valid_citations": self.valid_citations,
            "broken_citations": self.broken_citations,
            "high_authority_count": self.authority_buckets["high"],
            "medium_authority_count": self.authority_buckets["medium"],
            "low_authority_count": self.authority_buckets["low"],
            "average_validation_time_ms": round(_average(self.validation_times), 1),
        }

    def performance_metrics(self) -> dict[str, Any]:
        return {
            "api_latency_ms": {
                service: round(_average(samples), 1)
                for service, samples in self.service_latency.items()
            },
            "cache_hit_rate": self.cache_hit_rate,
            "fallback_rate": round(self.fallback_rate, 4),
            "error_rates": {
                service: round(self.error_rate(service), 4) for service in self.service_requests
            },
        }

    def cost_metrics(self) -> dict[str, Any]:
        self._roll_over()
        return {
            "daily_cost": round(self.daily_cost, 4),
            "monthly_cost": round(self.monthly_cost, 4),
            "token_usage": dict(self.token_usage),
            "request_breakdown": dict(self.request_breakdown),
        }

    def dashboard(self) -> dict[str, Any]:
        return {
            "quality": self.quality_metrics(),
            "citations": self.citation_metrics(),
            "performance": self.performance_metrics(),
            "costs": self.cost_metrics(),
            "alerts": [alert.to_dict() for alert in self.alerts],
            "health_score": self.health_score(),
        }

    def reset_daily_metrics(self) -> None:
        self.daily_cost = 0.0
        self.request_breakdown = {"topics": 0, "content_ideas": 0, "validation": 0}
        logger.info("Daily monitoring metrics reset")

    def reset_monthly_metrics(self) -> None:
        self.monthly_cost = 0.0
        self.token_usage = {"perplexity": 0, "llm": 0}
        logger.info("Monthly monitoring metrics reset")

    def _roll_over(self) -> None:
        today = self._now().date()
        if today == self._tracking_day:
            return
        if (today.year, today.month) != (self._tracking_day.year, self._tracking_day.month):
            self.reset_monthly_metrics()
        self.reset_daily_metrics()
        self._tracking_day = today


monitoring_service = MonitoringService()
