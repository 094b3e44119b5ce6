"""Research freshness indicators, user-facing error states and service health."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from app.core.exceptions import (
    APIKeyMissingError,
    ExternalAPIError,
    RateLimitExceededError,
)

logger = logging.getLogger(__name__)

FreshnessLevel = Literal["fresh", "recent", "stale", "expired"]
QualityImpact = Literal["none", "minimal", "moderate", "significant"]
ContentType = Literal["trends", "general"]
HealthStatus = Literal["healthy", "degraded", "offline"]
ErrorType = Literal[
    "api_key_missing",
    "service_unavailable",
    "rate_limit",
    "quality_low",
    "network_error",
]

# Hours until research moves to the next freshness level
FRESHNESS_THRESHOLDS: dict[str, tuple[float, float, float]] = {
    "trends": (6, 24, 72),
    "general": (24, 72, 168),
}


@dataclass(frozen=True)
class ResearchFreshness:
    level: FreshnessLevel
    age: str
    age_in_hours: float
    recommend_refresh: bool
    source_timestamp: datetime
    quality_impact: QualityImpact

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["age_in_hours"] = round(self.age_in_hours, 2)
        payload["source_timestamp"] = self.source_timestamp.isoformat()
        return payload


@dataclass(frozen=True)
class ErrorState:
    type: ErrorType
    message: str
    user_action: str
    severity: Literal["info", "warning", "error", "critical"]
    can_proceed: bool
    fallback_available: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def format_age(hours: float) -> str:
    if hours < 1:
        return f"{round(hours * 60)} minutes ago"
    if hours < 24:
        return f"{round(hours)} hours ago"
    days = round(hours / 24)
    return f"{days} day{'s' if days > 1 else ''} ago"


def calculate_freshness(
    source_timestamp: datetime,
    content_type: ContentType = "general",
    *,
    now: datetime | None = None,
) -> ResearchFreshness:
    """Classify how fresh research is, with stricter limits for trend content."""
    current = now or datetime.now(timezone.utc)
    if source_timestamp.tzinfo is None:
        source_timestamp = source_timestamp.replace(tzinfo=timezone.utc)
    age_in_hours = max(0.0, (current - source_timestamp).total_seconds() / 3600)

    fresh, recent, stale = FRESHNESS_THRESHOLDS[content_type]
    if age_in_hours <= fresh:
        level, impact, refresh = "fresh", "none", False
    elif age_in_hours <= recent:
        level, impact, refresh = "recent", "minimal", False
    elif age_in_hours <= stale:
        level, impact, refresh = "stale", "moderate", True
    else:
        level, impact, refresh = "expired", "significant", True

    return ResearchFreshness(
        level=level,
        age=format_age(age_in_hours),
        age_in_hours=age_in_hours,
        recommend_refresh=refresh,
        source_timestamp=source_timestamp,
        quality_impact=impact,
    )


def create_error_state(error: BaseException, context: str) -> ErrorState:
    """Translate an exception into a state the client can present to the user."""
    logger.info(
        "Creating error state",
        extra={"context": context, "error_type": type(error).__name__, "error": str(error)},
    )
    message = str(error).lower()

    if isinstance(error, APIKeyMissingError) or "api key" in message:
        return ErrorState(
            type="api_key_missing",
            message="Research API key required for current industry intelligence",
            user_action="Connect your research API to access real-time market discussions",
            severity="warning",
            can_proceed=False,
            fallback_available=False,
        )

    if isinstance(error, RateLimitExceededError) or "rate limit" in message:
        return ErrorState(
            type="rate_limit",
            message="Research quota reached for this hour",
            user_action="Enhanced intelligence available in 1 hour, or upgrade for higher limits",
            severity="info",
            can_proceed=True,
            fallback_available=True,
        )

    if isinstance(error, ExternalAPIError) or "network" in message:
        return ErrorState(
            type="service_unavailable",
            message="Research service temporarily unavailable",
            user_action="Using cached intelligence - refresh in a few minutes for latest data",
            severity="warning",
            can_proceed=True,
            fallback_available=True,
        )

    if "quality" in message or "sources" in message:
        return ErrorState(
            type="quality_low",
            message="Limited research quality detected",
            user_action="Consider upgrading data sources for premium industry insights",
            severity="info",
            can_proceed=True,
            fallback_available=False,
        )

    return ErrorState(
        type="network_error",
        message="Connection issue detected",
        user_action="Check your internet connection and try again",
        severity="error",
        can_proceed=False,
        fallback_available=False,
    )


@dataclass
class ServiceHealth:
    status: HealthStatus = "healthy"
    error_rate: float = 0.0
    uptime: float = 100.0
    response_time_ms: float | None = None
    last_error: str | None = None


@dataclass
class SystemStatusTracker:
    """Per-dependency health flags reported by the system health endpoint."""

    services: dict[str, ServiceHealth] = field(
        default_factory=lambda: {
            name: ServiceHealth() for name in ("perplexity", "anthropic", "database", "cache")
        }
    )

    def update(self, service: str, **changes: Any) -> ServiceHealth:
        current = self.services.setdefault(service, ServiceHealth())
        for key, value in changes.items():
            if hasattr(current, key):
                setattr(current, key, value)
        logger.info(
            "Service health updated",
            extra={"service": service, "status": current.status},
        )
        return current

    def overall(self) -> HealthStatus:
        statuses = [health.status for health in self.services.values()]
        if statuses.count("offline") > 1:
            return "offline"
        if all(status == "healthy" for status in statuses):
            return "healthy"
        return "degraded"

    def snapshot(self) -> dict[str, Any]:
        return {
            "overall": self.overall(),
            "services": {name: asdict(health) for name, health in self.services.items()},
            "last_check": datetime.now(timezone.utc).isoformat(),
        }


system_status = SystemStatusTracker()
