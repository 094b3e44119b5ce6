"""Budget tracking and model recommendations for generation requests."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from app.config import settings

logger = logging.getLogger(__name__)

Complexity = Literal["simple", "medium", "complex"]
Urgency = Literal["low", "medium", "high"]
GenerationRequestType = Literal["topics", "content_ideas"]

# USD per 1K tokens
TOKEN_COSTS: dict[str, dict[str, float]] = {
    "perplexity": {
        "sonar": 0.0002,
        "sonar-pro": 0.0006,
        "sonar-reasoning-pro": 0.0012,
    },
    "anthropic": {
        "claude-sonnet-4-5": 0.003,
        "claude-haiku-4-5": 0.0008,
    },
}

CHEAP_LLM_MODEL = "claude-haiku-4-5"
BALANCED_SEARCH_MODEL = "sonar"
PREMIUM_SEARCH_MODEL = "sonar-pro"

FAST_MOVING_FIELDS = ("ai", "blockchain", "cryptocurrency", "tech", "startup")
PROJECTED_DAILY_GROWTH = 1.1
STRATEGY_EMERGENCY_USAGE = 0.8


@dataclass
class UsagePattern:
    expert_id: int
    requests_per_day: int
    average_cost: float
    daily_cost: float
    peak_hours: list[int]
    preferred_platforms: list[str]
    complexity_profile: Complexity


@dataclass
class RequestRecommendation:
    service: Literal["perplexity", "anthropic"]
    model: str
    max_tokens: int
    use_cache: bool
    estimated_cost: float
    rationale: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ApprovalDecision:
    approved: bool
    reason: str
    alternatives: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class OptimizationStrategy:
    name: str
    description: str
    expected_savings: float
    impact_level: Literal["low", "medium", "high"]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _expertise(profile: Any) -> str:
    return (getattr(profile, "primary_expertise", None) or "").lower()


def infer_complexity(profile: Any) -> Complexity:
    """Initial complexity guess for an expert seen for the first time."""
    expertise = _expertise(profile)
    indicators = [
        len(getattr(profile, "secondary_expertise", None) or []) > 3,
        len(getattr(profile, "platforms", None) or []) > 2,
        len(getattr(profile, "content_goals", None) or []) > 5,
        "enterprise" in (getattr(profile, "target_audience", None) or "").lower(),
        "ai" in expertise or "tech" in expertise,
    ]
    hits = sum(indicators)
    if hits <= 1:
        return "simple"
    if hits <= 3:
        return "medium"
    return "complex"


def determine_complexity(
    profile: Any,
    request_type: GenerationRequestType,
    pattern: UsagePattern,
) -> Complexity:
    score = 0
    if request_type == "content_ideas":
        score += 1
    expertise = _expertise(profile)
    if any(name in expertise for name in FAST_MOVING_FIELDS):
        score += 2
    if len(getattr(profile, "platforms", None) or []) > 2:
        score += 1
    if pattern.complexity_profile == "complex":
        score += 2

    if score <= 2:
        return "simple"
    if score <= 4:
        return "medium"
    return "complex"


class CostOptimizer:
    """Tracks spend per day, month and expert against configured budgets."""

    def __init__(
        self,
        *,
        daily_budget: float | None = None,
        monthly_budget: float | None = None,
        per_expert_daily_limit: float | None = None,
        emergency_threshold: float | None = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.daily_budget = daily_budget or settings.daily_budget
        self.monthly_budget = monthly_budget or settings.monthly_budget
        self.per_expert_daily_limit = per_expert_daily_limit or settings.per_expert_daily_limit
        self.emergency_threshold = emergency_threshold or settings.emergency_threshold
        self._now = now
        self.usage_patterns: dict[int, UsagePattern] = {}
        self.current_daily_cost = 0.0
        self.current_monthly_cost = 0.0
        self._tracking_day = now().date()

    def _roll_over(self) -> None:
        """Reset daily and monthly spend once the calendar has moved on."""
        today = self._now().date()
        if today == self._tracking_day:
            return
        if (today.year, today.month) != (self._tracking_day.year, self._tracking_day.month):
            self.reset_monthly_tracking()
        self.reset_daily_tracking()
        self._tracking_day = today

    @property
    def daily_budget_usage(self) -> float:
        return self.current_daily_cost / self.daily_budget

    def optimize_request(
        self,
        expert_id: int,
        profile: Any,
        request_type: GenerationRequestType,
        urgency: Urgency = "medium",
    ) -> RequestRecommendation:
        self._roll_over()
        if self.daily_budget_usage > self.emergency_threshold:
            return RequestRecommendation(
                service="anthropic",
                model=CHEAP_LLM_MODEL,
                max_tokens=500,
                use_cache=True,
                estimated_cost=TOKEN_COSTS["anthropic"][CHEAP_LLM_MODEL] * 0.5,
                rationale="Emergency cost reduction: cheapest model with aggressive caching",
            )

        pattern = self.usage_patterns.get(expert_id)
        if pattern is not None:
            complexity = determine_complexity(profile, request_type, pattern)
            if complexity == "simple" and urgency == "low":
                return RequestRecommendation(
                    service="anthropic",
                    model=CHEAP_LLM_MODEL,
                    max_tokens=800,
                    use_cache=True,
                    estimated_cost=TOKEN_COSTS["anthropic"][CHEAP_LLM_MODEL] * 0.8,
                    rationale="Simple request with low urgency: cost-efficient model",
                )
            if complexity == "complex" or urgency == "high":
                return RequestRecommendation(
                    service="perplexity",
                    model=PREMIUM_SEARCH_MODEL,
                    max_tokens=1500,
                    use_cache=False,
                    estimated_cost=TOKEN_COSTS["perplexity"][PREMIUM_SEARCH_MODEL] * 1.5,
                    rationale="Complex request or high urgency: premium search model",
                )

        return RequestRecommendation(
            service="perplexity",
            model=BALANCED_SEARCH_MODEL,
            max_tokens=1000,
            use_cache=True,
            estimated_cost=TOKEN_COSTS["perplexity"][BALANCED_SEARCH_MODEL],
            rationale="Balanced approach: good quality at reasonable cost",
        )

    def update_usage_pattern(
        self,
        expert_id: int,
        profile: Any,
        actual_cost: float,
        response_quality: float,
    ) -> UsagePattern:
        """Record a completed request; quality is a 0-1 fraction."""
        self._roll_over()
        hour = self._now().hour
        pattern = self.usage_patterns.get(expert_id)
        if pattern is None:
            platforms = getattr(profile, "platforms", None) or []
            pattern = UsagePattern(
                expert_id=expert_id,
                requests_per_day=1,
                average_cost=actual_cost,
                daily_cost=actual_cost,
                peak_hours=[hour],
                preferred_platforms=[platforms[0] if platforms else "LinkedIn"],
                complexity_profile=infer_complexity(profile),
            )
            self.usage_patterns[expert_id] = pattern
        else:
            pattern.requests_per_day += 1
            pattern.daily_cost += actual_cost
            pattern.average_cost = pattern.daily_cost / pattern.requests_per_day
            if hour not in pattern.peak_hours:
                pattern.peak_hours.append(hour)
            if response_quality < 0.7 and pattern.complexity_profile == "simple":
                pattern.complexity_profile = "medium"
            elif response_quality > 0.9 and pattern.complexity_profile == "complex":
                pattern.complexity_profile = "medium"

        self.current_daily_cost += actual_cost
        self.current_monthly_cost += actual_cost
        return pattern

    def should_approve_request(self, estimated_cost: float, expert_id: int) -> ApprovalDecision:
        self._roll_over()
        projected_usage = (self.current_daily_cost + estimated_cost) / self.daily_budget

        if projected_usage > 1.0:
            return ApprovalDecision(
                approved=False,
                reason="Daily budget exceeded",
                alternatives=[
                    "Wait until the budget resets tomorrow",
                    "Use cached results if available",
                    "Switch to a cheaper model",
                ],
            )

        pattern = self.usage_patterns.get(expert_id)
        if pattern is not None and pattern.daily_cost + estimated_cost > self.per_expert_daily_limit:
            return ApprovalDecision(
                approved=False,
                reason="Per-expert cost limit exceeded",
                alternatives=[
                    "Use cached content for this expert",
                    "Reduce request frequency",
                    "Switch to simpler content generation",
                ],
            )

        if projected_usage > self.emergency_threshold:
            return ApprovalDecision(
                approved=True,
                reason="Approved with cost optimization",
                alternatives=[
                    "Using a cheaper model automatically",
                    "Enabling aggressive caching",
                    "Reducing token limits",
                ],
            )

        return ApprovalDecision(approved=True, reason="Within budget limits")

    def _total_requests(self) -> int:
        return sum(pattern.requests_per_day for pattern in self.usage_patterns.values())

    def cost_recommendations(self) -> list[str]:
        recommendations: list[str] = []
        if self.daily_budget_usage > STRATEGY_EMERGENCY_USAGE:
            recommendations.append("Consider switching to cheaper models for non-critical requests")
        if len(self.usage_patterns) > 10:
            recommendations.append("Add per-expert rate limiting to control costs")
        if self.current_daily_cost / max(self._total_requests(), 1) > 0.5:
            recommendations.append("Enable more aggressive caching to reduce API calls")
        return recommendations

    def cost_analytics(self) -> dict[str, Any]:
        self._roll_over()
        total_requests = self._total_requests()
        avg_cost_per_request = self.current_daily_cost / max(total_requests, 1)
        daily_projection = avg_cost_per_request * math.ceil(total_requests * PROJECTED_DAILY_GROWTH)

        exhaustion_date: str | None = None
        if daily_projection > self.daily_budget:
            days_remaining = self.monthly_budget / daily_projection
            exhaustion_date = (self._now() + timedelta(days=days_remaining)).isoformat()

        top_experts = sorted(
            (
                {
                    "expert_id": pattern.expert_id,
                    "cost": round(pattern.daily_cost, 4),
                    "requests": pattern.requests_per_day,
                }
                for pattern in self.usage_patterns.values()
            ),
            key=lambda item: item["cost"],
            reverse=True,
        )[:5]

        return {
            "current": {
                "daily": round(self.current_daily_cost, 4),
                "monthly": round(self.current_monthly_cost, 4),
                "per_expert": round(
                    self.current_daily_cost / max(len(self.usage_patterns), 1), 4
                ),
            },
            "projections": {
                "daily_at_current_rate": round(daily_projection, 4),
                "monthly_at_current_rate": round(daily_projection * 30, 4),
                "budget_exhaustion_date": exhaustion_date,
            },
            "budget": {
                "daily": self.daily_budget,
                "monthly": self.monthly_budget,
                "daily_usage": round(self.daily_budget_usage, 4),
            },
            "top_experts": top_experts,
            "recommendations": self.cost_recommendations(),
        }

    def optimization_strategies(self) -> list[OptimizationStrategy]:
        self._roll_over()
        daily = self.current_daily_cost
        strategies = [
            OptimizationStrategy(
                name="Intelligent Caching Enhancement",
                description="Increase cache TTL for stable content and invalidate more precisely",
                expected_savings=round(daily * 0.3, 4),
                impact_level="medium",
            ),
            OptimizationStrategy(
                name="Dynamic Model Selection",
                description="Use cheaper models for simple requests and premium models only when needed",
                expected_savings=round(daily * 0.25, 4),
                impact_level="low",
            ),
            OptimizationStrategy(
                name="Request Batching",
                description="Combine similar requests to reduce API overhead",
                expected_savings=round(daily * 0.2, 4),
                impact_level="high",
            ),
        ]
        if self.daily_budget_usage > STRATEGY_EMERGENCY_USAGE:
            strategies.append(
                OptimizationStrategy(
                    name="Emergency Cost Reduction",
                    description="Switch to the cheapest models and cache aggressively until the budget resets",
                    expected_savings=round(daily * 0.5, 4),
                    impact_level="high",
                )
            )
        return sorted(strategies, key=lambda strategy: strategy.expected_savings, reverse=True)

    def reset_daily_tracking(self) -> None:
        self.current_daily_cost = 0.0
        for pattern in self.usage_patterns.values():
            pattern.requests_per_day = 0
            pattern.daily_cost = 0.0
        logger.info("Daily cost tracking reset")

    def reset_monthly_tracking(self) -> None:
        self.current_monthly_cost = 0.0
        self.usage_patterns.clear()
        logger.info("Monthly cost tracking reset")


cost_optimizer = CostOptimizer()
