"""Monitoring and cost analytics API endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, status

from app.api.v1.dependencies import SourceValidatorDep, get_expert_profile
from app.config import settings
from app.dependencies import CurrentExpert, DbSession
from app.schemas.monitoring import (
    OptimizeRequestBody,
    ResolveAlertRequest,
    ResolveAlertResponse,
)
from app.services.cost_optimizer import cost_optimizer
from app.services.fallback_system import fallback_system
from app.services.monitoring import monitoring_service
from app.services.rate_limiter import get_search_rate_limiter
from app.services.reliability import system_status
from app.services.research_cache import ResearchCacheService

logger = logging.getLogger(__name__)

router = APIRouter()

ALERT_NOT_FOUND_DETAIL = "Alert not found"


@router.get("/dashboard")
async def dashboard(current_expert: CurrentExpert) -> dict[str, Any]:
    """Full monitoring snapshot with recommendations."""
    return {
        **monitoring_service.dashboard(),
        "recommendations": monitoring_service.recommendations(),
    }


@router.get("/quality-metrics")
async def quality_metrics(current_expert: CurrentExpert) -> dict[str, Any]:
    return {
        "quality": monitoring_service.quality_metrics(),
        "citations": monitoring_service.citation_metrics(),
    }


@router.get("/performance")
async def performance(current_expert: CurrentExpert) -> dict[str, Any]:
    return {
        "performance": monitoring_service.performance_metrics(),
        "health_score": monitoring_service.health_score(),
        "recommendations": monitoring_service.recommendations(),
    }


@router.get("/cost-analytics")
async def cost_analytics(current_expert: CurrentExpert) -> dict[str, Any]:
    return {
        **cost_optimizer.cost_analytics(),
        "tracked_costs": monitoring_service.cost_metrics(),
        "strategies": [strategy.to_dict() for strategy in cost_optimizer.optimization_strategies()],
    }


@router.get("/fallback-status")
async def fallback_status(current_expert: CurrentExpert) -> dict[str, Any]:
    return fallback_system.stats()


@router.get("/system-health")
async def system_health(current_expert: CurrentExpert) -> dict[str, Any]:
    """Dependency health, search quota and the aggregate health score."""
    return {
        **system_status.snapshot(),
        "health_score": monitoring_service.health_score(),
        "search_api_configured": settings.perplexity_enabled,
        "search_rate_limit": get_search_rate_limiter().status(),
        "active_alerts": [alert.to_dict() for alert in monitoring_service.active_alerts()],
    }


@router.get("/cache-performance")
async def cache_performance(
    current_expert: CurrentExpert,
    session: DbSession,
    validator: SourceValidatorDep,
) -> dict[str, Any]:
    """Research cache and source validation cache statistics."""
    research_stats = await ResearchCacheService(session).stats()
    monitoring_service.track_cache_performance(research_stats.hit_rate / 100)
    return {
        "research_cache": research_stats.to_dict(),
        "source_validation_cache": validator.cache_stats(),
    }


@router.post("/optimize-request")
async def optimize_request(
    body: OptimizeRequestBody,
    current_expert: CurrentExpert,
    session: DbSession,
) -> dict[str, Any]:
    """Recommend a model and caching strategy for the expert's next request."""
    profile = await get_expert_profile(current_expert.id, current_expert, session)
    recommendation = cost_optimizer.optimize_request(
        current_expert.id,
        profile,
        body.request_type,
        body.urgency,
    )
    approval = cost_optimizer.should_approve_request(
        recommendation.estimated_cost, current_expert.id
    )
    return {
        "recommendation": recommendation.to_dict(),
        "approval": approval.to_dict(),
    }


@router.post("/resolve-alert", response_model=ResolveAlertResponse)
async def resolve_alert(
    body: ResolveAlertRequest,
    current_expert: CurrentExpert,
) -> ResolveAlertResponse:
    if not monitoring_service.resolve_alert(body.alert_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ALERT_NOT_FOUND_DETAIL,
        )

    logger.info(
        "Alert resolved",
        extra={"alert_id": body.alert_id, "expert_id": current_expert.id},
    )
    return ResolveAlertResponse(alert_id=body.alert_id, resolved=True)
