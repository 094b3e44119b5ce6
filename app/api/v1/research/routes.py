"""Research API endpoints."""

import logging
from datetime import datetime, timezone
from typing import Any, Literal

from fastapi import APIRouter, Query

from app.api.v1.dependencies import (
    SearchClientDep,
    SourceValidatorDep,
    ensure_expert_access,
    get_expert_profile,
    raise_service_error,
)
from app.api.v1.research.constants import (
    BUSY_EXPERT_ENTRIES,
    DEFAULT_HISTORY_LIMIT,
    HIGH_HIT_RATE_PERCENT,
    HISTORY_PREVIEW_CHARS,
    HISTORY_PREVIEW_SOURCES,
    LOW_AVERAGE_QUALITY,
    LOW_HIT_RATE_PERCENT,
    MAX_HISTORY_LIMIT,
)
from app.core.exceptions import APIKeyMissingError, ExpertPlannerError
from app.dependencies import CurrentExpert, DbSession
from app.integrations.perplexity import PerplexityClient
from app.schemas.research import (
    ResearchAnalyticsResponse,
    ResearchCleanupResponse,
    ResearchHistoryItem,
    ResearchHistoryResponse,
)
from app.services.expert_research import ExpertResearchService
from app.services.reliability import system_status
from app.services.research_cache import ResearchCacheService, ResearchCacheStats
from app.services.smart_research import SmartResearchService

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_search_client(client: PerplexityClient | None) -> PerplexityClient:
    if client is None:
        raise_service_error(APIKeyMissingError(PerplexityClient.API_NAME), "research")
    return client


def research_recommendations(stats: ResearchCacheStats) -> list[str]:
    recommendations: list[str] = []
    if stats.hit_rate < LOW_HIT_RATE_PERCENT:
        recommendations.append("Consider broader keyword strategies to improve research reuse")
    if stats.average_quality < LOW_AVERAGE_QUALITY:
        recommendations.append("Focus on higher-authority sources to improve research quality")
    if stats.total_entries > BUSY_EXPERT_ENTRIES and stats.hit_rate > HIGH_HIT_RATE_PERCENT:
        recommendations.append("Excellent cache efficiency: the research strategy is well optimized")
    if not recommendations:
        recommendations.append("Research performance is optimized, continue the current strategy")
    return recommendations


@router.get("/{expert_id}/comprehensive")
async def comprehensive_research(
    expert_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
    search_client: SearchClientDep,
    validator: SourceValidatorDep,
    recency: Literal["day", "week", "month"] = Query("week"),
) -> dict[str, Any]:
    """Multi-angle research synthesized into one briefing."""
    profile = await get_expert_profile(expert_id, current_expert, session)
    client = _require_search_client(search_client)

    service = SmartResearchService(client, validator, cache=ResearchCacheService(session))
    try:
        research = await service.generate(expert_id, profile, recency=recency)
    except ExpertPlannerError as exc:
        raise_service_error(exc, "comprehensive_research")

    system_status.update("perplexity", status="healthy", last_error=None)
    return research.to_dict()


@router.get("/{expert_id}/expert")
async def expert_research(
    expert_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
    search_client: SearchClientDep,
    validator: SourceValidatorDep,
) -> dict[str, Any]:
    """Single deep research query for the expert, cached for 24 hours."""
    profile = await get_expert_profile(expert_id, current_expert, session)
    client = _require_search_client(search_client)

    service = ExpertResearchService(client, validator, ResearchCacheService(session))
    try:
        research = await service.conduct(expert_id, profile)
    except ExpertPlannerError as exc:
        raise_service_error(exc, "expert_research")

    system_status.update("perplexity", status="healthy", last_error=None)
    return research.to_dict()


@router.get("/{expert_id}/history", response_model=ResearchHistoryResponse)
async def research_history(
    expert_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=MAX_HISTORY_LIMIT),
) -> ResearchHistoryResponse:
    """Recent cached research with content previews."""
    ensure_expert_access(expert_id, current_expert)

    entries = await ResearchCacheService(session).history(expert_id, limit=limit)
    items = [
        ResearchHistoryItem(
            id=entry.id,
            search_query=entry.search_query,
            content_preview=(
                entry.content[:HISTORY_PREVIEW_CHARS] + "..."
                if len(entry.content) > HISTORY_PREVIEW_CHARS
                else entry.content
            ),
            sources=entry.sources[:HISTORY_PREVIEW_SOURCES],
            quality_score=entry.quality_score,
            usage_count=entry.usage_count,
            created_at=entry.created_at,
            expires_at=entry.expires_at,
            is_expired=entry.is_expired,
        )
        for entry in entries
    ]
    return ResearchHistoryResponse(expert_id=expert_id, items=items)


@router.get("/{expert_id}/analytics", response_model=ResearchAnalyticsResponse)
async def research_analytics(
    expert_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
) -> ResearchAnalyticsResponse:
    """Research cache statistics and recommendations for the expert."""
    ensure_expert_access(expert_id, current_expert)

    stats = await ResearchCacheService(session).stats(expert_id)
    return ResearchAnalyticsResponse(
        expert_id=expert_id,
        cache=stats.to_dict(),
        recommendations=research_recommendations(stats),
    )


@router.post("/cleanup", response_model=ResearchCleanupResponse)
async def cleanup_research(
    current_expert: CurrentExpert,
    session: DbSession,
) -> ResearchCleanupResponse:
    """Invalidate expired research entries."""
    cleaned = await ResearchCacheService(session).cleanup_expired()
    logger.info(
        "Research cleanup requested",
        extra={"expert_id": current_expert.id, "cleaned": cleaned},
    )
    return ResearchCleanupResponse(
        message="Research cleanup completed",
        cleaned_entries=cleaned,
        timestamp=datetime.now(timezone.utc),
    )
