"""Topic and content idea generation API endpoints."""

import logging

from fastapi import APIRouter, status

from app.api.v1.dependencies import (
    SearchClientDep,
    SourceValidatorDep,
    get_expert_profile,
    get_expert_topic,
    raise_service_error,
)
from app.core.exceptions import ExpertPlannerError
from app.dependencies import CurrentExpert, DbSession
from app.schemas.content import ContentIdeaResponse
from app.schemas.generation import (
    ContentIdeaGenerationRequest,
    ContentIdeaGenerationResponse,
    TopicGenerationRequest,
    TopicGenerationResponse,
)
from app.schemas.topic import TopicDetailResponse
from app.services.content_generation import ContentGenerationService
from app.services.reliability import system_status

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/{expert_id}/topics",
    response_model=TopicGenerationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_topics(
    expert_id: int,
    request: TopicGenerationRequest,
    current_expert: CurrentExpert,
    session: DbSession,
    search_client: SearchClientDep,
    validator: SourceValidatorDep,
) -> TopicGenerationResponse:
    """Generate and store research-grounded topics for the expert."""
    profile = await get_expert_profile(expert_id, current_expert, session)
    service = ContentGenerationService(session, search_client=search_client, validator=validator)

    try:
        result = await service.generate_topics(expert_id, profile, count=request.count)
    except ExpertPlannerError as exc:
        system_status.update("anthropic", status="degraded", last_error=exc.message)
        raise_service_error(exc, "topic_generation")

    system_status.update("anthropic", status="healthy", last_error=None)
    return TopicGenerationResponse(
        topics=[TopicDetailResponse.model_validate(topic) for topic in result.topics],
        source=result.source,
        fallback_used=result.fallback_used,
        fallback_reason=result.fallback_reason,
        quality_score=result.quality_score,
        reliability=result.reliability,
        research_quality=result.research.quality_score if result.research else None,
        research_cached=result.research.cached if result.research else False,
        skipped_duplicates=result.skipped_duplicates,
    )


@router.post(
    "/{expert_id}/content-ideas",
    response_model=ContentIdeaGenerationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_content_ideas(
    expert_id: int,
    request: ContentIdeaGenerationRequest,
    current_expert: CurrentExpert,
    session: DbSession,
    search_client: SearchClientDep,
    validator: SourceValidatorDep,
) -> ContentIdeaGenerationResponse:
    """Generate and store content ideas for one topic on one platform."""
    profile = await get_expert_profile(expert_id, current_expert, session)
    topic = await get_expert_topic(expert_id, request.topic_id, current_expert, session)
    service = ContentGenerationService(session, search_client=search_client, validator=validator)

    try:
        result = await service.generate_content_ideas(expert_id, profile, topic, request.platform)
    except ExpertPlannerError as exc:
        system_status.update("anthropic", status="degraded", last_error=exc.message)
        raise_service_error(exc, "content_idea_generation")

    system_status.update("anthropic", status="healthy", last_error=None)
    return ContentIdeaGenerationResponse(
        ideas=[ContentIdeaResponse.model_validate(idea) for idea in result.ideas],
        research_used=result.research_used,
        allowed_sources=result.allowed_sources,
        dropped_sources=result.dropped_sources,
    )
