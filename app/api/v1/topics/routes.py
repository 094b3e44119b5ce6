"""Topics API endpoints."""

import logging

from fastapi import APIRouter, Query, status
from sqlalchemy import func, select

from app.api.v1.dependencies import ensure_expert_access, get_expert_topic
from app.api.v1.topics.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.dependencies import CurrentExpert, DbSession
from app.models.topic import Topic, Viewpoint
from app.schemas.topic import (
    TopicCreate,
    TopicDetailResponse,
    TopicListResponse,
    TopicResponse,
    TopicUpdate,
    ViewpointCreate,
    ViewpointResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{expert_id}", response_model=TopicListResponse)
async def list_topics(
    expert_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
    page: int = Query(DEFAULT_PAGE, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    recommended_only: bool = Query(False),
) -> TopicListResponse:
    """List an expert's topics, newest first."""
    ensure_expert_access(expert_id, current_expert)

    filters = [Topic.expert_id == expert_id]
    if recommended_only:
        filters.append(Topic.is_recommended.is_(True))

    total = await session.scalar(select(func.count()).select_from(Topic).where(*filters)) or 0

    offset = (page - 1) * page_size
    result = await session.execute(
        select(Topic)
        .where(*filters)
        .order_by(Topic.created_at.desc(), Topic.id.desc())
        .offset(offset)
        .limit(page_size)
    )
    topics = result.scalars().all()

    return TopicListResponse(
        items=[TopicResponse.model_validate(topic) for topic in topics],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("/{expert_id}", response_model=TopicResponse, status_code=status.HTTP_201_CREATED)
async def create_topic(
    expert_id: int,
    topic_data: TopicCreate,
    current_expert: CurrentExpert,
    session: DbSession,
) -> Topic:
    """Create a topic by hand."""
    ensure_expert_access(expert_id, current_expert)

    topic = Topic(expert_id=expert_id, generation_source="manual", **topic_data.model_dump())
    session.add(topic)
    await session.flush()
    await session.refresh(topic)

    logger.info("Topic created", extra={"expert_id": expert_id, "topic_id": topic.id})

    return topic


@router.get("/{expert_id}/{topic_id}", response_model=TopicDetailResponse)
async def get_topic(
    expert_id: int,
    topic_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
) -> Topic:
    """Get a topic with its viewpoints."""
    return await get_expert_topic(expert_id, topic_id, current_expert, session)


@router.patch("/{expert_id}/{topic_id}", response_model=TopicResponse)
async def update_topic(
    expert_id: int,
    topic_id: int,
    topic_data: TopicUpdate,
    current_expert: CurrentExpert,
    session: DbSession,
) -> Topic:
    """Update a topic."""
    topic = await get_expert_topic(expert_id, topic_id, current_expert, session)

    for field, value in topic_data.model_dump(exclude_unset=True).items():
        setattr(topic, field, value)

    await session.flush()
    await session.refresh(topic)

    return topic


@router.delete("/{expert_id}/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_topic(
    expert_id: int,
    topic_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
) -> None:
    """Delete a topic together with its viewpoints, ideas and scheduled content."""
    topic = await get_expert_topic(expert_id, topic_id, current_expert, session)

    await session.delete(topic)
    await session.flush()

    logger.info("Topic deleted", extra={"expert_id": expert_id, "topic_id": topic_id})


@router.get("/{expert_id}/{topic_id}/viewpoints", response_model=list[ViewpointResponse])
async def list_viewpoints(
    expert_id: int,
    topic_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
) -> list[Viewpoint]:
    """List viewpoints of a topic."""
    topic = await get_expert_topic(expert_id, topic_id, current_expert, session)
    return list(topic.viewpoints)


@router.post(
    "/{expert_id}/{topic_id}/viewpoints",
    response_model=ViewpointResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_viewpoint(
    expert_id: int,
    topic_id: int,
    viewpoint_data: ViewpointCreate,
    current_expert: CurrentExpert,
    session: DbSession,
) -> Viewpoint:
    """Add a viewpoint to a topic."""
    topic = await get_expert_topic(expert_id, topic_id, current_expert, session)

    viewpoint = Viewpoint(topic_id=topic.id, **viewpoint_data.model_dump())
    session.add(viewpoint)
    await session.flush()
    await session.refresh(viewpoint)

    return viewpoint
