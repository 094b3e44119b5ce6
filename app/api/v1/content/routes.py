"""Content idea and scheduled content API endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select

from app.api.v1.content.constants import (
    CONTENT_IDEA_NOT_FOUND_DETAIL,
    SCHEDULED_CONTENT_NOT_FOUND_DETAIL,
)
from app.api.v1.dependencies import ensure_expert_access, get_expert_topic
from app.dependencies import CurrentExpert, DbSession
from app.models.content import ContentIdea, ScheduledContent
from app.models.topic import Topic
from app.schemas.content import (
    ContentIdeaCreate,
    ContentIdeaResponse,
    ContentIdeaUpdate,
    ScheduledContentCreate,
    ScheduledContentResponse,
    ScheduledContentUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_expert_idea(expert_id: int, idea_id: int, session: DbSession) -> ContentIdea:
    result = await session.execute(
        select(ContentIdea)
        .join(Topic, Topic.id == ContentIdea.topic_id)
        .where(ContentIdea.id == idea_id, Topic.expert_id == expert_id)
    )
    idea = result.scalar_one_or_none()

    if idea is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=CONTENT_IDEA_NOT_FOUND_DETAIL,
        )

    return idea


@router.get("/{expert_id}/topics/{topic_id}/ideas", response_model=list[ContentIdeaResponse])
async def list_content_ideas(
    expert_id: int,
    topic_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
    platform: str | None = Query(None),
) -> list[ContentIdea]:
    """List content ideas of a topic, optionally for one platform."""
    await get_expert_topic(expert_id, topic_id, current_expert, session)

    query = select(ContentIdea).where(ContentIdea.topic_id == topic_id)
    if platform:
        query = query.where(ContentIdea.platform == platform)

    result = await session.execute(query.order_by(ContentIdea.created_at.desc(), ContentIdea.id.desc()))
    return list(result.scalars().all())


@router.post(
    "/{expert_id}/topics/{topic_id}/ideas",
    response_model=ContentIdeaResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_content_idea(
    expert_id: int,
    topic_id: int,
    idea_data: ContentIdeaCreate,
    current_expert: CurrentExpert,
    session: DbSession,
) -> ContentIdea:
    """Create a content idea by hand."""
    topic = await get_expert_topic(expert_id, topic_id, current_expert, session)

    idea = ContentIdea(topic_id=topic.id, **idea_data.model_dump())
    session.add(idea)
    await session.flush()
    await session.refresh(idea)

    return idea


@router.get("/{expert_id}/ideas/{idea_id}", response_model=ContentIdeaResponse)
async def get_content_idea(
    expert_id: int,
    idea_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
) -> ContentIdea:
    """Get a content idea."""
    ensure_expert_access(expert_id, current_expert)
    return await _get_expert_idea(expert_id, idea_id, session)


@router.patch("/{expert_id}/ideas/{idea_id}", response_model=ContentIdeaResponse)
async def update_content_idea(
    expert_id: int,
    idea_id: int,
    idea_data: ContentIdeaUpdate,
    current_expert: CurrentExpert,
    session: DbSession,
) -> ContentIdea:
    """Update a content idea, e.g. to save it."""
    ensure_expert_access(expert_id, current_expert)
    idea = await _get_expert_idea(expert_id, idea_id, session)

    for field, value in idea_data.model_dump(exclude_unset=True).items():
        setattr(idea, field, value)

    await session.flush()
    await session.refresh(idea)

    return idea


@router.get("/{expert_id}/scheduled", response_model=list[ScheduledContentResponse])
async def list_scheduled_content(
    expert_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
    status_filter: str | None = Query(None, alias="status"),
) -> list[ScheduledContent]:
    """List the expert's scheduled content by date."""
    ensure_expert_access(expert_id, current_expert)

    query = select(ScheduledContent).where(ScheduledContent.expert_id == expert_id)
    if status_filter:
        query = query.where(ScheduledContent.status == status_filter)

    result = await session.execute(
        query.order_by(ScheduledContent.scheduled_date.asc().nulls_last(), ScheduledContent.id.asc())
    )
    return list(result.scalars().all())


@router.post(
    "/{expert_id}/scheduled",
    response_model=ScheduledContentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_scheduled_content(
    expert_id: int,
    item_data: ScheduledContentCreate,
    current_expert: CurrentExpert,
    session: DbSession,
) -> ScheduledContent:
    """Schedule content for a topic; new items start as drafts."""
    await get_expert_topic(expert_id, item_data.topic_id, current_expert, session)

    item = ScheduledContent(expert_id=expert_id, status="draft", **item_data.model_dump())
    session.add(item)
    await session.flush()
    await session.refresh(item)

    logger.info(
        "Content scheduled",
        extra={"expert_id": expert_id, "topic_id": item.topic_id, "platform": item.platform},
    )

    return item


@router.patch("/{expert_id}/scheduled/{item_id}", response_model=ScheduledContentResponse)
async def update_scheduled_content(
    expert_id: int,
    item_id: int,
    item_data: ScheduledContentUpdate,
    current_expert: CurrentExpert,
    session: DbSession,
) -> ScheduledContent:
    """Update a scheduled content item."""
    ensure_expert_access(expert_id, current_expert)

    result = await session.execute(
        select(ScheduledContent).where(
            ScheduledContent.id == item_id,
            ScheduledContent.expert_id == expert_id,
        )
    )
    item = result.scalar_one_or_none()

    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=SCHEDULED_CONTENT_NOT_FOUND_DETAIL,
        )

    for field, value in item_data.model_dump(exclude_unset=True).items():
        setattr(item, field, value)

    await session.flush()
    await session.refresh(item)

    return item
