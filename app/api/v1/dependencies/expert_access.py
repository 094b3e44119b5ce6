"""Shared dependencies for expert-scoped access checks."""

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.dependencies import CurrentExpert, DbSession
from app.models.expert import Expert, ExpertProfile
from app.models.topic import Topic

EXPERT_NOT_FOUND_DETAIL = "Expert not found"
PROFILE_NOT_FOUND_DETAIL = "Expert profile not found"
TOPIC_NOT_FOUND_DETAIL = "Topic not found"


def ensure_expert_access(expert_id: int, current_expert: CurrentExpert) -> Expert:
    """Return the current expert only when the path refers to them."""
    if current_expert.id != expert_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=EXPERT_NOT_FOUND_DETAIL,
        )
    return current_expert


async def get_expert_profile(
    expert_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
) -> ExpertProfile:
    """Return the profile of the current expert, 404 when none exists."""
    ensure_expert_access(expert_id, current_expert)
    result = await session.execute(
        select(ExpertProfile).where(ExpertProfile.expert_id == expert_id)
    )
    profile = result.scalar_one_or_none()

    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=PROFILE_NOT_FOUND_DETAIL,
        )

    return profile


async def get_expert_topic(
    expert_id: int,
    topic_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
) -> Topic:
    """Return a topic with its viewpoints only when it belongs to the current expert."""
    ensure_expert_access(expert_id, current_expert)
    result = await session.execute(
        select(Topic)
        .where(Topic.id == topic_id, Topic.expert_id == expert_id)
        .options(selectinload(Topic.viewpoints))
    )
    topic = result.scalar_one_or_none()

    if topic is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=TOPIC_NOT_FOUND_DETAIL,
        )

    return topic
