"""Expert and expert profile API endpoints."""

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from app.api.v1.dependencies import ensure_expert_access, get_expert_profile
from app.api.v1.experts.constants import PROFILE_EXISTS_DETAIL
from app.dependencies import CurrentExpert, DbSession
from app.models.expert import Expert, ExpertProfile
from app.schemas.expert import (
    ExpertProfileCreate,
    ExpertProfileResponse,
    ExpertProfileUpdate,
    ExpertResponse,
    ExpertUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{expert_id}", response_model=ExpertResponse)
async def get_expert(expert_id: int, current_expert: CurrentExpert) -> Expert:
    """Get an expert account."""
    return ensure_expert_access(expert_id, current_expert)


@router.patch("/{expert_id}", response_model=ExpertResponse)
async def update_expert(
    expert_id: int,
    expert_data: ExpertUpdate,
    current_expert: CurrentExpert,
    session: DbSession,
) -> Expert:
    """Update an expert account."""
    expert = ensure_expert_access(expert_id, current_expert)

    for field, value in expert_data.model_dump(exclude_unset=True).items():
        setattr(expert, field, value)

    await session.flush()
    await session.refresh(expert)

    logger.info("Expert updated", extra={"expert_id": expert.id})

    return expert


@router.post(
    "/{expert_id}/profile",
    response_model=ExpertProfileResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_profile(
    expert_id: int,
    profile_data: ExpertProfileCreate,
    current_expert: CurrentExpert,
    session: DbSession,
) -> ExpertProfile:
    """Create the expert's profile and mark the account profile-complete."""
    expert = ensure_expert_access(expert_id, current_expert)

    existing = await session.execute(
        select(ExpertProfile.id).where(ExpertProfile.expert_id == expert_id)
    )
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=PROFILE_EXISTS_DETAIL,
        )

    profile = ExpertProfile(expert_id=expert_id, **profile_data.model_dump(mode="json"))
    session.add(profile)
    expert.profile_complete = True
    await session.flush()
    await session.refresh(profile)

    logger.info(
        "Expert profile created",
        extra={"expert_id": expert_id, "primary_expertise": profile.primary_expertise},
    )

    return profile


@router.get("/{expert_id}/profile", response_model=ExpertProfileResponse)
async def get_profile(
    expert_id: int,
    current_expert: CurrentExpert,
    session: DbSession,
) -> ExpertProfile:
    """Get the expert's profile."""
    return await get_expert_profile(expert_id, current_expert, session)


@router.patch("/{expert_id}/profile", response_model=ExpertProfileResponse)
async def update_profile(
    expert_id: int,
    profile_data: ExpertProfileUpdate,
    current_expert: CurrentExpert,
    session: DbSession,
) -> ExpertProfile:
    """Update the expert's profile."""
    profile = await get_expert_profile(expert_id, current_expert, session)

    for field, value in profile_data.model_dump(mode="json", exclude_unset=True).items():
        setattr(profile, field, value)

    await session.flush()
    await session.refresh(profile)

    logger.info("Expert profile updated", extra={"expert_id": expert_id})

    return profile
