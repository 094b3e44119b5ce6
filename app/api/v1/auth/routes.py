"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from app.api.v1.auth.constants import (
    EXPERT_UNAVAILABLE_DETAIL,
    INACTIVE_EXPERT_DETAIL,
    INVALID_CREDENTIALS_DETAIL,
    INVALID_REFRESH_TOKEN_DETAIL,
    USERNAME_TAKEN_DETAIL,
)
from app.core.exceptions import InvalidTokenError
from app.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_refresh_token,
)
from app.dependencies import CurrentExpert, DbSession
from app.models.expert import Expert
from app.schemas.auth import ExpertLogin, ExpertRegister, Token, TokenRefresh
from app.schemas.expert import ExpertResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_tokens(expert: Expert) -> Token:
    return Token(
        access_token=create_access_token(subject=str(expert.id)),
        refresh_token=create_refresh_token(subject=str(expert.id)),
    )


@router.post("/register", response_model=ExpertResponse, status_code=status.HTTP_201_CREATED)
async def register(expert_data: ExpertRegister, session: DbSession) -> Expert:
    """Register a new expert account."""
    logger.info("Expert registration attempt", extra={"username": expert_data.username})

    result = await session.execute(select(Expert).where(Expert.username == expert_data.username))
    if result.scalar_one_or_none() is not None:
        logger.warning(
            "Registration failed: username exists",
            extra={"username": expert_data.username},
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=USERNAME_TAKEN_DETAIL,
        )

    expert = Expert(
        username=expert_data.username,
        hashed_password=get_password_hash(expert_data.password),
        name=expert_data.name,
        role=expert_data.role,
    )
    session.add(expert)
    await session.flush()
    await session.refresh(expert)

    logger.info("Expert registered", extra={"expert_id": expert.id, "username": expert.username})

    return expert


@router.post("/login", response_model=Token)
async def login(credentials: ExpertLogin, session: DbSession) -> Token:
    """Login and get access/refresh tokens."""
    logger.info("Login attempt", extra={"username": credentials.username})

    result = await session.execute(select(Expert).where(Expert.username == credentials.username))
    expert = result.scalar_one_or_none()

    if not expert or not verify_password(credentials.password, expert.hashed_password):
        logger.warning("Login failed: invalid credentials", extra={"username": credentials.username})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not expert.is_active:
        logger.warning("Login failed: inactive expert", extra={"username": credentials.username})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=INACTIVE_EXPERT_DETAIL,
        )

    logger.info("Login successful", extra={"expert_id": expert.id})

    return _issue_tokens(expert)


@router.post("/refresh", response_model=Token)
async def refresh_token(token_data: TokenRefresh, session: DbSession) -> Token:
    """Refresh access token using refresh token."""
    try:
        expert_id = int(verify_refresh_token(token_data.refresh_token))
    except (InvalidTokenError, ValueError) as exc:
        logger.warning("Token refresh failed: invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_REFRESH_TOKEN_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    result = await session.execute(select(Expert).where(Expert.id == expert_id))
    expert = result.scalar_one_or_none()

    if not expert or not expert.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=EXPERT_UNAVAILABLE_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _issue_tokens(expert)


@router.get("/me", response_model=ExpertResponse)
async def get_current_expert_info(current_expert: CurrentExpert) -> Expert:
    """Get current expert information."""
    return current_expert
