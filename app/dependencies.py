"""FastAPI dependencies shared by all routes."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.exceptions import InvalidTokenError
from app.core.security import verify_access_token
from app.models.expert import Expert

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_session)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_expert(
    session: DbSession,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Expert:
    """Resolve the expert behind the bearer access token."""
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        subject = verify_access_token(credentials.credentials)
        expert_id = int(subject)
    except (InvalidTokenError, ValueError) as exc:
        raise _unauthorized("Invalid or expired token") from exc

    result = await session.execute(select(Expert).where(Expert.id == expert_id))
    expert = result.scalar_one_or_none()
    if expert is None or not expert.is_active:
        logger.warning("Token for unknown or inactive expert", extra={"expert_id": expert_id})
        raise _unauthorized("Expert not found or deactivated")

    return expert


CurrentExpert = Annotated[Expert, Depends(get_current_expert)]
