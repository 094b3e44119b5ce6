"""Translate service exceptions into HTTP errors."""

import logging
from typing import NoReturn

from fastapi import HTTPException, status

from app.core.exceptions import (
    APIKeyMissingError,
    BudgetExceededError,
    ExpertPlannerError,
    ExternalAPIError,
    GenerationError,
    RateLimitExceededError,
)
from app.services.reliability import create_error_state, system_status

logger = logging.getLogger(__name__)


def _status_for(error: ExpertPlannerError) -> int:
    if isinstance(error, APIKeyMissingError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(error, RateLimitExceededError):
        return status.HTTP_429_TOO_MANY_REQUESTS
    if isinstance(error, ExternalAPIError):
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(error, BudgetExceededError):
        return status.HTTP_402_PAYMENT_REQUIRED
    if isinstance(error, GenerationError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def raise_service_error(error: ExpertPlannerError, context: str) -> NoReturn:
    """Raise an HTTPException carrying the user-facing error state."""
    error_state = create_error_state(error, context)
    status_code = _status_for(error)

    if isinstance(error, ExternalAPIError):
        system_status.update(
            "perplexity",
            status="offline" if isinstance(error, APIKeyMissingError) else "degraded",
            last_error=error.message,
        )

    logger.warning(
        "Service error",
        extra={"context": context, "status_code": status_code, "error": error.message},
    )
    raise HTTPException(
        status_code=status_code,
        detail={
            "message": error.message,
            "requires_api_key": isinstance(error, APIKeyMissingError),
            "error_state": error_state.to_dict(),
        },
    )
