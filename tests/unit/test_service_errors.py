"""Unit tests for mapping service exceptions to HTTP errors."""

import pytest
from fastapi import HTTPException

from app.api.v1.dependencies import ensure_expert_access, raise_service_error
from app.core.exceptions import (
    APIKeyMissingError,
    BudgetExceededError,
    ExternalAPIError,
    FallbackExhaustedError,
    RateLimitExceededError,
    ValidationError,
)
from app.services.reliability import system_status


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (APIKeyMissingError("Perplexity"), 503),
        (RateLimitExceededError("Perplexity"), 429),
        (ExternalAPIError("Perplexity", "bad gateway"), 502),
        (BudgetExceededError("Daily budget exceeded"), 402),
        (FallbackExhaustedError("topics", "a", "b"), 502),
        (ValidationError("bad input"), 500),
    ],
)
def test_status_codes(error: Exception, status_code: int) -> None:
    with pytest.raises(HTTPException) as exc_info:
        raise_service_error(error, "test")

    assert exc_info.value.status_code == status_code


def test_missing_key_marks_search_offline_and_flags_detail() -> None:
    with pytest.raises(HTTPException) as exc_info:
        raise_service_error(APIKeyMissingError("Perplexity"), "research")

    detail = exc_info.value.detail
    assert detail["requires_api_key"] is True
    assert detail["error_state"]["type"] == "api_key_missing"
    assert system_status.services["perplexity"].status == "offline"

    system_status.update("perplexity", status="healthy", last_error=None)


def test_expert_access_is_limited_to_self() -> None:
    class _Expert:
        id = 3

    expert = _Expert()

    assert ensure_expert_access(3, expert) is expert  # type: ignore[arg-type]
    with pytest.raises(HTTPException) as exc_info:
        ensure_expert_access(4, expert)  # type: ignore[arg-type]
    assert exc_info.value.status_code == 404
