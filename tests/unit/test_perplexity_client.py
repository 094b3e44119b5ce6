"""Unit tests for the Perplexity search client."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from app.config import settings
from app.core.exceptions import APIKeyMissingError, ExternalAPIError, RateLimitExceededError
from app.integrations.perplexity import PerplexityClient, build_search_query
from app.services.rate_limiter import RequestRateLimiter


def _limiter() -> RequestRateLimiter:
    return RequestRateLimiter(max_requests_per_minute=100, min_interval_seconds=0)


def _install_fake_client(
    monkeypatch: pytest.MonkeyPatch,
    *,
    status_code: int = 200,
    payload: dict[str, Any] | None = None,
    error: Exception | None = None,
    json_error: Exception | None = None,
) -> dict[str, Any]:
    captured: dict[str, Any] = {}

    class FakeResponse:
        def __init__(self) -> None:
            self.status_code = status_code

        def raise_for_status(self) -> None:
            return None

        def json(self) -> dict[str, Any]:
            if json_error is not None:
                raise json_error
            return payload or {}

    class FakeAsyncClient:
        def __init__(self, *args: Any, **kwargs: Any) -> None:
            captured["init"] = kwargs

        async def post(self, url: str, json: dict[str, Any]) -> FakeResponse:
            captured["post"] = {"url": url, "json": json}
            if error is not None:
                raise error
            return FakeResponse()

        async def aclose(self) -> None:
            captured["closed"] = True

    monkeypatch.setattr("app.integrations.perplexity.httpx.AsyncClient", FakeAsyncClient)
    return captured


def test_build_search_query_adds_hints() -> None:
    assert build_search_query("  AI in retail ") == "AI in retail"
    assert build_search_query("AI in retail", recency="month", max_results=3) == (
        "AI in retail (focus on information from the last month). "
        "Limit to 3 most relevant results."
    )


@pytest.mark.asyncio
async def test_search_posts_payload_and_parses_citations(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _install_fake_client(
        monkeypatch,
        payload={
            "choices": [{"message": {"content": "Remote teams are growing."}}],
            "citations": ["https://hbr.org/remote", None, "https://mit.edu/study"],
            "usage": {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
        },
    )

    async with PerplexityClient(api_key="pk-test", rate_limiter=_limiter()) as client:
        result = await client.search("Leadership trends", recency="week", max_results=5)

    body = captured["post"]["json"]
    assert captured["post"]["url"].endswith("/chat/completions")
    assert captured["init"]["headers"]["Authorization"] == "Bearer pk-test"
    assert body["model"] == settings.perplexity_model
    assert body["search_recency_filter"] == "week"
    assert body["return_citations"] is True
    assert body["messages"][1]["content"] == (
        "Leadership trends (focus on information from the last week). "
        "Limit to 5 most relevant results."
    )
    assert "search_domain_filter" not in body
    assert captured["closed"] is True

    assert result.content == "Remote teams are growing."
    assert result.sources == ["https://hbr.org/remote", "https://mit.edu/study"]
    assert result.total_tokens == 30


@pytest.mark.asyncio
async def test_search_maps_429_to_rate_limit_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_client(monkeypatch, status_code=429)

    async with PerplexityClient(api_key="pk-test", rate_limiter=_limiter()) as client:
        with pytest.raises(RateLimitExceededError):
            await client.search("anything")


@pytest.mark.asyncio
async def test_search_wraps_transport_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_client(monkeypatch, error=httpx.ConnectError("connection refused"))

    async with PerplexityClient(api_key="pk-test", rate_limiter=_limiter()) as client:
        with pytest.raises(ExternalAPIError) as exc_info:
            await client.search("anything")

    assert "connection refused" in str(exc_info.value)


@pytest.mark.asyncio
async def test_search_rejects_response_without_choices(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_client(monkeypatch, payload={"choices": []})

    async with PerplexityClient(api_key="pk-test", rate_limiter=_limiter()) as client:
        with pytest.raises(ExternalAPIError):
            await client.search("anything")


@pytest.mark.asyncio
async def test_search_wraps_invalid_json_body(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_client(monkeypatch, json_error=ValueError("Expecting value: line 1 column 1"))

    async with PerplexityClient(api_key="pk-test", rate_limiter=_limiter()) as client:
        with pytest.raises(ExternalAPIError) as exc_info:
            await client.search("anything")

    assert "Invalid JSON response" in str(exc_info.value)


def test_client_requires_api_key_from_settings() -> None:
    """Missing search key raises at client construction time."""
    original_key = settings.perplexity_api_key
    try:
        settings.perplexity_api_key = None
        with pytest.raises(APIKeyMissingError):
            PerplexityClient(rate_limiter=_limiter())
    finally:
        settings.perplexity_api_key = original_key
