"""Perplexity search API integration.

Thin wrapper over the chat completions endpoint used for web-grounded
market research. Citations returned by the API are surfaced as sources.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx

from app.config import settings
from app.core.exceptions import APIKeyMissingError, ExternalAPIError, RateLimitExceededError
from app.services.rate_limiter import RequestRateLimiter, get_search_rate_limiter

logger = logging.getLogger(__name__)

Recency = Literal["hour", "day", "week", "month", "year"]

SYSTEM_PROMPT = (
    "You are a research assistant. Provide accurate, well-sourced information "
    "with citations. Focus on recent developments and authoritative sources."
)


@dataclass(slots=True)
class SearchResult:
    """Search response content with its cited sources."""

    content: str
    sources: list[str] = field(default_factory=list)
    usage: dict[str, int] = field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        return int(self.usage.get("total_tokens", 0))


def build_search_query(
    query: str,
    *,
    recency: Recency | None = None,
    max_results: int | None = None,
) -> str:
    """Decorate a query with recency and result-count hints."""
    decorated = query.strip()
    if recency:
        decorated = f"{decorated} (focus on information from the last {recency})"
    if max_results:
        decorated = f"{decorated}. Limit to {max_results} most relevant results."
    return decorated


class PerplexityClient:
    """Client for the Perplexity chat completions API."""

    API_NAME = "Perplexity"

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        rate_limiter: RequestRateLimiter | None = None,
    ) -> None:
        self.api_key = api_key or settings.perplexity_api_key
        self.timeout = timeout or settings.perplexity_timeout_seconds
        self.rate_limiter = rate_limiter or get_search_rate_limiter()
        self._client: httpx.AsyncClient | None = None

        if not self.api_key:
            raise APIKeyMissingError(self.API_NAME)

    @property
    def completions_url(self) -> str:
        return f"{settings.perplexity_base_url.rstrip('/')}/chat/completions"

    async def __aenter__(self) -> "PerplexityClient":
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client must be used as async context manager")
        return self._client

    async def search(
        self,
        query: str,
        *,
        recency: Recency | None = None,
        max_results: int | None = None,
        domains: list[str] | None = None,
    ) -> SearchResult:
        """Run one web-grounded search.

        Args:
            query: Natural-language research question
            recency: Restrict results to this time window
            max_results: Hint for how many sources to return
            domains: Optional domain allow-list

        Returns:
            SearchResult with answer content, citation URLs and token usage
        """
        payload: dict[str, Any] = {
            "model": settings.perplexity_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": build_search_query(query, recency=recency, max_results=max_results),
                },
            ],
            "max_tokens": settings.perplexity_max_tokens,
            "temperature": settings.perplexity_temperature,
            "return_citations": True,
        }
        if recency:
            payload["search_recency_filter"] = recency
        if domains:
            payload["search_domain_filter"] = domains

        await self.rate_limiter.acquire()
        logger.info(
            "Perplexity search request",
            extra={"query": query[:120], "recency": recency, "max_results": max_results},
        )

        try:
            response = await self.client.post(self.completions_url, json=payload)

            if response.status_code == 429:
                logger.warning("Perplexity rate limit hit")
                raise RateLimitExceededError(self.API_NAME)

            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.warning("Perplexity HTTP error", extra={"error": str(e)})
            raise ExternalAPIError(self.API_NAME, str(e)) from e
        except ValueError as e:
            logger.warning("Perplexity returned invalid JSON", extra={"error": str(e)})
            raise ExternalAPIError(self.API_NAME, f"Invalid JSON response: {e}") from e

        return self._parse_response(data)

    @staticmethod
    def _parse_response(data: dict[str, Any]) -> SearchResult:
        if not isinstance(data, dict):
            raise ExternalAPIError(PerplexityClient.API_NAME, "Response body was not a JSON object")
        choices = data.get("choices") or []
        if not choices:
            raise ExternalAPIError(PerplexityClient.API_NAME, "Response contained no choices")

        message = choices[0].get("message") or {}
        content = str(message.get("content") or "")
        citations = data.get("citations") or []
        sources = [str(url) for url in citations if isinstance(url, str) and url]

        raw_usage = data.get("usage") or {}
        usage = {
            key: int(raw_usage.get(key) or 0)
            for key in ("prompt_tokens", "completion_tokens", "total_tokens")
        }

        logger.info(
            "Perplexity search completed",
            extra={"sources": len(sources), "total_tokens": usage["total_tokens"]},
        )
        return SearchResult(content=content, sources=sources, usage=usage)
