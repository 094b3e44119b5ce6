"""Unit tests for deep expert research and research cache keys."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any

import pytest

from app.integrations.perplexity import SearchResult
from app.services.expert_research import (
    DEFAULT_DEEP_QUERY,
    ExpertResearchService,
    build_deep_query,
    score_research_quality,
)
from app.services.research_cache import build_cache_key
from app.services.source_validator import ValidationResult


def _profile(**overrides: Any) -> SimpleNamespace:
    values: dict[str, Any] = {
        "primary_expertise": "B2B marketing",
        "expertise_keywords": ["demand gen", "ABM"],
        "target_audience": "SaaS CMOs",
        "platforms": ["LinkedIn", "Twitter"],
        "content_goals": ["thought leadership"],
        "information_sources": [{"url": "https://hbr.org"}],
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_build_deep_query_joins_profile_parts() -> None:
    assert build_deep_query(_profile()) == (
        "latest trends in B2B marketing focusing on demand gen, ABM "
        "relevant for SaaS CMOs suitable for LinkedIn and Twitter "
        "with focus on thought leadership"
    )


def test_build_deep_query_falls_back_for_empty_profile() -> None:
    empty = _profile(
        primary_expertise="",
        expertise_keywords=[],
        target_audience=None,
        platforms=[],
        content_goals=[],
    )

    assert build_deep_query(empty) == DEFAULT_DEEP_QUERY


def test_research_quality_scoring() -> None:
    assert score_research_quality(0, 0) == 50
    assert score_research_quality(4, 3) == 30
    assert score_research_quality(15, 12) == 100


def test_cache_key_ignores_keyword_order_and_case() -> None:
    first = build_cache_key(expert_id=4, profile=_profile(), query="q", recency="week")
    reordered = build_cache_key(
        expert_id=4,
        profile=_profile(expertise_keywords=["abm", "Demand Gen"]),
        query="q",
        recency="week",
    )

    assert first == reordered
    assert first.startswith("research:4:")


def test_cache_key_changes_with_profile_and_query() -> None:
    base = build_cache_key(expert_id=4, profile=_profile(), query="q")

    assert base != build_cache_key(expert_id=4, profile=_profile(), query="other")
    assert base != build_cache_key(expert_id=5, profile=_profile(), query="q")
    assert base != build_cache_key(
        expert_id=4,
        profile=_profile(information_sources=[{"url": "https://mit.edu"}]),
        query="q",
    )
    assert base != build_cache_key(
        expert_id=4,
        profile=_profile(primary_expertise="Product marketing"),
        query="q",
    )


class _FakeCache:
    def __init__(self, cached: Any = None) -> None:
        self.cached = cached
        self.stored: dict[str, Any] = {}

    async def get(self, cache_key: str) -> Any:
        return self.cached

    async def store(self, **kwargs: Any) -> SimpleNamespace:
        self.stored = kwargs
        return SimpleNamespace(id=11, created_at=datetime(2026, 3, 1, tzinfo=timezone.utc))


class _FakeValidator:
    async def validate_batch(self, urls: list[str]) -> list[ValidationResult]:
        return [
            ValidationResult(url=url, is_valid="hbr" in url, reliability_score=90 if "hbr" in url else 20)
            for url in urls
        ]


class _FakeSearchClient:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    async def search(self, query: str, **kwargs: Any) -> SearchResult:
        self.calls.append({"query": query, **kwargs})
        return SearchResult(
            content="Account-based programs are consolidating.",
            sources=["https://hbr.org/abm", "https://random.io/post"],
            usage={"total_tokens": 420},
        )


@pytest.mark.asyncio
async def test_conduct_searches_validates_and_stores() -> None:
    search_client = _FakeSearchClient()
    cache = _FakeCache()
    service = ExpertResearchService(search_client, _FakeValidator(), cache)

    result = await service.conduct(4, _profile())

    assert search_client.calls[0]["recency"] == "week"
    assert search_client.calls[0]["max_results"] == 10
    assert result.quality_score == 10
    assert result.cached is False
    assert result.research_cache_id == 11
    assert result.content.startswith("**Research for B2B marketing Expert**")
    assert cache.stored["quality_score"] == 10
    assert cache.stored["metadata"]["source_validation"] == {"total": 2, "valid": 1}
    assert cache.stored["metadata"]["token_usage"] == {"total_tokens": 420}


@pytest.mark.asyncio
async def test_conduct_returns_cached_research_without_searching() -> None:
    cached = SimpleNamespace(
        id=2,
        content="cached",
        sources=["https://hbr.org/abm"],
        quality_score=70.0,
        created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
        extra_metadata={"kind": "expert"},
    )
    search_client = _FakeSearchClient()
    service = ExpertResearchService(search_client, _FakeValidator(), _FakeCache(cached))

    result = await service.conduct(4, _profile())

    assert search_client.calls == []
    assert result.cached is True
    assert result.quality_score == 70
    assert result.to_dict()["id"] == result.cache_key
