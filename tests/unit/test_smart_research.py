"""Unit tests for multi-stream research and its synthesis."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any

import pytest

from app.integrations.perplexity import SearchResult
from app.services.smart_research import (
    ResearchStream,
    SmartResearchService,
    StreamResult,
    build_research_streams,
    calculate_quality_metrics,
    synthesize_research,
)


def _profile(**overrides: Any) -> SimpleNamespace:
    values: dict[str, Any] = {
        "primary_expertise": "Leadership coaching",
        "expertise_keywords": ["remote teams", "burnout", "hiring", "culture"],
        "target_audience": "startup founders",
        "platforms": ["LinkedIn"],
        "information_sources": [],
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class _FakeSearchClient:
    def __init__(self, *, failing: str | None = None) -> None:
        self.failing = failing
        self.queries: list[dict[str, Any]] = []

    async def search(self, query: str, **kwargs: Any) -> SearchResult:
        self.queries.append({"query": query, **kwargs})
        if self.failing and query.startswith(self.failing):
            raise RuntimeError("upstream down")
        return SearchResult(
            content=f"Findings for {query[:20]}",
            sources=["https://hbr.org/shared", f"https://mit.edu/{len(self.queries)}"],
        )


class _FixedScorer:
    def __init__(self, score: float) -> None:
        self.score = score

    async def score_sources(self, urls: list[str]) -> float:
        return self.score if urls else 0.0


def _stream(stream_type: str, weight: float, quality: float | None) -> ResearchStream:
    stream = ResearchStream(type=stream_type, query=stream_type, weight=weight)
    if quality is not None:
        stream.results = StreamResult(content=f"{stream_type} notes", sources=[], quality_score=quality)
    return stream


def test_build_research_streams_uses_profile_context() -> None:
    streams = build_research_streams(_profile(), year=2026)

    assert [stream.type for stream in streams] == [
        "trends",
        "challenges",
        "opportunities",
        "competitive",
    ]
    assert [stream.weight for stream in streams] == [0.4, 0.3, 0.2, 0.1]
    assert streams[0].query == (
        "latest trends Leadership coaching remote teams burnout hiring 2026 professional"
    )
    assert streams[3].query.endswith("professional")


def test_build_research_streams_without_linkedin_targets_social_media() -> None:
    streams = build_research_streams(_profile(platforms=["Instagram"], target_audience=None), year=2026)

    assert streams[0].query.endswith("social media")
    assert streams[1].query == "current challenges problems Leadership coaching remote teams burnout hiring"


def test_quality_metrics_weight_successful_streams() -> None:
    streams = [
        _stream("trends", 0.4, 90),
        _stream("challenges", 0.3, 40),
        _stream("opportunities", 0.2, 70),
        _stream("competitive", 0.1, 0),
    ]

    metrics = calculate_quality_metrics(streams)

    # (90*0.4 + 40*0.3 + 70*0.2) / 0.9
    assert metrics.quality_score == 69
    assert metrics.expert_alignment == 75
    assert metrics.authority_level == "medium"
    assert metrics.conflicting_views is True


def test_quality_metrics_when_every_stream_failed() -> None:
    metrics = calculate_quality_metrics([_stream("trends", 0.4, 0), _stream("challenges", 0.3, None)])

    assert metrics.quality_score == 0
    assert metrics.authority_level == "low"
    assert metrics.conflicting_views is False


def test_synthesis_skips_weak_streams_and_dedupes_sources() -> None:
    strong = _stream("trends", 0.4, 85)
    strong.results.sources = ["https://a.org", "https://b.org"]
    weak = _stream("challenges", 0.3, 20)
    weak.results.sources = ["https://b.org", "https://c.org"]

    synthesis, sources = synthesize_research([strong, weak], _profile())

    assert "TRENDS: trends notes" in synthesis
    assert "CHALLENGES:" not in synthesis
    assert synthesis.startswith("COMPREHENSIVE MARKET INTELLIGENCE FOR LEADERSHIP COACHING EXPERTS")
    assert "targeting startup founders" in synthesis
    assert sources == ["https://a.org", "https://b.org", "https://c.org"]


@pytest.mark.asyncio
async def test_generate_degrades_failed_stream_to_placeholder() -> None:
    search_client = _FakeSearchClient(failing="current challenges")
    ticks = iter([10.0, 10.25])
    service = SmartResearchService(search_client, _FixedScorer(90), clock=lambda: next(ticks))

    research = await service.generate(7, _profile(), recency="month")

    assert len(search_client.queries) == 4
    assert all(query["recency"] == "month" for query in search_client.queries)
    assert all(query["max_results"] == 5 for query in search_client.queries)
    assert research.quality_score == 90
    assert research.expert_alignment == 75
    assert research.authority_level == "high"
    assert research.processing_time_ms == 250
    assert research.cached is False
    assert research.sources[0] == "https://hbr.org/shared"
    assert research.sources.count("https://hbr.org/shared") == 1

    failed = next(stream for stream in research.streams if stream["type"] == "challenges")
    assert failed["quality_score"] == 0
    assert failed["source_count"] == 0


@pytest.mark.asyncio
async def test_generate_serves_fresh_cache_entry_without_searching() -> None:
    entry = SimpleNamespace(
        id=3,
        content="cached synthesis",
        sources=["https://hbr.org/x"],
        quality_score=81.6,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        extra_metadata={"expert_alignment": 100, "authority_level": "high", "streams": []},
    )

    class _Cache:
        async def get(self, key: str) -> SimpleNamespace:
            assert key.startswith("research:7:")
            return entry

    search_client = _FakeSearchClient()
    service = SmartResearchService(search_client, _FixedScorer(90), cache=_Cache())

    research = await service.generate(7, _profile())

    assert search_client.queries == []
    assert research.cached is True
    assert research.synthesis == "cached synthesis"
    assert research.quality_score == 82
    assert research.research_cache_id == 3


class _DownSearchClient:
    async def search(self, query: str, **kwargs: Any) -> SearchResult:
        raise RuntimeError("search API unavailable")


class _RecordingCache:
    def __init__(self) -> None:
        self.stored: list[dict[str, Any]] = []

    async def get(self, key: str) -> None:
        return None

    async def store(self, **kwargs: Any) -> SimpleNamespace:
        self.stored.append(kwargs)
        return SimpleNamespace(id=len(self.stored))


@pytest.mark.asyncio
async def test_generate_does_not_cache_when_every_stream_failed() -> None:
    cache = _RecordingCache()
    service = SmartResearchService(_DownSearchClient(), _FixedScorer(90), cache=cache)

    research = await service.generate(7, _profile())

    assert research.quality_score == 0
    assert research.cached is False
    assert research.research_cache_id is None
    assert cache.stored == []


@pytest.mark.asyncio
async def test_generate_caches_successful_research() -> None:
    cache = _RecordingCache()
    service = SmartResearchService(_FakeSearchClient(), _FixedScorer(90), cache=cache)

    research = await service.generate(7, _profile())

    assert len(cache.stored) == 1
    assert cache.stored[0]["cache_key"].startswith("research:7:")
    assert cache.stored[0]["quality_score"] == 90
    assert research.research_cache_id == 1
