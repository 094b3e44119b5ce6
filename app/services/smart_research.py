"""Multi-angle market research synthesized from parallel search streams."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Protocol

from app.integrations.perplexity import Recency, SearchResult
from app.models.expert import ExpertProfile
from app.services.reliability import calculate_freshness
from app.services.research_cache import ResearchCacheService, build_cache_key

logger = logging.getLogger(__name__)

StreamType = Literal["trends", "challenges", "opportunities", "competitive"]
AuthorityLevel = Literal["high", "medium", "low"]

STREAM_RESULTS_PER_SEARCH = 5
MAX_SYNTHESIS_SOURCES = 10
MIN_STREAM_QUALITY_FOR_SYNTHESIS = 30
COMPREHENSIVE_QUERY_LABEL = "comprehensive-research"


class SearchClient(Protocol):
    async def search(
        self,
        query: str,
        *,
        recency: Recency | None = None,
        max_results: int | None = None,
        domains: list[str] | None = None,
    ) -> SearchResult: ...


class SourceScorer(Protocol):
    async def score_sources(self, urls: list[str]) -> float: ...


@dataclass
class StreamResult:
    content: str
    sources: list[str]
    quality_score: float


@dataclass
class ResearchStream:
    type: StreamType
    query: str
    weight: float
    results: StreamResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "query": self.query,
            "weight": self.weight,
            "quality_score": round(self.results.quality_score, 1) if self.results else 0,
            "source_count": len(self.results.sources) if self.results else 0,
        }


@dataclass(frozen=True)
class QualityMetrics:
    quality_score: int
    expert_alignment: int
    authority_level: AuthorityLevel
    conflicting_views: bool


@dataclass
class ComprehensiveResearch:
    synthesis: str
    sources: list[str]
    quality_score: int
    streams: list[dict[str, Any]]
    freshness: datetime
    expert_alignment: int
    total_sources: int
    authority_level: AuthorityLevel
    conflicting_views: bool
    processing_time_ms: int
    cached: bool = False
    research_cache_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "synthesis": self.synthesis,
            "sources": self.sources,
            "quality_score": self.quality_score,
            "streams": self.streams,
            "freshness": calculate_freshness(self.freshness, "trends").to_dict(),
            "expert_alignment": self.expert_alignment,
            "metadata": {
                "total_sources": self.total_sources,
                "authority_level": self.authority_level,
                "conflicting_views": self.conflicting_views,
                "processing_time_ms": self.processing_time_ms,
            },
            "cached": self.cached,
        }


def build_research_streams(profile: ExpertProfile, *, year: int | None = None) -> list[ResearchStream]:
    """Create the four weighted research angles for a profile."""
    expertise = profile.primary_expertise
    keywords = " ".join((profile.expertise_keywords or [])[:3])
    audience = profile.target_audience or ""
    platform_context = "professional" if "LinkedIn" in (profile.platforms or []) else "social media"
    current_year = year or datetime.now(timezone.utc).year

    def _query(*parts: object) -> str:
        return " ".join(str(part) for part in parts if str(part).strip())

    return [
        ResearchStream(
            type="trends",
            query=_query("latest trends", expertise, keywords, current_year, platform_context),
            weight=0.4,
        ),
        ResearchStream(
            type="challenges",
            query=_query("current challenges problems", audience, expertise, keywords),
            weight=0.3,
        ),
        ResearchStream(
            type="opportunities",
            query=_query("emerging opportunities market gaps", expertise, keywords, audience),
            weight=0.2,
        ),
        ResearchStream(
            type="competitive",
            query=_query(expertise, "thought leaders discussing", keywords, platform_context),
            weight=0.1,
        ),
    ]


def calculate_quality_metrics(streams: list[ResearchStream]) -> QualityMetrics:
    successful = [s for s in streams if s.results is not None and s.results.quality_score > 0]
    if not successful:
        return QualityMetrics(
            quality_score=0,
            expert_alignment=0,
            authority_level="low",
            conflicting_views=False,
        )

    total_weight = sum(s.weight for s in successful)
    weighted = sum(s.results.quality_score * s.weight for s in successful) / total_weight
    average = sum(s.results.quality_score for s in successful) / len(successful)

    if average > 80:
        authority: AuthorityLevel = "high"
    elif average > 60:
        authority = "medium"
    else:
        authority = "low"

    return QualityMetrics(
        quality_score=round(weighted),
        expert_alignment=round(len(successful) / len(streams) * 100),
        authority_level=authority,
        conflicting_views=len(successful) > 2
        and any(s.results.quality_score < 50 for s in successful),
    )


def synthesize_research(
    streams: list[ResearchStream],
    profile: ExpertProfile,
) -> tuple[str, list[str]]:
    """Merge stream findings into one briefing and a de-duplicated source list."""
    sections = [
        f"{stream.type.upper()}: {stream.results.content}"
        for stream in streams
        if stream.results is not None
        and stream.results.quality_score > MIN_STREAM_QUALITY_FOR_SYNTHESIS
    ]

    sources: list[str] = []
    for stream in streams:
        for source in stream.results.sources if stream.results else []:
            if source not in sources:
                sources.append(source)
    sources = sources[:MAX_SYNTHESIS_SOURCES]

    expertise = profile.primary_expertise
    audience = profile.target_audience or "their audience"
    platforms = ", ".join(profile.platforms or []) or "social"
    landscape = "\n\n".join(sections)

    synthesis = (
        f"COMPREHENSIVE MARKET INTELLIGENCE FOR {expertise.upper()} EXPERTS\n\n"
        f"CURRENT LANDSCAPE ANALYSIS:\n{landscape}\n\n"
        "STRATEGIC POSITIONING OPPORTUNITIES:\n"
        f"Based on the research above, {expertise} experts targeting {audience} should focus on:\n\n"
        "1. TREND ALIGNMENT: Leverage current industry developments to position expertise\n"
        "2. PROBLEM SOLVING: Address specific challenges identified in target audience\n"
        "3. MARKET GAPS: Capitalize on emerging opportunities in the space\n"
        "4. THOUGHT LEADERSHIP: Engage with topics other experts are discussing\n\n"
        f"This intelligence is curated specifically for content creation on {platforms} platforms."
    )
    return synthesis, sources


class SmartResearchService:
    """Fan out the research streams, then fan in to a single briefing."""

    def __init__(
        self,
        search_client: SearchClient,
        scorer: SourceScorer,
        *,
        cache: ResearchCacheService | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.search_client = search_client
        self.scorer = scorer
        self.cache = cache
        self._clock = clock

    async def _run_stream(self, stream: ResearchStream, recency: Recency) -> ResearchStream:
        try:
            result = await self.search_client.search(
                stream.query,
                recency=recency,
                max_results=STREAM_RESULTS_PER_SEARCH,
            )
            quality = await self.scorer.score_sources(result.sources)
            stream.results = StreamResult(
                content=result.content,
                sources=result.sources,
                quality_score=quality,
            )
            logger.info(
                "Research stream complete",
                extra={"stream": stream.type, "quality": round(quality, 1)},
            )
        except Exception as exc:
            # A failed stream degrades to placeholder content
            logger.warning(
                "Research stream failed",
                extra={"stream": stream.type, "error": str(exc)},
            )
            stream.results = StreamResult(
                content=f"Research for {stream.type} temporarily unavailable",
                sources=[],
                quality_score=0.0,
            )
        return stream

    async def generate(
        self,
        expert_id: int,
        profile: ExpertProfile,
        *,
        recency: Recency = "week",
    ) -> ComprehensiveResearch:
        """Return comprehensive research, served from cache while it is fresh."""
        cache_key = build_cache_key(
            expert_id=expert_id,
            profile=profile,
            query=COMPREHENSIVE_QUERY_LABEL,
            recency=recency,
        )
        if self.cache is not None:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return self._from_cache(cached)

        started = self._clock()
        logger.info(
            "Starting smart research",
            extra={"expert_id": expert_id, "expertise": profile.primary_expertise},
        )

        streams = build_research_streams(profile)
        streams = list(await asyncio.gather(*(self._run_stream(s, recency) for s in streams)))
        synthesis, sources = synthesize_research(streams, profile)
        metrics = calculate_quality_metrics(streams)
        processing_ms = int((self._clock() - started) * 1000)

        research = ComprehensiveResearch(
            synthesis=synthesis,
            sources=sources,
            quality_score=metrics.quality_score,
            streams=[stream.to_dict() for stream in streams],
            freshness=datetime.now(timezone.utc),
            expert_alignment=metrics.expert_alignment,
            total_sources=len(sources),
            authority_level=metrics.authority_level,
            conflicting_views=metrics.conflicting_views,
            processing_time_ms=processing_ms,
        )
        logger.info(
            "Smart research complete",
            extra={
                "expert_id": expert_id,
                "quality": metrics.quality_score,
                "processing_time_ms": processing_ms,
            },
        )

        if metrics.quality_score == 0:
            # Every stream failed; a later request should search again
            logger.warning(
                "Smart research degraded, not caching",
                extra={"expert_id": expert_id},
            )
            return research

        if self.cache is not None:
            entry = await self.cache.store(
                cache_key=cache_key,
                search_query=COMPREHENSIVE_QUERY_LABEL,
                expert_id=expert_id,
                content=synthesis,
                sources=sources,
                quality_score=metrics.quality_score,
                primary_expertise=profile.primary_expertise,
                expertise_keywords=list(profile.expertise_keywords or []),
                metadata={
                    "kind": "comprehensive",
                    "recency": recency,
                    "streams": research.streams,
                    "expert_alignment": metrics.expert_alignment,
                    "authority_level": metrics.authority_level,
                    "conflicting_views": metrics.conflicting_views,
                    "processing_time_ms": processing_ms,
                },
            )
            research.research_cache_id = entry.id
        return research

    @staticmethod
    def _from_cache(entry: Any) -> ComprehensiveResearch:
        metadata = entry.extra_metadata or {}
        sources = list(entry.sources or [])
        return ComprehensiveResearch(
            synthesis=entry.content,
            sources=sources,
            quality_score=round(entry.quality_score),
            streams=list(metadata.get("streams", [])),
            freshness=entry.created_at,
            expert_alignment=int(metadata.get("expert_alignment", 0)),
            total_sources=len(sources),
            authority_level=metadata.get("authority_level", "low"),
            conflicting_views=bool(metadata.get("conflicting_views", False)),
            processing_time_ms=0,
            cached=True,
            research_cache_id=entry.id,
        )
