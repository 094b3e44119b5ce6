"""Single deep-query research for an expert, cached per profile."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.integrations.perplexity import Recency
from app.models.expert import ExpertProfile
from app.services.reliability import calculate_freshness
from app.services.research_cache import ResearchCacheService, build_cache_key
from app.services.smart_research import SearchClient
from app.services.source_validator import SourceValidator

logger = logging.getLogger(__name__)

DEEP_QUERY_RECENCY: Recency = "week"
DEEP_QUERY_MAX_RESULTS = 10
DEFAULT_DEEP_QUERY = "latest industry insights"
NO_SOURCES_QUALITY = 50


def build_deep_query(profile: ExpertProfile) -> str:
    """Compose one search query covering expertise, audience, platforms and goals."""
    parts: list[str] = []
    if profile.primary_expertise:
        parts.append(f"latest trends in {profile.primary_expertise}")
    if profile.expertise_keywords:
        parts.append(f"focusing on {', '.join(profile.expertise_keywords)}")
    if profile.target_audience:
        parts.append(f"relevant for {profile.target_audience}")
    if profile.platforms:
        parts.append(f"suitable for {' and '.join(profile.platforms)}")
    if profile.content_goals:
        parts.append(f"with focus on {', '.join(profile.content_goals)}")
    return " ".join(parts) or DEFAULT_DEEP_QUERY


def score_research_quality(source_count: int, valid_source_count: int) -> int:
    """Ten points per validated source, capped at 100; 50 when nothing was cited."""
    if source_count == 0:
        return NO_SOURCES_QUALITY
    return min(100, valid_source_count * 10)


@dataclass
class ExpertResearchResult:
    cache_key: str
    content: str
    sources: list[str]
    quality_score: int
    expert_id: int
    created_at: datetime
    metadata: dict[str, Any]
    cached: bool = False
    research_cache_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.cache_key,
            "content": self.content,
            "sources": self.sources,
            "quality_score": self.quality_score,
            "expert_id": self.expert_id,
            "created_at": self.created_at.isoformat(),
            "metadata": self.metadata,
            "cached": self.cached,
            "freshness": calculate_freshness(self.created_at, "general").to_dict(),
        }


class ExpertResearchService:
    """Cache-aside deep research used to ground topic generation."""

    def __init__(
        self,
        search_client: SearchClient,
        validator: SourceValidator,
        cache: ResearchCacheService,
    ) -> None:
        self.search_client = search_client
        self.validator = validator
        self.cache = cache

    async def conduct(self, expert_id: int, profile: ExpertProfile) -> ExpertResearchResult:
        query = build_deep_query(profile)
        cache_key = build_cache_key(
            expert_id=expert_id,
            profile=profile,
            query=query,
            recency=DEEP_QUERY_RECENCY,
        )

        cached = await self.cache.get(cache_key)
        if cached is not None:
            return ExpertResearchResult(
                cache_key=cache_key,
                content=cached.content,
                sources=list(cached.sources or []),
                quality_score=round(cached.quality_score),
                expert_id=expert_id,
                created_at=cached.created_at,
                metadata=dict(cached.extra_metadata or {}),
                cached=True,
                research_cache_id=cached.id,
            )

        logger.info("Executing fresh expert research", extra={"expert_id": expert_id, "query": query})
        started = time.perf_counter()
        response = await self.search_client.search(
            query,
            recency=DEEP_QUERY_RECENCY,
            max_results=DEEP_QUERY_MAX_RESULTS,
        )
        validations = await self.validator.validate_batch(response.sources)
        valid_count = sum(1 for item in validations if item.is_valid)
        quality = score_research_quality(len(response.sources), valid_count)

        content = "\n".join(
            [
                f"**Research for {profile.primary_expertise} Expert**",
                f"Query: {query}",
                "",
                response.content,
            ]
        )
        metadata = {
            "kind": "expert",
            "search_duration_ms": int((time.perf_counter() - started) * 1000),
            "token_usage": response.usage,
            "source_validation": {"total": len(response.sources), "valid": valid_count},
        }

        entry = await self.cache.store(
            cache_key=cache_key,
            search_query=query,
            expert_id=expert_id,
            content=content,
            sources=response.sources,
            quality_score=quality,
            primary_expertise=profile.primary_expertise,
            expertise_keywords=list(profile.expertise_keywords or []),
            metadata=metadata,
        )
        logger.info(
            "Expert research complete",
            extra={"expert_id": expert_id, "quality": quality, "sources": len(response.sources)},
        )

        return ExpertResearchResult(
            cache_key=cache_key,
            content=content,
            sources=list(response.sources),
            quality_score=quality,
            expert_id=expert_id,
            created_at=entry.created_at,
            metadata=metadata,
            research_cache_id=entry.id,
        )
