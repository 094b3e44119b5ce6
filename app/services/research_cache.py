"""Persistent research cache keyed by a hash of the expert profile and query."""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.research import ResearchCache, ResearchUsage

logger = logging.getLogger(__name__)

UsageType = Literal["topic_generation", "content_ideas", "manual_review"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_cache_key(
    *,
    expert_id: int,
    profile: Any,
    query: str,
    recency: str | None = None,
) -> str:
    """Return ``research:{expert_id}:{sha256}`` for a profile and query.

    The hash covers every profile field that changes what the search would
    return, so editing the profile naturally misses the old entries.
    """
    sources = getattr(profile, "information_sources", None) or []
    source_urls = sorted(
        str(source.get("url", "")) for source in sources if isinstance(source, dict)
    )
    material = {
        "expert_id": expert_id,
        "primary_expertise": (getattr(profile, "primary_expertise", "") or "").strip().lower(),
        "expertise_keywords": sorted(
            keyword.strip().lower()
            for keyword in getattr(profile, "expertise_keywords", None) or []
        ),
        "information_sources": source_urls,
        "query": query.strip(),
        "recency": recency or "",
    }
    digest = hashlib.sha256(
        json.dumps(material, sort_keys=True, ensure_ascii=False).encode("utf-8")
    ).hexdigest()
    return f"research:{expert_id}:{digest}"


@dataclass(frozen=True)
class ResearchCacheStats:
    """Aggregate cache health numbers."""

    total_entries: int
    valid_entries: int
    expired_entries: int
    average_quality: float
    hit_rate: float

    def to_dict(self) -> dict[str, float | int]:
        return {
            "total_entries": self.total_entries,
            "valid_entries": self.valid_entries,
            "expired_entries": self.expired_entries,
            "average_quality": self.average_quality,
            "hit_rate": self.hit_rate,
        }


@dataclass(frozen=True)
class ResearchHistoryEntry:
    """One cached research entry as shown in an expert's history."""

    id: int
    search_query: str
    content: str
    sources: list[str]
    quality_score: float
    usage_count: int
    created_at: datetime
    expires_at: datetime
    is_expired: bool


class ResearchCacheService:
    """Cache-aside store for search API results."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        ttl_hours: int | None = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.session = session
        self.ttl = timedelta(hours=ttl_hours or settings.research_cache_ttl_hours)
        self._now = now

    def expiry_from(self, moment: datetime) -> datetime:
        return moment + self.ttl

    async def get(self, cache_key: str) -> ResearchCache | None:
        """Return the newest live entry for a key, recording the access."""
        now = self._now()
        result = await self.session.execute(
            select(ResearchCache)
            .where(
                ResearchCache.cache_key == cache_key,
                ResearchCache.is_valid.is_(True),
                ResearchCache.expires_at > now,
            )
            .order_by(ResearchCache.created_at.desc())
            .limit(1)
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            logger.info("Research cache miss", extra={"cache_key": cache_key})
            return None

        entry.usage_count = (entry.usage_count or 0) + 1
        entry.last_accessed_at = now
        await self.session.flush()

        logger.info(
            "Research cache hit",
            extra={
                "cache_key": cache_key,
                "usage_count": entry.usage_count,
                "age_hours": round((now - entry.created_at).total_seconds() / 3600, 1)
                if entry.created_at
                else None,
            },
        )
        return entry

    async def store(
        self,
        *,
        cache_key: str,
        search_query: str,
        expert_id: int | None,
        content: str,
        sources: list[str],
        quality_score: float,
        primary_expertise: str | None = None,
        expertise_keywords: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ResearchCache:
        """Store research under a key, invalidating earlier entries for it."""
        await self.session.execute(
            update(ResearchCache)
            .where(ResearchCache.cache_key == cache_key, ResearchCache.is_valid.is_(True))
            .values(is_valid=False)
        )

        now = self._now()
        entry = ResearchCache(
            cache_key=cache_key,
            search_query=search_query,
            expert_id=expert_id,
            primary_expertise=primary_expertise,
            expertise_keywords=list(expertise_keywords or []),
            content=content,
            sources=list(sources),
            quality_score=quality_score,
            is_valid=True,
            usage_count=1,
            last_accessed_at=now,
            expires_at=self.expiry_from(now),
            extra_metadata=metadata or {},
            created_at=now,
        )
        self.session.add(entry)
        await self.session.flush()

        logger.info(
            "Research cached",
            extra={
                "cache_key": cache_key,
                "expert_id": expert_id,
                "sources": len(sources),
                "quality_score": quality_score,
            },
        )
        return entry

    async def track_usage(
        self,
        *,
        research_cache_id: int,
        expert_id: int,
        usage_type: UsageType,
        topics_generated: int = 0,
        content_generated: int = 0,
    ) -> ResearchUsage:
        usage = ResearchUsage(
            research_cache_id=research_cache_id,
            expert_id=expert_id,
            usage_type=usage_type,
            topics_generated=topics_generated,
            content_generated=content_generated,
        )
        self.session.add(usage)
        await self.session.flush()
        return usage

    async def history(self, expert_id: int, *, limit: int = 10) -> list[ResearchHistoryEntry]:
        """Newest cached research for an expert, expired entries included."""
        now = self._now()
        result = await self.session.execute(
            select(ResearchCache)
            .where(ResearchCache.expert_id == expert_id)
            .order_by(ResearchCache.created_at.desc())
            .limit(limit)
        )
        return [
            ResearchHistoryEntry(
                id=entry.id,
                search_query=entry.search_query,
                content=entry.content,
                sources=list(entry.sources or []),
                quality_score=entry.quality_score,
                usage_count=entry.usage_count,
                created_at=entry.created_at,
                expires_at=entry.expires_at,
                is_expired=entry.expires_at <= now or not entry.is_valid,
            )
            for entry in result.scalars().all()
        ]

    async def cleanup_expired(self) -> int:
        """Invalidate entries past their expiry. Returns the number invalidated."""
        result = await self.session.execute(
            update(ResearchCache)
            .where(ResearchCache.is_valid.is_(True), ResearchCache.expires_at <= self._now())
            .values(is_valid=False)
        )
        cleaned = int(result.rowcount or 0)
        logger.info("Expired research invalidated", extra={"count": cleaned})
        return cleaned

    async def stats(self, expert_id: int | None = None) -> ResearchCacheStats:
        now = self._now()
        live = (ResearchCache.is_valid.is_(True)) & (ResearchCache.expires_at > now)
        query = select(
            func.count(ResearchCache.id),
            func.coalesce(func.sum(case((live, 1), else_=0)), 0),
            func.coalesce(func.sum(case((ResearchCache.expires_at <= now, 1), else_=0)), 0),
            func.coalesce(func.avg(ResearchCache.quality_score), 0.0),
            func.coalesce(func.sum(ResearchCache.usage_count), 0),
        )
        if expert_id is not None:
            query = query.where(ResearchCache.expert_id == expert_id)

        row = (await self.session.execute(query)).one()
        total, valid, expired, average_quality, total_uses = (
            int(row[0] or 0),
            int(row[1] or 0),
            int(row[2] or 0),
            float(row[3] or 0.0),
            int(row[4] or 0),
        )
        # Every use beyond the first store of an entry was served from cache
        repeat_uses = max(0, total_uses - total)
        hit_rate = round(repeat_uses / total_uses * 100, 1) if total_uses else 0.0

        return ResearchCacheStats(
            total_entries=total,
            valid_entries=valid,
            expired_entries=expired,
            average_quality=round(average_quality, 1),
            hit_rate=hit_rate,
        )
