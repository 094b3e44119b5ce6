"""Unit tests for the persistent research cache service."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from sqlalchemy.sql.dml import Update

from app.models.research import ResearchCache, ResearchUsage
from app.services.research_cache import ResearchCacheService

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
CACHE_KEY = "research:4:abc123"


class _FakeResult:
    def __init__(
        self,
        *,
        entry: Any = None,
        entries: list[Any] | None = None,
        row: tuple[Any, ...] | None = None,
        rowcount: int = 0,
    ) -> None:
        self.entry = entry
        self.entries = entries or []
        self.row = row
        self.rowcount = rowcount

    def scalar_one_or_none(self) -> Any:
        return self.entry

    def scalars(self) -> _FakeResult:
        return self

    def all(self) -> list[Any]:
        return list(self.entries)

    def one(self) -> tuple[Any, ...] | None:
        return self.row


class _FakeSession:
    def __init__(self, *results: _FakeResult) -> None:
        self._results = list(results)
        self.statements: list[Any] = []
        self.added: list[Any] = []
        self.flushes = 0

    async def execute(self, statement: Any) -> _FakeResult:
        self.statements.append(statement)
        return self._results.pop(0) if self._results else _FakeResult()

    def add(self, instance: Any) -> None:
        self.added.append(instance)

    async def flush(self) -> None:
        self.flushes += 1


def _service(session: _FakeSession) -> ResearchCacheService:
    return ResearchCacheService(session, ttl_hours=24, now=lambda: NOW)  # type: ignore[arg-type]


def _entry(entry_id: int, **overrides: Any) -> ResearchCache:
    values: dict[str, Any] = {
        "id": entry_id,
        "cache_key": CACHE_KEY,
        "search_query": "latest trends",
        "expert_id": 4,
        "content": "Findings",
        "sources": ["https://hbr.org/a"],
        "quality_score": 80.0,
        "is_valid": True,
        "usage_count": 2,
        "last_accessed_at": NOW - timedelta(hours=5),
        "created_at": NOW - timedelta(hours=6),
        "expires_at": NOW + timedelta(hours=18),
    }
    values.update(overrides)
    return ResearchCache(**values)


@pytest.mark.asyncio
async def test_get_returns_newest_live_entry_and_records_access() -> None:
    entry = _entry(1)
    session = _FakeSession(_FakeResult(entry=entry))

    found = await _service(session).get(CACHE_KEY)

    assert found is entry
    assert entry.usage_count == 3
    assert entry.last_accessed_at == NOW
    assert session.flushes == 1

    [statement] = session.statements
    sql = str(statement)
    assert "ORDER BY research_cache.created_at DESC" in sql
    assert "LIMIT" in sql
    params = statement.compile().params
    assert CACHE_KEY in params.values()
    assert NOW in params.values()


@pytest.mark.asyncio
async def test_get_miss_does_not_flush() -> None:
    session = _FakeSession(_FakeResult(entry=None))

    assert await _service(session).get(CACHE_KEY) is None
    assert session.flushes == 0


@pytest.mark.asyncio
async def test_store_invalidates_earlier_entries_before_adding() -> None:
    session = _FakeSession()

    entry = await _service(session).store(
        cache_key=CACHE_KEY,
        search_query="latest trends",
        expert_id=4,
        content="Findings",
        sources=["https://hbr.org/a"],
        quality_score=75.0,
        primary_expertise="Leadership",
        expertise_keywords=["burnout"],
        metadata={"kind": "expert"},
    )

    [invalidate] = session.statements
    assert isinstance(invalidate, Update)
    params = invalidate.compile().params
    assert params["is_valid"] is False
    assert CACHE_KEY in params.values()

    assert session.added == [entry]
    assert session.flushes == 1
    assert entry.is_valid is True
    assert entry.usage_count == 1
    assert entry.created_at == NOW
    assert entry.last_accessed_at == NOW
    assert entry.expires_at == NOW + timedelta(hours=24)
    assert entry.expertise_keywords == ["burnout"]
    assert entry.extra_metadata == {"kind": "expert"}


@pytest.mark.asyncio
async def test_track_usage_records_generation_counts() -> None:
    session = _FakeSession()

    usage = await _service(session).track_usage(
        research_cache_id=7,
        expert_id=4,
        usage_type="content_ideas",
        content_generated=3,
    )

    assert isinstance(usage, ResearchUsage)
    assert session.added == [usage]
    assert (usage.research_cache_id, usage.usage_type) == (7, "content_ideas")
    assert (usage.topics_generated, usage.content_generated) == (0, 3)


@pytest.mark.asyncio
async def test_history_flags_expired_and_invalidated_entries() -> None:
    live = _entry(1)
    expired = _entry(2, expires_at=NOW - timedelta(minutes=1))
    superseded = _entry(3, is_valid=False)
    session = _FakeSession(_FakeResult(entries=[live, expired, superseded]))

    history = await _service(session).history(4, limit=3)

    assert [item.id for item in history] == [1, 2, 3]
    assert [item.is_expired for item in history] == [False, True, True]
    assert history[0].sources == ["https://hbr.org/a"]
    assert 4 in session.statements[0].compile().params.values()


@pytest.mark.asyncio
async def test_cleanup_expired_reports_invalidated_rows() -> None:
    session = _FakeSession(_FakeResult(rowcount=3))

    assert await _service(session).cleanup_expired() == 3

    [statement] = session.statements
    assert isinstance(statement, Update)
    params = statement.compile().params
    assert params["is_valid"] is False
    assert NOW in params.values()


@pytest.mark.asyncio
async def test_stats_hit_rate_counts_repeat_uses() -> None:
    session = _FakeSession(_FakeResult(row=(4, 2, 1, 72.456, 10)))

    stats = await _service(session).stats()

    # Ten uses across four entries: six were served from cache
    assert stats.to_dict() == {
        "total_entries": 4,
        "valid_entries": 2,
        "expired_entries": 1,
        "average_quality": 72.5,
        "hit_rate": 60.0,
    }
    assert "WHERE" not in str(session.statements[0])


@pytest.mark.asyncio
async def test_stats_for_one_expert_with_empty_cache() -> None:
    session = _FakeSession(_FakeResult(row=(0, 0, 0, None, None)))

    stats = await _service(session).stats(expert_id=9)

    assert stats.hit_rate == 0.0
    assert stats.average_quality == 0.0
    assert "WHERE research_cache.expert_id" in str(session.statements[0])
    assert 9 in session.statements[0].compile().params.values()
