"""Research endpoint schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ResearchHistoryItem(BaseModel):
    """Condensed cached research entry."""

    id: int
    search_query: str
    content_preview: str
    sources: list[str]
    quality_score: float
    usage_count: int
    created_at: datetime
    expires_at: datetime
    is_expired: bool


class ResearchHistoryResponse(BaseModel):
    """Research history of one expert."""

    expert_id: int
    items: list[ResearchHistoryItem]


class ResearchAnalyticsResponse(BaseModel):
    """Cache statistics with recommendations."""

    expert_id: int
    cache: dict[str, Any]
    recommendations: list[str]


class ResearchCleanupResponse(BaseModel):
    """Result of invalidating expired research."""

    message: str
    cleaned_entries: int
    timestamp: datetime
