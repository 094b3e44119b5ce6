"""Topic and content idea generation schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.content import ContentIdeaResponse
from app.schemas.topic import TopicDetailResponse


class TopicGenerationRequest(BaseModel):
    """Schema for requesting generated topics."""

    count: int = Field(default=3, ge=1, le=10)


class TopicGenerationResponse(BaseModel):
    """Generated topics with provenance and quality indicators."""

    topics: list[TopicDetailResponse]
    source: Literal["research", "fallback"]
    fallback_used: bool
    fallback_reason: str | None = None
    quality_score: int
    reliability: int
    research_quality: int | None = None
    research_cached: bool = False
    skipped_duplicates: int = 0


class ContentIdeaGenerationRequest(BaseModel):
    """Schema for requesting content ideas for one topic and platform."""

    topic_id: int
    platform: str = Field(min_length=1, max_length=50)


class ContentIdeaGenerationResponse(BaseModel):
    """Generated content ideas."""

    ideas: list[ContentIdeaResponse]
    research_used: bool
    allowed_sources: list[str]
    dropped_sources: int = 0
