"""Topic and viewpoint schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ViewpointCreate(BaseModel):
    """Schema for creating a viewpoint."""

    title: str = Field(min_length=1, max_length=500)
    description: str = Field(min_length=1)


class ViewpointResponse(BaseModel):
    """Schema for viewpoint response."""

    id: int
    topic_id: int
    title: str
    description: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TopicCreate(BaseModel):
    """Schema for creating a topic."""

    title: str = Field(min_length=1, max_length=500)
    description: str = Field(min_length=1)
    category: str = Field(min_length=1, max_length=100)
    status: str = "active"
    trending: bool = False
    engagement: str = "normal"
    is_recommended: bool = False
    tags: list[str] = Field(default_factory=list)


class TopicUpdate(BaseModel):
    """Schema for updating a topic."""

    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    category: str | None = None
    status: str | None = None
    trending: bool | None = None
    engagement: str | None = None
    is_recommended: bool | None = None
    tags: list[str] | None = None


class TopicResponse(BaseModel):
    """Schema for topic response."""

    id: int
    expert_id: int
    title: str
    description: str
    category: str
    status: str
    trending: bool
    engagement: str
    is_recommended: bool
    tags: list[str]
    alignment_score: float | None
    generation_source: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TopicDetailResponse(TopicResponse):
    """Topic with its viewpoints."""

    viewpoints: list[ViewpointResponse]
    research_source: str | None


class TopicListResponse(BaseModel):
    """Schema for topic list response."""

    items: list[TopicResponse]
    total: int
    page: int
    page_size: int
