"""Content idea and scheduled content schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ContentIdeaCreate(BaseModel):
    """Schema for creating a content idea."""

    platform: str = Field(min_length=1, max_length=50)
    title: str = Field(min_length=1, max_length=500)
    description: str = Field(min_length=1)
    format: str = Field(min_length=1, max_length=100)
    key_points: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    saved: bool = False


class ContentIdeaUpdate(BaseModel):
    """Schema for updating a content idea."""

    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    format: str | None = None
    key_points: list[str] | None = None
    sources: list[str] | None = None
    saved: bool | None = None


class ContentIdeaResponse(BaseModel):
    """Schema for content idea response."""

    id: int
    topic_id: int
    platform: str
    title: str
    description: str
    format: str
    key_points: list[str]
    sources: list[str]
    saved: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ScheduledContentCreate(BaseModel):
    """Schema for scheduling content."""

    topic_id: int
    platform: str = Field(min_length=1, max_length=50)
    content_type: str = Field(min_length=1, max_length=100)
    title: str = Field(min_length=1, max_length=500)
    scheduled_date: datetime | None = None
    content: str | None = None


class ScheduledContentUpdate(BaseModel):
    """Schema for updating scheduled content."""

    title: str | None = Field(default=None, min_length=1, max_length=500)
    status: str | None = None
    scheduled_date: datetime | None = None
    content: str | None = None


class ScheduledContentResponse(BaseModel):
    """Schema for scheduled content response."""

    id: int
    topic_id: int
    expert_id: int
    platform: str
    content_type: str
    title: str
    status: str
    scheduled_date: datetime | None
    content: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
