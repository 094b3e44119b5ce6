"""Monitoring endpoint schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class OptimizeRequestBody(BaseModel):
    """Request for a model/caching recommendation."""

    request_type: Literal["topics", "content_ideas"] = "topics"
    urgency: Literal["low", "medium", "high"] = "medium"


class ResolveAlertRequest(BaseModel):
    """Schema for resolving an alert."""

    alert_id: str = Field(min_length=1)


class ResolveAlertResponse(BaseModel):
    """Result of resolving an alert."""

    alert_id: str
    resolved: bool
