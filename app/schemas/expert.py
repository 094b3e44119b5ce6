"""Expert and expert profile schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, HttpUrl, field_validator


class ExpertResponse(BaseModel):
    """Schema for expert response."""

    id: int
    username: str
    name: str
    role: str
    profile_complete: bool
    profile_image: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ExpertUpdate(BaseModel):
    """Schema for updating an expert."""

    name: str | None = None
    role: str | None = None
    profile_image: str | None = None


class InformationSource(BaseModel):
    """A named source the expert trusts."""

    name: str = Field(min_length=1)
    url: HttpUrl


def _as_list(value: object) -> object:
    """Coerce a scalar into a one-item list; None becomes an empty list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return value


class ExpertProfileBase(BaseModel):
    """Fields shared by profile create and response schemas."""

    primary_expertise: str = Field(min_length=1, max_length=255)
    secondary_expertise: list[str] = Field(default_factory=list)
    expertise_keywords: list[str] = Field(default_factory=list)
    voice_tone: list[str] = Field(default_factory=list)
    personal_branding: str | None = None
    platforms: list[str] = Field(default_factory=list)
    information_sources: list[InformationSource] = Field(default_factory=list)
    target_audience: str | None = None
    content_goals: list[str] = Field(default_factory=list)

    @field_validator(
        "secondary_expertise",
        "expertise_keywords",
        "voice_tone",
        "platforms",
        "content_goals",
        "information_sources",
        mode="before",
    )
    @classmethod
    def _normalize_lists(cls, value: object) -> object:
        return _as_list(value)


class ExpertProfileCreate(ExpertProfileBase):
    """Schema for creating an expert profile."""

    pass


class ExpertProfileUpdate(BaseModel):
    """Schema for updating an expert profile."""

    primary_expertise: str | None = Field(default=None, min_length=1, max_length=255)
    secondary_expertise: list[str] | None = None
    expertise_keywords: list[str] | None = None
    voice_tone: list[str] | None = None
    personal_branding: str | None = None
    platforms: list[str] | None = None
    information_sources: list[InformationSource] | None = None
    target_audience: str | None = None
    content_goals: list[str] | None = None

    @field_validator(
        "secondary_expertise",
        "expertise_keywords",
        "voice_tone",
        "platforms",
        "content_goals",
        "information_sources",
        mode="before",
    )
    @classmethod
    def _normalize_lists(cls, value: object) -> object:
        if value is None:
            return None
        return _as_list(value)


class ExpertProfileResponse(ExpertProfileBase):
    """Schema for expert profile response."""

    id: int
    expert_id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
