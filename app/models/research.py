"""Research cache and research usage models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin, IntegerIDMixin


class ResearchCache(Base, IntegerIDMixin, CreatedAtMixin):
    """Time-boxed search API response keyed by a hash of profile and query."""

    __tablename__ = "research_cache"

    cache_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    search_query: Mapped[str] = mapped_column(Text, nullable=False)
    expert_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("experts.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    primary_expertise: Mapped[str | None] = mapped_column(String(255), nullable=True)
    expertise_keywords: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)
    sources: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    quality_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    is_valid: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    last_accessed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    # "metadata" is reserved on declarative classes
    extra_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONB,
        default=dict,
        nullable=False,
    )

    usages: Mapped[list[ResearchUsage]] = relationship(
        "ResearchUsage",
        back_populates="research_cache",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<ResearchCache {self.cache_key} valid={self.is_valid}>"


class ResearchUsage(Base, IntegerIDMixin, CreatedAtMixin):
    """Record of a cached research entry being consumed by a generation flow."""

    __tablename__ = "research_usage"

    research_cache_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("research_cache.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expert_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("experts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # topic_generation | content_ideas | manual_review
    usage_type: Mapped[str] = mapped_column(String(50), nullable=False)
    topics_generated: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    content_generated: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    research_cache: Mapped[ResearchCache] = relationship(
        "ResearchCache",
        back_populates="usages",
    )

    def __repr__(self) -> str:
        return f"<ResearchUsage {self.usage_type} cache={self.research_cache_id}>"
