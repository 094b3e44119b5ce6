"""Content idea and scheduled content models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, IntegerIDMixin, TimestampMixin

if TYPE_CHECKING:
    from app.models.topic import Topic


class ContentIdea(Base, IntegerIDMixin, TimestampMixin):
    """Platform-specific post concept derived from a topic."""

    __tablename__ = "content_ideas"

    topic_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("topics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    platform: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    format: Mapped[str] = mapped_column(String(100), nullable=False)
    key_points: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    sources: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    saved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    topic: Mapped[Topic] = relationship("Topic", back_populates="content_ideas")

    def __repr__(self) -> str:
        return f"<ContentIdea {self.platform}: {self.title}>"


class ScheduledContent(Base, IntegerIDMixin, TimestampMixin):
    """Content item placed on an expert's publishing calendar."""

    __tablename__ = "scheduled_content"

    topic_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("topics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expert_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("experts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    platform: Mapped[str] = mapped_column(String(50), nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="draft", nullable=False)
    scheduled_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    content: Mapped[str | None] = mapped_column(Text, nullable=True)

    topic: Mapped[Topic] = relationship("Topic", back_populates="scheduled_content")

    def __repr__(self) -> str:
        return f"<ScheduledContent {self.platform} {self.status}>"
