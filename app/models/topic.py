"""Topic and viewpoint models."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin, IntegerIDMixin, TimestampMixin

if TYPE_CHECKING:
    from app.models.content import ContentIdea, ScheduledContent
    from app.models.expert import Expert


class Topic(Base, IntegerIDMixin, TimestampMixin):
    """Strategic content theme generated for an expert."""

    __tablename__ = "topics"

    expert_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("experts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="active", nullable=False)
    trending: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    engagement: Mapped[str] = mapped_column(String(50), default="normal", nullable=False)
    is_recommended: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)

    # Generation metadata
    alignment_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    generation_source: Mapped[str | None] = mapped_column(String(50), nullable=True)
    research_source: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    expert: Mapped[Expert] = relationship("Expert", back_populates="topics")
    viewpoints: Mapped[list[Viewpoint]] = relationship(
        "Viewpoint",
        back_populates="topic",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Viewpoint.id",
    )
    content_ideas: Mapped[list[ContentIdea]] = relationship(
        "ContentIdea",
        back_populates="topic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    scheduled_content: Mapped[list[ScheduledContent]] = relationship(
        "ScheduledContent",
        back_populates="topic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Topic {self.title}>"


class Viewpoint(Base, IntegerIDMixin, CreatedAtMixin):
    """A distinct angle an expert can take on a topic."""

    __tablename__ = "viewpoints"

    topic_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("topics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    topic: Mapped[Topic] = relationship("Topic", back_populates="viewpoints")

    def __repr__(self) -> str:
        return f"<Viewpoint {self.title}>"
