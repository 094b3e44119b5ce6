"""Expert account and expert profile models."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, IntegerIDMixin, TimestampMixin

if TYPE_CHECKING:
    from app.models.topic import Topic


class Expert(Base, IntegerIDMixin, TimestampMixin):
    """Content creator account that owns a profile and topics."""

    __tablename__ = "experts"

    username: Mapped[str] = mapped_column(String(150), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(255), nullable=False)
    profile_complete: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    profile_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    profile: Mapped[ExpertProfile | None] = relationship(
        "ExpertProfile",
        back_populates="expert",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    topics: Mapped[list[Topic]] = relationship(
        "Topic",
        back_populates="expert",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Expert {self.username}>"


class ExpertProfile(Base, IntegerIDMixin, TimestampMixin):
    """Expertise, voice and audience settings used to steer research and generation."""

    __tablename__ = "expert_profiles"

    expert_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("experts.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )

    primary_expertise: Mapped[str] = mapped_column(String(255), nullable=False)
    secondary_expertise: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    expertise_keywords: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    voice_tone: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    personal_branding: Mapped[str | None] = mapped_column(Text, nullable=True)
    platforms: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    # [{"name": "...", "url": "https://..."}]
    information_sources: Mapped[list[dict]] = mapped_column(JSONB, default=list, nullable=False)
    target_audience: Mapped[str | None] = mapped_column(Text, nullable=True)
    content_goals: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)

    # Relationships
    expert: Mapped[Expert] = relationship("Expert", back_populates="profile")

    @property
    def information_source_urls(self) -> list[str]:
        """Return the URLs of configured information sources."""
        urls: list[str] = []
        for source in self.information_sources or []:
            if isinstance(source, dict):
                url = str(source.get("url") or "").strip()
                if url:
                    urls.append(url)
        return urls

    def __repr__(self) -> str:
        return f"<ExpertProfile expert={self.expert_id} {self.primary_expertise}>"
