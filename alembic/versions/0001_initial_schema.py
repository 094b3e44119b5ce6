"""initial expert planner schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "experts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=255), nullable=False),
        sa.Column("profile_complete", sa.Boolean(), nullable=False),
        sa.Column("profile_image", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_experts_username"), "experts", ["username"], unique=True)

    op.create_table(
        "expert_profiles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("expert_id", sa.Integer(), nullable=False),
        sa.Column("primary_expertise", sa.String(length=255), nullable=False),
        sa.Column("secondary_expertise", postgresql.JSONB(), nullable=False),
        sa.Column("expertise_keywords", postgresql.JSONB(), nullable=False),
        sa.Column("voice_tone", postgresql.JSONB(), nullable=False),
        sa.Column("personal_branding", sa.Text(), nullable=True),
        sa.Column("platforms", postgresql.JSONB(), nullable=False),
        sa.Column("information_sources", postgresql.JSONB(), nullable=False),
        sa.Column("target_audience", sa.Text(), nullable=True),
        sa.Column("content_goals", postgresql.JSONB(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["expert_id"], ["experts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_expert_profiles_expert_id"),
        "expert_profiles",
        ["expert_id"],
        unique=True,
    )

    op.create_table(
        "topics",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("expert_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("trending", sa.Boolean(), nullable=False),
        sa.Column("engagement", sa.String(length=50), nullable=False),
        sa.Column("is_recommended", sa.Boolean(), nullable=False),
        sa.Column("tags", postgresql.JSONB(), nullable=False),
        sa.Column("alignment_score", sa.Float(), nullable=True),
        sa.Column("generation_source", sa.String(length=50), nullable=True),
        sa.Column("research_source", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["expert_id"], ["experts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_topics_expert_id"), "topics", ["expert_id"], unique=False)

    op.create_table(
        "viewpoints",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_viewpoints_topic_id"), "viewpoints", ["topic_id"], unique=False)

    op.create_table(
        "content_ideas",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("platform", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("format", sa.String(length=100), nullable=False),
        sa.Column("key_points", postgresql.JSONB(), nullable=False),
        sa.Column("sources", postgresql.JSONB(), nullable=False),
        sa.Column("saved", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_content_ideas_topic_id"), "content_ideas", ["topic_id"], unique=False)
    op.create_index(op.f("ix_content_ideas_platform"), "content_ideas", ["platform"], unique=False)

    op.create_table(
        "scheduled_content",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("expert_id", sa.Integer(), nullable=False),
        sa.Column("platform", sa.String(length=50), nullable=False),
        sa.Column("content_type", sa.String(length=100), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["expert_id"], ["experts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_scheduled_content_topic_id"), "scheduled_content", ["topic_id"], unique=False
    )
    op.create_index(
        op.f("ix_scheduled_content_expert_id"), "scheduled_content", ["expert_id"], unique=False
    )

    op.create_table(
        "research_cache",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("cache_key", sa.String(length=255), nullable=False),
        sa.Column("search_query", sa.Text(), nullable=False),
        sa.Column("expert_id", sa.Integer(), nullable=True),
        sa.Column("primary_expertise", sa.String(length=255), nullable=True),
        sa.Column("expertise_keywords", postgresql.JSONB(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("sources", postgresql.JSONB(), nullable=False),
        sa.Column("quality_score", sa.Float(), nullable=False),
        sa.Column("is_valid", sa.Boolean(), nullable=False),
        sa.Column("usage_count", sa.Integer(), nullable=False),
        sa.Column(
            "last_accessed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["expert_id"], ["experts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_research_cache_cache_key"), "research_cache", ["cache_key"], unique=False)
    op.create_index(op.f("ix_research_cache_expert_id"), "research_cache", ["expert_id"], unique=False)
    op.create_index(
        op.f("ix_research_cache_expires_at"), "research_cache", ["expires_at"], unique=False
    )

    op.create_table(
        "research_usage",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("research_cache_id", sa.Integer(), nullable=False),
        sa.Column("expert_id", sa.Integer(), nullable=False),
        sa.Column("usage_type", sa.String(length=50), nullable=False),
        sa.Column("topics_generated", sa.Integer(), nullable=False),
        sa.Column("content_generated", sa.Integer(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["research_cache_id"], ["research_cache.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["expert_id"], ["experts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_research_usage_research_cache_id"),
        "research_usage",
        ["research_cache_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_research_usage_expert_id"), "research_usage", ["expert_id"], unique=False
    )


def downgrade() -> None:
    op.drop_table("research_usage")
    op.drop_table("research_cache")
    op.drop_table("scheduled_content")
    op.drop_table("content_ideas")
    op.drop_table("viewpoints")
    op.drop_table("topics")
    op.drop_table("expert_profiles")
    op.drop_table("experts")
