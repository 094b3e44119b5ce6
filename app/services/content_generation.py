"""Research-grounded topic and content idea generation for experts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.agents.content_idea_generator import (
    NO_SOURCES_PLACEHOLDER,
    ContentIdeaGeneratorAgent,
    ContentIdeaGeneratorInput,
    GeneratedContentIdea,
)
from app.agents.topic_generator import (
    GeneratedTopic,
    TopicGeneratorAgent,
    TopicGeneratorInput,
)
from app.core.exceptions import BudgetExceededError, ExpertPlannerError, GenerationError
from app.models.content import ContentIdea
from app.models.expert import ExpertProfile
from app.models.topic import Topic, Viewpoint
from app.services.cost_optimizer import CostOptimizer, cost_optimizer
from app.services.expert_research import ExpertResearchResult, ExpertResearchService
from app.services.expertise_alignment import (
    is_near_duplicate_title,
    is_recommended,
    score_topic_alignment,
)
from app.services.fallback_system import FallbackResult, FallbackSystem, fallback_system
from app.services.monitoring import (
    COST_PER_1K_TOKENS,
    CitationCheck,
    MonitoringService,
    monitoring_service,
)
from app.services.research_cache import ResearchCacheService
from app.services.smart_research import SearchClient
from app.services.source_validator import SourceValidator, ValidationResult

logger = logging.getLogger(__name__)

TOPIC_RESEARCH_MAX_RESULTS = 3
MAX_RESEARCH_SOURCES_PER_IDEA = 3
CONTENT_IDEAS_PER_REQUEST = 2


@dataclass
class TopicGenerationResult:
    topics: list[Topic]
    source: str
    fallback_used: bool
    quality_score: int
    reliability: int
    fallback_reason: str | None = None
    research: ExpertResearchResult | None = None
    skipped_duplicates: int = 0


@dataclass
class ContentIdeaGenerationResult:
    ideas: list[ContentIdea]
    research_used: bool
    allowed_sources: list[str] = field(default_factory=list)
    dropped_sources: int = 0


def build_topic_research_query(topic: Topic, profile: ExpertProfile) -> str:
    keywords = " ".join((profile.expertise_keywords or [])[:2])
    return " ".join(part for part in (topic.title, topic.description, keywords) if part)


def filter_idea_sources(
    idea: GeneratedContentIdea, allowed_sources: list[str]
) -> tuple[list[str], int]:
    """Keep only allowed URLs, in order; an empty result becomes the placeholder.

    Returns the kept sources and the number of dropped ones.
    """
    allowed = set(allowed_sources)
    kept: list[str] = []
    dropped = 0
    for source in idea.sources:
        url = source.strip()
        if url == NO_SOURCES_PLACEHOLDER:
            continue
        if url in allowed and url not in kept:
            kept.append(url)
        else:
            dropped += 1
    return (kept or [NO_SOURCES_PLACEHOLDER]), dropped


def estimate_llm_cost(tokens: int) -> float:
    return tokens / 1000 * COST_PER_1K_TOKENS["llm"]


class ContentGenerationService:
    """Coordinates research, agents and persistence for one request.

    `search_client` is None when the search API is not configured; generation
    then goes straight to the research-free path.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        search_client: SearchClient | None,
        validator: SourceValidator,
        cache: ResearchCacheService | None = None,
        topic_agent: TopicGeneratorAgent | None = None,
        idea_agent: ContentIdeaGeneratorAgent | None = None,
        fallback: FallbackSystem = fallback_system,
        monitor: MonitoringService = monitoring_service,
        optimizer: CostOptimizer = cost_optimizer,
    ) -> None:
        self.session = session
        self.search_client = search_client
        self.validator = validator
        self.cache = cache or ResearchCacheService(session)
        self.topic_agent = topic_agent or TopicGeneratorAgent()
        self.idea_agent = idea_agent or ContentIdeaGeneratorAgent()
        self.fallback = fallback
        self.monitor = monitor
        self.optimizer = optimizer

    def _check_budget(self, expert_id: int, profile: ExpertProfile, request_type: Any) -> None:
        recommendation = self.optimizer.optimize_request(expert_id, profile, request_type)
        decision = self.optimizer.should_approve_request(recommendation.estimated_cost, expert_id)
        if not decision.approved:
            logger.warning(
                "Generation request rejected by budget",
                extra={"expert_id": expert_id, "reason": decision.reason},
            )
            raise BudgetExceededError(decision.reason)

    async def _run_agent(self, agent: Any, input_data: Any, request_type: Any) -> Any:
        try:
            with self.monitor.track_request("llm", request_type):
                output = await agent.run(input_data)
        except ExpertPlannerError:
            raise
        except Exception as exc:
            raise GenerationError(f"{type(agent).__name__} failed: {exc}") from exc
        self.monitor.track_success("llm", agent.last_total_tokens)
        return output

    def _track_citations(self, validations: list[ValidationResult]) -> None:
        self.monitor.track_citation_validation(
            CitationCheck(
                is_valid=item.is_valid,
                validation_time_ms=float(item.response_time_ms or 0),
                authority_score=item.reliability_score,
            )
            for item in validations
        )

    # ------------------------------------------------------------------
    # Topics
    # ------------------------------------------------------------------

    def _topic_input(
        self,
        profile: ExpertProfile,
        count: int,
        research: ExpertResearchResult | None = None,
    ) -> TopicGeneratorInput:
        return TopicGeneratorInput(
            primary_expertise=profile.primary_expertise,
            secondary_expertise=list(profile.secondary_expertise or []),
            expertise_keywords=list(profile.expertise_keywords or []),
            voice_tone=list(profile.voice_tone or []),
            personal_branding=profile.personal_branding,
            platforms=list(profile.platforms or []),
            target_audience=profile.target_audience,
            content_goals=list(profile.content_goals or []),
            count=count,
            research_content=research.content if research else None,
            research_quality=research.quality_score if research else None,
            research_sources=research.sources if research else [],
        )

    async def _existing_topic_titles(self, expert_id: int) -> list[str]:
        result = await self.session.execute(select(Topic.title).where(Topic.expert_id == expert_id))
        return list(result.scalars().all())

    async def generate_topics(
        self,
        expert_id: int,
        profile: ExpertProfile,
        *,
        count: int = 3,
    ) -> TopicGenerationResult:
        self._check_budget(expert_id, profile, "topics")
        research_holder: dict[str, ExpertResearchResult] = {}
        research_service = (
            ExpertResearchService(self.search_client, self.validator, self.cache)
            if self.search_client is not None
            else None
        )

        async def research_backed() -> list[GeneratedTopic]:
            with self.monitor.track_request("perplexity", "topics"):
                research = await research_service.conduct(expert_id, profile)
            usage = {} if research.cached else research.metadata.get("token_usage", {})
            tokens = usage.get("total_tokens", 0)
            self.monitor.track_success("perplexity", int(tokens or 0))
            research_holder["research"] = research
            output = await self._run_agent(
                self.topic_agent, self._topic_input(profile, count, research), "topics"
            )
            return output.topics

        async def evergreen() -> list[GeneratedTopic]:
            output = await self._run_agent(self.topic_agent, self._topic_input(profile, count), "topics")
            return output.topics

        outcome: FallbackResult[list[GeneratedTopic]] = await self.fallback.execute(
            research_backed if research_service is not None else None,
            evergreen,
            operation_type="topics",
        )
        if outcome.fallback_used:
            self.monitor.track_fallback(outcome.fallback_reason or "unknown")

        research = None if outcome.fallback_used else research_holder.get("research")
        topics, skipped = await self._persist_topics(
            expert_id, profile, outcome.data[:count], outcome.source
        )

        if research is not None and research.research_cache_id is not None:
            await self.cache.track_usage(
                research_cache_id=research.research_cache_id,
                expert_id=expert_id,
                usage_type="topic_generation",
                topics_generated=len(topics),
            )

        self.optimizer.update_usage_pattern(
            expert_id,
            profile,
            actual_cost=estimate_llm_cost(self.topic_agent.last_total_tokens),
            response_quality=outcome.quality_score / 100,
        )

        logger.info(
            "Topics generated",
            extra={
                "expert_id": expert_id,
                "count": len(topics),
                "source": outcome.source,
                "skipped_duplicates": skipped,
            },
        )
        return TopicGenerationResult(
            topics=topics,
            source=outcome.source,
            fallback_used=outcome.fallback_used,
            fallback_reason=outcome.fallback_reason,
            quality_score=outcome.quality_score,
            reliability=outcome.reliability,
            research=research,
            skipped_duplicates=skipped,
        )

    async def _persist_topics(
        self,
        expert_id: int,
        profile: ExpertProfile,
        generated: list[GeneratedTopic],
        source: str,
    ) -> tuple[list[Topic], int]:
        existing_titles = await self._existing_topic_titles(expert_id)
        topics: list[Topic] = []
        skipped = 0

        for item in generated:
            if is_near_duplicate_title(item.title, existing_titles):
                skipped += 1
                continue
            alignment = score_topic_alignment(
                profile,
                title=item.title,
                description=item.description,
                tags=item.tags,
                viewpoints=[f"{vp.title} {vp.description}" for vp in item.viewpoints],
            )
            self.monitor.track_expertise_alignment(alignment, profile.primary_expertise)

            topic = Topic(
                expert_id=expert_id,
                title=item.title,
                description=item.description,
                category=item.category,
                status="active",
                trending=False,
                engagement="normal",
                is_recommended=is_recommended(alignment),
                tags=list(item.tags),
                alignment_score=alignment,
                generation_source=source,
                research_source=item.source,
                viewpoints=[
                    Viewpoint(title=vp.title, description=vp.description) for vp in item.viewpoints
                ],
            )
            self.session.add(topic)
            topics.append(topic)
            existing_titles.append(item.title)

        await self.session.flush()
        for topic in topics:
            await self.session.refresh(topic, attribute_names=["viewpoints", "created_at", "updated_at"])
            for viewpoint in topic.viewpoints:
                await self.session.refresh(viewpoint)
        return topics, skipped

    # ------------------------------------------------------------------
    # Content ideas
    # ------------------------------------------------------------------

    async def _topic_research(
        self, topic: Topic, profile: ExpertProfile
    ) -> tuple[str | None, list[str]]:
        """Search for recent coverage of a topic; returns content and validated sources."""
        if self.search_client is None:
            return None, []

        query = build_topic_research_query(topic, profile)
        try:
            with self.monitor.track_request("perplexity", "content_ideas"):
                response = await self.search_client.search(
                    query,
                    recency="week",
                    max_results=TOPIC_RESEARCH_MAX_RESULTS,
                )
            self.monitor.track_success("perplexity", response.total_tokens)
            with self.monitor.track_validation():
                validations = await self.validator.validate_batch(response.sources)
        except Exception as exc:
            logger.warning(
                "Topic research failed, generating without research context",
                extra={"topic_id": topic.id, "error": str(exc)},
            )
            self.monitor.track_fallback("topic_research_failed")
            return None, []

        self._track_citations(validations)
        valid_sources = [item.url for item in validations if item.is_valid][
            :MAX_RESEARCH_SOURCES_PER_IDEA
        ]
        return response.content, valid_sources

    async def generate_content_ideas(
        self,
        expert_id: int,
        profile: ExpertProfile,
        topic: Topic,
        platform: str,
    ) -> ContentIdeaGenerationResult:
        self._check_budget(expert_id, profile, "content_ideas")
        research_content, research_sources = await self._topic_research(topic, profile)

        profile_sources = profile.information_source_urls
        allowed_sources = list(dict.fromkeys([*research_sources, *profile_sources]))

        output = await self._run_agent(
            self.idea_agent,
            ContentIdeaGeneratorInput(
                platform=platform,
                topic_title=topic.title,
                topic_description=topic.description,
                viewpoints=[f"{vp.title}: {vp.description}" for vp in topic.viewpoints],
                expertise_keywords=list(profile.expertise_keywords or []),
                voice_tone=list(profile.voice_tone or []),
                research_content=research_content,
                trusted_sources=[
                    {"name": str(item.get("name", "")), "url": str(item.get("url", ""))}
                    for item in (profile.information_sources or [])
                ],
                allowed_sources=allowed_sources,
                idea_count=CONTENT_IDEAS_PER_REQUEST,
            ),
            "content_ideas",
        )

        ideas: list[ContentIdea] = []
        dropped_total = 0
        for generated in output.content_ideas:
            sources, dropped = filter_idea_sources(generated, allowed_sources)
            dropped_total += dropped
            idea = ContentIdea(
                topic_id=topic.id,
                platform=platform,
                title=generated.title,
                description=generated.description,
                format=generated.format,
                key_points=list(generated.key_points),
                sources=sources,
                saved=False,
            )
            self.session.add(idea)
            ideas.append(idea)

        await self.session.flush()
        for idea in ideas:
            await self.session.refresh(idea)

        self.optimizer.update_usage_pattern(
            expert_id,
            profile,
            actual_cost=estimate_llm_cost(self.idea_agent.last_total_tokens),
            response_quality=1.0 if research_content else 0.75,
        )

        if dropped_total:
            logger.warning(
                "Dropped sources outside the allowed list",
                extra={"topic_id": topic.id, "dropped": dropped_total},
            )
        logger.info(
            "Content ideas generated",
            extra={
                "topic_id": topic.id,
                "platform": platform,
                "count": len(ideas),
                "research_used": research_content is not None,
            },
        )
        return ContentIdeaGenerationResult(
            ideas=ideas,
            research_used=research_content is not None,
            allowed_sources=allowed_sources,
            dropped_sources=dropped_total,
        )
