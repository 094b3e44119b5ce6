"""Unit tests for research-grounded topic and content idea generation."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from app.agents.content_idea_generator import (
    NO_SOURCES_PLACEHOLDER,
    ContentIdeaGeneratorOutput,
    GeneratedContentIdea,
)
from app.agents.topic_generator import (
    GeneratedTopic,
    GeneratedViewpoint,
    TopicGeneratorOutput,
)
from app.core.exceptions import BudgetExceededError, FallbackExhaustedError, GenerationError
from app.integrations.perplexity import SearchResult
from app.models.topic import Topic, Viewpoint
from app.services.content_generation import (
    ContentGenerationService,
    build_topic_research_query,
    filter_idea_sources,
)
from app.services.cost_optimizer import CostOptimizer
from app.services.fallback_system import FallbackSystem
from app.services.monitoring import MonitoringService
from app.services.source_validator import ValidationResult


class _FakeScalarResult:
    def __init__(self, values: list[Any]) -> None:
        self._values = values

    def scalars(self) -> _FakeScalarResult:
        return self

    def all(self) -> list[Any]:
        return list(self._values)


class _FakeSession:
    def __init__(self, existing_titles: list[str] | None = None) -> None:
        self.existing_titles = existing_titles or []
        self.added: list[Any] = []
        self.flushes = 0

    async def execute(self, statement: Any) -> _FakeScalarResult:
        return _FakeScalarResult(self.existing_titles)

    def add(self, instance: Any) -> None:
        self.added.append(instance)

    async def flush(self) -> None:
        self.flushes += 1

    async def refresh(self, instance: Any, attribute_names: list[str] | None = None) -> None:
        return None


class _FakeAgent:
    def __init__(self, output: Any = None, *, error: Exception | None = None) -> None:
        self.output = output
        self.error = error
        self.inputs: list[Any] = []
        self.last_total_tokens = 0

    async def run(self, input_data: Any) -> Any:
        self.inputs.append(input_data)
        if self.error is not None:
            raise self.error
        self.last_total_tokens = 1200
        return self.output


class _FakeCache:
    async def track_usage(self, **kwargs: Any) -> None:
        return None


class _FakeSearchClient:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.queries: list[str] = []

    async def search(self, query: str, **kwargs: Any) -> SearchResult:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return SearchResult(
            content="Teams are rethinking async rituals.",
            sources=["https://hbr.org/async", "https://spam.io/x"],
            usage={"total_tokens": 300},
        )


class _FakeValidator:
    async def validate_batch(self, urls: list[str]) -> list[ValidationResult]:
        return [
            ValidationResult(
                url=url,
                is_valid="hbr" in url,
                reliability_score=95 if "hbr" in url else 10,
                response_time_ms=120,
            )
            for url in urls
        ]


async def _no_sleep(seconds: float) -> None:
    return None


def _profile(**overrides: Any) -> SimpleNamespace:
    values: dict[str, Any] = {
        "primary_expertise": "Leadership coaching",
        "secondary_expertise": [],
        "expertise_keywords": ["remote teams", "burnout", "hiring"],
        "voice_tone": ["direct"],
        "personal_branding": None,
        "platforms": ["LinkedIn"],
        "target_audience": "startup founders",
        "content_goals": ["authority"],
        "information_sources": [{"name": "MIT", "url": "https://mit.edu/work"}],
    }
    values.update(overrides)
    profile = SimpleNamespace(**values)
    profile.information_source_urls = [item["url"] for item in profile.information_sources]
    return profile


def _service(
    session: _FakeSession,
    *,
    search_client: Any = None,
    topic_agent: Any = None,
    idea_agent: Any = None,
    optimizer: CostOptimizer | None = None,
) -> tuple[ContentGenerationService, MonitoringService]:
    monitor = MonitoringService()
    service = ContentGenerationService(
        session,  # type: ignore[arg-type]
        search_client=search_client,
        validator=_FakeValidator(),  # type: ignore[arg-type]
        cache=_FakeCache(),  # type: ignore[arg-type]
        topic_agent=topic_agent or _FakeAgent(),
        idea_agent=idea_agent or _FakeAgent(),
        fallback=FallbackSystem(max_primary_attempts=1, max_backoff_seconds=0, sleep=_no_sleep),
        monitor=monitor,
        optimizer=optimizer or CostOptimizer(daily_budget=50.0, per_expert_daily_limit=10.0),
    )
    return service, monitor


def _generated_topics() -> TopicGeneratorOutput:
    return TopicGeneratorOutput(
        topics=[
            GeneratedTopic(
                title="Spotting burnout in remote teams",
                description="Leadership coaching signals founders should watch",
                category="Leadership",
                tags=["burnout", "remote teams"],
                viewpoints=[GeneratedViewpoint(title="Hiring", description="Hiring for resilience")],
            ),
            GeneratedTopic(
                title="How leaders prevent burnout",
                description="Duplicate of an existing topic",
                category="Leadership",
            ),
        ]
    )


def test_filter_idea_sources_keeps_allowed_urls_in_order() -> None:
    idea = GeneratedContentIdea(
        title="t",
        description="d",
        format="post",
        sources=["https://b.org", "https://invented.io", "https://a.org", "https://b.org"],
    )

    kept, dropped = filter_idea_sources(idea, ["https://a.org", "https://b.org"])

    assert kept == ["https://b.org", "https://a.org"]
    assert dropped == 2


def test_filter_idea_sources_uses_placeholder_when_nothing_survives() -> None:
    idea = GeneratedContentIdea(
        title="t",
        description="d",
        format="post",
        sources=[NO_SOURCES_PLACEHOLDER, "https://invented.io"],
    )

    assert filter_idea_sources(idea, []) == ([NO_SOURCES_PLACEHOLDER], 1)


def test_topic_research_query_uses_two_keywords() -> None:
    topic = SimpleNamespace(title="Async rituals", description="What replaces standups")

    assert build_topic_research_query(topic, _profile()) == (
        "Async rituals What replaces standups remote teams burnout"
    )


@pytest.mark.asyncio
async def test_generate_topics_without_search_uses_evergreen_path() -> None:
    session = _FakeSession(existing_titles=["Why leaders prevent burnout"])
    agent = _FakeAgent(_generated_topics())
    service, monitor = _service(session, topic_agent=agent)

    result = await service.generate_topics(1, _profile(), count=2)

    assert result.fallback_used is True
    assert result.fallback_reason == "research_unavailable"
    assert result.source == "fallback"
    assert result.skipped_duplicates == 1
    assert agent.inputs[0].research_content is None
    assert agent.inputs[0].count == 2

    [topic] = result.topics
    assert topic.title == "Spotting burnout in remote teams"
    assert topic.generation_source == "fallback"
    assert topic.is_recommended is True
    assert topic.trending is False
    assert [vp.title for vp in topic.viewpoints] == ["Hiring"]
    assert session.added == [topic]
    assert monitor.fallbacks == 1


@pytest.mark.asyncio
async def test_generate_topics_persists_at_most_the_requested_count() -> None:
    session = _FakeSession()
    agent = _FakeAgent(_generated_topics())
    service, _ = _service(session, topic_agent=agent)

    result = await service.generate_topics(1, _profile(), count=1)

    assert [topic.title for topic in result.topics] == ["Spotting burnout in remote teams"]
    assert len(session.added) == 1


@pytest.mark.asyncio
async def test_generate_topics_rejected_by_budget_does_not_call_agent() -> None:
    optimizer = CostOptimizer(daily_budget=1.0)
    optimizer.current_daily_cost = 1.0
    agent = _FakeAgent(_generated_topics())
    service, _ = _service(_FakeSession(), topic_agent=agent, optimizer=optimizer)

    with pytest.raises(BudgetExceededError):
        await service.generate_topics(1, _profile())

    assert agent.inputs == []


@pytest.mark.asyncio
async def test_generate_topics_raises_when_every_path_fails() -> None:
    agent = _FakeAgent(error=RuntimeError("model overloaded"))
    service, _ = _service(_FakeSession(), topic_agent=agent)

    with pytest.raises(FallbackExhaustedError):
        await service.generate_topics(1, _profile())


@pytest.mark.asyncio
async def test_generate_content_ideas_restricts_sources_to_research_and_profile() -> None:
    session = _FakeSession()
    idea_agent = _FakeAgent(
        ContentIdeaGeneratorOutput(
            content_ideas=[
                GeneratedContentIdea(
                    title="Async standups",
                    description="Replace the daily call",
                    format="carousel",
                    key_points=["a", "b", "c"],
                    sources=["https://hbr.org/async", "https://fabricated.io/report"],
                ),
                GeneratedContentIdea(
                    title="Burnout check-ins",
                    description="Weekly pulse",
                    format="post",
                    sources=["https://spam.io/x"],
                ),
            ]
        )
    )
    search_client = _FakeSearchClient()
    service, monitor = _service(session, search_client=search_client, idea_agent=idea_agent)
    topic = Topic(
        id=5,
        title="Async rituals",
        description="What replaces standups",
        viewpoints=[Viewpoint(title="Less meetings", description="Write more")],
    )

    result = await service.generate_content_ideas(1, _profile(), topic, "LinkedIn")

    assert search_client.queries == ["Async rituals What replaces standups remote teams burnout"]
    assert result.research_used is True
    assert result.allowed_sources == ["https://hbr.org/async", "https://mit.edu/work"]
    assert result.dropped_sources == 2
    assert [idea.sources for idea in result.ideas] == [
        ["https://hbr.org/async"],
        [NO_SOURCES_PLACEHOLDER],
    ]
    assert all(idea.topic_id == 5 and idea.platform == "LinkedIn" for idea in result.ideas)

    agent_input = idea_agent.inputs[0]
    assert agent_input.idea_count == 2
    assert agent_input.viewpoints == ["Less meetings: Write more"]
    assert agent_input.trusted_sources == [{"name": "MIT", "url": "https://mit.edu/work"}]
    assert monitor.citation_metrics()["broken_citations"] == 1
    assert monitor.total_requests == 2
    assert monitor.success_rate == 1.0
    assert monitor.service_requests["perplexity"] == 1
    assert monitor.cost_metrics()["request_breakdown"]["validation"] == 1
    assert len(monitor.service_latency["validation"]) == 1


@pytest.mark.asyncio
async def test_generate_content_ideas_survives_research_failure() -> None:
    idea_agent = _FakeAgent(
        ContentIdeaGeneratorOutput(
            content_ideas=[GeneratedContentIdea(title="t", description="d", format="post")]
        )
    )
    service, monitor = _service(
        _FakeSession(),
        search_client=_FakeSearchClient(error=RuntimeError("search down")),
        idea_agent=idea_agent,
    )
    topic = Topic(id=5, title="Async rituals", description="d", viewpoints=[])

    result = await service.generate_content_ideas(1, _profile(), topic, "Twitter")

    assert result.research_used is False
    assert result.allowed_sources == ["https://mit.edu/work"]
    assert result.ideas[0].sources == [NO_SOURCES_PLACEHOLDER]
    assert monitor.fallbacks == 1


@pytest.mark.asyncio
async def test_generate_content_ideas_wraps_agent_failures() -> None:
    service, _ = _service(
        _FakeSession(),
        idea_agent=_FakeAgent(error=RuntimeError("bad output")),
    )
    topic = Topic(id=5, title="Async rituals", description="d", viewpoints=[])

    with pytest.raises(GenerationError):
        await service.generate_content_ideas(1, _profile(), topic, "Twitter")
