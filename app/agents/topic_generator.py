"""Topic generator agent: strategic content topics for an expert."""

import logging

from pydantic import BaseModel, Field

from app.agents.base_agent import BaseAgent

logger = logging.getLogger(__name__)


class GeneratedViewpoint(BaseModel):
    """A distinct angle on a topic."""

    title: str = Field(description="Short name of the angle, e.g. 'The contrarian take'")
    description: str = Field(description="One or two sentences describing the argument")


class GeneratedTopic(BaseModel):
    """A strategic content theme."""

    title: str = Field(description="Specific, compelling topic title")
    description: str = Field(description="Why this topic matters now and what it covers")
    category: str = Field(description="Broad category, e.g. 'Industry Trends', 'Leadership'")
    tags: list[str] = Field(default_factory=list, description="3-5 short tags")
    source: str | None = Field(
        default=None,
        description="The research insight or source URL this topic builds on, if any",
    )
    viewpoints: list[GeneratedViewpoint] = Field(
        default_factory=list,
        description="Distinct angles the expert can take on this topic",
    )


class TopicGeneratorInput(BaseModel):
    """Input for topic generator agent."""

    primary_expertise: str
    secondary_expertise: list[str] = Field(default_factory=list)
    expertise_keywords: list[str] = Field(default_factory=list)
    voice_tone: list[str] = Field(default_factory=list)
    personal_branding: str | None = None
    platforms: list[str] = Field(default_factory=list)
    target_audience: str | None = None
    content_goals: list[str] = Field(default_factory=list)
    count: int = Field(default=3, ge=1, le=10)
    research_content: str | None = Field(
        default=None,
        description="Market intelligence to ground the topics; None requests evergreen topics.",
    )
    research_quality: int | None = None
    research_sources: list[str] = Field(default_factory=list)


class TopicGeneratorOutput(BaseModel):
    """Output from topic generator agent."""

    topics: list[GeneratedTopic]


class TopicGeneratorAgent(BaseAgent[TopicGeneratorInput, TopicGeneratorOutput]):
    """Agent that turns market research and an expert profile into topics.

    Without research input it falls back to evergreen topics drawn from the
    expert's own positioning.
    """

    model_tier = "reasoning"
    temperature = 0.7

    @property
    def system_prompt(self) -> str:
        return """You are a strategic content planning assistant for field experts. Your role is to analyze current market intelligence and generate highly relevant, strategic content topics.

## REQUIREMENTS

1. When market intelligence is provided, base EVERY topic on it and reference the specific insight each topic builds on in `source`.
2. Align topics with the expert's positioning, voice and content goals.
3. Keep topics platform-appropriate and relevant to the stated audience.
4. Favour thought leadership opportunities over generic advice.
5. Give each topic exactly 5 viewpoints: distinct angles the expert could argue, not restatements of the title.

## WHEN NO RESEARCH IS PROVIDED

Generate evergreen topics from the expert's expertise and keywords. Do not claim recency, statistics or events you were not given. Leave `source` empty.

## NEVER

- Invent URLs, studies, statistics or quotes.
- Produce duplicate or near-duplicate topics.
- Return more or fewer topics than requested."""

    @property
    def output_type(self) -> type[TopicGeneratorOutput]:
        return TopicGeneratorOutput

    def _build_prompt(self, input_data: TopicGeneratorInput) -> str:
        profile = f"""## Expert Profile
- Primary expertise: {input_data.primary_expertise}
- Secondary expertise: {', '.join(input_data.secondary_expertise) or 'None'}
- Expertise keywords: {', '.join(input_data.expertise_keywords) or 'None'}
- Voice tone: {', '.join(input_data.voice_tone) or 'Not specified'}
- Personal branding: {input_data.personal_branding or 'Not specified'}
- Platforms: {', '.join(input_data.platforms) or 'Not specified'}
- Target audience: {input_data.target_audience or 'Not specified'}
- Content goals: {', '.join(input_data.content_goals) or 'Not specified'}"""

        if input_data.research_content:
            sources = "\n".join(f"- {url}" for url in input_data.research_sources) or "- None"
            research = f"""## Market Intelligence (last 24 hours)

{input_data.research_content}

### Research Metadata
- Quality score: {input_data.research_quality if input_data.research_quality is not None else 'unknown'}%
- Sources:
{sources}"""
            task = (
                f"Generate exactly {input_data.count} strategic topics that translate this market "
                "intelligence into actionable content opportunities for this expert."
            )
        else:
            research = "## Market Intelligence\n\nNone available. Generate evergreen topics."
            task = (
                f"Generate exactly {input_data.count} evergreen strategic topics grounded in this "
                "expert's positioning and goals."
            )

        return f"{profile}\n\n{research}\n\n## Task\n{task}"
