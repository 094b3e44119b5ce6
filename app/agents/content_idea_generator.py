"""Content idea generator agent: platform-specific post concepts for a topic."""

from pydantic import BaseModel, Field

from app.agents.base_agent import BaseAgent

NO_SOURCES_PLACEHOLDER = "No sources available - manual research required"
MAX_PROMPT_SOURCES = 8


class GeneratedContentIdea(BaseModel):
    """One post concept."""

    title: str
    description: str = Field(description="Brief description of the idea")
    format: str = Field(description="Format type, e.g. 'post', 'carousel', 'article', 'thread'")
    key_points: list[str] = Field(default_factory=list, description="3 key points")
    sources: list[str] = Field(
        default_factory=list,
        description="URLs copied exactly from the allowed source list",
    )


class ContentIdeaGeneratorInput(BaseModel):
    """Input for content idea generator agent."""

    platform: str
    topic_title: str
    topic_description: str
    viewpoints: list[str] = Field(default_factory=list)
    expertise_keywords: list[str] = Field(default_factory=list)
    voice_tone: list[str] = Field(default_factory=list)
    research_content: str | None = None
    trusted_sources: list[dict[str, str]] = Field(
        default_factory=list,
        description="Expert-configured sources as {name, url}",
    )
    allowed_sources: list[str] = Field(default_factory=list)
    idea_count: int = Field(default=2, ge=1, le=5)


class ContentIdeaGeneratorOutput(BaseModel):
    """Output from content idea generator agent."""

    content_ideas: list[GeneratedContentIdea]


class ContentIdeaGeneratorAgent(BaseAgent[ContentIdeaGeneratorInput, ContentIdeaGeneratorOutput]):
    """Agent that drafts content ideas restricted to a known set of source URLs."""

    model_tier = "standard"
    temperature = 0.7

    @property
    def system_prompt(self) -> str:
        return f"""You are a strategic content planning assistant for field experts. You generate content ideas for one specific social media platform based on a topic.

Each content idea must:
1. Be optimized for the requested platform's formats and norms
2. Be relevant to the topic and its description
3. Reflect the expert's keywords and voice tone
4. Use the provided viewpoints where they fit

## STRICT SOURCE RULES

- You may ONLY cite URLs that appear in the ALLOWED SOURCES list of the request, copied exactly.
- Never create, shorten or modify a URL. Never cite a domain homepage that is not in the list.
- If the list is empty or nothing in it is relevant, use exactly: "{NO_SOURCES_PLACEHOLDER}"."""

    @property
    def output_type(self) -> type[ContentIdeaGeneratorOutput]:
        return ContentIdeaGeneratorOutput

    def _build_prompt(self, input_data: ContentIdeaGeneratorInput) -> str:
        lines = [
            f"Please generate {input_data.idea_count} content ideas for this topic on {input_data.platform}:",
            f"- Topic: {input_data.topic_title}",
            f"- Description: {input_data.topic_description}",
            f"- Viewpoints to consider: {', '.join(input_data.viewpoints) or 'None'}",
            f"- My expertise keywords: {', '.join(input_data.expertise_keywords) or 'None'}",
            f"- My voice tone: {', '.join(input_data.voice_tone) or 'Not specified'}",
        ]

        if input_data.trusted_sources:
            lines.append("")
            lines.append("EXPERT'S TRUSTED SOURCES:")
            lines.extend(
                f"- {source.get('name', 'Source')}: {source.get('url', '')}"
                for source in input_data.trusted_sources
                if source.get("url")
            )

        if input_data.research_content:
            lines.append("")
            lines.append("CURRENT TOPIC RESEARCH (last 7 days):")
            lines.append(input_data.research_content)

        lines.append("")
        allowed = input_data.allowed_sources[:MAX_PROMPT_SOURCES]
        if allowed:
            lines.append("ALLOWED SOURCES (cite only these, exactly as written):")
            lines.extend(allowed)
        else:
            lines.append(
                f'ALLOWED SOURCES: none. Use exactly "{NO_SOURCES_PLACEHOLDER}" for every idea\'s sources.'
            )

        return "\n".join(lines)
