"""SQLAlchemy database models."""
from dotenv import load_dotenv
from app.models.base import Base
from app.models.content import ContentIdea, ScheduledContent
from app.models.expert import Expert, ExpertProfile
from app.models.research import ResearchCache, ResearchUsage
from app.models.topic import Topic, Viewpoint


load_dotenv()

__all__ = [
    "Base",
    "Expert",
    "ExpertProfile",
    "Topic",
    "Viewpoint",
    "ContentIdea",
    "ScheduledContent",
    "ResearchCache",
    "ResearchUsage",
]
