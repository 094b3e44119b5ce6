"""Create a demo expert with a complete profile for local development."""

from __future__ import annotations

import argparse
import asyncio

from sqlalchemy import select

from app.core.database import get_session_context
from app.core.security import get_password_hash
from app.models import Expert, ExpertProfile

DEMO_PROFILE = {
    "primary_expertise": "Data Engineering",
    "secondary_expertise": ["Analytics Engineering", "Cloud Architecture"],
    "expertise_keywords": ["data pipelines", "dbt", "lakehouse"],
    "voice_tone": ["pragmatic", "educational"],
    "personal_branding": "Hands-on data platform lead sharing field lessons",
    "platforms": ["LinkedIn", "Twitter"],
    "information_sources": [
        {"name": "Martin Fowler", "url": "https://martinfowler.com"},
        {"name": "Harvard Business Review", "url": "https://hbr.org"},
    ],
    "target_audience": "Data leaders at mid-size companies",
    "content_goals": ["thought leadership", "community building"],
}


async def _seed(username: str, password: str) -> str:
    async with get_session_context() as session:
        result = await session.execute(select(Expert).where(Expert.username == username))
        if result.scalar_one_or_none() is not None:
            return f"Expert '{username}' already exists"

        expert = Expert(
            username=username,
            hashed_password=get_password_hash(password),
            name="Demo Expert",
            role="Head of Data",
            profile_complete=True,
        )
        session.add(expert)
        await session.flush()
        session.add(ExpertProfile(expert_id=expert.id, **DEMO_PROFILE))
        return f"Created expert '{username}' (id={expert.id})"


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--username", default="demo")
    parser.add_argument("--password", default="demo-password")
    args = parser.parse_args()

    print(asyncio.run(_seed(args.username, args.password)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
