"""Development helper: drop the public schema and recreate all ExpertPlanner tables."""

from __future__ import annotations

import argparse
import asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from app.config import settings
from app.models import Base


async def _reset_schema(*, create_tables: bool) -> None:
    engine = create_async_engine(settings.database_url)
    try:
        async with engine.begin() as conn:
            await conn.execute(text("DROP SCHEMA IF EXISTS public CASCADE"))
            await conn.execute(text("CREATE SCHEMA public"))
            await conn.execute(text("GRANT ALL ON SCHEMA public TO public"))
            if create_tables:
                await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--empty",
        action="store_true",
        help="Leave the schema empty (e.g. to run alembic upgrade afterwards)",
    )
    args = parser.parse_args()

    asyncio.run(_reset_schema(create_tables=not args.empty))
    print("Database schema reset complete")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
