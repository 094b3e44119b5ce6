"""Dependencies for routes that call the search API."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends

from app.config import settings
from app.integrations.perplexity import PerplexityClient
from app.services.source_validator import SourceValidator, get_source_validator


async def get_search_client() -> AsyncGenerator[PerplexityClient | None, None]:
    """Yield an open search client, or None when no API key is configured."""
    if not settings.perplexity_enabled:
        yield None
        return

    async with PerplexityClient() as client:
        yield client


SearchClientDep = Annotated[PerplexityClient | None, Depends(get_search_client)]
SourceValidatorDep = Annotated[SourceValidator, Depends(get_source_validator)]
