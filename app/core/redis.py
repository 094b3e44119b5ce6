"""Redis client helpers."""

import json
import logging
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.config import settings

logger = logging.getLogger(__name__)

_redis_client: Redis | None = None


class RedisJSONCache:
    """JSON value cache over the shared Redis client.

    Redis failures are logged and treated as cache misses so that a cache
    outage never blocks validation or research.
    """

    def __init__(self, client: Redis, *, namespace: str) -> None:
        self._client = client
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> dict[str, Any] | None:
        try:
            raw = await self._client.get(self._key(key))
        except RedisError as exc:
            logger.warning(
                "Redis cache read failed",
                extra={"namespace": self._namespace, "error": str(exc)},
            )
            return None
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            return None
        return value if isinstance(value, dict) else None

    async def set(self, key: str, value: dict[str, Any], *, ttl_seconds: int) -> None:
        try:
            await self._client.set(
                self._key(key),
                json.dumps(value, default=str),
                ex=ttl_seconds,
            )
        except RedisError as exc:
            logger.warning(
                "Redis cache write failed",
                extra={"namespace": self._namespace, "error": str(exc)},
            )

    async def clear(self) -> int:
        """Delete every key in this namespace."""
        deleted = 0
        try:
            async for key in self._client.scan_iter(match=self._key("*")):
                deleted += int(await self._client.delete(key))
        except RedisError as exc:
            logger.warning(
                "Redis cache clear failed",
                extra={"namespace": self._namespace, "error": str(exc)},
            )
        return deleted


def get_redis_client() -> Redis:
    """Get a shared Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(settings.redis_url, decode_responses=True)
    return _redis_client


def get_json_cache(namespace: str) -> RedisJSONCache:
    """Get a namespaced JSON cache on the shared Redis client."""
    return RedisJSONCache(get_redis_client(), namespace=namespace)


async def close_redis() -> None:
    """Close Redis client connections."""
    global _redis_client
    if _redis_client is None:
        return

    await _redis_client.aclose()
    _redis_client = None
    logger.info("Redis connection closed")
