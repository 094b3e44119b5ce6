"""Research-backed generation with retry and a research-free fallback path."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, Literal, TypeVar

from app.config import settings
from app.core.exceptions import FallbackExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

OperationType = Literal["topics", "content_ideas"]
ResultSource = Literal["research", "fallback"]

UNHEALTHY_ERROR_RATE = 0.5
UNAVAILABLE_ERROR_RATE = 0.8
UNHEALTHY_RESPONSE_SECONDS = 30.0
PRIMARY_BASE_QUALITY = 90
FALLBACK_BASE_QUALITY = 75
PRIMARY_RELIABILITY = 95
FALLBACK_RELIABILITY = 85


@dataclass
class ServiceHealthState:
    available: bool = True
    response_time: float = 0.0
    error_rate: float = 0.0
    last_check: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def record(self, *, success: bool, response_time: float = 0.0) -> None:
        """Fold one outcome into the moving averages."""
        if response_time > 0:
            self.response_time = (
                response_time
                if self.response_time == 0
                else self.response_time * 0.7 + response_time * 0.3
            )
        self.error_rate = self.error_rate * 0.8 + (0.0 if success else 1.0) * 0.2
        self.available = self.error_rate < UNAVAILABLE_ERROR_RATE
        self.last_check = datetime.now(timezone.utc)

    @property
    def healthy(self) -> bool:
        return (
            self.available
            and self.error_rate <= UNHEALTHY_ERROR_RATE
            and self.response_time <= UNHEALTHY_RESPONSE_SECONDS
        )


@dataclass
class FallbackResult(Generic[T]):
    data: T
    source: ResultSource
    fallback_used: bool
    quality_score: int
    reliability: int
    fallback_reason: str | None = None


def _item_field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def calculate_result_quality(result: Any, source: ResultSource) -> int:
    """Base score by path, plus completeness bonuses for list results."""
    score = PRIMARY_BASE_QUALITY if source == "research" else FALLBACK_BASE_QUALITY
    if isinstance(result, Sequence) and not isinstance(result, str | bytes):
        if len(result) >= 3:
            score += 5
        if all(_item_field(item, "title") and _item_field(item, "description") for item in result):
            score += 5
    return min(100, score)


class FallbackSystem:
    """Run a research-backed operation, degrading to a fallback when it fails.

    The research path is skipped up front while its service health looks bad;
    otherwise it gets a bounded number of attempts with exponential backoff.
    """

    def __init__(
        self,
        *,
        max_primary_attempts: int | None = None,
        max_backoff_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.max_primary_attempts = max_primary_attempts or settings.fallback_max_primary_attempts
        self.max_backoff_seconds = (
            max_backoff_seconds
            if max_backoff_seconds is not None
            else settings.fallback_max_backoff_seconds
        )
        self._sleep = sleep
        self.health: dict[str, ServiceHealthState] = {
            "research": ServiceHealthState(),
            "fallback": ServiceHealthState(),
        }
        self.total_requests = 0
        self.primary_successes = 0
        self.fallbacks_used = 0

    def backoff_delay(self, attempt: int) -> float:
        return min(1.0 * 2 ** (attempt - 1), self.max_backoff_seconds)

    async def execute(
        self,
        primary: Callable[[], Awaitable[T]] | None,
        fallback: Callable[[], Awaitable[T]],
        *,
        operation_type: OperationType,
    ) -> FallbackResult[T]:
        """Run `primary` with retries, or `fallback` when it is absent or keeps failing."""
        self.total_requests += 1

        if primary is None:
            return await self._run_fallback(fallback, operation_type, "research_unavailable")

        if not self.health["research"].healthy:
            logger.info(
                "Pre-emptive fallback due to research service health",
                extra={"operation_type": operation_type},
            )
            return await self._run_fallback(fallback, operation_type, "service_health")

        last_error = "unknown_error"
        for attempt in range(1, self.max_primary_attempts + 1):
            started = time.perf_counter()
            try:
                result = await primary()
            except Exception as exc:
                last_error = str(exc) or type(exc).__name__
                self.health["research"].record(success=False)
                logger.warning(
                    "Research-backed attempt failed",
                    extra={
                        "operation_type": operation_type,
                        "attempt": attempt,
                        "error": last_error,
                    },
                )
                if attempt < self.max_primary_attempts:
                    await self._sleep(self.backoff_delay(attempt))
                continue

            elapsed = time.perf_counter() - started
            self.health["research"].record(success=True, response_time=elapsed)
            self.primary_successes += 1
            logger.info(
                "Research-backed generation succeeded",
                extra={"operation_type": operation_type, "duration_s": round(elapsed, 2)},
            )
            return FallbackResult(
                data=result,
                source="research",
                fallback_used=False,
                quality_score=calculate_result_quality(result, "research"),
                reliability=PRIMARY_RELIABILITY,
            )

        return await self._run_fallback(fallback, operation_type, last_error)

    async def _run_fallback(
        self,
        fallback: Callable[[], Awaitable[T]],
        operation_type: OperationType,
        reason: str,
    ) -> FallbackResult[T]:
        self.fallbacks_used += 1
        started = time.perf_counter()
        try:
            result = await fallback()
        except Exception as exc:
            self.health["fallback"].record(success=False)
            logger.error(
                "Fallback generation failed",
                extra={"operation_type": operation_type, "reason": reason, "error": str(exc)},
            )
            raise FallbackExhaustedError(operation_type, reason, str(exc)) from exc

        self.health["fallback"].record(success=True, response_time=time.perf_counter() - started)
        logger.info(
            "Fallback generation used",
            extra={"operation_type": operation_type, "reason": reason},
        )
        return FallbackResult(
            data=result,
            source="fallback",
            fallback_used=True,
            fallback_reason=reason,
            quality_score=calculate_result_quality(result, "fallback"),
            reliability=FALLBACK_RELIABILITY,
        )

    def stats(self) -> dict[str, Any]:
        fallback_rate = (
            round(self.fallbacks_used / self.total_requests * 100, 1) if self.total_requests else 0.0
        )
        return {
            "total_requests": self.total_requests,
            "primary_successes": self.primary_successes,
            "fallbacks_used": self.fallbacks_used,
            "fallback_rate": fallback_rate,
            "service_health": {
                name: {**asdict(state), "last_check": state.last_check.isoformat()}
                for name, state in self.health.items()
            },
        }

    def reset(self) -> None:
        self.total_requests = 0
        self.primary_successes = 0
        self.fallbacks_used = 0
        self.health = {"research": ServiceHealthState(), "fallback": ServiceHealthState()}
        logger.info("Fallback statistics reset")


fallback_system = FallbackSystem()
