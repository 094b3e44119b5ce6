"""Unit tests for source URL validation and scoring."""

from __future__ import annotations

from typing import Any

import httpx
import pytest

from app.services.source_validator import (
    SourceValidator,
    ValidationResult,
    calculate_final_score,
    estimate_content_quality,
    high_quality_sources,
    is_blacklisted,
    lookup_trusted_domain,
    reliability_summary,
)


class _FakeCache:
    def __init__(self) -> None:
        self.values: dict[str, dict[str, Any]] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> dict[str, Any] | None:
        return self.values.get(key)

    async def set(self, key: str, value: dict[str, Any], *, ttl_seconds: int) -> None:
        self.values[key] = value
        self.ttls[key] = ttl_seconds

    async def clear(self) -> int:
        count = len(self.values)
        self.values.clear()
        return count


class _FakeResponse:
    def __init__(self, status_code: int, reason_phrase: str) -> None:
        self.status_code = status_code
        self.reason_phrase = reason_phrase

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


def _install_fake_http(
    monkeypatch: pytest.MonkeyPatch,
    responses: dict[str, _FakeResponse | Exception] | None = None,
) -> list[str]:
    requested: list[str] = []
    responses = responses or {}

    class FakeAsyncClient:
        def __init__(self, *args: Any, **kwargs: Any) -> None:
            pass

        async def __aenter__(self) -> FakeAsyncClient:
            return self

        async def __aexit__(self, *exc: Any) -> None:
            return None

        async def head(self, url: str, headers: dict[str, str]) -> _FakeResponse:
            requested.append(url)
            outcome = responses.get(url, _FakeResponse(200, "OK"))
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

    monkeypatch.setattr("app.services.source_validator.httpx.AsyncClient", FakeAsyncClient)
    return requested


async def _no_sleep(seconds: float) -> None:
    return None


def test_blacklist_matches_subdomains() -> None:
    assert is_blacklisted("reddit.com")
    assert is_blacklisted("old.reddit.com")
    assert not is_blacklisted("hbr.org")


def test_trusted_lookup_prefers_most_specific_domain() -> None:
    assert lookup_trusted_domain("sloanreview.mit.edu") == ("high", 94)
    assert lookup_trusted_domain("blog.hbr.org") == ("high", 95)
    assert lookup_trusted_domain("acme.io") is None


def test_content_quality_heuristics() -> None:
    assert estimate_content_quality("cs.stanford.edu") == 80
    assert estimate_content_quality("research-journal.org") == 90
    assert estimate_content_quality("myblog.com") == 40
    assert estimate_content_quality("localnews.com") == 45


def test_final_score_adjustments_and_clamping() -> None:
    assert calculate_final_score(60, https=False, response_time_seconds=6.0, content_quality=50) == 55
    assert calculate_final_score(60, https=True, response_time_seconds=1.0, content_quality=50) == 73
    assert calculate_final_score(98, https=True, response_time_seconds=1.0, content_quality=80) == 100
    assert calculate_final_score(5, https=False, response_time_seconds=6.0, content_quality=0) == 0


@pytest.mark.asyncio
async def test_trusted_https_source_is_valid(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_http(monkeypatch)
    validator = SourceValidator(sleep=_no_sleep)

    result = await validator.validate("https://hbr.org/2024/01/leadership")

    assert result.is_valid
    assert result.is_accessible
    assert result.domain_authority == "high"
    assert result.reliability_score == 100


@pytest.mark.asyncio
async def test_blacklisted_source_skips_network_probe(monkeypatch: pytest.MonkeyPatch) -> None:
    requested = _install_fake_http(monkeypatch)
    validator = SourceValidator(sleep=_no_sleep)

    result = await validator.validate("https://www.reddit.com/r/marketing")

    assert not result.is_valid
    assert result.reliability_score == 0
    assert result.reason == "Domain is blacklisted for content authenticity"
    assert requested == []


@pytest.mark.asyncio
async def test_non_http_scheme_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_http(monkeypatch)
    validator = SourceValidator(sleep=_no_sleep)

    result = await validator.validate("ftp://files.acme.io/report.pdf")

    assert not result.is_valid
    assert result.reason == "Invalid or insecure protocol"


@pytest.mark.asyncio
async def test_inaccessible_source_is_penalized(monkeypatch: pytest.MonkeyPatch) -> None:
    url = "https://acme-insights.io/missing"
    _install_fake_http(monkeypatch, {url: _FakeResponse(404, "Not Found")})
    validator = SourceValidator(sleep=_no_sleep)

    result = await validator.validate(url)

    assert not result.is_valid
    assert not result.is_accessible
    assert result.reliability_score == 30
    assert result.reason == "HTTP 404 Not Found"


@pytest.mark.asyncio
async def test_timeout_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    url = "https://slow.acme.io/"
    _install_fake_http(monkeypatch, {url: httpx.ReadTimeout("timed out")})
    validator = SourceValidator(timeout=8.0, sleep=_no_sleep)

    result = await validator.validate(url)

    assert not result.is_accessible
    assert result.reason == "Request timeout (8s)"


@pytest.mark.asyncio
async def test_results_are_cached_by_url(monkeypatch: pytest.MonkeyPatch) -> None:
    requested = _install_fake_http(monkeypatch)
    cache = _FakeCache()
    validator = SourceValidator(cache=cache, sleep=_no_sleep)

    first = await validator.validate("https://acme-insights.io/post")
    second = await validator.validate("https://acme-insights.io/post")

    assert requested == ["https://acme-insights.io/post"]
    assert second.reliability_score == first.reliability_score == 73
    assert list(cache.ttls.values()) == [86400]
    assert validator.cache_stats() == {"hits": 1, "misses": 1, "hit_rate": 0.5}


@pytest.mark.asyncio
async def test_batch_validation_sorts_best_first(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_http(monkeypatch)
    sleeps: list[float] = []

    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    validator = SourceValidator(batch_size=2, batch_delay=1.0, sleep=record_sleep)

    results = await validator.validate_batch(
        [
            "https://acme-insights.io/post",
            "https://www.reddit.com/r/x",
            "https://hbr.org/article",
        ]
    )

    assert [item.url for item in results] == [
        "https://hbr.org/article",
        "https://acme-insights.io/post",
        "https://www.reddit.com/r/x",
    ]
    # One pause between the two batches
    assert sleeps == [1.0]


def test_high_quality_filter_and_summary() -> None:
    results = [
        ValidationResult(url="https://hbr.org/a", is_valid=True, reliability_score=95, domain_authority="high"),
        ValidationResult(url="https://hbr.org/b", is_valid=True, reliability_score=90, domain_authority="high"),
        ValidationResult(url="https://acme.io/c", is_valid=True, reliability_score=65, domain_authority="medium"),
        ValidationResult(url="https://low.io/d", is_valid=True, reliability_score=80, domain_authority="low"),
        ValidationResult(url="https://down.io/e", is_valid=False, reliability_score=30),
    ]

    assert high_quality_sources(results) == ["https://hbr.org/a", "https://hbr.org/b"]

    summary = reliability_summary(results)
    assert summary.total_sources == 5
    assert summary.valid_sources == 4
    assert summary.high_quality_sources == 3
    assert summary.average_score == 82
    assert summary.top_domains[0] == "hbr.org"
