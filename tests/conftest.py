"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from inkline.models.content import SearchResult
from inkline.models.verdict import DeepVerdict, DimensionRating, QuickVerdict
from inkline.services.cache.result_cache import ResultCache
from inkline.services.llm.llm_factory import LLMFactory
from inkline.services.llm.schemas import ChatResult
from inkline.services.quota.quota_guard import QuotaGuard
from inkline.services.redis_client import RedisClient
from inkline.services.search import tavily_client


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis`` (string commands only).

    Set ``down = True`` to make every command raise a connection error.
    Set ``interleave = True`` to yield to the event loop inside each command
    so concurrent callers interleave the way they do against a real server.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.down = False
        self.interleave = False
        self.commands: list[str] = []

    async def _pause(self) -> None:
        if self.interleave:
            await asyncio.sleep(0)

    def _check(self, command: str) -> None:
        self.commands.append(command)
        if self.down:
            raise RedisConnectionError("Connection refused")

    async def ping(self) -> bool:
        self._check("ping")
        return True

    async def get(self, key: str) -> str | None:
        await self._pause()
        self._check("get")
        return self.data.get(key)

    async def set(self, key: str, value: Any, ex: int | None = None) -> bool:
        self._check("set")
        self.data[key] = str(value)
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        self._check("delete")
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def incr(self, key: str) -> int:
        await self._pause()
        self._check("incr")
        value = int(self.data.get(key, "0")) + 1
        self.data[key] = str(value)
        return value

    async def decr(self, key: str) -> int:
        await self._pause()
        self._check("decr")
        value = int(self.data.get(key, "0")) - 1
        self.data[key] = str(value)
        return value

    async def expire(self, key: str, seconds: int) -> bool:
        self._check("expire")
        self.ttls[key] = seconds
        return key in self.data

    async def aclose(self) -> None:
        return None


class FixedDay:
    """Mutable ``today`` callable for quota tests."""

    def __init__(self, day: date) -> None:
        self.day = day

    def __call__(self) -> date:
        return self.day


class FixedClock:
    """Mutable ``time.time`` replacement for cache TTL tests."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture(autouse=True)
def reset_shared_clients(monkeypatch: pytest.MonkeyPatch):
    """Give each test fresh cached LLM clients and a fresh search breaker."""
    LLMFactory.clear_cache()
    monkeypatch.setattr(tavily_client, "_search_circuit_breaker", None)
    yield
    LLMFactory.clear_cache()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def store(fake_redis: FakeRedis) -> RedisClient:
    return RedisClient(redis_url="redis://test:6379/0", client=fake_redis)  # type: ignore[arg-type]


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def today() -> FixedDay:
    return FixedDay(date(2026, 3, 14))


@pytest.fixture
def cache(store: RedisClient, clock: FixedClock) -> ResultCache:
    return ResultCache(store, ttl_seconds=86400, clock=clock)


@pytest.fixture
def quota(store: RedisClient, today: FixedDay) -> QuotaGuard:
    return QuotaGuard(store, daily_limit=3, today=today)


def make_deep_verdict(**overrides: Any) -> DeepVerdict:
    """Valid non-fallback deep verdict with overridable fields."""
    data: dict[str, Any] = {
        "overall": "amber",
        "summary": "Reports a real rate decision but frames it with a one-sided reading of the outcome.",
        "confidence": 0.8,
        "perspective": DimensionRating(rating="amber", label="Leans one way"),
        "verification": DimensionRating(rating="green", label="Matches wire reports"),
        "balance": DimensionRating(rating="amber", label="Single viewpoint"),
        "source": DimensionRating(rating="green", label="Established outlet"),
        "tone": DimensionRating(rating="green", label="Measured"),
    }
    data.update(overrides)
    return DeepVerdict(**data)


def make_quick_verdict(**overrides: Any) -> QuickVerdict:
    data: dict[str, Any] = {"overall": "green", "summary": "Straight news report.", "confidence": 0.75}
    data.update(overrides)
    return QuickVerdict(**data)


def make_search_results(count: int = 3) -> list[SearchResult]:
    outlets = ["reuters.com", "apnews.com", "bbc.co.uk", "ft.com", "npr.org"]
    return [
        SearchResult(
            title=f"Headline {i}",
            url=f"https://{outlets[i - 1]}/story-{i}",
            source=outlets[i - 1],
            snippet=f"Snippet {i}",
            score=1.0 - i / 10,
        )
        for i in range(1, count + 1)
    ]


def chat_result(content: str) -> ChatResult:
    return ChatResult(content=content, model="test-model")


@pytest.fixture
def mock_llm() -> MagicMock:
    """LLMClient double: configured, with an AsyncMock ``chat``."""
    llm = MagicMock()
    llm.is_configured = True
    llm.chat = AsyncMock()
    return llm


@pytest.fixture
def deep_verdict_factory():
    return make_deep_verdict


@pytest.fixture
def quick_verdict_factory():
    return make_quick_verdict


@pytest.fixture
def search_results_factory():
    return make_search_results


@pytest.fixture
def chat_reply():
    return chat_result
