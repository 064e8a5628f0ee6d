"""Unit tests for the fail-fast circuit breaker."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from inkline.core.circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState


@pytest.mark.unit
class TestCircuitBreaker:
    @pytest.mark.asyncio
    async def test_success_passes_through(self) -> None:
        breaker = CircuitBreaker(name="test", failure_threshold=2, timeout=60)
        func = AsyncMock(return_value="ok")

        assert await breaker.call(func, 1, key="v") == "ok"
        func.assert_awaited_once_with(1, key="v")
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_single_attempt_per_call(self) -> None:
        breaker = CircuitBreaker(name="test", failure_threshold=5, timeout=60)
        func = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await breaker.call(func)

        assert func.await_count == 1
        assert breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_opens_after_threshold_and_fails_fast(self) -> None:
        breaker = CircuitBreaker(name="test", failure_threshold=2, timeout=60)
        failing = AsyncMock(side_effect=RuntimeError("boom"))

        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call(failing)

        assert breaker.state == CircuitState.OPEN
        assert breaker.is_open

        probe = AsyncMock(return_value="ok")
        with pytest.raises(CircuitOpenError):
            await breaker.call(probe)
        probe.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_half_open_probe_closes_on_success(self) -> None:
        breaker = CircuitBreaker(name="test", failure_threshold=1, timeout=60)
        with pytest.raises(RuntimeError):
            await breaker.call(AsyncMock(side_effect=RuntimeError("boom")))

        breaker.last_failure_time = datetime.now(timezone.utc) - timedelta(seconds=61)

        assert await breaker.call(AsyncMock(return_value="ok")) == "ok"
        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_half_open_probe_failure_reopens(self) -> None:
        breaker = CircuitBreaker(name="test", failure_threshold=3, timeout=60)
        breaker.state = CircuitState.OPEN
        breaker.last_failure_time = datetime.now(timezone.utc) - timedelta(seconds=61)

        with pytest.raises(RuntimeError):
            await breaker.call(AsyncMock(side_effect=RuntimeError("still down")))

        assert breaker.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_half_open_admits_one_probe_at_a_time(self) -> None:
        breaker = CircuitBreaker(name="test", failure_threshold=1, timeout=60)
        breaker.state = CircuitState.OPEN
        breaker.last_failure_time = datetime.now(timezone.utc) - timedelta(seconds=61)
        gate = asyncio.Event()

        async def slow_recovery() -> str:
            await gate.wait()
            return "ok"

        probe = asyncio.create_task(breaker.call(slow_recovery))
        await asyncio.sleep(0)
        assert breaker.state == CircuitState.HALF_OPEN

        concurrent = AsyncMock(return_value="ok")
        with pytest.raises(CircuitOpenError):
            await breaker.call(concurrent)
        concurrent.assert_not_awaited()

        gate.set()
        assert await probe == "ok"
        assert breaker.state == CircuitState.CLOSED
        assert await breaker.call(concurrent) == "ok"

    @pytest.mark.asyncio
    async def test_failed_probe_releases_half_open_slot(self) -> None:
        breaker = CircuitBreaker(name="test", failure_threshold=3, timeout=60)
        breaker.state = CircuitState.OPEN
        breaker.last_failure_time = datetime.now(timezone.utc) - timedelta(seconds=61)

        with pytest.raises(RuntimeError):
            await breaker.call(AsyncMock(side_effect=RuntimeError("still down")))
        breaker.last_failure_time = datetime.now(timezone.utc) - timedelta(seconds=61)

        assert await breaker.call(AsyncMock(return_value="ok")) == "ok"

    def test_reset(self) -> None:
        breaker = CircuitBreaker(name="test")
        breaker.state = CircuitState.OPEN
        breaker.failure_count = 7

        breaker.reset()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0
        assert breaker.last_failure_time is None
