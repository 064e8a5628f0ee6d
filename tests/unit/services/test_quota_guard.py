"""Tests for the per-caller daily quota."""

from __future__ import annotations

import asyncio
from datetime import date, timedelta

import pytest

from inkline.services.quota.quota_guard import QUOTA_KEY_PREFIX, QUOTA_KEY_TTL_SECONDS, QuotaGuard


@pytest.mark.unit
class TestQuotaGuard:
    @pytest.mark.asyncio
    async def test_boundary(self, quota: QuotaGuard):
        """N calls are allowed, call N+1 is denied."""
        results = [await quota.allow("client-a") for _ in range(4)]

        assert results == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_denied_call_does_not_increment(self, quota: QuotaGuard, fake_redis, today):
        for _ in range(5):
            await quota.allow("client-a")

        key = f"{QUOTA_KEY_PREFIX}client-a:{today.day.isoformat()}"
        assert fake_redis.data[key] == "3"

    @pytest.mark.asyncio
    async def test_new_day_resets(self, quota: QuotaGuard, today):
        for _ in range(3):
            assert await quota.allow("client-a")
        assert not await quota.allow("client-a")

        today.day = today.day + timedelta(days=1)

        results = [await quota.allow("client-a") for _ in range(4)]
        assert results == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_scopes_are_independent(self, quota: QuotaGuard):
        for _ in range(3):
            await quota.allow("client-a")

        assert not await quota.allow("client-a")
        assert await quota.allow("client-b")

    @pytest.mark.asyncio
    async def test_remaining(self, quota: QuotaGuard):
        assert await quota.remaining("client-a") == 3
        await quota.allow("client-a")
        assert await quota.remaining("client-a") == 2

    @pytest.mark.asyncio
    async def test_remaining_is_read_only(self, quota: QuotaGuard):
        for _ in range(5):
            await quota.remaining("client-a")

        assert await quota.allow("client-a")
        assert await quota.remaining("client-a") == 2

    @pytest.mark.asyncio
    async def test_counter_expiry(self, quota: QuotaGuard, fake_redis, today):
        await quota.allow("client-a")

        key = f"{QUOTA_KEY_PREFIX}client-a:{today.day.isoformat()}"
        assert fake_redis.ttls[key] == QUOTA_KEY_TTL_SECONDS

    @pytest.mark.asyncio
    async def test_usage_snapshot(self, quota: QuotaGuard):
        await quota.allow("client-a")

        usage = await quota.usage("client-a")

        assert usage.scope == "client-a"
        assert usage.date == "2026-03-14"
        assert usage.limit == 3
        assert usage.used == 1
        assert usage.remaining == 2

    @pytest.mark.asyncio
    async def test_store_outage_is_permissive(self, quota: QuotaGuard, fake_redis):
        fake_redis.down = True

        assert await quota.allow("client-a")
        assert await quota.remaining("client-a") == 3

    def test_day_uses_injected_calendar(self, store):
        guard = QuotaGuard(store, daily_limit=1, today=lambda: date(2026, 12, 31))
        assert guard._key("c", guard._today().isoformat()) == f"{QUOTA_KEY_PREFIX}c:2026-12-31"

    @pytest.mark.asyncio
    async def test_concurrent_calls_respect_ceiling(self, quota: QuotaGuard, fake_redis, today):
        fake_redis.interleave = True

        results = await asyncio.gather(*(quota.allow("client-a") for _ in range(10)))

        assert results.count(True) == 3
        key = f"{QUOTA_KEY_PREFIX}client-a:{today.day.isoformat()}"
        assert fake_redis.data[key] == "3"
        assert await quota.remaining("client-a") == 0

    @pytest.mark.asyncio
    async def test_concurrent_calls_near_ceiling(self, quota: QuotaGuard, fake_redis):
        assert await quota.allow("client-a")
        assert await quota.allow("client-a")
        fake_redis.interleave = True

        results = await asyncio.gather(*(quota.allow("client-a") for _ in range(4)))

        assert results.count(True) == 1
        assert not await quota.allow("client-a")
