"""Per-caller daily quota for quick-tier analyses.

Counters live in Redis under ``inkline:quota:{scope}:{YYYY-MM-DD}``. The day
boundary is the local calendar date: a new date string means a fresh
counter, regardless of how much time has elapsed.

Store failure policy is permissive. A counter that cannot be read is treated
as "not yet counted today", so ``allow`` returns True and ``remaining``
reports the full limit.
"""

from __future__ import annotations

from datetime import date
from typing import Callable

import structlog
from pydantic import BaseModel, Field

from ...core.config import settings
from ..redis_client import RedisClient, StoreUnavailableError

logger = structlog.get_logger(__name__)

QUOTA_KEY_PREFIX = "inkline:quota:"
# Counters outlive their day so a late read near midnight still sees them.
QUOTA_KEY_TTL_SECONDS = 2 * 86400


class QuotaExceededError(Exception):
    """Raised when a caller has used up today's quick analyses."""

    def __init__(self, scope: str, limit: int) -> None:
        super().__init__(f"Daily limit of {limit} analyses reached")
        self.scope = scope
        self.limit = limit


class QuotaUsage(BaseModel):
    """Read-only snapshot of a caller's quota for today."""

    scope: str
    date: str
    limit: int = Field(..., ge=1)
    used: int = Field(..., ge=0)
    remaining: int = Field(..., ge=0)


class QuotaGuard:
    """Fixed daily ceiling per caller scope.

    Example:
        >>> guard = QuotaGuard(RedisClient(), daily_limit=50)
        >>> if not await guard.allow("client-123"):
        ...     raise QuotaExceededError("client-123", 50)
    """

    def __init__(
        self,
        store: RedisClient,
        daily_limit: int | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.store = store
        self.daily_limit = daily_limit or settings.DAILY_QUOTA_LIMIT
        self._today = today

    def _key(self, scope: str, day: str) -> str:
        return f"{QUOTA_KEY_PREFIX}{scope}:{day}"

    async def _count(self, scope: str, day: str) -> int:
        """Today's count; 0 for a new day or when the store is unavailable."""
        try:
            count = await self.store.get_int(self._key(scope, day))
        except (StoreUnavailableError, ValueError) as e:
            logger.warning("quota_read_failed_permissive", scope=scope, error=str(e))
            return 0
        return count or 0

    async def allow(self, scope: str) -> bool:
        """Consume one unit of today's quota if available.

        The increment itself is the admission check: a unit taken past the
        ceiling by a concurrent caller is handed back before denying.

        Returns:
            False once the ceiling is reached (without incrementing further)
        """
        day = self._today().isoformat()
        key = self._key(scope, day)
        count = await self._count(scope, day)
        if count >= self.daily_limit:
            logger.info("quota_denied", scope=scope, count=count, limit=self.daily_limit)
            return False

        try:
            count = await self.store.incr(key, ttl_seconds=QUOTA_KEY_TTL_SECONDS)
        except StoreUnavailableError as e:
            logger.warning("quota_increment_failed_permissive", scope=scope, error=str(e))
            return True

        if count > self.daily_limit:
            try:
                await self.store.decr(key)
            except StoreUnavailableError as e:
                logger.warning("quota_rollback_failed", scope=scope, error=str(e))
            logger.info("quota_denied", scope=scope, count=count, limit=self.daily_limit)
            return False
        return True

    async def remaining(self, scope: str) -> int:
        """Analyses left today for ``scope`` (never negative)."""
        day = self._today().isoformat()
        count = await self._count(scope, day)
        return max(0, self.daily_limit - count)

    async def usage(self, scope: str) -> QuotaUsage:
        day = self._today().isoformat()
        used = min(await self._count(scope, day), self.daily_limit)
        return QuotaUsage(
            scope=scope,
            date=day,
            limit=self.daily_limit,
            used=used,
            remaining=self.daily_limit - used,
        )
