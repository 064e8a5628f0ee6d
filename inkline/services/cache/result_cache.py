"""Content-addressed cache of deep verdicts with a one-day TTL.

Entries carry their own ``stored_at`` timestamp. An entry older than the TTL
is deleted on read and reported as absent; it is never served stale. When
the store is unreachable the cache behaves as permanently empty.
"""

from __future__ import annotations

import json
import time
from typing import Callable

import structlog
from pydantic import ValidationError

from ...core.config import settings
from ...models.verdict import DeepVerdict
from ..redis_client import RedisClient, StoreUnavailableError

logger = structlog.get_logger(__name__)

CACHE_KEY_PREFIX = "inkline:analysis:"


class ResultCache:
    """Deep verdict cache keyed by content fingerprint.

    Example:
        >>> cache = ResultCache(RedisClient())
        >>> await cache.put(fingerprint(text), verdict)
        >>> cached = await cache.get(fingerprint(text))
    """

    def __init__(
        self,
        store: RedisClient,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds or settings.CACHE_TTL_SECONDS
        self._clock = clock

    @staticmethod
    def _key(key: str) -> str:
        return f"{CACHE_KEY_PREFIX}{key}"

    async def get(self, key: str) -> DeepVerdict | None:
        """Return the cached verdict for a fingerprint, or None.

        Expired and undecodable entries are evicted. Store failures are
        logged and reported as a miss.
        """
        redis_key = self._key(key)
        try:
            entry = await self.store.get_json(redis_key)
        except StoreUnavailableError as e:
            logger.warning("cache_get_unavailable", key=key, error=str(e))
            return None
        except json.JSONDecodeError:
            logger.warning("cache_entry_undecodable", key=key)
            await self._evict(redis_key)
            return None

        if entry is None:
            logger.debug("cache_miss", key=key)
            return None

        try:
            stored_at = float(entry["stored_at"])
            verdict = DeepVerdict.model_validate(entry["verdict"])
        except (KeyError, TypeError, ValueError, ValidationError):
            logger.warning("cache_entry_invalid", key=key)
            await self._evict(redis_key)
            return None

        if self._clock() - stored_at >= self.ttl_seconds:
            logger.info("cache_entry_expired", key=key)
            await self._evict(redis_key)
            return None

        logger.info("cache_hit", key=key)
        return verdict

    async def put(self, key: str, verdict: DeepVerdict) -> None:
        """Store a verdict. Fallback verdicts are never cached."""
        if verdict.fallback:
            logger.debug("cache_skip_fallback", key=key)
            return

        entry = {"verdict": verdict.model_dump(mode="json"), "stored_at": self._clock()}
        try:
            await self.store.set_json(self._key(key), entry, ttl_seconds=self.ttl_seconds)
        except StoreUnavailableError as e:
            logger.warning("cache_put_unavailable", key=key, error=str(e))
            return
        logger.info("cache_stored", key=key)

    async def _evict(self, redis_key: str) -> None:
        try:
            await self.store.delete(redis_key)
        except StoreUnavailableError as e:
            logger.warning("cache_evict_unavailable", key=redis_key, error=str(e))
