"""Redis client shared by the result cache and the quota guard.

Connection is lazy. Every failure to reach or use the store is raised as
``StoreUnavailableError`` so each caller applies its own degradation policy.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from ..core.config import settings

logger = structlog.get_logger(__name__)


class StoreUnavailableError(Exception):
    """Raised when the backing store cannot serve a request."""

    pass


class RedisClient:
    """Async Redis wrapper with JSON helpers."""

    def __init__(self, redis_url: str | None = None, client: aioredis.Redis | None = None):
        """Initialize Redis client.

        Args:
            redis_url: Redis connection URL (uses settings.REDIS_URL if not provided)
            client: Pre-built client (tests inject an in-memory double here)
        """
        self.redis_url = redis_url or str(settings.REDIS_URL)
        self._client: aioredis.Redis | None = client
        logger.info("redis_client_initialized", url=self.redis_url)

    async def _get_client(self) -> aioredis.Redis:
        """Get or create the Redis connection.

        Raises:
            StoreUnavailableError: If the connection cannot be established
        """
        if self._client is None:
            try:
                client = aioredis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                await client.ping()
            except (RedisError, OSError) as e:
                logger.error("redis_connect_failed", error=str(e))
                raise StoreUnavailableError(str(e)) from e
            self._client = client
            logger.info("redis_connected")

        return self._client

    async def get_json(self, key: str) -> Any | None:
        """Read and decode a JSON value; None when the key is absent.

        Raises:
            StoreUnavailableError: On connection or command failure
            json.JSONDecodeError: If the stored value is not valid JSON
        """
        client = await self._get_client()
        try:
            data = await client.get(key)
        except RedisError as e:
            raise StoreUnavailableError(str(e)) from e
        if data is None:
            return None
        return json.loads(data)

    async def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Encode and store a JSON value with an expiry."""
        client = await self._get_client()
        try:
            await client.set(key, json.dumps(value), ex=ttl_seconds)
        except RedisError as e:
            raise StoreUnavailableError(str(e)) from e

    async def delete(self, key: str) -> None:
        client = await self._get_client()
        try:
            await client.delete(key)
        except RedisError as e:
            raise StoreUnavailableError(str(e)) from e

    async def get_int(self, key: str) -> int | None:
        """Read an integer counter; None when the key is absent."""
        client = await self._get_client()
        try:
            value = await client.get(key)
        except RedisError as e:
            raise StoreUnavailableError(str(e)) from e
        return int(value) if value is not None else None

    async def incr(self, key: str, ttl_seconds: int) -> int:
        """Increment a counter and (re)arm its expiry. Returns the new value."""
        client = await self._get_client()
        try:
            value = await client.incr(key)
            await client.expire(key, ttl_seconds)
        except RedisError as e:
            raise StoreUnavailableError(str(e)) from e
        return int(value)

    async def decr(self, key: str) -> int:
        """Decrement a counter. Returns the new value."""
        client = await self._get_client()
        try:
            value = await client.decr(key)
        except RedisError as e:
            raise StoreUnavailableError(str(e)) from e
        return int(value)

    async def is_available(self) -> bool:
        """Ping the store without raising."""
        try:
            client = await self._get_client()
            return bool(await client.ping())
        except (StoreUnavailableError, RedisError, OSError):
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("redis_connection_closed")
