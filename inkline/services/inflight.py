"""In-flight request registry (shared-future coalescing).

Concurrent callers asking for the same key await one shared task instead of
each starting their own upstream work. The entry is dropped as soon as the
task finishes, so later callers start fresh (and normally hit the cache).
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)


class InflightRegistry:
    """Map of key -> running task."""

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[Any]] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, key: str) -> bool:
        return key in self._tasks

    async def run(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``factory()`` once per key among concurrent callers.

        A caller that is cancelled while waiting does not cancel the shared
        task for the others.
        """
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task

            def _forget(done: asyncio.Task[Any], key: str = key) -> None:
                if self._tasks.get(key) is done:
                    del self._tasks[key]

            task.add_done_callback(_forget)
        else:
            logger.info("inflight_joined", key=key)

        return await asyncio.shield(task)
