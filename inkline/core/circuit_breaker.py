"""Circuit breaker for upstream provider calls.

Blocks calls to a provider that keeps failing so a dead upstream costs a
request nothing but a fast, logged failure. The breaker never retries: each
call is a single attempt.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states.

    CLOSED: Normal operation, calls pass through
    OPEN: Service failing, calls rejected immediately
    HALF_OPEN: Testing recovery, one probe call in flight at a time
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """Raised when a call is rejected because the circuit is open."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Circuit breaker '{name}' open - service unavailable")
        self.name = name


@dataclass
class CircuitBreaker:
    """Circuit breaker for fault tolerance.

    Opens after ``failure_threshold`` consecutive failures, then lets a
    single probe call through once ``timeout`` seconds have elapsed.

    Example:
        >>> breaker = CircuitBreaker(name="tavily", failure_threshold=5, timeout=60.0)
        >>> result = await breaker.call(client.post, url, json=payload)

    Attributes:
        name: Label used in logs and errors
        failure_threshold: Number of failures before opening circuit
        timeout: Seconds before testing recovery (HALF_OPEN)
    """

    name: str = "upstream"
    failure_threshold: int = 5
    timeout: float = 60.0  # Seconds

    state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    failure_count: int = field(default=0, init=False)
    last_failure_time: datetime | None = field(default=None, init=False)
    _probe_in_flight: bool = field(default=False, init=False, repr=False)

    async def call(
        self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
    ) -> Any:
        """Execute an async function with circuit breaker protection.

        Args:
            func: Async function to call
            *args: Positional arguments for func
            **kwargs: Keyword arguments for func

        Returns:
            Function result if successful

        Raises:
            CircuitOpenError: If the circuit is open, or half-open with a
                probe call already in flight
            Exception: Whatever func raised (after recording the failure)
        """
        if self.state == CircuitState.OPEN:
            if self._should_attempt_reset():
                self.state = CircuitState.HALF_OPEN
                logger.info("circuit_half_open", breaker=self.name)
            else:
                raise CircuitOpenError(self.name)

        probing = False
        if self.state == CircuitState.HALF_OPEN:
            if self._probe_in_flight:
                raise CircuitOpenError(self.name)
            self._probe_in_flight = True
            probing = True

        try:
            result = await func(*args, **kwargs)
        except Exception:
            self._on_failure()
            raise
        finally:
            if probing:
                self._probe_in_flight = False

        self._on_success()
        return result

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN and not self._should_attempt_reset()

    def reset(self) -> None:
        """Force the breaker back to CLOSED (used by tests and admin tooling)."""
        self._on_success()
        self.last_failure_time = None
        self._probe_in_flight = False

    def _on_success(self) -> None:
        """Handle successful call - reset state to CLOSED."""
        self.failure_count = 0
        self.state = CircuitState.CLOSED

    def _on_failure(self) -> None:
        """Handle failed call - increment count and possibly OPEN circuit."""
        self.failure_count += 1
        self.last_failure_time = datetime.now(timezone.utc)

        if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            if self.state != CircuitState.OPEN:
                logger.warning(
                    "circuit_opened", breaker=self.name, failure_count=self.failure_count
                )
            self.state = CircuitState.OPEN

    def _should_attempt_reset(self) -> bool:
        """Check if timeout elapsed to test recovery."""
        if not self.last_failure_time:
            return True

        elapsed = datetime.now(timezone.utc) - self.last_failure_time
        return elapsed >= timedelta(seconds=self.timeout)
