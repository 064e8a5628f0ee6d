"""Langfuse tracing integration for LLM monitoring.

Each judgment or vision call is recorded as its own trace with a single
generation, so concurrent requests never share tracer state. Tracing
degrades to a no-op when disabled, when credentials are missing, or when the
SDK call fails.
"""

from __future__ import annotations

from typing import Any

import structlog

from ...core.config import settings

logger = structlog.get_logger(__name__)


class LangfuseTracer:
    """Tracer for LLM interactions using Langfuse.

    Example:
        >>> tracer = LangfuseTracer()
        >>> tracer.track_generation(
        ...     name="judgment_quick",
        ...     model="deepseek-chat",
        ...     input_messages=[{"role": "user", "content": "test"}],
        ...     output="{...}",
        ...     usage={"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
        ... )
    """

    def __init__(
        self,
        public_key: str | None = None,
        secret_key: str | None = None,
        host: str | None = None,
        enabled: bool | None = None,
    ) -> None:
        """Initialize Langfuse tracer.

        Args:
            public_key: Langfuse public API key (defaults to settings)
            secret_key: Langfuse secret API key (defaults to settings)
            host: Langfuse server URL (defaults to settings)
            enabled: Whether tracing is enabled (defaults to settings.ENABLE_TRACING)
        """
        self.enabled = settings.ENABLE_TRACING if enabled is None else enabled
        self.langfuse_client: Any = None

        if not self.enabled:
            logger.debug("langfuse_tracing_disabled")
            return

        eff_public = (public_key or settings.LANGFUSE_PUBLIC_KEY or "").strip()
        eff_secret = (secret_key or settings.LANGFUSE_SECRET_KEY or "").strip()
        eff_host = (host or settings.LANGFUSE_BASE_URL or "").strip()

        if not eff_public or not eff_secret:
            logger.warning(
                "langfuse_disabled_missing_credentials",
                has_public=bool(eff_public),
                has_secret=bool(eff_secret),
            )
            self.enabled = False
            return

        try:
            from langfuse import Langfuse

            self.langfuse_client = Langfuse(
                public_key=eff_public,
                secret_key=eff_secret,
                host=eff_host,
            )
            logger.info("langfuse_tracer_initialized", host=eff_host)
        except Exception as e:
            logger.warning("langfuse_init_failed", error=str(e))
            self.enabled = False
            self.langfuse_client = None

    def track_generation(
        self,
        name: str,
        model: str,
        input_messages: list[dict[str, Any]],
        output: str,
        usage: dict[str, int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Any:
        """Record one LLM generation in its own trace.

        Returns:
            Generation object or None if tracing is unavailable
        """
        if not self.enabled or not self.langfuse_client:
            return None

        try:
            trace = self.langfuse_client.trace(name=name, metadata=metadata or {})
            generation = trace.generation(
                name=name,
                model=model,
                input=input_messages,
                output=output,
                usage={
                    "promptTokens": (usage or {}).get("prompt_tokens", 0),
                    "completionTokens": (usage or {}).get("completion_tokens", 0),
                    "totalTokens": (usage or {}).get("total_tokens", 0),
                },
                metadata=metadata or {},
            )
            logger.debug("langfuse_generation_tracked", name=name)
            return generation
        except Exception as e:
            logger.warning("langfuse_track_generation_failed", name=name, error=str(e))
            return None

    def track_error(self, name: str, error: Exception, metadata: dict[str, Any] | None = None) -> None:
        """Record a failed LLM call."""
        if not self.enabled or not self.langfuse_client:
            return

        try:
            self.langfuse_client.trace(
                name=name,
                metadata={
                    **(metadata or {}),
                    "error": str(error),
                    "error_type": type(error).__name__,
                },
            )
        except Exception as e:
            logger.warning("langfuse_track_error_failed", name=name, error=str(e))

    def flush(self) -> None:
        """Flush pending traces to Langfuse."""
        if not self.enabled or not self.langfuse_client:
            return

        try:
            self.langfuse_client.flush()
        except Exception as e:
            logger.warning("langfuse_flush_failed", error=str(e))
