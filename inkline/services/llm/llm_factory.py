"""LLM client factory for creating and caching LLM clients.

Clients are cached by provider/model so the judgment and vision adapters
share connections and circuit breakers across requests.
"""
from __future__ import annotations

import structlog

from ...core.config import LLMConfig, settings
from .langfuse_tracer import LangfuseTracer
from .llm_client import LLMClient

logger = structlog.get_logger(__name__)

SUPPORTED_PROVIDERS = ("deepseek", "qwen", "openrouter", "openai")


class LLMFactory:
    """Factory for creating and caching LLM clients.

    Example:
        >>> client = LLMFactory.create_client(settings.judgment_llm_config)
        >>> assert LLMFactory.create_client(settings.judgment_llm_config) is client
    """

    _clients: dict[str, LLMClient] = {}
    _tracer: LangfuseTracer | None = None

    @classmethod
    def _get_tracer(cls) -> LangfuseTracer:
        if cls._tracer is None:
            cls._tracer = LangfuseTracer()
        return cls._tracer

    @classmethod
    def create_client(cls, config: LLMConfig) -> LLMClient:
        """Create or retrieve cached LLM client.

        Raises:
            ValueError: If provider is not supported
        """
        cache_key = f"{config.provider}:{config.model}"

        if cache_key in cls._clients:
            logger.debug("llm_client_cache_hit", key=cache_key)
            return cls._clients[cache_key]

        if config.provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unknown provider: {config.provider}. "
                f"Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
            )

        logger.info(
            "llm_client_created",
            provider=config.provider,
            model=config.model,
            base_url=config.base_url,
        )
        client = LLMClient(config, tracer=cls._get_tracer())
        cls._clients[cache_key] = client
        return client

    @classmethod
    def clear_cache(cls) -> None:
        """Clear all cached clients (tests, config reloads)."""
        cls._clients.clear()
        cls._tracer = None


def get_judgment_llm() -> LLMClient:
    """LLM client for the structured judgment stage."""
    return LLMFactory.create_client(settings.judgment_llm_config)


def get_vision_llm() -> LLMClient:
    """LLM client for the visual description stage."""
    return LLMFactory.create_client(settings.vision_llm_config)
