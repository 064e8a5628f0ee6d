"""OpenAI-compatible chat client used for judgment and vision calls.

One attempt per call: failures surface immediately as ``LLMClientError`` and
the caller decides how to degrade. A per-client circuit breaker turns a
persistently failing provider into fast failures.
"""

from __future__ import annotations

from typing import Any

import structlog
from openai import APIError, APITimeoutError, AsyncOpenAI, OpenAIError

from ...core.circuit_breaker import CircuitBreaker, CircuitOpenError
from ...core.config import LLMConfig, settings
from .langfuse_tracer import LangfuseTracer
from .schemas import ChatResult, LLMClientError, TokenUsage

logger = structlog.get_logger(__name__)


class LLMClient:
    """Async chat completion client for an OpenAI-compatible endpoint.

    Example:
        >>> client = LLMClient(settings.judgment_llm_config)
        >>> result = await client.chat(
        ...     messages=[{"role": "user", "content": "Hello"}],
        ...     response_format={"type": "json_object"},
        ... )
        >>> print(result.content)
    """

    def __init__(
        self,
        config: LLMConfig,
        tracer: LangfuseTracer | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self.config = config
        self.model = config.model
        self.tracer = tracer
        self.breaker = breaker or CircuitBreaker(
            name=f"llm:{config.provider}",
            failure_threshold=settings.CIRCUIT_BREAKER_THRESHOLD,
            timeout=float(settings.CIRCUIT_BREAKER_TIMEOUT),
        )
        self._client: AsyncOpenAI | None = None

    @property
    def is_configured(self) -> bool:
        return len(self.config.api_key.strip()) > 5

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=float(self.config.timeout),
                max_retries=0,
            )
        return self._client

    async def chat(
        self,
        messages: list[dict[str, Any]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        response_format: dict[str, str] | None = None,
        name: str = "chat_completion",
    ) -> ChatResult:
        """Execute a single non-streaming chat completion.

        Args:
            messages: Chat messages with 'role' and 'content'
            temperature: Sampling temperature (defaults to config)
            max_tokens: Maximum tokens to generate (defaults to config)
            response_format: Optional response format, e.g. {"type": "json_object"}
            name: Label used for logs and traces

        Returns:
            ChatResult with content, model, finish_reason and usage

        Raises:
            LLMClientError: If the client is unconfigured, the circuit is open,
                or the provider call fails
        """
        if not self.is_configured:
            raise LLMClientError(f"{self.config.provider} API key not configured")

        eff_temperature = self.config.temperature if temperature is None else temperature
        eff_max_tokens = max_tokens or self.config.max_tokens
        logger.info(
            "llm_request_start",
            name=name,
            model=self.model,
            temperature=eff_temperature,
            max_tokens=eff_max_tokens,
            messages=len(messages),
        )

        kwargs: dict[str, Any] = {}
        if response_format is not None:
            kwargs["response_format"] = response_format

        async def _execute() -> Any:
            return await self._get_client().chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                temperature=eff_temperature,
                max_tokens=eff_max_tokens,
                stream=False,
                **kwargs,
            )

        try:
            response = await self.breaker.call(_execute)
        except CircuitOpenError as e:
            logger.warning("llm_circuit_open", name=name, model=self.model)
            raise LLMClientError(str(e)) from e
        except APITimeoutError as e:
            logger.error("llm_timeout", name=name, model=self.model, timeout=self.config.timeout)
            self._track_error(name, e)
            raise LLMClientError(f"Request timeout after {self.config.timeout}s") from e
        except (APIError, OpenAIError) as e:
            logger.error("llm_api_error", name=name, model=self.model, error=str(e)[:200])
            self._track_error(name, e)
            raise LLMClientError(f"LLM request failed: {e}") from e

        if not response.choices:
            raise LLMClientError("LLM response contained no choices")

        choice = response.choices[0]
        usage = response.usage
        result = ChatResult(
            content=(choice.message.content or "") if choice.message else "",
            model=response.model or self.model,
            finish_reason=choice.finish_reason,
            usage=TokenUsage(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
                total_tokens=usage.total_tokens if usage else 0,
            ),
        )
        logger.info(
            "llm_response_success",
            name=name,
            model=result.model,
            total_tokens=result.usage.total_tokens,
        )

        if self.tracer:
            self.tracer.track_generation(
                name=name,
                model=result.model,
                input_messages=messages,
                output=result.content,
                usage=result.usage.model_dump(),
                metadata={
                    "temperature": eff_temperature,
                    "max_tokens": eff_max_tokens,
                    "finish_reason": result.finish_reason,
                },
            )

        return result

    def _track_error(self, name: str, error: Exception) -> None:
        if self.tracer:
            self.tracer.track_error(name, error, metadata={"model": self.model})

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
