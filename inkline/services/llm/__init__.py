"""LLM service clients (OpenAI-compatible, Langfuse) and factory."""

from .llm_client import LLMClient
from .llm_factory import LLMFactory, get_judgment_llm, get_vision_llm
from .schemas import ChatResult, LLMClientError

__all__ = [
    "ChatResult",
    "LLMClient",
    "LLMClientError",
    "LLMFactory",
    "get_judgment_llm",
    "get_vision_llm",
]
