"""Schemas for LLM service.

Pydantic models for LLM requests and responses.
"""

from pydantic import BaseModel, Field


class TokenUsage(BaseModel):
    """Token usage statistics."""

    prompt_tokens: int = Field(0, description="Number of tokens in prompt")
    completion_tokens: int = Field(0, description="Number of tokens in completion")
    total_tokens: int = Field(0, description="Total number of tokens")


class ChatResult(BaseModel):
    """Normalized non-streaming chat completion."""

    content: str = Field("", description="Assistant message text")
    model: str = Field(..., description="Model that produced the response")
    finish_reason: str | None = Field(None, description="Provider finish reason")
    usage: TokenUsage = Field(default_factory=TokenUsage)


class LLMClientError(Exception):
    """Base exception for LLM client errors."""

    pass
