"""API request/response schemas for the analysis endpoints.

Request bodies are validated here so the orchestrator only ever sees text in
the accepted length range.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from ...models.content import MAX_COMMENT_EXCERPTS, MediaDescriptors
from ...models.verdict import DeepVerdict, QuickVerdict

MIN_TEXT_LENGTH = 10
MAX_TEXT_LENGTH = 5000
MAX_COMMENTS = MAX_COMMENT_EXCERPTS

# ============================================================================
# Analyze Endpoint Schemas
# ============================================================================


class QuickAnalyzeRequest(BaseModel):
    """Request model for /v1/analyze/quick.

    Attributes:
        id: Client-side content id, echoed back in the response
        text: Post text (10-5000 chars)
        author: Post author handle
    """

    id: str = Field(..., min_length=1, max_length=200)
    text: str = Field(
        ...,
        min_length=MIN_TEXT_LENGTH,
        max_length=MAX_TEXT_LENGTH,
        examples=["The Fed held interest rates steady on Wednesday, citing cooling inflation."],
    )
    author: str = Field("unknown", max_length=200)

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Reject whitespace-only text."""
        if len(v.strip()) < MIN_TEXT_LENGTH:
            raise ValueError(f"text must contain at least {MIN_TEXT_LENGTH} non-blank characters")
        return v

    @field_validator("author")
    @classmethod
    def validate_author(cls, v: str) -> str:
        return v.strip() or "unknown"


class DeepAnalyzeRequest(QuickAnalyzeRequest):
    """Request model for /v1/analyze/deep.

    Attributes:
        media: Media attached to the post
        comments: Comment excerpts from the reply section (first 50 kept)
    """

    media: MediaDescriptors = Field(default_factory=MediaDescriptors)
    comments: list[str] = Field(default_factory=list)

    @field_validator("comments")
    @classmethod
    def cap_comments(cls, v: list[str]) -> list[str]:
        """Keep the first MAX_COMMENTS excerpts."""
        return v[:MAX_COMMENTS]


class QuickAnalyzeResponse(BaseModel):
    id: str
    result: QuickVerdict
    cached: bool = False


class DeepAnalyzeResponse(BaseModel):
    id: str
    analysis: DeepVerdict
    cached: bool = False


class UsageResponse(BaseModel):
    """Today's quota for the calling client."""

    scope: str
    limit: int
    remaining: int
    date: str


class ErrorResponse(BaseModel):
    """Error body shared by the 429 and 500 responses."""

    error: str
    message: str
    remaining: int | None = None
