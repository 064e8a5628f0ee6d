"""Verdict models shared by the server orchestrator and the client.

A quick verdict is the cheap traffic-light signal. A deep verdict adds the
five rated dimensions, corroborating/countering sources with stance labels,
an optional comment-climate summary and an optional visual assessment.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Rating = Literal["green", "amber", "red"]
Stance = Literal["supporting", "counter", "neutral"]
AgreementLevel = Literal["echo-chamber", "mostly-agree", "mixed", "mostly-disagree", "polarised"]
Sentiment = Literal["agree", "disagree", "nuanced", "neutral"]

RATINGS: tuple[str, ...] = ("green", "amber", "red")
STANCES: tuple[str, ...] = ("supporting", "counter", "neutral")
AGREEMENT_LEVELS: tuple[str, ...] = (
    "echo-chamber",
    "mostly-agree",
    "mixed",
    "mostly-disagree",
    "polarised",
)
SENTIMENTS: tuple[str, ...] = ("agree", "disagree", "nuanced", "neutral")
DIMENSIONS: tuple[str, ...] = ("perspective", "verification", "balance", "source", "tone")

DEFAULT_CONFIDENCE = 0.7
FALLBACK_CONFIDENCE = 0.3
FALLBACK_SUMMARY = "We were unable to fully analyze this post. Please use your own judgment."
QUICK_SUMMARY_LENGTH = 80
MAX_COMMENT_HIGHLIGHTS = 3


class DimensionRating(BaseModel):
    """Rating for one assessment dimension."""

    rating: Rating = Field(..., description="Tri-state rating")
    label: str = Field(..., description="Short description (about 30 chars)")
    reason: str | None = Field(None, description="Optional one-sentence justification")


class CounterSource(BaseModel):
    """A web article related to the post, labeled with its stance.

    Attributes:
        outlet: Publishing domain (e.g. 'reuters.com')
        headline: Article title
        url: Article URL
        snippet: Short excerpt from the article
        stance: Relation to the analyzed content
        lean: Optional ideological lean of the outlet
        is_real: True when the entry comes from live web search
    """

    outlet: str
    headline: str
    url: str
    snippet: str = ""
    stance: Stance = "neutral"
    lean: str | None = None
    is_real: bool = True


class HighlightedComment(BaseModel):
    """A notable comment from the post's reply section."""

    author: str = "unknown"
    text: str
    reason: str = ""
    sentiment: Sentiment = "neutral"


class CommentAnalysis(BaseModel):
    """Summary of the comment section climate."""

    overall_tone: str
    leaning_summary: str = ""
    agreement_level: AgreementLevel = "mixed"
    highlights: list[HighlightedComment] = Field(
        default_factory=list, max_length=MAX_COMMENT_HIGHLIGHTS
    )


class QuickVerdict(BaseModel):
    """Tier-one result: traffic light plus one-liner."""

    overall: Rating
    summary: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    fallback: bool = Field(False, description="True when produced by the failure fallback")


class DeepVerdict(BaseModel):
    """Tier-two result: the full multi-dimension assessment."""

    overall: Rating
    summary: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    perspective: DimensionRating
    verification: DimensionRating
    balance: DimensionRating
    source: DimensionRating
    tone: DimensionRating
    counter_perspective: str | None = None
    counter_sources: list[CounterSource] = Field(default_factory=list)
    comment_analysis: CommentAnalysis | None = None
    visual_assessment: str | None = None
    has_media: bool = False
    fallback: bool = Field(False, description="True when produced by the failure fallback")

    def to_quick(self) -> QuickVerdict:
        """Project this verdict onto the quick-tier shape."""
        return QuickVerdict(
            overall=self.overall,
            summary=self.summary[:QUICK_SUMMARY_LENGTH],
            confidence=self.confidence,
            fallback=self.fallback,
        )

    @property
    def has_comment_analysis(self) -> bool:
        return self.comment_analysis is not None and bool(self.comment_analysis.overall_tone)


def fallback_quick_verdict() -> QuickVerdict:
    """Quick verdict returned when the judgment call fails."""
    return QuickVerdict(
        overall="amber",
        summary=FALLBACK_SUMMARY,
        confidence=FALLBACK_CONFIDENCE,
        fallback=True,
    )


def fallback_deep_verdict(has_media: bool = False) -> DeepVerdict:
    """Complete deep verdict returned when the judgment call fails.

    Every dimension is present and neutral-tier so the UI never renders a
    half-filled result.
    """
    return DeepVerdict(
        overall="amber",
        summary=FALLBACK_SUMMARY,
        confidence=FALLBACK_CONFIDENCE,
        perspective=DimensionRating(rating="amber", label="Unable to determine"),
        verification=DimensionRating(rating="amber", label="Unable to verify"),
        balance=DimensionRating(rating="amber", label="Unable to assess"),
        source=DimensionRating(rating="amber", label="Unknown source"),
        tone=DimensionRating(rating="amber", label="Unable to assess"),
        has_media=has_media,
        fallback=True,
    )
