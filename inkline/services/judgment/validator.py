"""Validation of raw judgment responses.

Nothing the model returns is trusted. Ratings must be tri-state values and
labels/summary must be strings, otherwise the whole response is rejected
with ``JudgmentError``. Only a few secondary fields are coerced:

- confidence: missing or non-numeric -> 0.7, numeric -> clamped into [0, 1]
- stance: unknown -> "neutral"
- comment agreement level: unknown -> "mixed"
- comment sentiment: unknown -> "neutral"
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from pydantic import BaseModel, Field

from ...models.verdict import (
    AGREEMENT_LEVELS,
    DEFAULT_CONFIDENCE,
    DIMENSIONS,
    MAX_COMMENT_HIGHLIGHTS,
    RATINGS,
    SENTIMENTS,
    STANCES,
    CommentAnalysis,
    DeepVerdict,
    DimensionRating,
    HighlightedComment,
    QuickVerdict,
    Stance,
)

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


class JudgmentError(Exception):
    """Raised when a judgment response is empty, malformed or schema-invalid."""

    pass


class SourceLabel(BaseModel):
    """Relevance/stance decision for one search result (1-based index)."""

    index: int = Field(..., ge=1)
    relevant: bool
    stance: Stance = "neutral"
    lean: str | None = None


class DeepJudgment(BaseModel):
    """Validated deep response: the verdict plus per-result labels."""

    verdict: DeepVerdict
    source_labels: list[SourceLabel] = Field(default_factory=list)


def extract_json(content: str) -> dict[str, Any]:
    """Parse the JSON object in a model reply, tolerating markdown fences.

    Raises:
        JudgmentError: If the reply is empty or not a JSON object
    """
    text = (content or "").strip()
    if not text:
        raise JudgmentError("Empty response from judgment model")

    match = _FENCED_JSON_RE.search(text)
    if match:
        text = match.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise JudgmentError(f"Response is not valid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise JudgmentError("Response JSON is not an object")
    return data


def normalize_confidence(value: Any) -> float:
    """Clamp a numeric confidence into [0, 1]; default 0.7 when unusable."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    if math.isnan(value):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, float(value)))


def _pick(data: dict[str, Any], camel: str, snake: str) -> Any:
    return data[camel] if camel in data else data.get(snake)


def _require_rating(value: Any, field: str) -> str:
    if value not in RATINGS:
        raise JudgmentError(f"Invalid rating for {field}: {value!r}")
    return value


def _require_str(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise JudgmentError(f"Field {field} must be a string")
    return value


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _dimension(data: dict[str, Any], name: str) -> DimensionRating:
    raw = data.get(name)
    if not isinstance(raw, dict):
        raise JudgmentError(f"Missing dimension: {name}")
    return DimensionRating(
        rating=_require_rating(raw.get("rating"), f"{name}.rating"),  # type: ignore[arg-type]
        label=_require_str(raw.get("label"), f"{name}.label"),
        reason=_optional_str(raw.get("reason")),
    )


def parse_quick(data: dict[str, Any]) -> QuickVerdict:
    """Validate a quick-tier response.

    Raises:
        JudgmentError: On invalid overall rating or missing summary
    """
    return QuickVerdict(
        overall=_require_rating(data.get("overall"), "overall"),  # type: ignore[arg-type]
        summary=_require_str(data.get("summary"), "summary"),
        confidence=normalize_confidence(data.get("confidence")),
    )


def _comment_analysis(raw: Any) -> CommentAnalysis | None:
    if not isinstance(raw, dict):
        return None
    tone = _optional_str(_pick(raw, "overallTone", "overall_tone"))
    if tone is None:
        return None

    agreement = _pick(raw, "agreementLevel", "agreement_level")
    if agreement not in AGREEMENT_LEVELS:
        agreement = "mixed"

    highlights: list[HighlightedComment] = []
    raw_highlights = raw.get("highlights")
    for item in raw_highlights if isinstance(raw_highlights, list) else []:
        if not isinstance(item, dict) or not _optional_str(item.get("text")):
            continue
        sentiment = item.get("sentiment")
        highlights.append(
            HighlightedComment(
                author=_optional_str(item.get("author")) or "unknown",
                text=item["text"].strip(),
                reason=_optional_str(item.get("reason")) or "",
                sentiment=sentiment if sentiment in SENTIMENTS else "neutral",
            )
        )
        if len(highlights) >= MAX_COMMENT_HIGHLIGHTS:
            break

    return CommentAnalysis(
        overall_tone=tone,
        leaning_summary=_optional_str(_pick(raw, "leaningSummary", "leaning_summary")) or "",
        agreement_level=agreement,
        highlights=highlights,
    )


def _source_labels(raw: Any, result_count: int) -> list[SourceLabel]:
    labels: list[SourceLabel] = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        index = item.get("index")
        if isinstance(index, bool) or not isinstance(index, int):
            continue
        if not 1 <= index <= result_count:
            continue
        stance = item.get("stance")
        labels.append(
            SourceLabel(
                index=index,
                relevant=item.get("relevant") is True,
                stance=stance if stance in STANCES else "neutral",
                lean=_optional_str(item.get("lean")),
            )
        )
    return labels


def parse_deep(
    data: dict[str, Any],
    *,
    has_comments: bool,
    result_count: int,
    has_media: bool,
) -> DeepJudgment:
    """Validate a deep-tier response.

    Args:
        data: Parsed JSON object from the model
        has_comments: Whether comment excerpts were supplied
        result_count: Number of search results shown to the model
        has_media: Whether the post carries media

    Raises:
        JudgmentError: On any invalid rating, label or summary
    """
    overall = _require_rating(data.get("overall"), "overall")
    dimensions = {name: _dimension(data, name) for name in DIMENSIONS}
    summary = _require_str(data.get("summary"), "summary")

    counter_perspective = None
    if dimensions["perspective"].rating != "green":
        counter_perspective = _optional_str(_pick(data, "counterPerspective", "counter_perspective"))

    comment_analysis = None
    if has_comments:
        comment_analysis = _comment_analysis(_pick(data, "commentAnalysis", "comment_analysis"))

    verdict = DeepVerdict(
        overall=overall,  # type: ignore[arg-type]
        summary=summary,
        confidence=normalize_confidence(data.get("confidence")),
        counter_perspective=counter_perspective,
        comment_analysis=comment_analysis,
        visual_assessment=_optional_str(_pick(data, "visualAssessment", "visual_assessment")),
        has_media=has_media,
        **dimensions,
    )
    return DeepJudgment(
        verdict=verdict,
        source_labels=_source_labels(data.get("sources"), result_count),
    )
