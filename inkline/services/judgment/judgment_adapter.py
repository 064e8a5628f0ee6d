"""Structured judgment stage.

A single chat completion per request produces the rated verdict. The quick
tier sees only the post text; the deep tier also sees the visual
description, the corroboration results and any comment excerpts, and labels
each result for relevance and stance.

Every failure (LLM error, empty reply, malformed JSON, invalid ratings) is
turned into the complete fallback verdict. There is no retry.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from ...core.config import settings
from ...models.content import MediaDescriptors, SearchResult
from ...models.verdict import QuickVerdict, fallback_deep_verdict, fallback_quick_verdict
from ..llm.llm_client import LLMClient
from ..llm.schemas import LLMClientError
from .prompts import SYSTEM_PROMPT, build_deep_prompt, build_quick_prompt
from .validator import DeepJudgment, JudgmentError, extract_json, parse_deep, parse_quick

logger = structlog.get_logger(__name__)

JSON_RESPONSE_FORMAT = {"type": "json_object"}


@dataclass
class DeepJudgmentInput:
    """Everything the deep judgment call consumes."""

    text: str
    author: str = "unknown"
    media: MediaDescriptors = field(default_factory=MediaDescriptors)
    visual_description: str = ""
    search_results: list[SearchResult] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)


class JudgmentAdapter:
    """Quick and deep judgment over an OpenAI-compatible chat model.

    Example:
        >>> adapter = JudgmentAdapter(get_judgment_llm())
        >>> quick = await adapter.judge_quick("Fed holds rates steady.", "reuters")
        >>> quick.overall in ("green", "amber", "red")
        True
    """

    def __init__(self, llm_client: LLMClient) -> None:
        self.llm_client = llm_client

    async def judge_quick(self, text: str, author: str = "unknown") -> QuickVerdict:
        """Cheap text-only signal. Returns the fallback verdict on any failure."""
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_quick_prompt(text, author)},
        ]
        try:
            result = await self.llm_client.chat(
                messages,
                max_tokens=settings.JUDGMENT_QUICK_MAX_TOKENS,
                response_format=JSON_RESPONSE_FORMAT,
                name="judgment_quick",
            )
            verdict = parse_quick(extract_json(result.content))
        except (LLMClientError, JudgmentError) as e:
            logger.warning("judgment_quick_fallback", error=str(e))
            return fallback_quick_verdict()
        except Exception as e:
            logger.error("judgment_quick_unexpected_error", error=str(e))
            return fallback_quick_verdict()

        logger.info("judgment_quick_complete", overall=verdict.overall, confidence=verdict.confidence)
        return verdict

    async def judge_deep(self, request: DeepJudgmentInput) -> DeepJudgment:
        """Full judgment with relevance/stance labels for each search result.

        Returns:
            DeepJudgment; on failure its verdict is the fallback verdict and
            no result is labeled relevant
        """
        has_media = request.media.has_media
        prompt = build_deep_prompt(
            text=request.text,
            author=request.author,
            media=request.media,
            visual_description=request.visual_description,
            search_results=request.search_results,
            comments=request.comments,
        )
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        try:
            result = await self.llm_client.chat(
                messages,
                max_tokens=settings.JUDGMENT_DEEP_MAX_TOKENS,
                response_format=JSON_RESPONSE_FORMAT,
                name="judgment_deep",
            )
            judgment = parse_deep(
                extract_json(result.content),
                has_comments=bool(request.comments),
                result_count=len(request.search_results),
                has_media=has_media,
            )
        except (LLMClientError, JudgmentError) as e:
            logger.warning("judgment_deep_fallback", error=str(e))
            return DeepJudgment(verdict=fallback_deep_verdict(has_media=has_media))
        except Exception as e:
            logger.error("judgment_deep_unexpected_error", error=str(e))
            return DeepJudgment(verdict=fallback_deep_verdict(has_media=has_media))

        logger.info(
            "judgment_deep_complete",
            overall=judgment.verdict.overall,
            labeled_sources=len(judgment.source_labels),
            has_comment_analysis=judgment.verdict.comment_analysis is not None,
        )
        return judgment
