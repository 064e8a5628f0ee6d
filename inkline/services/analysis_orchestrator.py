"""Two-tier analysis orchestrator.

Quick tier:
    cache hit  -> quick view of the cached deep verdict (quota untouched)
    cache miss -> quota check -> denied: QuotaExceededError
                              -> allowed: quick judgment

Deep tier:
    complete cache hit -> cached verdict
    otherwise          -> fan out (visual, search) in parallel
                       -> one deep judgment
                       -> merge stances into counter sources
                       -> cache write -> verdict

A cached verdict is "complete" unless the caller supplied comment excerpts
and the cached verdict has no comment analysis. The deep tier never checks
the quota; its cost was counted when the quick tier ran.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from ..core.config import settings
from ..models.content import MediaDescriptors, SearchResult
from ..models.verdict import CounterSource, DeepVerdict, QuickVerdict
from ..utils.fingerprint import fingerprint
from ..utils.query_builder import build_search_query
from .cache.result_cache import ResultCache
from .inflight import InflightRegistry
from .judgment.judgment_adapter import DeepJudgmentInput, JudgmentAdapter
from .judgment.validator import SourceLabel
from .quota.quota_guard import QuotaExceededError, QuotaGuard, QuotaUsage
from .search.tavily_client import TavilySearchClient
from .vision.visual_describer import VisualDescriber

logger = structlog.get_logger(__name__)


@dataclass
class QuickOutcome:
    verdict: QuickVerdict
    cached: bool = False


@dataclass
class DeepOutcome:
    verdict: DeepVerdict
    cached: bool = False


def merge_stances(
    results: list[SearchResult], labels: list[SourceLabel]
) -> list[CounterSource]:
    """Build counter sources from the results the judgment marked relevant.

    Output follows search result order. The first label seen for an index
    wins; labels pointing outside ``results`` are ignored.

    Example:
        >>> merge_stances(three_results, [SourceLabel(index=2, relevant=True, stance="counter")])
        [CounterSource(outlet=three_results[1].source, ..., stance="counter")]
    """
    first_label: dict[int, SourceLabel] = {}
    for label in labels:
        first_label.setdefault(label.index, label)

    sources: list[CounterSource] = []
    for position, result in enumerate(results, start=1):
        label = first_label.get(position)
        if label is None or not label.relevant:
            continue
        sources.append(
            CounterSource(
                outlet=result.source,
                headline=result.title,
                url=result.url,
                snippet=result.snippet,
                stance=label.stance,
                lean=label.lean,
                is_real=True,
            )
        )
    return sources


class AnalysisOrchestrator:
    """Composes cache, quota, capability adapters and judgment.

    Example:
        >>> orchestrator = AnalysisOrchestrator.from_settings()
        >>> quick = await orchestrator.quick("Fed holds rates steady.", "reuters", scope="client-1")
        >>> deep = await orchestrator.deep("Fed holds rates steady.", "reuters")
    """

    def __init__(
        self,
        cache: ResultCache,
        quota: QuotaGuard,
        judgment: JudgmentAdapter,
        visual: VisualDescriber,
        search: TavilySearchClient,
        inflight: InflightRegistry | None = None,
        search_min_text_length: int | None = None,
        search_max_results: int | None = None,
    ) -> None:
        self.cache = cache
        self.quota = quota
        self.judgment = judgment
        self.visual = visual
        self.search = search
        self.inflight = inflight
        self.search_min_text_length = (
            settings.SEARCH_MIN_TEXT_LENGTH
            if search_min_text_length is None
            else search_min_text_length
        )
        self.search_max_results = search_max_results or settings.SEARCH_MAX_RESULTS

    @classmethod
    def from_settings(cls) -> AnalysisOrchestrator:
        """Wire the production collaborators from settings."""
        from .llm.llm_factory import get_judgment_llm, get_vision_llm
        from .redis_client import RedisClient

        store = RedisClient()
        return cls(
            cache=ResultCache(store),
            quota=QuotaGuard(store),
            judgment=JudgmentAdapter(get_judgment_llm()),
            visual=VisualDescriber(get_vision_llm()),
            search=TavilySearchClient(),
            inflight=InflightRegistry() if settings.ENABLE_INFLIGHT_COALESCING else None,
        )

    # ------------------------------------------------------------------
    # Quick tier
    # ------------------------------------------------------------------

    async def quick(self, text: str, author: str = "unknown", *, scope: str) -> QuickOutcome:
        """Quick verdict for a post.

        Raises:
            QuotaExceededError: When a live judgment is needed and the
                caller's daily quota is used up
        """
        key = fingerprint(text)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.info("quick_served_from_cache", key=key)
            return QuickOutcome(verdict=cached.to_quick(), cached=True)

        if not await self.quota.allow(scope):
            raise QuotaExceededError(scope, self.quota.daily_limit)

        verdict = await self.judgment.judge_quick(text, author)
        return QuickOutcome(verdict=verdict, cached=False)

    async def remaining(self, scope: str) -> int:
        return await self.quota.remaining(scope)

    async def usage(self, scope: str) -> QuotaUsage:
        return await self.quota.usage(scope)

    # ------------------------------------------------------------------
    # Deep tier
    # ------------------------------------------------------------------

    async def deep(
        self,
        text: str,
        author: str = "unknown",
        media: MediaDescriptors | None = None,
        comments: list[str] | None = None,
    ) -> DeepOutcome:
        """Deep verdict for a post, served from cache when complete."""
        media = media or MediaDescriptors()
        comments = [c for c in (comments or []) if c and c.strip()]
        key = fingerprint(text)

        cached = await self.cache.get(key)
        if cached is not None:
            if not comments or cached.has_comment_analysis:
                logger.info("deep_served_from_cache", key=key)
                return DeepOutcome(verdict=cached, cached=True)
            logger.info("deep_cache_incomplete_rerun", key=key, comments=len(comments))

        async def _compute() -> DeepVerdict:
            return await self._compute_deep(key, text, author, media, comments)

        if self.inflight is None:
            verdict = await _compute()
        else:
            coalesce_key = f"{key}:{'comments' if comments else 'plain'}"
            verdict = await self.inflight.run(coalesce_key, _compute)
        return DeepOutcome(verdict=verdict, cached=False)

    async def _describe_visuals(self, media: MediaDescriptors, text: str, author: str) -> str:
        if not media.has_visuals:
            return ""
        return await self.visual.describe(media, text, author)

    async def _corroborate(self, text: str) -> list[SearchResult]:
        if len(text) <= self.search_min_text_length:
            logger.debug("search_skipped_short_text", length=len(text))
            return []
        return await self.search.search(build_search_query(text), self.search_max_results)

    async def _fan_out(
        self, text: str, author: str, media: MediaDescriptors
    ) -> tuple[str, list[SearchResult]]:
        """Run the capability adapters concurrently; failures become empty signals."""
        visual, search = await asyncio.gather(
            self._describe_visuals(media, text, author),
            self._corroborate(text),
            return_exceptions=True,
        )
        if isinstance(visual, BaseException):
            logger.error("fanout_visual_failed", error=str(visual))
            visual = ""
        if isinstance(search, BaseException):
            logger.error("fanout_search_failed", error=str(search))
            search = []
        return visual, search

    async def _compute_deep(
        self,
        key: str,
        text: str,
        author: str,
        media: MediaDescriptors,
        comments: list[str],
    ) -> DeepVerdict:
        visual_description, results = await self._fan_out(text, author, media)
        logger.info(
            "deep_fanout_complete",
            key=key,
            has_visual=bool(visual_description),
            search_results=len(results),
        )

        judgment = await self.judgment.judge_deep(
            DeepJudgmentInput(
                text=text,
                author=author,
                media=media,
                visual_description=visual_description,
                search_results=results,
                comments=comments,
            )
        )

        verdict = judgment.verdict
        if not verdict.fallback:
            verdict = verdict.model_copy(
                update={
                    "counter_sources": merge_stances(results, judgment.source_labels),
                    "visual_assessment": verdict.visual_assessment or (visual_description or None),
                }
            )

        await self.cache.put(key, verdict)
        return verdict

    async def close(self) -> None:
        await self.search.close()
        await self.cache.store.close()
