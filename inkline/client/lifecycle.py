"""Client-side content lifecycle.

Each detected post gets one ``ContentRecord`` keyed by its content id. The
record moves through an explicit state machine::

    UNSEEN -> QUICK_PENDING -> QUICK_ERROR
                            -> QUICK_READY -> DEEP_PENDING -> DEEP_ERROR
                                                           -> DEEP_READY

Deep analysis starts on sustained hover, on click, or automatically when the
quick verdict is not green. At most one quick and one deep request are in
flight per id; repeat triggers join the pending request instead of issuing a
new one. Records live only for the view session.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol

import structlog

from ..core.config import settings
from ..models.content import MAX_COMMENT_EXCERPTS, MediaDescriptors
from ..models.verdict import DeepVerdict, QuickVerdict, Rating
from .api_client import AnalysisOutcome, ErrorKind, InklineApiClient

logger = structlog.get_logger(__name__)

MIN_CONTENT_LENGTH = 10


class ContentState(str, Enum):
    UNSEEN = "unseen"
    QUICK_PENDING = "quick_pending"
    QUICK_ERROR = "quick_error"
    QUICK_READY = "quick_ready"
    DEEP_PENDING = "deep_pending"
    DEEP_ERROR = "deep_error"
    DEEP_READY = "deep_ready"


class BadgeState(str, Enum):
    HIDDEN = "hidden"
    LOADING = "loading"
    ERROR = "error"
    SIGNAL = "signal"


class PanelState(str, Enum):
    CLOSED = "closed"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass
class DetectedContent:
    """One post as reported by the extraction layer."""

    id: str
    text: str = ""
    author: str = "unknown"
    media: MediaDescriptors = field(default_factory=MediaDescriptors)
    comment_excerpts: list[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DetectedContent:
        """Build from a loosely-shaped extraction payload; missing fields default."""
        media = data.get("media") or data.get("media_descriptors") or {}
        comments = data.get("comment_excerpts") or data.get("comments") or []
        return cls(
            id=str(data.get("id") or ""),
            text=str(data.get("text") or ""),
            author=str(data.get("author") or "unknown"),
            media=media if isinstance(media, MediaDescriptors) else MediaDescriptors.model_validate(media),
            comment_excerpts=[str(c) for c in comments if c],
        )


@dataclass
class ContentRecord:
    """Client-owned state for one detected post."""

    id: str
    text: str
    author: str = "unknown"
    media: MediaDescriptors = field(default_factory=MediaDescriptors)
    comment_excerpts: list[str] = field(default_factory=list)
    state: ContentState = ContentState.UNSEEN
    quick_result: QuickVerdict | None = None
    deep_result: DeepVerdict | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    panel_open: bool = False

    @property
    def deep_pending(self) -> bool:
        return self.state is ContentState.DEEP_PENDING

    @property
    def badge(self) -> BadgeState:
        if self.state is ContentState.UNSEEN:
            return BadgeState.HIDDEN
        if self.state is ContentState.QUICK_PENDING:
            return BadgeState.LOADING
        if self.state is ContentState.QUICK_ERROR:
            return BadgeState.ERROR
        return BadgeState.SIGNAL

    @property
    def badge_rating(self) -> Rating | None:
        """Deep overall once available, otherwise the quick overall."""
        if self.deep_result is not None:
            return self.deep_result.overall
        if self.quick_result is not None:
            return self.quick_result.overall
        return None

    @property
    def panel(self) -> PanelState:
        if not self.panel_open:
            return PanelState.CLOSED
        if self.deep_result is not None:
            return PanelState.READY
        if self.state is ContentState.DEEP_ERROR:
            return PanelState.ERROR
        return PanelState.LOADING


class ViewListener(Protocol):
    """Presentation hook, called after every state transition."""

    def on_change(self, record: ContentRecord) -> None: ...


class CommentSource(Protocol):
    """Re-reads the current comment excerpts for a post."""

    def refresh(self, content_id: str) -> list[str]: ...


class LifecycleManager:
    """Owns every ContentRecord of the current view session.

    Example:
        >>> manager = LifecycleManager(InklineApiClient(), listener=renderer)
        >>> manager.schedule_detection([DetectedContent(id="x:1", text="Fed holds rates steady.")])
        >>> manager.hover_start("x:1")
    """

    def __init__(
        self,
        api: InklineApiClient,
        listener: ViewListener | None = None,
        comment_source: CommentSource | None = None,
        hover_delay_ms: int | None = None,
        debounce_ms: int | None = None,
        auto_escalate: bool = True,
    ) -> None:
        self.api = api
        self.listener = listener
        self.comment_source = comment_source
        self.hover_delay = (
            settings.CLIENT_HOVER_DELAY_MS if hover_delay_ms is None else hover_delay_ms
        ) / 1000
        self.debounce_delay = (
            settings.CLIENT_DEBOUNCE_MS if debounce_ms is None else debounce_ms
        ) / 1000
        self.auto_escalate = auto_escalate

        self._records: dict[str, ContentRecord] = {}
        self._quick_tasks: dict[str, asyncio.Task[None]] = {}
        self._deep_tasks: dict[str, asyncio.Task[None]] = {}
        self._hover_timers: dict[str, asyncio.Task[None]] = {}
        self._batch: dict[str, DetectedContent] = {}
        self._debounce_task: asyncio.Task[None] | None = None
        self._flush_tasks: set[asyncio.Task[None]] = set()
        self.open_panel_id: str | None = None

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def get(self, content_id: str) -> ContentRecord | None:
        return self._records.get(content_id)

    @property
    def records(self) -> list[ContentRecord]:
        return list(self._records.values())

    def _notify(self, record: ContentRecord) -> None:
        if self.listener is None:
            return
        try:
            self.listener.on_change(record)
        except Exception as e:
            logger.error("view_listener_failed", content_id=record.id, error=str(e))

    def _transition(
        self,
        record: ContentRecord,
        state: ContentState,
        error: str | None = None,
        error_kind: ErrorKind | None = None,
    ) -> None:
        record.state = state
        record.error = error
        record.error_kind = error_kind
        self._notify(record)

    @staticmethod
    def _merge_comments(record: ContentRecord, fresh: list[str]) -> None:
        fresh = [c for c in fresh if c][:MAX_COMMENT_EXCERPTS]
        if len(fresh) > len(record.comment_excerpts):
            record.comment_excerpts = fresh

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def detect(self, item: DetectedContent) -> asyncio.Task[None] | None:
        """Register a post and start its quick analysis.

        Re-detecting a known id only refreshes its comment excerpts.

        Returns:
            The quick-analysis task for a new record, else None
        """
        if not item.id or len(item.text.strip()) < MIN_CONTENT_LENGTH:
            return None

        record = self._records.get(item.id)
        if record is not None:
            self._merge_comments(record, item.comment_excerpts)
            return None

        record = ContentRecord(
            id=item.id,
            text=item.text,
            author=item.author or "unknown",
            media=item.media,
            comment_excerpts=[c for c in item.comment_excerpts if c][:MAX_COMMENT_EXCERPTS],
        )
        self._records[item.id] = record

        task = asyncio.ensure_future(self._run_quick(record))
        self._quick_tasks[item.id] = task
        task.add_done_callback(lambda _t, cid=item.id: self._quick_tasks.pop(cid, None))
        return task

    def schedule_detection(self, items: list[DetectedContent]) -> None:
        """Queue detected posts; bursts within the debounce window are processed once."""
        for item in items:
            self._batch[item.id] = item
        if self._debounce_task is not None:
            self._debounce_task.cancel()
        self._debounce_task = asyncio.ensure_future(self._debounced_flush())

    async def _debounced_flush(self) -> None:
        await asyncio.sleep(self.debounce_delay)
        self._debounce_task = None
        flush = asyncio.ensure_future(self.flush())
        self._flush_tasks.add(flush)
        flush.add_done_callback(self._flush_tasks.discard)

    async def flush(self) -> None:
        """Run one detection pass over everything queued so far."""
        batch, self._batch = list(self._batch.values()), {}
        tasks = [t for t in (self.detect(item) for item in batch) if t is not None]
        logger.debug("detection_pass", queued=len(batch), new=len(tasks))
        if tasks:
            await asyncio.gather(*tasks)

    async def _run_quick(self, record: ContentRecord) -> None:
        self._transition(record, ContentState.QUICK_PENDING)
        try:
            outcome = await self.api.quick(record.id, record.text, record.author)
        except Exception as e:
            logger.error("quick_request_failed", content_id=record.id, error=str(e))
            outcome = AnalysisOutcome.failure("transport", str(e))

        if not outcome.ok:
            self._transition(
                record, ContentState.QUICK_ERROR, outcome.error, outcome.error_kind
            )
            return

        record.quick_result = outcome.value
        self._transition(record, ContentState.QUICK_READY)

        if self.auto_escalate and record.quick_result.overall != "green":
            logger.info(
                "auto_escalating", content_id=record.id, overall=record.quick_result.overall
            )
            self.escalate(record.id)

    # ------------------------------------------------------------------
    # Deep escalation
    # ------------------------------------------------------------------

    def escalate(self, content_id: str) -> asyncio.Task[None] | None:
        """Start (or join) the deep analysis for a post.

        Returns:
            The in-flight deep task, or None when the post has no quick
            signal yet or already has a deep result
        """
        record = self._records.get(content_id)
        if record is None or record.deep_result is not None:
            return None

        pending = self._deep_tasks.get(content_id)
        if pending is not None:
            return pending

        if record.state not in (ContentState.QUICK_READY, ContentState.DEEP_ERROR):
            return None

        if self.comment_source is not None:
            try:
                self._merge_comments(record, self.comment_source.refresh(content_id))
            except Exception as e:
                logger.warning("comment_refresh_failed", content_id=content_id, error=str(e))

        self._transition(record, ContentState.DEEP_PENDING)
        task = asyncio.ensure_future(self._run_deep(record))
        self._deep_tasks[content_id] = task
        task.add_done_callback(lambda _t, cid=content_id: self._deep_tasks.pop(cid, None))
        return task

    async def _run_deep(self, record: ContentRecord) -> None:
        try:
            outcome = await self.api.deep(
                record.id,
                record.text,
                record.author,
                media=record.media,
                comments=record.comment_excerpts,
            )
        except Exception as e:
            logger.error("deep_request_failed", content_id=record.id, error=str(e))
            outcome = AnalysisOutcome.failure("transport", str(e))

        if not outcome.ok:
            self._transition(record, ContentState.DEEP_ERROR, outcome.error, outcome.error_kind)
            return

        record.deep_result = outcome.value
        self._transition(record, ContentState.DEEP_READY)

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def hover_start(self, content_id: str) -> None:
        """Escalate once the pointer has rested on the post for the hover delay."""
        record = self._records.get(content_id)
        if record is None or record.deep_result is not None or content_id in self._hover_timers:
            return
        timer = asyncio.ensure_future(self._hover_then_escalate(content_id))
        self._hover_timers[content_id] = timer
        timer.add_done_callback(lambda _t, cid=content_id: self._hover_timers.pop(cid, None))

    async def _hover_then_escalate(self, content_id: str) -> None:
        await asyncio.sleep(self.hover_delay)
        self.escalate(content_id)

    def hover_end(self, content_id: str) -> None:
        timer = self._hover_timers.pop(content_id, None)
        if timer is not None:
            timer.cancel()

    def click(self, content_id: str) -> asyncio.Task[None] | None:
        """Open the post's panel, escalating to deep when there is no deep result."""
        record = self._records.get(content_id)
        if record is None or record.badge is not BadgeState.SIGNAL:
            return None
        self.hover_end(content_id)
        task = self.escalate(content_id)
        self.open_panel(content_id)
        return task

    def open_panel(self, content_id: str) -> None:
        """Show one panel; any other open panel is closed first."""
        record = self._records.get(content_id)
        if record is None:
            return
        if self.open_panel_id is not None and self.open_panel_id != content_id:
            self.close_panel()
        record.panel_open = True
        self.open_panel_id = content_id
        self._notify(record)

    def close_panel(self) -> None:
        if self.open_panel_id is None:
            return
        record = self._records.get(self.open_panel_id)
        self.open_panel_id = None
        if record is not None:
            record.panel_open = False
            self._notify(record)

    async def remaining(self) -> int | None:
        """Quick analyses left today, or None when the server cannot be reached."""
        usage = await self.api.usage()
        return usage.remaining if usage is not None else None

    async def close(self) -> None:
        """End the view session: cancel timers and pending work, drop all records."""
        pending: list[asyncio.Task[None]] = [
            *self._hover_timers.values(),
            *self._quick_tasks.values(),
            *self._deep_tasks.values(),
            *self._flush_tasks,
        ]
        if self._debounce_task is not None:
            pending.append(self._debounce_task)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        self._debounce_task = None
        self._batch.clear()
        self._records.clear()
        self.open_panel_id = None
