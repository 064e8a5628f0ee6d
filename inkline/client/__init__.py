"""Client side: HTTP wire client and the per-post lifecycle manager."""

from .api_client import AnalysisOutcome, InklineApiClient, UsageSnapshot
from .lifecycle import (
    BadgeState,
    CommentSource,
    ContentRecord,
    ContentState,
    DetectedContent,
    LifecycleManager,
    PanelState,
    ViewListener,
)

__all__ = [
    "AnalysisOutcome",
    "BadgeState",
    "CommentSource",
    "ContentRecord",
    "ContentState",
    "DetectedContent",
    "InklineApiClient",
    "LifecycleManager",
    "PanelState",
    "UsageSnapshot",
    "ViewListener",
]
