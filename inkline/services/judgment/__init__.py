"""Judgment stage: prompts, response validation and the adapter."""

from .judgment_adapter import DeepJudgmentInput, JudgmentAdapter
from .validator import DeepJudgment, JudgmentError, SourceLabel

__all__ = [
    "DeepJudgment",
    "DeepJudgmentInput",
    "JudgmentAdapter",
    "JudgmentError",
    "SourceLabel",
]
