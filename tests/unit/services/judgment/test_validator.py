"""Tests for judgment response validation."""

from __future__ import annotations

from typing import Any

import pytest

from inkline.services.judgment.validator import (
    JudgmentError,
    extract_json,
    normalize_confidence,
    parse_deep,
    parse_quick,
)


def dimension(rating: str = "green", label: str = "Fine") -> dict[str, Any]:
    return {"rating": rating, "label": label, "reason": "Because."}


def deep_payload(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "overall": "amber",
        "perspective": dimension("amber", "Leans right"),
        "verification": dimension(),
        "balance": dimension("amber"),
        "source": dimension(),
        "tone": dimension(),
        "summary": "Real event, selective framing.",
        "confidence": 0.82,
        "counterPerspective": "Others argue the pause reflects caution, not weakness.",
        "sources": [],
        "visualAssessment": None,
        "commentAnalysis": None,
    }
    data.update(overrides)
    return data


@pytest.mark.unit
class TestExtractJson:
    def test_plain_object(self):
        assert extract_json('{"overall": "green"}') == {"overall": "green"}

    def test_fenced_object(self):
        assert extract_json('```json\n{"overall": "red"}\n```') == {"overall": "red"}

    @pytest.mark.parametrize("content", ["", "   ", "not json", "[1, 2]"])
    def test_rejects(self, content: str):
        with pytest.raises(JudgmentError):
            extract_json(content)


@pytest.mark.unit
class TestNormalizeConfidence:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0.4, 0.4),
            (1.7, 1.0),
            (-0.2, 0.0),
            (1, 1.0),
            (None, 0.7),
            ("0.9", 0.7),
            (True, 0.7),
            (float("nan"), 0.7),
        ],
    )
    def test_values(self, value: Any, expected: float):
        assert normalize_confidence(value) == expected


@pytest.mark.unit
class TestParseQuick:
    def test_valid(self):
        verdict = parse_quick({"overall": "green", "summary": "Straight report.", "confidence": 0.9})
        assert verdict.overall == "green"
        assert verdict.fallback is False

    def test_invalid_rating_rejected(self):
        with pytest.raises(JudgmentError):
            parse_quick({"overall": "yellow", "summary": "x", "confidence": 0.5})

    def test_missing_summary_rejected(self):
        with pytest.raises(JudgmentError):
            parse_quick({"overall": "green", "confidence": 0.5})

    def test_confidence_defaults(self):
        assert parse_quick({"overall": "red", "summary": "x"}).confidence == 0.7


@pytest.mark.unit
class TestParseDeep:
    def test_valid(self):
        judgment = parse_deep(deep_payload(), has_comments=False, result_count=0, has_media=False)

        verdict = judgment.verdict
        assert verdict.overall == "amber"
        assert verdict.perspective.label == "Leans right"
        assert verdict.counter_perspective is not None
        assert verdict.comment_analysis is None
        assert judgment.source_labels == []

    def test_invalid_dimension_rating_rejected(self):
        with pytest.raises(JudgmentError):
            parse_deep(
                deep_payload(tone=dimension("orange")),
                has_comments=False,
                result_count=0,
                has_media=False,
            )

    def test_missing_dimension_rejected(self):
        payload = deep_payload()
        del payload["balance"]
        with pytest.raises(JudgmentError):
            parse_deep(payload, has_comments=False, result_count=0, has_media=False)

    def test_counter_perspective_dropped_when_perspective_green(self):
        judgment = parse_deep(
            deep_payload(perspective=dimension("green")),
            has_comments=False,
            result_count=0,
            has_media=False,
        )
        assert judgment.verdict.counter_perspective is None

    def test_source_labels(self):
        judgment = parse_deep(
            deep_payload(
                sources=[
                    {"index": 1, "relevant": False, "stance": "neutral"},
                    {"index": 2, "relevant": True, "stance": "counter", "lean": "center"},
                    {"index": 3, "relevant": "yes", "stance": "supporting"},
                    {"index": 9, "relevant": True, "stance": "counter"},
                    {"index": "2", "relevant": True},
                    {"index": 2, "relevant": True, "stance": "hostile"},
                ]
            ),
            has_comments=False,
            result_count=3,
            has_media=False,
        )

        labels = judgment.source_labels
        assert [(label.index, label.relevant, label.stance) for label in labels] == [
            (1, False, "neutral"),
            (2, True, "counter"),
            (3, False, "supporting"),
            (2, True, "neutral"),
        ]
        assert labels[1].lean == "center"

    def test_comment_analysis_kept_only_with_comments(self):
        analysis = {
            "overallTone": "Mostly skeptical",
            "leaningSummary": "Replies lean left.",
            "agreementLevel": "unanimous",
            "highlights": [
                {"author": f"user{i}", "text": f"comment {i}", "reason": "r", "sentiment": "meh"}
                for i in range(5)
            ],
        }

        with_comments = parse_deep(
            deep_payload(commentAnalysis=analysis),
            has_comments=True,
            result_count=0,
            has_media=False,
        ).verdict.comment_analysis
        without_comments = parse_deep(
            deep_payload(commentAnalysis=analysis),
            has_comments=False,
            result_count=0,
            has_media=False,
        ).verdict.comment_analysis

        assert with_comments is not None
        assert with_comments.agreement_level == "mixed"
        assert len(with_comments.highlights) == 3
        assert with_comments.highlights[0].sentiment == "neutral"
        assert without_comments is None

    def test_snake_case_keys_accepted(self):
        payload = deep_payload()
        del payload["counterPerspective"]
        payload["counter_perspective"] = "Alternative view."

        judgment = parse_deep(payload, has_comments=False, result_count=0, has_media=True)

        assert judgment.verdict.counter_perspective == "Alternative view."
        assert judgment.verdict.has_media is True
