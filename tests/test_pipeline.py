"""Tests for the moderation pipeline."""

import json
import tempfile
from pathlib import Path

import pytest

from loopsafe.config import ModerationConfig
from loopsafe.logs.store import ModerationLogStore
from loopsafe.metrics.accuracy import AccuracyStore
from loopsafe.metrics.feedback import FeedbackStore
from loopsafe.moderation.models import (
    ContentMetadata,
    ModerationAction,
    ModerationDecision,
    ModerationResult,
    VisualAnalysis,
)
from loopsafe.moderation.pipeline import ModerationPipeline, text_decision
from loopsafe.moderation.violations import ViolationTracker
from loopsafe.oracle.analyzer import ContentAnalyzer
from loopsafe.security.audit_log import AuditLogger


def _make_pipeline(tmpdir, client, fail_open=True) -> ModerationPipeline:
    base = Path(tmpdir)
    return ModerationPipeline(
        log_store=ModerationLogStore(base / "moderation-logs"),
        analyzer=ContentAnalyzer(client=client, fail_open=fail_open),
        violations=ViolationTracker(base / "violations"),
        audit=AuditLogger(base / "audit_logs"),
        feedback=FeedbackStore(base / "feedback"),
        accuracy=AccuracyStore(base / "accuracy"),
    )


def _verdict(category, action, violation=True) -> str:
    return json.dumps(
        {
            "isViolation": violation,
            "categories": [category],
            "primaryCategory": category,
            "confidence": 0.9,
            "recommendedAction": action,
            "explanation": "",
        }
    )


# --- Video ---


def test_clean_video_is_approved_and_logged(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, fake_client())
        result = pipeline.moderate_video(
            "u1",
            "Making pancakes this morning.",
            metadata=ContentMetadata(title="Sunday pancakes", tags=["food"]),
            video_url="https://cdn.example/v1.mp4",
            post_id="p1",
        )
        assert result.moderation_decision == ModerationDecision.APPROVED
        assert result.overall_safety_score == pytest.approx(0.94)
        assert not result.needs_review

        entry = pipeline.log_store.get(result.log_id)
        assert entry["type"] == "video"
        assert entry["userId"] == "u1"
        assert entry["postId"] == "p1"
        assert entry["videoUrl"] == "https://cdn.example/v1.mp4"
        assert entry["moderationDecision"] == "approved"
        assert entry["metadata"]["title"] == "Sunday pancakes"
        assert entry["reviewed"] is False


def test_strong_language_is_age_restricted(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, fake_client())
        result = pipeline.moderate_video("u1", "you stupid idiot")
        assert result.age_restriction.minimum_age == 13
        assert result.overall_safety_score == pytest.approx(0.58)
        assert result.moderation_decision == ModerationDecision.AGE_RESTRICTED


def test_unsafe_visual_is_held_for_review(fake_client, caplog):
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, fake_client())
        with caplog.at_level("INFO", logger="loopsafe.moderation.pipeline"):
            result = pipeline.moderate_video("u1", "hello there", visual=VisualAnalysis(is_safe=False))
        assert result.moderation_decision == ModerationDecision.PENDING
        assert result.needs_review
        assert any(result.log_id in r.getMessage() for r in caplog.records)
        assert [e["id"] for e in pipeline.log_store.list_pending()] == [result.log_id]


def test_visual_description_goes_to_oracle(fake_client):
    answer = json.dumps({"isSafe": False, "violentContent": ["weapon"], "confidence": 0.9})
    client = fake_client([answer])
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, client)
        result = pipeline.moderate_video("u1", "", visual_description="a fight in a parking lot")
        assert len(client.prompts) == 1
        assert result.moderation_decision == ModerationDecision.REJECTED
        assert result.age_restriction.minimum_age == 16


def test_video_oracle_failure_in_review_mode(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, fake_client(["nonsense"]), fail_open=False)
        result = pipeline.moderate_video("u1", "hello there", visual_description="frames")
        assert not result.visual_analysis.is_safe
        assert result.moderation_decision == ModerationDecision.PENDING


def test_each_submission_logs_once(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, fake_client())
        pipeline.moderate_video("u1", "a")
        pipeline.moderate_video("u2", "b")
        assert len(pipeline.log_store.list_all()) == 2


# --- Text ---


def test_text_decision():
    assert text_decision(ModerationResult(is_safe=True)) == ModerationDecision.APPROVED
    assert (
        text_decision(ModerationResult(is_safe=False, recommended_action=ModerationAction.BAN))
        == ModerationDecision.REJECTED
    )
    assert (
        text_decision(ModerationResult(is_safe=False, recommended_action=ModerationAction.WARN))
        == ModerationDecision.PENDING
    )


def test_severe_text_is_escalated_and_recorded(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        client = fake_client(["english", _verdict("hate", "warn"), "This post attacks a group of people."])
        pipeline = _make_pipeline(tmpdir, client)
        outcome = pipeline.moderate_text("u1", "hateful words", post_id="p9")

        assert outcome.result.recommended_action == ModerationAction.SUSPEND
        assert outcome.moderation_decision == ModerationDecision.REJECTED
        assert pipeline.violations.count_recent("u1") == 1

        entry = pipeline.log_store.get(outcome.log_id)
        assert entry["type"] == "text"
        assert entry["postId"] == "p9"
        assert entry["result"]["recommendedAction"] == "suspend"
        assert entry["moderationDecision"] == "rejected"
        assert outcome.author_explanation == "This post attacks a group of people."
        assert entry["authorExplanation"] == outcome.author_explanation
        assert "Violation detected" in client.prompts[2]


def test_repeat_offender_is_escalated(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, fake_client([_verdict("spam", "warn")]))
        for _ in range(5):
            pipeline.violations.record_violation("u1", "spam", ModerationAction.WARN)

        outcome = pipeline.moderate_text("u1", "buy followers", content_type="image")
        assert outcome.result.recommended_action == ModerationAction.SUSPEND
        assert "5 recent violations" in pipeline.analyzer._client.prompts[0]


def test_degraded_verdict_is_not_counted_against_author(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, fake_client(["english", "garbled"]), fail_open=False)
        outcome = pipeline.moderate_text("u1", "hello")
        assert outcome.result.degraded
        assert not outcome.result.is_safe
        assert outcome.moderation_decision == ModerationDecision.PENDING
        assert pipeline.violations.count_recent("u1") == 0


def test_safe_text_gets_no_author_explanation(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        client = fake_client(["english", _verdict("clean", "allow", violation=False)])
        pipeline = _make_pipeline(tmpdir, client)
        outcome = pipeline.moderate_text("u1", "lovely sunset")
        assert outcome.author_explanation == ""
        assert len(client.prompts) == 2
        assert "authorExplanation" not in pipeline.log_store.get(outcome.log_id)


# --- Reviews ---


def test_review_updates_log_and_audits(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, fake_client())
        result = pipeline.moderate_video("u1", "hello", visual=VisualAnalysis(is_safe=False))
        entry = pipeline.review(result.log_id, "approved", "mod-anna", admin_notes="fine")

        assert entry["reviewResult"] == "approved"
        assert pipeline.log_store.list_pending() == []
        events = pipeline.audit.get_events_for_resource("moderation_log", result.log_id)
        assert len(events) == 1
        assert events[0].actor == "mod-anna"
        assert events[0].details["result"] == "approved"


def test_review_unknown_log_raises(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, fake_client())
        with pytest.raises(ValueError):
            pipeline.review("missing", "approved", "mod")
        assert pipeline.audit.get_events() == []


def test_review_post(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, fake_client())
        pipeline.moderate_video("u1", "a", post_id="p1")
        pipeline.moderate_video("u1", "b", post_id="p1")
        assert pipeline.review_post("p1", "rejected", "mod") == 2
        assert pipeline.audit.get_events_for_resource("post", "p1")[0].details["entries"] == 2


def test_from_config_places_stores_under_data_dir(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = ModerationPipeline.from_config(ModerationConfig(data_dir=tmpdir, oracle_failure_mode="review"))
        pipeline.moderate_video("u1", "hello")
        assert (Path(tmpdir) / "moderation-logs" / "logs.json").exists()
        assert not pipeline.analyzer.fail_open
        assert (Path(tmpdir) / "feedback").is_dir()
        assert (Path(tmpdir) / "accuracy").is_dir()


# --- Hate speech, sentiment and feedback ---


def _hate_answer(is_hate=True) -> str:
    return json.dumps(
        {
            "isHateSpeech": is_hate,
            "category": "hate" if is_hate else "clean",
            "severity": "high" if is_hate else "none",
            "confidence": 0.9,
            "targetGroups": ["religious group"] if is_hate else [],
            "explanation": "",
        }
    )


def test_hate_speech_uses_feedback_on_similar_content(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        client = fake_client(["english", _hate_answer(), "english", _hate_answer()])
        pipeline = _make_pipeline(tmpdir, client)

        first = pipeline.detect_hate_speech("those people should all leave this town")
        assert first.is_hate_speech
        assert not first.feedback_incorporated

        pipeline.record_feedback(
            "hate_speech", "those people should all leave this town", True, False, "mod-anna"
        )
        second = pipeline.detect_hate_speech("those people should all leave this town now")
        assert second.feedback_incorporated
        assert "disagreed" in client.prompts[3]


def test_unrelated_content_gets_no_feedback_note(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        client = fake_client(["english", _hate_answer(False)])
        pipeline = _make_pipeline(tmpdir, client)
        pipeline.record_feedback("hate_speech", "those people should all leave", True, True, "mod")

        result = pipeline.detect_hate_speech("what a great cricket match")
        assert not result.feedback_incorporated
        assert "Reviewers" not in client.prompts[1]


def test_record_feedback_rescores_model_and_audits(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, fake_client())
        assert pipeline.record_feedback("sentiment", "so happy today", "positive", "positive", "mod") == 100.0
        accuracy = pipeline.record_feedback("sentiment", "meh", "positive", "neutral", "mod")

        assert accuracy == pytest.approx(50.0)
        assert pipeline.accuracy.get_metrics()["sentiment"]["overall"] == pytest.approx(50.0)
        events = pipeline.audit.get_events(action="model_feedback")
        assert len(events) == 2
        assert events[0].resource_type == "sentiment"


def test_record_feedback_rejects_bad_labels(fake_client):
    with tempfile.TemporaryDirectory() as tmpdir:
        pipeline = _make_pipeline(tmpdir, fake_client())
        with pytest.raises(ValueError):
            pipeline.record_feedback("sentiment", "x", "furious", "positive", "mod")
        with pytest.raises(ValueError):
            pipeline.record_feedback("hate_speech", "x", "hate", True, "mod")
        with pytest.raises(ValueError):
            pipeline.record_feedback("security", "x", True, True, "mod")
        assert pipeline.feedback.entries() == []
        assert pipeline.accuracy.get_metrics()["sentiment"]["overall"] == 91.8
