"""Tests for the oracle-backed content analyzer."""

import json

import anthropic
import httpx
import pytest

from loopsafe.moderation.models import ModerationAction, ModerationResult
from loopsafe.oracle.analyzer import ContentAnalyzer, parse_json_answer
from loopsafe.oracle.client import NOT_CONFIGURED_MSG, LLMClient
from loopsafe.oracle.prompts import EXPLANATION_FALLBACK


def _verdict(**overrides) -> str:
    data = {
        "isViolation": True,
        "categories": ["hate"],
        "primaryCategory": "hate",
        "confidence": 0.92,
        "recommendedAction": "warn",
        "explanation": "Targets a group.",
    }
    data.update(overrides)
    return json.dumps(data)


def _connection_error():
    return anthropic.APIConnectionError(
        message="connection refused",
        request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"),
    )


# --- Parsing ---


def test_parse_plain_json():
    assert parse_json_answer('{"isSafe": true}') == {"isSafe": True}


def test_parse_fenced_json():
    assert parse_json_answer('```json\n{"isSafe": false}\n```') == {"isSafe": False}


def test_parse_rejects_non_object():
    with pytest.raises(ValueError):
        parse_json_answer("[1, 2]")


# --- analyze ---


def test_text_analysis_detects_language_first(fake_client):
    client = fake_client(["English", _verdict()])
    result = ContentAnalyzer(client=client).analyze("some hateful text")
    assert len(client.prompts) == 2
    assert result.language == "english"
    assert not result.is_safe
    assert result.category == "hate"
    assert result.confidence == pytest.approx(0.92)
    assert result.recommended_action == ModerationAction.WARN
    assert not result.degraded


def test_image_analysis_skips_language_detection(fake_client):
    client = fake_client([_verdict(isViolation=False, categories=[], primaryCategory=None, recommendedAction="allow")])
    result = ContentAnalyzer(client=client).analyze("a sunset", content_type="image")
    assert len(client.prompts) == 1
    assert result.is_safe
    assert result.category == "clean"
    assert result.categories == ["clean"]
    assert result.content_type == "image"


def test_recent_violations_reach_the_prompt(fake_client):
    client = fake_client([_verdict()])
    ContentAnalyzer(client=client).analyze("x", content_type="audio", recent_violations=4)
    assert "4" in client.prompts[0]


def test_single_string_category_is_one_category(fake_client):
    client = fake_client([_verdict(categories="hate", primaryCategory=None)])
    result = ContentAnalyzer(client=client).analyze("x", content_type="image")
    assert result.categories == ["hate"]
    assert result.category == "hate"


def test_confidence_is_clamped(fake_client):
    client = fake_client([_verdict(confidence=3)])
    result = ContentAnalyzer(client=client).analyze("x", content_type="image")
    assert result.confidence == 1.0


def test_malformed_answer_fails_open(fake_client):
    client = fake_client(["english", "not json at all"])
    result = ContentAnalyzer(client=client).analyze("hello")
    assert result.is_safe
    assert result.degraded
    assert result.confidence == 0.5
    assert result.category == "clean"


def test_malformed_answer_fails_to_review(fake_client):
    client = fake_client(["english", "not json at all"])
    result = ContentAnalyzer(client=client, fail_open=False).analyze("hello")
    assert not result.is_safe
    assert result.degraded
    assert result.confidence == 0.5


def test_missing_required_key_falls_back(fake_client):
    client = fake_client([json.dumps({"categories": ["spam"]})])
    result = ContentAnalyzer(client=client).analyze("x", content_type="image")
    assert result.degraded


def test_sdk_error_falls_back(fake_client):
    client = fake_client([_connection_error(), _connection_error()])
    result = ContentAnalyzer(client=client).analyze("hello")
    assert result.is_safe
    assert result.degraded
    assert result.language == "unknown"


def test_unconfigured_client_falls_back(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    client = LLMClient()
    assert not client.configured
    assert client.complete("hi").content == NOT_CONFIGURED_MSG

    result = ContentAnalyzer(client=client).analyze("hello")
    assert result.is_safe
    assert result.degraded


def test_fallback_is_logged(fake_client, caplog):
    client = fake_client(["garbage"])
    with caplog.at_level("WARNING", logger="loopsafe.oracle.analyzer"):
        ContentAnalyzer(client=client).analyze("x", content_type="image")
    assert any("failing open" in r.getMessage() for r in caplog.records)


# --- detect_language ---


def test_unknown_language_answer(fake_client):
    client = fake_client(["Klingon"])
    assert ContentAnalyzer(client=client).detect_language("nuqneH") == "unknown"


def test_language_answer_is_normalised(fake_client):
    client = fake_client(['"Telugu-English."'])
    assert ContentAnalyzer(client=client).detect_language("ela unnav bro") == "telugu-english"


# --- analyze_visual ---


def test_visual_analysis(fake_client):
    answer = json.dumps(
        {
            "isSafe": False,
            "violentContent": ["weapon"],
            "awkwardExpressions": True,
            "confidence": 0.8,
        }
    )
    visual = ContentAnalyzer(client=fake_client([answer])).analyze_visual("a man waves a knife")
    assert not visual.is_safe
    assert visual.flagged_content.violent_content == ["weapon"]
    assert visual.flagged_content.awkward_expressions
    assert visual.confidence_score == pytest.approx(0.8)


def test_visual_flag_given_as_string(fake_client):
    answer = json.dumps({"isSafe": False, "violentContent": "weapon", "sensitiveContent": "", "confidence": 0.7})
    visual = ContentAnalyzer(client=fake_client([answer])).analyze_visual("a man waves a knife")
    assert visual.flagged_content.violent_content == ["weapon"]
    assert visual.flagged_content.sensitive_content == []


def test_visual_failure_modes(fake_client):
    open_visual = ContentAnalyzer(client=fake_client(["oops"])).analyze_visual("frames")
    assert open_visual.is_safe
    assert open_visual.confidence_score == 0.5

    review_visual = ContentAnalyzer(client=fake_client(["oops"]), fail_open=False).analyze_visual("frames")
    assert not review_visual.is_safe
    assert review_visual.confidence_score == 0.5


# --- explain ---


def test_explain(fake_client):
    analyzer = ContentAnalyzer(client=fake_client(["  Your post was flagged for hate speech.  "]))
    text = analyzer.explain("x", ModerationResult(is_safe=False, category="hate"))
    assert text == "Your post was flagged for hate speech."


def test_explain_falls_back_on_error(fake_client):
    analyzer = ContentAnalyzer(client=fake_client([_connection_error()]))
    assert analyzer.explain("x", ModerationResult(is_safe=True)) == EXPLANATION_FALLBACK


# --- detect_hate_speech ---


def _hate_verdict(**overrides) -> str:
    data = {
        "isHateSpeech": True,
        "category": "hate",
        "severity": "high",
        "confidence": 0.88,
        "targetGroups": ["caste"],
        "explanation": "Demeans a caste group.",
    }
    data.update(overrides)
    return json.dumps(data)


def test_hate_speech_detection(fake_client):
    client = fake_client(["telugu-english", _hate_verdict()])
    result = ContentAnalyzer(client=client).detect_hate_speech("some hateful text")
    assert result.is_hate_speech
    assert result.category == "hate"
    assert result.severity == "high"
    assert result.target_groups == ["caste"]
    assert result.language == "telugu-english"
    assert not result.feedback_incorporated
    assert not result.degraded
    assert "mixes Telugu and English" in client.prompts[1]
    assert "Reviewers" not in client.prompts[1]


def test_hate_speech_prompt_mentions_prior_feedback(fake_client):
    client = fake_client(["english", _hate_verdict(targetGroups="women")])
    result = ContentAnalyzer(client=client).detect_hate_speech("x", prior_agreement=True)
    assert result.feedback_incorporated
    assert result.target_groups == ["women"]
    assert "Reviewers have previously agreed" in client.prompts[1]


def test_hate_speech_unknown_category_falls_back(fake_client):
    client = fake_client(["english", _hate_verdict(category="rude")])
    result = ContentAnalyzer(client=client).detect_hate_speech("x")
    assert result.degraded
    assert not result.is_hate_speech
    assert result.category == "clean"
    assert result.severity == "none"
    assert result.confidence == 0.5
    assert result.language == "unknown"


def test_hate_speech_failure_to_review(fake_client):
    client = fake_client([_connection_error(), _connection_error()])
    result = ContentAnalyzer(client=client, fail_open=False).detect_hate_speech("x")
    assert result.degraded
    assert result.is_hate_speech
    assert result.category == "unavailable"


# --- analyze_sentiment ---


def test_sentiment_analysis(fake_client):
    answer = json.dumps(
        {
            "sentiment": "Mixed",
            "scores": {"positive": 0.4, "negative": 0.3, "neutral": 0.1, "mixed": 0.6},
            "dominantEmotion": "nostalgia",
            "confidence": 0.75,
        }
    )
    result = ContentAnalyzer(client=fake_client(["english", answer])).analyze_sentiment("bittersweet goodbye")
    assert result.sentiment == "mixed"
    assert result.scores["mixed"] == pytest.approx(0.6)
    assert result.dominant_emotion == "nostalgia"
    assert result.language == "english"
    assert not result.degraded
    assert result.to_dict()["colorCode"] == "#FF9800"


def test_sentiment_missing_scores_default_to_zero(fake_client):
    answer = json.dumps({"sentiment": "positive", "scores": {"positive": 0.9}, "confidence": 0.9})
    result = ContentAnalyzer(client=fake_client(["english", answer])).analyze_sentiment("great")
    assert result.scores == {"positive": 0.9, "negative": 0.0, "neutral": 0.0, "mixed": 0.0}


def test_sentiment_falls_back_to_neutral(fake_client):
    bad_answers = [
        "not json",
        json.dumps({"sentiment": "ecstatic", "confidence": 1}),
        json.dumps({"sentiment": "positive", "scores": [1], "confidence": 1}),
    ]
    for answer in bad_answers:
        result = ContentAnalyzer(client=fake_client(["english", answer])).analyze_sentiment("x")
        assert result.degraded
        assert result.sentiment == "neutral"
        assert result.dominant_emotion == "indifference"
        assert result.scores == {"positive": 0.25, "negative": 0.25, "neutral": 0.5, "mixed": 0.0}
        assert result.confidence == 0.5
