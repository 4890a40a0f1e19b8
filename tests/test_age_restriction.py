"""Tests for the age-gate classifier."""

from loopsafe.moderation.age_restriction import classify
from loopsafe.moderation.models import (
    AudioAnalysis,
    AudioFlags,
    MetadataAnalysis,
    MetadataFlags,
    VisualAnalysis,
    VisualFlags,
)


def _classify(visual_flags=None, abusive=None, tags=None):
    return classify(
        VisualAnalysis(flagged_content=VisualFlags(**(visual_flags or {}))),
        AudioAnalysis(flagged_content=AudioFlags(abusive_language=abusive or [])),
        MetadataAnalysis(flagged_content=MetadataFlags(inappropriate_tags=tags or [])),
    )


def test_clean_content_is_not_restricted():
    result = _classify()
    assert not result.is_restricted
    assert result.minimum_age == 0
    assert result.reason == ""


def test_adult_visual_is_eighteen():
    result = _classify({"inappropriate_visual": ["possible_adult_content"]})
    assert result.is_restricted
    assert result.minimum_age == 18
    assert result.reason == "Adult or suggestive content"


def test_suggestive_imagery_is_eighteen():
    result = _classify({"sensitive_content": ["suggestive_imagery"]})
    assert result.minimum_age == 18


def test_other_sensitive_content_does_not_restrict():
    result = _classify({"sensitive_content": ["child_safety_concern"]})
    assert not result.is_restricted


def test_violence_is_sixteen():
    result = _classify({"violent_content": ["weapon"]})
    assert result.minimum_age == 16
    assert result.reason == "Violent content"


def test_adult_rule_wins_over_violence():
    result = _classify(
        {
            "inappropriate_visual": ["possible_adult_content"],
            "violent_content": ["weapon"],
        }
    )
    assert result.minimum_age == 18
    assert result.reason == "Adult or suggestive content"


def test_violence_wins_over_later_eighteen_rule():
    result = _classify({"violent_content": ["weapon"]}, tags=["nsfw"])
    assert result.minimum_age == 16


def test_strong_language_needs_more_than_one_term():
    assert not _classify(abusive=["stupid"]).is_restricted
    result = _classify(abusive=["stupid", "idiot"])
    assert result.minimum_age == 13
    assert result.reason == "Strong language"


def test_inappropriate_tags_are_eighteen():
    result = _classify(tags=["adult"])
    assert result.minimum_age == 18
    assert result.reason == "Inappropriate content tags"
