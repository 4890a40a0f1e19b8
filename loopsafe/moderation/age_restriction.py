"""Age-gate classifier.

Rules form a priority chain: the first matching rule decides the minimum age
and later rules are never consulted, so ties break on rule order rather than
severity.
"""

from __future__ import annotations

from loopsafe.moderation.models import (
    AgeRestriction,
    AudioAnalysis,
    MetadataAnalysis,
    VisualAnalysis,
)

ADULT_VISUAL_FLAG = "possible_adult_content"
SUGGESTIVE_FLAG = "suggestive_imagery"


def classify(
    visual: VisualAnalysis,
    audio: AudioAnalysis,
    metadata: MetadataAnalysis,
) -> AgeRestriction:
    """Return the age restriction for a video, or an unrestricted result."""
    visual_flags = visual.flagged_content

    if (
        ADULT_VISUAL_FLAG in visual_flags.inappropriate_visual
        or SUGGESTIVE_FLAG in visual_flags.sensitive_content
    ):
        return AgeRestriction(is_restricted=True, minimum_age=18, reason="Adult or suggestive content")

    if visual_flags.violent_content:
        return AgeRestriction(is_restricted=True, minimum_age=16, reason="Violent content")

    if len(audio.flagged_content.abusive_language) > 1:
        return AgeRestriction(is_restricted=True, minimum_age=13, reason="Strong language")

    if metadata.flagged_content.inappropriate_tags:
        return AgeRestriction(is_restricted=True, minimum_age=18, reason="Inappropriate content tags")

    return AgeRestriction()
