"""Cringe/quality heuristic behind the "cringe" UI badge.

Additive point scheme over visual, audio and metadata signals, capped at 1.0.
Independent of the safety decision.
"""

from __future__ import annotations

import re
from typing import Optional

from loopsafe.moderation.models import AudioAnalysis, ContentMetadata, CringeResult, VisualAnalysis

CRINGE_THRESHOLD = 0.4
CRINGE_TAGS = ("challenge", "prank", "gone wrong", "reaction")

# Astral-plane characters, which is where emoji live.
_EMOJI_RE = re.compile("[\U00010000-\U0010FFFF]")


def is_all_caps_title(title: str) -> bool:
    return len(title) > 10 and title == title.upper()


def count_emoji(text: str) -> int:
    return len(_EMOJI_RE.findall(text))


def score(
    visual: VisualAnalysis,
    audio: AudioAnalysis,
    transcript: str,
    metadata: Optional[ContentMetadata] = None,
) -> CringeResult:
    """Score a video for cringe factors.

    *transcript* is accepted for parity with the other analyzers; spoken
    patterns reach this function already distilled into *audio*.
    """
    points = 0.0
    factors: list[str] = []

    visual_flags = visual.flagged_content
    if visual_flags.awkward_expressions:
        points += 0.2
        factors.append("awkward_expressions")
    if visual_flags.excessive_exaggeration:
        points += 0.2
        factors.append("excessive_exaggeration")
    if visual_flags.low_quality_content:
        points += 0.1
        factors.append("low_quality_content")

    audio_flags = audio.flagged_content
    if audio_flags.forced_humor:
        points += 0.2
        factors.append("forced_humor")
    if audio_flags.awkward_phrases:
        points += 0.1 * len(audio_flags.awkward_phrases)
        factors.append("awkward_phrases")
    if audio_flags.embarrassing_speech_patterns:
        points += 0.2
        factors.append("embarrassing_speech_patterns")

    if metadata is not None:
        if metadata.title:
            if count_emoji(metadata.title) > 3:
                points += 0.1
                factors.append("excessive_emojis")
            if is_all_caps_title(metadata.title):
                points += 0.1
                factors.append("all_caps_title")

        if metadata.tags:
            lowered = [t.lower() for t in metadata.tags]
            found = [tag for tag in CRINGE_TAGS if any(tag in t for t in lowered)]
            if found:
                points += 0.1 * len(found)
                factors.append("cringe_tags")

    points = min(1.0, points)
    return CringeResult(
        is_cringe=points > CRINGE_THRESHOLD,
        cringe_score=points,
        cringe_factors=factors,
    )
