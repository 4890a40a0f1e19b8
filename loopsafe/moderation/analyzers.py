"""Keyword analyzers for the audio (transcript) and metadata modalities.

These run locally and deterministically; only the visual modality needs the
moderation oracle.
"""

from __future__ import annotations

from typing import Optional

from loopsafe.moderation.cringe import is_all_caps_title
from loopsafe.moderation.models import (
    AudioAnalysis,
    AudioFlags,
    ContentMetadata,
    MetadataAnalysis,
    MetadataFlags,
)

# ---------------------------------------------------------------------------
# Blocklists / patterns
# ---------------------------------------------------------------------------

ABUSIVE_TERMS = ("garbage", "terrible", "fired", "stupid", "idiot", "hate")

MISINFORMATION_PHRASES = (
    "fake news",
    "conspiracy",
    "they don't want you to know",
    "secret cure",
)

UNAUTHORIZED_APPS = ("unauthorized-app", "banned-app", "illegal-app")

# Case-sensitive on purpose: "CRAZY" shouted, not "crazy" said.
FORCED_HUMOR_MARKERS = ("CRAZY", "epic", "smash that like button")

AWKWARD_PHRASES = ("what's up guys", "don't forget to subscribe", "you won't believe")

BANNED_TAGS = ("nsfw", "adult", "xxx", "violence", "hate")

CLICKBAIT_PHRASES = (
    "you won't believe",
    "shocking",
    "mind blowing",
    "doctors hate",
    "this will change",
    "secret",
    "they don't want you to know",
    "hack",
    "trick",
    "!!!",
)

AUDIO_SAFE_ABOVE = 0.6
MISLEADING_TITLE_ABOVE = 0.3


# ---------------------------------------------------------------------------
# Audio
# ---------------------------------------------------------------------------


def analyze_transcript(transcript: str, is_child_content: bool = False) -> AudioAnalysis:
    """Analyse a transcript for abusive language, misinformation and cringe markers."""
    lowered = transcript.lower()

    abusive = [term for term in ABUSIVE_TERMS if term in lowered]
    misinformation = [phrase for phrase in MISINFORMATION_PHRASES if phrase in lowered]
    apps = [app for app in UNAUTHORIZED_APPS if app in lowered]
    forced_humor = any(marker in transcript for marker in FORCED_HUMOR_MARKERS)
    awkward = [phrase for phrase in AWKWARD_PHRASES if phrase in lowered]
    speech_patterns = "!" in transcript and len(transcript.split("!")) > 3

    score = 0.9
    score -= 0.2 * len(abusive)
    score -= 0.3 * len(misinformation)
    score -= 0.4 * len(apps)
    if forced_humor:
        score -= 0.1
    score -= 0.05 * len(awkward)
    if speech_patterns:
        score -= 0.1

    # Stricter standard for content aimed at children
    if is_child_content:
        score -= 0.1 * len(abusive)

    score = max(0.0, min(1.0, score))

    return AudioAnalysis(
        is_safe=score > AUDIO_SAFE_ABOVE,
        flagged_content=AudioFlags(
            abusive_language=abusive,
            misinformation=misinformation,
            unauthorized_apps=apps,
            forced_humor=forced_humor,
            awkward_phrases=awkward,
            embarrassing_speech_patterns=speech_patterns,
        ),
        contextual_score=score,
    )


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


def clickbait_score(title: str) -> float:
    """Clickbait score of a title in [0, 1]."""
    if not title:
        return 0.0

    lowered = title.lower()
    score = 0.1 * sum(1 for phrase in CLICKBAIT_PHRASES if phrase in lowered)
    if is_all_caps_title(title):
        score += 0.2
    if title.count("!") > 2:
        score += 0.1
    return min(1.0, score)


def analyze_metadata(metadata: Optional[ContentMetadata] = None) -> MetadataAnalysis:
    """Analyse title and tags for banned tags and clickbait."""
    if metadata is None:
        return MetadataAnalysis()

    lowered_tags = [t.lower() for t in metadata.tags]
    inappropriate = [banned for banned in BANNED_TAGS if any(banned in t for t in lowered_tags)]

    clickbait = clickbait_score(metadata.title)
    misleading = clickbait > MISLEADING_TITLE_ABOVE

    return MetadataAnalysis(
        is_safe=not inappropriate and not misleading,
        flagged_content=MetadataFlags(
            inappropriate_tags=inappropriate,
            misleading_title=misleading,
            clickbait_score=clickbait,
        ),
    )
