"""Decision aggregator -- combines per-modality analyses into one decision.

The overall safety score is a fixed convex combination of the visual, audio
and metadata scores.  An unsafe visual or audio modality contributes nothing;
an unsafe metadata modality is penalised by its clickbait score.
"""

from __future__ import annotations

from typing import Optional

from loopsafe.moderation.age_restriction import classify
from loopsafe.moderation.models import (
    AgeRestriction,
    AudioAnalysis,
    MetadataAnalysis,
    ModerationDecision,
    OverallModerationRecord,
    VisualAnalysis,
)

WEIGHTS: dict[str, float] = {
    "visual": 0.4,
    "audio": 0.4,
    "metadata": 0.2,
}

APPROVE_ABOVE = 0.8
REJECT_BELOW = 0.3
MAX_ABUSIVE_TERMS = 3


def modality_scores(
    visual: VisualAnalysis,
    audio: AudioAnalysis,
    metadata: MetadataAnalysis,
) -> dict[str, float]:
    """Return the per-modality scores that feed the weighted sum."""
    return {
        "visual": visual.confidence_score if visual.is_safe else 0.0,
        "audio": audio.contextual_score if audio.is_safe else 0.0,
        # Not clamped: a clickbait score above 0.5 makes this term negative.
        "metadata": 1.0 if metadata.is_safe else 0.5 - metadata.flagged_content.clickbait_score,
    }


def calculate_overall_safety_score(
    visual: VisualAnalysis,
    audio: AudioAnalysis,
    metadata: MetadataAnalysis,
) -> float:
    """Weighted safety score in [0, 1]; higher is safer."""
    scores = modality_scores(visual, audio, metadata)
    weighted = sum(scores[name] * weight for name, weight in WEIGHTS.items())
    return max(0.0, min(1.0, weighted))


def decide(
    overall_safety_score: float,
    visual: VisualAnalysis,
    audio: AudioAnalysis,
    age_restriction: AgeRestriction,
) -> ModerationDecision:
    """Map a score and the hard flags to a decision.

    Rules are evaluated in order and the first one that matches wins.
    """
    if overall_safety_score > APPROVE_ABOVE and not age_restriction.is_restricted:
        return ModerationDecision.APPROVED

    if (
        overall_safety_score < REJECT_BELOW
        or len(visual.flagged_content.violent_content) > 0
        or len(audio.flagged_content.abusive_language) > MAX_ABUSIVE_TERMS
    ):
        return ModerationDecision.REJECTED

    if age_restriction.is_restricted:
        return ModerationDecision.AGE_RESTRICTED

    return ModerationDecision.PENDING


def aggregate(
    visual: VisualAnalysis,
    audio: AudioAnalysis,
    metadata: MetadataAnalysis,
    age_restriction: Optional[AgeRestriction] = None,
) -> OverallModerationRecord:
    """Aggregate three modality analyses into an :class:`OverallModerationRecord`.

    When *age_restriction* is omitted it is derived with
    :func:`loopsafe.moderation.age_restriction.classify`.
    """
    if age_restriction is None:
        age_restriction = classify(visual, audio, metadata)

    score = calculate_overall_safety_score(visual, audio, metadata)
    return OverallModerationRecord(
        overall_safety_score=score,
        moderation_decision=decide(score, visual, audio, age_restriction),
        age_restriction=age_restriction,
    )
