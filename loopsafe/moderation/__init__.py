"""Video moderation: per-modality analysis, age gating, scoring and decisions."""

from loopsafe.moderation.aggregator import aggregate, calculate_overall_safety_score, decide
from loopsafe.moderation.models import (
    AgeRestriction,
    AudioAnalysis,
    ContentMetadata,
    CringeResult,
    MetadataAnalysis,
    ModerationAction,
    ModerationDecision,
    ModerationResult,
    OverallModerationRecord,
    VideoModerationResult,
    VisualAnalysis,
)

__all__ = [
    "aggregate",
    "calculate_overall_safety_score",
    "decide",
    "AgeRestriction",
    "AudioAnalysis",
    "ContentMetadata",
    "CringeResult",
    "MetadataAnalysis",
    "ModerationAction",
    "ModerationDecision",
    "ModerationResult",
    "OverallModerationRecord",
    "VideoModerationResult",
    "VisualAnalysis",
]
