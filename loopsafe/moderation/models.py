"""Data models for the video moderation pipeline.

Python field names are snake_case.  ``to_dict()`` produces the camelCase
shape stored in the ``moderation-logs`` collection and ``from_dict()`` reads
it back, so a persisted record round-trips through these classes unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ModerationDecision(Enum):
    """Final label written to the moderation log."""

    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"
    AGE_RESTRICTED = "age_restricted"


class ModerationAction(Enum):
    """Action recommended against the author of a piece of content."""

    ALLOW = "allow"
    WARN = "warn"
    SUSPEND = "suspend"
    BAN = "ban"


# ---------------------------------------------------------------------------
# Oracle output
# ---------------------------------------------------------------------------


@dataclass
class ModerationResult:
    """Classification of one content item (or one modality) by the oracle."""

    is_safe: bool
    category: str = "clean"
    confidence: float = 0.0  # 0.0 - 1.0
    categories: list[str] = field(default_factory=list)
    recommended_action: ModerationAction = ModerationAction.ALLOW
    explanation: str = ""
    content_type: str = "text"
    language: str = "unknown"
    degraded: bool = False  # True when produced by the oracle-failure fallback

    def to_dict(self) -> dict[str, Any]:
        return {
            "isSafe": self.is_safe,
            "category": self.category,
            "confidence": self.confidence,
            "categories": list(self.categories),
            "recommendedAction": self.recommended_action.value,
            "explanation": self.explanation,
            "contentType": self.content_type,
            "language": self.language,
            "degraded": self.degraded,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModerationResult:
        return cls(
            is_safe=bool(data.get("isSafe", True)),
            category=data.get("category", "clean"),
            confidence=float(data.get("confidence", 0.0)),
            categories=list(data.get("categories", [])),
            recommended_action=ModerationAction(data.get("recommendedAction", "allow")),
            explanation=data.get("explanation", ""),
            content_type=data.get("contentType", "text"),
            language=data.get("language", "unknown"),
            degraded=bool(data.get("degraded", False)),
        )


# ---------------------------------------------------------------------------
# Per-modality analyses
# ---------------------------------------------------------------------------


@dataclass
class VisualFlags:
    inappropriate_visual: list[str] = field(default_factory=list)
    violent_content: list[str] = field(default_factory=list)
    sensitive_content: list[str] = field(default_factory=list)
    low_quality_content: bool = False
    awkward_expressions: bool = False
    excessive_exaggeration: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "inappropriateVisual": list(self.inappropriate_visual),
            "violentContent": list(self.violent_content),
            "sensitiveContent": list(self.sensitive_content),
            "lowQualityContent": self.low_quality_content,
            "awkwardExpressions": self.awkward_expressions,
            "excessiveExaggeration": self.excessive_exaggeration,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VisualFlags:
        return cls(
            inappropriate_visual=list(data.get("inappropriateVisual", [])),
            violent_content=list(data.get("violentContent", [])),
            sensitive_content=list(data.get("sensitiveContent", [])),
            low_quality_content=bool(data.get("lowQualityContent", False)),
            awkward_expressions=bool(data.get("awkwardExpressions", False)),
            excessive_exaggeration=bool(data.get("excessiveExaggeration", False)),
        )


@dataclass
class VisualAnalysis:
    """Result of analysing the frames of a video."""

    is_safe: bool = True
    flagged_content: VisualFlags = field(default_factory=VisualFlags)
    confidence_score: float = 0.95

    def to_dict(self) -> dict[str, Any]:
        return {
            "isSafe": self.is_safe,
            "flaggedContent": self.flagged_content.to_dict(),
            "confidenceScore": self.confidence_score,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VisualAnalysis:
        return cls(
            is_safe=bool(data.get("isSafe", True)),
            flagged_content=VisualFlags.from_dict(data.get("flaggedContent", {})),
            confidence_score=float(data.get("confidenceScore", 0.95)),
        )


@dataclass
class AudioFlags:
    abusive_language: list[str] = field(default_factory=list)
    misinformation: list[str] = field(default_factory=list)
    unauthorized_apps: list[str] = field(default_factory=list)
    forced_humor: bool = False
    awkward_phrases: list[str] = field(default_factory=list)
    embarrassing_speech_patterns: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "abusiveLanguage": list(self.abusive_language),
            "misinformation": list(self.misinformation),
            "unauthorizedApps": list(self.unauthorized_apps),
            "forcedHumor": self.forced_humor,
            "awkwardPhrases": list(self.awkward_phrases),
            "embarrassingSpeechPatterns": self.embarrassing_speech_patterns,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AudioFlags:
        return cls(
            abusive_language=list(data.get("abusiveLanguage", [])),
            misinformation=list(data.get("misinformation", [])),
            unauthorized_apps=list(data.get("unauthorizedApps", [])),
            forced_humor=bool(data.get("forcedHumor", False)),
            awkward_phrases=list(data.get("awkwardPhrases", [])),
            embarrassing_speech_patterns=bool(data.get("embarrassingSpeechPatterns", False)),
        )


@dataclass
class AudioAnalysis:
    """Result of analysing the spoken content (transcript) of a video."""

    is_safe: bool = True
    flagged_content: AudioFlags = field(default_factory=AudioFlags)
    contextual_score: float = 0.9

    def to_dict(self) -> dict[str, Any]:
        return {
            "isSafe": self.is_safe,
            "flaggedContent": self.flagged_content.to_dict(),
            "contextualScore": self.contextual_score,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AudioAnalysis:
        return cls(
            is_safe=bool(data.get("isSafe", True)),
            flagged_content=AudioFlags.from_dict(data.get("flaggedContent", {})),
            contextual_score=float(data.get("contextualScore", 0.9)),
        )


@dataclass
class MetadataFlags:
    inappropriate_tags: list[str] = field(default_factory=list)
    misleading_title: bool = False
    clickbait_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "inappropriateTags": list(self.inappropriate_tags),
            "misleadingTitle": self.misleading_title,
            "clickbaitScore": self.clickbait_score,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetadataFlags:
        return cls(
            inappropriate_tags=list(data.get("inappropriateTags", [])),
            misleading_title=bool(data.get("misleadingTitle", False)),
            clickbait_score=float(data.get("clickbaitScore", 0.0)),
        )


@dataclass
class MetadataAnalysis:
    """Result of analysing title, description and tags."""

    is_safe: bool = True
    flagged_content: MetadataFlags = field(default_factory=MetadataFlags)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isSafe": self.is_safe,
            "flaggedContent": self.flagged_content.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetadataAnalysis:
        return cls(
            is_safe=bool(data.get("isSafe", True)),
            flagged_content=MetadataFlags.from_dict(data.get("flaggedContent", {})),
        )


@dataclass
class ContentMetadata:
    """Author-supplied metadata for a submitted video."""

    title: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    is_child_content: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "isChildContent": self.is_child_content,
        }


# ---------------------------------------------------------------------------
# Derived results
# ---------------------------------------------------------------------------


@dataclass
class AgeRestriction:
    is_restricted: bool = False
    minimum_age: int = 0
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "isRestricted": self.is_restricted,
            "minimumAge": self.minimum_age,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AgeRestriction:
        return cls(
            is_restricted=bool(data.get("isRestricted", False)),
            minimum_age=int(data.get("minimumAge", 0)),
            reason=data.get("reason", ""),
        )


@dataclass
class CringeResult:
    """UI badge signal; has no bearing on publication gating."""

    is_cringe: bool = False
    cringe_score: float = 0.0
    cringe_factors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isCringe": self.is_cringe,
            "cringeScore": self.cringe_score,
            "cringeFactors": list(self.cringe_factors),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CringeResult:
        return cls(
            is_cringe=bool(data.get("isCringe", False)),
            cringe_score=float(data.get("cringeScore", 0.0)),
            cringe_factors=list(data.get("cringeFactors", [])),
        )


@dataclass
class OverallModerationRecord:
    """Aggregated safety score and the decision derived from it."""

    overall_safety_score: float
    moderation_decision: ModerationDecision
    age_restriction: AgeRestriction = field(default_factory=AgeRestriction)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overallSafetyScore": self.overall_safety_score,
            "moderationDecision": self.moderation_decision.value,
            "ageRestriction": self.age_restriction.to_dict(),
        }


@dataclass
class VideoModerationResult:
    """Everything the pipeline learned about one submitted video."""

    transcript: str
    visual_analysis: VisualAnalysis
    audio_analysis: AudioAnalysis
    metadata_analysis: MetadataAnalysis
    age_restriction: AgeRestriction
    overall_safety_score: float
    moderation_decision: ModerationDecision
    cringe: CringeResult
    log_id: Optional[str] = None

    @property
    def is_safe(self) -> bool:
        return self.overall_safety_score > 0.7

    @property
    def needs_review(self) -> bool:
        return self.moderation_decision in (ModerationDecision.PENDING, ModerationDecision.REJECTED)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the shape persisted in ``moderation-logs``."""
        return {
            "isSafe": self.is_safe,
            "transcript": self.transcript,
            "visualAnalysis": self.visual_analysis.to_dict(),
            "audioAnalysis": self.audio_analysis.to_dict(),
            "metadataAnalysis": self.metadata_analysis.to_dict(),
            "ageRestriction": self.age_restriction.to_dict(),
            "overallSafetyScore": self.overall_safety_score,
            "moderationDecision": self.moderation_decision.value,
            "cringe": self.cringe.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VideoModerationResult:
        return cls(
            transcript=data.get("transcript", ""),
            visual_analysis=VisualAnalysis.from_dict(data.get("visualAnalysis", {})),
            audio_analysis=AudioAnalysis.from_dict(data.get("audioAnalysis", {})),
            metadata_analysis=MetadataAnalysis.from_dict(data.get("metadataAnalysis", {})),
            age_restriction=AgeRestriction.from_dict(data.get("ageRestriction", {})),
            overall_safety_score=float(data.get("overallSafetyScore", 0.0)),
            moderation_decision=ModerationDecision(data.get("moderationDecision", "pending")),
            cringe=CringeResult.from_dict(data.get("cringe", {})),
            log_id=data.get("id"),
        )


# ---------------------------------------------------------------------------
# Hate speech and sentiment
# ---------------------------------------------------------------------------

HATE_SPEECH_CATEGORIES = ("hate", "offensive", "clean")
HATE_SPEECH_SEVERITIES = ("high", "medium", "low", "none")

SENTIMENTS = ("positive", "negative", "neutral", "mixed")

SENTIMENT_EMOJI = {"positive": "😊", "negative": "😔", "neutral": "😐", "mixed": "😕"}
SENTIMENT_COLORS = {
    "positive": "#4CAF50",
    "negative": "#F44336",
    "neutral": "#9E9E9E",
    "mixed": "#FF9800",
}


@dataclass
class HateSpeechResult:
    """Oracle verdict on whether a text is hate speech."""

    is_hate_speech: bool
    category: str = "clean"
    severity: str = "none"
    confidence: float = 0.0
    target_groups: list[str] = field(default_factory=list)
    explanation: str = ""
    language: str = "unknown"
    feedback_incorporated: bool = False  # prompt carried reviewer feedback on similar content
    degraded: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "isHateSpeech": self.is_hate_speech,
            "category": self.category,
            "severity": self.severity,
            "confidence": self.confidence,
            "targetGroups": list(self.target_groups),
            "explanation": self.explanation,
            "language": self.language,
            "feedbackIncorporated": self.feedback_incorporated,
            "degraded": self.degraded,
        }


@dataclass
class SentimentResult:
    sentiment: str
    scores: dict[str, float] = field(default_factory=dict)
    dominant_emotion: str = ""
    language: str = "unknown"
    confidence: float = 0.0
    degraded: bool = False

    @property
    def emoji(self) -> str:
        return SENTIMENT_EMOJI.get(self.sentiment, SENTIMENT_EMOJI["neutral"])

    @property
    def color_code(self) -> str:
        return SENTIMENT_COLORS.get(self.sentiment, SENTIMENT_COLORS["neutral"])

    def to_dict(self) -> dict[str, Any]:
        return {
            "sentiment": self.sentiment,
            "scores": dict(self.scores),
            "dominantEmotion": self.dominant_emotion,
            "language": self.language,
            "confidence": self.confidence,
            "emoji": self.emoji,
            "colorCode": self.color_code,
            "degraded": self.degraded,
        }
