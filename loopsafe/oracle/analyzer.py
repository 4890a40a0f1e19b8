"""Content analyzer -- the boundary to the external moderation oracle.

Every public method is total: SDK errors, an unconfigured client and
malformed answers are all mapped to a fallback result instead of being
raised.  Which fallback depends on the failure mode:

* fail open: the content is treated as safe with confidence 0.5
* fail to review: the content is treated as unsafe with confidence 0.5, so
  the aggregator holds it for a human reviewer

Fallback results carry ``degraded=True`` (or a 0.5 visual confidence) and are
logged at WARNING.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

import anthropic

from loopsafe.moderation.models import (
    HATE_SPEECH_CATEGORIES,
    HATE_SPEECH_SEVERITIES,
    SENTIMENTS,
    HateSpeechResult,
    ModerationAction,
    ModerationResult,
    SentimentResult,
    VisualAnalysis,
    VisualFlags,
)
from loopsafe.oracle.client import LLMClient
from loopsafe.oracle.prompts import (
    CHILD_CONTENT_NOTE,
    CONTENT_MODERATION_PROMPT,
    CONTENT_SUBJECTS,
    EXPLANATION_FALLBACK,
    EXPLANATION_PROMPT,
    FEEDBACK_NOTE,
    HATE_SPEECH_PROMPT,
    LANGUAGE_PROMPT,
    SENTIMENT_PROMPT,
    SYSTEM_PROMPT,
    TEXT_INTROS,
    VISUAL_ANALYSIS_PROMPT,
)

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.5
KNOWN_LANGUAGES = ("english", "telugu", "telugu-english", "other")
NEUTRAL_SCORES = {"positive": 0.25, "negative": 0.25, "neutral": 0.5, "mixed": 0.0}

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


class OracleUnavailable(Exception):
    """Raised internally when the oracle cannot be asked at all."""


# Everything the oracle round trip can raise that we map to a fallback.
_ORACLE_ERRORS = (OracleUnavailable, anthropic.APIError, ValueError, KeyError, TypeError)


def parse_json_answer(text: str) -> dict[str, Any]:
    """Parse a JSON object from an LLM answer, tolerating markdown fences."""
    cleaned = _FENCE_RE.sub("", text.strip())
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError("Oracle answer is not a JSON object")
    return data


def _clamp_confidence(value: Any) -> float:
    return max(0.0, min(1.0, float(value)))


def _as_list(value: Any) -> list:
    """Normalise a JSON field that should be an array; a bare string is one item."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _intro(language: str) -> str:
    intro = TEXT_INTROS.get(language)
    return f"{intro} " if intro else ""


class ContentAnalyzer:
    """Asks the moderation oracle to classify content."""

    def __init__(
        self,
        client: Optional[LLMClient] = None,
        fail_open: bool = True,
        max_tokens: int = 500,
        temperature: float = 0.1,
    ) -> None:
        self._client = client or LLMClient()
        self.fail_open = fail_open
        self.max_tokens = max_tokens
        self.temperature = temperature

    @classmethod
    def from_config(cls, config) -> ContentAnalyzer:
        return cls(
            client=LLMClient(model=config.model),
            fail_open=config.fail_open,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )

    # -- helpers -------------------------------------------------------------

    def _ask(self, prompt: str, system_prompt: Optional[str] = SYSTEM_PROMPT, max_tokens: Optional[int] = None) -> str:
        if not self._client.configured:
            raise OracleUnavailable("moderation oracle is not configured")
        response = self._client.complete(
            prompt=prompt,
            system_prompt=system_prompt,
            max_tokens=max_tokens or self.max_tokens,
            temperature=self.temperature,
        )
        return response.content

    def _fallback_result(self, content_type: str, error: Exception) -> ModerationResult:
        logger.warning(
            "Oracle failed for %s content (%s); failing %s",
            content_type,
            error,
            "open" if self.fail_open else "to review",
        )
        if self.fail_open:
            return ModerationResult(
                is_safe=True,
                category="clean",
                confidence=FALLBACK_CONFIDENCE,
                categories=["clean"],
                explanation="Error analyzing content. Defaulting to safe classification.",
                content_type=content_type,
                degraded=True,
            )
        return ModerationResult(
            is_safe=False,
            category="unavailable",
            confidence=FALLBACK_CONFIDENCE,
            categories=["unavailable"],
            explanation="Error analyzing content. Held for human review.",
            content_type=content_type,
            degraded=True,
        )

    # -- public API ----------------------------------------------------------

    def detect_language(self, text: str) -> str:
        """Return ``english``, ``telugu``, ``telugu-english``, ``other`` or ``unknown``."""
        try:
            answer = self._ask(LANGUAGE_PROMPT.format(text=text), system_prompt=None, max_tokens=10)
        except _ORACLE_ERRORS as exc:
            logger.warning("Language detection failed: %s", exc)
            return "unknown"
        language = answer.strip().strip('."').lower()
        return language if language in KNOWN_LANGUAGES else "unknown"

    def analyze(
        self,
        content: str,
        content_type: str = "text",
        recent_violations: int = 0,
    ) -> ModerationResult:
        """Classify one content item.  Never raises."""
        try:
            language = "unknown"
            if content_type == "text":
                language = self.detect_language(content)
            subject = CONTENT_SUBJECTS.get(content_type, CONTENT_SUBJECTS["text"]).format(
                language=language if language != "unknown" else ""
            )
            prompt = CONTENT_MODERATION_PROMPT.format(
                subject=" ".join(subject.split()),
                content=content,
                recent_violations=recent_violations,
            )
            data = parse_json_answer(self._ask(prompt))
            categories = _as_list(data.get("categories"))
            primary = data.get("primaryCategory") or (categories[0] if categories else "clean")
            return ModerationResult(
                is_safe=not bool(data["isViolation"]),
                category=primary,
                confidence=_clamp_confidence(data["confidence"]),
                categories=categories or [primary],
                recommended_action=ModerationAction(data.get("recommendedAction", "allow")),
                explanation=data.get("explanation", ""),
                content_type=content_type,
                language=language,
            )
        except _ORACLE_ERRORS as exc:
            return self._fallback_result(content_type, exc)

    def analyze_visual(self, description: str, is_child_content: bool = False) -> VisualAnalysis:
        """Classify a description of a video's frames.  Never raises."""
        prompt = VISUAL_ANALYSIS_PROMPT.format(
            description=description,
            child_note=CHILD_CONTENT_NOTE if is_child_content else "",
        )
        try:
            data = parse_json_answer(self._ask(prompt))
            return VisualAnalysis(
                is_safe=bool(data["isSafe"]),
                flagged_content=VisualFlags(
                    inappropriate_visual=_as_list(data.get("inappropriateVisual")),
                    violent_content=_as_list(data.get("violentContent")),
                    sensitive_content=_as_list(data.get("sensitiveContent")),
                    low_quality_content=bool(data.get("lowQualityContent", False)),
                    awkward_expressions=bool(data.get("awkwardExpressions", False)),
                    excessive_exaggeration=bool(data.get("excessiveExaggeration", False)),
                ),
                confidence_score=_clamp_confidence(data["confidence"]),
            )
        except _ORACLE_ERRORS as exc:
            logger.warning(
                "Visual analysis failed (%s); failing %s",
                exc,
                "open" if self.fail_open else "to review",
            )
            return VisualAnalysis(is_safe=self.fail_open, confidence_score=FALLBACK_CONFIDENCE)

    def explain(self, content: str, result: ModerationResult) -> str:
        """Plain-language explanation of *result* for the content's author."""
        prompt = EXPLANATION_PROMPT.format(
            content=content,
            verdict="No violation detected" if result.is_safe else "Violation detected",
            category=result.category,
            action=result.recommended_action.value,
        )
        try:
            answer = self._ask(prompt, system_prompt=None, max_tokens=300).strip()
        except _ORACLE_ERRORS as exc:
            logger.warning("Explanation failed: %s", exc)
            return EXPLANATION_FALLBACK
        return answer or EXPLANATION_FALLBACK

    def detect_hate_speech(self, content: str, prior_agreement: Optional[bool] = None) -> HateSpeechResult:
        """Classify *content* as hate, offensive or clean.  Never raises.

        *prior_agreement* is whether reviewers agreed with our verdict on
        similar content; when given it is passed on to the oracle.
        """
        language = self.detect_language(content)
        note = ""
        if prior_agreement is not None:
            note = FEEDBACK_NOTE.format(verdict="agreed" if prior_agreement else "disagreed")
        prompt = HATE_SPEECH_PROMPT.format(
            intro=_intro(language),
            content=content,
            feedback_note=note,
        )
        try:
            data = parse_json_answer(self._ask(prompt))
            category = str(data.get("category", "clean")).lower()
            severity = str(data.get("severity", "none")).lower()
            if category not in HATE_SPEECH_CATEGORIES:
                raise ValueError(f"Unknown hate speech category {category!r}")
            if severity not in HATE_SPEECH_SEVERITIES:
                raise ValueError(f"Unknown severity {severity!r}")
            return HateSpeechResult(
                is_hate_speech=bool(data["isHateSpeech"]),
                category=category,
                severity=severity,
                confidence=_clamp_confidence(data["confidence"]),
                target_groups=_as_list(data.get("targetGroups")),
                explanation=data.get("explanation", ""),
                language=language,
                feedback_incorporated=prior_agreement is not None,
            )
        except _ORACLE_ERRORS as exc:
            logger.warning(
                "Hate speech detection failed (%s); failing %s",
                exc,
                "open" if self.fail_open else "to review",
            )
            if self.fail_open:
                return HateSpeechResult(
                    is_hate_speech=False,
                    confidence=FALLBACK_CONFIDENCE,
                    explanation="Error analyzing content. Defaulting to safe classification.",
                    degraded=True,
                )
            return HateSpeechResult(
                is_hate_speech=True,
                category="unavailable",
                confidence=FALLBACK_CONFIDENCE,
                explanation="Error analyzing content. Held for human review.",
                degraded=True,
            )

    def analyze_sentiment(self, content: str) -> SentimentResult:
        """Classify the sentiment of *content*.  Falls back to neutral."""
        language = self.detect_language(content)
        prompt = SENTIMENT_PROMPT.format(intro=_intro(language), content=content)
        try:
            data = parse_json_answer(self._ask(prompt))
            sentiment = str(data["sentiment"]).lower()
            if sentiment not in SENTIMENTS:
                raise ValueError(f"Unknown sentiment {sentiment!r}")
            raw_scores = data.get("scores") or {}
            if not isinstance(raw_scores, dict):
                raise ValueError("Sentiment scores are not an object")
            return SentimentResult(
                sentiment=sentiment,
                scores={label: _clamp_confidence(raw_scores.get(label, 0.0)) for label in SENTIMENTS},
                dominant_emotion=str(data.get("dominantEmotion", "")),
                language=language,
                confidence=_clamp_confidence(data["confidence"]),
            )
        except _ORACLE_ERRORS as exc:
            logger.warning("Sentiment analysis failed (%s); reporting neutral", exc)
            return SentimentResult(
                sentiment="neutral",
                scores=dict(NEUTRAL_SCORES),
                dominant_emotion="indifference",
                confidence=FALLBACK_CONFIDENCE,
                degraded=True,
            )
