"""Moderation pipeline -- runs the analyzers, decides, and writes the log.

The pipeline is the only place with side effects: it calls the oracle,
persists exactly one ``moderation-logs`` entry per submission and records
author violations.  Everything it delegates to (analyzers, aggregator, age
classifier, cringe heuristic) is pure.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Optional

from loopsafe.config import ModerationConfig
from loopsafe.logs.store import ModerationLogStore
from loopsafe.metrics.accuracy import AccuracyStore
from loopsafe.metrics.feedback import FeedbackStore
from loopsafe.moderation import age_restriction, cringe
from loopsafe.moderation.aggregator import aggregate
from loopsafe.moderation.analyzers import analyze_metadata, analyze_transcript
from loopsafe.moderation.models import (
    ContentMetadata,
    HateSpeechResult,
    ModerationAction,
    ModerationDecision,
    ModerationResult,
    SentimentResult,
    VideoModerationResult,
    VisualAnalysis,
)
from loopsafe.moderation.violations import ViolationTracker, adjust_action
from loopsafe.oracle.analyzer import ContentAnalyzer
from loopsafe.security.audit_log import AuditLogger

logger = logging.getLogger(__name__)


@dataclass
class TextModerationOutcome:
    """Oracle verdict on a text/image/audio item plus its log entry."""

    result: ModerationResult
    moderation_decision: ModerationDecision
    log_id: str
    author_explanation: str = ""


def text_decision(result: ModerationResult) -> ModerationDecision:
    """Decision for a single-modality item."""
    if result.is_safe:
        return ModerationDecision.APPROVED
    if result.recommended_action in (ModerationAction.SUSPEND, ModerationAction.BAN):
        return ModerationDecision.REJECTED
    return ModerationDecision.PENDING


class ModerationPipeline:
    """Moderates submissions and applies moderator reviews."""

    def __init__(
        self,
        log_store: ModerationLogStore,
        analyzer: Optional[ContentAnalyzer] = None,
        violations: Optional[ViolationTracker] = None,
        audit: Optional[AuditLogger] = None,
        feedback: Optional[FeedbackStore] = None,
        accuracy: Optional[AccuracyStore] = None,
    ) -> None:
        self.log_store = log_store
        self.analyzer = analyzer or ContentAnalyzer()
        self.violations = violations or ViolationTracker()
        self.audit = audit or AuditLogger()
        self.feedback = feedback or FeedbackStore()
        self.accuracy = accuracy or AccuracyStore()

    @classmethod
    def from_config(cls, config: ModerationConfig) -> ModerationPipeline:
        """Build a pipeline whose stores all live under ``config.data_dir``."""
        return cls(
            log_store=ModerationLogStore(config.path_for("moderation-logs")),
            analyzer=ContentAnalyzer.from_config(config),
            violations=ViolationTracker(config.path_for("violations")),
            audit=AuditLogger(config.path_for("audit_logs")),
            feedback=FeedbackStore(config.path_for("feedback")),
            accuracy=AccuracyStore(config.path_for("accuracy")),
        )

    # -- video ---------------------------------------------------------------

    def moderate_video(
        self,
        user_id: str,
        transcript: str,
        metadata: Optional[ContentMetadata] = None,
        visual: Optional[VisualAnalysis] = None,
        visual_description: Optional[str] = None,
        video_url: str = "",
        post_id: str = "",
    ) -> VideoModerationResult:
        """Moderate a short-form video and log the result.

        The visual modality comes from *visual* when the caller already has
        it, otherwise from the oracle given *visual_description*, otherwise it
        defaults to safe.
        """
        is_child = metadata.is_child_content if metadata else False

        if visual is None:
            if visual_description:
                visual = self.analyzer.analyze_visual(visual_description, is_child_content=is_child)
            else:
                visual = VisualAnalysis()

        audio = analyze_transcript(transcript, is_child_content=is_child)
        metadata_analysis = analyze_metadata(metadata)
        restriction = age_restriction.classify(visual, audio, metadata_analysis)
        record = aggregate(visual, audio, metadata_analysis, restriction)

        result = VideoModerationResult(
            transcript=transcript,
            visual_analysis=visual,
            audio_analysis=audio,
            metadata_analysis=metadata_analysis,
            age_restriction=restriction,
            overall_safety_score=record.overall_safety_score,
            moderation_decision=record.moderation_decision,
            cringe=cringe.score(visual, audio, transcript, metadata),
        )

        entry = {"type": "video", "userId": user_id, "videoUrl": video_url, **result.to_dict()}
        if post_id:
            entry["postId"] = post_id
        if metadata is not None:
            entry["metadata"] = metadata.to_dict()
        result.log_id = self.log_store.append(entry)

        if result.needs_review:
            logger.info(
                "Video %s from %s needs review (%s, score %.2f)",
                result.log_id,
                user_id,
                result.moderation_decision.value,
                result.overall_safety_score,
            )
        return result

    # -- single-modality content ---------------------------------------------

    def moderate_text(
        self,
        user_id: str,
        content: str,
        content_type: str = "text",
        post_id: str = "",
    ) -> TextModerationOutcome:
        """Moderate one text item (or an image/audio description) and log it.

        The oracle's recommended action is escalated for severe categories
        and repeat offenders; unsafe verdicts count against the author unless
        they come from the oracle-failure fallback.
        """
        recent = self.violations.count_recent(user_id)
        result = self.analyzer.analyze(content, content_type, recent_violations=recent)
        action = adjust_action(result.recommended_action, recent, result.category)
        result = dataclasses.replace(result, recommended_action=action)

        if not result.is_safe and not result.degraded:
            self.violations.record_violation(user_id, result.category, action)

        decision = text_decision(result)
        author_explanation = ""
        if not result.is_safe and not result.degraded:
            author_explanation = self.analyzer.explain(content, result)

        entry = {
            "type": content_type,
            "userId": user_id,
            "content": content,
            "result": result.to_dict(),
            "moderationDecision": decision.value,
        }
        if author_explanation:
            entry["authorExplanation"] = author_explanation
        if post_id:
            entry["postId"] = post_id
        log_id = self.log_store.append(entry)
        return TextModerationOutcome(
            result=result,
            moderation_decision=decision,
            log_id=log_id,
            author_explanation=author_explanation,
        )

    def detect_hate_speech(self, content: str) -> HateSpeechResult:
        """Hate speech verdict, told about reviewer feedback on similar content."""
        similar = self.feedback.find_similar("hate_speech", content)
        return self.analyzer.detect_hate_speech(
            content, prior_agreement=similar.agreed if similar is not None else None
        )

    def analyze_sentiment(self, content: str) -> SentimentResult:
        return self.analyzer.analyze_sentiment(content)

    # -- reviews -------------------------------------------------------------

    def review(self, log_id: str, result: str, reviewer: str, admin_notes: str = "") -> dict:
        """Apply a moderator's review to one log entry and audit it."""
        entry = self.log_store.record_review(log_id, result, admin_notes)
        self.audit.log_event(
            actor=reviewer,
            action="moderation_review",
            resource_type="moderation_log",
            resource_id=log_id,
            details={"result": result, "adminNotes": admin_notes},
        )
        return entry

    def review_post(self, post_id: str, result: str, reviewer: str, admin_notes: str = "") -> int:
        """Apply a moderator's review to every log entry of a post."""
        updated = self.log_store.review_by_post(post_id, result, admin_notes)
        self.audit.log_event(
            actor=reviewer,
            action="moderation_review",
            resource_type="post",
            resource_id=post_id,
            details={"result": result, "adminNotes": admin_notes, "entries": updated},
            success=updated > 0,
        )
        return updated

    # -- feedback ------------------------------------------------------------

    def record_feedback(
        self,
        model_type: str,
        content: str,
        predicted: Any,
        actual: Any,
        reviewer: str,
    ) -> float:
        """Store a reviewer's verdict on an oracle label and rescore the model.

        Returns the model's accuracy over all feedback collected so far.
        """
        entry = self.feedback.add(model_type, content, predicted, actual, reviewer)
        predictions, ground_truth = self.feedback.labels(model_type)
        accuracy = self.accuracy.record_evaluation(model_type, predictions, ground_truth)
        self.audit.log_event(
            actor=reviewer,
            action="model_feedback",
            resource_type=model_type,
            resource_id=entry.id,
            details={"predicted": predicted, "actual": actual, "accuracy": accuracy},
        )
        logger.info("%s accuracy is now %.1f%% over %d reviews", model_type, accuracy, len(predictions))
        return accuracy
