"""Moderation router.

Endpoints for moderating content, working the review queue, and
collecting reviewer feedback into the model accuracy figures.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from loopsafe.config import load_config
from loopsafe.metrics.accuracy import AccuracyStore
from loopsafe.moderation.models import ContentMetadata, VisualAnalysis
from loopsafe.moderation.pipeline import ModerationPipeline
from web.backend.app.models.api import (
    AccuracyUpdateRequest,
    AccuracyUpdateResponse,
    FeedbackRequest,
    FeedbackResponse,
    PostReviewResponse,
    ReviewRequest,
    TextAnalysisRequest,
    TextModerationRequest,
    TextModerationResponse,
    VideoModerationRequest,
    VideoModerationResponse,
)

router = APIRouter(prefix="/api/moderation", tags=["moderation"])

# ---------------------------------------------------------------------------
# Shared instances
# ---------------------------------------------------------------------------

_pipeline: Optional[ModerationPipeline] = None


def get_pipeline() -> ModerationPipeline:
    """Return the process-wide pipeline, built from the loaded config."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ModerationPipeline.from_config(load_config())
    return _pipeline


def get_accuracy_store(pipeline: ModerationPipeline = Depends(get_pipeline)) -> AccuracyStore:
    return pipeline.accuracy


# ---------------------------------------------------------------------------
# Moderation
# ---------------------------------------------------------------------------


@router.post("/video", response_model=VideoModerationResponse, summary="Moderate a video")
async def moderate_video(
    request: VideoModerationRequest,
    pipeline: ModerationPipeline = Depends(get_pipeline),
):
    """Analyse, decide and log one video submission."""
    visual = None
    if request.visual_analysis is not None:
        visual = VisualAnalysis.from_dict(request.visual_analysis.model_dump(by_alias=True))

    result = pipeline.moderate_video(
        request.user_id,
        request.transcript,
        metadata=ContentMetadata(
            title=request.title,
            description=request.description,
            tags=request.tags,
            is_child_content=request.is_child_content,
        ),
        visual=visual,
        visual_description=request.visual_description,
        video_url=request.video_url,
        post_id=request.post_id,
    )
    return VideoModerationResponse(
        id=result.log_id or "",
        is_safe=result.is_safe,
        overall_safety_score=result.overall_safety_score,
        moderation_decision=result.moderation_decision.value,
        age_restriction=result.age_restriction.to_dict(),
        cringe=result.cringe.to_dict(),
        visual_analysis=result.visual_analysis.to_dict(),
        audio_analysis=result.audio_analysis.to_dict(),
        metadata_analysis=result.metadata_analysis.to_dict(),
    )


@router.post("/text", response_model=TextModerationResponse, summary="Moderate a text item")
async def moderate_text(
    request: TextModerationRequest,
    pipeline: ModerationPipeline = Depends(get_pipeline),
):
    """Classify one item with the oracle, escalate for repeat offenders and log it."""
    outcome = pipeline.moderate_text(
        request.user_id,
        request.content,
        request.content_type,
        post_id=request.post_id,
    )
    result = outcome.result
    return TextModerationResponse(
        id=outcome.log_id,
        is_safe=result.is_safe,
        category=result.category,
        categories=result.categories,
        confidence=result.confidence,
        recommended_action=result.recommended_action.value,
        moderation_decision=outcome.moderation_decision.value,
        explanation=result.explanation,
        author_explanation=outcome.author_explanation,
        degraded=result.degraded,
    )


# ---------------------------------------------------------------------------
# Hate speech and sentiment
# ---------------------------------------------------------------------------


@router.post("/hate-speech", summary="Detect hate speech in a text")
async def detect_hate_speech(
    request: TextAnalysisRequest,
    pipeline: ModerationPipeline = Depends(get_pipeline),
):
    return pipeline.detect_hate_speech(request.content).to_dict()


@router.post("/sentiment", summary="Analyse the sentiment of a text")
async def analyze_sentiment(
    request: TextAnalysisRequest,
    pipeline: ModerationPipeline = Depends(get_pipeline),
):
    return pipeline.analyze_sentiment(request.content).to_dict()


@router.post("/feedback", response_model=FeedbackResponse, summary="Record a reviewer verdict on a label")
async def record_feedback(
    request: FeedbackRequest,
    pipeline: ModerationPipeline = Depends(get_pipeline),
):
    """Store the verdict and rescore the model over all feedback so far."""
    try:
        accuracy = pipeline.record_feedback(
            request.model_type,
            request.content,
            request.predicted,
            request.actual,
            request.reviewer,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return FeedbackResponse(
        model_type=request.model_type,
        agreed=request.predicted == request.actual,
        accuracy=accuracy,
    )


# ---------------------------------------------------------------------------
# Review queue
# ---------------------------------------------------------------------------


@router.get("/pending", summary="List unreviewed moderation log entries")
async def list_pending(
    content_type: Optional[str] = Query(None, alias="type"),
    limit: int = Query(20, ge=1, le=200),
    pipeline: ModerationPipeline = Depends(get_pipeline),
):
    return pipeline.log_store.list_pending(content_type, limit=limit)


@router.get("/logs/{log_id}", summary="Get one moderation log entry")
async def get_log(log_id: str, pipeline: ModerationPipeline = Depends(get_pipeline)):
    entry = pipeline.log_store.get(log_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Moderation log {log_id} not found")
    return entry


@router.get("/logs/{log_id}/audit", summary="Audit trail of one moderation log entry")
async def get_log_audit(log_id: str, pipeline: ModerationPipeline = Depends(get_pipeline)):
    """Reviews recorded against the entry, newest first."""
    if pipeline.log_store.get(log_id) is None:
        raise HTTPException(status_code=404, detail=f"Moderation log {log_id} not found")
    return [asdict(e) for e in pipeline.audit.get_events_for_resource("moderation_log", log_id)]


@router.post("/logs/{log_id}/review", summary="Record a moderator review")
async def review_log(
    log_id: str,
    request: ReviewRequest,
    pipeline: ModerationPipeline = Depends(get_pipeline),
):
    if pipeline.log_store.get(log_id) is None:
        raise HTTPException(status_code=404, detail=f"Moderation log {log_id} not found")
    try:
        return pipeline.review(log_id, request.result, request.reviewer, request.admin_notes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/posts/{post_id}/review", response_model=PostReviewResponse, summary="Review every entry of a post")
async def review_post(
    post_id: str,
    request: ReviewRequest,
    pipeline: ModerationPipeline = Depends(get_pipeline),
):
    updated = pipeline.review_post(post_id, request.result, request.reviewer, request.admin_notes)
    if updated == 0:
        raise HTTPException(status_code=404, detail=f"No moderation logs for post {post_id}")
    return PostReviewResponse(post_id=post_id, updated=updated)


# ---------------------------------------------------------------------------
# Accuracy
# ---------------------------------------------------------------------------


@router.get("/accuracy", summary="Get model accuracy metrics")
async def get_accuracy(store: AccuracyStore = Depends(get_accuracy_store)):
    return store.get_metrics()


@router.post("/accuracy", response_model=AccuracyUpdateResponse, summary="Record an evaluation run")
async def record_accuracy(
    request: AccuracyUpdateRequest,
    store: AccuracyStore = Depends(get_accuracy_store),
):
    try:
        accuracy = store.record_evaluation(
            request.model_type,
            request.predictions,
            request.ground_truth,
            request.sub_category,
            request.sub_category_value,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return AccuracyUpdateResponse(accuracy=accuracy, metrics=store.get_metrics())
