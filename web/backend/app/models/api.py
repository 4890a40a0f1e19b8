"""Pydantic models for API request/response serialization.

Request bodies use the same camelCase shape as the ``moderation-logs``
collection so clients can post an analysis exactly as it is stored.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())


# ---------------------------------------------------------------------------
# Video moderation
# ---------------------------------------------------------------------------


class VisualFlagsRequest(_CamelModel):
    inappropriate_visual: list[str] = Field(default_factory=list, alias="inappropriateVisual")
    violent_content: list[str] = Field(default_factory=list, alias="violentContent")
    sensitive_content: list[str] = Field(default_factory=list, alias="sensitiveContent")
    low_quality_content: bool = Field(False, alias="lowQualityContent")
    awkward_expressions: bool = Field(False, alias="awkwardExpressions")
    excessive_exaggeration: bool = Field(False, alias="excessiveExaggeration")


class VisualAnalysisRequest(_CamelModel):
    """Mirrors loopsafe.moderation.models.VisualAnalysis."""

    is_safe: bool = Field(True, alias="isSafe")
    flagged_content: VisualFlagsRequest = Field(default_factory=VisualFlagsRequest, alias="flaggedContent")
    confidence_score: float = Field(0.95, ge=0.0, le=1.0, alias="confidenceScore")


class VideoModerationRequest(_CamelModel):
    user_id: str = Field(..., alias="userId")
    transcript: str = ""
    title: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    is_child_content: bool = Field(False, alias="isChildContent")
    visual_analysis: Optional[VisualAnalysisRequest] = Field(None, alias="visualAnalysis")
    visual_description: Optional[str] = Field(None, alias="visualDescription")
    video_url: str = Field("", alias="videoUrl")
    post_id: str = Field("", alias="postId")


class VideoModerationResponse(BaseModel):
    """The persisted record plus its log id."""

    id: str
    is_safe: bool
    overall_safety_score: float
    moderation_decision: str
    age_restriction: dict[str, Any]
    cringe: dict[str, Any]
    visual_analysis: dict[str, Any]
    audio_analysis: dict[str, Any]
    metadata_analysis: dict[str, Any]


# ---------------------------------------------------------------------------
# Text moderation
# ---------------------------------------------------------------------------


class TextModerationRequest(_CamelModel):
    user_id: str = Field(..., alias="userId")
    content: str = Field(..., min_length=1)
    content_type: Literal["text", "image", "video", "audio"] = Field("text", alias="contentType")
    post_id: str = Field("", alias="postId")


class TextModerationResponse(BaseModel):
    id: str
    is_safe: bool
    category: str
    categories: list[str] = Field(default_factory=list)
    confidence: float
    recommended_action: str
    moderation_decision: str
    explanation: str = ""
    author_explanation: str = ""
    degraded: bool = False


# ---------------------------------------------------------------------------
# Hate speech, sentiment and feedback
# ---------------------------------------------------------------------------


class TextAnalysisRequest(_CamelModel):
    content: str = Field(..., min_length=1)


class FeedbackRequest(_CamelModel):
    """A reviewer's verdict on one hate speech or sentiment label.

    Hate speech labels are booleans (is hate speech); sentiment labels are
    one of positive, negative, neutral or mixed.
    """

    model_type: Literal["hate_speech", "sentiment"] = Field(..., alias="modelType")
    content: str = Field(..., min_length=1)
    predicted: Union[bool, str]
    actual: Union[bool, str]
    reviewer: str = Field(..., min_length=1)


class FeedbackResponse(_CamelModel):
    model_type: str
    agreed: bool
    accuracy: float


# ---------------------------------------------------------------------------
# Review
# ---------------------------------------------------------------------------


class ReviewRequest(_CamelModel):
    result: Literal["approved", "rejected", "age_restricted"]
    reviewer: str = Field(..., min_length=1)
    admin_notes: str = Field("", alias="adminNotes")


class PostReviewResponse(BaseModel):
    post_id: str
    updated: int


# ---------------------------------------------------------------------------
# Accuracy
# ---------------------------------------------------------------------------


class AccuracyUpdateRequest(_CamelModel):
    model_type: Literal["sentiment", "hate_speech", "content_moderation", "security"] = Field(..., alias="modelType")
    predictions: list[bool]
    ground_truth: list[bool] = Field(..., alias="groundTruth")
    sub_category: Optional[str] = Field(None, alias="subCategory")
    sub_category_value: Optional[str] = Field(None, alias="subCategoryValue")


class AccuracyUpdateResponse(BaseModel):
    accuracy: float
    metrics: dict[str, Any]
