"""File-based accuracy metrics for the moderation models.

Metrics are percentages (0-100) kept in ``~/.loopsafe/accuracy/metrics.json``.
The store is seeded with baseline figures on first use and updated from
evaluation runs against labelled data.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Literal, Optional, Sequence

from loopsafe.moderation.models import SENTIMENTS

ModelType = Literal["sentiment", "hate_speech", "content_moderation", "security"]

# model type -> section key in the metrics document
_SECTIONS: dict[str, str] = {
    "sentiment": "sentiment",
    "hate_speech": "hateSpeech",
    "content_moderation": "contentModeration",
    "security": "security",
}

# (model type, sub-category) -> breakdown key inside the section
_BREAKDOWNS: dict[tuple[str, str], str] = {
    ("hate_speech", "language"): "byLanguage",
    ("content_moderation", "language"): "byLanguage",
    ("content_moderation", "contentType"): "byContentType",
    ("content_moderation", "category"): "byCategory",
    ("security", "violationType"): "byViolationType",
}

DEFAULT_METRICS: dict[str, Any] = {
    "contentModeration": {
        "overall": 92.5,
        "byLanguage": {"english": 94.2, "telugu": 91.8, "telugu-english": 90.5, "other": 88.7},
        "byContentType": {"text": 93.8, "image": 91.2, "video": 90.5, "audio": 89.7},
        "byCategory": {
            "hate": 94.5,
            "harassment": 92.8,
            "sexual": 95.2,
            "violence": 93.7,
            "self-harm": 91.5,
            "misinformation": 89.8,
            "spam": 96.3,
            "clean": 97.2,
        },
    },
    "hateSpeech": {
        "overall": 93.2,
        "byLanguage": {"english": 94.7, "telugu": 92.3, "telugu-english": 91.8, "other": 89.5},
    },
    "sentiment": {"overall": 91.8, "positive": 93.5, "negative": 92.7, "neutral": 90.8, "mixed": 88.5},
    "security": {
        "overall": 94.3,
        "byViolationType": {
            "screenshot": 95.2,
            "screen_recording": 93.8,
            "explicit_content": 96.1,
            "none": 97.5,
        },
    },
}


def calculate_accuracy(predictions: Sequence[Any], ground_truth: Sequence[Any]) -> float:
    """Percentage of predictions matching the ground truth.

    Labels may be booleans (violation or not) or sentiment labels.

    Returns 0 for empty input or mismatched lengths.
    """
    if len(predictions) != len(ground_truth) or not predictions:
        return 0.0
    correct = sum(1 for p, g in zip(predictions, ground_truth) if p == g)
    return correct / len(predictions) * 100


class AccuracyStore:
    """Injected replacement for a process-wide metrics singleton."""

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self._base = Path(base_dir) if base_dir else Path.home() / ".loopsafe" / "accuracy"
        self._base.mkdir(parents=True, exist_ok=True)
        self._path = self._base / "metrics.json"

    # -- persistence ---------------------------------------------------------

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return copy.deepcopy(DEFAULT_METRICS)
        try:
            return json.loads(self._path.read_text())
        except (json.JSONDecodeError, OSError):
            return copy.deepcopy(DEFAULT_METRICS)

    def _save(self, data: dict[str, Any]) -> None:
        self._path.write_text(json.dumps(data, indent=2))

    # -- public API ----------------------------------------------------------

    def get_metrics(self) -> dict[str, Any]:
        """Return the current metrics document."""
        return self._load()

    def update_accuracy(
        self,
        model_type: ModelType,
        accuracy: float,
        sub_category: Optional[str] = None,
        sub_category_value: Optional[str] = None,
    ) -> dict[str, Any]:
        """Set one accuracy figure and return the updated metrics.

        Without ``sub_category_value`` the overall figure is set.  Otherwise
        ``sub_category`` is a breakdown name (``language``,
        ``contentType``, ``category``, ``violationType``) with
        ``sub_category_value`` naming the bucket, or for sentiment the label
        itself via ``sub_category_value``.  An explicit ``overall`` combined
        with a value is only meaningful for sentiment labels.
        """
        if model_type not in _SECTIONS:
            raise ValueError(f"Unknown model type: {model_type}")
        if not 0 <= accuracy <= 100:
            raise ValueError(f"Accuracy must be between 0 and 100, got {accuracy}")

        data = self._load()
        section = data.setdefault(_SECTIONS[model_type], {})

        if sub_category_value is None and sub_category in (None, "overall"):
            section["overall"] = accuracy
        elif (
            model_type == "sentiment"
            and sub_category in (None, "overall")
            and sub_category_value in SENTIMENTS
        ):
            section[sub_category_value] = accuracy
        elif (model_type, sub_category) in _BREAKDOWNS and sub_category_value:
            section.setdefault(_BREAKDOWNS[(model_type, sub_category)], {})[sub_category_value] = accuracy
        else:
            raise ValueError(
                f"Unsupported sub-category {sub_category!r}={sub_category_value!r} for {model_type}"
            )

        self._save(data)
        return data

    def record_evaluation(
        self,
        model_type: ModelType,
        predictions: Sequence[Any],
        ground_truth: Sequence[Any],
        sub_category: Optional[str] = None,
        sub_category_value: Optional[str] = None,
    ) -> float:
        """Score an evaluation run, store the result and return it."""
        accuracy = calculate_accuracy(predictions, ground_truth)
        self.update_accuracy(model_type, accuracy, sub_category, sub_category_value)
        return accuracy

    def reset(self) -> None:
        """Restore the baseline metrics."""
        self._save(copy.deepcopy(DEFAULT_METRICS))
