"""Reviewer feedback on hate speech and sentiment verdicts.

Each entry pairs the label the oracle produced with the label a reviewer
says is right.  Feedback is used twice: the most similar earlier entry is
mentioned in the prompt for new content, and the full label history is
scored into the accuracy metrics.
"""

from __future__ import annotations

import json
import re
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loopsafe.moderation.models import SENTIMENTS

FEEDBACK_MODELS = ("hate_speech", "sentiment")
SIMILARITY_THRESHOLD = 0.8

_WORD_RE = re.compile(r"\w+")


def similarity(a: str, b: str) -> float:
    """Jaccard similarity of the two texts' lower-cased word sets."""
    words_a = set(_WORD_RE.findall(a.lower()))
    words_b = set(_WORD_RE.findall(b.lower()))
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def _valid_label(model_type: str, label: Any) -> bool:
    if model_type == "hate_speech":
        return isinstance(label, bool)
    return label in SENTIMENTS


@dataclass
class FeedbackEntry:
    id: str
    timestamp: str
    model_type: str
    content: str
    predicted: Any
    actual: Any
    reviewer: str = ""

    @property
    def agreed(self) -> bool:
        return self.predicted == self.actual


class FeedbackStore:
    """File-backed feedback list in ``feedback.json``."""

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self._base = Path(base_dir) if base_dir else Path.home() / ".loopsafe" / "feedback"
        self._base.mkdir(parents=True, exist_ok=True)
        self._path = self._base / "feedback.json"

    # -- persistence ---------------------------------------------------------

    def _load_all(self) -> list[dict]:
        if not self._path.exists():
            return []
        return json.loads(self._path.read_text())

    def _save_all(self, data: list[dict]) -> None:
        self._path.write_text(json.dumps(data, indent=2, ensure_ascii=False))

    # -- public API ----------------------------------------------------------

    def add(
        self,
        model_type: str,
        content: str,
        predicted: Any,
        actual: Any,
        reviewer: str = "",
    ) -> FeedbackEntry:
        """Record that *predicted* was judged against *actual* for *content*."""
        if model_type not in FEEDBACK_MODELS:
            raise ValueError(f"No feedback is collected for model type: {model_type}")
        for label in (predicted, actual):
            if not _valid_label(model_type, label):
                raise ValueError(f"Invalid {model_type} label: {label!r}")
        entry = FeedbackEntry(
            id=uuid.uuid4().hex[:12],
            timestamp=datetime.now(timezone.utc).isoformat(),
            model_type=model_type,
            content=content,
            predicted=predicted,
            actual=actual,
            reviewer=reviewer,
        )
        data = self._load_all()
        data.append(asdict(entry))
        self._save_all(data)
        return entry

    def entries(self, model_type: Optional[str] = None) -> list[FeedbackEntry]:
        return [
            FeedbackEntry(**item)
            for item in self._load_all()
            if model_type is None or item["model_type"] == model_type
        ]

    def find_similar(
        self,
        model_type: str,
        content: str,
        threshold: float = SIMILARITY_THRESHOLD,
    ) -> Optional[FeedbackEntry]:
        """Most similar earlier feedback above *threshold*, or None."""
        best, best_score = None, threshold
        for entry in self.entries(model_type):
            score = similarity(entry.content, content)
            if score > best_score:
                best, best_score = entry, score
        return best

    def labels(self, model_type: str) -> tuple[list[Any], list[Any]]:
        """(predictions, ground truth) over all feedback for *model_type*."""
        entries = self.entries(model_type)
        return [e.predicted for e in entries], [e.actual for e in entries]
