"""File-based JSON storage for the ``moderation-logs`` collection.

Entries are append-only.  The only fields written after creation are the
review fields (``reviewed``, ``reviewResult``, ``reviewedAt``,
``adminNotes``) set by a moderator action.

Storage path: ``~/.loopsafe/moderation-logs/logs.json`` -- a list of entry dicts.
Timestamps are epoch milliseconds.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

REVIEW_RESULTS = ("approved", "rejected", "age_restricted")


class CorruptLogError(RuntimeError):
    """``logs.json`` exists but does not hold a list of entries."""


def _now_ms() -> int:
    return int(time.time() * 1000)


class ModerationLogStore:
    """Append-only moderation log with mutable review fields."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".loopsafe" / "moderation-logs"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._logs_path = self._base / "logs.json"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_json(self) -> list[dict]:
        # Must not read as empty: the next write would drop the history.
        if not self._logs_path.exists():
            return []
        try:
            data = json.loads(self._logs_path.read_text())
        except json.JSONDecodeError as exc:
            raise CorruptLogError(f"{self._logs_path} is not valid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise CorruptLogError(f"{self._logs_path} does not hold a list of log entries")
        return data

    def _write_json(self, data: list[dict]) -> None:
        self._logs_path.write_text(json.dumps(data, indent=2, default=str))

    @staticmethod
    def _check_result(result: str) -> None:
        if result not in REVIEW_RESULTS:
            raise ValueError(
                f"Invalid review result {result!r}; expected one of {', '.join(REVIEW_RESULTS)}"
            )

    @staticmethod
    def _apply_review(entry: dict, result: str, admin_notes: str) -> None:
        entry["reviewed"] = True
        entry["reviewResult"] = result
        entry["reviewedAt"] = _now_ms()
        entry["adminNotes"] = admin_notes

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def append(self, entry: dict[str, Any]) -> str:
        """Store a new log entry and return its generated id."""
        log_id = uuid.uuid4().hex[:20]
        record = dict(entry)
        record.update(
            {
                "id": log_id,
                "timestamp": _now_ms(),
                "reviewed": False,
                "actionTaken": False,
            }
        )
        logs = self._read_json()
        logs.append(record)
        self._write_json(logs)
        logger.debug("Appended moderation log %s (type=%s)", log_id, record.get("type"))
        return log_id

    def get(self, log_id: str) -> Optional[dict]:
        """Look up a log entry by id.  Returns None if not found."""
        for entry in self._read_json():
            if entry.get("id") == log_id:
                return entry
        return None

    def list_all(self) -> list[dict]:
        return self._read_json()

    def list_pending(self, content_type: Optional[str] = None, limit: int = 20) -> list[dict]:
        """Unreviewed entries, optionally of one type, newest first."""
        entries = [
            e
            for e in self._read_json()
            if not e.get("reviewed") and (not content_type or e.get("type") == content_type)
        ]
        entries.sort(key=lambda e: e.get("timestamp", 0), reverse=True)
        return entries[:limit]

    def record_review(self, log_id: str, result: str, admin_notes: str = "") -> dict:
        """Record a moderator's review of one entry and return the entry."""
        self._check_result(result)
        logs = self._read_json()
        for entry in logs:
            if entry.get("id") == log_id:
                self._apply_review(entry, result, admin_notes)
                self._write_json(logs)
                return entry
        raise ValueError(f"Moderation log {log_id} not found")

    def review_by_post(self, post_id: str, result: str, admin_notes: str = "") -> int:
        """Review every entry logged for *post_id*.  Returns the number updated."""
        self._check_result(result)
        logs = self._read_json()
        updated = 0
        for entry in logs:
            if entry.get("postId") == post_id:
                self._apply_review(entry, result, admin_notes)
                updated += 1
        if updated:
            self._write_json(logs)
        return updated
