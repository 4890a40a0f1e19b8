"""Per-user violation history and action escalation.

Tracks violations per user in ``<data_dir>/violations/violations.json``.
Repeat offenders and severe categories get a stronger recommended action
than the oracle suggested.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from loopsafe.moderation.models import ModerationAction

SEVERE_CATEGORIES = frozenset({"hate", "violence", "self-harm"})
RECENT_WINDOW_DAYS = 30


@dataclass
class ViolationRecord:
    """A single recorded violation."""

    timestamp: str
    category: str
    action: str


@dataclass
class UserViolationHistory:
    user_id: str
    violations: list[ViolationRecord] = field(default_factory=list)


def adjust_action(
    action: ModerationAction,
    recent_violations: int,
    category: str,
) -> ModerationAction:
    """Escalate *action* for severe categories and repeat offenders."""
    if category in SEVERE_CATEGORIES:
        if action == ModerationAction.ALLOW:
            return ModerationAction.WARN
        if action == ModerationAction.WARN:
            return ModerationAction.SUSPEND

    if recent_violations >= 5:
        if action == ModerationAction.WARN:
            return ModerationAction.SUSPEND
        if action == ModerationAction.SUSPEND:
            return ModerationAction.BAN
    elif recent_violations >= 3:
        if action == ModerationAction.ALLOW:
            return ModerationAction.WARN

    return action


class ViolationTracker:
    """File-backed violation history keyed by user id."""

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self._base = Path(base_dir) if base_dir else Path.home() / ".loopsafe" / "violations"
        self._base.mkdir(parents=True, exist_ok=True)
        self._path = self._base / "violations.json"

    # -- persistence ---------------------------------------------------------

    def _load_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            return json.loads(self._path.read_text())
        except (json.JSONDecodeError, OSError):
            return {}

    def _save_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, indent=2))

    # -- public API ----------------------------------------------------------

    def get_history(self, user_id: str) -> UserViolationHistory:
        entries = self._load_all().get(user_id, [])
        return UserViolationHistory(
            user_id=user_id,
            violations=[ViolationRecord(**v) for v in entries],
        )

    def record_violation(
        self,
        user_id: str,
        category: str,
        action: ModerationAction,
        timestamp: Optional[datetime] = None,
    ) -> ViolationRecord:
        """Append a violation for *user_id* and return it."""
        record = ViolationRecord(
            timestamp=(timestamp or datetime.now(timezone.utc)).isoformat(),
            category=category,
            action=action.value,
        )
        data = self._load_all()
        data.setdefault(user_id, []).append(asdict(record))
        self._save_all(data)
        return record

    def count_recent(self, user_id: str, days: int = RECENT_WINDOW_DAYS) -> int:
        """Number of violations recorded for *user_id* in the last *days* days."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        history = self.get_history(user_id)
        return sum(1 for v in history.violations if datetime.fromisoformat(v.timestamp) >= cutoff)

    def clear(self, user_id: str) -> None:
        """Forget every violation recorded for *user_id*."""
        data = self._load_all()
        if data.pop(user_id, None) is not None:
            self._save_all(data)
