"""Audit trail of moderator actions.

Every review of a moderation log entry and every piece of model feedback
is recorded as one JSON line in a daily file under ``~/.loopsafe/audit_logs/``.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """A single moderator action."""

    id: str
    timestamp: str
    actor: str
    action: str
    resource_type: str
    resource_id: str
    details: dict[str, Any] = field(default_factory=dict)
    success: bool = True


class AuditLogger:
    """Newline-delimited JSON audit log, one file per UTC day."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".loopsafe" / "audit_logs"
        self._base_dir.mkdir(parents=True, exist_ok=True)

    def _current_log_file(self) -> Path:
        return self._base_dir / f"{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.jsonl"

    def _read_all_entries(self) -> list[AuditEntry]:
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            for line in path.read_text(encoding="utf-8").splitlines():
                if not line.strip():
                    continue
                try:
                    entries.append(AuditEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Skipping unreadable audit line in %s", path.name)
        return entries

    def log_event(
        self,
        actor: str,
        action: str,
        resource_type: str,
        resource_id: str,
        details: Optional[dict[str, Any]] = None,
        success: bool = True,
    ) -> AuditEntry:
        """Record an action and return the created entry."""
        entry = AuditEntry(
            id=uuid.uuid4().hex[:16],
            timestamp=datetime.now(timezone.utc).isoformat(),
            actor=actor,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
            success=success,
        )
        with self._current_log_file().open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(entry)) + "\n")
        return entry

    def get_events(
        self,
        *,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return filtered events, newest first."""
        entries = self._read_all_entries()
        if actor:
            entries = [e for e in entries if e.actor == actor]
        if action:
            entries = [e for e in entries if e.action == action]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def get_events_for_resource(self, resource_type: str, resource_id: str) -> list[AuditEntry]:
        """Return every event for one resource, newest first."""
        result = [
            e
            for e in self._read_all_entries()
            if e.resource_type == resource_type and e.resource_id == resource_id
        ]
        result.sort(key=lambda e: e.timestamp, reverse=True)
        return result
