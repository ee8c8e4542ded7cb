"""
Sync drain result models.

A SyncReport is returned by every SyncEngine.drain() call. It lists one
SyncOutcome per record the drain attempted, so a caller can show which
records failed and offer to re-enqueue them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from .queue_record import RecordStatus


@dataclass(frozen=True)
class SyncOutcome:
    """What happened to one queued record during a drain."""

    log: str
    """Queue log name ('scans' or 'cart_items')."""

    record_id: str

    status: RecordStatus
    """SYNCED or FAILED."""

    reason: str = ""
    """Failure reason (empty on success)."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log": self.log,
            "recordId": self.record_id,
            "status": self.status.value,
            "reason": self.reason,
        }


@dataclass
class SyncReport:
    """
    Result of one drain.

    ``skipped`` is True when the drain did not run (device offline or a
    drain already in progress); ``skip_reason`` says which.
    """

    pass_id: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    outcomes: List[SyncOutcome] = field(default_factory=list)
    skipped: bool = False
    skip_reason: str = ""

    @property
    def synced_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status is RecordStatus.SYNCED)

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status is RecordStatus.FAILED)

    @property
    def failed(self) -> List[SyncOutcome]:
        return [o for o in self.outcomes if o.status is RecordStatus.FAILED]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passId": self.pass_id,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "skipped": self.skipped,
            "skipReason": self.skip_reason,
            "synced": self.synced_count,
            "failed": self.failed_count,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
