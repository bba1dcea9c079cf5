from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Any

from app.schemas.scheduler import (
    ProposalConflict,
    ScheduleImprovementStats,
    ScheduleSlotProposal,
    SubjectLoadRequest,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ScheduleProposal:
    proposal_id: str
    term_id: str
    class_id: str
    score: float
    slots: list[ScheduleSlotProposal]
    conflicts: list[ProposalConflict]
    stats: ScheduleImprovementStats
    time_slots_per_day: int
    days: list[int]
    subject_loads: list[SubjectLoadRequest]
    requested_at: datetime
    meta: dict[str, Any] = field(default_factory=dict)


class ProposalStore:
    """Process-local cache of generated proposals. Expired entries are evicted on read."""

    def __init__(self, ttl: timedelta, clock: Callable[[], datetime] | None = None) -> None:
        self._ttl = ttl
        self._clock = clock or _utcnow
        self._items: dict[str, ScheduleProposal] = {}
        self._lock = Lock()

    def save(self, proposal: ScheduleProposal) -> None:
        with self._lock:
            self._items[proposal.proposal_id] = proposal

    def get(self, proposal_id: str) -> ScheduleProposal | None:
        with self._lock:
            proposal = self._items.get(proposal_id)
            if proposal is None:
                return None
            if self._clock() - proposal.requested_at > self._ttl:
                self._items.pop(proposal_id, None)
                return None
            return proposal

    def delete(self, proposal_id: str) -> None:
        with self._lock:
            self._items.pop(proposal_id, None)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
