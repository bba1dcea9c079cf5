from __future__ import annotations

from collections.abc import Iterable
import logging
from typing import Any, Protocol

from app.core.exceptions import reraise_as_internal
from app.schemas.conflict import ConflictDimension, ScheduleConflict
from app.schemas.scheduler import ScheduleSlotProposal, day_index_to_name

logger = logging.getLogger(__name__)


class ScheduleFeeder(Protocol):
    def find_conflicts(self, term_id: str, day_of_week: str, time_slot: str, tx: Any | None = None) -> list[Any]: ...


def rooms_collide(left: str | None, right: str | None, *, fold_case: bool = False) -> bool:
    """An empty room means no room, which never collides.

    Generated slots compare rooms exactly; hand-entered daily rows pass ``fold_case``
    so "Lab 1" and "lab 1 " name the same room.
    """
    if not left or not right:
        return False
    if fold_case:
        left, right = left.strip().casefold(), right.strip().casefold()
        return bool(left) and left == right
    return left == right


def violated_dimensions(
    existing: Any,
    *,
    class_id: str,
    teacher_id: str,
    room: str | None,
    fold_case: bool = False,
) -> list[ConflictDimension]:
    dimensions: list[ConflictDimension] = []
    if existing.class_id == class_id:
        dimensions.append("CLASS")
    if existing.teacher_id == teacher_id:
        dimensions.append("TEACHER")
    if rooms_collide(existing.room, room, fold_case=fold_case):
        dimensions.append("ROOM")
    return dimensions


class ScheduleConflictChecker:
    """Cross-checks candidate cells against the live daily schedules of a term."""

    def __init__(self, feeder: ScheduleFeeder) -> None:
        self._feeder = feeder

    def _existing_at(self, term_id: str, day_of_week: str, time_slot: str, tx: Any | None) -> list[Any]:
        with reraise_as_internal("failed to check conflicts"):
            return self._feeder.find_conflicts(term_id, day_of_week, time_slot, tx=tx)

    def check(
        self,
        term_id: str,
        class_id: str,
        slots: Iterable[ScheduleSlotProposal],
        *,
        tx: Any | None = None,
    ) -> list[ScheduleConflict]:
        conflicts: list[ScheduleConflict] = []
        for slot in slots:
            existing_rows = self._existing_at(term_id, day_index_to_name(slot.day_of_week), str(slot.time_slot), tx)
            for existing in existing_rows:
                for dimension in violated_dimensions(
                    existing,
                    class_id=class_id,
                    teacher_id=slot.teacher_id,
                    room=slot.room,
                ):
                    conflicts.append(ScheduleConflict.from_existing(existing, dimension))
        if conflicts:
            logger.info(
                "conflict_check | term_id=%s class_id=%s conflicts=%s", term_id, class_id, len(conflicts)
            )
        return conflicts

    def find_blocking(
        self,
        *,
        term_id: str,
        class_id: str,
        teacher_id: str,
        day_of_week: str,
        time_slot: str,
        room: str | None = None,
        ignore_id: str | None = None,
        tx: Any | None = None,
    ) -> ScheduleConflict | None:
        """First violated dimension for a single daily row, checked in CLASS, TEACHER, ROOM order.

        Rooms are matched case-insensitively here. ``ignore_id`` skips the row being updated.
        """
        for existing in self._existing_at(term_id, day_of_week, time_slot, tx):
            if ignore_id and existing.id == ignore_id:
                continue
            dimensions = violated_dimensions(
                existing, class_id=class_id, teacher_id=teacher_id, room=room, fold_case=True
            )
            if dimensions:
                return ScheduleConflict.from_existing(existing, dimensions[0])
        return None
