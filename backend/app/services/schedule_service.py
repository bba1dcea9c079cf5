from __future__ import annotations

import logging
from typing import Any, Protocol

from app.core.exceptions import AppError, ConflictError, InternalError, ResourceNotFoundError, reraise_as_internal
from app.models.schedule import Schedule
from app.schemas.conflict import ScheduleConflict
from app.schemas.schedule import CreateScheduleRequest, UpdateScheduleRequest
from app.services.conflict_service import ScheduleConflictChecker

logger = logging.getLogger(__name__)


class DailyScheduleRepository(Protocol):
    def find_conflicts(self, term_id: str, day_of_week: str, time_slot: str, tx: Any | None = None) -> list[Any]: ...

    def bulk_create(self, tx: Any, schedules: list[Schedule]) -> list[Schedule]: ...

    def find_by_id(self, schedule_id: str, tx: Any | None = None) -> Schedule | None: ...

    def update(self, tx: Any, schedule_id: str, values: dict) -> Schedule | None: ...

    def delete(self, tx: Any, schedule_id: str) -> bool: ...

    def list_by_class(self, class_id: str) -> list[Schedule]: ...

    def list_by_teacher(self, teacher_id: str) -> list[Schedule]: ...


class ScheduleService:
    """Maintains live daily schedule rows one at a time or in bulk, refusing double bookings."""

    def __init__(self, *, schedules: DailyScheduleRepository, transactions: Any) -> None:
        self._schedules = schedules
        self._transactions = transactions
        self._checker = ScheduleConflictChecker(schedules)

    def create(self, request: CreateScheduleRequest) -> Schedule:
        try:
            with self._transactions.begin() as tx:
                conflict = self._blocking_conflict(request, tx)
                if conflict is not None:
                    raise ConflictError(
                        f"schedule {conflict.dimension.lower()} conflict at {request.day_of_week} slot {request.time_slot}",
                        conflicts=[conflict.model_dump()],
                    )
                (created,) = self._schedules.bulk_create(tx, [self._to_model(request)])
        except AppError:
            raise
        except Exception as exc:
            logger.exception("schedule_create_failed | class_id=%s", request.class_id)
            raise InternalError("failed to create schedule") from exc
        logger.info(
            "schedule_created | schedule_id=%s class_id=%s day=%s slot=%s",
            created.id,
            created.class_id,
            created.day_of_week,
            created.time_slot,
        )
        return created

    def update(self, schedule_id: str, request: UpdateScheduleRequest) -> Schedule:
        """Replace a daily row, checking conflicts against every other row of the cell."""
        try:
            with self._transactions.begin() as tx:
                existing = self._schedules.find_by_id(schedule_id, tx=tx)
                if existing is None:
                    raise ResourceNotFoundError("schedule", schedule_id, message="schedule not found")
                conflict = self._blocking_conflict(request, tx, ignore_id=existing.id)
                if conflict is not None:
                    raise ConflictError(
                        f"schedule {conflict.dimension.lower()} conflict at {request.day_of_week} slot {request.time_slot}",
                        conflicts=[conflict.model_dump()],
                    )
                updated = self._schedules.update(tx, existing.id, self._values(request))
        except AppError:
            raise
        except Exception as exc:
            logger.exception("schedule_update_failed | schedule_id=%s", schedule_id)
            raise InternalError("failed to update schedule") from exc
        logger.info(
            "schedule_updated | schedule_id=%s day=%s slot=%s", schedule_id, updated.day_of_week, updated.time_slot
        )
        return updated

    def delete(self, schedule_id: str) -> None:
        try:
            with self._transactions.begin() as tx:
                if self._schedules.find_by_id(schedule_id, tx=tx) is None:
                    raise ResourceNotFoundError("schedule", schedule_id, message="schedule not found")
                self._schedules.delete(tx, schedule_id)
        except AppError:
            raise
        except Exception as exc:
            logger.exception("schedule_delete_failed | schedule_id=%s", schedule_id)
            raise InternalError("failed to delete schedule") from exc
        logger.info("schedule_deleted | schedule_id=%s", schedule_id)

    def bulk_create(
        self,
        items: list[CreateScheduleRequest],
        *,
        partial_on_error: bool = False,
    ) -> tuple[list[Schedule], list[ScheduleConflict]]:
        """Insert every conflict-free item.

        Conflicts are checked against persisted rows and against earlier items of the same
        batch. Without ``partial_on_error`` any conflict aborts the whole batch.
        """
        try:
            with self._transactions.begin() as tx:
                accepted: list[Schedule] = []
                conflicts: list[ScheduleConflict] = []
                for item in items:
                    conflict = self._blocking_conflict(item, tx) or self._batch_conflict(item, accepted)
                    if conflict is not None:
                        conflicts.append(conflict)
                        continue
                    accepted.append(self._to_model(item))

                if conflicts and not partial_on_error:
                    raise ConflictError(
                        "detected conflicts while creating schedules",
                        conflicts=[conflict.model_dump() for conflict in conflicts],
                    )
                created = self._schedules.bulk_create(tx, accepted)
        except AppError:
            raise
        except Exception as exc:
            logger.exception("schedule_bulk_create_failed | items=%s", len(items))
            raise InternalError("failed to create schedules") from exc
        logger.info("schedule_bulk_created | created=%s conflicts=%s", len(created), len(conflicts))
        return created, conflicts

    def list_by_class(self, class_id: str) -> list[Schedule]:
        with reraise_as_internal("failed to list class schedules"):
            return self._schedules.list_by_class(class_id)

    def list_by_teacher(self, teacher_id: str) -> list[Schedule]:
        with reraise_as_internal("failed to list teacher schedules"):
            return self._schedules.list_by_teacher(teacher_id)

    def _blocking_conflict(
        self,
        request: CreateScheduleRequest,
        tx: Any,
        ignore_id: str | None = None,
    ) -> ScheduleConflict | None:
        return self._checker.find_blocking(
            term_id=request.term_id,
            class_id=request.class_id,
            teacher_id=request.teacher_id,
            day_of_week=request.day_of_week,
            time_slot=request.time_slot,
            room=request.room,
            ignore_id=ignore_id,
            tx=tx,
        )

    @staticmethod
    def _batch_conflict(request: CreateScheduleRequest, accepted: list[Schedule]) -> ScheduleConflict | None:
        # Pending rows have no id yet, so batch conflicts are reported without one.
        checker = ScheduleConflictChecker(_PendingRows(accepted))
        return checker.find_blocking(
            term_id=request.term_id,
            class_id=request.class_id,
            teacher_id=request.teacher_id,
            day_of_week=request.day_of_week,
            time_slot=request.time_slot,
            room=request.room,
        )

    @staticmethod
    def _values(request: CreateScheduleRequest) -> dict:
        return request.model_dump(
            include={"term_id", "class_id", "subject_id", "teacher_id", "day_of_week", "time_slot", "room"}
        )

    @classmethod
    def _to_model(cls, request: CreateScheduleRequest) -> Schedule:
        return Schedule(**cls._values(request))


class _PendingRows:
    def __init__(self, rows: list[Schedule]) -> None:
        self._rows = rows

    def find_conflicts(self, term_id: str, day_of_week: str, time_slot: str, tx: Any | None = None) -> list[Schedule]:
        return [
            row
            for row in self._rows
            if row.term_id == term_id and row.day_of_week == day_of_week and row.time_slot == time_slot
        ]
