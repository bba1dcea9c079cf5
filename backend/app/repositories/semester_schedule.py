from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.models.semester_schedule import SemesterSchedule, SemesterScheduleSlot, SemesterScheduleStatus
from app.repositories.base import SessionRepository


class SemesterScheduleRepository(SessionRepository):
    def create_versioned(self, tx: Session, schedule: SemesterSchedule) -> SemesterSchedule:
        """Insert ``schedule`` as the next version for its term/class pair; earlier versions are untouched."""
        if not schedule.term_id or not schedule.class_id:
            raise ValueError("term_id and class_id are required")
        if schedule.status is None:
            schedule.status = SemesterScheduleStatus.draft
        if schedule.meta is None:
            schedule.meta = {}

        next_version = tx.execute(
            select(func.coalesce(func.max(SemesterSchedule.version), 0) + 1).where(
                SemesterSchedule.term_id == schedule.term_id,
                SemesterSchedule.class_id == schedule.class_id,
            )
        ).scalar_one()
        schedule.version = int(next_version)
        tx.add(schedule)
        tx.flush()
        return schedule

    def list_by_term_class(self, term_id: str, class_id: str) -> list[SemesterSchedule]:
        query = (
            select(SemesterSchedule)
            .where(SemesterSchedule.term_id == term_id, SemesterSchedule.class_id == class_id)
            .order_by(SemesterSchedule.version.desc())
        )
        with self._reader() as db:
            return list(db.execute(query).scalars())

    def find_by_id(self, schedule_id: str) -> SemesterSchedule | None:
        with self._reader() as db:
            return db.get(SemesterSchedule, schedule_id)

    def delete(self, schedule_id: str) -> bool:
        db = self._session_factory()
        try:
            with db.begin():
                db.execute(
                    delete(SemesterScheduleSlot).where(SemesterScheduleSlot.semester_schedule_id == schedule_id)
                )
                result = db.execute(delete(SemesterSchedule).where(SemesterSchedule.id == schedule_id))
                return result.rowcount > 0
        finally:
            db.close()

    def update_status(
        self,
        tx: Session,
        schedule_id: str,
        status: SemesterScheduleStatus,
        meta: dict | None = None,
    ) -> bool:
        record = tx.get(SemesterSchedule, schedule_id)
        if record is None:
            return False
        record.status = status
        if meta:
            record.meta = meta
        tx.flush()
        return True


class SemesterScheduleSlotRepository(SessionRepository):
    def upsert_batch(self, tx: Session, slots: list[SemesterScheduleSlot]) -> None:
        if not slots:
            return
        for slot in slots:
            existing = tx.execute(
                select(SemesterScheduleSlot).where(
                    SemesterScheduleSlot.semester_schedule_id == slot.semester_schedule_id,
                    SemesterScheduleSlot.day_of_week == slot.day_of_week,
                    SemesterScheduleSlot.time_slot == slot.time_slot,
                )
            ).scalar_one_or_none()
            if existing is None:
                tx.add(slot)
                continue
            existing.subject_id = slot.subject_id
            existing.teacher_id = slot.teacher_id
            existing.room = slot.room
        tx.flush()

    def list_by_schedule(self, schedule_id: str) -> list[SemesterScheduleSlot]:
        query = (
            select(SemesterScheduleSlot)
            .where(SemesterScheduleSlot.semester_schedule_id == schedule_id)
            .order_by(SemesterScheduleSlot.day_of_week.asc(), SemesterScheduleSlot.time_slot.asc())
        )
        with self._reader() as db:
            return list(db.execute(query).scalars())
