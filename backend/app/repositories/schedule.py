from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.models.schedule import Schedule
from app.repositories.base import SessionRepository


class ScheduleRepository(SessionRepository):
    """Live daily schedules. Days are stored by name, time slots as strings."""

    def list_by_teacher(self, teacher_id: str) -> list[Schedule]:
        query = (
            select(Schedule)
            .where(Schedule.teacher_id == teacher_id)
            .order_by(Schedule.day_of_week, Schedule.time_slot)
        )
        with self._reader() as db:
            return list(db.execute(query).scalars())

    def list_by_class(self, class_id: str) -> list[Schedule]:
        query = (
            select(Schedule)
            .where(Schedule.class_id == class_id)
            .order_by(Schedule.day_of_week, Schedule.time_slot)
        )
        with self._reader() as db:
            return list(db.execute(query).scalars())

    def find_conflicts(
        self,
        term_id: str,
        day_of_week: str,
        time_slot: str,
        tx: Session | None = None,
    ) -> list[Schedule]:
        query = select(Schedule).where(
            Schedule.term_id == term_id,
            Schedule.day_of_week == day_of_week,
            Schedule.time_slot == time_slot,
        )
        with self._reader(tx) as db:
            return list(db.execute(query).scalars())

    def bulk_create(self, tx: Session, schedules: list[Schedule]) -> list[Schedule]:
        if not schedules:
            return []
        tx.add_all(schedules)
        tx.flush()
        return schedules

    def find_by_id(self, schedule_id: str, tx: Session | None = None) -> Schedule | None:
        with self._reader(tx) as db:
            return db.get(Schedule, schedule_id)

    def update(self, tx: Session, schedule_id: str, values: dict) -> Schedule | None:
        record = tx.get(Schedule, schedule_id)
        if record is None:
            return None
        for field, value in values.items():
            setattr(record, field, value)
        tx.flush()
        return record

    def delete(self, tx: Session, schedule_id: str) -> bool:
        result = tx.execute(delete(Schedule).where(Schedule.id == schedule_id))
        return result.rowcount > 0
