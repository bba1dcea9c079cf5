from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.teacher_preference import TeacherPreference
from app.repositories.base import SessionRepository


class TeacherPreferenceRepository(SessionRepository):
    def get_by_teacher(self, teacher_id: str) -> TeacherPreference | None:
        query = select(TeacherPreference).where(TeacherPreference.teacher_id == teacher_id)
        with self._reader() as db:
            return db.execute(query).scalar_one_or_none()

    def upsert(
        self,
        tx: Session,
        *,
        teacher_id: str,
        max_load_per_day: int = 0,
        max_load_per_week: int = 0,
        unavailable: list[dict] | None = None,
    ) -> TeacherPreference:
        record = tx.execute(
            select(TeacherPreference).where(TeacherPreference.teacher_id == teacher_id)
        ).scalar_one_or_none()
        if record is None:
            record = TeacherPreference(teacher_id=teacher_id)
            tx.add(record)
        record.max_load_per_day = max(0, max_load_per_day)
        record.max_load_per_week = max(0, max_load_per_week)
        record.unavailable = list(unavailable or [])
        tx.flush()
        return record
