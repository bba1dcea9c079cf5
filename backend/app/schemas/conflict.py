from typing import Literal

from pydantic import BaseModel

ConflictDimension = Literal["CLASS", "TEACHER", "ROOM"]


class ScheduleConflict(BaseModel):
    schedule_id: str = ""
    term_id: str
    class_id: str
    subject_id: str
    teacher_id: str
    day_of_week: str
    time_slot: str
    room: str = ""
    dimension: ConflictDimension

    @classmethod
    def from_existing(cls, existing, dimension: ConflictDimension) -> "ScheduleConflict":
        return cls(
            schedule_id=existing.id or "",
            term_id=existing.term_id,
            class_id=existing.class_id,
            subject_id=existing.subject_id,
            teacher_id=existing.teacher_id,
            day_of_week=existing.day_of_week,
            time_slot=existing.time_slot,
            room=existing.room or "",
            dimension=dimension,
        )
