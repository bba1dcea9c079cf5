from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.conflict import ScheduleConflict
from app.schemas.scheduler import DAY_NAME_INDEX


class CreateScheduleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    term_id: str = Field(alias="termId", min_length=1, max_length=36)
    class_id: str = Field(alias="classId", min_length=1, max_length=36)
    subject_id: str = Field(alias="subjectId", min_length=1, max_length=36)
    teacher_id: str = Field(alias="teacherId", min_length=1, max_length=36)
    day_of_week: str = Field(alias="dayOfWeek", min_length=1, max_length=20)
    time_slot: str = Field(alias="timeSlot", min_length=1, max_length=20)
    room: str = Field(default="", max_length=64)

    @field_validator("day_of_week")
    @classmethod
    def normalize_day(cls, value: str) -> str:
        day = value.strip().upper()
        if day not in DAY_NAME_INDEX:
            raise ValueError("Invalid day value")
        return day

    @field_validator("time_slot", "room")
    @classmethod
    def strip_value(cls, value: str) -> str:
        return value.strip()


class UpdateScheduleRequest(CreateScheduleRequest):
    """Full replacement of a daily row; every field is required again."""


class BulkCreateSchedulesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: list[CreateScheduleRequest] = Field(min_length=1)
    partial_on_error: bool = Field(default=False, alias="partialOnError")


class ScheduleOut(BaseModel):
    id: str
    term_id: str
    class_id: str
    subject_id: str
    teacher_id: str
    day_of_week: str
    time_slot: str
    room: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class BulkCreateSchedulesResult(BaseModel):
    created: list[ScheduleOut]
    conflicts: list[ScheduleConflict] = Field(default_factory=list)
