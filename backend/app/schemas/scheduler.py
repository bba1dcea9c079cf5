from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.semester_schedule import SemesterScheduleStatus

DAY_INDEX_NAMES: dict[int, str] = {
    1: "MONDAY",
    2: "TUESDAY",
    3: "WEDNESDAY",
    4: "THURSDAY",
    5: "FRIDAY",
    6: "SATURDAY",
    7: "SUNDAY",
}

DAY_NAME_INDEX: dict[str, int] = {name: index for index, name in DAY_INDEX_NAMES.items()}

UNFULFILLED_LOAD = "UNFULFILLED_LOAD"


def day_index_to_name(day: int) -> str:
    # Unknown indexes fall back to MONDAY, mirroring how daily rows are keyed.
    return DAY_INDEX_NAMES.get(day, "MONDAY")


def day_name_to_index(name: str | None) -> int:
    return DAY_NAME_INDEX.get((name or "").strip().upper(), 0)


def parse_time_slot(raw: str | int | None) -> int:
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw or "").strip())
    except ValueError:
        return 0


def normalize_days(days: list[int]) -> list[int]:
    return sorted({day for day in days if 1 <= day <= 7})


class SchedulerModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SubjectLoadRequest(SchedulerModel):
    subject_id: str = Field(alias="subjectId", min_length=1, max_length=36)
    teacher_id: str = Field(alias="teacherId", min_length=1, max_length=36)
    weekly_count: int = Field(alias="weeklyCount", ge=1)
    difficulty: int = Field(default=0, ge=0, le=10)
    preferred_slots: list[Annotated[int, Field(ge=0)]] = Field(default_factory=list, alias="preferredSlots")
    tags: list[str] = Field(default_factory=list)


class GenerateScheduleRequest(SchedulerModel):
    term_id: str = Field(alias="termId", min_length=1, max_length=36)
    class_id: str = Field(alias="classId", min_length=1, max_length=36)
    time_slots_per_day: int = Field(alias="timeSlotsPerDay", ge=1, le=16)
    days: list[Annotated[int, Field(ge=1, le=7)]] = Field(min_length=1)
    subject_loads: list[SubjectLoadRequest] = Field(alias="subjectLoads", min_length=1)
    hard_constraints: list[str] = Field(default_factory=list, alias="hardConstraints")
    soft_constraints: list[str] = Field(default_factory=list, alias="softConstraints")
    meta: dict[str, Any] = Field(default_factory=dict)


class ScheduleSlotProposal(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    day_of_week: int = Field(alias="dayOfWeek", ge=1, le=7)
    time_slot: int = Field(alias="timeSlot", ge=1)
    subject_id: str = Field(alias="subjectId")
    teacher_id: str = Field(alias="teacherId")
    room: str | None = None


class ProposalConflict(SchedulerModel):
    type: str
    message: str
    slot: ScheduleSlotProposal | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class ScheduleImprovementStats(SchedulerModel):
    iterations: int = 0
    gap_penalty: float = Field(default=0.0, alias="gapPenalty")
    load_penalty: float = Field(default=0.0, alias="loadPenalty")


class GenerateScheduleResponse(SchedulerModel):
    proposal_id: str = Field(alias="proposalId")
    score: float
    slots: list[ScheduleSlotProposal]
    conflicts: list[ProposalConflict]
    stats: ScheduleImprovementStats


class SchedulePreviewResponse(SchedulerModel):
    mode: Literal["preview"] = "preview"
    proposal: GenerateScheduleResponse


class SaveScheduleRequest(SchedulerModel):
    proposal_id: str = Field(alias="proposalId", min_length=1)
    commit_to_daily: bool = Field(default=False, alias="commitToDaily")


class SaveScheduleResponse(SchedulerModel):
    schedule_id: str = Field(alias="scheduleId")


class SemesterScheduleQuery(SchedulerModel):
    term_id: str = Field(default="", alias="termId")
    class_id: str = Field(default="", alias="classId")

    @field_validator("term_id", "class_id")
    @classmethod
    def strip_identifier(cls, value: str) -> str:
        return value.strip()


class SemesterScheduleOut(BaseModel):
    id: str
    term_id: str
    class_id: str
    version: int
    status: SemesterScheduleStatus
    meta: dict
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class SemesterScheduleSlotOut(BaseModel):
    id: str
    semester_schedule_id: str
    day_of_week: int
    time_slot: int
    subject_id: str
    teacher_id: str
    room: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
