from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.scheduler import DAY_NAME_INDEX


class UnavailableWindow(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day_of_week: str = Field(alias="dayOfWeek", min_length=1, max_length=20)
    # "3" or "1-4"
    time_range: str = Field(alias="timeRange", min_length=1, max_length=20)

    @field_validator("day_of_week")
    @classmethod
    def normalize_day(cls, value: str) -> str:
        day = value.strip().upper()
        if day not in DAY_NAME_INDEX:
            raise ValueError("Invalid day value")
        return day

    @field_validator("time_range")
    @classmethod
    def strip_range(cls, value: str) -> str:
        return value.strip()


class UpsertTeacherPreferenceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    max_load_per_day: int = Field(default=0, alias="maxLoadPerDay", ge=0)
    max_load_per_week: int = Field(default=0, alias="maxLoadPerWeek", ge=0)
    unavailable: list[UnavailableWindow] = Field(default_factory=list)


class TeacherPreferenceOut(BaseModel):
    id: str | None = None
    teacher_id: str
    max_load_per_day: int
    max_load_per_week: int
    unavailable: list[dict]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
