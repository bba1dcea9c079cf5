from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import get_schedule_service, get_teacher_preference_service
from app.schemas.schedule import (
    BulkCreateSchedulesRequest,
    BulkCreateSchedulesResult,
    CreateScheduleRequest,
    ScheduleOut,
    UpdateScheduleRequest,
)
from app.schemas.teacher_preference import TeacherPreferenceOut, UpsertTeacherPreferenceRequest
from app.services.schedule_service import ScheduleService
from app.services.teacher_preference_service import TeacherPreferenceService

router = APIRouter()

TEACHER_ID_PATTERN = r"^[A-Za-z0-9_-]{1,36}$"


@router.get("/schedules", response_model=list[ScheduleOut])
def list_schedules(
    class_id: str | None = Query(default=None, alias="classId", max_length=36),
    teacher_id: str | None = Query(default=None, alias="teacherId", max_length=36),
    service: ScheduleService = Depends(get_schedule_service),
) -> list[ScheduleOut]:
    if class_id:
        rows = service.list_by_class(class_id)
    elif teacher_id:
        rows = service.list_by_teacher(teacher_id)
    else:
        rows = []
    return [ScheduleOut.model_validate(row) for row in rows]


@router.post("/schedules", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: CreateScheduleRequest,
    service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleOut:
    return ScheduleOut.model_validate(service.create(payload))


@router.post("/schedules/bulk", response_model=BulkCreateSchedulesResult, status_code=status.HTTP_201_CREATED)
def bulk_create_schedules(
    payload: BulkCreateSchedulesRequest,
    service: ScheduleService = Depends(get_schedule_service),
) -> BulkCreateSchedulesResult:
    created, conflicts = service.bulk_create(payload.items, partial_on_error=payload.partial_on_error)
    return BulkCreateSchedulesResult(
        created=[ScheduleOut.model_validate(row) for row in created],
        conflicts=conflicts,
    )


@router.get("/schedules/preferences", response_model=TeacherPreferenceOut)
def get_teacher_preferences(
    teacher_id: str = Query(alias="teacherId", pattern=TEACHER_ID_PATTERN),
    service: TeacherPreferenceService = Depends(get_teacher_preference_service),
) -> TeacherPreferenceOut:
    return TeacherPreferenceOut.model_validate(service.get(teacher_id))


@router.post("/schedules/preferences", response_model=TeacherPreferenceOut)
def upsert_teacher_preferences(
    payload: UpsertTeacherPreferenceRequest,
    teacher_id: str = Query(alias="teacherId", pattern=TEACHER_ID_PATTERN),
    service: TeacherPreferenceService = Depends(get_teacher_preference_service),
) -> TeacherPreferenceOut:
    return TeacherPreferenceOut.model_validate(service.upsert(teacher_id, payload))


@router.put("/schedules/{schedule_id}", response_model=ScheduleOut)
def update_schedule(
    schedule_id: str,
    payload: UpdateScheduleRequest,
    service: ScheduleService = Depends(get_schedule_service),
) -> ScheduleOut:
    return ScheduleOut.model_validate(service.update(schedule_id, payload))


@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(
    schedule_id: str,
    service: ScheduleService = Depends(get_schedule_service),
) -> Response:
    service.delete(schedule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
