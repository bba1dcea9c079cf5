from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import get_schedule_generator
from app.schemas.scheduler import (
    GenerateScheduleRequest,
    SaveScheduleRequest,
    SaveScheduleResponse,
    SchedulePreviewResponse,
    SemesterScheduleOut,
    SemesterScheduleQuery,
    SemesterScheduleSlotOut,
)
from app.services.schedule_generator import ScheduleGeneratorService

router = APIRouter()


def _preview(payload: GenerateScheduleRequest, service: ScheduleGeneratorService) -> SchedulePreviewResponse:
    return SchedulePreviewResponse(proposal=service.generate(payload))


@router.post("/schedules/generator", response_model=SchedulePreviewResponse)
def generate_schedule(
    payload: GenerateScheduleRequest,
    service: ScheduleGeneratorService = Depends(get_schedule_generator),
) -> SchedulePreviewResponse:
    return _preview(payload, service)


@router.post("/schedule/generate", response_model=SchedulePreviewResponse)
def generate_schedule_preview(
    payload: GenerateScheduleRequest,
    service: ScheduleGeneratorService = Depends(get_schedule_generator),
) -> SchedulePreviewResponse:
    return _preview(payload, service)


@router.post("/schedule/save", response_model=SaveScheduleResponse, status_code=status.HTTP_201_CREATED)
def save_schedule(
    payload: SaveScheduleRequest,
    service: ScheduleGeneratorService = Depends(get_schedule_generator),
) -> SaveScheduleResponse:
    schedule_id = service.save(payload)
    return SaveScheduleResponse(schedule_id=schedule_id)


@router.get("/semester-schedule", response_model=list[SemesterScheduleOut])
def list_semester_schedules(
    term_id: str = Query(default="", alias="termId", max_length=36),
    class_id: str = Query(default="", alias="classId", max_length=36),
    service: ScheduleGeneratorService = Depends(get_schedule_generator),
) -> list[SemesterScheduleOut]:
    records = service.list_versions(SemesterScheduleQuery(term_id=term_id, class_id=class_id))
    return [SemesterScheduleOut.model_validate(record) for record in records]


@router.get("/semester-schedule/{schedule_id}/slots", response_model=list[SemesterScheduleSlotOut])
def list_semester_schedule_slots(
    schedule_id: str,
    service: ScheduleGeneratorService = Depends(get_schedule_generator),
) -> list[SemesterScheduleSlotOut]:
    return [SemesterScheduleSlotOut.model_validate(slot) for slot in service.get_slots(schedule_id)]


@router.delete("/semester-schedule/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_semester_schedule(
    schedule_id: str,
    service: ScheduleGeneratorService = Depends(get_schedule_generator),
) -> Response:
    service.delete(schedule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
