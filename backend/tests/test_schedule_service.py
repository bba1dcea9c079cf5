import pytest

from app.core.exceptions import ConflictError, ResourceNotFoundError
from app.repositories.base import SessionTransactionProvider
from app.repositories.schedule import ScheduleRepository
from app.schemas.schedule import CreateScheduleRequest, UpdateScheduleRequest
from app.services.schedule_service import ScheduleService


@pytest.fixture()
def service(session_factory):
    return ScheduleService(
        schedules=ScheduleRepository(session_factory),
        transactions=SessionTransactionProvider(session_factory),
    )


def _item(**overrides):
    payload = {
        "termId": "term-1",
        "classId": "class-1",
        "subjectId": "math",
        "teacherId": "teacher-1",
        "dayOfWeek": "monday",
        "timeSlot": "1",
        "room": "",
    }
    payload.update(overrides)
    return CreateScheduleRequest.model_validate(payload)


def test_create_normalizes_day_name(service):
    created = service.create(_item())
    assert created.day_of_week == "MONDAY"
    assert [row.id for row in service.list_by_class("class-1")] == [created.id]


def test_create_rejects_class_double_booking(service):
    service.create(_item())
    with pytest.raises(ConflictError) as exc_info:
        service.create(_item(teacherId="teacher-2", subjectId="science"))
    assert exc_info.value.conflicts[0]["dimension"] == "CLASS"


def test_create_rejects_teacher_double_booking(service):
    service.create(_item())
    with pytest.raises(ConflictError) as exc_info:
        service.create(_item(classId="class-2"))
    assert exc_info.value.conflicts[0]["dimension"] == "TEACHER"


def test_room_conflicts_are_case_insensitive_and_skip_empty_rooms(service):
    service.create(_item(room="Lab 1"))
    service.create(_item(classId="class-2", teacherId="teacher-2", room=""))

    with pytest.raises(ConflictError) as exc_info:
        service.create(_item(classId="class-3", teacherId="teacher-3", room="lab 1"))
    assert exc_info.value.conflicts[0]["dimension"] == "ROOM"


def test_other_term_or_slot_does_not_conflict(service):
    service.create(_item())
    service.create(_item(termId="term-2"))
    service.create(_item(timeSlot="2"))
    assert len(service.list_by_teacher("teacher-1")) == 3


def test_bulk_create_is_all_or_nothing_by_default(service):
    service.create(_item())
    items = [_item(classId="class-2", teacherId="teacher-2"), _item(classId="class-3")]

    with pytest.raises(ConflictError) as exc_info:
        service.bulk_create(items)

    assert [conflict["dimension"] for conflict in exc_info.value.conflicts] == ["TEACHER"]
    assert service.list_by_class("class-2") == []


def test_bulk_create_partial_inserts_clean_rows(service):
    service.create(_item())
    items = [_item(classId="class-2", teacherId="teacher-2"), _item(classId="class-3")]

    created, conflicts = service.bulk_create(items, partial_on_error=True)

    assert [row.class_id for row in created] == ["class-2"]
    assert [conflict.dimension for conflict in conflicts] == ["TEACHER"]


def test_bulk_create_detects_conflicts_inside_the_batch(service):
    items = [_item(), _item(classId="class-2")]

    created, conflicts = service.bulk_create(items, partial_on_error=True)

    assert len(created) == 1
    assert conflicts[0].dimension == "TEACHER"
    assert conflicts[0].schedule_id == ""


def _update(**overrides):
    return UpdateScheduleRequest.model_validate(_item(**overrides).model_dump(by_alias=True))


def test_update_moves_row_without_conflicting_with_itself(service):
    created = service.create(_item(room="Lab 1"))

    in_place = service.update(created.id, _update(room="Lab 2"))
    assert in_place.id == created.id
    assert in_place.room == "Lab 2"

    moved = service.update(created.id, _update(timeSlot="2", room="Lab 2"))
    assert moved.time_slot == "2"
    assert [row.time_slot for row in service.list_by_class("class-1")] == ["2"]


def test_update_rejects_teacher_double_booking(service):
    service.create(_item())
    other = service.create(_item(classId="class-2", teacherId="teacher-2", timeSlot="2"))

    with pytest.raises(ConflictError) as exc_info:
        service.update(other.id, _update(classId="class-2", teacherId="teacher-1"))

    assert exc_info.value.conflicts[0]["dimension"] == "TEACHER"
    assert [row.time_slot for row in service.list_by_teacher("teacher-2")] == ["2"]


def test_update_missing_schedule_is_not_found(service):
    with pytest.raises(ResourceNotFoundError):
        service.update("missing", _update())


def test_delete_removes_row(service):
    created = service.create(_item())

    service.delete(created.id)

    assert service.list_by_class("class-1") == []
    with pytest.raises(ResourceNotFoundError):
        service.delete(created.id)
