import pytest
from pydantic import ValidationError

from app.core.exceptions import ResourceNotFoundError
from app.models.academic import Teacher
from app.repositories.academic import TeacherRepository
from app.repositories.base import SessionTransactionProvider
from app.repositories.teacher_preference import TeacherPreferenceRepository
from app.schemas.teacher_preference import UpsertTeacherPreferenceRequest
from app.services.availability import TeacherAvailability, apply_unavailable_windows
from app.services.teacher_preference_service import TeacherPreferenceService


@pytest.fixture()
def service(session_factory, seed):
    seed(Teacher(id="teacher-1", name="Teacher One"))
    return TeacherPreferenceService(
        teachers=TeacherRepository(session_factory),
        preferences=TeacherPreferenceRepository(session_factory),
        transactions=SessionTransactionProvider(session_factory),
    )


def test_get_returns_defaults_when_nothing_is_stored(service):
    preference = service.get("teacher-1")

    assert preference.id is None
    assert preference.teacher_id == "teacher-1"
    assert preference.max_load_per_day == 0
    assert preference.max_load_per_week == 0
    assert preference.unavailable == []


def test_upsert_stores_and_replaces_preferences(service):
    first = service.upsert(
        "teacher-1",
        UpsertTeacherPreferenceRequest.model_validate(
            {
                "maxLoadPerDay": 3,
                "maxLoadPerWeek": 10,
                "unavailable": [{"dayOfWeek": "monday", "timeRange": "1-2"}],
            }
        ),
    )
    second = service.upsert("teacher-1", UpsertTeacherPreferenceRequest(max_load_per_week=8))

    stored = service.get("teacher-1")
    assert first.id == second.id == stored.id
    assert stored.max_load_per_day == 0
    assert stored.max_load_per_week == 8
    assert stored.unavailable == []


def test_stored_windows_block_availability(service):
    service.upsert(
        "teacher-1",
        UpsertTeacherPreferenceRequest.model_validate(
            {"unavailable": [{"dayOfWeek": "Tuesday", "timeRange": "2-3"}]}
        ),
    )
    availability = TeacherAvailability()

    apply_unavailable_windows(availability, service.get("teacher-1").unavailable)

    assert availability.can_teach(2, 1)
    assert not availability.can_teach(2, 2)
    assert not availability.can_teach(2, 3)


def test_unknown_teacher_is_not_found(service):
    with pytest.raises(ResourceNotFoundError):
        service.get("teacher-9")
    with pytest.raises(ResourceNotFoundError):
        service.upsert("teacher-9", UpsertTeacherPreferenceRequest())


def test_negative_caps_are_rejected():
    with pytest.raises(ValidationError):
        UpsertTeacherPreferenceRequest(max_load_per_day=-1)
    with pytest.raises(ValidationError):
        UpsertTeacherPreferenceRequest.model_validate({"unavailable": [{"dayOfWeek": "someday", "timeRange": "1"}]})
