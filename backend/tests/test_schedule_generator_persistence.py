from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.core.exceptions import ConflictError
from app.models.schedule import Schedule
from app.models.semester_schedule import SemesterSchedule, SemesterScheduleSlot, SemesterScheduleStatus
from app.models.teacher_preference import TeacherPreference
from app.repositories.academic import (
    ClassRepository,
    SubjectRepository,
    TeacherAssignmentRepository,
    TermRepository,
)
from app.repositories.base import SessionTransactionProvider
from app.repositories.schedule import ScheduleRepository
from app.repositories.semester_schedule import SemesterScheduleRepository, SemesterScheduleSlotRepository
from app.repositories.teacher_preference import TeacherPreferenceRepository
from app.schemas.scheduler import GenerateScheduleRequest, SaveScheduleRequest, SemesterScheduleQuery
from app.services.proposal_store import ProposalStore
from app.services.schedule_generator import ScheduleGeneratorService


@pytest.fixture()
def service(session_factory, academic_setup):
    return ScheduleGeneratorService(
        terms=TermRepository(session_factory),
        classes=ClassRepository(session_factory),
        subjects=SubjectRepository(session_factory),
        assignments=TeacherAssignmentRepository(session_factory),
        preferences=TeacherPreferenceRepository(session_factory),
        schedules=ScheduleRepository(session_factory),
        semesters=SemesterScheduleRepository(session_factory),
        slots=SemesterScheduleSlotRepository(session_factory),
        transactions=SessionTransactionProvider(session_factory),
        store=ProposalStore(timedelta(minutes=30)),
    )


def _request():
    return GenerateScheduleRequest.model_validate(
        {
            "termId": "term-1",
            "classId": "class-1",
            "timeSlotsPerDay": 2,
            "days": [1, 2],
            "subjectLoads": [
                {"subjectId": "math", "teacherId": "teacher-1", "weeklyCount": 2, "difficulty": 5},
                {"subjectId": "science", "teacherId": "teacher-2", "weeklyCount": 2, "difficulty": 3},
            ],
        }
    )


def _count(session_factory, model):
    db = session_factory()
    try:
        return db.execute(select(func.count()).select_from(model)).scalar_one()
    finally:
        db.close()


def test_save_writes_schedule_and_slots(service, session_factory):
    proposal = service.generate(_request())
    schedule_id = service.save(SaveScheduleRequest(proposal_id=proposal.proposal_id))

    assert _count(session_factory, SemesterSchedule) == 1
    assert _count(session_factory, SemesterScheduleSlot) == len(proposal.slots)
    assert _count(session_factory, Schedule) == 0

    slots = service.get_slots(schedule_id)
    assert [(slot.day_of_week, slot.time_slot) for slot in slots] == [(1, 1), (1, 2), (2, 1), (2, 2)]


def test_versions_increase_per_class_and_term(service):
    for _ in range(3):
        proposal = service.generate(_request())
        service.save(SaveScheduleRequest(proposal_id=proposal.proposal_id))

    versions = service.list_versions(SemesterScheduleQuery(term_id="term-1", class_id="class-1"))
    assert [record.version for record in versions] == [3, 2, 1]
    assert all(record.status == SemesterScheduleStatus.draft for record in versions)


def test_commit_to_daily_publishes_and_blocks_teachers(service, session_factory):
    proposal = service.generate(_request())
    schedule_id = service.save(SaveScheduleRequest(proposal_id=proposal.proposal_id, commit_to_daily=True))

    assert _count(session_factory, Schedule) == 4
    record = SemesterScheduleRepository(session_factory).find_by_id(schedule_id)
    assert record.status == SemesterScheduleStatus.published

    daily = ScheduleRepository(session_factory).list_by_teacher("teacher-1")
    assert {(row.day_of_week, row.time_slot) for row in daily} == {("MONDAY", "1"), ("TUESDAY", "1")}


def test_daily_conflict_rolls_back_everything(service, session_factory, seed):
    seed(
        Schedule(
            term_id="term-1",
            class_id="class-2",
            subject_id="math",
            teacher_id="teacher-9",
            day_of_week="MONDAY",
            time_slot="1",
            room="",
        )
    )
    proposal = service.generate(_request())
    # A daily row for this class lands on a proposed cell after generation.
    seed(
        Schedule(
            term_id="term-1",
            class_id="class-1",
            subject_id="art",
            teacher_id="teacher-9",
            day_of_week="TUESDAY",
            time_slot="2",
            room="",
        )
    )

    with pytest.raises(ConflictError) as exc_info:
        service.save(SaveScheduleRequest(proposal_id=proposal.proposal_id, commit_to_daily=True))

    assert [conflict["dimension"] for conflict in exc_info.value.conflicts] == ["CLASS"]
    assert _count(session_factory, SemesterSchedule) == 0
    assert _count(session_factory, SemesterScheduleSlot) == 0
    assert _count(session_factory, Schedule) == 2
    assert service.store.get(proposal.proposal_id) is not None


def test_existing_commitments_block_generation_cells(service, seed):
    seed(
        Schedule(
            term_id="term-1",
            class_id="class-2",
            subject_id="math",
            teacher_id="teacher-1",
            day_of_week="MONDAY",
            time_slot="1",
            room="",
        ),
        TeacherPreference(teacher_id="teacher-2", unavailable=[{"day_of_week": "TUESDAY", "time_range": "1-2"}]),
    )

    proposal = service.generate(_request())

    taken = {(slot.day_of_week, slot.time_slot, slot.teacher_id) for slot in proposal.slots}
    assert (1, 1, "teacher-1") not in taken
    assert not any(day == 2 and teacher == "teacher-2" for day, _, teacher in taken)


def test_delete_draft_removes_slots(service, session_factory):
    proposal = service.generate(_request())
    schedule_id = service.save(SaveScheduleRequest(proposal_id=proposal.proposal_id))

    service.delete(schedule_id)

    assert _count(session_factory, SemesterSchedule) == 0
    assert _count(session_factory, SemesterScheduleSlot) == 0


def test_delete_published_is_refused(service, session_factory):
    proposal = service.generate(_request())
    schedule_id = service.save(SaveScheduleRequest(proposal_id=proposal.proposal_id, commit_to_daily=True))

    with pytest.raises(ConflictError):
        service.delete(schedule_id)
    assert _count(session_factory, SemesterSchedule) == 1


def test_preference_upsert_round_trip(session_factory):
    repository = TeacherPreferenceRepository(session_factory)
    transactions = SessionTransactionProvider(session_factory)

    with transactions.begin() as tx:
        repository.upsert(tx, teacher_id="teacher-1", max_load_per_day=3)
    with transactions.begin() as tx:
        repository.upsert(
            tx,
            teacher_id="teacher-1",
            max_load_per_day=2,
            max_load_per_week=-4,
            unavailable=[{"day_of_week": "FRIDAY", "time_range": "4"}],
        )

    stored = repository.get_by_teacher("teacher-1")
    assert stored.max_load_per_day == 2
    assert stored.max_load_per_week == 0
    assert stored.unavailable == [{"day_of_week": "FRIDAY", "time_range": "4"}]
    assert repository.get_by_teacher("teacher-2") is None
    assert _count(session_factory, TeacherPreference) == 1
