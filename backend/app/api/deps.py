from datetime import timedelta
from functools import lru_cache

from fastapi import Depends

from app.core.config import Settings, get_settings
from app.db.session import SessionLocal
from app.repositories.academic import (
    ClassRepository,
    SubjectRepository,
    TeacherAssignmentRepository,
    TeacherRepository,
    TermRepository,
)
from app.repositories.base import SessionFactory, SessionTransactionProvider
from app.repositories.schedule import ScheduleRepository
from app.repositories.semester_schedule import SemesterScheduleRepository, SemesterScheduleSlotRepository
from app.repositories.teacher_preference import TeacherPreferenceRepository
from app.services.proposal_store import ProposalStore
from app.services.schedule_generator import ScheduleGeneratorService
from app.services.schedule_service import ScheduleService
from app.services.teacher_preference_service import TeacherPreferenceService


def get_session_factory() -> SessionFactory:
    return SessionLocal


@lru_cache
def get_proposal_store() -> ProposalStore:
    # One store per process; proposals survive between the generate and save requests.
    settings = get_settings()
    return ProposalStore(timedelta(minutes=settings.proposal_ttl_minutes))


def get_schedule_generator(
    session_factory: SessionFactory = Depends(get_session_factory),
    store: ProposalStore = Depends(get_proposal_store),
    settings: Settings = Depends(get_settings),
) -> ScheduleGeneratorService:
    schedules = ScheduleRepository(session_factory)
    return ScheduleGeneratorService(
        terms=TermRepository(session_factory),
        classes=ClassRepository(session_factory),
        subjects=SubjectRepository(session_factory),
        assignments=TeacherAssignmentRepository(session_factory),
        preferences=TeacherPreferenceRepository(session_factory),
        schedules=schedules,
        semesters=SemesterScheduleRepository(session_factory),
        slots=SemesterScheduleSlotRepository(session_factory),
        transactions=SessionTransactionProvider(session_factory),
        store=store,
        gap_repair_iterations=settings.gap_repair_iterations,
        max_subject_loads=settings.max_subject_loads,
    )


def get_schedule_service(
    session_factory: SessionFactory = Depends(get_session_factory),
) -> ScheduleService:
    return ScheduleService(
        schedules=ScheduleRepository(session_factory),
        transactions=SessionTransactionProvider(session_factory),
    )


def get_teacher_preference_service(
    session_factory: SessionFactory = Depends(get_session_factory),
) -> TeacherPreferenceService:
    return TeacherPreferenceService(
        teachers=TeacherRepository(session_factory),
        preferences=TeacherPreferenceRepository(session_factory),
        transactions=SessionTransactionProvider(session_factory),
    )
