from __future__ import annotations

from collections.abc import Callable, Iterable
from contextlib import AbstractContextManager
from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Protocol
import uuid

from app.core.exceptions import (
    AppError,
    ConflictError,
    InternalError,
    PreconditionFailedError,
    ResourceNotFoundError,
    ValidationFailedError,
    reraise_as_internal,
)
from app.models.schedule import Schedule
from app.models.semester_schedule import SemesterSchedule, SemesterScheduleSlot, SemesterScheduleStatus
from app.schemas.conflict import ScheduleConflict
from app.schemas.scheduler import (
    UNFULFILLED_LOAD,
    GenerateScheduleRequest,
    GenerateScheduleResponse,
    ProposalConflict,
    SaveScheduleRequest,
    ScheduleImprovementStats,
    ScheduleSlotProposal,
    SemesterScheduleQuery,
    SubjectLoadRequest,
    day_index_to_name,
    normalize_days,
)
from app.services.availability import PreferenceReader, TeacherScheduleReader, build_teacher_availability
from app.services.conflict_service import ScheduleConflictChecker
from app.services.proposal_store import ProposalStore, ScheduleProposal
from app.services.scheduler_state import SchedulerState
from app.services.scoring import calculate_gap_penalty, calculate_load_penalty, calculate_score

logger = logging.getLogger(__name__)

ALGORITHM_NAME = "heuristic_v1"
DEFAULT_GAP_REPAIR_ITERATIONS = 12
DEFAULT_MAX_SUBJECT_LOADS = 128
DEFAULT_PROPOSAL_TTL = timedelta(minutes=30)


class EntityReader(Protocol):
    def find_by_id(self, entity_id: str) -> Any | None: ...


class AssignmentReader(Protocol):
    def list_by_class_and_term(self, class_id: str, term_id: str) -> list[Any]: ...


class DailyScheduleStore(TeacherScheduleReader, Protocol):
    def find_conflicts(self, term_id: str, day_of_week: str, time_slot: str, tx: Any | None = None) -> list[Any]: ...

    def bulk_create(self, tx: Any, schedules: list[Schedule]) -> list[Schedule]: ...


class SemesterScheduleStore(Protocol):
    def create_versioned(self, tx: Any, schedule: SemesterSchedule) -> SemesterSchedule: ...

    def list_by_term_class(self, term_id: str, class_id: str) -> list[SemesterSchedule]: ...

    def find_by_id(self, schedule_id: str) -> SemesterSchedule | None: ...

    def delete(self, schedule_id: str) -> bool: ...

    def update_status(
        self,
        tx: Any,
        schedule_id: str,
        status: SemesterScheduleStatus,
        meta: dict | None = None,
    ) -> bool: ...


class SemesterSlotStore(Protocol):
    def upsert_batch(self, tx: Any, slots: list[SemesterScheduleSlot]) -> None: ...

    def list_by_schedule(self, schedule_id: str) -> list[SemesterScheduleSlot]: ...


class ConflictCheck(Protocol):
    def check(
        self,
        term_id: str,
        class_id: str,
        slots: Iterable[ScheduleSlotProposal],
        *,
        tx: Any | None = None,
    ) -> list[ScheduleConflict]: ...


class TransactionProvider(Protocol):
    def begin(self) -> AbstractContextManager[Any]: ...


def map_assignments(items: Iterable[Any]) -> dict[str, set[str]]:
    """subject id -> ids of teachers assigned to it for the class and term."""
    result: dict[str, set[str]] = {}
    for item in items:
        result.setdefault(item.subject_id, set()).add(item.teacher_id)
    return result


def validate_subject_loads(loads: Iterable[SubjectLoadRequest], assignments: dict[str, set[str]]) -> None:
    for load in loads:
        if load.weekly_count <= 0:
            raise ValidationFailedError(f"subject {load.subject_id} weeklyCount must be > 0")
        if not load.subject_id or not load.teacher_id:
            raise ValidationFailedError("subjectId and teacherId are required for subjectLoads")
        teachers = assignments.get(load.subject_id)
        # Subjects without any assignment row are left unchecked.
        if teachers is not None and load.teacher_id not in teachers:
            raise ValidationFailedError(
                f"teacher {load.teacher_id} is not assigned to subject {load.subject_id}",
                details={"subjectId": load.subject_id, "teacherId": load.teacher_id},
            )


def seed_slots(state: SchedulerState, loads: Iterable[SubjectLoadRequest]) -> list[ProposalConflict]:
    """Place every weekly unit, hardest subjects first; unplaceable units become conflicts."""
    conflicts: list[ProposalConflict] = []
    ordered = sorted(loads, key=lambda load: (-load.difficulty, -load.weekly_count))
    for load in ordered:
        for _ in range(load.weekly_count):
            if state.assign(load):
                continue
            conflicts.append(
                ProposalConflict(
                    type=UNFULFILLED_LOAD,
                    message=f"unable to schedule subject {load.subject_id} for teacher {load.teacher_id}",
                    meta={"subjectId": load.subject_id, "teacherId": load.teacher_id},
                )
            )
    return conflicts


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScheduleGeneratorService:
    """Generates timetable proposals for a class and commits accepted ones as semester schedule versions."""

    def __init__(
        self,
        *,
        terms: EntityReader,
        classes: EntityReader,
        assignments: AssignmentReader,
        semesters: SemesterScheduleStore,
        slots: SemesterSlotStore,
        transactions: TransactionProvider,
        subjects: EntityReader | None = None,
        preferences: PreferenceReader | None = None,
        schedules: DailyScheduleStore | None = None,
        conflict_checker: ConflictCheck | None = None,
        store: ProposalStore | None = None,
        gap_repair_iterations: int = DEFAULT_GAP_REPAIR_ITERATIONS,
        max_subject_loads: int = DEFAULT_MAX_SUBJECT_LOADS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._terms = terms
        self._classes = classes
        self._subjects = subjects
        self._assignments = assignments
        self._preferences = preferences
        self._schedules = schedules
        self._semesters = semesters
        self._slots = slots
        self._transactions = transactions
        if conflict_checker is None and schedules is not None:
            conflict_checker = ScheduleConflictChecker(schedules)
        self._conflicts = conflict_checker
        self._clock = clock or _utcnow
        self._store = store if store is not None else ProposalStore(DEFAULT_PROPOSAL_TTL, clock=self._clock)
        self._gap_repair_iterations = max(0, gap_repair_iterations)
        self._max_subject_loads = max(1, max_subject_loads)

    @property
    def store(self) -> ProposalStore:
        return self._store

    def generate(self, request: GenerateScheduleRequest) -> GenerateScheduleResponse:
        if len(request.subject_loads) > self._max_subject_loads:
            raise ValidationFailedError(
                f"subjectLoads may contain at most {self._max_subject_loads} entries",
                details={"max": self._max_subject_loads},
            )
        self._ensure_term_and_class(request.term_id, request.class_id)

        days = normalize_days(request.days)
        if not days:
            raise ValidationFailedError("days must contain at least one entry")

        total_weekly = sum(load.weekly_count for load in request.subject_loads)
        total_slots = request.time_slots_per_day * len(days)
        if total_weekly != total_slots:
            raise ValidationFailedError(
                f"subjectLoads weeklyCount ({total_weekly}) must equal total weekly slots ({total_slots})",
                details={"weeklyCount": total_weekly, "totalSlots": total_slots},
            )

        with reraise_as_internal("failed to load teacher assignments"):
            assignment_rows = self._assignments.list_by_class_and_term(request.class_id, request.term_id)
        if not assignment_rows:
            raise PreconditionFailedError("no teacher assignments defined for this class and term")

        self._ensure_subjects_exist(request.subject_loads)
        assignments = map_assignments(assignment_rows)
        validate_subject_loads(request.subject_loads, assignments)

        with reraise_as_internal("failed to build teacher availability"):
            teachers = build_teacher_availability(
                request.term_id,
                assignments,
                request.subject_loads,
                preferences=self._preferences,
                schedules=self._schedules,
            )

        state = SchedulerState(days, request.time_slots_per_day, teachers)
        conflicts = seed_slots(state, request.subject_loads)
        improvements = state.repair_gaps(self._gap_repair_iterations)
        slots = state.export_slots()

        gap_penalty = calculate_gap_penalty(days, request.time_slots_per_day, slots)
        load_penalty = calculate_load_penalty(teachers)
        score = calculate_score(len(conflicts), gap_penalty, load_penalty)
        stats = ScheduleImprovementStats(iterations=improvements, gap_penalty=gap_penalty, load_penalty=load_penalty)

        proposal = ScheduleProposal(
            proposal_id=str(uuid.uuid4()),
            term_id=request.term_id,
            class_id=request.class_id,
            score=score,
            slots=slots,
            conflicts=conflicts,
            stats=stats,
            time_slots_per_day=request.time_slots_per_day,
            days=days,
            subject_loads=list(request.subject_loads),
            requested_at=self._clock(),
            meta={
                "hardConstraints": list(request.hard_constraints),
                "softConstraints": list(request.soft_constraints),
                "request": dict(request.meta),
            },
        )
        self._store.save(proposal)
        logger.info(
            "schedule_generated | proposal_id=%s term_id=%s class_id=%s slots=%s conflicts=%s score=%.1f moves=%s",
            proposal.proposal_id,
            request.term_id,
            request.class_id,
            len(slots),
            len(conflicts),
            score,
            improvements,
        )
        return GenerateScheduleResponse(
            proposal_id=proposal.proposal_id,
            score=score,
            slots=slots,
            conflicts=conflicts,
            stats=stats,
        )

    def save(self, request: SaveScheduleRequest) -> str:
        proposal = self._store.get(request.proposal_id)
        if proposal is None:
            raise ResourceNotFoundError("proposal", request.proposal_id, message="proposal not found or expired")
        if proposal.conflicts:
            raise ConflictError(
                "proposal contains unresolved conflicts",
                conflicts=[conflict.model_dump(mode="json", by_alias=True) for conflict in proposal.conflicts],
                details={"unresolved": len(proposal.conflicts)},
            )
        if request.commit_to_daily and (self._conflicts is None or self._schedules is None):
            raise InternalError("schedule conflict checker unavailable")

        try:
            with self._transactions.begin() as tx:
                record = self._semesters.create_versioned(
                    tx,
                    SemesterSchedule(
                        term_id=proposal.term_id,
                        class_id=proposal.class_id,
                        status=SemesterScheduleStatus.draft,
                        meta=self._build_meta(proposal),
                    ),
                )
                schedule_id = record.id
                version = record.version
                self._slots.upsert_batch(
                    tx,
                    [
                        SemesterScheduleSlot(
                            semester_schedule_id=schedule_id,
                            day_of_week=slot.day_of_week,
                            time_slot=slot.time_slot,
                            subject_id=slot.subject_id,
                            teacher_id=slot.teacher_id,
                            room=slot.room,
                        )
                        for slot in proposal.slots
                    ],
                )
                if request.commit_to_daily:
                    self._commit_to_daily(tx, proposal, schedule_id)
        except AppError:
            raise
        except Exception as exc:
            logger.exception("schedule_save_failed | proposal_id=%s", proposal.proposal_id)
            raise InternalError("failed to persist semester schedule") from exc

        self._evict(proposal.proposal_id)
        logger.info(
            "schedule_saved | schedule_id=%s proposal_id=%s version=%s published=%s",
            schedule_id,
            proposal.proposal_id,
            version,
            request.commit_to_daily,
        )
        return schedule_id

    def list_versions(self, query: SemesterScheduleQuery) -> list[SemesterSchedule]:
        if not query.term_id or not query.class_id:
            raise ValidationFailedError("termId and classId are required")
        with reraise_as_internal("failed to list semester schedules"):
            return self._semesters.list_by_term_class(query.term_id, query.class_id)

    def get_slots(self, schedule_id: str) -> list[SemesterScheduleSlot]:
        if not schedule_id:
            raise ValidationFailedError("schedule id is required")
        self._require_schedule(schedule_id)
        with reraise_as_internal("failed to list semester schedule slots"):
            return self._slots.list_by_schedule(schedule_id)

    def delete(self, schedule_id: str) -> None:
        record = self._require_schedule(schedule_id)
        if record.status != SemesterScheduleStatus.draft:
            raise ConflictError(
                "only draft schedules can be deleted",
                details={"status": SemesterScheduleStatus(record.status).value},
            )
        with reraise_as_internal("failed to delete semester schedule"):
            deleted = self._semesters.delete(schedule_id)
        if not deleted:
            raise ResourceNotFoundError("semester schedule", schedule_id, message="semester schedule not found")
        logger.info("semester_schedule_deleted | schedule_id=%s", schedule_id)

    def _commit_to_daily(self, tx: Any, proposal: ScheduleProposal, schedule_id: str) -> None:
        conflicts = self._conflicts.check(proposal.term_id, proposal.class_id, proposal.slots, tx=tx)
        if conflicts:
            logger.warning(
                "schedule_commit_conflict | proposal_id=%s conflicts=%s", proposal.proposal_id, len(conflicts)
            )
            raise ConflictError(
                "detected conflicts when committing to daily schedules",
                conflicts=[conflict.model_dump() for conflict in conflicts],
            )
        daily = [
            Schedule(
                term_id=proposal.term_id,
                class_id=proposal.class_id,
                subject_id=slot.subject_id,
                teacher_id=slot.teacher_id,
                day_of_week=day_index_to_name(slot.day_of_week),
                time_slot=str(slot.time_slot),
                room=slot.room or "",
            )
            for slot in proposal.slots
        ]
        self._schedules.bulk_create(tx, daily)
        self._semesters.update_status(tx, schedule_id, SemesterScheduleStatus.published)

    def _build_meta(self, proposal: ScheduleProposal) -> dict[str, Any]:
        return {
            "score": proposal.score,
            "stats": proposal.stats.model_dump(mode="json", by_alias=True),
            "generated": proposal.requested_at.isoformat(),
            "days": list(proposal.days),
            "timeSlots": proposal.time_slots_per_day,
            "algorithm": ALGORITHM_NAME,
            "subjectMap": [load.model_dump(mode="json", by_alias=True) for load in proposal.subject_loads],
            "hardConstraints": proposal.meta.get("hardConstraints", []),
            "softConstraints": proposal.meta.get("softConstraints", []),
        }

    def _evict(self, proposal_id: str) -> None:
        try:
            self._store.delete(proposal_id)
        except Exception:
            logger.warning("proposal_evict_failed | proposal_id=%s", proposal_id, exc_info=True)

    def _require_schedule(self, schedule_id: str) -> SemesterSchedule:
        with reraise_as_internal("failed to load semester schedule"):
            record = self._semesters.find_by_id(schedule_id)
        if record is None:
            raise ResourceNotFoundError("semester schedule", schedule_id, message="semester schedule not found")
        return record

    def _ensure_term_and_class(self, term_id: str, class_id: str) -> None:
        with reraise_as_internal("failed to load term"):
            term = self._terms.find_by_id(term_id)
        if term is None:
            raise ResourceNotFoundError("term", term_id, message="term not found")
        with reraise_as_internal("failed to load class"):
            school_class = self._classes.find_by_id(class_id)
        if school_class is None:
            raise ResourceNotFoundError("class", class_id, message="class not found")

    def _ensure_subjects_exist(self, loads: Iterable[SubjectLoadRequest]) -> None:
        if self._subjects is None:
            return
        checked: set[str] = set()
        for load in loads:
            if load.subject_id in checked:
                continue
            with reraise_as_internal("failed to load subject"):
                subject = self._subjects.find_by_id(load.subject_id)
            if subject is None:
                raise ResourceNotFoundError("subject", load.subject_id, message=f"subject {load.subject_id} not found")
            checked.add(load.subject_id)
