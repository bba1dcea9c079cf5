from __future__ import annotations

import logging
from typing import Any, Protocol

from app.core.exceptions import AppError, InternalError, ResourceNotFoundError, reraise_as_internal
from app.models.teacher_preference import TeacherPreference
from app.schemas.teacher_preference import UpsertTeacherPreferenceRequest

logger = logging.getLogger(__name__)


class TeacherReader(Protocol):
    def find_by_id(self, teacher_id: str) -> Any | None: ...


class PreferenceStore(Protocol):
    def get_by_teacher(self, teacher_id: str) -> TeacherPreference | None: ...

    def upsert(
        self,
        tx: Any,
        *,
        teacher_id: str,
        max_load_per_day: int = 0,
        max_load_per_week: int = 0,
        unavailable: list[dict] | None = None,
    ) -> TeacherPreference: ...


class TeacherPreferenceService:
    """Load caps and unavailable windows that feed teacher availability during generation."""

    def __init__(self, *, teachers: TeacherReader, preferences: PreferenceStore, transactions: Any) -> None:
        self._teachers = teachers
        self._preferences = preferences
        self._transactions = transactions

    def get(self, teacher_id: str) -> TeacherPreference:
        """Stored preferences, or unsaved defaults (no caps, no blocked cells) when none exist."""
        self._require_teacher(teacher_id)
        with reraise_as_internal("failed to load teacher preferences"):
            record = self._preferences.get_by_teacher(teacher_id)
        if record is None:
            return TeacherPreference(teacher_id=teacher_id, max_load_per_day=0, max_load_per_week=0, unavailable=[])
        return record

    def upsert(self, teacher_id: str, request: UpsertTeacherPreferenceRequest) -> TeacherPreference:
        self._require_teacher(teacher_id)
        try:
            with self._transactions.begin() as tx:
                record = self._preferences.upsert(
                    tx,
                    teacher_id=teacher_id,
                    max_load_per_day=request.max_load_per_day,
                    max_load_per_week=request.max_load_per_week,
                    unavailable=[window.model_dump() for window in request.unavailable],
                )
        except AppError:
            raise
        except Exception as exc:
            logger.exception("teacher_preference_upsert_failed | teacher_id=%s", teacher_id)
            raise InternalError("failed to upsert teacher preferences") from exc
        logger.info(
            "teacher_preference_saved | teacher_id=%s max_per_day=%s max_per_week=%s windows=%s",
            teacher_id,
            request.max_load_per_day,
            request.max_load_per_week,
            len(request.unavailable),
        )
        return record

    def _require_teacher(self, teacher_id: str) -> None:
        with reraise_as_internal("failed to load teacher"):
            teacher = self._teachers.find_by_id(teacher_id)
        if teacher is None:
            raise ResourceNotFoundError("teacher", teacher_id, message="teacher not found")
