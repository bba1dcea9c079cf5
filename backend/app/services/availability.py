from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
import json
import logging
from typing import Any, Protocol

from app.schemas.scheduler import SubjectLoadRequest, day_name_to_index, parse_time_slot

logger = logging.getLogger(__name__)

Cell = tuple[int, int]


class TeacherAvailability:
    """Capacity and occupied-cell tracker for one teacher during one generation run.

    A cap of zero means no limit. ``blocked`` holds cells the teacher cannot take at all
    (declared unavailability or commitments in other classes); ``assigned`` holds cells
    reserved by the run in progress.
    """

    def __init__(self, max_load_per_day: int = 0, max_load_per_week: int = 0) -> None:
        self.max_load_per_day = max(0, max_load_per_day or 0)
        self.max_load_per_week = max(0, max_load_per_week or 0)
        self.blocked: set[Cell] = set()
        self.assigned: set[Cell] = set()
        self.per_day: dict[int, int] = defaultdict(int)
        self.weekly = 0

    def block(self, day: int, slot: int) -> None:
        self.blocked.add((day, slot))

    def can_teach(self, day: int, slot: int, *, vacating: Cell | None = None) -> bool:
        cell = (day, slot)
        if cell in self.blocked:
            return False
        if cell in self.assigned and cell != vacating:
            return False

        day_count = self.per_day.get(day, 0)
        week_count = self.weekly
        if vacating is not None and vacating in self.assigned:
            week_count -= 1
            if vacating[0] == day:
                day_count -= 1

        if self.max_load_per_day > 0 and day_count >= self.max_load_per_day:
            return False
        if self.max_load_per_week > 0 and week_count >= self.max_load_per_week:
            return False
        return True

    def reserve(self, day: int, slot: int) -> None:
        self.assigned.add((day, slot))
        self.per_day[day] += 1
        self.weekly += 1

    def release(self, day: int, slot: int) -> None:
        self.assigned.discard((day, slot))
        if self.per_day.get(day, 0) > 0:
            self.per_day[day] -= 1
        if self.weekly > 0:
            self.weekly -= 1


class PreferenceReader(Protocol):
    def get_by_teacher(self, teacher_id: str) -> Any | None: ...


class TeacherScheduleReader(Protocol):
    def list_by_teacher(self, teacher_id: str) -> list[Any]: ...


def expand_time_range(raw: str | None) -> list[int]:
    """``"1-3"`` -> ``[1, 2, 3]``, ``"2"`` -> ``[2]``; malformed or reversed ranges yield nothing."""
    value = (raw or "").strip()
    if not value:
        return []
    if "-" in value:
        start_raw, end_raw = value.split("-", 1)
        start = parse_time_slot(start_raw)
        end = parse_time_slot(end_raw)
        if start <= 0 or end <= 0 or end < start:
            return []
        return list(range(start, end + 1))
    slot = parse_time_slot(value)
    return [slot] if slot > 0 else []


def _window_field(window: Any, name: str) -> Any:
    if isinstance(window, Mapping):
        return window.get(name)
    return getattr(window, name, None)


def apply_unavailable_windows(availability: TeacherAvailability, windows: Iterable[Any] | str | None) -> None:
    if isinstance(windows, str):
        try:
            windows = json.loads(windows)
        except json.JSONDecodeError:
            logger.warning("teacher_availability | unreadable unavailable windows skipped")
            return
    if not isinstance(windows, list):
        return
    for window in windows:
        day = day_name_to_index(_window_field(window, "day_of_week"))
        if day == 0:
            continue
        for slot in expand_time_range(_window_field(window, "time_range")):
            availability.block(day, slot)


def collect_teacher_ids(
    assignments: Mapping[str, set[str]],
    loads: Iterable[SubjectLoadRequest],
) -> list[str]:
    teachers: set[str] = set()
    for teacher_ids in assignments.values():
        teachers.update(teacher_ids)
    teachers.update(load.teacher_id for load in loads)
    return sorted(teachers)


def build_teacher_availability(
    term_id: str,
    assignments: Mapping[str, set[str]],
    loads: Iterable[SubjectLoadRequest],
    *,
    preferences: PreferenceReader | None = None,
    schedules: TeacherScheduleReader | None = None,
) -> dict[str, TeacherAvailability]:
    """Build one availability per teacher named by the assignments or the requested loads.

    Repository exceptions propagate to the caller untouched.
    """
    result: dict[str, TeacherAvailability] = {}
    for teacher_id in collect_teacher_ids(assignments, loads):
        preference = preferences.get_by_teacher(teacher_id) if preferences is not None else None
        if preference is None:
            availability = TeacherAvailability()
        else:
            availability = TeacherAvailability(
                max_load_per_day=preference.max_load_per_day,
                max_load_per_week=preference.max_load_per_week,
            )
            apply_unavailable_windows(availability, preference.unavailable)

        if schedules is not None:
            for existing in schedules.list_by_teacher(teacher_id):
                if existing.term_id != term_id:
                    continue
                day = day_name_to_index(existing.day_of_week)
                slot = parse_time_slot(existing.time_slot)
                if day == 0 or slot <= 0:
                    continue
                availability.block(day, slot)

        logger.debug(
            "teacher_availability | teacher_id=%s blocked=%s max_day=%s max_week=%s",
            teacher_id,
            len(availability.blocked),
            availability.max_load_per_day,
            availability.max_load_per_week,
        )
        result[teacher_id] = availability
    return result
