from __future__ import annotations

from collections.abc import Iterable, Mapping

from app.schemas.scheduler import ScheduleSlotProposal
from app.services.availability import TeacherAvailability

CONFLICT_WEIGHT = 100
GAP_WEIGHT = 2
LOAD_WEIGHT = 5


def calculate_gap_penalty(
    days: Iterable[int],
    time_slots_per_day: int,
    slots: Iterable[ScheduleSlotProposal],
) -> float:
    """Internal gaps plus unused cells, summed over every requested day."""
    by_day: dict[int, list[int]] = {}
    for slot in slots:
        by_day.setdefault(slot.day_of_week, []).append(slot.time_slot)

    penalty = 0
    for day in days:
        times = sorted(by_day.get(day, []))
        for current, following in zip(times, times[1:]):
            if following - current > 1:
                penalty += following - current - 1
        penalty += max(0, time_slots_per_day - len(times))
    return float(penalty)


def calculate_load_penalty(teachers: Mapping[str, TeacherAvailability]) -> float:
    penalty = 0
    for teacher_id in sorted(teachers):
        load = teachers[teacher_id]
        if load.max_load_per_week > 0 and load.weekly > load.max_load_per_week:
            penalty += load.weekly - load.max_load_per_week
        if load.max_load_per_day > 0:
            for day in sorted(load.per_day):
                count = load.per_day[day]
                if count > load.max_load_per_day:
                    penalty += count - load.max_load_per_day
    return float(penalty)


def calculate_score(conflict_count: int, gap_penalty: float, load_penalty: float) -> float:
    raw = 100 - (conflict_count * CONFLICT_WEIGHT + gap_penalty * GAP_WEIGHT + load_penalty * LOAD_WEIGHT)
    return max(0.0, float(raw))
