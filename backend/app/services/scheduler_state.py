from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from app.schemas.scheduler import ScheduleSlotProposal, SubjectLoadRequest
from app.services.availability import Cell, TeacherAvailability


class SchedulerState:
    """In-memory class timetable for one generation run.

    Each (day, slot) cell holds at most one proposal. Every placement and move goes
    through the owning teacher's availability so teacher bookings stay in step with
    the grid.
    """

    def __init__(
        self,
        days: Iterable[int],
        time_slots_per_day: int,
        teachers: dict[str, TeacherAvailability],
    ) -> None:
        self.days = list(days)
        self.time_slots_per_day = time_slots_per_day
        self.teachers = teachers
        self.class_slots: dict[Cell, ScheduleSlotProposal] = {}
        self.day_load: dict[int, int] = defaultdict(int)

    def assign(self, load: SubjectLoadRequest) -> bool:
        """Place one weekly unit of ``load``; returns False when no cell fits."""
        # sorted() is stable, so equally loaded days keep their ascending order.
        day_order = sorted(self.days, key=lambda day: self.day_load.get(day, 0))
        candidates = self.candidate_times(load.preferred_slots)
        for day in day_order:
            for slot in candidates:
                if self.can_place(load.teacher_id, day, slot):
                    self.place(load, day, slot)
                    return True
        return False

    def candidate_times(self, preferred: Iterable[int]) -> list[int]:
        result: list[int] = []
        seen: set[int] = set()
        for slot in preferred:
            if slot < 1 or slot > self.time_slots_per_day or slot in seen:
                continue
            result.append(slot)
            seen.add(slot)
        result.extend(slot for slot in range(1, self.time_slots_per_day + 1) if slot not in seen)
        return result

    def can_place(self, teacher_id: str, day: int, slot: int, *, vacating: Cell | None = None) -> bool:
        if day < 1 or slot < 1 or slot > self.time_slots_per_day:
            return False
        if (day, slot) in self.class_slots:
            return False
        teacher = self.teachers.get(teacher_id)
        if teacher is None:
            return False
        return teacher.can_teach(day, slot, vacating=vacating)

    def place(self, load: SubjectLoadRequest, day: int, slot: int) -> ScheduleSlotProposal:
        proposal = ScheduleSlotProposal(
            day_of_week=day,
            time_slot=slot,
            subject_id=load.subject_id,
            teacher_id=load.teacher_id,
        )
        self.class_slots[(day, slot)] = proposal
        self.teachers[load.teacher_id].reserve(day, slot)
        self.day_load[day] += 1
        return proposal

    def times_for_day(self, day: int) -> list[int]:
        return sorted(slot for (slot_day, slot) in self.class_slots if slot_day == day)

    def move_slot(self, day: int, from_slot: int, to_slot: int) -> None:
        current = self.class_slots.pop((day, from_slot))
        teacher = self.teachers[current.teacher_id]
        teacher.release(day, from_slot)
        self.class_slots[(day, to_slot)] = current.model_copy(update={"time_slot": to_slot})
        teacher.reserve(day, to_slot)

    def repair_gaps(self, max_iterations: int) -> int:
        """Greedily pull later slots into internal gaps. Returns the number of moves made.

        Each pass stops at the first successful move and starts over from the first day.
        """
        moves = 0
        while moves < max_iterations:
            if not self._move_first_gap():
                break
            moves += 1
        return moves

    def _move_first_gap(self) -> bool:
        for day in self.days:
            times = self.times_for_day(day)
            for current, following in zip(times, times[1:]):
                if following - current <= 1:
                    continue
                target = current + 1
                occupant = self.class_slots[(day, following)]
                if self.can_place(occupant.teacher_id, day, target, vacating=(day, following)):
                    self.move_slot(day, following, target)
                    return True
        return False

    def export_slots(self) -> list[ScheduleSlotProposal]:
        return [self.class_slots[key] for key in sorted(self.class_slots)]
