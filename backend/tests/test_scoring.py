import pytest

from app.schemas.scheduler import ScheduleSlotProposal
from app.services.availability import TeacherAvailability
from app.services.scoring import calculate_gap_penalty, calculate_load_penalty, calculate_score


def _slot(day, time_slot, teacher_id="t-1"):
    return ScheduleSlotProposal(day_of_week=day, time_slot=time_slot, subject_id="math", teacher_id=teacher_id)


def test_full_compact_days_have_no_gap_penalty():
    slots = [_slot(day, time_slot) for day in (1, 2) for time_slot in (1, 2, 3)]
    assert calculate_gap_penalty([1, 2], 3, slots) == 0


def test_gap_penalty_counts_internal_gaps_and_unused_cells():
    # Day 1: slots 1 and 4 of 5 -> 2 internal gaps + 3 unused cells.
    slots = [_slot(1, 1), _slot(1, 4)]
    assert calculate_gap_penalty([1], 5, slots) == 5


def test_gap_penalty_includes_sparse_and_empty_days():
    slots = [_slot(1, 2)]
    assert calculate_gap_penalty([1, 2], 3, slots) == 2 + 3


def test_load_penalty_zero_caps_are_unlimited():
    teacher = TeacherAvailability()
    for time_slot in range(1, 6):
        teacher.reserve(1, time_slot)
    assert calculate_load_penalty({"t-1": teacher}) == 0


def test_load_penalty_sums_weekly_and_daily_overage():
    teacher = TeacherAvailability(max_load_per_day=1, max_load_per_week=2)
    teacher.reserve(1, 1)
    teacher.reserve(1, 2)
    teacher.reserve(2, 1)
    # weekly 3 vs 2 -> 1, day 1 has 2 vs 1 -> 1
    assert calculate_load_penalty({"t-1": teacher}) == 2


@pytest.mark.parametrize(
    ("conflicts", "gap", "load", "expected"),
    [
        (0, 0, 0, 100),
        (0, 5, 2, 80),
        (1, 0, 0, 0),
        (0, 60, 0, 0),
    ],
)
def test_score_formula(conflicts, gap, load, expected):
    assert calculate_score(conflicts, gap, load) == expected
