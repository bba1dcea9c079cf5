from datetime import datetime, timedelta, timezone
import threading

from app.schemas.scheduler import ScheduleImprovementStats
from app.services.proposal_store import ProposalStore, ScheduleProposal


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def _proposal(proposal_id, requested_at):
    return ScheduleProposal(
        proposal_id=proposal_id,
        term_id="term-1",
        class_id="class-1",
        score=100.0,
        slots=[],
        conflicts=[],
        stats=ScheduleImprovementStats(),
        time_slots_per_day=1,
        days=[1],
        subject_loads=[],
        requested_at=requested_at,
    )


def test_save_then_get_returns_proposal():
    clock = FakeClock()
    store = ProposalStore(timedelta(minutes=30), clock=clock)
    store.save(_proposal("p-1", clock()))
    assert store.get("p-1").proposal_id == "p-1"
    assert store.get("missing") is None


def test_expired_proposal_is_evicted_on_read():
    clock = FakeClock()
    store = ProposalStore(timedelta(minutes=30), clock=clock)
    store.save(_proposal("p-1", clock()))

    clock.advance(minutes=30)
    assert store.get("p-1") is not None

    clock.advance(seconds=1)
    assert store.get("p-1") is None
    assert len(store) == 0


def test_delete_and_clear():
    clock = FakeClock()
    store = ProposalStore(timedelta(minutes=30), clock=clock)
    store.save(_proposal("p-1", clock()))
    store.save(_proposal("p-2", clock()))

    store.delete("p-1")
    store.delete("p-1")
    assert store.get("p-1") is None
    assert len(store) == 1

    store.clear()
    assert len(store) == 0


def test_concurrent_saves_are_all_kept():
    clock = FakeClock()
    store = ProposalStore(timedelta(minutes=30), clock=clock)

    def worker(offset):
        for index in range(50):
            store.save(_proposal(f"p-{offset}-{index}", clock()))

    threads = [threading.Thread(target=worker, args=(offset,)) for offset in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store) == 200
