from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from library_attendance.attendance.model import PersonSnapshot
from library_attendance.attendance.service import SessionTracker
from library_attendance.core.enums import SessionState
from library_attendance.core.exceptions import SessionConflictError, ValidationError


def _open_count(repo, card_id: str) -> int:
    return sum(1 for r in repo.find_all_open() if r.card_id == card_id)


def test_first_swipe_opens_session(container, repo, alice, fixed_now):
    rec = container.session_tracker.handle_swipe("CARD-1", alice)

    assert rec.is_open
    assert rec.state == SessionState.OPEN
    assert rec.in_time == fixed_now
    assert rec.date_key == "2026-02-01"
    assert rec.duration_label is None
    assert (rec.roll_number, rec.name, rec.branch) == ("101", "Alice", "CSE")
    assert _open_count(repo, "CARD-1") == 1


def test_swipe_toggles_open_close_open(container, repo, clock, alice):
    tracker = container.session_tracker

    first = tracker.handle_swipe("CARD-1", alice)
    clock.advance(minutes=90)
    closed = tracker.handle_swipe("CARD-1", alice)
    clock.advance(minutes=10)
    reopened = tracker.handle_swipe("CARD-1", alice)

    assert closed.record_id == first.record_id
    assert closed.state == SessionState.CLOSED
    assert closed.duration_label == "1h 30m"
    assert closed.in_time == first.in_time

    assert reopened.record_id != first.record_id
    assert reopened.is_open
    assert repo.find_by_id(first.record_id).out_time == closed.out_time
    assert _open_count(repo, "CARD-1") == 1


def test_swipe_touches_only_its_own_card(container, repo, clock, alice, bob):
    tracker = container.session_tracker

    a = tracker.handle_swipe("CARD-A", alice)
    b = tracker.handle_swipe("CARD-B", bob)
    clock.advance(minutes=5)
    tracker.handle_swipe("CARD-A", alice)

    assert not repo.find_by_id(a.record_id).is_open
    assert repo.find_by_id(b.record_id).is_open


def test_snapshot_is_denormalized(container, repo, alice):
    rec = container.session_tracker.handle_swipe("CARD-1", alice)
    container.session_tracker.handle_swipe("CARD-1", PersonSnapshot(roll_number="101", name="Alice R.", branch="IT"))

    # closing keeps the fields captured at swipe-in
    stored = repo.find_by_id(rec.record_id)
    assert stored.name == "Alice"
    assert stored.branch == "CSE"


def test_blank_card_id_rejected(container, alice):
    with pytest.raises(ValidationError):
        container.session_tracker.handle_swipe("   ", alice)


def test_at_most_one_open_record_per_card_after_any_sequence(container, repo, clock, alice, bob):
    tracker = container.session_tracker
    sequence = ["A", "A", "B", "A", "B", "B", "B", "A", "C", "C", "C"]

    for card in sequence:
        tracker.handle_swipe(card, alice if card != "B" else bob)
        clock.advance(seconds=20)
        for c in {"A", "B", "C"}:
            assert _open_count(repo, c) in (0, 1)

    assert _open_count(repo, "A") == 0
    assert _open_count(repo, "B") == 0
    assert _open_count(repo, "C") == 1


def test_concurrent_swipes_of_one_card_never_double_open(container, repo, alice):
    tracker = container.session_tracker
    barrier = threading.Barrier(8)
    errors: list[Exception] = []

    def swipe():
        barrier.wait()
        try:
            tracker.handle_swipe("CARD-RACE", alice)
        except Exception as exc:  # pragma: no cover - surfaced by the assert below
            errors.append(exc)

    threads = [threading.Thread(target=swipe) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    records = [r for r in repo.find_recent(100) if r.card_id == "CARD-RACE"]
    # 8 toggles: 4 sessions opened and closed
    assert len(records) == 4
    assert _open_count(repo, "CARD-RACE") == 0


def test_close_write_rejected_while_still_open_raises_conflict(repo, clock, alice):
    class RejectingCloses:
        """Store whose conditional close never applies, yet the record stays open."""

        def __init__(self, inner):
            self._inner = inner

        def __getattr__(self, name):
            return getattr(self._inner, name)

        def update(self, record_id, *, out_time, duration_label):
            return None

    tracker = SessionTracker(RejectingCloses(repo), clock=clock)
    rec = tracker.handle_swipe("CARD-1", alice)

    with pytest.raises(SessionConflictError):
        tracker.handle_swipe("CARD-1", alice)
    assert repo.find_by_id(rec.record_id).is_open


def test_swipe_out_losing_to_force_out_returns_closed_record(repo, clock, alice):
    class ForceOutFirst:
        """Store where a force-out closes the session just before the swipe-out writes."""

        def __init__(self, inner, forced_at):
            self._inner = inner
            self._forced_at = forced_at

        def __getattr__(self, name):
            return getattr(self._inner, name)

        def update(self, record_id, *, out_time, duration_label):
            self._inner.update(record_id, out_time=self._forced_at, duration_label="forced")
            return self._inner.update(record_id, out_time=out_time, duration_label=duration_label)

    rec = SessionTracker(repo, clock=clock).handle_swipe("CARD-1", alice)
    forced_at = clock.advance(minutes=10)
    clock.advance(seconds=5)

    tracker = SessionTracker(ForceOutFirst(repo, forced_at), clock=clock)
    closed = tracker.handle_swipe("CARD-1", alice)

    assert closed.record_id == rec.record_id
    assert closed.out_time == forced_at
    assert closed.duration_label == "forced"
    assert repo.find_all_open() == []


def test_clock_stepping_back_keeps_one_open_session_per_card(container, repo, clock, alice):
    tracker = container.session_tracker
    tracker.handle_swipe("CARD-1", alice)
    clock.advance(minutes=30)
    tracker.handle_swipe("CARD-1", alice)

    clock.advance(hours=-2)
    reopened = tracker.handle_swipe("CARD-1", alice)
    clock.advance(minutes=5)
    closed = tracker.handle_swipe("CARD-1", alice)

    assert closed.record_id == reopened.record_id
    assert closed.duration_label == "0h 5m"
    assert _open_count(repo, "CARD-1") == 0

    clock.advance(minutes=1)
    tracker.handle_swipe("CARD-1", alice)
    assert _open_count(repo, "CARD-1") == 1


def test_read_side_listings(container, clock, alice, bob):
    tracker = container.session_tracker
    tracker.handle_swipe("CARD-A", alice)
    clock.advance(minutes=1)
    tracker.handle_swipe("CARD-B", bob)
    clock.advance(minutes=1)
    tracker.handle_swipe("CARD-A", alice)

    assert [r.card_id for r in tracker.active_sessions()] == ["CARD-B"]
    assert [r.card_id for r in tracker.recent_records(limit=1)] == ["CARD-B"]
    assert len(tracker.records_for_date("2026-02-01")) == 2
    assert tracker.records_for_date("2026-02-02") == []

    with pytest.raises(ValidationError):
        tracker.records_for_date("01/02/2026")


def test_naive_clock_values_are_treated_as_utc(repo, alice):
    class NaiveClock:
        def now(self):
            return datetime(2026, 2, 1, 23, 59, 0)

    rec = SessionTracker(repo, clock=NaiveClock()).handle_swipe("CARD-1", alice)

    assert rec.in_time == datetime(2026, 2, 1, 23, 59, 0, tzinfo=timezone.utc)
    assert rec.date_key == "2026-02-01"
