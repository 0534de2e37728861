from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from library_attendance.attendance.memory_attendance_repository import InMemoryAttendanceRepository
from library_attendance.attendance.model import PersonSnapshot
from library_attendance.container import build_container


class FakeClock:
    """Clock whose instant only moves when a test advances it."""

    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 1, 8, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def repo() -> InMemoryAttendanceRepository:
    return InMemoryAttendanceRepository()


@pytest.fixture
def container(repo, clock):
    return build_container(attendance_repo=repo, clock=clock)


@pytest.fixture
def alice() -> PersonSnapshot:
    return PersonSnapshot(roll_number="101", name="Alice", branch="CSE")


@pytest.fixture
def bob() -> PersonSnapshot:
    return PersonSnapshot(roll_number="102", name="Bob", branch="ECE")
