from __future__ import annotations

from datetime import datetime

from .base import SessionCalculator
from ...attendance.duration import measure
from ...attendance.model import AttendanceRecord


class SessionMinutesCalculator(SessionCalculator):
    """Standard rule: out - in (open visits against now), not below 0."""

    def contributed_minutes(self, record: AttendanceRecord, *, now: datetime) -> int:
        duration = measure(record.in_time, record.out_time, now=now)
        return max(duration.minutes, 0)
