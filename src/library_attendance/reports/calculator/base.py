from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ...attendance.model import AttendanceRecord


class SessionCalculator(ABC):
    """Calculator interface (Strategy Pattern for per-visit minutes)."""

    @abstractmethod
    def contributed_minutes(self, record: AttendanceRecord, *, now: datetime) -> int:
        raise NotImplementedError
