from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..attendance.model import AttendanceRecord


@dataclass(frozen=True)
class VisitDetail:
    """One constituent visit of a person's day."""

    record: AttendanceRecord
    minutes: int
    label: str
    anomaly: bool = False


@dataclass(frozen=True)
class PersonDaySummary:
    """Read-model: tổng thời gian trong ngày của một người đọc."""

    roll_number: str
    card_id: str
    name: str
    branch: str
    total_minutes: int
    total_label: str
    visits: Tuple[VisitDetail, ...]

    @property
    def records(self) -> Tuple[AttendanceRecord, ...]:
        return tuple(v.record for v in self.visits)

    @property
    def anomalies(self) -> int:
        return sum(1 for v in self.visits if v.anomaly)


@dataclass(frozen=True)
class DailyReport:
    date_key: str
    people: Tuple[PersonDaySummary, ...]
    total_minutes: int
    average_minutes: int

    @property
    def total_people(self) -> int:
        return len(self.people)
