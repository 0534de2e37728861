from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional

from ..attendance.duration import format_minutes, measure
from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import as_utc, parse_iso_date
from .calculator.base import SessionCalculator
from .calculator.standard_calculator import SessionMinutesCalculator
from .model import DailyReport, PersonDaySummary, VisitDetail

logger = logging.getLogger(__name__)


class ReportAggregator:
    """Per-day, per-person totals over the records opened on that day.

    Sessions that cross midnight are attributed entirely to the day they
    opened. Groups keep the store's order (in_time, then id) of their first
    record, so the output is a pure function of the records and ``now``.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        clock: Clock | None = None,
        calculator: Optional[SessionCalculator] = None,
    ):
        self._attendance = attendance
        self._clock = clock or SystemClock()
        self._calculator = calculator or SessionMinutesCalculator()

    def aggregate_by_date(self, date_key: str, *, now: datetime | None = None) -> List[PersonDaySummary]:
        parse_iso_date(date_key)
        now = as_utc(now or self._clock.now())

        groups: Dict[str, List[AttendanceRecord]] = {}
        for record in self._attendance.find_by_date_key(date_key):
            groups.setdefault(record.roll_number, []).append(record)

        return [self._summarize(records, now=now) for records in groups.values()]

    def build_daily_report(self, date_key: str, *, now: datetime | None = None) -> DailyReport:
        people = self.aggregate_by_date(date_key, now=now)
        total_minutes = sum(p.total_minutes for p in people)
        average_minutes = total_minutes // len(people) if people else 0
        return DailyReport(
            date_key=date_key,
            people=tuple(people),
            total_minutes=total_minutes,
            average_minutes=average_minutes,
        )

    def _summarize(self, records: List[AttendanceRecord], *, now: datetime) -> PersonDaySummary:
        # Snapshot fields come from the first record; later differences are kept as-is in the visits.
        first = records[0]
        visits = []
        for r in records:
            duration = measure(r.in_time, r.out_time, now=now)
            if not duration.valid:
                logger.warning(
                    "anomalous timestamps: record=%s roll=%s in=%s out=%s",
                    r.record_id,
                    r.roll_number,
                    r.in_time.isoformat(),
                    r.out_time.isoformat() if r.out_time else None,
                )
            visits.append(
                VisitDetail(
                    record=r,
                    minutes=self._calculator.contributed_minutes(r, now=now),
                    label=duration.label,
                    anomaly=not duration.valid,
                )
            )

        total = sum(v.minutes for v in visits)
        return PersonDaySummary(
            roll_number=first.roll_number,
            card_id=first.card_id,
            name=first.name,
            branch=first.branch,
            total_minutes=total,
            total_label=format_minutes(total),
            visits=tuple(visits),
        )
