from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, Optional, Sequence

from ..common.datetime_utils import as_utc
from .model import AttendanceRecord
from .repository import AttendanceRepository


class InMemoryAttendanceRepository(AttendanceRepository):
    """Process-local store. Every operation is atomic under one mutex."""

    def __init__(self):
        self._records: Dict[int, AttendanceRecord] = {}
        self._next_id = 0
        self._mutex = threading.Lock()

    def create(
        self,
        *,
        roll_number: str,
        card_id: str,
        name: str,
        branch: str,
        in_time: datetime,
        date_key: str,
    ) -> int:
        with self._mutex:
            self._next_id += 1
            self._records[self._next_id] = AttendanceRecord(
                record_id=self._next_id,
                roll_number=roll_number,
                card_id=card_id,
                name=name,
                branch=branch,
                in_time=as_utc(in_time),
                date_key=date_key,
            )
            return self._next_id

    def find_latest_by_card(self, card_id: str) -> Optional[AttendanceRecord]:
        with self._mutex:
            items = [r for r in self._records.values() if r.card_id == card_id]
        if not items:
            return None
        # creation order, not in_time: a clock stepping back must not hide the newest record
        return max(items, key=lambda r: r.record_id)

    def find_all_open(self) -> Sequence[AttendanceRecord]:
        with self._mutex:
            items = [r for r in self._records.values() if r.is_open]
        return sorted(items, key=lambda r: (r.in_time, r.record_id))

    def find_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with self._mutex:
            return self._records.get(int(record_id))

    def find_by_date_key(self, date_key: str) -> Sequence[AttendanceRecord]:
        with self._mutex:
            items = [r for r in self._records.values() if r.date_key == date_key]
        return sorted(items, key=lambda r: (r.in_time, r.record_id))

    def find_recent(self, limit: int) -> Sequence[AttendanceRecord]:
        with self._mutex:
            items = list(self._records.values())
        items.sort(key=lambda r: (r.in_time, r.record_id), reverse=True)
        return items[: int(limit)]

    def update(
        self,
        record_id: int,
        *,
        out_time: datetime,
        duration_label: str,
    ) -> Optional[AttendanceRecord]:
        with self._mutex:
            current = self._records.get(int(record_id))
            if current is None or not current.is_open:
                return None
            updated = replace(current, out_time=as_utc(out_time), duration_label=duration_label)
            self._records[current.record_id] = updated
            return updated
