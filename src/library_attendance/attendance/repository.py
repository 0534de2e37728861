from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
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
        raise NotImplementedError

    def find_latest_by_card(self, card_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_all_open(self) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def find_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_by_date_key(self, date_key: str) -> Sequence[AttendanceRecord]:
        """Records of one day, ordered by in_time then id."""

        raise NotImplementedError

    def find_recent(self, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def update(
        self,
        record_id: int,
        *,
        out_time: datetime,
        duration_label: str,
    ) -> Optional[AttendanceRecord]:
        """Close a record: set out_time/duration_label only while out_time is still NULL.

        Returns None when nothing matched (unknown id, or already closed).
        """

        raise NotImplementedError
