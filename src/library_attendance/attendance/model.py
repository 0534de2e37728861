from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import SessionState


@dataclass(frozen=True)
class PersonSnapshot:
    """Thông tin người đọc tại thời điểm quẹt thẻ (do caller cung cấp)."""

    roll_number: str
    name: str
    branch: str


@dataclass(frozen=True)
class AttendanceRecord:
    """Thực thể miền (domain): một lượt vào thư viện, có thể đang mở."""

    record_id: int
    roll_number: str
    card_id: str
    name: str
    branch: str
    in_time: datetime
    date_key: str
    out_time: Optional[datetime] = None
    duration_label: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.out_time is None

    @property
    def state(self) -> SessionState:
        return SessionState.OPEN if self.is_open else SessionState.CLOSED
