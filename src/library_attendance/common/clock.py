from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .datetime_utils import now_utc


class Clock(Protocol):
    """Time source; services never call datetime.now() directly."""

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    def now(self) -> datetime:
        return now_utc()
