"""Elapsed-time math shared by the swipe, recovery and report paths.

All arithmetic runs on absolute instants. Clock-time display (and therefore
timezones) is a presentation concern and does not belong here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import ACTIVE_SUFFIX, INVALID_TIMESTAMPS_LABEL, JUST_NOW_LABEL


@dataclass(frozen=True)
class Duration:
    minutes: int
    label: str
    active: bool
    valid: bool = True


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, floored (negative when end < start)."""
    return math.floor((end - start).total_seconds() / 60)


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60}h {minutes % 60}m"


def measure(start: datetime, end: Optional[datetime] = None, *, now: datetime) -> Duration:
    """Measure a session; an absent end means the session is still open."""
    if end is None:
        minutes = elapsed_minutes(start, now)
        if minutes < 1:
            return Duration(minutes=minutes, label=JUST_NOW_LABEL, active=True)
        return Duration(minutes=minutes, label=format_minutes(minutes) + ACTIVE_SUFFIX, active=True)

    minutes = elapsed_minutes(start, end)
    if minutes < 0:
        return Duration(minutes=minutes, label=INVALID_TIMESTAMPS_LABEL, active=False, valid=False)
    return Duration(minutes=minutes, label=format_minutes(minutes), active=False)


def closing_label(start: datetime, end: datetime) -> str:
    """Label stored on a record at the moment it is closed."""
    return measure(start, end, now=end).label
