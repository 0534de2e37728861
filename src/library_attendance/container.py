from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.memory_attendance_repository import InMemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import BulkRecovery, ManualCloseOperator, SessionTracker
from .common.clock import Clock, SystemClock
from .common.keyed_lock import KeyedLock
from .core.constants import DEFAULT_HISTORY_LIMIT
from .core.enums import StoreBackend
from .core.exceptions import ValidationError
from .database.connection import DBConfig, DatabaseConnection
from .reports.service import ReportAggregator


@dataclass(frozen=True)
class Container:
    attendance_repo: AttendanceRepository
    clock: Clock

    session_tracker: SessionTracker
    bulk_recovery: BulkRecovery
    manual_close: ManualCloseOperator
    report_aggregator: ReportAggregator


def build_repository(*, backend: str, db_config: Optional[dict] = None) -> AttendanceRepository:
    try:
        kind = StoreBackend(str(backend).lower())
    except ValueError as exc:
        raise ValidationError(f"Unknown STORE_BACKEND {backend!r}") from exc

    if kind is StoreBackend.MEMORY:
        return InMemoryAttendanceRepository()

    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config or {}))
    return MySQLAttendanceRepository(conn)


def build_container(
    *,
    attendance_repo: AttendanceRepository,
    clock: Optional[Clock] = None,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
) -> Container:
    clock = clock or SystemClock()
    # swipes and manual closes of the same card share one lock registry
    card_locks = KeyedLock()

    return Container(
        attendance_repo=attendance_repo,
        clock=clock,
        session_tracker=SessionTracker(
            attendance_repo,
            clock=clock,
            card_locks=card_locks,
            history_limit=history_limit,
        ),
        bulk_recovery=BulkRecovery(attendance_repo, clock=clock),
        manual_close=ManualCloseOperator(attendance_repo, clock=clock, card_locks=card_locks),
        report_aggregator=ReportAggregator(attendance_repo, clock=clock),
    )
