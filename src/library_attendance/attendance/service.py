from __future__ import annotations

import logging
from datetime import datetime

from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import as_utc, date_key_for, parse_iso_date
from ..common.keyed_lock import KeyedLock
from ..common.validators import require_non_empty, require_positive_int
from ..core.constants import DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT
from ..core.exceptions import AlreadyClosedError, NotFoundError, SessionConflictError
from .duration import closing_label
from .model import AttendanceRecord, PersonSnapshot
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class SessionTracker:
    """Swipe toggle: the latest record of a card decides between opening and closing.

    Read-then-write runs under a lock scoped to the card id, so two swipes of
    the same card serialize while different cards proceed independently.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        clock: Clock | None = None,
        card_locks: KeyedLock | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self._attendance = attendance
        self._clock = clock or SystemClock()
        self._card_locks = card_locks or KeyedLock()
        self._history_limit = int(history_limit)

    def handle_swipe(self, card_id: str, person: PersonSnapshot) -> AttendanceRecord:
        card_id = require_non_empty(card_id, "Card ID")

        with self._card_locks.hold(card_id):
            latest = self._attendance.find_latest_by_card(card_id)
            now = as_utc(self._clock.now())

            if latest is None or not latest.is_open:
                return self._open(card_id, person, now)
            return self._close(latest, now)

    def _open(self, card_id: str, person: PersonSnapshot, now: datetime) -> AttendanceRecord:
        record_id = self._attendance.create(
            roll_number=person.roll_number,
            card_id=card_id,
            name=person.name,
            branch=person.branch,
            in_time=now,
            date_key=date_key_for(now),
        )
        record = self._attendance.find_by_id(record_id)
        if record is None:
            raise NotFoundError(f"Attendance record {record_id} vanished after create")
        logger.info("swipe in: card=%s roll=%s record=%s", card_id, person.roll_number, record_id)
        return record

    def _close(self, record: AttendanceRecord, now: datetime) -> AttendanceRecord:
        label = closing_label(record.in_time, now)
        updated = self._attendance.update(record.record_id, out_time=now, duration_label=label)
        if updated is None:
            # force-out does not take card locks; it may close the session first
            current = self._attendance.find_by_id(record.record_id)
            if current is None or current.is_open:
                raise SessionConflictError(f"Attendance record {record.record_id} changed concurrently")
            logger.info(
                "swipe out: card=%s record=%s already closed at %s",
                record.card_id,
                record.record_id,
                current.out_time.isoformat(),
            )
            return current
        logger.info("swipe out: card=%s record=%s duration=%s", record.card_id, record.record_id, label)
        return updated

    def active_sessions(self) -> list[AttendanceRecord]:
        return list(self._attendance.find_all_open())

    def recent_records(self, limit: int | None = None) -> list[AttendanceRecord]:
        limit = require_positive_int(limit or self._history_limit, "limit", maximum=MAX_HISTORY_LIMIT)
        return list(self._attendance.find_recent(limit))

    def records_for_date(self, date_key: str) -> list[AttendanceRecord]:
        parse_iso_date(date_key)
        return list(self._attendance.find_by_date_key(date_key))


class BulkRecovery:
    """Force-out: close every open session with one captured instant.

    Card locks are not taken. A swipe-out racing the force-out loses the
    conditional write and is answered with the record as the force-out closed it.
    """

    def __init__(self, attendance: AttendanceRepository, *, clock: Clock | None = None):
        self._attendance = attendance
        self._clock = clock or SystemClock()

    def force_close_all_open(self) -> int:
        now = as_utc(self._clock.now())
        closed = 0

        for record in self._attendance.find_all_open():
            if record.in_time > now:
                # opened after the force-out started
                continue
            label = closing_label(record.in_time, now)
            if self._attendance.update(record.record_id, out_time=now, duration_label=label) is not None:
                closed += 1

        logger.warning("force out: closed %d open session(s) at %s", closed, now.isoformat())
        return closed


class ManualCloseOperator:
    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        clock: Clock | None = None,
        card_locks: KeyedLock | None = None,
    ):
        self._attendance = attendance
        self._clock = clock or SystemClock()
        self._card_locks = card_locks or KeyedLock()

    def close_by_id(self, record_id: int) -> AttendanceRecord:
        record = self._attendance.find_by_id(record_id)
        if record is None:
            raise NotFoundError(f"Attendance record {record_id} not found")

        with self._card_locks.hold(record.card_id):
            record = self._attendance.find_by_id(record_id)
            if record is None:
                raise NotFoundError(f"Attendance record {record_id} not found")
            if not record.is_open:
                raise AlreadyClosedError(f"Attendance record {record_id} is already closed")

            now = as_utc(self._clock.now())
            label = closing_label(record.in_time, now)
            updated = self._attendance.update(record.record_id, out_time=now, duration_label=label)
            if updated is None:
                raise AlreadyClosedError(f"Attendance record {record_id} is already closed")

        logger.info("manual clock-out: card=%s record=%s duration=%s", updated.card_id, updated.record_id, label)
        return updated
