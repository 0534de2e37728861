from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.exceptions import SessionConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "record_id, roll_number, card_id, name, branch, in_time, out_time, duration_label, date_key"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        roll_number=str(r["roll_number"]),
        card_id=str(r["card_id"]),
        name=r["name"],
        branch=r["branch"],
        in_time=from_db_datetime(r["in_time"]),
        out_time=from_db_datetime(r.get("out_time")),
        duration_label=r.get("duration_label"),
        date_key=str(r["date_key"]),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(roll_number, card_id, name, branch, in_time, date_key)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (roll_number, card_id, name, branch, to_db_datetime(in_time), date_key),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            # uq_attendance_open_card: another session for this card is already open
            raise SessionConflictError(f"Card {card_id} already has an open session") from exc

    def find_latest_by_card(self, card_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE card_id=%s
                ORDER BY record_id DESC
                LIMIT 1
                """,
                (card_id,),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def find_all_open(self) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE out_time IS NULL
                ORDER BY in_time ASC, record_id ASC
                """
            )
            return [_to_record(r) for r in fetchall(cur)]

    def find_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id=%s",
                (int(record_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def find_by_date_key(self, date_key: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE date_key=%s
                ORDER BY in_time ASC, record_id ASC
                """,
                (date_key,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def find_recent(self, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                ORDER BY in_time DESC, record_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def update(
        self,
        record_id: int,
        *,
        out_time: datetime,
        duration_label: str,
    ) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET out_time=%s, duration_label=%s
                WHERE record_id=%s AND out_time IS NULL
                """,
                (to_db_datetime(out_time), duration_label, int(record_id)),
            )
            if cur.rowcount <= 0:
                return None
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE record_id=%s",
                (int(record_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None
