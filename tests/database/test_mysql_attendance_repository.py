from __future__ import annotations

from datetime import datetime, timezone

import mysql.connector
import pytest

from library_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from library_attendance.core.exceptions import SessionConflictError, StoreUnavailableError
from library_attendance.database.bootstrap import iter_sql_statements
from library_attendance.database.mysql_base import db_cursor, from_db_datetime, to_db_datetime


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self.lastrowid = None
        self.rowcount = 0

    def execute(self, sql, params=None):
        self._conn.executed.append((" ".join(sql.split()), params))
        if self._conn.raise_on_execute is not None:
            raise self._conn.raise_on_execute
        self.lastrowid = self._conn.lastrowid
        self.rowcount = self._conn.rowcount

    def fetchone(self):
        return self._conn.rows[0] if self._conn.rows else None

    def fetchall(self):
        return list(self._conn.rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, *, rows=None, rowcount=0, lastrowid=None, raise_on_execute=None):
        self.rows = rows or []
        self.rowcount = rowcount
        self.lastrowid = lastrowid
        self.raise_on_execute = raise_on_execute
        self.executed = []
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeFactory:
    def __init__(self, conn=None, connect_error=None):
        self.conn = conn
        self.connect_error = connect_error

    def connect(self):
        if self.connect_error is not None:
            raise self.connect_error
        return self.conn


ROW = {
    "record_id": 7,
    "roll_number": "101",
    "card_id": "CARD-1",
    "name": "Alice",
    "branch": "CSE",
    "in_time": datetime(2026, 2, 1, 9, 0),
    "out_time": None,
    "duration_label": None,
    "date_key": "2026-02-01",
}


def test_connect_failure_is_store_unavailable():
    factory = FakeFactory(connect_error=mysql.connector.Error("cannot connect"))

    with pytest.raises(StoreUnavailableError):
        MySQLAttendanceRepository(factory).find_all_open()


def test_driver_error_rolls_back_and_is_store_unavailable():
    conn = FakeConnection(raise_on_execute=mysql.connector.Error("lost connection"))

    with pytest.raises(StoreUnavailableError):
        with db_cursor(FakeFactory(conn)) as (_, cur):
            cur.execute("SELECT 1")

    assert conn.rolled_back and conn.closed and not conn.committed


def test_duplicate_open_session_maps_to_conflict():
    conn = FakeConnection(raise_on_execute=mysql.connector.IntegrityError("Duplicate entry"))
    repo = MySQLAttendanceRepository(FakeFactory(conn))

    with pytest.raises(SessionConflictError):
        repo.create(
            roll_number="101",
            card_id="CARD-1",
            name="Alice",
            branch="CSE",
            in_time=datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc),
            date_key="2026-02-01",
        )


def test_create_stores_naive_utc():
    conn = FakeConnection(lastrowid=11)
    repo = MySQLAttendanceRepository(FakeFactory(conn))

    new_id = repo.create(
        roll_number="101",
        card_id="CARD-1",
        name="Alice",
        branch="CSE",
        in_time=datetime(2026, 2, 1, 14, 30, tzinfo=timezone.utc),
        date_key="2026-02-01",
    )

    assert new_id == 11
    assert conn.committed
    _, params = conn.executed[0]
    assert params[4] == datetime(2026, 2, 1, 14, 30)


def test_rows_map_to_aware_records():
    conn = FakeConnection(rows=[ROW])
    record = MySQLAttendanceRepository(FakeFactory(conn)).find_latest_by_card("CARD-1")

    assert record.record_id == 7
    assert record.in_time == datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)
    assert record.is_open
    sql, params = conn.executed[0]
    assert "ORDER BY record_id DESC" in sql
    assert "ORDER BY in_time" not in sql
    assert params == ("CARD-1",)


def test_conditional_update_only_touches_open_rows():
    conn = FakeConnection(rowcount=0)
    repo = MySQLAttendanceRepository(FakeFactory(conn))

    result = repo.update(7, out_time=datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc), duration_label="1h 0m")

    assert result is None
    sql, _ = conn.executed[0]
    assert "WHERE record_id=%s AND out_time IS NULL" in sql


def test_update_returns_fresh_record():
    closed = dict(ROW, out_time=datetime(2026, 2, 1, 10, 0), duration_label="1h 0m")
    conn = FakeConnection(rows=[closed], rowcount=1)

    result = MySQLAttendanceRepository(FakeFactory(conn)).update(
        7, out_time=datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc), duration_label="1h 0m"
    )

    assert result.duration_label == "1h 0m"
    assert result.out_time == datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)


def test_datetime_normalization():
    aware = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)

    assert to_db_datetime(aware) == datetime(2026, 2, 1, 9, 0)
    assert from_db_datetime("2026-02-01 09:00:00") == aware
    assert from_db_datetime(None) is None


def test_sql_splitter_keeps_quoted_semicolons():
    sql = "CREATE TABLE a (x INT); INSERT INTO a VALUES ('x;y'); "

    assert list(iter_sql_statements(sql)) == ["CREATE TABLE a (x INT)", "INSERT INTO a VALUES ('x;y')"]
