from __future__ import annotations

import logging
from datetime import datetime

from flask import Flask, jsonify, request

from ..common.datetime_utils import as_utc
from ..container import Container
from ..core.exceptions import (
    AlreadyClosedError,
    NotFoundError,
    SessionConflictError,
    StoreUnavailableError,
    ValidationError,
)
from .duration import measure
from .model import AttendanceRecord, PersonSnapshot

logger = logging.getLogger(__name__)


def record_to_json(record: AttendanceRecord, *, now: datetime) -> dict:
    """Wire shape shared with the report endpoints (camelCase, ISO-8601 instants)."""
    return {
        "id": record.record_id,
        "rollNumber": record.roll_number,
        "cardId": record.card_id,
        "name": record.name,
        "branch": record.branch,
        "inTime": record.in_time.isoformat(),
        "outTime": record.out_time.isoformat() if record.out_time else None,
        "date": record.date_key,
        "state": record.state.value,
        "storedDuration": record.duration_label,
        "duration": measure(record.in_time, record.out_time, now=now).label,
    }


def error_response(exc: Exception):
    """Map domain errors to HTTP statuses; anything else is a 500."""
    if isinstance(exc, ValidationError):
        status = 400
    elif isinstance(exc, NotFoundError):
        status = 404
    elif isinstance(exc, (AlreadyClosedError, SessionConflictError)):
        status = 409
    elif isinstance(exc, StoreUnavailableError):
        status = 503
    else:
        logger.exception("unexpected error while handling %s %s", request.method, request.path)
        return jsonify({"success": False, "message": "Internal server error"}), 500
    return jsonify({"success": False, "message": str(exc)}), status


def register(app: Flask, container: Container) -> None:
    def _now() -> datetime:
        return as_utc(container.clock.now())

    @app.route("/", endpoint="index")
    def index():
        return "Library Attendance System Backend Running"

    @app.route("/api/attendance/swipe", methods=["POST"], endpoint="attendance_swipe")
    def attendance_swipe():
        """Card swipe: opens a session, or closes the open one for that card."""
        try:
            data = request.get_json(silent=True) or {}
            person = PersonSnapshot(
                roll_number=str(data.get("rollNumber", "")).strip(),
                name=str(data.get("name", "")).strip(),
                branch=str(data.get("branch", "")).strip(),
            )
            record = container.session_tracker.handle_swipe(data.get("cardId"), person)
            action = "in" if record.is_open else "out"
            return jsonify({
                "success": True,
                "action": action,
                "record": record_to_json(record, now=_now()),
            }), 201 if record.is_open else 200
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    def attendance_list():
        try:
            limit = request.args.get("limit")
            records = container.session_tracker.recent_records(int(limit) if limit else None)
            now = _now()
            return jsonify([record_to_json(r, now=now) for r in records])
        except ValueError:
            return error_response(ValidationError("limit must be an integer"))
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/active", methods=["GET"], endpoint="attendance_active")
    def attendance_active():
        try:
            records = container.session_tracker.active_sessions()
            now = _now()
            return jsonify({
                "count": len(records),
                "activeRecords": [record_to_json(r, now=now) for r in records],
            })
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/date/<date_key>", methods=["GET"], endpoint="attendance_by_date")
    def attendance_by_date(date_key: str):
        try:
            records = container.session_tracker.records_for_date(date_key)
            now = _now()
            return jsonify([record_to_json(r, now=now) for r in records])
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/force-out", methods=["PUT"], endpoint="attendance_force_out")
    def attendance_force_out():
        try:
            closed = container.bulk_recovery.force_close_all_open()
            return jsonify({"success": True, "closed": closed, "message": f"{closed} session(s) closed"})
        except Exception as e:
            return error_response(e)

    @app.route("/api/attendance/<int:record_id>/clock-out", methods=["PUT"], endpoint="attendance_clock_out")
    def attendance_clock_out(record_id: int):
        try:
            record = container.manual_close.close_by_id(record_id)
            return jsonify({"success": True, "record": record_to_json(record, now=_now())})
        except Exception as e:
            return error_response(e)
