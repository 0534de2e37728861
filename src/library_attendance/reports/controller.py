from __future__ import annotations

import csv
import io

from flask import Flask, jsonify

from ..attendance.controller import error_response, record_to_json
from ..attendance.duration import format_minutes
from ..common.datetime_utils import as_utc
from ..container import Container
from .model import DailyReport, PersonDaySummary


def _summary_to_json(summary: PersonDaySummary, *, now) -> dict:
    return {
        "rollNumber": summary.roll_number,
        "cardId": summary.card_id,
        "name": summary.name,
        "branch": summary.branch,
        "totalMinutes": summary.total_minutes,
        "totalTime": summary.total_label,
        "anomalies": summary.anomalies,
        "records": [
            dict(record_to_json(v.record, now=now), minutes=v.minutes, anomaly=v.anomaly)
            for v in summary.visits
        ],
    }


def register(app: Flask, container: Container) -> None:
    def _build(date_key: str):
        now = as_utc(container.clock.now())
        return container.report_aggregator.build_daily_report(date_key, now=now), now

    def _write_report_csv(*, report: DailyReport, filename: str):
        """Write per-person totals to a CSV response."""

        out = io.StringIO()
        writer = csv.writer(out)
        writer.writerow(["Roll Number", "Card ID", "Name", "Branch", "Total Time"])
        for p in report.people:
            writer.writerow([p.roll_number, p.card_id, p.name, p.branch, p.total_label])

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/reports/<date_key>", methods=["GET"], endpoint="report_by_date")
    def report_by_date(date_key: str):
        try:
            report, now = _build(date_key)
            return jsonify({
                "date": report.date_key,
                "totalPeople": report.total_people,
                "totalMinutes": report.total_minutes,
                "totalTime": format_minutes(report.total_minutes),
                "averageMinutes": report.average_minutes,
                "averageTime": format_minutes(report.average_minutes),
                "people": [_summary_to_json(p, now=now) for p in report.people],
            })
        except Exception as e:
            return error_response(e)

    @app.route("/api/reports/<date_key>/csv", methods=["GET"], endpoint="report_by_date_csv")
    def report_by_date_csv(date_key: str):
        try:
            report, _ = _build(date_key)
            return _write_report_csv(report=report, filename=f"attendance_report_{date_key}.csv")
        except Exception as e:
            return error_response(e)
