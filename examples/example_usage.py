"""Example: drive the service layer directly (no Flask).

Controllers are a thin layer; the swipe/report rules live in the services.
"""

from library_attendance.attendance.memory_attendance_repository import InMemoryAttendanceRepository
from library_attendance.attendance.model import PersonSnapshot
from library_attendance.container import build_container
from library_attendance.logging_setup import configure_logging


def main():
    configure_logging("INFO")
    container = build_container(attendance_repo=InMemoryAttendanceRepository())
    person = PersonSnapshot(roll_number="101", name="Alice", branch="CSE")

    record = container.session_tracker.handle_swipe("CARD-1", person)
    container.session_tracker.handle_swipe("CARD-1", person)

    report = container.report_aggregator.build_daily_report(record.date_key)
    for p in report.people:
        print(p.roll_number, p.name, p.total_label, len(p.records))


if __name__ == "__main__":
    main()
