"""Example: drive the attendance ledger through the service layer (no Flask).

Controllers are thin; the check-in cycle rules live in the services.
"""

import importlib

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_manager.attendance_manager.container import build_container


def main():
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    employee = "alice@example.com"
    container.attendance_service.check_in(employee)
    container.attendance_service.start_lunch_break(employee)
    container.attendance_service.end_lunch_break(employee)
    record = container.attendance_service.check_out(employee)
    print(f"{record.date}: {record.total_hours} h (lunch {record.lunch_break.duration} h)")

    for row in container.attendance_views.employee_history(employee, limit=5).items:
        print(row.date, row.status.value, row.total_hours)


if __name__ == "__main__":
    main()
