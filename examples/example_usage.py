"""Example: use the service layer directly (no Flask).

Runs a bulk check-in for the seeded members and prints the accounting and the
resulting statistics for the day.
"""

import importlib
from datetime import date

from config import get_settings_module

from src.church_attendance.church_attendance.attendance.model import make_occurrence
from src.church_attendance.church_attendance.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    occurrence = make_occurrence(date.today(), "sunday_service")
    result = container.attendance_service.bulk_check_in([1, 2, 3, 4, 5], occurrence, "example-script")
    print(result.to_dict())

    stats = container.statistics_service.aggregate(occurrence.service_date, occurrence.service_date)
    print(stats.to_dict())


if __name__ == "__main__":
    main()
