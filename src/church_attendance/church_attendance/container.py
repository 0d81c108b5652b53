from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Optional

from .absentees.mysql_absentee_repository import MySQLAbsenteeRepository
from .absentees.repository import AbsenteeRepository
from .absentees.service import AbsenteeService
from .activity.mysql_activity_repository import MySQLActivityRepository
from .activity.repository import ActivityRepository
from .activity.service import ActivityLog
from .attendance.guard import DeduplicationGuard
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_BULK_MAX_WORKERS, DEFAULT_MEMBERSHIP_PREFIX
from .database.connection import DBConfig, DatabaseConnection
from .notifications.sender import NotificationSender, build_sender
from .people.mysql_person_repository import MySQLPersonRepository
from .people.repository import PersonRepository
from .people.service import MemberService
from .stats.service import StatisticsService
from .sync.service import OfflineSyncService


@dataclass(frozen=True)
class Container:
    people_repo: PersonRepository
    attendance_repo: AttendanceRepository
    absentees_repo: AbsenteeRepository
    activities_repo: ActivityRepository

    sender: NotificationSender
    activity_log: ActivityLog
    guard: DeduplicationGuard
    member_service: MemberService
    attendance_service: AttendanceService
    absentee_service: AbsenteeService
    statistics_service: StatisticsService
    sync_service: OfflineSyncService


def wire(
    *,
    people_repo: PersonRepository,
    attendance_repo: AttendanceRepository,
    absentees_repo: AbsenteeRepository,
    activities_repo: ActivityRepository,
    sender: NotificationSender,
    settings: Any = None,
    rng: Optional[random.Random] = None,
) -> Container:
    """Build services on top of any set of repositories (MySQL or in-memory)."""
    prefix = str(getattr(settings, "MEMBERSHIP_ID_PREFIX", DEFAULT_MEMBERSHIP_PREFIX))
    strict_prefix = bool(getattr(settings, "STRICT_MEMBERSHIP_PREFIX", False))
    max_workers = int(getattr(settings, "BULK_MAX_WORKERS", DEFAULT_BULK_MAX_WORKERS))

    activity_log = ActivityLog(activities_repo)
    guard = DeduplicationGuard(attendance_repo)
    member_service = MemberService(people_repo, prefix=prefix, strict_prefix=strict_prefix, rng=rng)
    attendance_service = AttendanceService(
        attendance_repo,
        people_repo,
        guard=guard,
        activity=activity_log,
        members=member_service,
        max_workers=max_workers,
    )
    absentee_service = AbsenteeService(absentees_repo, people_repo, attendance_repo, sender, activity=activity_log)
    statistics_service = StatisticsService(attendance_repo, people_repo)
    sync_service = OfflineSyncService(guard, people_repo, activity=activity_log)

    return Container(
        people_repo=people_repo,
        attendance_repo=attendance_repo,
        absentees_repo=absentees_repo,
        activities_repo=activities_repo,
        sender=sender,
        activity_log=activity_log,
        guard=guard,
        member_service=member_service,
        attendance_service=attendance_service,
        absentee_service=absentee_service,
        statistics_service=statistics_service,
        sync_service=sync_service,
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return wire(
        people_repo=MySQLPersonRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        absentees_repo=MySQLAbsenteeRepository(conn),
        activities_repo=MySQLActivityRepository(conn),
        sender=build_sender(settings),
        settings=settings,
    )
