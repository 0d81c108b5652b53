from __future__ import annotations

from typing import Sequence

from ..core.enums import ActivityType, ServiceType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, load_json
from .model import ActivityEntry
from .repository import ActivityRepository


class MySQLActivityRepository(ActivityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: ActivityEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_activities(
                    activity_type, person_id, service_date, service_type,
                    description, metadata, created_by, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry.activity_type.value,
                    entry.person_id,
                    entry.service_date,
                    entry.service_type.value if entry.service_type else None,
                    entry.description,
                    dump_json(dict(entry.metadata)),
                    entry.created_by,
                    entry.created_at,
                ),
            )
            return int(cur.lastrowid)

    def recent(self, limit: int) -> Sequence[ActivityEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT activity_id, activity_type, person_id, service_date, service_type,
                       description, metadata, created_by, created_at
                FROM attendance_activities
                ORDER BY created_at DESC, activity_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                ActivityEntry(
                    activity_id=int(r["activity_id"]),
                    activity_type=ActivityType(r["activity_type"]),
                    person_id=int(r["person_id"]) if r.get("person_id") is not None else None,
                    service_date=r.get("service_date"),
                    service_type=ServiceType(r["service_type"]) if r.get("service_type") else None,
                    description=r["description"],
                    metadata=load_json(r.get("metadata")),
                    created_by=r.get("created_by") or "",
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
