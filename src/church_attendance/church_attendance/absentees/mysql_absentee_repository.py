from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..attendance.model import ServiceOccurrence
from ..core.enums import ServiceType
from ..core.exceptions import StoreError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AbsenteeRecord
from .repository import AbsenteeRepository

_COLUMNS = """
    absentee_id, person_id, service_date, service_type, reason,
    follow_up_required, follow_up_completed, notification_sent,
    recorded_by, created_at, updated_at
"""


def _to_record(r: dict) -> AbsenteeRecord:
    return AbsenteeRecord(
        absentee_id=int(r["absentee_id"]),
        person_id=int(r["person_id"]),
        occurrence=ServiceOccurrence(
            service_date=r["service_date"],
            service_type=ServiceType(r["service_type"]),
        ),
        reason=r.get("reason"),
        follow_up_required=bool(r["follow_up_required"]),
        follow_up_completed=bool(r["follow_up_completed"]),
        notification_sent=bool(r["notification_sent"]),
        recorded_by=r.get("recorded_by") or "",
        created_at=r["created_at"],
        updated_at=r["updated_at"],
    )


class MySQLAbsenteeRepository(AbsenteeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert(
        self,
        *,
        person_id: int,
        occurrence: ServiceOccurrence,
        reason: Optional[str],
        follow_up_required: bool,
        recorded_by: str,
        now: datetime,
    ) -> AbsenteeRecord:
        # uq_absentee_person_occurrence turns a concurrent second insert into an update.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO absentee_records(
                    person_id, service_date, service_type, reason, follow_up_required,
                    recorded_by, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    reason=VALUES(reason),
                    follow_up_required=VALUES(follow_up_required),
                    recorded_by=VALUES(recorded_by),
                    updated_at=VALUES(updated_at)
                """,
                (
                    int(person_id),
                    occurrence.service_date,
                    occurrence.service_type.value,
                    reason,
                    1 if follow_up_required else 0,
                    recorded_by,
                    now,
                    now,
                ),
            )
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM absentee_records
                WHERE person_id=%s AND service_date=%s AND service_type=%s
                """,
                (int(person_id), occurrence.service_date, occurrence.service_type.value),
            )
            r = fetchone(cur)
            if not r:
                raise StoreError(f"Absentee record for person #{person_id} at {occurrence} vanished after upsert")
            return _to_record(r)

    def get_by_id(self, absentee_id: int) -> Optional[AbsenteeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM absentee_records WHERE absentee_id=%s", (int(absentee_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def mark_notification_sent(self, absentee_id: int, *, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE absentee_records SET notification_sent=1, updated_at=%s WHERE absentee_id=%s",
                (now, int(absentee_id)),
            )
            return cur.rowcount > 0

    def complete_follow_up(self, absentee_id: int, *, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE absentee_records SET follow_up_completed=1, updated_at=%s WHERE absentee_id=%s",
                (now, int(absentee_id)),
            )
            return cur.rowcount > 0

    def pending_follow_ups(self, limit: int) -> Sequence[AbsenteeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM absentee_records
                WHERE follow_up_required=1 AND follow_up_completed=0
                ORDER BY service_date DESC, absentee_id ASC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_to_record(r) for r in fetchall(cur)]
