from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AdmissionOutcome, AttendanceMethod, AttendanceStatus, ServiceType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, is_duplicate_key, load_json
from .model import AttendanceRecord, ServiceOccurrence
from .repository import AttendanceRepository


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        person_id=int(r["person_id"]),
        occurrence=ServiceOccurrence(
            service_date=r["service_date"],
            service_type=ServiceType(r["service_type"]),
        ),
        check_in_time=r["check_in_time"],
        method=AttendanceMethod(r["method"]),
        recorded_by=r.get("recorded_by") or "",
        metadata=load_json(r.get("metadata")),
        status=AttendanceStatus(r["status"]),
        client_uuid=r.get("client_uuid"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert_if_absent(self, record: AttendanceRecord) -> AdmissionOutcome:
        # uq_attendance_person_occurrence makes this a single conditional write.
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        person_id, service_date, service_type, check_in_time,
                        method, status, metadata, recorded_by, client_uuid
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.person_id,
                        record.occurrence.service_date,
                        record.occurrence.service_type.value,
                        record.check_in_time,
                        record.method.value,
                        record.status.value,
                        dump_json(dict(record.metadata)),
                        record.recorded_by,
                        record.client_uuid,
                    ),
                )
            except mysql.connector.IntegrityError as e:
                if is_duplicate_key(e):
                    return AdmissionOutcome.DUPLICATE
                raise
            return AdmissionOutcome.ADMITTED

    def query(
        self,
        *,
        start_date: date,
        end_date: date,
        service_type: Optional[ServiceType] = None,
        method: Optional[AttendanceMethod] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["service_date BETWEEN %s AND %s", "status=%s"]
        params: list[object] = [start_date, end_date, AttendanceStatus.PRESENT.value]

        if service_type is not None:
            clauses.append("service_type=%s")
            params.append(service_type.value)
        if method is not None:
            clauses.append("method=%s")
            params.append(method.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT attendance_id, person_id, service_date, service_type, check_in_time,
                       method, status, metadata, recorded_by, client_uuid
                FROM attendance_records
                WHERE {where}
                ORDER BY service_date ASC, check_in_time ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def present_person_ids(self, occurrence: ServiceOccurrence) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT person_id
                FROM attendance_records
                WHERE service_date=%s AND service_type=%s AND status=%s
                """,
                (occurrence.service_date, occurrence.service_type.value, AttendanceStatus.PRESENT.value),
            )
            return {int(r["person_id"]) for r in fetchall(cur)}
