from __future__ import annotations

from datetime import datetime

import mysql.connector
import pytest
from fakes import SUNDAY, record_for
from mysql.connector import errorcode

from src.church_attendance.church_attendance.absentees.mysql_absentee_repository import MySQLAbsenteeRepository
from src.church_attendance.church_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.church_attendance.church_attendance.core.enums import AdmissionOutcome
from src.church_attendance.church_attendance.core.exceptions import StoreError
from src.church_attendance.church_attendance.database.bootstrap import _iter_sql_statements, _strip_create_db_and_use
from src.church_attendance.church_attendance.database.mysql_base import load_json


class FakeCursor:
    def __init__(self, error=None, rows=()):
        self.error = error
        self.rows = list(rows)
        self.executed = []
        self.closed = False

    def execute(self, sql, params=None):
        self.executed.append((sql, params))
        if self.error is not None:
            raise self.error

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def fetchall(self):
        return self.rows

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnFactory:
    def __init__(self, conn):
        self.conn = conn

    def connect(self):
        return self.conn


def _repo(cursor):
    conn = FakeConnection(cursor)
    return MySQLAttendanceRepository(FakeConnFactory(conn)), conn


def test_insert_commits_and_reports_admitted():
    repo, conn = _repo(FakeCursor())

    assert repo.insert_if_absent(record_for(1)) == AdmissionOutcome.ADMITTED
    assert conn.committed and conn.closed


def test_duplicate_key_is_reported_as_duplicate():
    dup = mysql.connector.IntegrityError(msg="Duplicate entry", errno=errorcode.ER_DUP_ENTRY)
    repo, conn = _repo(FakeCursor(error=dup))

    assert repo.insert_if_absent(record_for(1)) == AdmissionOutcome.DUPLICATE
    assert conn.closed


def test_other_integrity_errors_become_store_errors():
    fk = mysql.connector.IntegrityError(msg="Cannot add or update a child row", errno=errorcode.ER_NO_REFERENCED_ROW_2)
    repo, conn = _repo(FakeCursor(error=fk))

    with pytest.raises(StoreError):
        repo.insert_if_absent(record_for(1))
    assert conn.rolled_back and conn.closed


def test_present_person_ids_reads_rows():
    cursor = FakeCursor(rows=[{"person_id": 1}, {"person_id": 4}])
    repo, _ = _repo(cursor)

    assert repo.present_person_ids(SUNDAY) == {1, 4}
    assert cursor.executed[0][1] == (SUNDAY.service_date, "sunday_service", "present")


def test_load_json_accepts_connector_variants():
    assert load_json(None) == {}
    assert load_json(b'{"gender": "male"}') == {"gender": "male"}
    assert load_json('{"groups": []}') == {"groups": []}
    assert load_json({"a": 1}) == {"a": 1}


def test_sql_splitter_handles_quotes_and_comments():
    sql = """
    CREATE DATABASE IF NOT EXISTS church_attendance;
    USE church_attendance;
    -- groups; with a semicolon in the comment
    INSERT INTO church_groups(name) VALUES ('Choir; Main');
    INSERT INTO church_groups(name) VALUES ("Ushers");
    """

    statements = list(_iter_sql_statements(_strip_create_db_and_use(sql)))

    assert statements == [
        "INSERT INTO church_groups(name) VALUES ('Choir; Main')",
        'INSERT INTO church_groups(name) VALUES ("Ushers")',
    ]


def test_absentee_upsert_is_one_conditional_write_that_keeps_flags():
    now = datetime(2024, 1, 8, 12, 0)
    row = {
        "absentee_id": 7,
        "person_id": 2,
        "service_date": SUNDAY.service_date,
        "service_type": "sunday_service",
        "reason": "sick",
        "follow_up_required": 1,
        "follow_up_completed": 1,
        "notification_sent": 1,
        "recorded_by": "deacon",
        "created_at": datetime(2024, 1, 7, 18, 0),
        "updated_at": now,
    }
    cursor = FakeCursor(rows=[row])
    conn = FakeConnection(cursor)
    repo = MySQLAbsenteeRepository(FakeConnFactory(conn))

    record = repo.upsert(
        person_id=2, occurrence=SUNDAY, reason="sick", follow_up_required=True, recorded_by="deacon", now=now
    )

    write_sql, params = cursor.executed[0]
    writes = [sql for sql, _ in cursor.executed if "INSERT" in sql or "UPDATE absentee" in sql]
    update_clause = write_sql.split("ON DUPLICATE KEY UPDATE", 1)[1]
    assert len(writes) == 1
    assert "INSERT INTO absentee_records" in write_sql
    assert "reason=VALUES(reason)" in update_clause
    assert "follow_up_completed" not in update_clause
    assert "notification_sent" not in update_clause
    assert params[:3] == (2, SUNDAY.service_date, "sunday_service")
    assert record.absentee_id == 7
    assert record.follow_up_completed and record.notification_sent
    assert conn.committed


def test_absentee_upsert_surfaces_driver_errors():
    err = mysql.connector.OperationalError(msg="Lost connection", errno=2013)
    conn = FakeConnection(FakeCursor(error=err))
    repo = MySQLAbsenteeRepository(FakeConnFactory(conn))

    with pytest.raises(StoreError):
        repo.upsert(
            person_id=2, occurrence=SUNDAY, reason=None, follow_up_required=True, recorded_by="x", now=datetime.now()
        )
    assert conn.rolled_back
