from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

import mysql.connector

from ..core.enums import PersonKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key
from .model import PersonSnapshot
from .repository import PersonRepository

_SELECT = """
    SELECT
        p.person_id, p.kind, p.full_name, p.gender, p.dob, p.membership_id,
        p.phone, p.parent_member_id,
        GROUP_CONCAT(g.group_name ORDER BY g.group_name SEPARATOR '\\n') AS group_names
    FROM persons p
    LEFT JOIN group_memberships gm ON gm.person_id = p.person_id AND gm.is_active = 1
    LEFT JOIN church_groups g ON g.group_id = gm.group_id AND g.is_active = 1
"""


def _to_snapshot(r: dict) -> PersonSnapshot:
    names = r.get("group_names") or ""
    return PersonSnapshot(
        person_id=int(r["person_id"]),
        kind=PersonKind(r["kind"]),
        full_name=r["full_name"],
        gender=r.get("gender"),
        dob=r.get("dob"),
        groups=tuple(n for n in names.split("\n") if n),
        membership_id=r.get("membership_id"),
        phone=r.get("phone"),
        parent_member_id=int(r["parent_member_id"]) if r.get("parent_member_id") is not None else None,
    )


class MySQLPersonRepository(PersonRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, person_id: int) -> Optional[PersonSnapshot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE p.person_id=%s GROUP BY p.person_id", (int(person_id),))
            r = fetchone(cur)
            return _to_snapshot(r) if r else None

    def get_many(self, person_ids: Iterable[int]) -> Mapping[int, PersonSnapshot]:
        ids = sorted({int(p) for p in person_ids})
        if not ids:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE p.person_id IN ({in_clause(ids)}) GROUP BY p.person_id",
                tuple(ids),
            )
            return {s.person_id: s for s in (_to_snapshot(r) for r in fetchall(cur))}

    def get_by_membership_id(self, canonical_id: str) -> Optional[PersonSnapshot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE p.membership_id=%s AND p.kind='member' GROUP BY p.person_id",
                (canonical_id,),
            )
            r = fetchone(cur)
            return _to_snapshot(r) if r else None

    def list_members(self, *, group: Optional[str] = None) -> Sequence[PersonSnapshot]:
        clauses = ["p.kind='member'", "p.is_active=1"]
        params: list[object] = []
        if group:
            clauses.append(
                """
                EXISTS (
                    SELECT 1 FROM group_memberships gm2
                    JOIN church_groups g2 ON g2.group_id = gm2.group_id
                    WHERE gm2.person_id = p.person_id AND gm2.is_active = 1 AND g2.group_name = %s
                )
                """
            )
            params.append(group)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE {where} GROUP BY p.person_id ORDER BY p.full_name ASC",
                tuple(params),
            )
            return [_to_snapshot(r) for r in fetchall(cur)]

    def list_dependants(self, member_id: int) -> Sequence[PersonSnapshot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + " WHERE p.kind='dependant' AND p.parent_member_id=%s AND p.is_active=1"
                + " GROUP BY p.person_id ORDER BY p.full_name ASC",
                (int(member_id),),
            )
            return [_to_snapshot(r) for r in fetchall(cur)]

    def set_membership_id(self, person_id: int, canonical_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    "UPDATE persons SET membership_id=%s WHERE person_id=%s AND kind='member'",
                    (canonical_id, int(person_id)),
                )
            except mysql.connector.IntegrityError as e:
                if is_duplicate_key(e):
                    return False
                raise
            return cur.rowcount > 0
