from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import StoreError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)``; commit on success, roll back on error.

    ``mysql.connector.Error`` escaping the block is re-raised as ``StoreError``.
    """
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        raise StoreError(str(e)) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def is_duplicate_key(error: mysql.connector.Error) -> bool:
    return getattr(error, "errno", None) == errorcode.ER_DUP_ENTRY


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values) -> str:
    return ",".join(["%s"] * len(values))


def load_json(value: Any) -> dict:
    """Normalize a MySQL JSON column across connector versions.

    mysql-connector can return JSON as str, bytes/bytearray or an already
    decoded dict depending on the protocol implementation.
    """
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return {}
        decoded = json.loads(value)
        if not isinstance(decoded, dict):
            raise TypeError(f"Expected JSON object, got {type(decoded)!r}")
        return decoded
    raise TypeError(f"Unsupported MySQL JSON value type: {type(value)!r}")


def dump_json(value: Optional[dict]) -> str:
    return json.dumps(value or {}, default=str, sort_keys=True)
