from __future__ import annotations

from dataclasses import dataclass

import mysql.connector

from ..core.exceptions import StoreError


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "church_attendance")),
        )


class DatabaseConnection:
    """DB connection factory owned by one container.

    Note: We create short-lived connections per operation, so one factory is
    safe to share between request threads and bulk worker threads.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        try:
            return mysql.connector.connect(
                host=self._config.host,
                port=int(self._config.port),
                user=self._config.user,
                password=self._config.password,
                database=self._config.database,
            )
        except mysql.connector.Error as e:
            raise StoreError(f"Cannot connect to database {self._config.database!r}: {e}") from e
