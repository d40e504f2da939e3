from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from mysql.connector import pooling


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    pool_size: int = 10

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "class_attendance")),
            pool_size=int(db_config.get("pool_size", 10)),
        )


class DatabaseConnection:
    """Singleton-like DB connection factory backed by a connection pool.

    Each repository call borrows a connection for one transaction and hands it
    back through release(). mysql-connector raises PoolError rather than
    waiting when the pool is empty, so borrowers queue on a semaphore with one
    slot per pooled connection. The pool is created lazily on first use so the
    app can be built without a reachable server.
    """

    _instance: Optional["DatabaseConnection"] = None
    _instance_lock = threading.Lock()

    def __init__(self, config: DBConfig):
        self._config = config
        self._pool: Optional[pooling.MySQLConnectionPool] = None
        self._pool_lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(self.pool_size)

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = DatabaseConnection(config)
            return cls._instance

    @property
    def pool_size(self) -> int:
        return max(int(self._config.pool_size), 1)

    def _get_pool(self) -> pooling.MySQLConnectionPool:
        with self._pool_lock:
            if self._pool is None:
                self._pool = pooling.MySQLConnectionPool(
                    pool_name="class_attendance",
                    pool_size=self.pool_size,
                    host=self._config.host,
                    port=int(self._config.port),
                    user=self._config.user,
                    password=self._config.password,
                    database=self._config.database,
                    charset="utf8mb4",
                )
            return self._pool

    def connect(self):
        """Borrow a pooled connection, blocking until one is free."""
        self._slots.acquire()
        try:
            return self._get_pool().get_connection()
        except Exception:
            self._slots.release()
            raise

    def release(self, conn) -> None:
        try:
            conn.close()
        finally:
            self._slots.release()
