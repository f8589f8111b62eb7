from __future__ import annotations

# todo_backend/db.py
import os
import sqlite3
import time
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import exc as sa_exc
from sqlalchemy.pool import Pool, QueuePool, StaticPool

from .config import Settings
from .errors import UnknownError

# a progress handler returning non-zero makes sqlite abort the running statement
_PROGRESS_STEPS = 1000


class Database:
    """
    Shared pool of raw sqlite3 connections.

    Connections run in autocommit mode (isolation_level=None), so every
    statement is atomic on its own, and use sqlite3.Row rows. ":memory:" is
    served by a single connection shared across threads (tests and local
    runs only) and gets no statement deadline. Any other path gets a bounded
    QueuePool.
    """

    def __init__(self, path: str, pool_size: int = 5, max_overflow: int = 10,
                 pool_timeout: float = 30.0, busy_timeout: float = 5.0,
                 statement_timeout: float = 0.0):
        self.path = path
        self.busy_timeout = busy_timeout
        self.statement_timeout = statement_timeout
        self.shared = path == ":memory:"
        if self.shared:
            self._pool: Pool = StaticPool(self._create)
        else:
            dirn = os.path.dirname(path)
            if dirn:
                os.makedirs(dirn, exist_ok=True)
            self._pool = QueuePool(
                self._create,
                pool_size=pool_size,
                max_overflow=max_overflow,
                timeout=pool_timeout,
            )

    @classmethod
    def from_settings(cls, s: Settings) -> "Database":
        return cls(
            s.db_path,
            pool_size=s.pool_size,
            max_overflow=s.max_overflow,
            pool_timeout=s.pool_timeout,
            busy_timeout=s.busy_timeout,
            statement_timeout=s.statement_timeout,
        )

    def _create(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.path,
            timeout=self.busy_timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def connection(self, timeout: float | None = None) -> Iterator[sqlite3.Connection]:
        """
        Check one connection out of the pool for the duration of the block and
        always hand it back. ``timeout`` (seconds, default statement_timeout,
        0 disables) bounds statement execution while the connection is held.
        """
        try:
            proxied = self._pool.connect()
        except (sqlite3.Error, sa_exc.SQLAlchemyError) as e:
            raise UnknownError.wrap("Failed to connect to database", e) from e

        conn = proxied.dbapi_connection
        limit = self.statement_timeout if timeout is None else timeout
        if self.shared:
            limit = 0
        if limit:
            deadline = time.monotonic() + limit
            conn.set_progress_handler(lambda: int(time.monotonic() > deadline), _PROGRESS_STEPS)
        try:
            yield conn
        finally:
            if limit:
                conn.set_progress_handler(None, 0)
            proxied.close()

    def checked_out(self) -> int:
        return self._pool.checkedout() if isinstance(self._pool, QueuePool) else 0

    def dispose(self):
        self._pool.dispose()
