"""SQLite connection, schema and the transaction boundary.

One ``Database`` owns one connection. Every read-modify-write goes through
``transaction()``; ``exclusive=True`` takes SQLite's write lock up front
(``BEGIN IMMEDIATE``), the storage-level equivalent of SELECT ... FOR UPDATE.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


# -----------------------------
# Schema
# -----------------------------

DDL_ACTION_QUEUES = """
CREATE TABLE IF NOT EXISTS action_queues (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    actor_id        INTEGER NOT NULL,
    action_type     TEXT NOT NULL,
    action_params   TEXT NOT NULL DEFAULT '{}',     -- JSON object
    status          TEXT NOT NULL DEFAULT 'active'
                    CHECK (status IN ('active', 'completed', 'cancelled', 'failed')),
    total           INTEGER NOT NULL CHECK (total >= 1),
    completed       INTEGER NOT NULL DEFAULT 0 CHECK (completed >= 0 AND completed <= total),
    total_xp        INTEGER NOT NULL DEFAULT 0 CHECK (total_xp >= 0),
    total_quantity  INTEGER NOT NULL DEFAULT 0 CHECK (total_quantity >= 0),
    item_name       TEXT,
    last_level_up   TEXT,                           -- JSON {"skill", "level"}
    stop_reason     TEXT,
    dismissed_at    REAL,
    created_at      REAL NOT NULL,
    updated_at      REAL NOT NULL
);

-- At most one active queue per actor, enforced by the storage engine.
CREATE UNIQUE INDEX IF NOT EXISTS uq_action_queues_one_active
ON action_queues(actor_id) WHERE status = 'active';

CREATE INDEX IF NOT EXISTS idx_action_queues_actor_created
ON action_queues(actor_id, created_at);

CREATE INDEX IF NOT EXISTS idx_action_queues_status_updated
ON action_queues(status, updated_at);
"""

DDL_WORLD_CLOCK = """
CREATE TABLE IF NOT EXISTS world_clock (
    id              INTEGER PRIMARY KEY CHECK (id = 1),
    current_year    INTEGER NOT NULL DEFAULT 1 CHECK (current_year >= 1),
    current_season  TEXT NOT NULL DEFAULT 'spring',
    current_week    INTEGER NOT NULL DEFAULT 1 CHECK (current_week >= 1),
    last_tick_at    REAL
);
"""


def connect(db_path: str | Path) -> sqlite3.Connection:
    db_path = str(db_path)
    # Autocommit mode: transactions are opened explicitly by Database.transaction().
    conn = sqlite3.connect(db_path, isolation_level=None, check_same_thread=False)
    conn.row_factory = sqlite3.Row

    conn.execute("PRAGMA foreign_keys = ON;")
    if db_path != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL;")
        conn.execute("PRAGMA synchronous = NORMAL;")
    conn.execute("PRAGMA busy_timeout = 5000;")
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(DDL_ACTION_QUEUES)
    conn.executescript(DDL_WORLD_CLOCK)


class Database:
    """A lock-guarded SQLite connection shared by the stores.

    The lock serialises transactions from threads of this process; the
    SQLite write lock and the unique index serialise across processes.
    """

    __slots__ = ("_conn", "_lock", "path")

    def __init__(self, path: str | Path = ":memory:") -> None:
        self.path = str(path)
        self._conn = connect(self.path)
        self._lock = threading.RLock()
        with self._lock:
            init_schema(self._conn)
        logger.debug("Opened database %s", self.path)

    @contextmanager
    def transaction(self, exclusive: bool = False) -> Iterator[sqlite3.Connection]:
        """Run the block atomically; any exception, including one from COMMIT, rolls back and propagates."""
        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE" if exclusive else "BEGIN")
            try:
                yield self._conn
                self._conn.execute("COMMIT")
            except BaseException:
                # A failed COMMIT (busy, deferred constraint) leaves the transaction open.
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise

    def close(self) -> None:
        with self._lock:
            self._conn.close()
