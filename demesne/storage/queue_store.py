"""Row access for action queues.

Every method takes the connection of an open transaction; callers own the
transaction boundary. Status changes are compare-and-set on ``status =
'active'`` so a terminal record can never move again.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Callable

from demesne.core.enums import ActionType, QueueStatus
from demesne.core.errors import AlreadyQueued
from demesne.core.models import QueueRecord

_COLUMNS = (
    "id, actor_id, action_type, action_params, status, total, completed, total_xp, "
    "total_quantity, item_name, last_level_up, stop_reason, dismissed_at, created_at, updated_at"
)


def _row_to_record(row: sqlite3.Row) -> QueueRecord:
    level_up = row["last_level_up"]
    return QueueRecord(
        id=row["id"],
        actor_id=row["actor_id"],
        action_type=ActionType(row["action_type"]),
        action_params=json.loads(row["action_params"] or "{}"),
        status=QueueStatus(row["status"]),
        total=row["total"],
        completed=row["completed"],
        total_xp=row["total_xp"],
        total_quantity=row["total_quantity"],
        item_name=row["item_name"],
        last_level_up=json.loads(level_up) if level_up else None,
        stop_reason=row["stop_reason"],
        dismissed_at=row["dismissed_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class QueueStore:
    """Persistence for :class:`QueueRecord` rows."""

    __slots__ = ("_now",)

    def __init__(self, now: Callable[[], float]) -> None:
        self._now = now

    # -- reads --

    def get(self, conn: sqlite3.Connection, queue_id: int) -> QueueRecord | None:
        row = conn.execute(f"SELECT {_COLUMNS} FROM action_queues WHERE id = ?", (queue_id,)).fetchone()
        return _row_to_record(row) if row else None

    def find_active(self, conn: sqlite3.Connection, actor_id: int) -> QueueRecord | None:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM action_queues WHERE actor_id = ? AND status = 'active'",
            (actor_id,),
        ).fetchone()
        return _row_to_record(row) if row else None

    def latest_visible(self, conn: sqlite3.Connection, actor_id: int) -> QueueRecord | None:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM action_queues "
            "WHERE actor_id = ? AND dismissed_at IS NULL "
            "ORDER BY created_at DESC, id DESC LIMIT 1",
            (actor_id,),
        ).fetchone()
        return _row_to_record(row) if row else None

    def history(self, conn: sqlite3.Connection, actor_id: int, limit: int = 20) -> list[QueueRecord]:
        rows = conn.execute(
            f"SELECT {_COLUMNS} FROM action_queues WHERE actor_id = ? "
            "ORDER BY created_at DESC, id DESC LIMIT ?",
            (actor_id, limit),
        ).fetchall()
        return [_row_to_record(r) for r in rows]

    def stale_ids(self, conn: sqlite3.Connection, older_than: float) -> list[int]:
        rows = conn.execute(
            "SELECT id FROM action_queues WHERE status = 'active' AND updated_at < ? ORDER BY id",
            (older_than,),
        ).fetchall()
        return [r["id"] for r in rows]

    # -- writes --

    def insert_active(
        self,
        conn: sqlite3.Connection,
        actor_id: int,
        action_type: ActionType,
        action_params: dict[str, Any],
        total: int,
    ) -> QueueRecord:
        """Insert a new active record; raises AlreadyQueued if the actor has one."""
        now = self._now()
        try:
            cur = conn.execute(
                "INSERT INTO action_queues (actor_id, action_type, action_params, status, total, "
                "created_at, updated_at) VALUES (?, ?, ?, 'active', ?, ?, ?)",
                (actor_id, action_type.value, json.dumps(action_params, sort_keys=True), total, now, now),
            )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" in str(exc):
                raise AlreadyQueued() from exc
            raise
        record = self.get(conn, cur.lastrowid)
        assert record is not None
        return record

    def finish(
        self,
        conn: sqlite3.Connection,
        queue_id: int,
        status: QueueStatus,
        stop_reason: str | None = None,
    ) -> bool:
        """Move an active record to a terminal status. False if it was not active."""
        if not status.is_terminal:
            raise ValueError(f"{status.value} is not a terminal status")
        cur = conn.execute(
            "UPDATE action_queues SET status = ?, stop_reason = ?, updated_at = ? "
            "WHERE id = ? AND status = 'active'",
            (status.value, stop_reason, self._now(), queue_id),
        )
        return cur.rowcount == 1

    def record_progress(
        self,
        conn: sqlite3.Connection,
        queue_id: int,
        xp: int,
        quantity: int,
        item_name: str | None = None,
        level_up: dict[str, Any] | None = None,
    ) -> QueueRecord | None:
        """Count one tick. Returns the updated record, or None if it was not active or already full."""
        cur = conn.execute(
            "UPDATE action_queues SET completed = completed + 1, "
            "total_xp = total_xp + ?, total_quantity = total_quantity + ?, "
            "item_name = COALESCE(?, item_name), "
            "last_level_up = COALESCE(?, last_level_up), updated_at = ? "
            "WHERE id = ? AND status = 'active' AND completed < total",
            (
                max(xp, 0),
                max(quantity, 0),
                item_name,
                json.dumps(level_up) if level_up else None,
                self._now(),
                queue_id,
            ),
        )
        if cur.rowcount != 1:
            return None
        return self.get(conn, queue_id)

    def dismiss(self, conn: sqlite3.Connection, queue_id: int, actor_id: int) -> bool:
        """Hide a terminal record owned by *actor_id*. False if nothing qualified."""
        cur = conn.execute(
            "UPDATE action_queues SET dismissed_at = ? "
            "WHERE id = ? AND actor_id = ? AND status != 'active' AND dismissed_at IS NULL",
            (self._now(), queue_id, actor_id),
        )
        return cur.rowcount == 1

    def fail_stale(self, conn: sqlite3.Connection, older_than: float, reason: str) -> int:
        cur = conn.execute(
            "UPDATE action_queues SET status = 'failed', stop_reason = ?, updated_at = ? "
            "WHERE status = 'active' AND updated_at < ?",
            (reason, self._now(), older_than),
        )
        return cur.rowcount

    def touch(self, conn: sqlite3.Connection, queue_id: int, updated_at: float | None = None) -> None:
        """Set updated_at directly (admin repair and tests)."""
        conn.execute(
            "UPDATE action_queues SET updated_at = ? WHERE id = ?",
            (self._now() if updated_at is None else updated_at, queue_id),
        )
