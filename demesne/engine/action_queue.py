"""ActionQueueManager — lifecycle of queued player actions.

State machine::

    active ──> completed | cancelled | failed      (all terminal)

Expected business failures come back as ``QueueResult`` values; only
storage faults raise.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from demesne.core.enums import ActionType, Lane, QueueStatus
from demesne.core.errors import AlreadyQueued, InvalidArgument, NoActiveQueue, NotFound
from demesne.core.models import QueueRecord, QueueResult
from demesne.engine.task_queue import Task
from demesne.utils.event_log import GameEvent

if TYPE_CHECKING:
    from demesne.config import ServerConfig
    from demesne.core.interfaces import TaskSink
    from demesne.storage.db import Database
    from demesne.storage.queue_store import QueueStore
    from demesne.utils.event_log import EventLog

logger = logging.getLogger(__name__)

PROCESS_TASK = "process_action_queue"
CANCELLED_BY_PLAYER = "Cancelled by player."
TIMED_OUT = "Queue timed out (worker may have stopped)."


def process_task(queue_id: int) -> Task:
    return Task(PROCESS_TASK, {"queue_id": queue_id})


class ActionQueueManager:
    """Start, cancel, dismiss and reap action queues."""

    __slots__ = ("_config", "_db", "_store", "_tasks", "_events", "_now")

    def __init__(
        self,
        config: ServerConfig,
        db: Database,
        store: QueueStore,
        tasks: TaskSink,
        now: Callable[[], float],
        events: EventLog | None = None,
    ) -> None:
        self._config = config
        self._db = db
        self._store = store
        self._tasks = tasks
        self._events = events
        self._now = now

    def start(
        self,
        actor_id: int,
        action_type: ActionType | str,
        params: dict[str, Any] | None,
        total: int,
    ) -> QueueResult:
        try:
            action = ActionType(action_type)
        except ValueError:
            return QueueResult.fail(InvalidArgument(f"Unknown action type: {action_type}."))
        if total < 1:
            return QueueResult.fail(InvalidArgument("Total must be at least 1."))

        try:
            # Exclusive: the existence check and the insert see the same snapshot.
            with self._db.transaction(exclusive=True) as conn:
                if self._store.find_active(conn, actor_id) is not None:
                    raise AlreadyQueued()
                record = self._store.insert_active(conn, actor_id, action, dict(params or {}), total)
        except AlreadyQueued as exc:
            return QueueResult.fail(exc)

        self._tasks.enqueue(process_task(record.id), Lane.ACTION_QUEUE)
        logger.info("Queue %d started: actor %d %s x%d", record.id, actor_id, action.value, total)
        return QueueResult.ok("Queue started.", record)

    def cancel(self, actor_id: int) -> QueueResult:
        with self._db.transaction(exclusive=True) as conn:
            record = self._store.find_active(conn, actor_id)
            if record is None or not self._store.finish(conn, record.id, QueueStatus.CANCELLED, CANCELLED_BY_PLAYER):
                return QueueResult.fail(NoActiveQueue())
            record = self._store.get(conn, record.id)
        logger.info("Queue %d cancelled by actor %d", record.id, actor_id)
        return QueueResult.ok("Queue cancelled.", record)

    def get_active(self, actor_id: int) -> QueueRecord | None:
        with self._db.transaction() as conn:
            return self._store.find_active(conn, actor_id)

    def get_latest_visible(self, actor_id: int) -> QueueRecord | None:
        """Newest record not yet dismissed, active or terminal."""
        with self._db.transaction() as conn:
            return self._store.latest_visible(conn, actor_id)

    def get_history(self, actor_id: int, limit: int = 20) -> list[QueueRecord]:
        with self._db.transaction() as conn:
            return self._store.history(conn, actor_id, limit)

    def dismiss(self, actor_id: int, queue_id: int) -> QueueResult:
        with self._db.transaction(exclusive=True) as conn:
            if not self._store.dismiss(conn, queue_id, actor_id):
                return QueueResult.fail(NotFound())
            record = self._store.get(conn, queue_id)
        return QueueResult.ok("Queue dismissed.", record)

    def reap_stale(self) -> int:
        """Fail every active queue with no progress for ``stale_queue_seconds``."""
        cutoff = self._now() - self._config.stale_queue_seconds
        with self._db.transaction(exclusive=True) as conn:
            stale = self._store.stale_ids(conn, cutoff)
            count = self._store.fail_stale(conn, cutoff, TIMED_OUT) if stale else 0
        if count:
            logger.warning("Reaped %d stale queue(s): %s", count, stale)
            if self._events is not None:
                self._events.append(GameEvent(
                    at=self._now(), category="queue",
                    message=f"{count} stalled queue(s) timed out.",
                ))
        return count
