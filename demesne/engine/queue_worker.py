"""ActionQueueWorker — advances one action queue by one tick per task.

Each task runs a single tick in its own transaction and, while the record
stays active, schedules the next tick on the ``action-queue`` lane. A queue
therefore never has two ticks in flight, and a crash loses at most the tick
that was running; ``ActionQueueManager.reap_stale`` fails the leftover.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from demesne.core.enums import Lane, QueueStatus
from demesne.core.errors import DemesneError
from demesne.engine.action_queue import process_task
from demesne.engine.actions import ActionContext, ActionOutcome, perform_action
from demesne.utils.event_log import GameEvent

if TYPE_CHECKING:
    from sqlite3 import Connection

    from demesne.config import ServerConfig
    from demesne.core.interfaces import EffectSource, Inventory, PlayerDirectory, TaskSink
    from demesne.core.models import QueueRecord
    from demesne.engine.task_queue import Task
    from demesne.storage.db import Database
    from demesne.storage.queue_store import QueueStore
    from demesne.systems.rng import DeterministicRNG
    from demesne.utils.event_log import EventLog

logger = logging.getLogger(__name__)

PLAYER_NOT_FOUND = "Player not found."
STARTED_TRAVELING = "You started traveling."
SENT_TO_INFIRMARY = "You were sent to the infirmary."
UNEXPECTED_ERROR = "An unexpected error occurred."


@dataclass(frozen=True, slots=True)
class TickOutcome:
    """What one call to ``process`` did to the record."""

    queue_id: int
    actor_id: int | None
    status: QueueStatus | None     # None if the record does not exist
    advanced: bool                 # True if `completed` went up
    message: str = ""

    @property
    def should_continue(self) -> bool:
        return self.status is QueueStatus.ACTIVE


class ActionQueueWorker:
    """Consumes ``process_action_queue`` tasks."""

    def __init__(
        self,
        config: ServerConfig,
        db: Database,
        store: QueueStore,
        tasks: TaskSink,
        players: PlayerDirectory,
        inventory: Inventory,
        effects: EffectSource,
        rng: DeterministicRNG,
        now: Callable[[], float],
        gathering_modifier: Callable[[], float] | None = None,
        events: EventLog | None = None,
    ) -> None:
        self._config = config
        self._db = db
        self._store = store
        self._tasks = tasks
        self._players = players
        self._inventory = inventory
        self._effects = effects
        self._rng = rng
        self._now = now
        self._gathering_modifier = gathering_modifier
        self._events = events

    # -- task entry point --

    def handle(self, task: Task) -> None:
        queue_id = int(task.payload["queue_id"])
        try:
            outcome = self.process(queue_id)
        except Exception:
            logger.exception("Tick crashed for queue %d", queue_id)
            self._fail_if_active(queue_id, UNEXPECTED_ERROR)
            return
        if outcome.should_continue and outcome.actor_id is not None:
            self._tasks.enqueue(process_task(queue_id), Lane.ACTION_QUEUE, delay=self.next_delay(outcome.actor_id))

    def next_delay(self, actor_id: int) -> float:
        """Seconds until the next tick, shortened by the cooldown-reduction effect."""
        reduction = self._effects.get_effect(actor_id, "action_cooldown_reduction")
        reduction = min(max(reduction, 0.0), self._config.max_cooldown_reduction)
        return self._config.action_tick_seconds * (1.0 - reduction / 100.0)

    # -- one tick --

    def process(self, queue_id: int) -> TickOutcome:
        modifier = self._gathering_modifier() if self._gathering_modifier else 1.0
        notices: list[GameEvent] = []

        # Write lock up front: the record read and the progress write share one snapshot.
        with self._db.transaction(exclusive=True) as conn:
            record = self._store.get(conn, queue_id)
            if record is None:
                return TickOutcome(queue_id, None, None, False)
            if not record.is_active:
                return TickOutcome(queue_id, record.actor_id, record.status, False)
            outcome = self._tick(conn, record, modifier, notices)

        self._publish(notices)
        return outcome

    def _tick(
        self, conn: Connection, record: QueueRecord, modifier: float, notices: list[GameEvent],
    ) -> TickOutcome:
        stop = self._precheck(record)
        if stop is not None:
            status, reason = stop
            return self._halt(conn, record, status, reason, notices)

        ctx = ActionContext(
            players=self._players, inventory=self._inventory, effects=self._effects,
            rng=self._rng, gathering_modifier=modifier,
        )
        try:
            result = perform_action(record, ctx)
        except DemesneError as exc:
            return self._halt(conn, record, QueueStatus.FAILED, exc.message, notices)
        except Exception:
            logger.exception("Action %s failed for queue %d", record.action_type.value, record.id)
            return self._halt(conn, record, QueueStatus.FAILED, UNEXPECTED_ERROR, notices)

        if not result.counts_as_progress:
            return self._halt(conn, record, QueueStatus.FAILED, result.message or "Action failed.", notices)

        return self._advance(conn, record, result, notices)

    def _precheck(self, record: QueueRecord) -> tuple[QueueStatus, str] | None:
        player = self._players.get(record.actor_id)
        if player is None:
            return QueueStatus.FAILED, PLAYER_NOT_FOUND
        if player.is_traveling:
            return QueueStatus.CANCELLED, STARTED_TRAVELING
        if player.is_in_infirmary:
            return QueueStatus.CANCELLED, SENT_TO_INFIRMARY
        return None

    def _advance(
        self, conn: Connection, record: QueueRecord, result: ActionOutcome, notices: list[GameEvent],
    ) -> TickOutcome:
        level_up = None
        if result.leveled_up and result.skill and result.new_level:
            level_up = {"skill": result.skill, "level": result.new_level}
            notices.append(GameEvent(
                at=self._now(), category="level_up", actor_ids=(record.actor_id,),
                message=f"You reached {result.skill} level {result.new_level}.",
            ))

        quantity = result.quantity if result.item_name else 1
        updated = self._store.record_progress(
            conn, record.id, xp=result.xp_awarded, quantity=quantity,
            item_name=result.item_name, level_up=level_up,
        )
        if updated is None:
            # Status changed underneath us (another process); nothing counted.
            current = self._store.get(conn, record.id)
            return TickOutcome(record.id, record.actor_id, current.status if current else None, False)

        if updated.completed >= updated.total:
            self._store.finish(conn, updated.id, QueueStatus.COMPLETED)
            logger.info("Queue %d completed: %d x %s, %d xp",
                        updated.id, updated.completed, updated.action_type.value, updated.total_xp)
            notices.append(GameEvent(
                at=self._now(), category="queue", actor_ids=(record.actor_id,),
                message=f"Your {updated.action_type.value} queue finished ({updated.completed}/{updated.total}).",
            ))
            return TickOutcome(updated.id, record.actor_id, QueueStatus.COMPLETED, True, result.message)

        return TickOutcome(updated.id, record.actor_id, QueueStatus.ACTIVE, True, result.message)

    def _halt(
        self,
        conn: Connection,
        record: QueueRecord,
        status: QueueStatus,
        reason: str,
        notices: list[GameEvent],
    ) -> TickOutcome:
        self._store.finish(conn, record.id, status, reason)
        if status is QueueStatus.FAILED:
            logger.warning("Queue %d failed at %d/%d: %s", record.id, record.completed, record.total, reason)
        else:
            logger.info("Queue %d %s: %s", record.id, status.value, reason)
        notices.append(GameEvent(
            at=self._now(), category="queue", actor_ids=(record.actor_id,),
            message=f"Your {record.action_type.value} queue stopped: {reason}",
        ))
        return TickOutcome(record.id, record.actor_id, status, False, reason)

    def _fail_if_active(self, queue_id: int, reason: str) -> None:
        try:
            with self._db.transaction(exclusive=True) as conn:
                self._store.finish(conn, queue_id, QueueStatus.FAILED, reason)
        except Exception:
            logger.exception("Could not mark queue %d as failed", queue_id)

    def _publish(self, notices: list[GameEvent]) -> None:
        if self._events is None:
            return
        for notice in notices:
            self._events.append(notice)
