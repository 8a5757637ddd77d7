"""Handlers for the world-wide jobs fanned out by the calendar."""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Callable

from demesne.engine.calendar import AGE_NPCS, FOOD_CONSUMPTION, NPC_REPRODUCTION
from demesne.utils.event_log import GameEvent

if TYPE_CHECKING:
    from demesne.core.interfaces import WorldSimulation
    from demesne.engine.task_queue import Task
    from demesne.engine.worker_pool import WorkerPool
    from demesne.utils.event_log import EventLog

logger = logging.getLogger(__name__)


class RecordingWorldSimulation:
    """Default world collaborator: records each job in the event log.

    The NPC and settlement economies live outside this server; deployments
    that host them pass their own ``WorldSimulation``.
    """

    def __init__(self, events: EventLog | None = None, now: Callable[[], float] = time.time) -> None:
        self._events = events
        self._now = now
        self._lock = threading.Lock()
        self.calls: list[tuple[str, tuple]] = []

    def _record(self, name: str, args: tuple, message: str) -> None:
        with self._lock:
            self.calls.append((name, args))
        if self._events is not None:
            self._events.append(GameEvent(at=self._now(), category="world", message=message))

    def age_npcs(self, year: int) -> None:
        self._record(AGE_NPCS, (year,), f"The villagers grow a year older (Year {year}).")

    def reproduce_npcs(self, year: int) -> None:
        self._record(NPC_REPRODUCTION, (year,), f"New families settle in for Year {year}.")

    def consume_food(self, year: int, season: str, week: int) -> None:
        self._record(FOOD_CONSUMPTION, (year, season, week), f"Settlements eat through week {week} stores.")


def register_world_jobs(pool: WorkerPool, world: WorldSimulation) -> None:
    """Bind the calendar's downstream task names to *world*."""

    def age(task: Task) -> None:
        year = int(task.payload["year"])
        logger.info("Aging NPCs for year %d", year)
        world.age_npcs(year)

    def reproduce(task: Task) -> None:
        year = int(task.payload["year"])
        logger.info("Processing NPC reproduction for year %d", year)
        world.reproduce_npcs(year)

    def eat(task: Task) -> None:
        p = task.payload
        logger.info("Processing food consumption for week %s of %s, year %s", p["week"], p["season"], p["year"])
        world.consume_food(int(p["year"]), str(p["season"]), int(p["week"]))

    pool.register(AGE_NPCS, age)
    pool.register(NPC_REPRODUCTION, reproduce)
    pool.register(FOOD_CONSUMPTION, eat)
