"""ServerRuntime — builds the services and runs background maintenance.

Request handlers call the manager and the calendar synchronously. Queue
ticks and world jobs run on the worker pool. One maintenance thread reaps
stale queues and asks the calendar to tick on fixed intervals.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Callable

from demesne.engine.action_queue import PROCESS_TASK, ActionQueueManager
from demesne.engine.calendar import WorldClockScheduler
from demesne.engine.queue_worker import ActionQueueWorker
from demesne.engine.task_queue import TaskQueue
from demesne.engine.worker_pool import WorkerPool
from demesne.engine.world_jobs import RecordingWorldSimulation, register_world_jobs
from demesne.storage.clock_store import WorldClockStore
from demesne.storage.db import Database
from demesne.storage.queue_store import QueueStore
from demesne.systems.effects import EffectLedger
from demesne.systems.inventory import InventoryLedger
from demesne.systems.players import PlayerRegistry
from demesne.systems.rng import DeterministicRNG
from demesne.utils.event_log import EventLog

if TYPE_CHECKING:
    from demesne.config import ServerConfig
    from demesne.core.interfaces import WorldSimulation

logger = logging.getLogger(__name__)


class ServerRuntime:
    """Owns every long-lived component of one server process."""

    def __init__(
        self,
        config: ServerConfig,
        now: Callable[[], float] = time.time,
        world: WorldSimulation | None = None,
    ) -> None:
        self.config = config
        self.now = now

        self.events = EventLog()
        self.db = Database(config.db_path)
        self.tasks = TaskQueue(now=now)
        self.pool = WorkerPool(config, self.tasks)

        self.players = PlayerRegistry(starting_energy=config.starting_energy)
        self.inventory = InventoryLedger(default_slots=config.inventory_slots)
        self.effects = EffectLedger(now=now)
        self.rng = DeterministicRNG(config.world_seed)
        self.world = world or RecordingWorldSimulation(self.events, now=now)

        self.calendar = WorldClockScheduler(
            config, self.db, WorldClockStore(config.weeks_per_season), self.tasks, now, events=self.events,
        )
        queue_store = QueueStore(now)
        self.queues = ActionQueueManager(config, self.db, queue_store, self.tasks, now, events=self.events)
        self.worker = ActionQueueWorker(
            config, self.db, queue_store, self.tasks,
            players=self.players, inventory=self.inventory, effects=self.effects, rng=self.rng,
            now=now, gathering_modifier=self.calendar.get_gathering_modifier, events=self.events,
        )

        self.pool.register(PROCESS_TASK, self.worker.handle)
        register_world_jobs(self.pool, self.world)

        self._thread: threading.Thread | None = None
        self._stop_requested = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_requested.clear()
        self.pool.start()
        self._thread = threading.Thread(target=self._maintenance_loop, name="maintenance", daemon=True)
        self._thread.start()
        logger.info("ServerRuntime started (db=%s)", self.db.path)

    def stop(self) -> None:
        self._stop_requested.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self._thread = None
        self.pool.shutdown()
        logger.info("ServerRuntime stopped.")

    def close(self) -> None:
        self.stop()
        self.db.close()

    def run_maintenance(self) -> tuple[int, bool]:
        """One maintenance pass: reap stale queues, then tick the calendar if due."""
        reaped = self.queues.reap_stale()
        ticked = self.calendar.process_tick()
        return reaped, ticked

    def _maintenance_loop(self) -> None:
        cfg = self.config
        next_reap = 0.0
        next_tick = 0.0
        while not self._stop_requested.is_set():
            mono = time.monotonic()
            try:
                if mono >= next_reap:
                    self.queues.reap_stale()
                    next_reap = mono + cfg.reaper_interval_seconds
                if mono >= next_tick:
                    self.calendar.process_tick()
                    next_tick = mono + cfg.calendar_poll_seconds
            except Exception:
                logger.exception("Maintenance pass failed")
            self._stop_requested.wait(min(cfg.reaper_interval_seconds, cfg.calendar_poll_seconds, 1.0))
