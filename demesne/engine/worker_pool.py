"""Parallel worker pool consuming task queue lanes."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable

from demesne.core.enums import Lane

if TYPE_CHECKING:
    from demesne.config import ServerConfig
    from demesne.engine.task_queue import Task, TaskQueue

logger = logging.getLogger(__name__)

TaskHandler = Callable[["Task"], None]


class WorkerPool:
    """Runs registered task handlers on per-lane ThreadPoolExecutors.

    Each lane has its own dispatcher thread and its own executor, so a
    backlog on one lane never starves another. A failing handler is logged
    and skipped; it never takes the dispatcher down.
    """

    __slots__ = ("_config", "_queue", "_handlers", "_executors", "_dispatchers", "_stop")

    def __init__(self, config: ServerConfig, task_queue: TaskQueue) -> None:
        self._config = config
        self._queue = task_queue
        self._handlers: dict[str, TaskHandler] = {}
        self._executors: dict[Lane, ThreadPoolExecutor] = {}
        self._dispatchers: list[threading.Thread] = []
        self._stop = threading.Event()

    def register(self, name: str, handler: TaskHandler) -> None:
        self._handlers[name] = handler

    @property
    def running(self) -> bool:
        return bool(self._dispatchers) and not self._stop.is_set()

    # -- background mode --

    def start(self, lanes: tuple[Lane, ...] = tuple(Lane)) -> None:
        if self.running:
            return
        self._stop.clear()
        for lane in lanes:
            if self._config.num_workers > 1:
                self._executors[lane] = ThreadPoolExecutor(
                    max_workers=self._config.num_workers,
                    thread_name_prefix=f"worker-{lane.value}",
                )
            thread = threading.Thread(
                target=self._dispatch_loop, args=(lane,), name=f"lane-{lane.value}", daemon=True,
            )
            thread.start()
            self._dispatchers.append(thread)
        logger.info("WorkerPool started (%d workers per lane, lanes=%s)",
                    self._config.num_workers, ", ".join(lane.value for lane in lanes))

    def shutdown(self) -> None:
        self._stop.set()
        self._queue.wake_all()
        for thread in self._dispatchers:
            thread.join(timeout=5.0)
        self._dispatchers.clear()
        for executor in self._executors.values():
            executor.shutdown(wait=False, cancel_futures=True)
        self._executors.clear()
        logger.info("WorkerPool stopped.")

    def _dispatch_loop(self, lane: Lane) -> None:
        executor = self._executors.get(lane)
        while not self._stop.is_set():
            task = self._queue.get(lane, timeout=self._config.lane_poll_seconds)
            if task is None:
                continue
            # Single-worker mode: run inline
            if executor is None:
                self.execute(task)
            else:
                executor.submit(self.execute, task)

    # -- inline mode --

    def execute(self, task: Task) -> bool:
        """Run one task's handler. Returns False if it had no handler or raised."""
        handler = self._handlers.get(task.name)
        if handler is None:
            logger.error("No handler registered for task %s — dropping", task.name)
            return False
        try:
            handler(task)
        except Exception:
            logger.exception("Task %r failed — skipping", task)
            return False
        return True

    def run_pending(self, lane: Lane, include_delayed: bool = False, max_tasks: int = 10_000) -> int:
        """Run queued tasks on the calling thread until *lane* is empty.

        With ``include_delayed`` tasks scheduled for later run immediately,
        which lets a chained job run to completion synchronously.
        Returns the number of tasks executed.
        """
        executed = 0
        while executed < max_tasks:
            task = self._queue.pop_next(lane, include_delayed=include_delayed)
            if task is None:
                break
            self.execute(task)
            executed += 1
        return executed
