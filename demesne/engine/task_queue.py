"""Thread-safe task queue with named lanes and delayed delivery."""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from demesne.core.enums import Lane


@dataclass(frozen=True, slots=True)
class Task:
    """A fire-and-forget unit of background work.

    ``name`` selects the handler registered on the worker pool; ``payload``
    is handler-specific and must be JSON-friendly.
    """

    name: str
    payload: dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"Task({self.name}, {self.payload})"


class TaskQueue:
    """MPMC queue partitioned into lanes.

    Producers ``enqueue``; each lane's consumer blocks in ``get``. Tasks
    with a delay are held until their due time. Within a lane, due tasks
    come out in due-time order, ties in enqueue order.
    """

    __slots__ = ("_lanes", "_cond", "_seq", "_now")

    def __init__(self, now: Callable[[], float] = time.time) -> None:
        self._lanes: dict[Lane, list[tuple[float, int, Task]]] = {lane: [] for lane in Lane}
        self._cond = threading.Condition()
        self._seq = itertools.count()
        self._now = now

    def enqueue(self, task: Task, lane: Lane, delay: float = 0.0) -> None:
        """Thread-safe enqueue."""
        due = self._now() + max(delay, 0.0)
        with self._cond:
            heapq.heappush(self._lanes[lane], (due, next(self._seq), task))
            self._cond.notify_all()

    def get(self, lane: Lane, timeout: float | None = None) -> Task | None:
        """Block until a due task is available on *lane*, or until *timeout* elapses."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while True:
                heap = self._lanes[lane]
                wait: float | None = None
                if heap:
                    due = heap[0][0]
                    now = self._now()
                    if due <= now:
                        return heapq.heappop(heap)[2]
                    wait = due - now
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return None
                    wait = remaining if wait is None else min(wait, remaining)
                self._cond.wait(wait)

    def pop_next(self, lane: Lane, include_delayed: bool = False) -> Task | None:
        """Non-blocking pop of the earliest task; delayed tasks only if *include_delayed*."""
        with self._cond:
            heap = self._lanes[lane]
            if not heap:
                return None
            if not include_delayed and heap[0][0] > self._now():
                return None
            return heapq.heappop(heap)[2]

    def drain(self, lane: Lane) -> list[Task]:
        """Remove and return every task on *lane*, due or not, in due order."""
        with self._cond:
            heap = self._lanes[lane]
            tasks = [heapq.heappop(heap)[2] for _ in range(len(heap))]
        return tasks

    def pending(self, lane: Lane) -> list[Task]:
        """Snapshot of queued tasks on *lane* without removing them."""
        with self._cond:
            return [entry[2] for entry in sorted(self._lanes[lane])]

    def size(self, lane: Lane) -> int:
        with self._cond:
            return len(self._lanes[lane])

    def wake_all(self) -> None:
        """Wake blocked consumers (used on shutdown)."""
        with self._cond:
            self._cond.notify_all()
