"""Thread-safe bounded log of player-facing notices exposed via the API."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GameEvent:
    """A single notice: queue finished, level gained, season turned."""

    at: float
    category: str
    message: str
    actor_ids: tuple[int, ...] = ()  # Empty for world-wide notices


class EventLog:
    """Bounded event log. Writers append; readers snapshot a slice.

    Oldest events fall off once ``max_events`` is reached.
    """

    __slots__ = ("_buffer", "_lock")

    def __init__(self, max_events: int = 5000) -> None:
        self._buffer: deque[GameEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: GameEvent) -> None:
        with self._lock:
            self._buffer.append(event)

    def for_actor(self, actor_id: int, count: int = 50) -> list[GameEvent]:
        """Most recent events addressed to *actor_id* or to everyone."""
        with self._lock:
            items = [e for e in self._buffer if not e.actor_ids or actor_id in e.actor_ids]
        return items[-count:]

    def latest(self, count: int = 50) -> list[GameEvent]:
        """Return the *count* most recent events."""
        with self._lock:
            items = list(self._buffer)
        return items[-count:]

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)
