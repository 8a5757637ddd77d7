"""Effect aggregation — additive modifiers from beliefs, blessings and buffs.

Design:
  - Each source grants flat values for named keys, e.g. ``gather_yield_bonus``.
  - Sources may expire; expired sources are ignored and pruned lazily.
  - ``get_effect`` sums every live source of the actor for one key.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass(slots=True)
class EffectGrant:
    """One source of modifiers attached to an actor."""

    source: str                          # e.g. "blessing:harvest", "belief:industrious"
    values: dict[str, float] = field(default_factory=dict)
    expires_at: float | None = None      # None = permanent until removed

    def active(self, now: float) -> bool:
        return self.expires_at is None or self.expires_at > now


class EffectLedger:
    """Thread-safe in-memory effect aggregator."""

    __slots__ = ("_grants", "_lock", "_now")

    def __init__(self, now: Callable[[], float] = time.time) -> None:
        self._grants: dict[int, dict[str, EffectGrant]] = {}
        self._lock = threading.Lock()
        self._now = now

    def grant(self, actor_id: int, grant: EffectGrant) -> None:
        """Attach *grant*, replacing any previous grant from the same source."""
        with self._lock:
            self._grants.setdefault(actor_id, {})[grant.source] = grant

    def revoke(self, actor_id: int, source: str) -> bool:
        with self._lock:
            return self._grants.get(actor_id, {}).pop(source, None) is not None

    def get_effect(self, actor_id: int, key: str) -> float:
        now = self._now()
        with self._lock:
            grants = self._grants.get(actor_id)
            if not grants:
                return 0.0
            expired = [s for s, g in grants.items() if not g.active(now)]
            for source in expired:
                del grants[source]
            return sum(g.values.get(key, 0.0) for g in grants.values())

    def sources(self, actor_id: int) -> list[EffectGrant]:
        now = self._now()
        with self._lock:
            return [g for g in self._grants.get(actor_id, {}).values() if g.active(now)]
