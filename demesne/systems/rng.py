"""Domain-separated deterministic RNG using xxhash.

A tick's outcome depends only on WorldSeed + queue id + tick index, so a
retried or re-dispatched tick rolls the same dice.

Formula: RNG_Value = Hash(WorldSeed, Domain, QueueID, Tick)
"""

from __future__ import annotations

import struct
from typing import Sequence, TypeVar

import xxhash

from demesne.core.enums import Domain

T = TypeVar("T")


class DeterministicRNG:
    """Stateless domain-separated pseudo-random number generator.

    Each call is a pure function of (seed, domain, key, tick) —
    no internal mutable state, therefore fully thread-safe.
    """

    __slots__ = ("_seed",)

    _MAX_UINT64 = (1 << 64) - 1

    def __init__(self, seed: int) -> None:
        self._seed = seed

    def _hash(self, domain: Domain, key: int, tick: int) -> int:
        payload = struct.pack("<qiqq", self._seed, domain.value, key, tick)
        return xxhash.xxh64(payload).intdigest()

    def next_float(self, domain: Domain, key: int, tick: int) -> float:
        """Return a deterministic float in [0.0, 1.0)."""
        return self._hash(domain, key, tick) / (self._MAX_UINT64 + 1)

    def next_int(self, domain: Domain, key: int, tick: int, low: int, high: int) -> int:
        """Return a deterministic integer in [low, high] inclusive."""
        f = self.next_float(domain, key, tick)
        return low + int(f * (high - low + 1))

    def next_bool(self, domain: Domain, key: int, tick: int, probability: float = 0.5) -> bool:
        """Return True with the given probability."""
        return self.next_float(domain, key, tick) < probability

    def weighted_choice(self, domain: Domain, key: int, tick: int, table: Sequence[tuple[T, int]]) -> T:
        """Pick one entry of ``(value, weight)`` pairs proportionally to weight."""
        total = sum(w for _, w in table if w > 0)
        if total <= 0:
            raise ValueError("weighted_choice needs at least one positive weight")
        roll = self.next_float(domain, key, tick) * total
        for value, weight in table:
            if weight <= 0:
                continue
            if roll < weight:
                return value
            roll -= weight
        return table[-1][0]
