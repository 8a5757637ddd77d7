"""Per-actor item stacks and gold, with a slot limit."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field


@dataclass(slots=True)
class Satchel:
    """Mutable item container. Each distinct item takes one slot; stacks are unbounded."""

    items: Counter = field(default_factory=Counter)
    max_slots: int = 28
    gold: int = 0

    @property
    def used_slots(self) -> int:
        return sum(1 for q in self.items.values() if q > 0)

    def can_add(self, item: str) -> bool:
        return self.items.get(item, 0) > 0 or self.used_slots < self.max_slots

    def count(self, item: str) -> int:
        return self.items.get(item, 0)


class InventoryLedger:
    """Thread-safe inventory and gold service keyed by actor id."""

    __slots__ = ("_satchels", "_lock", "_default_slots")

    def __init__(self, default_slots: int = 28) -> None:
        self._satchels: dict[int, Satchel] = {}
        self._lock = threading.Lock()
        self._default_slots = default_slots

    def _satchel(self, actor_id: int) -> Satchel:
        satchel = self._satchels.get(actor_id)
        if satchel is None:
            satchel = Satchel(max_slots=self._default_slots)
            self._satchels[actor_id] = satchel
        return satchel

    def add_item(self, actor_id: int, item: str, quantity: int = 1) -> bool:
        if quantity <= 0:
            return False
        with self._lock:
            satchel = self._satchel(actor_id)
            if not satchel.can_add(item):
                return False
            satchel.items[item] += quantity
            return True

    def remove_item(self, actor_id: int, item: str, quantity: int = 1) -> bool:
        if quantity <= 0:
            return False
        with self._lock:
            satchel = self._satchel(actor_id)
            if satchel.count(item) < quantity:
                return False
            satchel.items[item] -= quantity
            if satchel.items[item] <= 0:
                del satchel.items[item]
            return True

    def has_item(self, actor_id: int, item: str, quantity: int = 1) -> bool:
        with self._lock:
            return self._satchel(actor_id).count(item) >= quantity

    def count_item(self, actor_id: int, item: str) -> int:
        with self._lock:
            return self._satchel(actor_id).count(item)

    def credit_gold(self, actor_id: int, amount: int) -> int:
        """Add gold and return the new balance."""
        with self._lock:
            satchel = self._satchel(actor_id)
            satchel.gold += max(amount, 0)
            return satchel.gold

    def debit_gold(self, actor_id: int, amount: int) -> bool:
        with self._lock:
            satchel = self._satchel(actor_id)
            if amount < 0 or satchel.gold < amount:
                return False
            satchel.gold -= amount
            return True

    def gold(self, actor_id: int) -> int:
        with self._lock:
            return self._satchel(actor_id).gold

    def set_slots(self, actor_id: int, max_slots: int) -> None:
        with self._lock:
            self._satchel(actor_id).max_slots = max_slots
