"""Narrow capability interfaces the core consumes from its collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from demesne.core.enums import Lane
    from demesne.engine.task_queue import Task
    from demesne.systems.players import Player


class EffectSource(Protocol):
    """Additive stacking across every active source (beliefs, blessings, buffs)."""

    def get_effect(self, actor_id: int, key: str) -> float: ...


class Inventory(Protocol):
    def add_item(self, actor_id: int, item: str, quantity: int = 1) -> bool: ...

    def remove_item(self, actor_id: int, item: str, quantity: int = 1) -> bool: ...

    def has_item(self, actor_id: int, item: str, quantity: int = 1) -> bool: ...

    def credit_gold(self, actor_id: int, amount: int) -> int: ...

    def debit_gold(self, actor_id: int, amount: int) -> bool: ...


class PlayerDirectory(Protocol):
    def get(self, actor_id: int) -> Player | None: ...

    def spend_energy(self, actor_id: int, amount: int) -> bool: ...

    def add_xp(self, actor_id: int, skill: str, xp: int) -> tuple[int, int]: ...


class TaskSink(Protocol):
    """Fire-and-forget dispatch; delivery is at-least-once."""

    def enqueue(self, task: Task, lane: Lane, delay: float = 0.0) -> None: ...


class WorldSimulation(Protocol):
    """World-wide jobs fanned out by the calendar."""

    def age_npcs(self, year: int) -> None: ...

    def reproduce_npcs(self, year: int) -> None: ...

    def consume_food(self, year: int, season: str, week: int) -> None: ...
