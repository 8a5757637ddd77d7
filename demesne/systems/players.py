"""Player state the worker needs: energy, whereabouts and skill XP."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from demesne.core.recipes import level_for_xp


@dataclass(slots=True)
class Player:
    id: int
    name: str = ""
    energy: int = 100
    max_energy: int = 100
    is_traveling: bool = False
    is_in_infirmary: bool = False
    skill_xp: dict[str, int] = field(default_factory=dict)

    def skill_level(self, skill: str) -> int:
        return level_for_xp(self.skill_xp.get(skill, 0))


class PlayerRegistry:
    """Thread-safe in-memory player directory."""

    __slots__ = ("_players", "_lock", "_starting_energy")

    def __init__(self, starting_energy: int = 100) -> None:
        self._players: dict[int, Player] = {}
        self._lock = threading.Lock()
        self._starting_energy = starting_energy

    def register(self, actor_id: int, name: str = "", **overrides) -> Player:
        player = Player(
            id=actor_id, name=name or f"player-{actor_id}",
            energy=self._starting_energy, max_energy=self._starting_energy,
        )
        for key, value in overrides.items():
            setattr(player, key, value)
        with self._lock:
            self._players[actor_id] = player
        return player

    def get(self, actor_id: int) -> Player | None:
        with self._lock:
            return self._players.get(actor_id)

    def spend_energy(self, actor_id: int, amount: int) -> bool:
        with self._lock:
            player = self._players.get(actor_id)
            if player is None or player.energy < amount:
                return False
            player.energy -= amount
            return True

    def restore_energy(self, actor_id: int, amount: int) -> None:
        with self._lock:
            player = self._players.get(actor_id)
            if player is not None:
                player.energy = min(player.energy + amount, player.max_energy)

    def add_xp(self, actor_id: int, skill: str, xp: int) -> tuple[int, int]:
        """Grant XP; returns (old_level, new_level)."""
        with self._lock:
            player = self._players.get(actor_id)
            if player is None:
                return 1, 1
            old_level = player.skill_level(skill)
            player.skill_xp[skill] = player.skill_xp.get(skill, 0) + max(xp, 0)
            return old_level, player.skill_level(skill)

    def set_location_state(
        self, actor_id: int, traveling: bool | None = None, infirmary: bool | None = None,
    ) -> None:
        with self._lock:
            player = self._players.get(actor_id)
            if player is None:
                return
            if traveling is not None:
                player.is_traveling = traveling
            if infirmary is not None:
                player.is_in_infirmary = infirmary
