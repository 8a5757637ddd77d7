"""Collaborator services: RNG, effects, inventory, players."""

from demesne.systems.effects import EffectGrant, EffectLedger
from demesne.systems.inventory import InventoryLedger
from demesne.systems.players import Player, PlayerRegistry
from demesne.systems.rng import DeterministicRNG

__all__ = [
    "DeterministicRNG",
    "EffectGrant",
    "EffectLedger",
    "InventoryLedger",
    "Player",
    "PlayerRegistry",
]
