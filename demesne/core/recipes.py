"""Content tables for queued actions: exercises, gathering, recipes, obstacles.

Values are illustrative tuning, not engine rules. Handlers in
``demesne.engine.actions`` read them by name from the queue's action params.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import isqrt

from demesne.core.enums import ActionType

MAX_SKILL_LEVEL = 99
XP_LEVEL_SCALE = 50  # level n needs XP_LEVEL_SCALE * (n - 1)^2 total xp


@dataclass(frozen=True, slots=True)
class Exercise:
    skill: str
    energy_cost: int
    xp: int
    gold_fee: int = 0


@dataclass(frozen=True, slots=True)
class GatherActivity:
    skill: str
    energy_cost: int
    xp: int
    resources: tuple[tuple[str, int], ...]   # (item, weight)


@dataclass(frozen=True, slots=True)
class Recipe:
    output: str
    inputs: tuple[tuple[str, int], ...]      # (item, quantity)
    skill: str
    xp: int
    energy_cost: int = 1
    output_quantity: int = 1


@dataclass(frozen=True, slots=True)
class Obstacle:
    success_chance: float
    xp: int
    energy_cost: int


TRAINING_EXERCISES: dict[str, Exercise] = {
    "attack": Exercise(skill="attack", energy_cost=2, xp=12),
    "strength": Exercise(skill="strength", energy_cost=2, xp=12),
    "defense": Exercise(skill="defense", energy_cost=2, xp=12),
    "sparring": Exercise(skill="attack", energy_cost=4, xp=30, gold_fee=5),
}

GATHER_ACTIVITIES: dict[str, GatherActivity] = {
    "mining": GatherActivity(
        skill="mining", energy_cost=3, xp=15,
        resources=(("copper_ore", 60), ("tin_ore", 30), ("iron_ore", 10)),
    ),
    "fishing": GatherActivity(
        skill="fishing", energy_cost=2, xp=12,
        resources=(("raw_shrimp", 70), ("raw_trout", 25), ("raw_salmon", 5)),
    ),
    "woodcutting": GatherActivity(
        skill="woodcutting", energy_cost=3, xp=14,
        resources=(("oak_log", 70), ("willow_log", 25), ("yew_log", 5)),
    ),
    "herbalism": GatherActivity(
        skill="herbalism", energy_cost=2, xp=10,
        resources=(("marigold", 60), ("nettle", 35), ("moonpetal", 5)),
    ),
}

RECIPES: dict[ActionType, dict[str, Recipe]] = {
    ActionType.COOK: {
        "bread": Recipe(output="bread", inputs=(("flour", 1),), skill="cooking", xp=10),
        "cooked_shrimp": Recipe(output="cooked_shrimp", inputs=(("raw_shrimp", 1),), skill="cooking", xp=8),
        "grilled_trout": Recipe(output="grilled_trout", inputs=(("raw_trout", 1),), skill="cooking", xp=18),
    },
    ActionType.SMELT: {
        "bronze_bar": Recipe(
            output="bronze_bar", inputs=(("copper_ore", 1), ("tin_ore", 1)),
            skill="smithing", xp=12, energy_cost=2,
        ),
        "iron_bar": Recipe(output="iron_bar", inputs=(("iron_ore", 2),), skill="smithing", xp=25, energy_cost=2),
    },
    ActionType.CRAFT: {
        "oak_plank": Recipe(output="oak_plank", inputs=(("oak_log", 1),), skill="crafting", xp=6, output_quantity=2),
        "bronze_dagger": Recipe(output="bronze_dagger", inputs=(("bronze_bar", 1),), skill="smithing", xp=20, energy_cost=3),
        "iron_sword": Recipe(output="iron_sword", inputs=(("iron_bar", 2),), skill="smithing", xp=45, energy_cost=4),
    },
}

AGILITY_OBSTACLES: dict[str, Obstacle] = {
    "log_balance": Obstacle(success_chance=0.85, xp=10, energy_cost=2),
    "rope_swing": Obstacle(success_chance=0.7, xp=20, energy_cost=3),
    "wall_climb": Obstacle(success_chance=0.55, xp=35, energy_cost=4),
}


def level_for_xp(xp: int) -> int:
    """Skill level for a total amount of XP (1..MAX_SKILL_LEVEL)."""
    if xp <= 0:
        return 1
    return min(1 + isqrt(xp // XP_LEVEL_SCALE), MAX_SKILL_LEVEL)


def item_label(item: str) -> str:
    return item.replace("_", " ").title()
