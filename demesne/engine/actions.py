"""Per-action-type tick logic for queued actions.

Each handler performs exactly one unit of its action for one queue record
and reports what happened as an :class:`ActionOutcome`. Handlers mutate
collaborators (energy, items, gold, XP) but never the queue record; the
worker owns that.

Raises:
    WorkerFatal: the queued parameters can never succeed (unknown recipe...).
    InventoryFull: the reward could not be delivered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from demesne.core.enums import ActionType, Domain
from demesne.core.errors import InventoryFull, WorkerFatal
from demesne.core.recipes import (
    AGILITY_OBSTACLES,
    GATHER_ACTIVITIES,
    RECIPES,
    TRAINING_EXERCISES,
    item_label,
)

if TYPE_CHECKING:
    from demesne.core.interfaces import EffectSource, Inventory, PlayerDirectory
    from demesne.core.models import QueueRecord
    from demesne.systems.rng import DeterministicRNG

logger = logging.getLogger(__name__)

NOT_ENOUGH_ENERGY = "You don't have enough energy."
MISSING_MATERIALS = "You are missing the required materials."


@dataclass(frozen=True, slots=True)
class ActionContext:
    """Collaborators and per-tick modifiers handed to a handler."""

    players: PlayerDirectory
    inventory: Inventory
    effects: EffectSource
    rng: DeterministicRNG
    gathering_modifier: float = 1.0


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    success: bool
    message: str
    xp_awarded: int = 0
    item_name: str | None = None
    quantity: int = 0
    skill: str | None = None
    leveled_up: bool = False
    new_level: int | None = None
    failed_attempt: bool = False   # Attempt was made and counts, but earned nothing

    @property
    def counts_as_progress(self) -> bool:
        return self.success or self.failed_attempt


def _param(record: QueueRecord, key: str) -> str:
    value = record.action_params.get(key)
    if not value or not isinstance(value, str):
        raise WorkerFatal(f"Missing '{key}' for {record.action_type.value}.")
    return value


def _percent(ctx: ActionContext, actor_id: int, key: str) -> float:
    return 1.0 + ctx.effects.get_effect(actor_id, key) / 100.0


def _award_xp(ctx: ActionContext, actor_id: int, action: ActionType, skill: str, base_xp: int) -> tuple[int, bool, int | None]:
    """Grant XP with the action's bonus applied. Returns (xp, leveled_up, new_level)."""
    xp = max(int(round(base_xp * _percent(ctx, actor_id, f"{action.value}_xp_bonus"))), 0)
    old_level, new_level = ctx.players.add_xp(actor_id, skill, xp)
    if new_level > old_level:
        logger.debug("Actor %d reached %s level %d", actor_id, skill, new_level)
        return xp, True, new_level
    return xp, False, None


class TrainAction:
    """Exercise at a training yard: energy (and maybe gold) for XP."""

    @staticmethod
    def perform(record: QueueRecord, ctx: ActionContext) -> ActionOutcome:
        name = _param(record, "exercise")
        exercise = TRAINING_EXERCISES.get(name)
        if exercise is None:
            raise WorkerFatal(f"Unknown exercise: {name}.")
        actor = record.actor_id

        if exercise.gold_fee and not ctx.inventory.debit_gold(actor, exercise.gold_fee):
            return ActionOutcome(False, "You cannot afford the training fee.")
        if not ctx.players.spend_energy(actor, exercise.energy_cost):
            if exercise.gold_fee:
                ctx.inventory.credit_gold(actor, exercise.gold_fee)
            return ActionOutcome(False, NOT_ENOUGH_ENERGY)

        xp, leveled, level = _award_xp(ctx, actor, ActionType.TRAIN, exercise.skill, exercise.xp)
        return ActionOutcome(
            True, f"You trained {name}.", xp_awarded=xp, skill=exercise.skill,
            leveled_up=leveled, new_level=level,
        )


class GatherAction:
    """Gather one haul from a weighted resource table, scaled by season and effects."""

    @staticmethod
    def perform(record: QueueRecord, ctx: ActionContext) -> ActionOutcome:
        name = _param(record, "activity")
        activity = GATHER_ACTIVITIES.get(name)
        if activity is None:
            raise WorkerFatal(f"Unknown activity: {name}.")
        actor = record.actor_id
        tick = record.completed

        pinned = record.action_params.get("resource")
        if pinned:
            if pinned not in {item for item, _ in activity.resources}:
                raise WorkerFatal(f"{item_label(str(pinned))} cannot be found by {name}.")
            resource = pinned
        else:
            resource = ctx.rng.weighted_choice(Domain.GATHER, record.id, tick, activity.resources)

        player = ctx.players.get(actor)
        if player is None or player.energy < activity.energy_cost:
            return ActionOutcome(False, NOT_ENOUGH_ENERGY)

        multiplier = ctx.gathering_modifier * _percent(ctx, actor, "gather_yield_bonus")
        quantity = int(multiplier)
        if ctx.rng.next_bool(Domain.GATHER_BONUS, record.id, tick, multiplier - quantity):
            quantity += 1
        quantity = max(quantity, 1)

        if not ctx.inventory.add_item(actor, resource, quantity):
            raise InventoryFull()
        ctx.players.spend_energy(actor, activity.energy_cost)

        xp, leveled, level = _award_xp(ctx, actor, ActionType.GATHER, activity.skill, activity.xp)
        return ActionOutcome(
            True, f"You gathered {quantity} {item_label(resource)}.", xp_awarded=xp,
            item_name=item_label(resource), quantity=quantity, skill=activity.skill,
            leveled_up=leveled, new_level=level,
        )


class RecipeAction:
    """Cook, craft or smelt: consume inputs, produce one batch of output."""

    @staticmethod
    def perform(record: QueueRecord, ctx: ActionContext) -> ActionOutcome:
        name = _param(record, "recipe")
        recipe = RECIPES.get(record.action_type, {}).get(name)
        if recipe is None:
            raise WorkerFatal(f"Unknown recipe: {name}.")
        actor = record.actor_id

        if not all(ctx.inventory.has_item(actor, item, qty) for item, qty in recipe.inputs):
            return ActionOutcome(False, MISSING_MATERIALS)
        player = ctx.players.get(actor)
        if player is None or player.energy < recipe.energy_cost:
            return ActionOutcome(False, NOT_ENOUGH_ENERGY)

        taken: list[tuple[str, int]] = []
        for item, qty in recipe.inputs:
            if not ctx.inventory.remove_item(actor, item, qty):
                for back, back_qty in taken:
                    ctx.inventory.add_item(actor, back, back_qty)
                return ActionOutcome(False, MISSING_MATERIALS)
            taken.append((item, qty))

        if not ctx.inventory.add_item(actor, recipe.output, recipe.output_quantity):
            for item, qty in taken:
                ctx.inventory.add_item(actor, item, qty)
            raise InventoryFull()
        ctx.players.spend_energy(actor, recipe.energy_cost)

        xp, leveled, level = _award_xp(ctx, actor, record.action_type, recipe.skill, recipe.xp)
        return ActionOutcome(
            True, f"You made {recipe.output_quantity} {item_label(recipe.output)}.", xp_awarded=xp,
            item_name=item_label(recipe.output), quantity=recipe.output_quantity, skill=recipe.skill,
            leveled_up=leveled, new_level=level,
        )


class AgilityAction:
    """Run an obstacle. A fall costs energy, earns nothing, but still counts."""

    @staticmethod
    def perform(record: QueueRecord, ctx: ActionContext) -> ActionOutcome:
        name = _param(record, "obstacle")
        obstacle = AGILITY_OBSTACLES.get(name)
        if obstacle is None:
            raise WorkerFatal(f"Unknown obstacle: {name}.")
        actor = record.actor_id

        if not ctx.players.spend_energy(actor, obstacle.energy_cost):
            return ActionOutcome(False, NOT_ENOUGH_ENERGY)

        if not ctx.rng.next_bool(Domain.AGILITY, record.id, record.completed, obstacle.success_chance):
            return ActionOutcome(False, f"You fell from the {item_label(name).lower()}.", failed_attempt=True)

        xp, leveled, level = _award_xp(ctx, actor, ActionType.AGILITY, "agility", obstacle.xp)
        return ActionOutcome(
            True, f"You cleared the {item_label(name).lower()}.", xp_awarded=xp, skill="agility",
            leveled_up=leveled, new_level=level,
        )


ACTION_HANDLERS = {
    ActionType.TRAIN: TrainAction,
    ActionType.GATHER: GatherAction,
    ActionType.COOK: RecipeAction,
    ActionType.CRAFT: RecipeAction,
    ActionType.SMELT: RecipeAction,
    ActionType.AGILITY: AgilityAction,
}


def perform_action(record: QueueRecord, ctx: ActionContext) -> ActionOutcome:
    handler = ACTION_HANDLERS.get(record.action_type)
    if handler is None:
        raise WorkerFatal("Unknown action type.")
    return handler.perform(record, ctx)
