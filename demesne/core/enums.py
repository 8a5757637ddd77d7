"""Enumerations used throughout the server."""

from __future__ import annotations

from enum import Enum, IntEnum, unique


@unique
class QueueStatus(str, Enum):
    """Lifecycle states of an action queue. Only ACTIVE has outgoing transitions."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not QueueStatus.ACTIVE


@unique
class ActionType(str, Enum):
    """Repeatable player actions that can be queued."""

    COOK = "cook"
    CRAFT = "craft"
    SMELT = "smelt"
    GATHER = "gather"
    TRAIN = "train"
    AGILITY = "agility"


@unique
class Season(str, Enum):
    """Seasons in calendar order. Year rolls over when WINTER wraps to SPRING."""

    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"

    @property
    def position(self) -> int:
        return SEASON_ORDER.index(self)

    @property
    def label(self) -> str:
        return self.value.capitalize()


SEASON_ORDER: tuple[Season, ...] = (Season.SPRING, Season.SUMMER, Season.AUTUMN, Season.WINTER)


@unique
class Lane(str, Enum):
    """Task queue lanes. Each lane is drained independently."""

    ACTION_QUEUE = "action-queue"
    WORLD_EVENTS = "world-events"


@unique
class Domain(IntEnum):
    """RNG domains for deterministic randomness isolation."""

    GATHER = 0
    AGILITY = 1
    CRAFT = 2
    GATHER_BONUS = 3
