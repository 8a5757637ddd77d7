"""Persisted entities and the result type returned by queue operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from demesne.core.enums import ActionType, QueueStatus, Season
from demesne.core.errors import DemesneError, ErrorCode
from demesne.core.seasons import SEASON_DEFS, WEEKS_PER_SEASON


def iso_timestamp(ts: float | None) -> str | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


@dataclass(slots=True)
class QueueRecord:
    """One run of a queued action. Rows are never deleted, only dismissed."""

    id: int
    actor_id: int
    action_type: ActionType
    action_params: dict[str, Any]
    total: int
    created_at: float
    updated_at: float
    status: QueueStatus = QueueStatus.ACTIVE
    completed: int = 0
    total_xp: int = 0
    total_quantity: int = 0
    item_name: str | None = None
    last_level_up: dict[str, Any] | None = None
    stop_reason: str | None = None
    dismissed_at: float | None = None

    @property
    def is_active(self) -> bool:
        return self.status is QueueStatus.ACTIVE

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_visible(self) -> bool:
        return self.dismissed_at is None

    @property
    def progress_ratio(self) -> float:
        return self.completed / self.total if self.total else 0.0

    def __repr__(self) -> str:
        return (
            f"Queue(id={self.id}, actor={self.actor_id}, {self.action_type.value}, "
            f"{self.completed}/{self.total}, {self.status.value})"
        )


@dataclass(slots=True)
class WorldClock:
    """The single world-time row."""

    current_year: int = 1
    current_season: Season = Season.SPRING
    current_week: int = 1
    last_tick_at: float | None = None
    weeks_per_season: int = field(default=WEEKS_PER_SEASON, repr=False)

    @property
    def season_index(self) -> int:
        return self.current_season.position

    @property
    def week_of_year(self) -> int:
        return self.season_index * self.weeks_per_season + self.current_week

    @property
    def formatted_date(self) -> str:
        return f"Week {self.current_week} of {self.current_season.label}, Year {self.current_year}"

    @property
    def season_description(self) -> str:
        return SEASON_DEFS[self.current_season].description

    @property
    def travel_modifier(self) -> float:
        return SEASON_DEFS[self.current_season].travel_modifier

    @property
    def gathering_modifier(self) -> float:
        return SEASON_DEFS[self.current_season].gathering_modifier

    @property
    def is_spring(self) -> bool:
        return self.current_season is Season.SPRING

    @property
    def is_summer(self) -> bool:
        return self.current_season is Season.SUMMER

    @property
    def is_autumn(self) -> bool:
        return self.current_season is Season.AUTUMN

    @property
    def is_winter(self) -> bool:
        return self.current_season is Season.WINTER

    def copy(self) -> WorldClock:
        return WorldClock(
            current_year=self.current_year,
            current_season=self.current_season,
            current_week=self.current_week,
            last_tick_at=self.last_tick_at,
            weeks_per_season=self.weeks_per_season,
        )


@dataclass(frozen=True, slots=True)
class QueueResult:
    """Outcome of a manager operation. Expected business failures are values, not exceptions."""

    success: bool
    message: str
    queue: QueueRecord | None = None
    error: ErrorCode | None = None

    @classmethod
    def ok(cls, message: str, queue: QueueRecord | None = None) -> QueueResult:
        return cls(success=True, message=message, queue=queue)

    @classmethod
    def fail(cls, exc: DemesneError) -> QueueResult:
        return cls(success=False, message=exc.message, error=exc.code)
