"""Pydantic request/response models for the REST API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from demesne.core.models import QueueRecord, iso_timestamp
from demesne.utils.event_log import GameEvent


# --- Action queue ---

class StartQueueRequest(BaseModel):
    action_type: str = Field(..., description="cook, craft, smelt, gather, train or agility")
    action_params: dict[str, Any] = Field(default_factory=dict)
    total: int = Field(..., ge=1, le=10_000)


class LevelUpSchema(BaseModel):
    skill: str
    level: int


class QueueSchema(BaseModel):
    id: int
    actor_id: int
    action_type: str
    action_params: dict[str, Any] = {}
    status: str
    total: int
    completed: int
    progress: float = 0.0
    total_xp: int = 0
    total_quantity: int = 0
    item_name: str | None = None
    last_level_up: LevelUpSchema | None = None
    stop_reason: str | None = None
    dismissed_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_record(cls, record: QueueRecord) -> QueueSchema:
        return cls(
            id=record.id,
            actor_id=record.actor_id,
            action_type=record.action_type.value,
            action_params=record.action_params,
            status=record.status.value,
            total=record.total,
            completed=record.completed,
            progress=round(record.progress_ratio, 4),
            total_xp=record.total_xp,
            total_quantity=record.total_quantity,
            item_name=record.item_name,
            last_level_up=LevelUpSchema(**record.last_level_up) if record.last_level_up else None,
            stop_reason=record.stop_reason,
            dismissed_at=iso_timestamp(record.dismissed_at),
            created_at=iso_timestamp(record.created_at),
            updated_at=iso_timestamp(record.updated_at),
        )


class QueueResponse(BaseModel):
    success: bool
    message: str = ""
    queue: QueueSchema | None = None


# --- Calendar ---

class CalendarSchema(BaseModel):
    year: int
    season: str
    week: int
    week_of_year: int
    weeks_per_season: int
    formatted_date: str
    season_description: str
    travel_modifier: float
    gathering_modifier: float
    last_tick_at: str | None = None


class SetDateRequest(BaseModel):
    year: int
    season: str
    week: int


class TickResponse(BaseModel):
    ticked: bool
    calendar: CalendarSchema


# --- Events ---

class EventSchema(BaseModel):
    at: str
    category: str
    message: str
    actor_ids: list[int] = []

    @classmethod
    def from_event(cls, event: GameEvent) -> EventSchema:
        return cls(
            at=iso_timestamp(event.at) or "",
            category=event.category,
            message=event.message,
            actor_ids=list(event.actor_ids),
        )
