"""GET /api/v1/events — recent player-facing notices."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from demesne.api.dependencies import get_runtime
from demesne.api.runtime import ServerRuntime
from demesne.api.schemas import EventSchema

router = APIRouter()


@router.get("/events", response_model=list[EventSchema])
def get_events(
    limit: int = Query(50, ge=1, le=500),
    actor_id: int | None = Query(None, description="Only notices for this actor (plus world-wide ones)"),
    runtime: ServerRuntime = Depends(get_runtime),
) -> list[EventSchema]:
    if actor_id is None:
        events = runtime.events.latest(limit)
    else:
        events = runtime.events.for_actor(actor_id, limit)
    return [EventSchema.from_event(e) for e in events]
