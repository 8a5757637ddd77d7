"""/api/v1/calendar — world date, admin override and manual tick trigger."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from demesne.api.dependencies import get_runtime
from demesne.api.runtime import ServerRuntime
from demesne.api.schemas import CalendarSchema, SetDateRequest, TickResponse
from demesne.core.errors import InvalidArgument

router = APIRouter()


@router.get("/calendar", response_model=CalendarSchema)
def get_calendar(runtime: ServerRuntime = Depends(get_runtime)) -> CalendarSchema:
    return CalendarSchema(**runtime.calendar.get_calendar_data())


@router.post("/calendar/tick", response_model=TickResponse)
def tick_calendar(runtime: ServerRuntime = Depends(get_runtime)) -> TickResponse:
    ticked = runtime.calendar.process_tick()
    return TickResponse(ticked=ticked, calendar=CalendarSchema(**runtime.calendar.get_calendar_data()))


@router.put("/calendar/date", response_model=CalendarSchema)
def set_date(body: SetDateRequest, runtime: ServerRuntime = Depends(get_runtime)) -> CalendarSchema:
    try:
        runtime.calendar.set_date(body.year, body.season, body.week)
    except InvalidArgument as exc:
        raise HTTPException(status_code=422, detail=exc.message) from exc
    return CalendarSchema(**runtime.calendar.get_calendar_data())
