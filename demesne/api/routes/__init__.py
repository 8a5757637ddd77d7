"""Versioned API route modules."""

from fastapi import APIRouter

from demesne.api.routes.calendar import router as calendar_router
from demesne.api.routes.events import router as events_router
from demesne.api.routes.queue import router as queue_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(queue_router, tags=["Queue"])
api_router.include_router(calendar_router, tags=["Calendar"])
api_router.include_router(events_router, tags=["Events"])

__all__ = ["api_router"]
