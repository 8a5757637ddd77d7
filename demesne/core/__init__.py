"""Core data models, enums, errors and content tables."""

from demesne.core.enums import ActionType, Domain, Lane, QueueStatus, Season
from demesne.core.errors import (
    AlreadyQueued,
    DemesneError,
    ErrorCode,
    InvalidArgument,
    InventoryFull,
    NoActiveQueue,
    NotFound,
    WorkerFatal,
)
from demesne.core.models import QueueRecord, QueueResult, WorldClock

__all__ = [
    "ActionType",
    "AlreadyQueued",
    "DemesneError",
    "Domain",
    "ErrorCode",
    "InvalidArgument",
    "InventoryFull",
    "Lane",
    "NoActiveQueue",
    "NotFound",
    "QueueRecord",
    "QueueResult",
    "QueueStatus",
    "Season",
    "WorkerFatal",
    "WorldClock",
]
