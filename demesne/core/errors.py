"""Error taxonomy shared by the queue manager, the worker and the calendar.

Manager operations turn these into :class:`~demesne.core.models.QueueResult`
values; the calendar raises them; the worker converts them into a failed
queue record. The message is always safe to show to a player.
"""

from __future__ import annotations

from enum import Enum, unique


@unique
class ErrorCode(str, Enum):
    ALREADY_QUEUED = "already_queued"
    NO_ACTIVE_QUEUE = "no_active_queue"
    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"
    INVENTORY_FULL = "inventory_full"
    WORKER_FATAL = "worker_fatal"


class DemesneError(Exception):
    """Base class for expected, user-describable failures."""

    code: ErrorCode = ErrorCode.WORKER_FATAL
    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AlreadyQueued(DemesneError):
    code = ErrorCode.ALREADY_QUEUED
    default_message = "You already have an active queue running."


class NoActiveQueue(DemesneError):
    code = ErrorCode.NO_ACTIVE_QUEUE
    default_message = "You have no active queue."


class NotFound(DemesneError):
    code = ErrorCode.NOT_FOUND
    default_message = "Queue not found."


class InvalidArgument(DemesneError, ValueError):
    code = ErrorCode.INVALID_ARGUMENT
    default_message = "Invalid argument."


class InventoryFull(DemesneError):
    code = ErrorCode.INVENTORY_FULL
    default_message = "Your inventory is full."


class WorkerFatal(DemesneError):
    """Unrecoverable condition for one queue tick; the record is failed."""

    code = ErrorCode.WORKER_FATAL
    default_message = "Action failed."
