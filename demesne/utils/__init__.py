"""Logging setup and the in-process notification log."""

from demesne.utils.event_log import EventLog, GameEvent
from demesne.utils.logging import setup_logging

__all__ = ["EventLog", "GameEvent", "setup_logging"]
