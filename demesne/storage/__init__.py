"""SQLite persistence: connection, schema and row stores."""

from demesne.storage.clock_store import WorldClockStore
from demesne.storage.db import Database
from demesne.storage.queue_store import QueueStore

__all__ = ["Database", "QueueStore", "WorldClockStore"]
