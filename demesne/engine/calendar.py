"""WorldClockScheduler — advances world time one week per real-time interval.

Week rollover cascades into season rollover, season into year. Every week
fans out a ``food_consumption`` job; every new year also fans out
``age_npcs`` and ``npc_reproduction``. Jobs go to the ``world-events`` lane
after the advancing transaction commits and are never awaited.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from demesne.core.enums import SEASON_ORDER, Lane
from demesne.core.errors import InvalidArgument
from demesne.core.models import WorldClock, iso_timestamp
from demesne.core.seasons import next_season, parse_season
from demesne.engine.task_queue import Task
from demesne.utils.event_log import GameEvent

if TYPE_CHECKING:
    from sqlite3 import Connection

    from demesne.config import ServerConfig
    from demesne.core.interfaces import TaskSink
    from demesne.storage.clock_store import WorldClockStore
    from demesne.storage.db import Database
    from demesne.utils.event_log import EventLog

logger = logging.getLogger(__name__)

AGE_NPCS = "age_npcs"
NPC_REPRODUCTION = "npc_reproduction"
FOOD_CONSUMPTION = "food_consumption"


class WorldClockScheduler:
    """Owns every mutation of the world clock."""

    __slots__ = ("_config", "_db", "_store", "_tasks", "_events", "_now")

    def __init__(
        self,
        config: ServerConfig,
        db: Database,
        store: WorldClockStore,
        tasks: TaskSink,
        now: Callable[[], float],
        events: EventLog | None = None,
    ) -> None:
        self._config = config
        self._db = db
        self._store = store
        self._tasks = tasks
        self._events = events
        self._now = now

    # -- reads --

    def get_current(self) -> WorldClock:
        """Load the clock, creating Year 1 / Spring / Week 1 if the world is new."""
        with self._db.transaction() as conn:
            clock = self._store.load(conn)
        if clock is not None:
            return clock
        with self._db.transaction(exclusive=True) as conn:
            return self._store.load_or_create(conn)

    def should_tick(self) -> bool:
        return self._is_due(self.get_current())

    def get_travel_modifier(self) -> float:
        return self.get_current().travel_modifier

    def get_gathering_modifier(self) -> float:
        return self.get_current().gathering_modifier

    def get_calendar_data(self) -> dict[str, Any]:
        clock = self.get_current()
        return {
            "year": clock.current_year,
            "season": clock.current_season.value,
            "week": clock.current_week,
            "week_of_year": clock.week_of_year,
            "weeks_per_season": clock.weeks_per_season,
            "formatted_date": clock.formatted_date,
            "season_description": clock.season_description,
            "travel_modifier": clock.travel_modifier,
            "gathering_modifier": clock.gathering_modifier,
            "last_tick_at": iso_timestamp(clock.last_tick_at),
        }

    # -- mutations --

    def advance_week(self) -> WorldClock:
        """Advance one week unconditionally."""
        clock = self._advance(require_due=False)
        assert clock is not None
        return clock

    def process_tick(self) -> bool:
        """Advance one week if the tick interval has elapsed. Safe to call as often as you like."""
        if not self.should_tick():
            return False
        # Re-checked under the write lock: a concurrent trigger may have won.
        return self._advance(require_due=True) is not None

    def set_date(self, year: int, season: str, week: int) -> WorldClock:
        """Admin override. Sets the date directly; no cascade, no downstream jobs."""
        if year < 1:
            raise InvalidArgument("Year must be at least 1.")
        parsed = parse_season(season)
        if parsed is None:
            raise InvalidArgument("Invalid season. Must be: " + ", ".join(s.value for s in SEASON_ORDER))
        if week < 1 or week > self._config.weeks_per_season:
            raise InvalidArgument(f"Week must be between 1 and {self._config.weeks_per_season}.")

        with self._db.transaction(exclusive=True) as conn:
            clock = self._store.load_or_create(conn)
            clock.current_year = year
            clock.current_season = parsed
            clock.current_week = week
            clock.last_tick_at = self._now()
            self._store.save(conn, clock)

        logger.info("World time set to: %s", clock.formatted_date)
        return clock

    # -- internals --

    def _is_due(self, clock: WorldClock) -> bool:
        if clock.last_tick_at is None:
            return True
        return self._now() - clock.last_tick_at >= self._config.tick_interval_seconds

    def _advance(self, require_due: bool) -> WorldClock | None:
        jobs: list[Task] = []
        notices: list[str] = []

        with self._db.transaction(exclusive=True) as conn:
            clock = self._store.load_or_create(conn)
            if require_due and not self._is_due(clock):
                return None
            old_date = clock.formatted_date
            self._roll_forward(conn, clock, jobs, notices)

        logger.info("World time advanced: %s -> %s", old_date, clock.formatted_date)
        for task in jobs:
            try:
                self._tasks.enqueue(task, Lane.WORLD_EVENTS)
            except Exception:
                logger.exception("Could not dispatch %s", task.name)
        if self._events is not None:
            for message in notices:
                self._events.append(GameEvent(at=self._now(), category="calendar", message=message))
        return clock

    def _roll_forward(
        self, conn: Connection, clock: WorldClock, jobs: list[Task], notices: list[str],
    ) -> None:
        clock.current_week += 1
        if clock.current_week > self._config.weeks_per_season:
            clock.current_week = 1
            clock.current_season = next_season(clock.current_season)
            if clock.season_index == 0:
                clock.current_year += 1
                logger.info("World time: Year %d has begun!", clock.current_year)
                notices.append(f"Year {clock.current_year} has begun!")
                payload = {"year": clock.current_year}
                jobs.append(Task(AGE_NPCS, payload))
                jobs.append(Task(NPC_REPRODUCTION, payload))
            logger.info("World time: Season changed to %s", clock.current_season.value)
            notices.append(f"{clock.current_season.label} has arrived. {clock.season_description}")

        jobs.append(Task(FOOD_CONSUMPTION, {
            "year": clock.current_year,
            "season": clock.current_season.value,
            "week": clock.current_week,
        }))
        clock.last_tick_at = self._now()
        self._store.save(conn, clock)
