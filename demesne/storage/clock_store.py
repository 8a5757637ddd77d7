"""Row access for the world clock singleton."""

from __future__ import annotations

import sqlite3

from demesne.core.enums import Season
from demesne.core.models import WorldClock
from demesne.core.seasons import WEEKS_PER_SEASON


class WorldClockStore:
    """Loads and saves the single ``world_clock`` row (id = 1)."""

    __slots__ = ("_weeks_per_season",)

    def __init__(self, weeks_per_season: int = WEEKS_PER_SEASON) -> None:
        self._weeks_per_season = weeks_per_season

    def load(self, conn: sqlite3.Connection) -> WorldClock | None:
        row = conn.execute(
            "SELECT current_year, current_season, current_week, last_tick_at FROM world_clock WHERE id = 1"
        ).fetchone()
        if row is None:
            return None
        return WorldClock(
            current_year=row["current_year"],
            current_season=Season(row["current_season"]),
            current_week=row["current_week"],
            last_tick_at=row["last_tick_at"],
            weeks_per_season=self._weeks_per_season,
        )

    def load_or_create(self, conn: sqlite3.Connection) -> WorldClock:
        """Return the clock, inserting Year 1 / Spring / Week 1 on first access."""
        clock = self.load(conn)
        if clock is not None:
            return clock
        clock = WorldClock(weeks_per_season=self._weeks_per_season)
        conn.execute(
            "INSERT OR IGNORE INTO world_clock (id, current_year, current_season, current_week, last_tick_at) "
            "VALUES (1, ?, ?, ?, ?)",
            (clock.current_year, clock.current_season.value, clock.current_week, clock.last_tick_at),
        )
        return self.load(conn) or clock

    def save(self, conn: sqlite3.Connection, clock: WorldClock) -> None:
        conn.execute(
            "INSERT INTO world_clock (id, current_year, current_season, current_week, last_tick_at) "
            "VALUES (1, ?, ?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET current_year = excluded.current_year, "
            "current_season = excluded.current_season, current_week = excluded.current_week, "
            "last_tick_at = excluded.last_tick_at",
            (clock.current_year, clock.current_season.value, clock.current_week, clock.last_tick_at),
        )
