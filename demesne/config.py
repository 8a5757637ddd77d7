"""Server configuration with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ServerConfig:
    """Immutable configuration for a server run."""

    # Storage
    db_path: str = ":memory:"

    # World
    world_seed: int = 42

    # Calendar
    tick_interval_seconds: float = 86400.0   # Real seconds between world weeks
    weeks_per_season: int = 12
    calendar_poll_seconds: float = 60.0      # How often the runtime asks the calendar to tick

    # Action queues
    stale_queue_seconds: float = 300.0       # No progress for this long => worker presumed dead
    action_tick_seconds: float = 3.0         # Delay between two ticks of one queue
    max_cooldown_reduction: float = 90.0     # Cap (percent) on the cooldown reduction effect
    reaper_interval_seconds: float = 60.0

    # Workers
    num_workers: int = 4
    lane_poll_seconds: float = 0.5

    # Players
    inventory_slots: int = 28
    starting_energy: int = 100

    # Logging
    log_level: str = "INFO"
    access_log: bool = False

    def __post_init__(self) -> None:
        if self.weeks_per_season < 1:
            raise ValueError("weeks_per_season must be at least 1")
        if self.stale_queue_seconds <= self.action_tick_seconds:
            raise ValueError("stale_queue_seconds must exceed action_tick_seconds")
