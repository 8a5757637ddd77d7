"""Season definitions: per-season modifiers and flavour text."""

from __future__ import annotations

from dataclasses import dataclass

from demesne.core.enums import SEASON_ORDER, Season

WEEKS_PER_SEASON = 12


@dataclass(frozen=True, slots=True)
class SeasonDef:
    season: Season
    travel_modifier: float      # Multiplier on travel time (>1 = slower)
    gathering_modifier: float   # Multiplier on gathering yield
    description: str


SEASON_DEFS: dict[Season, SeasonDef] = {
    Season.SPRING: SeasonDef(
        Season.SPRING, travel_modifier=1.2, gathering_modifier=0.8,
        description="Planting season. Muddy roads slow travel and the fields are not yet ready.",
    ),
    Season.SUMMER: SeasonDef(
        Season.SUMMER, travel_modifier=0.9, gathering_modifier=1.0,
        description="Growing season. Dry roads make for swift travel.",
    ),
    Season.AUTUMN: SeasonDef(
        Season.AUTUMN, travel_modifier=1.0, gathering_modifier=1.3,
        description="Harvest season. The land gives generously before the cold.",
    ),
    Season.WINTER: SeasonDef(
        Season.WINTER, travel_modifier=1.3, gathering_modifier=0.5,
        description="Snow closes the roads and little grows. Famine risk for unprepared settlements.",
    ),
}


def parse_season(value: str | Season) -> Season | None:
    """Case-insensitive lookup; returns None for unknown names."""
    if isinstance(value, Season):
        return value
    try:
        return Season(str(value).strip().lower())
    except ValueError:
        return None


def next_season(season: Season) -> Season:
    return SEASON_ORDER[(season.position + 1) % len(SEASON_ORDER)]
