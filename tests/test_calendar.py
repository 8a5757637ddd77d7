"""Tests for WorldClockScheduler — weekly ticks, season/year rollover and admin override.

Covers:
- The clock row is created on first read
- Week -> season -> year cascade and the jobs each step fans out
- A tick happens only once per interval, even under concurrent triggers
- set_date validation; set_date fires no jobs
- Season modifiers and the calendar summary
"""

import sys
import os
import threading

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tests.helpers.world_fixture import WorldFixture
from demesne.core.enums import Lane, Season
from demesne.core.errors import InvalidArgument
from demesne.core.models import WorldClock
from demesne.engine.calendar import AGE_NPCS, FOOD_CONSUMPTION, NPC_REPRODUCTION

DAY = 86400.0


@pytest.fixture
def world():
    w = WorldFixture()
    yield w
    w.close()


def _job_names(world):
    return [t.name for t in world.pending(Lane.WORLD_EVENTS)]


class TestWorldClockModel:
    def test_defaults(self):
        clock = WorldClock()
        assert (clock.current_year, clock.current_season, clock.current_week) == (1, Season.SPRING, 1)
        assert clock.last_tick_at is None
        assert clock.formatted_date == "Week 1 of Spring, Year 1"
        assert clock.week_of_year == 1
        assert clock.is_spring and not clock.is_winter

    def test_week_of_year(self):
        clock = WorldClock(current_year=3, current_season=Season.WINTER, current_week=12)
        assert clock.week_of_year == 48
        assert clock.formatted_date == "Week 12 of Winter, Year 3"

    @pytest.mark.parametrize("season", list(Season))
    def test_exactly_one_season_flag(self, season):
        clock = WorldClock(current_season=season)
        flags = {
            Season.SPRING: clock.is_spring,
            Season.SUMMER: clock.is_summer,
            Season.AUTUMN: clock.is_autumn,
            Season.WINTER: clock.is_winter,
        }
        assert flags[season]
        assert sum(flags.values()) == 1

    def test_copy_is_independent(self):
        clock = WorldClock()
        other = clock.copy()
        other.current_week = 5
        assert clock.current_week == 1


class TestReads:
    def test_first_read_creates_clock(self, world):
        clock = world.runtime.calendar.get_current()
        assert clock.formatted_date == "Week 1 of Spring, Year 1"
        assert clock.last_tick_at is None
        assert world.runtime.calendar.should_tick()

    def test_modifiers_follow_season(self, world):
        cal = world.runtime.calendar
        expected = {
            "spring": (1.2, 0.8),
            "summer": (0.9, 1.0),
            "autumn": (1.0, 1.3),
            "winter": (1.3, 0.5),
        }
        for season, (travel, gathering) in expected.items():
            cal.set_date(1, season, 1)
            assert cal.get_travel_modifier() == pytest.approx(travel)
            assert cal.get_gathering_modifier() == pytest.approx(gathering)

    def test_calendar_data(self, world):
        cal = world.runtime.calendar
        cal.set_date(2, "autumn", 5)
        data = cal.get_calendar_data()
        assert data["year"] == 2
        assert data["season"] == "autumn"
        assert data["week"] == 5
        assert data["week_of_year"] == 29
        assert data["weeks_per_season"] == 12
        assert data["formatted_date"] == "Week 5 of Autumn, Year 2"
        assert "Harvest season" in data["season_description"]
        assert data["travel_modifier"] == pytest.approx(1.0)
        assert data["gathering_modifier"] == pytest.approx(1.3)
        assert data["last_tick_at"].startswith("2024-03-01T00:00:00")

    def test_season_descriptions(self, world):
        cal = world.runtime.calendar
        for season, phrase in (
            ("spring", "Planting season"),
            ("summer", "Growing season"),
            ("autumn", "Harvest season"),
            ("winter", "Famine risk"),
        ):
            cal.set_date(1, season, 1)
            assert phrase in cal.get_current().season_description


class TestAdvance:
    def test_week_advance_fans_out_food(self, world):
        clock = world.runtime.calendar.advance_week()
        assert clock.formatted_date == "Week 2 of Spring, Year 1"
        assert clock.last_tick_at == world.clock()

        jobs = world.pending(Lane.WORLD_EVENTS)
        assert [j.name for j in jobs] == [FOOD_CONSUMPTION]
        assert jobs[0].payload == {"year": 1, "season": "spring", "week": 2}
        assert world.pending(Lane.ACTION_QUEUE) == []

    def test_season_rollover(self, world):
        cal = world.runtime.calendar
        cal.set_date(1, "spring", 12)
        clock = cal.advance_week()
        assert (clock.current_year, clock.current_season, clock.current_week) == (1, Season.SUMMER, 1)
        assert _job_names(world) == [FOOD_CONSUMPTION]
        assert any(e.message.startswith("Summer has arrived.") for e in world.runtime.events.latest())

    def test_year_rollover(self, world):
        cal = world.runtime.calendar
        cal.set_date(1, "winter", 12)
        clock = cal.advance_week()
        assert clock.formatted_date == "Week 1 of Spring, Year 2"

        jobs = world.pending(Lane.WORLD_EVENTS)
        assert [j.name for j in jobs] == [AGE_NPCS, NPC_REPRODUCTION, FOOD_CONSUMPTION]
        assert jobs[0].payload == {"year": 2}
        assert jobs[2].payload == {"year": 2, "season": "spring", "week": 1}
        assert any(e.message == "Year 2 has begun!" for e in world.runtime.events.latest())

    def test_world_jobs_reach_the_simulation(self, world):
        cal = world.runtime.calendar
        cal.set_date(4, "winter", 12)
        cal.advance_week()
        assert world.run_world_jobs() == 3
        assert world.runtime.world.calls == [
            (AGE_NPCS, (5,)),
            (NPC_REPRODUCTION, (5,)),
            (FOOD_CONSUMPTION, (5, "spring", 1)),
        ]

    def test_full_year(self, world):
        cal = world.runtime.calendar
        for _ in range(48):
            cal.advance_week()
        assert cal.get_current().formatted_date == "Week 1 of Spring, Year 2"
        names = _job_names(world)
        assert names.count(FOOD_CONSUMPTION) == 48
        assert names.count(AGE_NPCS) == 1
        assert names.count(NPC_REPRODUCTION) == 1

    def test_custom_season_length(self):
        world = WorldFixture(weeks_per_season=4)
        try:
            cal = world.runtime.calendar
            for _ in range(4):
                cal.advance_week()
            clock = cal.get_current()
            assert (clock.current_season, clock.current_week) == (Season.SUMMER, 1)
            assert clock.week_of_year == 5
            with pytest.raises(InvalidArgument, match="between 1 and 4"):
                cal.set_date(1, "summer", 5)
        finally:
            world.close()

    def test_dispatch_failure_still_advances(self, world):
        class BrokenSink:
            def enqueue(self, task, lane, delay=0.0):
                raise RuntimeError("queue down")

        cal = world.runtime.calendar
        cal._tasks = BrokenSink()
        clock = cal.advance_week()
        assert clock.current_week == 2
        assert cal.get_current().current_week == 2


class TestProcessTick:
    def test_first_tick_is_due(self, world):
        assert world.runtime.calendar.process_tick()
        assert world.runtime.calendar.get_current().current_week == 2

    def test_not_due_within_interval(self, world):
        cal = world.runtime.calendar
        cal.process_tick()
        world.advance(DAY - 1)
        assert not cal.should_tick()
        assert not cal.process_tick()
        assert cal.get_current().current_week == 2
        assert _job_names(world) == [FOOD_CONSUMPTION]

    def test_due_after_interval(self, world):
        cal = world.runtime.calendar
        cal.process_tick()
        world.advance(DAY)
        assert cal.should_tick()
        assert cal.process_tick()
        assert cal.get_current().current_week == 3

    def test_one_tick_per_interval_even_if_late(self, world):
        cal = world.runtime.calendar
        cal.process_tick()
        world.advance(3 * DAY)
        assert cal.process_tick()
        assert not cal.process_tick()
        assert cal.get_current().current_week == 3

    def test_concurrent_triggers_advance_once(self, world):
        cal = world.runtime.calendar
        cal.process_tick()
        world.advance(DAY)

        results = []
        barrier = threading.Barrier(6)

        def trigger():
            barrier.wait()
            results.append(cal.process_tick())

        threads = [threading.Thread(target=trigger) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert cal.get_current().current_week == 3
        assert _job_names(world).count(FOOD_CONSUMPTION) == 2

    def test_runtime_maintenance_pass(self, world):
        reaped, ticked = world.runtime.run_maintenance()
        assert (reaped, ticked) == (0, True)
        reaped, ticked = world.runtime.run_maintenance()
        assert (reaped, ticked) == (0, False)


class TestSetDate:
    def test_sets_date_and_tick_time(self, world):
        cal = world.runtime.calendar
        clock = cal.set_date(3, "autumn", 7)
        assert clock.formatted_date == "Week 7 of Autumn, Year 3"
        assert clock.last_tick_at == world.clock()
        assert cal.get_current().formatted_date == "Week 7 of Autumn, Year 3"
        assert not cal.should_tick()

    def test_fires_no_jobs(self, world):
        world.runtime.calendar.set_date(2, "spring", 1)
        assert world.pending(Lane.WORLD_EVENTS) == []

    def test_season_is_case_insensitive(self, world):
        clock = world.runtime.calendar.set_date(5, "Winter", 3)
        assert clock.current_season is Season.WINTER
        assert clock.formatted_date == "Week 3 of Winter, Year 5"
        assert world.pending(Lane.WORLD_EVENTS) == []

    @pytest.mark.parametrize("year, season, week, message", [
        (0, "spring", 1, "Year must be at least 1."),
        (1, "monsoon", 1, "Invalid season. Must be: spring, summer, autumn, winter"),
        (1, "spring", 0, "Week must be between 1 and 12."),
        (1, "spring", 13, "Week must be between 1 and 12."),
        (1, "Spring", 99, "Week must be between 1 and 12."),
        (0, "Spring", 1, "Year must be at least 1."),
    ])
    def test_rejects_invalid(self, world, year, season, week, message):
        with pytest.raises(InvalidArgument) as exc_info:
            world.runtime.calendar.set_date(year, season, week)
        assert exc_info.value.message == message
        # Nothing written
        assert world.runtime.calendar.get_current().formatted_date == "Week 1 of Spring, Year 1"
