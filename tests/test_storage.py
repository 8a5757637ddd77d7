"""Tests for the SQLite layer: schema guarantees, compare-and-set updates, persistence."""

import sys
import os
import sqlite3

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tests.helpers.world_fixture import FakeClock
from demesne.core.enums import ActionType, QueueStatus, Season
from demesne.core.errors import AlreadyQueued
from demesne.storage import Database, QueueStore, WorldClockStore


@pytest.fixture
def db():
    database = Database(":memory:")
    yield database
    database.close()


@pytest.fixture
def store():
    return QueueStore(FakeClock())


def _insert(db, store, actor_id=1, total=3):
    with db.transaction(exclusive=True) as conn:
        return store.insert_active(conn, actor_id, ActionType.TRAIN, {"exercise": "attack"}, total)


class TestQueueStore:
    def test_unique_active_per_actor(self, db, store):
        _insert(db, store)
        with pytest.raises(AlreadyQueued):
            _insert(db, store)
        # Rolled back; the first record is still the only one
        with db.transaction() as conn:
            assert len(store.history(conn, 1)) == 1

    def test_terminal_records_do_not_block(self, db, store):
        first = _insert(db, store)
        with db.transaction() as conn:
            assert store.finish(conn, first.id, QueueStatus.COMPLETED)
        second = _insert(db, store)
        assert second.id != first.id

    def test_finish_is_compare_and_set(self, db, store):
        q = _insert(db, store)
        with db.transaction() as conn:
            assert store.finish(conn, q.id, QueueStatus.CANCELLED, "Cancelled by player.")
            assert not store.finish(conn, q.id, QueueStatus.FAILED, "late")
            record = store.get(conn, q.id)
        assert record.status is QueueStatus.CANCELLED
        assert record.stop_reason == "Cancelled by player."

    def test_finish_rejects_active(self, db, store):
        q = _insert(db, store)
        with db.transaction() as conn:
            with pytest.raises(ValueError):
                store.finish(conn, q.id, QueueStatus.ACTIVE)

    def test_progress_never_exceeds_total(self, db, store):
        q = _insert(db, store, total=2)
        with db.transaction() as conn:
            assert store.record_progress(conn, q.id, xp=5, quantity=1) is not None
            updated = store.record_progress(conn, q.id, xp=5, quantity=1, item_name="Bread")
            assert updated.completed == 2
            assert store.record_progress(conn, q.id, xp=5, quantity=1) is None
            record = store.get(conn, q.id)
        assert (record.completed, record.total_xp, record.total_quantity) == (2, 10, 2)
        assert record.item_name == "Bread"

    def test_progress_ignored_after_terminal(self, db, store):
        q = _insert(db, store)
        with db.transaction() as conn:
            store.finish(conn, q.id, QueueStatus.CANCELLED)
            assert store.record_progress(conn, q.id, xp=5, quantity=1) is None
            assert store.get(conn, q.id).completed == 0

    def test_level_up_round_trips(self, db, store):
        q = _insert(db, store)
        with db.transaction() as conn:
            store.record_progress(conn, q.id, xp=60, quantity=1, level_up={"skill": "attack", "level": 2})
            store.record_progress(conn, q.id, xp=10, quantity=1)
            record = store.get(conn, q.id)
        assert record.last_level_up == {"skill": "attack", "level": 2}

    def test_check_constraint_rejects_bad_total(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            with db.transaction() as conn:
                conn.execute(
                    "INSERT INTO action_queues (actor_id, action_type, total, created_at, updated_at) "
                    "VALUES (1, 'train', 0, 0, 0)"
                )

    def test_failed_transaction_rolls_back(self, db, store):
        with pytest.raises(RuntimeError):
            with db.transaction(exclusive=True) as conn:
                store.insert_active(conn, 1, ActionType.TRAIN, {}, 3)
                raise RuntimeError("abort")
        with db.transaction() as conn:
            assert store.find_active(conn, 1) is None


class TestWorldClockStore:
    def test_load_or_create_once(self, db):
        clocks = WorldClockStore()
        with db.transaction() as conn:
            assert clocks.load(conn) is None
            clocks.load_or_create(conn)
            clocks.load_or_create(conn)
            assert conn.execute("SELECT COUNT(*) FROM world_clock").fetchone()[0] == 1

    def test_single_row_constraint(self, db):
        with pytest.raises(sqlite3.IntegrityError):
            with db.transaction() as conn:
                conn.execute("INSERT INTO world_clock (id) VALUES (2)")

    def test_persists_across_reopen(self, tmp_path):
        path = tmp_path / "world.db"
        clocks = WorldClockStore()

        first = Database(path)
        with first.transaction(exclusive=True) as conn:
            clock = clocks.load_or_create(conn)
            clock.current_year = 3
            clock.current_season = Season.AUTUMN
            clock.current_week = 9
            clock.last_tick_at = 123.0
            clocks.save(conn, clock)
        first.close()

        second = Database(path)
        try:
            with second.transaction() as conn:
                clock = clocks.load(conn)
        finally:
            second.close()
        assert clock.formatted_date == "Week 9 of Autumn, Year 3"
        assert clock.last_tick_at == 123.0


class TestTransactionRecovery:
    def test_failed_commit_rolls_back(self, db):
        with db.transaction() as conn:
            conn.execute("CREATE TABLE owner (id INTEGER PRIMARY KEY)")
            conn.execute(
                "CREATE TABLE pet (owner_id INTEGER REFERENCES owner(id) DEFERRABLE INITIALLY DEFERRED)"
            )

        # Deferred foreign key is only checked at COMMIT
        with pytest.raises(sqlite3.IntegrityError):
            with db.transaction() as conn:
                conn.execute("INSERT INTO pet (owner_id) VALUES (99)")

        with db.transaction() as conn:
            assert conn.execute("SELECT COUNT(*) FROM pet").fetchone()[0] == 0

    def test_store_usable_after_failed_commit(self, db, store):
        with db.transaction() as conn:
            conn.execute("CREATE TABLE owner (id INTEGER PRIMARY KEY)")
            conn.execute(
                "CREATE TABLE pet (owner_id INTEGER REFERENCES owner(id) DEFERRABLE INITIALLY DEFERRED)"
            )
        with pytest.raises(sqlite3.IntegrityError):
            with db.transaction(exclusive=True) as conn:
                store.insert_active(conn, 1, ActionType.TRAIN, {}, 3)
                conn.execute("INSERT INTO pet (owner_id) VALUES (99)")

        # Queue insert was rolled back with the failed commit
        q = _insert(db, store)
        assert q.status is QueueStatus.ACTIVE
        with db.transaction() as conn:
            assert len(store.history(conn, 1)) == 1
