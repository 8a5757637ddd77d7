"""Tests for TaskQueue lanes/delays and WorkerPool dispatch."""

import sys
import os
import threading
import time

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tests.helpers.world_fixture import FakeClock
from demesne.config import ServerConfig
from demesne.core.enums import Lane
from demesne.engine.task_queue import Task, TaskQueue
from demesne.engine.worker_pool import WorkerPool


def _task(n: int) -> Task:
    return Task("job", {"n": n})


class TestTaskQueue:
    def test_fifo_within_lane(self):
        q = TaskQueue(now=FakeClock())
        for n in range(3):
            q.enqueue(_task(n), Lane.ACTION_QUEUE)
        assert [q.pop_next(Lane.ACTION_QUEUE).payload["n"] for _ in range(3)] == [0, 1, 2]
        assert q.pop_next(Lane.ACTION_QUEUE) is None

    def test_lanes_are_separate(self):
        q = TaskQueue(now=FakeClock())
        q.enqueue(_task(1), Lane.WORLD_EVENTS)
        assert q.pop_next(Lane.ACTION_QUEUE) is None
        assert q.size(Lane.WORLD_EVENTS) == 1
        assert q.pop_next(Lane.WORLD_EVENTS).payload == {"n": 1}

    def test_delayed_task_waits_for_due_time(self):
        clock = FakeClock()
        q = TaskQueue(now=clock)
        q.enqueue(_task(1), Lane.ACTION_QUEUE, delay=5.0)
        assert q.pop_next(Lane.ACTION_QUEUE) is None
        clock.advance(5.0)
        assert q.pop_next(Lane.ACTION_QUEUE).payload == {"n": 1}

    def test_include_delayed(self):
        q = TaskQueue(now=FakeClock())
        q.enqueue(_task(1), Lane.ACTION_QUEUE, delay=60.0)
        assert q.pop_next(Lane.ACTION_QUEUE, include_delayed=True).payload == {"n": 1}

    def test_due_order_beats_enqueue_order(self):
        q = TaskQueue(now=FakeClock())
        q.enqueue(_task(1), Lane.ACTION_QUEUE, delay=10.0)
        q.enqueue(_task(2), Lane.ACTION_QUEUE, delay=1.0)
        q.enqueue(_task(3), Lane.ACTION_QUEUE)
        assert [t.payload["n"] for t in q.pending(Lane.ACTION_QUEUE)] == [3, 2, 1]
        assert [t.payload["n"] for t in q.drain(Lane.ACTION_QUEUE)] == [3, 2, 1]
        assert q.size(Lane.ACTION_QUEUE) == 0

    def test_get_times_out(self):
        q = TaskQueue()
        assert q.get(Lane.ACTION_QUEUE, timeout=0.01) is None

    def test_get_wakes_on_enqueue(self):
        q = TaskQueue()
        got = []
        consumer = threading.Thread(target=lambda: got.append(q.get(Lane.ACTION_QUEUE, timeout=5.0)))
        consumer.start()
        q.enqueue(_task(7), Lane.ACTION_QUEUE)
        consumer.join(timeout=5.0)
        assert got and got[0].payload == {"n": 7}


class TestWorkerPool:
    def _pool(self, **overrides):
        cfg = ServerConfig(num_workers=1, **overrides)
        queue = TaskQueue(now=FakeClock())
        return WorkerPool(cfg, queue), queue

    def test_run_pending_executes_handlers(self):
        pool, queue = self._pool()
        seen = []
        pool.register("job", lambda task: seen.append(task.payload["n"]))
        for n in range(3):
            queue.enqueue(_task(n), Lane.WORLD_EVENTS)
        assert pool.run_pending(Lane.WORLD_EVENTS) == 3
        assert seen == [0, 1, 2]

    def test_failing_handler_is_skipped(self):
        pool, queue = self._pool()
        seen = []

        def handler(task):
            if task.payload["n"] == 1:
                raise RuntimeError("boom")
            seen.append(task.payload["n"])

        pool.register("job", handler)
        for n in range(3):
            queue.enqueue(_task(n), Lane.WORLD_EVENTS)
        assert pool.run_pending(Lane.WORLD_EVENTS) == 3
        assert seen == [0, 2]

    def test_unknown_task_is_dropped(self):
        pool, _ = self._pool()
        assert pool.execute(Task("nobody-home")) is False

    def test_chained_tasks_run_with_include_delayed(self):
        pool, queue = self._pool()
        count = []

        def chain(task):
            count.append(1)
            if len(count) < 4:
                queue.enqueue(Task("chain"), Lane.ACTION_QUEUE, delay=3.0)

        pool.register("chain", chain)
        queue.enqueue(Task("chain"), Lane.ACTION_QUEUE)
        assert pool.run_pending(Lane.ACTION_QUEUE) == 1
        assert pool.run_pending(Lane.ACTION_QUEUE, include_delayed=True) == 3
        assert len(count) == 4

    def test_background_dispatch(self):
        cfg = ServerConfig(num_workers=2, lane_poll_seconds=0.05)
        queue = TaskQueue()
        pool = WorkerPool(cfg, queue)
        done = threading.Event()
        pool.register("job", lambda task: done.set())
        pool.start()
        try:
            assert pool.running
            queue.enqueue(_task(1), Lane.WORLD_EVENTS)
            assert done.wait(timeout=5.0)
        finally:
            pool.shutdown()
        assert not pool.running

    def test_lanes_do_not_block_each_other(self):
        cfg = ServerConfig(num_workers=1, lane_poll_seconds=0.05)
        queue = TaskQueue()
        pool = WorkerPool(cfg, queue)
        release = threading.Event()
        world_done = threading.Event()
        pool.register("slow", lambda task: release.wait(timeout=5.0))
        pool.register("world", lambda task: world_done.set())
        pool.start()
        try:
            queue.enqueue(Task("slow"), Lane.ACTION_QUEUE)
            time.sleep(0.05)
            queue.enqueue(Task("world"), Lane.WORLD_EVENTS)
            assert world_done.wait(timeout=5.0)
        finally:
            release.set()
            pool.shutdown()

    def test_world_backlog_does_not_delay_ticks(self):
        cfg = ServerConfig(num_workers=2, lane_poll_seconds=0.05)
        queue = TaskQueue()
        pool = WorkerPool(cfg, queue)
        release = threading.Event()
        started = []
        tick_done = threading.Event()

        def slow_world(task):
            started.append(task.payload["n"])
            release.wait(timeout=5.0)

        pool.register("slow_world", slow_world)
        pool.register("tick", lambda task: tick_done.set())
        pool.start()
        try:
            for n in range(4):
                queue.enqueue(Task("slow_world", {"n": n}), Lane.WORLD_EVENTS)
            # Both world workers busy, two more world tasks waiting behind them
            deadline = time.monotonic() + 5.0
            while len(started) < 2 and time.monotonic() < deadline:
                time.sleep(0.01)
            assert len(started) == 2

            queue.enqueue(Task("tick"), Lane.ACTION_QUEUE)
            assert tick_done.wait(timeout=1.0)
            assert not release.is_set()
        finally:
            release.set()
            pool.shutdown()
