"""Engine layer: task queue, worker pool, action queues, world calendar."""

from demesne.engine.action_queue import ActionQueueManager
from demesne.engine.calendar import WorldClockScheduler
from demesne.engine.queue_worker import ActionQueueWorker
from demesne.engine.task_queue import Task, TaskQueue
from demesne.engine.worker_pool import WorkerPool

__all__ = [
    "ActionQueueManager",
    "ActionQueueWorker",
    "Task",
    "TaskQueue",
    "WorkerPool",
    "WorldClockScheduler",
]
