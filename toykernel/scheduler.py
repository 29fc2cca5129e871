"""A priority scheduler that runs named tasks on threads and drifts their priorities."""

from __future__ import annotations

import argparse
import functools
import itertools
import logging
import random
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable

logger = logging.getLogger(__name__)

MAX_TASKS = 64
MIN_PRIORITY = 1
MAX_PRIORITY = 99
MAX_NAME_LENGTH = 31


@dataclass
class TaskInfo:
    """A task known to the scheduler."""

    tid: int
    priority: int
    name: str
    is_running: bool = True


def _busy_work(name: str) -> None:
    for step in range(1, 6):
        logger.info("Task %s working... (%d/5)", name, step)
        sum(range(1_000_000))


class Scheduler:
    """Keeps a bounded list of tasks and adjusts the priority of running ones."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()
        self._tasks: list[TaskInfo] = []
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._tids = itertools.count(1)
        logger.info("Scheduler initialized.")

    def create_task(
        self, priority: int, name: str, work: Callable[[], object] | None = None
    ) -> int:
        """Start ``work`` on a new thread as a task and return its id.

        Without ``work`` the task performs a short stretch of busy work.
        Raises RuntimeError once the task limit is reached.
        """
        name = name[:MAX_NAME_LENGTH]
        if work is None:
            work = functools.partial(_busy_work, name)
        with self._lock:
            if len(self._tasks) >= MAX_TASKS:
                logger.error("ERROR: Task limit reached")
                raise RuntimeError("Task limit reached")
            tid = next(self._tids)
            self._tasks.append(TaskInfo(tid=tid, priority=priority, name=name))
        thread = threading.Thread(
            target=self._run_task, args=(tid, name, work), name=f"task-{name}", daemon=True
        )
        thread.start()
        logger.info("Created task %s (prio %d)", name, priority)
        return tid

    def _run_task(self, tid: int, name: str, work: Callable[[], object]) -> None:
        logger.info("Task %s started", name)
        try:
            work()
        except Exception:
            logger.exception("Task %s failed", name)
        finally:
            with self._lock:
                for task in self._tasks:
                    if task.tid == tid:
                        task.is_running = False
                        break
            logger.info("Task %s completed", name)

    def adjust_priorities(self) -> None:
        """Move each running task's priority by -1, 0 or +1 within bounds."""
        with self._lock:
            for task in self._tasks:
                if not task.is_running:
                    continue
                shifted = task.priority + self._rng.randint(-1, 1)
                task.priority = max(MIN_PRIORITY, min(MAX_PRIORITY, shifted))
                logger.info("Thread %d priority set to %d", task.tid, task.priority)
                logger.info("Updated %s to prio %d", task.name, task.priority)

    def run_priority_manager(self, interval: float = 3.0) -> None:
        """Adjust priorities every ``interval`` seconds until stopped."""
        while not self._stop.wait(interval):
            self.adjust_priorities()

    def stop(self) -> None:
        """Ask the priority manager to finish."""
        self._stop.set()

    def tasks(self) -> list[TaskInfo]:
        """Return a snapshot of all tasks."""
        with self._lock:
            return [replace(task) for task in self._tasks]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run a few prioritised tasks.")
    parser.add_argument("--duration", type=float, default=20.0, help="seconds to run")
    parser.add_argument("--interval", type=float, default=3.0, help="seconds between adjustments")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="[KERNEL] %(message)s")
    scheduler = Scheduler()
    manager = threading.Thread(
        target=scheduler.run_priority_manager, args=(args.interval,), daemon=True
    )
    manager.start()

    for priority, name in ((90, "HighPrio"), (50, "MidPrio"), (30, "LowPrio")):
        scheduler.create_task(priority, name)

    time.sleep(args.duration)
    scheduler.stop()
    manager.join(timeout=1.0)
    logger.info("Main kernel execution completed")
    return 0