"""A fixed-size pool of worker threads fed from a FIFO queue."""

from __future__ import annotations

import os
import threading
from collections import deque
from concurrent.futures import Future
from typing import Any, Callable


class ThreadPool:
    """Runs submitted callables on a fixed set of worker threads.

    Shutting down stops the workers once their current task is done; tasks
    still waiting in the queue are cancelled.
    """

    def __init__(self, threads: int | None = None) -> None:
        if threads is None:
            threads = os.cpu_count() or 1
        if threads <= 0:
            raise ValueError("Thread count must be positive")
        self._lock = threading.Lock()
        self._work_ready = threading.Condition(self._lock)
        self._all_done = threading.Condition(self._lock)
        self._tasks: deque[tuple[Future, Callable[..., Any], tuple, dict]] = deque()
        self._active = 0
        self._stopped = False
        self._workers = [
            threading.Thread(target=self._worker_main, name=f"pool-worker-{i}", daemon=True)
            for i in range(threads)
        ]
        for worker in self._workers:
            worker.start()

    def __enter__(self) -> ThreadPool:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def submit(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Queue ``func(*args, **kwargs)`` and return a future for its result."""
        future: Future = Future()
        with self._lock:
            if self._stopped:
                raise RuntimeError("Enqueue on stopped ThreadPool")
            self._tasks.append((future, func, args, kwargs))
            self._work_ready.notify()
        return future

    def wait_completion(self) -> None:
        """Block until the queue is empty and no task is running."""
        with self._lock:
            self._all_done.wait_for(lambda: not self._tasks and self._active == 0)

    def shutdown(self) -> None:
        """Stop the workers, cancel queued tasks and join the threads."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            abandoned = list(self._tasks)
            self._tasks.clear()
            self._work_ready.notify_all()
            self._all_done.notify_all()
        for future, *_ in abandoned:
            future.cancel()
        for worker in self._workers:
            if worker is not threading.current_thread():
                worker.join()

    def thread_count(self) -> int:
        """Number of worker threads."""
        return len(self._workers)

    def pending_tasks(self) -> int:
        """Number of tasks waiting in the queue."""
        with self._lock:
            return len(self._tasks)

    def _worker_main(self) -> None:
        while True:
            with self._lock:
                self._work_ready.wait_for(lambda: self._tasks or self._stopped)
                if self._stopped:
                    return
                future, func, args, kwargs = self._tasks.popleft()
                self._active += 1
            try:
                if future.set_running_or_notify_cancel():
                    try:
                        result = func(*args, **kwargs)
                    except BaseException as exc:
                        future.set_exception(exc)
                    else:
                        future.set_result(result)
            finally:
                with self._lock:
                    self._active -= 1
                    if not self._tasks and self._active == 0:
                        self._all_done.notify_all()