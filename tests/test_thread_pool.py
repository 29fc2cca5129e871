import threading
import time

import pytest

from toykernel.thread_pool import ThreadPool


def _wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_submit_returns_result():
    with ThreadPool(2) as pool:
        future = pool.submit(pow, 2, 10)
        assert future.result(timeout=5) == 1024


def test_submit_passes_keyword_arguments():
    with ThreadPool(1) as pool:
        future = pool.submit(sorted, [3, 1, 2], reverse=True)
        assert future.result(timeout=5) == [3, 2, 1]


def test_zero_threads_rejected():
    with pytest.raises(ValueError):
        ThreadPool(0)


def test_thread_count():
    with ThreadPool(3) as pool:
        assert pool.thread_count() == 3


def test_task_exception_reaches_future():
    def boom():
        raise KeyError("missing")

    with ThreadPool(1) as pool:
        future = pool.submit(boom)
        with pytest.raises(KeyError):
            future.result(timeout=5)
        assert pool.submit(len, "abc").result(timeout=5) == 3


def test_wait_completion_runs_everything():
    counter = []
    lock = threading.Lock()

    def bump():
        with lock:
            counter.append(1)

    with ThreadPool(4) as pool:
        for _ in range(50):
            pool.submit(bump)
        pool.wait_completion()
        assert len(counter) == 50
        assert pool.pending_tasks() == 0


def test_pending_tasks_counts_queue():
    started = threading.Event()
    release = threading.Event()

    def blocker():
        started.set()
        release.wait(5)

    with ThreadPool(1) as pool:
        pool.submit(blocker)
        assert started.wait(5)
        pool.submit(len, "a")
        pool.submit(len, "b")
        assert pool.pending_tasks() == 2
        release.set()
        pool.wait_completion()
        assert pool.pending_tasks() == 0


def test_submit_after_shutdown_raises():
    pool = ThreadPool(1)
    pool.shutdown()
    with pytest.raises(RuntimeError):
        pool.submit(len, "x")


def test_context_manager_shuts_down():
    with ThreadPool(1) as pool:
        assert pool.submit(abs, -4).result(timeout=5) == 4
    with pytest.raises(RuntimeError):
        pool.submit(abs, -1)


def test_shutdown_cancels_queued_tasks():
    started = threading.Event()
    release = threading.Event()

    def blocker():
        started.set()
        release.wait(5)
        return "done"

    pool = ThreadPool(1)
    running = pool.submit(blocker)
    assert started.wait(5)
    queued = pool.submit(len, "never")
    closer = threading.Thread(target=pool.shutdown)
    closer.start()
    assert _wait_until(queued.cancelled)
    release.set()
    closer.join(5)
    assert not closer.is_alive()
    assert running.result(timeout=5) == "done"
    assert queued.cancelled()


def test_shutdown_is_idempotent():
    pool = ThreadPool(2)
    pool.shutdown()
    pool.shutdown()
    assert pool.pending_tasks() == 0