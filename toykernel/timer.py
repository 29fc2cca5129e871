"""A named stopwatch that reports elapsed time."""

from __future__ import annotations

import time


class Timer:
    """Measures the time between ``start`` and ``stop``."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._start: float | None = None
        self.elapsed: float | None = None

    def start(self) -> None:
        """Record the start time."""
        self._start = time.perf_counter()
        self.elapsed = None

    def stop(self) -> float:
        """Record the end time, print the elapsed seconds and return them."""
        if self._start is None:
            raise RuntimeError(f"Timer '{self.name}' was not started")
        self.elapsed = time.perf_counter() - self._start
        print(f"Timer '{self.name}' took {self.elapsed} seconds.")
        return self.elapsed

    def __enter__(self) -> Timer:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def main(argv: list[str] | None = None) -> int:
    timer = Timer("My Timer")
    timer.start()
    timer.stop()
    return 0