"""An in-memory table of process records keyed by process id."""

from __future__ import annotations

import copy
import getpass
import itertools
import os
import threading
import time
from dataclasses import dataclass, field, fields
from pathlib import Path

_PID_COUNTER = itertools.count(1)
_PID_LOCK = threading.Lock()


def _next_pid() -> int:
    with _PID_LOCK:
        return next(_PID_COUNTER)


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


@dataclass
class ProcessInfo:
    """Everything the table records about one process."""

    pid: int
    name: str
    running: bool = True
    cpu_time: int = 0
    wall_clock_time: int = 0
    start_time: int = 0
    end_time: int = 0
    owner: str = ""
    priority: int = 0
    status: int = 0
    num_threads: int = 1
    command_line_args: list[str] = field(default_factory=list)
    working_directory: Path = field(default_factory=Path)
    environment_variables: dict[str, str] = field(default_factory=dict)
    parent_process: int = 0
    child_processes: list[int] = field(default_factory=list)
    memory_usage: int = 0


_UPDATABLE = frozenset(f.name for f in fields(ProcessInfo)) - {"pid"}


class ProcessTable:
    """A thread-safe registry of :class:`ProcessInfo` records.

    Process ids are drawn from a counter shared by every table, so ids never
    repeat within one interpreter.
    """

    def __init__(self) -> None:
        self._processes: dict[int, ProcessInfo] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._processes)

    def __contains__(self, pid: object) -> bool:
        with self._lock:
            return pid in self._processes

    def get(self, pid: int) -> ProcessInfo | None:
        """Return a copy of the record for ``pid``, or None if unknown."""
        with self._lock:
            info = self._processes.get(pid)
            return copy.deepcopy(info) if info is not None else None

    def processes(self) -> dict[int, ProcessInfo]:
        """Return a copy of every record, keyed by pid."""
        with self._lock:
            return copy.deepcopy(self._processes)

    def add(self, name: str, command_line_args: list[str]) -> int:
        """Register a new running process and return its pid."""
        with self._lock:
            pid = _next_pid()
            self._processes[pid] = ProcessInfo(
                pid=pid,
                name=str(name),
                running=True,
                start_time=int(time.time()),
                end_time=0,
                owner=_current_user(),
                command_line_args=list(command_line_args),
                working_directory=Path.cwd(),
                environment_variables=dict(os.environ),
                parent_process=os.getpid(),
            )
            return pid

    def remove(self, pid: int) -> bool:
        """Drop the record for ``pid``; return whether it existed."""
        with self._lock:
            return self._processes.pop(pid, None) is not None

    def terminate(self, pid: int) -> bool:
        """Mark ``pid`` as stopped and stamp its end time."""
        with self._lock:
            info = self._processes.get(pid)
            if info is None:
                return False
            info.running = False
            info.end_time = int(time.time())
            return True

    def suspend(self, pid: int) -> bool:
        """Stop a running process; False if unknown or not running."""
        with self._lock:
            info = self._processes.get(pid)
            if info is None or not info.running:
                return False
            info.running = False
            return True

    def resume(self, pid: int) -> bool:
        """Restart a stopped process; False if unknown or already running."""
        with self._lock:
            info = self._processes.get(pid)
            if info is None or info.running:
                return False
            info.running = True
            return True

    def is_running(self, pid: int) -> bool:
        """Whether ``pid`` is known and running."""
        with self._lock:
            info = self._processes.get(pid)
            return info is not None and info.running

    def update(self, pid: int, **kwargs: object) -> bool:
        """Set fields of the record for ``pid``; return whether it exists.

        Unknown field names raise TypeError; the pid itself cannot be changed.
        """
        if "pid" in kwargs:
            raise ValueError("The pid of a process cannot be changed")
        unknown = set(kwargs) - _UPDATABLE
        if unknown:
            raise TypeError(f"Unknown process fields: {', '.join(sorted(unknown))}")
        with self._lock:
            info = self._processes.get(pid)
            if info is None:
                return False
            for name, value in kwargs.items():
                setattr(info, name, copy.deepcopy(value))
            return True