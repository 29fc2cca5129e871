"""An in-memory character device with a resizable buffer and ioctl controls."""

from __future__ import annotations

import errno
import logging
import os
import threading
from enum import IntEnum

logger = logging.getLogger(__name__)

PAGE_SIZE = 4096
MAX_BUFFER_SIZE = 10 * PAGE_SIZE
DEVICE_NAME = "mydynamicchar"

_MAGIC = ord("M")
_INT_SIZE = 4
_IOC_NONE = 0
_IOC_WRITE = 1
_IOC_READ = 2


def _ioc(direction: int, nr: int, size: int) -> int:
    return (direction << 30) | (size << 16) | (_MAGIC << 8) | nr


class IoctlCommand(IntEnum):
    """Control requests understood by :meth:`CharDevice.ioctl`."""

    GET_BUFFER_SIZE = _ioc(_IOC_READ, 1, _INT_SIZE)
    SET_BUFFER_SIZE = _ioc(_IOC_WRITE, 2, _INT_SIZE)
    CLEAR_BUFFER = _ioc(_IOC_NONE, 3, 0)
    GET_OPEN_COUNT = _ioc(_IOC_READ, 4, _INT_SIZE)


def _os_error(code: int) -> OSError:
    return OSError(code, os.strerror(code))


class CharDevice:
    """A device holding one byte buffer shared by every open handle."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._buffer = bytearray(PAGE_SIZE)
        self._open_count = 0

    @property
    def buffer_size(self) -> int:
        with self._lock:
            return len(self._buffer)

    @property
    def open_count(self) -> int:
        with self._lock:
            return self._open_count

    def open(self) -> DeviceHandle:
        """Open the device and return a handle positioned at offset zero."""
        with self._lock:
            self._open_count += 1
            count = self._open_count
        logger.debug("Device opened, open count: %d", count)
        return DeviceHandle(self)

    def _release(self) -> None:
        with self._lock:
            self._open_count -= 1
            count = self._open_count
        logger.debug("Device closed, open count: %d", count)

    def _read_at(self, offset: int, count: int) -> bytes:
        with self._lock:
            if offset >= len(self._buffer):
                return b""
            return bytes(self._buffer[offset : offset + count])

    def _write_at(self, offset: int, data: bytes) -> int:
        with self._lock:
            available = len(self._buffer) - offset
            if available <= 0:
                return 0
            chunk = data[:available]
            self._buffer[offset : offset + len(chunk)] = chunk
            return len(chunk)

    def resize(self, size: int) -> None:
        """Replace the buffer with a zeroed one of ``size`` bytes."""
        if not 0 < size <= MAX_BUFFER_SIZE:
            raise ValueError(f"Buffer size must be between 1 and {MAX_BUFFER_SIZE}")
        with self._lock:
            self._buffer = bytearray(size)
        logger.info("Buffer size changed to: %d", size)

    def clear(self) -> None:
        """Zero the whole buffer."""
        with self._lock:
            self._buffer[:] = bytes(len(self._buffer))
        logger.info("Buffer cleared")

    def ioctl(self, command: int, argument: int | None = None) -> int | None:
        """Carry out a control request; GET requests return their value."""
        try:
            request = IoctlCommand(command)
        except ValueError:
            raise _os_error(errno.ENOTTY) from None
        if request is IoctlCommand.GET_BUFFER_SIZE:
            return self.buffer_size
        if request is IoctlCommand.SET_BUFFER_SIZE:
            if not isinstance(argument, int) or isinstance(argument, bool):
                raise _os_error(errno.EFAULT)
            self.resize(argument)
            return None
        if request is IoctlCommand.CLEAR_BUFFER:
            self.clear()
            return None
        return self.open_count


class DeviceHandle:
    """An open file on a :class:`CharDevice` with its own read/write position."""

    def __init__(self, device: CharDevice) -> None:
        self._device = device
        self.position = 0
        self.closed = False

    def __enter__(self) -> DeviceHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed device")

    def read(self, count: int) -> bytes:
        """Read up to ``count`` bytes; empty at the end of the buffer."""
        self._check_open()
        if count < 0:
            raise ValueError("count must not be negative")
        data = self._device._read_at(self.position, count)
        self.position += len(data)
        return data

    def write(self, data: bytes) -> int:
        """Write as much of ``data`` as fits; return the number of bytes written."""
        self._check_open()
        written = self._device._write_at(self.position, bytes(data))
        self.position += written
        return written

    def close(self) -> None:
        """Release the handle; closing twice has no further effect."""
        if not self.closed:
            self.closed = True
            self._device._release()