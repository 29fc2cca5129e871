"""Thin, checked helpers for common file, directory and process operations."""

from __future__ import annotations

import os
import pwd
import shutil
import stat
import subprocess
import time
from enum import IntEnum
from typing import Sequence

TARGET_ARCHITECTURE = "x86_64"
OPERATING_SYSTEM = "Linux"
MAX_CPU_CORES = 8
MAX_MEMORY = 16384
PAGE_SIZE = 4096
FILE_DIRECTORY = "/home/user/files"
EXECUTABLE_NAME = "my_program"

_FILE_MODE = 0o644
_DIR_MODE = 0o777


class FileType(IntEnum):
    """Kinds of file reported by :func:`get_file_type`."""

    UNKNOWN = 0
    REGULAR = 1
    SYMBOLIC_LINK = 2
    DIRECTORY = 3


def get_timestamp() -> int:
    """Milliseconds on a monotonic clock."""
    return time.monotonic_ns() // 1_000_000


def read_file(filename: str | os.PathLike[str]) -> bytes:
    """Return the whole contents of ``filename``."""
    with open(filename, "rb") as handle:
        return handle.read()


def write_file(filename: str | os.PathLike[str], contents: str | bytes) -> None:
    """Replace ``filename`` with ``contents``, creating it with mode 0644."""
    data = contents.encode() if isinstance(contents, str) else bytes(contents)
    fd = os.open(filename, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _FILE_MODE)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)


def execute(command: str | Sequence[str]) -> int:
    """Run a program and wait for it; return its exit status.

    A string names the program to run without arguments; a sequence is the
    full argument vector.
    """
    argv = [command] if isinstance(command, str) else list(command)
    if not argv:
        raise ValueError("No command given")
    return subprocess.run(argv, check=False).returncode


def get_cwd() -> str:
    """The current working directory."""
    return os.getcwd()


def make_dir(dirname: str | os.PathLike[str]) -> None:
    """Create a directory readable, writable and searchable by everyone."""
    os.mkdir(dirname, _DIR_MODE)


def remove_dir(dirname: str | os.PathLike[str]) -> None:
    """Remove an empty directory."""
    os.rmdir(dirname)


def make_symlink(oldname: str | os.PathLike[str], newname: str | os.PathLike[str]) -> None:
    """Create ``newname`` as a symbolic link to ``oldname``."""
    os.symlink(oldname, newname)


def read_symlink(filename: str | os.PathLike[str]) -> str:
    """The target a symbolic link points to."""
    return os.fspath(os.readlink(filename))


def get_uid() -> int:
    """The effective user id."""
    return os.geteuid()


def get_gid() -> int:
    """The effective group id."""
    return os.getegid()


def get_home_directory() -> str:
    """The home directory of the effective user."""
    return pwd.getpwuid(os.geteuid()).pw_dir


def file_exists(filename: str | os.PathLike[str]) -> bool:
    """Whether ``filename`` exists."""
    return os.path.exists(filename)


def directory_exists(dirname: str | os.PathLike[str]) -> bool:
    """Whether ``dirname`` exists and is a directory."""
    return os.path.isdir(dirname)


def create_file(filename: str | os.PathLike[str]) -> None:
    """Create ``filename`` empty, truncating it if it exists."""
    os.close(os.open(filename, os.O_CREAT | os.O_RDWR | os.O_TRUNC, _FILE_MODE))


def delete_file(filename: str | os.PathLike[str]) -> None:
    """Remove ``filename``."""
    os.unlink(filename)


def rename_file(oldname: str | os.PathLike[str], newname: str | os.PathLike[str]) -> None:
    """Rename ``oldname`` to ``newname``."""
    os.rename(oldname, newname)


def copy_file(source: str | os.PathLike[str], destination: str | os.PathLike[str]) -> None:
    """Copy the contents of ``source`` into ``destination``."""
    shutil.copyfile(source, destination)


def move_file(source: str | os.PathLike[str], destination: str | os.PathLike[str]) -> None:
    """Move ``source`` to ``destination`` on the same file system."""
    os.rename(source, destination)


def get_file_size(filename: str | os.PathLike[str]) -> int:
    """Size of ``filename`` in bytes."""
    return os.stat(filename).st_size


def get_last_modified_time(filename: str | os.PathLike[str]) -> float:
    """Last modification time of ``filename`` in seconds since the epoch."""
    return os.stat(filename).st_mtime


def get_file_type(filename: str | os.PathLike[str]) -> FileType:
    """Classify ``filename`` without following a final symbolic link."""
    mode = os.lstat(filename).st_mode
    if stat.S_ISREG(mode):
        return FileType.REGULAR
    if stat.S_ISLNK(mode):
        return FileType.SYMBOLIC_LINK
    if stat.S_ISDIR(mode):
        return FileType.DIRECTORY
    return FileType.UNKNOWN