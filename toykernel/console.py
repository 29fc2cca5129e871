"""A line-oriented command console: parse, dispatch and report errors."""

from __future__ import annotations

import argparse
import re
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, TextIO

DEFAULT_PATTERN = r"\s*(\S+)\s*(.*)"


def split(text: str) -> list[str]:
    """Split ``text`` into whitespace-separated words."""
    return text.split()


class UnknownCommandError(LookupError):
    """No command is registered under the requested name."""


@dataclass
class ParsedCommand:
    """A command name and its arguments."""

    name: str
    args: list[str] = field(default_factory=list)


class CommandParser:
    """Matches a whole line against a pattern of name and argument groups.

    The first group of the pattern is the command name, the optional second
    group the argument string, which is split on whitespace.
    """

    def __init__(self, pattern: str | re.Pattern[str] = DEFAULT_PATTERN) -> None:
        self.pattern = re.compile(pattern)

    def parse(self, command: str) -> ParsedCommand:
        """Parse ``command``; raise ValueError if it does not match."""
        match = self.pattern.fullmatch(command)
        if match is None:
            raise ValueError("Invalid command syntax.")
        arguments = match.group(2) if self.pattern.groups >= 2 else None
        return ParsedCommand(match.group(1), split(arguments or ""))


class CommandExecutor:
    """Dispatches parsed commands to registered callables."""

    def __init__(self) -> None:
        self._commands: dict[str, Callable[..., Any]] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def register(self, name: str, func: Callable[..., Any]) -> None:
        """Register ``func`` to run for ``name``, replacing any earlier one."""
        self._commands[name] = func

    def execute(self, command: ParsedCommand) -> Any:
        """Call the command's function with its arguments and return the result."""
        func = self._commands.get(command.name)
        if func is None:
            raise UnknownCommandError(f"Unknown command: {command.name}")
        return func(*command.args)


class ErrorHandler:
    """Routes exceptions to callbacks registered for their type."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._callbacks: dict[type[BaseException], Callable[[BaseException], Any]] = {}
        self._stream = stream

    def register(
        self, exc_type: type[BaseException], callback: Callable[[BaseException], Any]
    ) -> None:
        """Call ``callback`` for errors of ``exc_type`` and its subclasses."""
        if not (isinstance(exc_type, type) and issubclass(exc_type, BaseException)):
            raise TypeError("exc_type must be an exception class")
        self._callbacks[exc_type] = callback

    def handle(self, error: BaseException) -> bool:
        """Pass ``error`` to the most specific callback; report it if there is none.

        Returns whether a callback took the error.
        """
        for kind in type(error).__mro__:
            callback = self._callbacks.get(kind)
            if callback is not None:
                callback(error)
                return True
        stream = self._stream if self._stream is not None else sys.stderr
        stream.write(f"Unhandled exception: {error}\n")
        return False


class Console:
    """Reads lines, executes them as commands and hands failures to the handler."""

    def __init__(
        self,
        parser: CommandParser,
        executor: CommandExecutor,
        handler: ErrorHandler,
        lines: Iterable[str] | None = None,
    ) -> None:
        self.parser = parser
        self.executor = executor
        self.handler = handler
        self._lines = lines

    def run(self) -> int:
        """Process every input line until the end; return how many succeeded."""
        lines = self._lines if self._lines is not None else sys.stdin
        succeeded = 0
        for raw in lines:
            line = raw.rstrip("\r\n")
            if not line.strip():
                continue
            try:
                self.executor.execute(self.parser.parse(line))
            except Exception as exc:
                self.handler.handle(exc)
            else:
                succeeded += 1
        return succeeded


def _hello() -> None:
    print("Hello, world!")


def _add(x: str, y: str) -> None:
    print(int(x) + int(y))


def main(argv: list[str] | None = None) -> int:
    arg_parser = argparse.ArgumentParser(description="Read commands from standard input.")
    arg_parser.parse_args(argv)

    executor = CommandExecutor()
    executor.register("hello", _hello)
    executor.register("add", _add)
    Console(CommandParser(), executor, ErrorHandler()).run()
    return 0