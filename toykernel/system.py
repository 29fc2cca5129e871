"""A small record describing a system by id and name."""

from __future__ import annotations

import argparse
from dataclasses import dataclass

MAX_NAME_LENGTH = 19


@dataclass
class System:
    """A system with a numeric id and a short name."""

    system_id: int
    system_name: str

    def __post_init__(self) -> None:
        if len(self.system_name) > MAX_NAME_LENGTH:
            raise ValueError(
                f"System name must be at most {MAX_NAME_LENGTH} characters"
            )

    def describe(self) -> str:
        """Return the system's id and name, one per line."""
        return f"System ID: {self.system_id}\nSystem Name: {self.system_name}"


def main(argv: list[str] | None = None) -> int:
    """Build a system from the arguments and print its description."""
    parser = argparse.ArgumentParser(description="Describe a system.")
    parser.add_argument("--id", type=int, default=1, dest="system_id")
    parser.add_argument("--name", default="My System", dest="system_name")
    args = parser.parse_args(argv)
    try:
        system = System(args.system_id, args.system_name)
    except ValueError as error:
        parser.error(str(error))
    print(system.describe())
    return 0