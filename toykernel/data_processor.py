"""Reads key/value records from a file, transforms the values and writes a report."""

from __future__ import annotations

import argparse
import logging
import re
import tomllib
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MAX_LINE_LENGTH = 1024
INT_MIN = -(2**31)
INT_MAX = 2**31 - 1
_INT_PREFIX = re.compile(r"[+-]?\d+")


class ConfigError(Exception):
    """The configuration is missing, malformed or invalid."""


class FileError(Exception):
    """An input or output file cannot be used."""


class DataError(Exception):
    """The input data is malformed."""


@dataclass
class Config:
    """Settings for one processing run."""

    input_file: str
    output_file: str
    reserve_size: int
    use_parallel_processing: bool = False

    def validate(self) -> None:
        """Raise ConfigError if any setting is unusable."""
        if not self.input_file:
            raise ConfigError("Input file path cannot be empty")
        if not self.output_file:
            raise ConfigError("Output file path cannot be empty")
        if self.reserve_size <= 0:
            raise ConfigError("Reserve size must be positive")


def _field(data: dict[str, Any], key: str, kind: type) -> Any:
    if key not in data:
        raise ConfigError(f"Failed to parse config file: missing key '{key}'")
    value = data[key]
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ConfigError(
            f"Failed to parse config file: '{key}' must be of type {kind.__name__}"
        )
    return value


def load_config(path: str | Path) -> Config:
    """Read and validate a TOML configuration file."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file does not exist: {path}")
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config file: {exc}") from exc
    config = Config(
        input_file=_field(data, "input_file", str),
        output_file=_field(data, "output_file", str),
        reserve_size=_field(data, "reserve_size", int),
        use_parallel_processing=_field(data, "use_parallel_processing", bool),
    )
    config.validate()
    return config


def transform_value(value: int) -> int:
    """Double values above ten; halve the rest, truncating toward zero."""
    if value > 10:
        return value * 2
    quotient = abs(value) // 2
    return quotient if value >= 0 else -quotient


def _parse_line(line: str, line_num: int) -> tuple[str, int]:
    tokens = line.split()
    if len(tokens) < 2:
        raise DataError(f"Invalid data format at line {line_num}")
    match = _INT_PREFIX.match(tokens[1])
    if match is None:
        raise DataError(f"Invalid data format at line {line_num}")
    value = int(match.group())
    if not INT_MIN <= value <= INT_MAX:
        raise DataError(f"Invalid data format at line {line_num}")
    return tokens[0], value


class DataProcessor:
    """Runs the read, transform and write steps for one configuration."""

    def __init__(self, config: Config) -> None:
        self.config = config

    def process(self) -> dict[str, int]:
        """Process the input file into the output file; return the written data."""
        logger.info("Starting data processing")
        data = self.read_data()
        processed = self._transform(data)
        self.write_output(processed)
        logger.info("Processing completed successfully")
        return processed

    def read_data(self) -> dict[str, int]:
        """Parse the input file; the first occurrence of a key wins."""
        path = Path(self.config.input_file)
        if not path.exists():
            raise FileError(f"Input file does not exist: {self.config.input_file}")
        try:
            handle = path.open(encoding="utf-8", errors="replace", newline="\n")
        except OSError as exc:
            raise FileError(f"Could not open input file: {self.config.input_file}") from exc

        data: dict[str, int] = {}
        with handle:
            for line_num, raw in enumerate(handle, start=1):
                line = raw.removesuffix("\n")
                if len(line) > MAX_LINE_LENGTH:
                    raise DataError(f"Line {line_num} exceeds maximum length")
                if not line or line.startswith("#"):
                    continue
                key, value = _parse_line(line, line_num)
                if key in data:
                    logger.warning("Duplicate key found: %s", key)
                    continue
                data[key] = value
        return data

    def _transform(self, data: dict[str, int]) -> dict[str, int]:
        if self.config.use_parallel_processing:
            with ThreadPoolExecutor() as executor:
                values = list(executor.map(transform_value, data.values()))
            return dict(zip(data, values))
        return {key: transform_value(value) for key, value in data.items()}

    def write_output(self, data: dict[str, int]) -> None:
        """Write ``key: value`` lines, creating parent directories as needed."""
        path = Path(self.config.output_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            handle = path.open("w", encoding="utf-8", newline="\n")
        except OSError as exc:
            raise FileError(f"Could not open output file: {self.config.output_file}") from exc
        with handle:
            try:
                for key, value in data.items():
                    handle.write(f"{key}: {value}\n")
            except OSError as exc:
                raise FileError(f"Failed to write to output file: {exc}") from exc


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="DataProcessor", description="Process key-value data from files"
    )
    parser.add_argument("-c", "--config", default="config.toml", help="Config file path")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG,
        format="[%(asctime)s.%(msecs)03d] [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    try:
        config = load_config(args.config)
        DataProcessor(config).process()
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 1
    except FileError as exc:
        logger.error("File error: %s", exc)
        return 2
    except DataError as exc:
        logger.error("Data error: %s", exc)
        return 3
    except Exception as exc:
        logger.error("Unexpected error: %s", exc)
        return 4
    return 0