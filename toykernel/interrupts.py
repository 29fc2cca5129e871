"""Interrupt descriptor table encoding and a group of simulated processors."""

from __future__ import annotations

import argparse
import logging
import signal
import struct
import threading
from dataclasses import dataclass

logger = logging.getLogger(__name__)

IDT_SIZE = 256
MAX_PROCESSORS = 4
KERNEL_CODE_SELECTOR = 0x08
INTERRUPT_GATE_FLAGS = 0x8E

_ENTRY = struct.Struct("<HHBBHII")
_POINTER = struct.Struct("<HQ")
ENTRY_SIZE = _ENTRY.size


@dataclass(frozen=True)
class IdtEntry:
    """One 64-bit interrupt gate descriptor."""

    offset_low: int = 0
    selector: int = 0
    ist: int = 0
    type: int = 0
    dpl: int = 0
    present: int = 0
    offset_middle: int = 0
    offset_high: int = 0

    @property
    def handler(self) -> int:
        """The full handler address the entry points to."""
        return self.offset_low | (self.offset_middle << 16) | (self.offset_high << 32)

    def pack(self) -> bytes:
        """Encode the entry as its 16-byte in-memory form."""
        attributes = (self.type & 0xF) | ((self.dpl & 0x3) << 5) | ((self.present & 0x1) << 7)
        return _ENTRY.pack(
            self.offset_low,
            self.selector,
            self.ist & 0x7,
            attributes,
            self.offset_middle,
            self.offset_high,
            0,
        )


def make_idt_entry(handler: int, selector: int, flags: int) -> IdtEntry:
    """Build a present gate for ``handler`` with the type and DPL from ``flags``."""
    if not 0 <= handler < 1 << 64:
        raise ValueError("Handler address must fit in 64 bits")
    return IdtEntry(
        offset_low=handler & 0xFFFF,
        selector=selector & 0xFFFF,
        ist=0,
        type=flags & 0xF,
        dpl=(flags >> 5) & 0x3,
        present=1,
        offset_middle=(handler >> 16) & 0xFFFF,
        offset_high=handler >> 32,
    )


def unpack_idt_entry(data: bytes) -> IdtEntry:
    """Decode a 16-byte descriptor."""
    if len(data) != ENTRY_SIZE:
        raise ValueError(f"An IDT entry is {ENTRY_SIZE} bytes, got {len(data)}")
    low, selector, ist_byte, attributes, middle, high, _ = _ENTRY.unpack(data)
    return IdtEntry(
        offset_low=low,
        selector=selector,
        ist=ist_byte & 0x7,
        type=attributes & 0xF,
        dpl=(attributes >> 5) & 0x3,
        present=(attributes >> 7) & 0x1,
        offset_middle=middle,
        offset_high=high,
    )


def build_idt(
    handler: int, selector: int = KERNEL_CODE_SELECTOR, flags: int = INTERRUPT_GATE_FLAGS
) -> list[IdtEntry]:
    """A full table with every vector routed to ``handler``."""
    entry = make_idt_entry(handler, selector, flags)
    return [entry] * IDT_SIZE


def idt_pointer(entries: list[IdtEntry], base: int) -> bytes:
    """Encode the limit/base pair that describes a table of ``entries``."""
    limit = len(entries) * ENTRY_SIZE - 1
    if not 0 <= limit <= 0xFFFF:
        raise ValueError("Table size does not fit the descriptor limit")
    if not 0 <= base < 1 << 64:
        raise ValueError("Base address must fit in 64 bits")
    return _POINTER.pack(limit, base)


class ProcessorGroup:
    """Threads standing in for processors: each sets up an IDT and idles until stopped."""

    def __init__(self, count: int = MAX_PROCESSORS, handler: int = 0) -> None:
        if count <= 0:
            raise ValueError("Processor count must be positive")
        self.count = count
        self.handler = handler
        self.tables: dict[int, list[IdtEntry]] = {}
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []

    @property
    def active_processors(self) -> int:
        """Number of processor threads still running."""
        return sum(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        """Start one thread per processor."""
        if self._threads:
            raise RuntimeError("Processors already started")
        for cpu_id in range(self.count):
            thread = threading.Thread(
                target=self._processor_main, args=(cpu_id,), name=f"cpu-{cpu_id}", daemon=True
            )
            self._threads.append(thread)
            thread.start()

    def _processor_main(self, cpu_id: int) -> None:
        logger.info("Processor %d starting up", cpu_id)
        table = build_idt(self.handler)
        with self._lock:
            self.tables[cpu_id] = table
        self._stop.wait()
        logger.info("Processor %d shutting down safely", cpu_id)

    def stop(self) -> None:
        """Tell every processor to shut down."""
        self._stop.set()

    def join(self) -> None:
        """Wait for every processor thread to finish."""
        for thread in self._threads:
            thread.join()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run simulated processors until signalled.")
    parser.add_argument("--processors", type=int, default=MAX_PROCESSORS)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="system_interrupts: %(message)s")
    group = ProcessorGroup(args.processors)

    def _on_signal(signum: int, frame: object) -> None:
        logger.info("Signal received, initiating shutdown.")
        group.stop()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)
    group.start()
    group.join()
    return 0