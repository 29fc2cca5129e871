"""Parsing of 32-bit ELF kernel images and construction of boot parameters."""

from __future__ import annotations

import argparse
import struct
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

ELFMAG = b"\x7fELF"
PT_LOAD = 1
BOOT_MAGIC = 0x1BADB002
STACK_SIZE = 0x1000
HEAP_SIZE = 0x1000

_IDENT_SIZE = 16
_EI_DATA = 5
_ELFDATA2MSB = 2
_HEADER_FIELDS = "HHIIIIIHHHHHH"
_PHDR_FIELDS = "IIIIIIII"
_BOOT_PARAMS = struct.Struct("<IIII")


class InvalidKernelError(Exception):
    """The image is not a usable ELF kernel."""


@dataclass(frozen=True)
class ElfHeader:
    """The fields of a 32-bit ELF file header."""

    ident: bytes
    type: int
    machine: int
    version: int
    entry: int
    phoff: int
    shoff: int
    flags: int
    ehsize: int
    phentsize: int
    phnum: int
    shentsize: int
    shnum: int
    shstrndx: int

    @property
    def byte_order(self) -> str:
        """The struct prefix matching the file's data encoding."""
        return ">" if self.ident[_EI_DATA] == _ELFDATA2MSB else "<"


@dataclass(frozen=True)
class LoadSegment:
    """A loadable program segment and the bytes the file holds for it."""

    offset: int
    vaddr: int
    filesz: int
    memsz: int
    flags: int
    data: bytes


@dataclass(frozen=True)
class BootParams:
    """The parameter block handed to the kernel entry point."""

    magic: int
    size: int
    load_addr: int
    entry_point: int

    def pack(self) -> bytes:
        """Encode as four little-endian 32-bit words."""
        return _BOOT_PARAMS.pack(self.magic, self.size, self.load_addr, self.entry_point)


def read_elf_header(data: bytes) -> ElfHeader:
    """Parse the ELF header at the start of ``data``."""
    if data[: len(ELFMAG)] != ELFMAG:
        raise InvalidKernelError("Invalid ELF header")
    if len(data) < _IDENT_SIZE:
        raise InvalidKernelError("Truncated ELF header")
    ident = bytes(data[:_IDENT_SIZE])
    order = ">" if ident[_EI_DATA] == _ELFDATA2MSB else "<"
    layout = struct.Struct(order + _HEADER_FIELDS)
    if len(data) < _IDENT_SIZE + layout.size:
        raise InvalidKernelError("Truncated ELF header")
    return ElfHeader(ident, *layout.unpack_from(data, _IDENT_SIZE))


def iter_load_segments(data: bytes, header: ElfHeader) -> Iterator[LoadSegment]:
    """Yield the PT_LOAD segments described by ``header``'s program headers."""
    layout = struct.Struct(header.byte_order + _PHDR_FIELDS)
    stride = header.phentsize or layout.size
    for index in range(header.phnum):
        position = header.phoff + index * stride
        if position + layout.size > len(data):
            raise InvalidKernelError(f"Program header {index} lies outside the file")
        p_type, offset, vaddr, _paddr, filesz, memsz, flags, _align = layout.unpack_from(
            data, position
        )
        if p_type != PT_LOAD:
            continue
        if offset + filesz > len(data):
            raise InvalidKernelError(f"Segment {index} lies outside the file")
        yield LoadSegment(offset, vaddr, filesz, memsz, flags, bytes(data[offset : offset + filesz]))


def make_boot_params(header: ElfHeader, load_addr: int) -> BootParams:
    """Boot parameters for a kernel loaded at ``load_addr``."""
    if not 0 <= load_addr <= 0xFFFFFFFF:
        raise ValueError("Load address must fit in 32 bits")
    return BootParams(BOOT_MAGIC, _BOOT_PARAMS.size, load_addr, header.entry)


def load_kernel(filename: str | Path) -> tuple[BootParams, list[LoadSegment]]:
    """Read a kernel image and return its boot parameters and load segments.

    The load address is the lowest virtual address of any loadable segment,
    or zero when there is none.
    """
    data = Path(filename).read_bytes()
    header = read_elf_header(data)
    segments = list(iter_load_segments(data, header))
    load_addr = min((segment.vaddr for segment in segments), default=0)
    return make_boot_params(header, load_addr), segments


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect a kernel image for booting.")
    parser.add_argument("kernel_file")
    args = parser.parse_args(argv)

    try:
        params, segments = load_kernel(args.kernel_file)
    except OSError as exc:
        print(f"Error opening file: {exc}", file=sys.stderr)
        return 1
    except InvalidKernelError as exc:
        print(exc, file=sys.stderr)
        return 1

    print(f"Entry point: {params.entry_point:#x}")
    print(f"Load address: {params.load_addr:#x}")
    for segment in segments:
        print(
            f"Segment at {segment.vaddr:#x}: {segment.filesz} bytes from offset {segment.offset}"
        )
    return 0