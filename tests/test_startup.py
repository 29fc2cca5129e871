import struct

import pytest

from toykernel.startup import (
    BOOT_MAGIC,
    BootParams,
    InvalidKernelError,
    iter_load_segments,
    load_kernel,
    main,
    make_boot_params,
    read_elf_header,
)

HEADER_SIZE = 52
PHDR_SIZE = 32


def _build_elf(entry, segments, order="<"):
    """segments: list of (p_type, vaddr, payload)."""
    ident = b"\x7fELF" + bytes([1, 2 if order == ">" else 1, 1]) + bytes(9)
    phoff = HEADER_SIZE
    data_start = phoff + PHDR_SIZE * len(segments)
    header = ident + struct.pack(
        order + "HHIIIIIHHHHHH",
        2, 3, 1, entry, phoff, 0, 0, HEADER_SIZE, PHDR_SIZE, len(segments), 0, 0, 0,
    )
    phdrs = b""
    payloads = b""
    for p_type, vaddr, payload in segments:
        offset = data_start + len(payloads)
        phdrs += struct.pack(
            order + "IIIIIIII", p_type, offset, vaddr, vaddr, len(payload), len(payload), 5, 4
        )
        payloads += payload
    return header + phdrs + payloads


def test_header_fields():
    image = _build_elf(0x100000, [(1, 0x100000, b"code")])
    header = read_elf_header(image)
    assert header.entry == 0x100000
    assert header.phoff == HEADER_SIZE
    assert header.phnum == 1
    assert header.byte_order == "<"


def test_big_endian_header():
    image = _build_elf(0x2000, [(1, 0x2000, b"abc")], order=">")
    header = read_elf_header(image)
    assert header.byte_order == ">"
    assert header.entry == 0x2000
    assert [s.data for s in iter_load_segments(image, header)] == [b"abc"]


def test_invalid_magic_raises():
    with pytest.raises(InvalidKernelError, match="Invalid ELF header"):
        read_elf_header(b"MZ" + bytes(60))


def test_truncated_header_raises():
    image = _build_elf(0x1000, [])
    with pytest.raises(InvalidKernelError):
        read_elf_header(image[:30])


def test_only_load_segments_are_yielded():
    image = _build_elf(
        0x1000, [(1, 0x1000, b"text"), (4, 0x0, b"note"), (1, 0x3000, b"data!")]
    )
    header = read_elf_header(image)
    segments = list(iter_load_segments(image, header))
    assert [s.vaddr for s in segments] == [0x1000, 0x3000]
    assert [s.data for s in segments] == [b"text", b"data!"]
    assert all(s.filesz == len(s.data) for s in segments)


def test_segment_outside_file_raises():
    image = _build_elf(0x1000, [(1, 0x1000, b"payload")])
    header = read_elf_header(image)
    with pytest.raises(InvalidKernelError):
        list(iter_load_segments(image[:-3], header))


def test_boot_params_pack_layout():
    header = read_elf_header(_build_elf(0x100000, []))
    params = make_boot_params(header, 0x200000)
    assert params == BootParams(BOOT_MAGIC, 16, 0x200000, 0x100000)
    packed = params.pack()
    assert len(packed) == 16
    assert packed[:4] == b"\x02\xb0\xad\x1b"
    assert struct.unpack("<IIII", packed) == (BOOT_MAGIC, 16, 0x200000, 0x100000)


def test_boot_params_reject_wide_address():
    header = read_elf_header(_build_elf(0x1000, []))
    with pytest.raises(ValueError):
        make_boot_params(header, 1 << 32)


def test_load_kernel_uses_lowest_segment(tmp_path):
    path = tmp_path / "kernel.elf"
    path.write_bytes(_build_elf(0x5000, [(1, 0x8000, b"hi"), (1, 0x4000, b"lo")]))
    params, segments = load_kernel(path)
    assert params.load_addr == 0x4000
    assert params.entry_point == 0x5000
    assert len(segments) == 2


def test_load_kernel_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_kernel(tmp_path / "absent.elf")


def test_main_reports_entry(tmp_path, capsys):
    path = tmp_path / "kernel.elf"
    path.write_bytes(_build_elf(0x100000, [(1, 0x100000, b"code")]))
    assert main([str(path)]) == 0
    assert "Entry point: 0x100000" in capsys.readouterr().out


def test_main_rejects_non_elf(tmp_path, capsys):
    path = tmp_path / "not-a-kernel"
    path.write_bytes(b"plain text file")
    assert main([str(path)]) == 1
    assert "Invalid ELF header" in capsys.readouterr().err