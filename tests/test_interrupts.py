import struct

import pytest

from toykernel.interrupts import (
    ENTRY_SIZE,
    IDT_SIZE,
    INTERRUPT_GATE_FLAGS,
    KERNEL_CODE_SELECTOR,
    ProcessorGroup,
    build_idt,
    idt_pointer,
    make_idt_entry,
    unpack_idt_entry,
)

HANDLER = 0x1122334455667788


def test_entry_encoding_for_interrupt_gate():
    packed = make_idt_entry(HANDLER, KERNEL_CODE_SELECTOR, INTERRUPT_GATE_FLAGS).pack()
    assert len(packed) == ENTRY_SIZE == 16
    assert packed[5] == 0x8E
    assert packed[2:4] == KERNEL_CODE_SELECTOR.to_bytes(2, "little")
    assert packed[4] == 0
    assert packed[12:] == bytes(4)


def test_entry_round_trip():
    entry = make_idt_entry(HANDLER, KERNEL_CODE_SELECTOR, INTERRUPT_GATE_FLAGS)
    decoded = unpack_idt_entry(entry.pack())
    assert decoded == entry
    assert decoded.handler == HANDLER
    assert decoded.present == 1


def test_dpl_comes_from_flags():
    entry = make_idt_entry(0, KERNEL_CODE_SELECTOR, 0xEE)
    assert entry.dpl == 3
    assert entry.pack()[5] == 0xEE


def test_invalid_handler_rejected():
    with pytest.raises(ValueError):
        make_idt_entry(-1, KERNEL_CODE_SELECTOR, INTERRUPT_GATE_FLAGS)


def test_unpack_rejects_wrong_length():
    with pytest.raises(ValueError):
        unpack_idt_entry(bytes(ENTRY_SIZE - 1))


def test_build_idt_routes_every_vector():
    table = build_idt(HANDLER)
    assert len(table) == IDT_SIZE == 256
    assert {entry.handler for entry in table} == {HANDLER}
    assert all(entry.selector == KERNEL_CODE_SELECTOR for entry in table)


def test_idt_pointer_limit_and_base():
    table = build_idt(HANDLER)
    pointer = idt_pointer(table, 0xDEADBEEF)
    limit, base = struct.unpack("<HQ", pointer)
    assert len(pointer) == 10
    assert base == 0xDEADBEEF
    assert limit == len(b"".join(entry.pack() for entry in table)) - 1


def test_idt_pointer_rejects_empty_table():
    with pytest.raises(ValueError):
        idt_pointer([], 0)


def test_processor_group_lifecycle():
    group = ProcessorGroup(3, handler=HANDLER)
    group.start()
    group.stop()
    group.join()
    assert group.active_processors == 0
    assert sorted(group.tables) == [0, 1, 2]
    assert all(table == build_idt(HANDLER) for table in group.tables.values())


def test_processor_group_cannot_start_twice():
    group = ProcessorGroup(1)
    group.start()
    try:
        with pytest.raises(RuntimeError):
            group.start()
    finally:
        group.stop()
        group.join()
    assert group.active_processors == 0


def test_processor_group_rejects_zero_processors():
    with pytest.raises(ValueError):
        ProcessorGroup(0)