import logging

import pytest

from toykernel.memory import AllocationError, Block, MemoryManager


def _total(mm):
    return sum(block.size for block in mm)


def test_pool_size_is_aligned():
    mm = MemoryManager(10, item_size=4, alignment=8)
    assert mm.pool_size % 8 == 0
    assert mm.pool_size >= 10


def test_zero_pool_rejected():
    with pytest.raises(ValueError):
        MemoryManager(0, alignment=4)


def test_sequential_allocations_are_contiguous():
    mm = MemoryManager(64)
    a = mm.allocate(16)
    b = mm.allocate(8)
    assert a == 0
    assert b == 16
    assert mm.leaks() == [0, 16]
    assert _total(mm) == 64


def test_best_fit_picks_smallest_hole():
    mm = MemoryManager(100)
    a = mm.allocate(30)
    mm.allocate(10)
    c = mm.allocate(20)
    mm.allocate(10)
    mm.deallocate(a)
    mm.deallocate(c)
    assert mm.allocate(15) == c


def test_zero_size_allocation_rejected():
    mm = MemoryManager(32)
    with pytest.raises(ValueError):
        mm.allocate(0)


def test_out_of_memory():
    mm = MemoryManager(32)
    with pytest.raises(AllocationError):
        mm.allocate(33)


def test_free_everything_merges_back():
    mm = MemoryManager(64)
    offsets = [mm.allocate(8) for _ in range(4)]
    for offset in [offsets[1], offsets[3], offsets[0], offsets[2]]:
        mm.deallocate(offset)
    assert list(mm) == [Block(0, 64, True)]
    assert mm.leaks() == []


def test_double_free_and_bad_address():
    mm = MemoryManager(64)
    a = mm.allocate(8)
    mm.deallocate(a)
    with pytest.raises(AllocationError):
        mm.deallocate(a)
    with pytest.raises(AllocationError):
        mm.deallocate(500)
    with pytest.raises(ValueError):
        mm.deallocate(None)


def test_reallocate_shrink_keeps_address():
    mm = MemoryManager(64)
    a = mm.allocate(32)
    assert mm.reallocate(a, 8) == a
    blocks = list(mm)
    assert blocks[0] == Block(a, 8, False)
    assert all(block.is_free for block in blocks[1:])
    assert _total(mm) == 64


def test_reallocate_same_size():
    mm = MemoryManager(64)
    a = mm.allocate(16)
    assert mm.reallocate(a, 16) == a


def test_reallocate_expands_in_place():
    mm = MemoryManager(64)
    a = mm.allocate(8)
    assert mm.reallocate(a, 24) == a
    assert list(mm)[0] == Block(a, 24, False)
    assert _total(mm) == 64


def test_reallocate_moves_and_copies_data():
    mm = MemoryManager(64)
    a = mm.allocate(4)
    mm.allocate(4)
    mm.get_memory_block(a)[:] = b"abcd"
    moved = mm.reallocate(a, 16)
    assert moved != a
    assert bytes(mm.get_memory_block(moved)[:4]) == b"abcd"
    assert a not in mm.leaks()


def test_reallocate_none_and_zero():
    mm = MemoryManager(64)
    a = mm.reallocate(None, 8)
    assert a in mm.leaks()
    assert mm.reallocate(a, 0) is None
    assert mm.leaks() == []


def test_reallocate_invalid_address():
    mm = MemoryManager(64)
    with pytest.raises(AllocationError):
        mm.reallocate(8, 4)


def test_copy_limited_by_block_size():
    mm = MemoryManager(64)
    src = mm.allocate(8)
    dst = mm.allocate(4)
    mm.get_memory_block(src)[:] = b"ABCDEFGH"
    assert mm.copy(src, dst, 8) == 4
    assert bytes(mm.get_memory_block(dst)) == b"ABCD"


def test_copy_errors():
    mm = MemoryManager(64)
    a = mm.allocate(8)
    with pytest.raises(ValueError):
        mm.copy(a, a, 0)
    with pytest.raises(AllocationError):
        mm.copy(a, 40, 4)


def test_get_memory_block_cases():
    mm = MemoryManager(64, item_size=4, alignment=4)
    a = mm.allocate(3)
    view = mm.get_memory_block(a + 1)
    assert len(view) == 3 * 4
    assert mm.get_memory_block(40) is None
    assert mm.get_memory_block(1000) is None


def test_format_state_reports_usage():
    mm = MemoryManager(64)
    mm.allocate(16)
    text = mm.format_state()
    assert "Total Memory: 64 bytes" in text
    assert "Used Memory: 16 bytes" in text
    assert "Free Memory: 48 bytes" in text
    assert text.splitlines()[6].split() == ["Offset", "Size", "Status"]


def test_print_state(capsys):
    mm = MemoryManager(32)
    mm.print_state()
    assert capsys.readouterr().out.strip() == mm.format_state().strip()


def test_context_manager_reports_leaks(caplog):
    with caplog.at_level(logging.INFO, logger="toykernel.memory"):
        with MemoryManager(32) as mm:
            mm.allocate(8)
    assert "Leaked block at offset 0" in caplog.text