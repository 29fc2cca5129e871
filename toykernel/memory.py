"""A best-fit memory pool manager that hands out offsets into a byte pool."""

from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass, replace
from typing import Iterator

logger = logging.getLogger(__name__)

_RULE = "-" * 40


class AllocationError(Exception):
    """Raised when a pool operation cannot be carried out."""


@dataclass
class Block:
    """A contiguous region of the pool."""

    offset: int
    size: int
    is_free: bool = True


def _align_up(size: int, align: int) -> int:
    return (size + align - 1) & ~(align - 1)


class MemoryManager:
    """Manages a fixed byte pool with best-fit allocation and block merging.

    Addresses are byte offsets into the pool. ``item_size`` is the size of
    one element and ``alignment`` the alignment every block size is rounded to.
    """

    def __init__(self, total_size: int, item_size: int = 1, alignment: int = 1) -> None:
        if alignment <= 0 or alignment & (alignment - 1):
            raise ValueError("Alignment must be a positive power of two.")
        if item_size <= 0:
            raise ValueError("Item size must be positive.")
        self.item_size = item_size
        self.alignment = alignment
        self.pool_size = _align_up(total_size, alignment)
        if self.pool_size < alignment:
            raise ValueError("Pool size too small for alignment.")
        self._pool = bytearray(self.pool_size)
        self._blocks: list[Block] = [Block(0, self.pool_size, True)]
        self._allocated: set[int] = set()
        self._lock = threading.RLock()
        logger.info("MemoryManager initialized with pool size: %d", self.pool_size)

    def __enter__(self) -> MemoryManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        leaked = self.leaks()
        if leaked:
            logger.error("Memory leaks detected:")
            for offset in leaked:
                logger.error(" - Leaked block at offset %d", offset)
        else:
            logger.info("No memory leaks detected.")

    def __iter__(self) -> Iterator[Block]:
        with self._lock:
            snapshot = [replace(block) for block in self._blocks]
        return iter(snapshot)

    def _bytes_for(self, count: int) -> int:
        return _align_up(count * self.item_size, self.alignment)

    def _is_allocated(self, address: int) -> bool:
        return 0 <= address < self.pool_size and address in self._allocated

    def _index_of(self, offset: int) -> int | None:
        return next((i for i, b in enumerate(self._blocks) if b.offset == offset), None)

    def _block_size_at(self, offset: int) -> int:
        return next(
            (b.size for b in self._blocks if b.offset <= offset < b.offset + b.size), 0
        )

    def _merge(self, index: int) -> None:
        if index >= len(self._blocks) or not self._blocks[index].is_free:
            return
        block = self._blocks[index]
        while index + 1 < len(self._blocks) and self._blocks[index + 1].is_free:
            block.size += self._blocks.pop(index + 1).size
            logger.info("Merged with next free block. New size: %d", block.size)
        if index > 0 and self._blocks[index - 1].is_free:
            previous = self._blocks[index - 1]
            previous.size += block.size
            del self._blocks[index]
            logger.info("Merged with previous free block. New size: %d", previous.size)

    def allocate(self, size: int) -> int:
        """Allocate room for ``size`` items and return the block's offset."""
        with self._lock:
            if size <= 0:
                logger.warning("Attempted to allocate 0 size.")
                raise ValueError("Cannot allocate zero items.")
            needed = self._bytes_for(size)
            logger.info("Allocating %d objects (%d bytes).", size, needed)

            best: int | None = None
            for index, block in enumerate(self._blocks):
                if block.is_free and block.size >= needed:
                    if best is None or block.size < self._blocks[best].size:
                        best = index
            if best is None:
                logger.error("Allocation failed: Not enough memory.")
                raise AllocationError("Not enough memory.")

            block = self._blocks[best]
            offset = block.offset
            if block.size > needed:
                self._blocks[best : best + 1] = [
                    Block(offset, needed, False),
                    Block(offset + needed, block.size - needed, True),
                ]
            else:
                block.is_free = False
            self._allocated.add(offset)
            logger.info("Allocated at offset: %d", offset)
            return offset

    def deallocate(self, address: int) -> None:
        """Free the block that starts at ``address``."""
        if address is None:
            logger.warning("Attempted to deallocate a null pointer.")
            raise ValueError("Cannot deallocate a null address.")
        with self._lock:
            if not self._is_allocated(address):
                logger.error("Deallocation failed: Invalid address.")
                raise AllocationError(f"Invalid address: {address}")
            index = self._index_of(address)
            if index is None or self._blocks[index].is_free:
                logger.error("Deallocation failed: Block not found or already free.")
                raise AllocationError(f"Block not found or already free: {address}")
            self._blocks[index].is_free = True
            self._allocated.discard(address)
            logger.info("Deallocated block at offset: %d", address)
            self._merge(index)

    def reallocate(self, address: int | None, new_size: int) -> int | None:
        """Resize the block at ``address`` to ``new_size`` items.

        Returns the block's (possibly new) offset, or None when ``new_size``
        is zero and the block has been freed.
        """
        if new_size == 0:
            if address is not None:
                self.deallocate(address)
            return None
        if address is None:
            return self.allocate(new_size)

        with self._lock:
            if not self._is_allocated(address):
                logger.error("Reallocation failed: Invalid address.")
                raise AllocationError(f"Invalid address: {address}")
            index = self._index_of(address)
            if index is None or self._blocks[index].is_free:
                logger.error("Reallocation failed: Block not found or is free.")
                raise AllocationError(f"Block not found or is free: {address}")

            block = self._blocks[index]
            current = block.size
            needed = self._bytes_for(new_size)

            if needed == current:
                logger.info("Reallocation not required: Size unchanged.")
                return address

            if needed < current:
                block.size = needed
                self._blocks.insert(index + 1, Block(block.offset + needed, current - needed, True))
                self._merge(index + 1)
                logger.info(
                    "Shrunk block at offset %d from %d to %d", block.offset, current, needed
                )
                return address

            if index + 1 < len(self._blocks) and self._blocks[index + 1].is_free:
                following = self._blocks[index + 1]
                additional = needed - block.size
                if additional <= following.size:
                    block.size += additional
                    if following.size > additional:
                        following.offset += additional
                        following.size -= additional
                        self._merge(index + 1)
                    else:
                        del self._blocks[index + 1]
                    logger.info(
                        "Expanded block at offset %d to size %d", block.offset, block.size
                    )
                    return address

            try:
                new_address = self.allocate(new_size)
            except AllocationError:
                logger.error("Reallocation failed: Unable to allocate new block.")
                raise
            self._pool[new_address : new_address + current] = self._pool[address : address + current]
            self.deallocate(address)
            logger.info("Reallocated block from offset %d to new offset %d", address, new_address)
            return new_address

    def copy(self, source: int, destination: int, count: int) -> int:
        """Copy up to ``count`` items between allocated blocks; return bytes copied."""
        if source is None or destination is None or count <= 0:
            logger.warning("Invalid parameters for copy operation.")
            raise ValueError("Invalid parameters for copy operation.")
        with self._lock:
            if not self._is_allocated(source) or not self._is_allocated(destination):
                logger.error("Copy failed: Invalid source or destination address.")
                raise AllocationError("Invalid source or destination address.")
            nbytes = min(
                count * self.item_size,
                self._block_size_at(source),
                self._block_size_at(destination),
            )
            self._pool[destination : destination + nbytes] = self._pool[source : source + nbytes]
            logger.info("Copied %d bytes from source to destination.", nbytes)
            return nbytes

    def get_memory_block(self, address: int) -> memoryview | None:
        """Return a view of the used block containing ``address``, or None."""
        if not 0 <= address < self.pool_size:
            return None
        with self._lock:
            for block in self._blocks:
                if block.offset <= address < block.offset + block.size and not block.is_free:
                    length = (block.size // self.item_size) * self.item_size
                    return memoryview(self._pool)[block.offset : block.offset + length]
        return None

    def leaks(self) -> list[int]:
        """Offsets of blocks that are still allocated."""
        with self._lock:
            return sorted(self._allocated)

    def format_state(self) -> str:
        """Describe the pool usage and every block as a table."""
        with self._lock:
            free = sum(b.size for b in self._blocks if b.is_free)
            lines = [
                _RULE,
                "Memory State:",
                f"Total Memory: {self.pool_size} bytes",
                f"Used Memory: {self.pool_size - free} bytes",
                f"Free Memory: {free} bytes",
                "Blocks:",
                f"{'Offset':<10}{'Size':<10}{'Status':<10}",
            ]
            lines.extend(
                f"{b.offset:<10}{b.size:<10}{'Free' if b.is_free else 'Used':<10}"
                for b in self._blocks
            )
            lines.append(_RULE)
        return "\n".join(lines)

    def print_state(self) -> str:
        """Write the pool state to standard output and return the text written."""
        text = self.format_state()
        sys.stdout.write(text + "\n")
        sys.stdout.flush()
        return text