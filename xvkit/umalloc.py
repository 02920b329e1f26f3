"""First-fit free-list memory allocator over a growable heap."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

HEADER_SIZE = 8
MIN_UNITS = 4096

_BASE = 0


@dataclass
class _Header:
    next: int = _BASE
    size: int = 0


class FreeBlock(NamedTuple):
    """A free block: address of its header and its size in bytes, header included."""

    address: int
    size: int


class Allocator:
    """Allocator keeping a circular, address-ordered free list of blocks.

    The heap begins at heap_start and grows in steps of at least MIN_UNITS
    header-sized units; growing past heap_limit fails with MemoryError.
    """

    def __init__(self, heap_start: int = 4096, heap_limit: int | None = None) -> None:
        if heap_start < HEADER_SIZE or heap_start % HEADER_SIZE:
            raise ValueError(f"heap start must be a positive multiple of {HEADER_SIZE}")
        if heap_limit is not None and heap_limit < heap_start:
            raise ValueError("heap limit lies below heap start")
        self.heap_start = heap_start
        self.heap_limit = heap_limit
        self._brk = heap_start
        self._headers: dict[int, _Header] = {_BASE: _Header()}
        self._freep: int | None = None
        self._allocated: set[int] = set()

    @property
    def brk(self) -> int:
        """Current end of the heap."""
        return self._brk

    def _sbrk(self, nbytes: int) -> int | None:
        if self.heap_limit is not None and self._brk + nbytes > self.heap_limit:
            return None
        old = self._brk
        self._brk += nbytes
        return old

    def _morecore(self, nunits: int) -> int | None:
        nunits = max(nunits, MIN_UNITS)
        hp = self._sbrk(nunits * HEADER_SIZE)
        if hp is None:
            return None
        self._headers[hp] = _Header(size=nunits)
        self._release(hp)
        return self._freep

    def _release(self, bp: int) -> None:
        h = self._headers
        p = self._freep
        assert p is not None
        while not (p < bp < h[p].next):
            if p >= h[p].next and (bp > p or bp < h[p].next):
                break
            p = h[p].next
        nxt = h[p].next
        if bp + h[bp].size * HEADER_SIZE == nxt:
            h[bp].size += h[nxt].size
            h[bp].next = h[nxt].next
        else:
            h[bp].next = nxt
        if p + h[p].size * HEADER_SIZE == bp:
            h[p].size += h[bp].size
            h[p].next = h[bp].next
        else:
            h[p].next = bp
        self._freep = p

    def malloc(self, nbytes: int) -> int:
        """Allocate nbytes and return the address of the usable memory."""
        if nbytes < 0:
            raise ValueError("cannot allocate a negative number of bytes")
        h = self._headers
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            h[_BASE] = _Header(next=_BASE, size=0)
            self._freep = _BASE
        prevp = self._freep
        p = h[prevp].next
        while True:
            if h[p].size >= nunits:
                if h[p].size == nunits:
                    h[prevp].next = h[p].next
                else:
                    h[p].size -= nunits
                    p += h[p].size * HEADER_SIZE
                    h[p] = _Header(size=nunits)
                self._freep = prevp
                self._allocated.add(p)
                return p + HEADER_SIZE
            if p == self._freep:
                grown = self._morecore(nunits)
                if grown is None:
                    raise MemoryError(f"cannot allocate {nbytes} bytes")
                p = grown
            prevp = p
            p = h[p].next

    def free(self, address: int) -> None:
        """Return memory obtained from malloc to the free list."""
        bp = address - HEADER_SIZE
        if bp not in self._allocated:
            raise ValueError(f"address {address:#x} was not allocated")
        self._allocated.remove(bp)
        self._release(bp)

    def free_blocks(self) -> list[FreeBlock]:
        """The free blocks in address order."""
        if self._freep is None:
            return []
        h = self._headers
        blocks = []
        p = h[_BASE].next
        while p != _BASE:
            blocks.append(FreeBlock(p, h[p].size * HEADER_SIZE))
            p = h[p].next
        return blocks