"""Two-level x86 page tables over a simulated pool of physical pages."""

from __future__ import annotations

import struct
import sys
from collections.abc import Iterable
from typing import Optional, TextIO

from xvkit.mmu import (
    DEVSPACE,
    KERNBASE,
    NPTENTRIES,
    PGSIZE,
    PHYSTOP,
    PTE_P,
    PTE_U,
    PTE_W,
    EXTMEM,
    p2v,
    pdx,
    pgrounddown,
    pgroundup,
    pte_addr,
    pte_flags,
    ptx,
)
from xvkit.printf import fprintf

_MASK32 = 0xFFFFFFFF
_WORD = struct.Struct("<I")

KernelMapping = tuple[int, int, int, int]


class VMPanic(RuntimeError):
    """An unrecoverable inconsistency in the page tables or page allocator."""


class PhysicalMemory:
    """A pool of page-sized frames at consecutive physical addresses."""

    def __init__(self, npages: int = 1024, base: int = EXTMEM) -> None:
        if npages <= 0:
            raise ValueError("physical memory needs at least one page")
        if base < 0 or base % PGSIZE:
            raise ValueError("physical memory must start on a page boundary")
        if base + npages * PGSIZE > 1 << 32:
            raise ValueError("physical memory does not fit in 32 bits")
        self.base = base
        self.npages = npages
        self._pages: dict[int, bytearray] = {}
        self._free = [base + i * PGSIZE for i in reversed(range(npages))]
        self._used: set[int] = set()

    @property
    def free_pages(self) -> int:
        """Number of frames currently available to kalloc."""
        return len(self._free)

    def kalloc(self) -> int:
        """Take a free frame and return its physical address."""
        if not self._free:
            raise MemoryError("out of physical memory")
        pa = self._free.pop()
        self._used.add(pa)
        self._pages.setdefault(pa, bytearray(PGSIZE))
        return pa

    def kfree(self, pa: int) -> None:
        """Return a frame obtained from kalloc."""
        if pa % PGSIZE or pa not in self._used:
            raise VMPanic("kfree")
        self._used.remove(pa)
        self._free.append(pa)

    def _locate(self, pa: int) -> tuple[bytearray, int]:
        frame = pgrounddown(pa)
        if pa < 0 or frame not in self._used:
            raise ValueError(f"physical address {pa:#x} is not in an allocated page")
        return self._pages[frame], pa - frame

    def read(self, pa: int, n: int) -> bytes:
        """Read n bytes starting at a physical address."""
        if n < 0:
            raise ValueError("cannot read a negative number of bytes")
        out = bytearray()
        while n > 0:
            page, off = self._locate(pa)
            chunk = min(n, PGSIZE - off)
            out += page[off:off + chunk]
            pa += chunk
            n -= chunk
        return bytes(out)

    def write(self, pa: int, data: bytes) -> None:
        """Write data starting at a physical address."""
        view = memoryview(bytes(data))
        while view:
            page, off = self._locate(pa)
            chunk = min(len(view), PGSIZE - off)
            page[off:off + chunk] = view[:chunk]
            pa += chunk
            view = view[chunk:]


def _load(memory: PhysicalMemory, pa: int) -> int:
    return _WORD.unpack(memory.read(pa, 4))[0]


def _store(memory: PhysicalMemory, pa: int, value: int) -> None:
    memory.write(pa, _WORD.pack(value & _MASK32))


class AddressSpace:
    """A page directory with its page tables and user pages.

    kernel_map holds (virt, phys_start, phys_end, perm) ranges that are mapped
    into every address space, as the kernel's own mappings are.
    """

    def __init__(
        self,
        memory: PhysicalMemory,
        kernel_map: Iterable[KernelMapping] = (),
        console: TextIO | None = None,
    ) -> None:
        self.memory = memory
        self.console = console
        self._kmap = tuple(kernel_map)
        self.pgdir: Optional[int] = memory.kalloc()
        memory.write(self.pgdir, bytes(PGSIZE))
        if self._kmap and p2v(PHYSTOP) > DEVSPACE:
            raise VMPanic("PHYSTOP too high")
        try:
            for virt, start, end, perm in self._kmap:
                self.map_pages(virt, (end - start) & _MASK32, start, perm)
        except MemoryError:
            self._release_tables()
            raise

    def _out(self) -> TextIO:
        return self.console if self.console is not None else sys.stderr

    def _directory(self) -> int:
        if self.pgdir is None:
            raise VMPanic("address space has been freed")
        return self.pgdir

    def walk(self, va: int, alloc: bool = False) -> Optional[int]:
        """Physical address of the entry mapping va, or None.

        With alloc, a missing page table is created; None then means memory ran out.
        """
        pde_pa = self._directory() + 4 * pdx(va)
        pde = _load(self.memory, pde_pa)
        if pde & PTE_P:
            table = pte_addr(pde)
        else:
            if not alloc:
                return None
            try:
                table = self.memory.kalloc()
            except MemoryError:
                return None
            self.memory.write(table, bytes(PGSIZE))
            _store(self.memory, pde_pa, table | PTE_P | PTE_W | PTE_U)
        return table + 4 * ptx(va)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map the pages covering [va, va+size) to physical memory starting at pa."""
        if size <= 0:
            raise ValueError("mapping size must be positive")
        a = pgrounddown(va)
        last = pgrounddown((va + size - 1) & _MASK32)
        while True:
            pte = self.walk(a, True)
            if pte is None:
                raise MemoryError("out of memory for a page table")
            if _load(self.memory, pte) & PTE_P:
                raise VMPanic("remap")
            _store(self.memory, pte, pa | perm | PTE_P)
            if a == last:
                break
            a += PGSIZE
            pa += PGSIZE

    def init_user(self, code: bytes) -> None:
        """Place code, smaller than a page, at user address 0."""
        code = bytes(code)
        if len(code) >= PGSIZE:
            raise VMPanic("inituvm: more than a page")
        mem = self.memory.kalloc()
        self.memory.write(mem, bytes(PGSIZE))
        self.map_pages(0, PGSIZE, mem, PTE_W | PTE_U)
        self.memory.write(mem, code)

    def load(self, addr: int, data: bytes, offset: int, sz: int) -> None:
        """Copy sz bytes of data from offset into the mapped pages at addr."""
        if addr % PGSIZE:
            raise VMPanic("loaduvm: addr must be page aligned")
        for i in range(0, sz, PGSIZE):
            pte = self.walk(addr + i)
            entry = _load(self.memory, pte) if pte is not None else 0
            if not entry & PTE_P:
                raise VMPanic("loaduvm: address should exist")
            n = min(sz - i, PGSIZE)
            chunk = bytes(data[offset + i:offset + i + n])
            if len(chunk) != n:
                raise ValueError(f"data ends before offset {offset + i + n}")
            self.memory.write(pte_addr(entry), chunk)

    def _abandon_growth(self, oldsz: int, newsz: int) -> MemoryError:
        fprintf(self._out(), "allocuvm out of memory\n")
        self.dealloc_user(newsz, oldsz)
        return MemoryError(f"cannot grow user memory to {newsz} bytes")

    def alloc_user(self, oldsz: int, newsz: int) -> int:
        """Grow user memory from oldsz to newsz with zeroed pages; return the new size."""
        if newsz >= KERNBASE:
            raise MemoryError(f"user memory cannot reach {newsz:#x}")
        if newsz < oldsz:
            return oldsz
        a = pgroundup(oldsz)
        while a < newsz:
            try:
                mem = self.memory.kalloc()
            except MemoryError:
                raise self._abandon_growth(oldsz, newsz) from None
            self.memory.write(mem, bytes(PGSIZE))
            try:
                self.map_pages(a, PGSIZE, mem, PTE_W | PTE_U)
            except MemoryError:
                self.memory.kfree(mem)
                raise self._abandon_growth(oldsz, newsz) from None
            a += PGSIZE
        return newsz

    def dealloc_user(self, oldsz: int, newsz: int) -> int:
        """Free user pages to shrink from oldsz to newsz; return the new size."""
        if newsz >= oldsz:
            return oldsz
        a = pgroundup(newsz)
        while a < oldsz:
            pte = self.walk(a)
            if pte is None:
                a += (NPTENTRIES - 1) * PGSIZE
            else:
                entry = _load(self.memory, pte)
                if entry & PTE_P:
                    pa = pte_addr(entry)
                    if pa == 0:
                        raise VMPanic("kfree")
                    self.memory.kfree(pa)
                    _store(self.memory, pte, 0)
            a += PGSIZE
        return newsz

    def copy(self, sz: int) -> AddressSpace:
        """A new address space holding a copy of the first sz bytes of user memory."""
        child = AddressSpace(self.memory, self._kmap, self.console)
        try:
            for va in range(0, sz, PGSIZE):
                pte = self.walk(va)
                if pte is None:
                    raise VMPanic("copyuvm: pte should exist")
                entry = _load(self.memory, pte)
                if not entry & PTE_P:
                    raise VMPanic("copyuvm: page not present")
                mem = self.memory.kalloc()
                self.memory.write(mem, self.memory.read(pte_addr(entry), PGSIZE))
                try:
                    child.map_pages(va, PGSIZE, mem, pte_flags(entry))
                except MemoryError:
                    self.memory.kfree(mem)
                    raise
        except MemoryError:
            child.free()
            raise
        return child

    def _release_tables(self) -> None:
        directory = self._directory()
        for (pde,) in _WORD.iter_unpack(self.memory.read(directory, PGSIZE)):
            if pde & PTE_P:
                self.memory.kfree(pte_addr(pde))
        self.memory.kfree(directory)
        self.pgdir = None

    def free(self) -> None:
        """Free every user page, every page table and the directory."""
        if self.pgdir is None:
            raise VMPanic("freevm: no pgdir")
        self.dealloc_user(KERNBASE, 0)
        self._release_tables()

    def clear_user(self, va: int) -> None:
        """Make the page at va inaccessible to user code."""
        pte = self.walk(va)
        if pte is None:
            raise VMPanic("clearpteu")
        _store(self.memory, pte, _load(self.memory, pte) & ~PTE_U)

    def uva2ka(self, va: int) -> Optional[int]:
        """Kernel address of the user page holding va, or None if not user-accessible."""
        pte = self.walk(va)
        if pte is None:
            return None
        entry = _load(self.memory, pte)
        if not entry & PTE_P or not entry & PTE_U:
            return None
        return p2v(pte_addr(entry))

    def copyout(self, va: int, data: bytes) -> None:
        """Copy data to user address va, across pages if need be."""
        data = bytes(data)
        pos = 0
        while pos < len(data):
            va0 = pgrounddown(va)
            ka = self.uva2ka(va0)
            if ka is None:
                raise ValueError(f"user address {va0:#x} is not mapped for user access")
            n = min(PGSIZE - (va - va0), len(data) - pos)
            self.memory.write((ka - KERNBASE) + (va - va0), data[pos:pos + n])
            pos += n
            va = va0 + PGSIZE