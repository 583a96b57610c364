"""Two-level x86 page tables built over a pool of simulated physical pages."""

from __future__ import annotations

import struct
from typing import Optional, Union

from .mmu import (
    DEVSPACE,
    EXTMEM,
    KERNBASE,
    KERNLINK,
    PDXSHIFT,
    PGSIZE,
    PHYSTOP,
    PTE_P,
    PTE_U,
    PTE_W,
    p2v,
    pdx,
    pg_round_down,
    pg_round_up,
    pte_addr,
    pte_flags,
    ptx,
    v2p,
)

_U32 = 0xFFFFFFFF
_ENTRY = struct.Struct("<I")
_JUNK = 0x01

BytesLike = Union[bytes, bytearray, memoryview]


class VMError(Exception):
    """A page-table operation was asked to do something impossible."""


class OutOfMemory(VMError):
    """No physical page was left to satisfy an allocation."""


class PagePool:
    """A fixed set of physical pages handed out one at a time."""

    def __init__(self, npages: int, base: int = 0x200000) -> None:
        if npages <= 0:
            raise ValueError("a page pool needs at least one page")
        if base % PGSIZE:
            raise ValueError("pool base must be page aligned")
        self.base = base
        self.npages = npages
        addresses = [base + i * PGSIZE for i in range(npages)]
        self._pages = {pa: bytearray([_JUNK]) * PGSIZE for pa in addresses}
        self._free = list(reversed(addresses))
        self._in_use: set[int] = set()

    @property
    def available(self) -> int:
        """Number of pages not handed out."""
        return len(self._free)

    def alloc(self) -> int:
        """Hand out one page and return its physical address; its contents are junk."""
        if not self._free:
            raise OutOfMemory("out of physical pages")
        pa = self._free.pop()
        self._in_use.add(pa)
        return pa

    def free(self, pa: int) -> None:
        """Return a page to the pool, filling it with junk."""
        if pa not in self._in_use:
            raise VMError(f"kfree: {pa:#x} is not an allocated page")
        self._in_use.remove(pa)
        self._pages[pa][:] = bytes([_JUNK]) * PGSIZE
        self._free.append(pa)

    def page(self, pa: int) -> bytearray:
        """The bytes of an allocated page."""
        if pa not in self._in_use:
            raise VMError(f"{pa:#x} is not an allocated page")
        return self._pages[pa]


def _load(pool: PagePool, addr: int) -> int:
    return _ENTRY.unpack_from(pool.page(pg_round_down(addr)), addr % PGSIZE)[0]


def _store(pool: PagePool, addr: int, value: int) -> None:
    _ENTRY.pack_into(pool.page(pg_round_down(addr)), addr % PGSIZE, value & _U32)


def _zero(pool: PagePool, pa: int) -> None:
    pool.page(pa)[:] = bytes(PGSIZE)


class AddressSpace:
    """A page directory and the page tables and user pages it owns."""

    def __init__(self, pool: PagePool, data_addr: Optional[int] = None) -> None:
        self.pool = pool
        self.data_addr = data_addr
        self.pgdir: Optional[int] = pool.alloc()
        _zero(pool, self.pgdir)

    def _directory(self) -> int:
        if self.pgdir is None:
            raise VMError("freevm: no pgdir")
        return self.pgdir

    def walk(self, va: int, alloc: bool = False) -> Optional[int]:
        """Physical address of the PTE for va, creating its page table if alloc is set."""
        pde_addr = self._directory() + 4 * pdx(va)
        pde = _load(self.pool, pde_addr)
        if pde & PTE_P:
            table = pte_addr(pde)
        else:
            if not alloc:
                return None
            try:
                table = self.pool.alloc()
            except OutOfMemory:
                return None
            _zero(self.pool, table)
            _store(self.pool, pde_addr, table | PTE_P | PTE_W | PTE_U)
        return table + 4 * ptx(va)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map the pages covering [va, va+size) onto physical memory starting at pa."""
        if size <= 0:
            raise ValueError("mapping size must be positive")
        a = pg_round_down(va)
        last = pg_round_down(va + size - 1)
        while True:
            pte = self.walk(a, True)
            if pte is None:
                raise OutOfMemory("mappages: no memory for a page table")
            if _load(self.pool, pte) & PTE_P:
                raise VMError(f"remap at {a:#x}")
            _store(self.pool, pte, pa | perm | PTE_P)
            if a == last:
                break
            a = (a + PGSIZE) & _U32
            pa = (pa + PGSIZE) & _U32

    def init_uvm(self, init: BytesLike) -> None:
        """Place init, which must be smaller than a page, at address 0."""
        if len(init) >= PGSIZE:
            raise VMError("inituvm: more than a page")
        mem = self.pool.alloc()
        _zero(self.pool, mem)
        self.map_pages(0, PGSIZE, mem, PTE_W | PTE_U)
        self.pool.page(mem)[: len(init)] = bytes(init)

    def load_uvm(self, addr: int, data: BytesLike, offset: int, sz: int) -> None:
        """Copy sz bytes of data from offset into already mapped pages at addr."""
        if addr % PGSIZE:
            raise VMError("loaduvm: addr must be page aligned")
        for i in range(0, sz, PGSIZE):
            pte = self.walk(addr + i, False)
            if pte is None:
                raise VMError("loaduvm: address should exist")
            pa = pte_addr(_load(self.pool, pte))
            n = min(sz - i, PGSIZE)
            chunk = bytes(data[offset + i: offset + i + n])
            if len(chunk) != n:
                raise VMError("loaduvm: short read")
            self.pool.page(pa)[:n] = chunk

    def alloc_uvm(self, oldsz: int, newsz: int) -> int:
        """Grow user memory from oldsz to newsz with zeroed pages; returns the new size."""
        if newsz >= KERNBASE:
            raise VMError("allocuvm: size reaches kernel space")
        if newsz < oldsz:
            return oldsz
        for a in range(pg_round_up(oldsz), newsz, PGSIZE):
            try:
                mem = self.pool.alloc()
            except OutOfMemory as exc:
                self.dealloc_uvm(newsz, oldsz)
                raise OutOfMemory("allocuvm out of memory") from exc
            _zero(self.pool, mem)
            try:
                self.map_pages(a, PGSIZE, mem, PTE_W | PTE_U)
            except OutOfMemory as exc:
                self.dealloc_uvm(newsz, oldsz)
                self.pool.free(mem)
                raise OutOfMemory("allocuvm out of memory (2)") from exc
        return newsz

    def dealloc_uvm(self, oldsz: int, newsz: int) -> int:
        """Shrink user memory from oldsz to newsz, freeing pages; returns the new size."""
        if newsz >= oldsz:
            return oldsz
        a = pg_round_up(newsz)
        while a < oldsz:
            pte = self.walk(a, False)
            if pte is None:
                a = ((pdx(a) + 1) << PDXSHIFT) - PGSIZE
            else:
                entry = _load(self.pool, pte)
                if entry & PTE_P:
                    pa = pte_addr(entry)
                    if pa == 0:
                        raise VMError("kfree")
                    self.pool.free(pa)
                    _store(self.pool, pte, 0)
            a += PGSIZE
        return newsz

    def free(self) -> None:
        """Release every user page, page table and the directory itself."""
        pgdir = self._directory()
        self.dealloc_uvm(KERNBASE, 0)
        for (pde,) in _ENTRY.iter_unpack(bytes(self.pool.page(pgdir))):
            if pde & PTE_P:
                self.pool.free(pte_addr(pde))
        self.pool.free(pgdir)
        self.pgdir = None

    def clear_pteu(self, uva: int) -> None:
        """Make the page at uva inaccessible to user code."""
        pte = self.walk(uva, False)
        if pte is None:
            raise VMError("clearpteu")
        _store(self.pool, pte, _load(self.pool, pte) & ~PTE_U)

    def copy(self, sz: int) -> "AddressSpace":
        """A new address space holding a copy of the first sz bytes of user memory."""
        if self.data_addr is not None:
            child = setup_kvm(self.pool, self.data_addr)
        else:
            child = AddressSpace(self.pool)
        try:
            for i in range(0, sz, PGSIZE):
                pte = self.walk(i, False)
                if pte is None:
                    raise VMError("copyuvm: pte should exist")
                entry = _load(self.pool, pte)
                if not entry & PTE_P:
                    raise VMError("copyuvm: page not present")
                mem = self.pool.alloc()
                self.pool.page(mem)[:] = self.pool.page(pte_addr(entry))
                try:
                    child.map_pages(i, PGSIZE, mem, pte_flags(entry))
                except VMError:
                    self.pool.free(mem)
                    raise
        except VMError:
            child.free()
            raise
        return child

    def uva2ka(self, uva: int) -> Optional[int]:
        """Kernel virtual address of the user page at uva, or None if not user-accessible."""
        pte = self.walk(uva, False)
        if pte is None:
            return None
        entry = _load(self.pool, pte)
        if not entry & PTE_P or not entry & PTE_U:
            return None
        return p2v(pte_addr(entry))

    def _user_chunks(self, va: int, length: int):
        """Yield (page bytes, offset, count, position) for a user range."""
        pos = 0
        while pos < length:
            va0 = pg_round_down(va)
            ka = self.uva2ka(va0)
            if ka is None:
                raise VMError(f"user address {va0:#x} is not mapped")
            off = va - va0
            n = min(PGSIZE - off, length - pos)
            yield self.pool.page(v2p(ka)), off, n, pos
            pos += n
            va = va0 + PGSIZE

    def copy_out(self, va: int, data: BytesLike) -> None:
        """Copy data into user memory at va."""
        source = bytes(data)
        for page, off, n, pos in self._user_chunks(va, len(source)):
            page[off:off + n] = source[pos:pos + n]

    def read(self, va: int, n: int) -> bytes:
        """Read n bytes of user memory at va."""
        out = bytearray()
        for page, off, count, _ in self._user_chunks(va, n):
            out += page[off:off + count]
        return bytes(out)


def setup_kvm(pool: PagePool, data_addr: int) -> AddressSpace:
    """An address space holding the kernel mappings, with kernel data starting at data_addr."""
    if data_addr % PGSIZE or not KERNLINK < data_addr < KERNBASE + PHYSTOP:
        raise ValueError(f"bad kernel data address {data_addr:#x}")
    kmap = (
        (KERNBASE, 0, EXTMEM, PTE_W),
        (KERNLINK, v2p(KERNLINK), v2p(data_addr), 0),
        (data_addr, v2p(data_addr), PHYSTOP, PTE_W),
        (DEVSPACE, DEVSPACE, 0, PTE_W),
    )
    space = AddressSpace(pool, data_addr)
    try:
        for virt, start, end, perm in kmap:
            space.map_pages(virt, (end - start) & _U32, start, perm)
    except OutOfMemory:
        space.free()
        raise
    return space