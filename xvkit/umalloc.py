"""First-fit free-list allocator over a heap grown by sbrk."""

from __future__ import annotations

from typing import Optional

HEADER_SIZE = 8
MIN_UNITS = 4096
_BASE = 0


class Allocator:
    """A circular, address-ordered free list; blocks are measured in header units."""

    def __init__(self, heap_start: int = 0x1000, limit: Optional[int] = None) -> None:
        if heap_start <= _BASE or heap_start % HEADER_SIZE:
            raise ValueError("heap start must be a positive multiple of the header size")
        self.heap_start = heap_start
        self.limit = limit
        self.brk = heap_start
        self._next: dict[int, int] = {}
        self._size: dict[int, int] = {}
        self._allocated: dict[int, int] = {}
        self._freep: Optional[int] = None

    def sbrk(self, n: int) -> int:
        """Move the break by n bytes and return the old break."""
        old = self.brk
        new = old + n
        if new < self.heap_start:
            raise MemoryError("sbrk below heap start")
        if self.limit is not None and new > self.heap_start + self.limit:
            raise MemoryError("sbrk beyond heap limit")
        self.brk = new
        return old

    def _release(self, bp: int, units: int) -> None:
        nxt, size = self._next, self._size
        size[bp] = units
        p = self._freep
        assert p is not None
        while not (p < bp < nxt[p]):
            if p >= nxt[p] and (bp > p or bp < nxt[p]):
                break
            p = nxt[p]
        q = nxt[p]
        if bp + size[bp] * HEADER_SIZE == q:
            size[bp] += size.pop(q)
            nxt[bp] = nxt.pop(q)
        else:
            nxt[bp] = q
        if p + size[p] * HEADER_SIZE == bp:
            size[p] += size.pop(bp)
            nxt[p] = nxt.pop(bp)
        else:
            nxt[p] = bp
        self._freep = p

    def free(self, addr: int) -> None:
        """Return a block obtained from malloc to the free list."""
        bp = addr - HEADER_SIZE
        units = self._allocated.pop(bp, None)
        if units is None:
            raise ValueError(f"free: {addr:#x} was not allocated")
        self._release(bp, units)

    def _morecore(self, nunits: int) -> int:
        nunits = max(nunits, MIN_UNITS)
        bp = self.sbrk(nunits * HEADER_SIZE)
        self._release(bp, nunits)
        assert self._freep is not None
        return self._freep

    def malloc(self, nbytes: int) -> int:
        """Address of a new block of at least nbytes; raises MemoryError when the heap is full."""
        if nbytes < 0:
            raise ValueError("malloc: negative size")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            self._next[_BASE] = _BASE
            self._size[_BASE] = 0
            self._freep = _BASE
        prevp = self._freep
        p = self._next[prevp]
        while True:
            if self._size[p] >= nunits:
                if self._size[p] == nunits:
                    self._next[prevp] = self._next.pop(p)
                    del self._size[p]
                else:
                    self._size[p] -= nunits
                    p += self._size[p] * HEADER_SIZE
                self._freep = prevp
                self._allocated[p] = nunits
                return p + HEADER_SIZE
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, self._next[p]

    def free_blocks(self) -> list[tuple[int, int]]:
        """(header address, size in units) of each free block, in address order."""
        return sorted((a, s) for a, s in self._size.items() if a != _BASE)