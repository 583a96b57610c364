"""x86 paging helpers, segment and gate descriptors, trap numbers."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Sequence

_U32 = 0xFFFFFFFF

# Memory layout
EXTMEM = 0x100000
PHYSTOP = 0xE000000
DEVSPACE = 0xFE000000
KERNBASE = 0x80000000
KERNLINK = KERNBASE + EXTMEM

# Eflags / control registers
FL_IF = 0x00000200
CR0_PE = 0x00000001
CR0_WP = 0x00010000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

# Segment selectors
SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

STA_X = 0x8
STA_W = 0x2
STA_R = 0x2

STS_T32A = 0x9
STS_IG32 = 0xE
STS_TG32 = 0xF

# Paging
NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

PTE_P = 0x001
PTE_W = 0x002
PTE_U = 0x004
PTE_PS = 0x080

# Traps
T_DIVIDE = 0
T_DEBUG = 1
T_NMI = 2
T_BRKPT = 3
T_OFLOW = 4
T_BOUND = 5
T_ILLOP = 6
T_DEVICE = 7
T_DBLFLT = 8
T_TSS = 10
T_SEGNP = 11
T_STACK = 12
T_GPFLT = 13
T_PGFLT = 14
T_FPERR = 16
T_ALIGN = 17
T_MCHK = 18
T_SIMDERR = 19
T_SYSCALL = 64
T_DEFAULT = 500
T_IRQ0 = 32

IRQ_TIMER = 0
IRQ_KBD = 1
IRQ_COM1 = 4
IRQ_IDE = 14
IRQ_ERROR = 19
IRQ_SPURIOUS = 31

IDT_ENTRIES = 256

SEG_NULLASM = bytes(8)


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return ((va & _U32) >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return ((va & _U32) >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Build a virtual address from directory index, table index and offset."""
    return ((d << PDXSHIFT) | (t << PTXSHIFT) | o) & _U32


def pg_round_up(sz: int) -> int:
    """Round up to the next page boundary."""
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & _U32


def pg_round_down(a: int) -> int:
    """Round down to a page boundary."""
    return a & ~(PGSIZE - 1) & _U32


def pte_addr(pte: int) -> int:
    """Physical address held in a page table entry."""
    return pte & ~0xFFF & _U32


def pte_flags(pte: int) -> int:
    """Flag bits held in a page table entry."""
    return pte & 0xFFF


def v2p(a: int) -> int:
    """Kernel virtual address to physical address."""
    return (a - KERNBASE) & _U32


def p2v(a: int) -> int:
    """Physical address to kernel virtual address."""
    return (a + KERNBASE) & _U32


@dataclass(frozen=True)
class SegmentDescriptor:
    """An x86 segment descriptor, field by field."""

    lim_15_0: int
    base_15_0: int
    base_23_16: int
    type: int
    s: int
    dpl: int
    p: int
    lim_19_16: int
    avl: int
    rsv1: int
    db: int
    g: int
    base_31_24: int

    @classmethod
    def normal(cls, type: int, base: int, lim: int, dpl: int) -> "SegmentDescriptor":
        """A 32-bit segment with page granularity."""
        base &= _U32
        lim &= _U32
        return cls(
            (lim >> 12) & 0xFFFF,
            base & 0xFFFF,
            (base >> 16) & 0xFF,
            type & 0xF,
            1,
            dpl & 0x3,
            1,
            (lim >> 28) & 0xF,
            0,
            0,
            1,
            1,
            base >> 24,
        )

    @classmethod
    def seg16(cls, type: int, base: int, lim: int, dpl: int) -> "SegmentDescriptor":
        """A segment whose limit is given in bytes."""
        base &= _U32
        lim &= _U32
        return cls(
            lim & 0xFFFF,
            base & 0xFFFF,
            (base >> 16) & 0xFF,
            type & 0xF,
            1,
            dpl & 0x3,
            1,
            (lim >> 16) & 0xF,
            0,
            0,
            1,
            0,
            base >> 24,
        )

    def pack(self) -> bytes:
        """The 8-byte in-memory form of the descriptor."""
        low = (self.lim_15_0 & 0xFFFF) | (self.base_15_0 & 0xFFFF) << 16
        high = (
            (self.base_23_16 & 0xFF)
            | (self.type & 0xF) << 8
            | (self.s & 0x1) << 12
            | (self.dpl & 0x3) << 13
            | (self.p & 0x1) << 15
            | (self.lim_19_16 & 0xF) << 16
            | (self.avl & 0x1) << 20
            | (self.rsv1 & 0x1) << 21
            | (self.db & 0x1) << 22
            | (self.g & 0x1) << 23
            | (self.base_31_24 & 0xFF) << 24
        )
        return struct.pack("<II", low, high)


def seg_asm(type: int, base: int, lim: int) -> bytes:
    """Bytes of a boot-time code or data segment (4K granularity, 32-bit)."""
    return struct.pack(
        "<HHBBBB",
        (lim >> 12) & 0xFFFF,
        base & 0xFFFF,
        (base >> 16) & 0xFF,
        0x90 | type,
        0xC0 | ((lim >> 28) & 0xF),
        (base >> 24) & 0xFF,
    )


@dataclass(frozen=True)
class GateDescriptor:
    """An interrupt or trap gate."""

    off_15_0: int
    cs: int
    args: int
    rsv1: int
    type: int
    s: int
    dpl: int
    p: int
    off_31_16: int

    @classmethod
    def make(cls, istrap: bool, sel: int, off: int, dpl: int) -> "GateDescriptor":
        """A present gate; trap gates keep interrupts enabled."""
        off &= _U32
        return cls(
            off & 0xFFFF,
            sel & 0xFFFF,
            0,
            0,
            STS_TG32 if istrap else STS_IG32,
            0,
            dpl & 0x3,
            1,
            off >> 16,
        )

    @property
    def offset(self) -> int:
        return self.off_15_0 | self.off_31_16 << 16

    def pack(self) -> bytes:
        """The 8-byte in-memory form of the gate."""
        low = (self.off_15_0 & 0xFFFF) | (self.cs & 0xFFFF) << 16
        high = (
            (self.args & 0x1F)
            | (self.rsv1 & 0x7) << 5
            | (self.type & 0xF) << 8
            | (self.s & 0x1) << 12
            | (self.dpl & 0x3) << 13
            | (self.p & 0x1) << 15
            | (self.off_31_16 & 0xFFFF) << 16
        )
        return struct.pack("<II", low, high)


def build_idt(vectors: Sequence[int]) -> list[GateDescriptor]:
    """Interrupt table: kernel interrupt gates, plus a user-callable syscall trap gate."""
    if len(vectors) != IDT_ENTRIES:
        raise ValueError(f"expected {IDT_ENTRIES} vectors, got {len(vectors)}")
    idt = [GateDescriptor.make(False, SEG_KCODE << 3, v, 0) for v in vectors]
    idt[T_SYSCALL] = GateDescriptor.make(True, SEG_KCODE << 3, vectors[T_SYSCALL], DPL_USER)
    return idt