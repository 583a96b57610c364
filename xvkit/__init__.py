"""Models of a small x86 teaching kernel: paging, descriptors, ELF headers, locks,
system-call argument checking, a shell parser, an allocator and user tools."""

__version__ = "0.1.0"

__all__ = [
    "cstring",
    "elf",
    "locks",
    "mmu",
    "params",
    "sanity",
    "shell",
    "syscall",
    "umalloc",
    "vm",
    "wc",
]