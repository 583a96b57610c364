"""ELF executable header and program header parsing."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

ELF_MAGIC = 0x464C457F

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4

_ELF_HEADER = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROG_HEADER = struct.Struct("<8I")


class ElfFormatError(ValueError):
    """The data is not a well-formed ELF image."""


@dataclass
class ElfHeader:
    """The ELF file header."""

    magic: int = ELF_MAGIC
    elf: bytes = field(default=bytes(12))
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = _ELF_HEADER.size
    phentsize: int = _PROG_HEADER.size
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    SIZE = _ELF_HEADER.size

    @classmethod
    def parse(cls, data: bytes) -> "ElfHeader":
        """Read the header at the start of data."""
        if len(data) < _ELF_HEADER.size:
            raise ElfFormatError("truncated ELF header")
        header = cls(*_ELF_HEADER.unpack_from(data, 0))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError(f"bad ELF magic {header.magic:#x}")
        return header

    def pack(self) -> bytes:
        """The header's on-disk bytes."""
        return _ELF_HEADER.pack(
            self.magic,
            bytes(self.elf)[:12].ljust(12, b"\0"),
            self.type,
            self.machine,
            self.version,
            self.entry,
            self.phoff,
            self.shoff,
            self.flags,
            self.ehsize,
            self.phentsize,
            self.phnum,
            self.shentsize,
            self.shnum,
            self.shstrndx,
        )


@dataclass
class ProgramHeader:
    """One program segment header."""

    type: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    flags: int = 0
    align: int = 0

    SIZE = _PROG_HEADER.size

    @property
    def is_load(self) -> bool:
        return self.type == ELF_PROG_LOAD

    @classmethod
    def parse(cls, data: bytes, offset: int) -> "ProgramHeader":
        """Read a program header at offset."""
        if offset < 0 or offset + _PROG_HEADER.size > len(data):
            raise ElfFormatError(f"truncated program header at {offset}")
        return cls(*_PROG_HEADER.unpack_from(data, offset))

    def pack(self) -> bytes:
        """The program header's on-disk bytes."""
        return _PROG_HEADER.pack(
            self.type,
            self.off,
            self.vaddr,
            self.paddr,
            self.filesz,
            self.memsz,
            self.flags,
            self.align,
        )


def read_program_headers(data: bytes, header: ElfHeader) -> list[ProgramHeader]:
    """All program headers the file header points at."""
    return [
        ProgramHeader.parse(data, header.phoff + i * ProgramHeader.SIZE)
        for i in range(header.phnum)
    ]