"""System-wide limits, open flags and file metadata."""

from __future__ import annotations

import enum
from dataclasses import dataclass

UINT_MASK = 0xFFFFFFFF
USHORT_MASK = 0xFFFF
UCHAR_MASK = 0xFF

NPROC = 64
KSTACKSIZE = 4096
NCPU = 8
NOFILE = 16
NFILE = 100
NINODE = 50
NDEV = 10
ROOTDEV = 1
MAXARG = 32
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NBUF = MAXOPBLOCKS * 3
FSSIZE = 1000
INTERV = 5


class FileType(enum.IntEnum):
    """Kind of object an inode describes."""

    DIR = 1
    FILE = 2
    DEV = 3


class OpenFlag(enum.IntFlag):
    """Mode bits accepted by open."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200


@dataclass
class Stat:
    """Metadata returned for an open file."""

    type: FileType
    dev: int
    ino: int
    nlink: int
    size: int