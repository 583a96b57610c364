"""System call numbers, user-memory argument fetching and dispatch."""

from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass, field
from typing import Callable

_U32 = 0xFFFFFFFF
_INT = struct.Struct("<i")

_log = logging.getLogger(__name__)


class SyscallNumber(enum.IntEnum):
    """Number placed in eax to select a system call."""

    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    SET_TICKETS = 22
    WAIT2 = 23
    YIELD = 24
    GET_ZOMBIE_CHILDS_INFO = 25


class BadAddress(ValueError):
    """A user pointer or string lies outside the process's memory."""


@dataclass
class UserProcess:
    """A process's user memory and the registers a system call reads."""

    memory: bytearray = field(default_factory=bytearray)
    esp: int = 0
    pid: int = 1
    name: str = ""
    eax: int = 0

    @property
    def sz(self) -> int:
        return len(self.memory)

    def fetch_int(self, addr: int) -> int:
        """The 32-bit signed integer stored at addr."""
        addr &= _U32
        if addr >= self.sz or addr + 4 > self.sz:
            raise BadAddress(f"int at {addr:#x} outside process memory")
        return _INT.unpack_from(self.memory, addr)[0]

    def fetch_str(self, addr: int) -> bytes:
        """The NUL-terminated string at addr, without its terminator."""
        addr &= _U32
        if addr >= self.sz:
            raise BadAddress(f"string at {addr:#x} outside process memory")
        end = self.memory.find(b"\0", addr)
        if end < 0:
            raise BadAddress(f"string at {addr:#x} is not terminated")
        return bytes(self.memory[addr:end])

    def arg_int(self, n: int) -> int:
        """The nth 32-bit system call argument."""
        return self.fetch_int((self.esp + 4 + 4 * n) & _U32)

    def arg_ptr(self, n: int, size: int) -> int:
        """The nth argument as the address of size bytes inside process memory."""
        addr = self.arg_int(n) & _U32
        if size < 0 or addr >= self.sz or addr + size > self.sz:
            raise BadAddress(f"buffer at {addr:#x} of {size} bytes outside process memory")
        return addr

    def arg_str(self, n: int) -> bytes:
        """The nth argument as a NUL-terminated string."""
        return self.fetch_str(self.arg_int(n))


Handler = Callable[[UserProcess], int]


class SyscallTable:
    """Maps system call numbers to handlers."""

    def __init__(self) -> None:
        self._handlers: dict[int, Handler] = {}

    def register(self, num: int, handler: Handler) -> None:
        """Install handler for call number num."""
        if num <= 0:
            raise ValueError(f"system call numbers start at 1, got {num}")
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers[int(num)] = handler

    def dispatch(self, proc: UserProcess, num: int) -> int:
        """Run call num for proc; its result, or -1 if unknown, lands in proc.eax."""
        handler = self._handlers.get(num) if num > 0 else None
        if handler is None:
            _log.warning("%d %s: unknown sys call %d", proc.pid, proc.name, num)
            proc.eax = -1
        else:
            proc.eax = handler(proc)
        return proc.eax