"""Spin locks with interrupt nesting, and sleeping locks."""

from __future__ import annotations

import threading
import traceback
from dataclasses import dataclass
from typing import Optional

_MAX_PCS = 10


class LockError(RuntimeError):
    """A lock or interrupt-nesting rule was broken."""


@dataclass(eq=False)
class Cpu:
    """A processor's interrupt state and cli nesting depth."""

    id: int = 0
    interrupts_enabled: bool = True
    ncli: int = 0
    intena: bool = False

    def push_cli(self) -> None:
        """Disable interrupts, remembering the state at the outermost level."""
        enabled = self.interrupts_enabled
        self.interrupts_enabled = False
        if self.ncli == 0:
            self.intena = enabled
        self.ncli += 1

    def pop_cli(self) -> None:
        """Undo one push_cli; interrupts come back only at the outermost level."""
        if self.interrupts_enabled:
            raise LockError("popcli - interruptible")
        if self.ncli <= 0:
            raise LockError("popcli")
        self.ncli -= 1
        if self.ncli == 0 and self.intena:
            self.interrupts_enabled = True


class SpinLock:
    """Mutual exclusion between CPUs; interrupts stay off while it is held."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.cpu: Optional[Cpu] = None
        self.pcs: list[str] = []
        self._flag = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._flag.locked()

    def acquire(self, cpu: Cpu) -> None:
        """Take the lock on behalf of cpu, waiting while another CPU holds it."""
        cpu.push_cli()
        if self.holding(cpu):
            cpu.pop_cli()
            raise LockError(f"acquire: {self.name or 'lock'} already held")
        self._flag.acquire()
        self.cpu = cpu
        frames = traceback.extract_stack()[:-1][-_MAX_PCS:]
        self.pcs = [f"{f.name} ({f.filename}:{f.lineno})" for f in reversed(frames)]

    def release(self, cpu: Cpu) -> None:
        """Give up the lock held by cpu."""
        if not self.holding(cpu):
            raise LockError(f"release: {self.name or 'lock'} not held")
        self.pcs = []
        self.cpu = None
        self._flag.release()
        cpu.pop_cli()

    def holding(self, cpu: Cpu) -> bool:
        """Whether cpu holds this lock."""
        cpu.push_cli()
        result = self.locked and self.cpu is cpu
        cpu.pop_cli()
        return result


class SleepLock:
    """A long-term lock; waiters sleep instead of spinning."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.locked = False
        self.pid = 0
        self._cond = threading.Condition()

    def acquire(self, pid: int) -> None:
        """Take the lock for process pid, sleeping until it is free."""
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        """Free the lock and wake every sleeper."""
        with self._cond:
            self.locked = False
            self.pid = 0
            self._cond.notify_all()

    def holding(self, pid: int) -> bool:
        """Whether process pid holds the lock."""
        with self._cond:
            return self.locked and self.pid == pid