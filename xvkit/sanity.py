"""Scheduler sanity report: classify children by pid and average their times."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional


class Workload(enum.IntEnum):
    """The kind of work a child process performs."""

    CPU_BOUND = 0
    S_CPU = 1
    IO_BOUND = 2


_LABELS = {
    Workload.CPU_BOUND: "CPU bound",
    Workload.S_CPU: "CPU-S bound",
    Workload.IO_BOUND: "I/O bound",
}


@dataclass(frozen=True)
class ProcessTimes:
    """Ticks a finished child spent ready, running and sleeping."""

    pid: int
    retime: int
    rutime: int
    stime: int


@dataclass(frozen=True)
class WorkloadSummary:
    """Average ticks for one workload class."""

    workload: Workload
    count: int
    ready: int
    running: int
    sleeping: int

    @property
    def turnaround(self) -> int:
        return self.ready + self.running + self.sleeping


def classify(pid: int) -> Optional[Workload]:
    """Workload a child with this pid ran, or None for pids that map to none."""
    rest = int(math.fmod(pid - 4, 3))
    return Workload(rest) if rest >= 0 else None


def summarize(records: Iterable[ProcessTimes]) -> dict[Workload, WorkloadSummary]:
    """Per-workload averages, truncated to whole ticks."""
    totals = {w: [0, 0, 0, 0] for w in Workload}
    for rec in records:
        workload = classify(rec.pid)
        if workload is None:
            continue
        t = totals[workload]
        t[0] += 1
        t[1] += rec.retime
        t[2] += rec.rutime
        t[3] += rec.stime
    result = {}
    for workload, (n, re, ru, st) in totals.items():
        if n == 0:
            raise ValueError(f"no {_LABELS[workload]} processes to average")
        result[workload] = WorkloadSummary(
            workload, n, int(re / n), int(ru / n), int(st / n)
        )
    return result


def format_report(summaries: Mapping[Workload, WorkloadSummary]) -> str:
    """The averages report for all three workloads."""
    parts = ["\n"]
    for workload in Workload:
        s = summaries[workload]
        parts.append(
            f"\n{_LABELS[workload]}:\n"
            f"Tempo médio ready: {s.ready}\n"
            f"Tempo médio running: {s.running}\n"
            f"Tempo médio sleeping: {s.sleeping}\n"
            f"Tempo médio para completar: {s.turnaround}\n"
        )
    parts.append("\n")
    return "".join(parts)