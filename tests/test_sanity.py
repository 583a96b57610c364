import pytest

from xvkit.sanity import (
    ProcessTimes,
    Workload,
    classify,
    format_report,
    summarize,
)


def test_classify_by_pid():
    assert classify(4) is Workload.CPU_BOUND
    assert classify(5) is Workload.S_CPU
    assert classify(6) is Workload.IO_BOUND
    assert classify(7) is Workload.CPU_BOUND


def test_classify_small_pids_follow_truncating_remainder():
    assert classify(1) is Workload.CPU_BOUND
    assert classify(2) is None
    assert classify(3) is None


def sample():
    return [
        ProcessTimes(4, 10, 20, 30),
        ProcessTimes(5, 11, 21, 31),
        ProcessTimes(6, 12, 22, 32),
    ]


def test_single_record_average_is_itself():
    result = summarize(sample())
    for rec in sample():
        s = result[classify(rec.pid)]
        assert (s.count, s.ready, s.running, s.sleeping) == (1, rec.retime, rec.rutime, rec.stime)
        assert s.turnaround == rec.retime + rec.rutime + rec.stime


def test_average_truncates():
    records = sample() + [ProcessTimes(7, 11, 21, 31)]
    cpu = summarize(records)[Workload.CPU_BOUND]
    assert cpu.count == 2
    assert cpu.ready == 10


def test_unclassifiable_pid_ignored():
    result = summarize(sample() + [ProcessTimes(2, 999, 999, 999)])
    assert [s.count for s in result.values()] == [1, 1, 1]


def test_missing_workload_raises():
    with pytest.raises(ValueError):
        summarize(sample()[:2])


def test_report_layout():
    summaries = summarize(sample())
    text = format_report(summaries)
    assert text.startswith("\n\nCPU bound:\nTempo médio ready: 10\n")
    assert text.endswith("\n\n")
    assert "\nCPU-S bound:\n" in text
    assert "\nI/O bound:\n" in text
    for s in summaries.values():
        assert f"Tempo médio para completar: {s.turnaround}\n" in text