import struct

import pytest

from xvkit.syscall import BadAddress, SyscallNumber, SyscallTable, UserProcess


def make_proc(args, strings=b""):
    mem = bytearray(64)
    esp = 8
    struct.pack_into("<I", mem, esp, 0xDEAD)
    for i, value in enumerate(args):
        struct.pack_into("<i", mem, esp + 4 + 4 * i, value)
    mem[40:40 + len(strings)] = strings
    return UserProcess(memory=mem, esp=esp, pid=3, name="t")


def test_arg_int_reads_stack():
    proc = make_proc([7, -5])
    assert proc.arg_int(0) == 7
    assert proc.arg_int(1) == -5


def test_fetch_int_bounds():
    proc = make_proc([])
    with pytest.raises(BadAddress):
        proc.fetch_int(proc.sz - 3)
    with pytest.raises(BadAddress):
        proc.fetch_int(proc.sz)


def test_arg_str():
    proc = make_proc([40], b"hello\0")
    assert proc.arg_str(0) == b"hello"


def test_unterminated_string():
    proc = make_proc([])
    proc.memory[-4:] = b"abcd"
    with pytest.raises(BadAddress):
        proc.fetch_str(proc.sz - 4)


def test_arg_ptr_checks_range():
    proc = make_proc([40, 40])
    assert proc.arg_ptr(0, 24) == 40
    with pytest.raises(BadAddress):
        proc.arg_ptr(1, 25)
    with pytest.raises(BadAddress):
        proc.arg_ptr(0, -1)


def test_arg_ptr_negative_pointer_rejected():
    proc = make_proc([-1])
    with pytest.raises(BadAddress):
        proc.arg_ptr(0, 1)


def test_dispatch_registered():
    table = SyscallTable()
    table.register(SyscallNumber.GETPID, lambda p: p.pid)
    proc = make_proc([])
    assert table.dispatch(proc, SyscallNumber.GETPID) == proc.pid
    assert proc.eax == proc.pid


def test_dispatch_unknown_returns_minus_one():
    table = SyscallTable()
    proc = make_proc([])
    assert table.dispatch(proc, SyscallNumber.FORK) == -1
    assert proc.eax == -1
    assert table.dispatch(proc, 0) == -1


def test_register_rejects_zero():
    with pytest.raises(ValueError):
        SyscallTable().register(0, lambda p: 0)


def test_handler_uses_arguments():
    table = SyscallTable()
    table.register(SyscallNumber.SET_TICKETS, lambda p: p.arg_int(0) * 2)
    proc = make_proc([21])
    assert table.dispatch(proc, SyscallNumber.SET_TICKETS) == 42