import pytest

from xvkit.umalloc import HEADER_SIZE, MIN_UNITS, Allocator


def test_first_malloc_grows_heap_by_minimum():
    alloc = Allocator()
    alloc.malloc(10)
    assert alloc.brk - alloc.heap_start == MIN_UNITS * HEADER_SIZE


def test_blocks_inside_heap_and_disjoint():
    alloc = Allocator()
    addrs = [alloc.malloc(n) for n in (1, 10, 100, 1000)]
    assert len(set(addrs)) == len(addrs)
    for a in addrs:
        assert alloc.heap_start < a < alloc.brk
        assert a % HEADER_SIZE == 0
    ordered = sorted(zip(addrs, (1, 10, 100, 1000)))
    for (a, n), (b, _) in zip(ordered, ordered[1:]):
        assert a + n <= b - HEADER_SIZE


def test_free_all_coalesces():
    alloc = Allocator()
    a = alloc.malloc(10)
    b = alloc.malloc(10)
    alloc.free(a)
    alloc.free(b)
    assert alloc.free_blocks() == [(alloc.heap_start, MIN_UNITS)]


def test_freed_block_is_reused():
    alloc = Allocator()
    a = alloc.malloc(10)
    alloc.malloc(10)
    alloc.free(a)
    assert alloc.malloc(10) == a


def test_large_request_grows_past_minimum():
    alloc = Allocator()
    n = MIN_UNITS * HEADER_SIZE * 2
    a = alloc.malloc(n)
    assert alloc.brk - alloc.heap_start >= n + HEADER_SIZE
    assert a + n <= alloc.brk


def test_out_of_memory():
    alloc = Allocator(limit=MIN_UNITS * HEADER_SIZE)
    alloc.malloc(10)
    with pytest.raises(MemoryError):
        alloc.malloc(MIN_UNITS * HEADER_SIZE)


def test_double_free_rejected():
    alloc = Allocator()
    a = alloc.malloc(16)
    alloc.free(a)
    with pytest.raises(ValueError):
        alloc.free(a)


def test_sbrk_returns_old_break_and_rejects_underflow():
    alloc = Allocator(heap_start=0x2000)
    assert alloc.sbrk(64) == 0x2000
    assert alloc.brk == 0x2000 + 64
    with pytest.raises(MemoryError):
        alloc.sbrk(-128)


def test_many_allocs_then_frees_restore_single_block():
    alloc = Allocator()
    addrs = [alloc.malloc(100) for _ in range(50)]
    for a in addrs[::2] + addrs[1::2]:
        alloc.free(a)
    blocks = alloc.free_blocks()
    assert len(blocks) == 1
    assert blocks[0][0] == alloc.heap_start
    assert blocks[0][1] * HEADER_SIZE == alloc.brk - alloc.heap_start