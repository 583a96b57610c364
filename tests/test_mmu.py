import pytest

from xvkit import mmu


@pytest.mark.parametrize("va", [0, 0x1234, 0x80400ABC, 0xFFFFFFFF, mmu.KERNLINK])
def test_address_split_round_trip(va):
    assert mmu.pgaddr(mmu.pdx(va), mmu.ptx(va), va & 0xFFF) == va


def test_index_ranges():
    assert mmu.pdx(0xFFFFFFFF) == mmu.NPDENTRIES - 1
    assert mmu.ptx(0xFFFFFFFF) == mmu.NPTENTRIES - 1
    assert mmu.pdx(mmu.KERNBASE) == mmu.KERNBASE >> mmu.PDXSHIFT


def test_page_rounding():
    assert mmu.pg_round_up(0) == 0
    assert mmu.pg_round_up(1) == mmu.PGSIZE
    assert mmu.pg_round_up(mmu.PGSIZE) == mmu.PGSIZE
    assert mmu.pg_round_down(mmu.PGSIZE + 1) == mmu.PGSIZE
    assert mmu.pg_round_down(mmu.PGSIZE - 1) == 0


@pytest.mark.parametrize("pte", [0, 0x1007, 0xABCDE003, 0xFFFFFFFF])
def test_pte_parts_recombine(pte):
    assert mmu.pte_addr(pte) | mmu.pte_flags(pte) == pte
    assert mmu.pte_addr(pte) & 0xFFF == 0


def test_address_translation():
    assert mmu.v2p(mmu.KERNBASE) == 0
    assert mmu.p2v(0) == mmu.KERNBASE
    assert mmu.v2p(mmu.KERNLINK) == mmu.EXTMEM
    assert mmu.v2p(mmu.p2v(mmu.PHYSTOP)) == mmu.PHYSTOP


@pytest.mark.parametrize("seg_type", [mmu.STA_X | mmu.STA_R, mmu.STA_W])
def test_seg_asm_matches_descriptor(seg_type):
    desc = mmu.SegmentDescriptor.normal(seg_type, 0, 0xFFFFFFFF, 0)
    assert desc.pack() == mmu.seg_asm(seg_type, 0, 0xFFFFFFFF)


def test_seg_asm_type_byte():
    raw = mmu.seg_asm(mmu.STA_W, 0, 0xFFFFFFFF)
    assert len(raw) == 8
    assert raw[5] == 0x90 | mmu.STA_W
    assert raw[:2] == b"\xff\xff"


def test_zero_segment_differs_from_null_only_in_flags():
    raw = mmu.seg_asm(0, 0, 0)
    assert raw == bytes([0, 0, 0, 0, 0, 0x90, 0xC0, 0])
    assert len(raw) == len(mmu.SEG_NULLASM)
    differing = [i for i, (a, b) in enumerate(zip(raw, mmu.SEG_NULLASM)) if a != b]
    assert differing == [5, 6]


def test_normal_segment_fields():
    desc = mmu.SegmentDescriptor.normal(mmu.STA_W, 0x12345678, 0xFFFFFFFF, mmu.DPL_USER)
    assert desc.dpl == mmu.DPL_USER
    assert desc.g == 1 and desc.db == 1
    base = desc.base_15_0 | desc.base_23_16 << 16 | desc.base_31_24 << 24
    assert base == 0x12345678


def test_gate_make():
    gate = mmu.GateDescriptor.make(True, mmu.SEG_KCODE << 3, 0x80105ABC, mmu.DPL_USER)
    assert gate.type == mmu.STS_TG32
    assert gate.offset == 0x80105ABC
    assert gate.p == 1 and gate.s == 0 and gate.args == 0
    intr = mmu.GateDescriptor.make(False, mmu.SEG_KCODE << 3, 0, 0)
    assert intr.type == mmu.STS_IG32


def test_gate_pack_layout():
    gate = mmu.GateDescriptor.make(False, mmu.SEG_KCODE << 3, 0x80105ABC, 0)
    raw = gate.pack()
    assert len(raw) == 8
    assert int.from_bytes(raw[0:2], "little") == 0x5ABC
    assert int.from_bytes(raw[2:4], "little") == mmu.SEG_KCODE << 3
    assert int.from_bytes(raw[6:8], "little") == 0x8010


def test_build_idt():
    vectors = [0x80100000 + 4 * i for i in range(256)]
    idt = mmu.build_idt(vectors)
    assert len(idt) == 256
    assert [g.offset for g in idt] == vectors
    assert idt[mmu.T_SYSCALL].type == mmu.STS_TG32
    assert idt[mmu.T_SYSCALL].dpl == mmu.DPL_USER
    others = [g for i, g in enumerate(idt) if i != mmu.T_SYSCALL]
    assert all(g.type == mmu.STS_IG32 and g.dpl == 0 for g in others)
    assert all(g.cs == mmu.SEG_KCODE << 3 for g in idt)


def test_build_idt_wrong_size():
    with pytest.raises(ValueError):
        mmu.build_idt([0] * 10)