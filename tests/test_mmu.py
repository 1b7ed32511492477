import pytest

from nxu8emu.mmu import (
    MMU,
    MMUError,
    MMURegion,
    RegisterCell,
    ignore_read,
    ignore_write,
)


def make_mmu(errors=None):
    handler = errors.append if errors is not None else None
    mmu = MMU(rom=bytes(range(16)), on_memory_error=handler)
    for index in (0, 1, 8):
        mmu.generate_segment(index)
    return mmu


def test_read_code_rom_is_little_endian():
    mmu = MMU(rom=b"\x34\x12")
    assert mmu.read_code(0) == 0x1234


def test_read_code_odd_offset_raises():
    with pytest.raises(MMUError):
        make_mmu().read_code(3)


def test_read_code_out_of_range_raises():
    with pytest.raises(MMUError):
        make_mmu().read_code(1 << 20)


def test_data_access_out_of_range_raises():
    mmu = make_mmu()
    with pytest.raises(MMUError):
        mmu.read_data(1 << 24)
    with pytest.raises(MMUError):
        mmu.write_data(1 << 24, 1)


def test_unmapped_segment_reports_error():
    errors = []
    mmu = make_mmu(errors)
    value = mmu.read_data(0x20000)
    mmu.write_data(0x20001, 7)
    assert value == 0
    assert errors == [0x20000, 0x20001]


def test_unmapped_address_in_mapped_segment_reports_error():
    errors = []
    mmu = make_mmu(errors)
    mmu.read_data(0x10005)
    assert errors == [0x10005]


def test_register_cell_round_trip():
    mmu = make_mmu()
    cell = RegisterCell(width=2)
    mmu.register_region(cell.region(0xF010, 2, "pair"))
    mmu.write_data(0xF010, 0xCD)
    mmu.write_data(0xF011, 0xAB)
    assert mmu.read_data(0xF010) == 0xCD
    assert mmu.read_data(0xF011) == 0xAB
    assert cell.value == (0xAB << 8) | 0xCD


def test_register_cell_mask_drops_bits():
    mmu = make_mmu()
    cell = RegisterCell(width=2, mask=0x1FFF)
    mmu.register_region(cell.region(0xF014, 2, "masked"))
    mmu.write_data(0xF015, 0xFF)
    mmu.write_data(0xF014, 0xFF)
    assert cell.value & ~cell.mask == 0
    assert mmu.read_data(0xF015) == cell.value >> 8
    assert mmu.read_data(0xF014) == cell.value & 0xFF


def test_overlap_raises():
    mmu = make_mmu()
    first = RegisterCell(width=2).region(0x1000, 2, "a")
    second = RegisterCell().region(0x1001, 1, "b")
    mmu.register_region(first)
    with pytest.raises(MMUError):
        mmu.register_region(second)


def test_unregister_then_register_again():
    mmu = make_mmu()
    region = RegisterCell().region(0x2000, 1, "a")
    mmu.register_region(region)
    mmu.unregister_region(region)
    with pytest.raises(MMUError):
        mmu.unregister_region(region)
    other = MMURegion(0x2000, 1, "b", ignore_read(0x11), ignore_write)
    mmu.register_region(other)
    assert mmu.read_data(0x2000) == 0x11


def test_register_in_unmapped_segment_raises():
    mmu = make_mmu()
    with pytest.raises(MMUError):
        mmu.register_region(RegisterCell().region(0x30000, 1, "nowhere"))


def test_ignore_read_and_write():
    mmu = make_mmu()
    mmu.register_region(MMURegion(0x100, 1, "const", ignore_read(0x5A), ignore_write))
    mmu.write_data(0x100, 0x00)
    assert mmu.read_data(0x100) == 0x5A


def test_read_code_from_region_segment():
    mmu = make_mmu()
    cell = RegisterCell(value=0xBEEF, width=2)
    mmu.register_region(cell.region(0x10000, 2, "code"))
    assert mmu.read_code(0x10000) == cell.value


def test_read_code_unmapped_segment_reports_error():
    errors = []
    mmu = make_mmu(errors)
    assert mmu.read_code(0x40000) == 0
    assert errors == [0x40000]


def test_watches_fire_on_access():
    mmu = make_mmu()
    mmu.register_region(RegisterCell().region(0x10, 1, "w"))
    reads, writes = [], []
    assert mmu.watch_read(0x10, lambda: reads.append(1))
    assert mmu.watch_write(0x10, lambda: writes.append(1))
    mmu.write_data(0x10, 3)
    mmu.read_data(0x10)
    mmu.read_data(0x10)
    assert len(writes) == 1
    assert len(reads) == 2


def test_failing_watch_does_not_block_write():
    mmu = make_mmu()
    cell = RegisterCell()
    mmu.register_region(cell.region(0x20, 1, "w"))

    def broken():
        raise RuntimeError("boom")

    mmu.watch_write(0x20, broken)
    mmu.write_data(0x20, 0x42)
    assert cell.value == 0x42


def test_watch_none_clears():
    mmu = make_mmu()
    mmu.register_region(RegisterCell().region(0x30, 1, "w"))
    hits = []
    mmu.watch_read(0x30, lambda: hits.append(1))
    mmu.watch_read(0x30, None)
    mmu.read_data(0x30)
    assert hits == []


def test_watch_on_unmapped_segment_is_refused():
    mmu = make_mmu()
    hits = []
    assert mmu.watch_write(0x50000, lambda: hits.append(1)) is False
    mmu.write_data(0x50000, 1)
    assert hits == []