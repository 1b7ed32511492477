"""Segmented memory map of the nX-U8 core: code fetches, data access and regions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

log = logging.getLogger(__name__)

ReadFunction = Callable[["MMURegion", int], int]
WriteFunction = Callable[["MMURegion", int, int], None]
WatchCallback = Callable[[], Any]
MemoryErrorHandler = Callable[[int], Any]

_SEGMENT_SIZE = 0x10000
_SEGMENT_COUNT = 0x100
_CODE_LIMIT = 1 << 20
_DATA_LIMIT = 1 << 24


class MMUError(Exception):
    """Raised for accesses and region changes that the memory map cannot accept."""


@dataclass(eq=False)
class MMURegion:
    """A contiguous run of data addresses served by a pair of read/write functions.

    ``base`` is a full 24-bit address.  The functions receive the region and
    the full address being accessed.
    """

    base: int
    size: int
    description: str
    read: ReadFunction
    write: WriteFunction
    userdata: Any = None

    def __contains__(self, offset: object) -> bool:
        return isinstance(offset, int) and self.base <= offset < self.base + self.size

    @property
    def addresses(self) -> range:
        return range(self.base, self.base + self.size)


@dataclass
class RegisterCell:
    """A little-endian value of ``width`` bytes exposed byte by byte through a region.

    Bits outside ``mask`` always read as zero and are dropped on writes.
    """

    value: int = 0
    width: int = 1
    mask: Optional[int] = None

    def __post_init__(self) -> None:
        if self.width < 1:
            raise ValueError(f"width must be positive, got {self.width}")
        full = (1 << (8 * self.width)) - 1
        self.mask = full if self.mask is None else self.mask & full
        self.value &= full

    def read(self, region: MMURegion, offset: int) -> int:
        """Return the byte of the value at ``offset`` within ``region``."""
        shift = (offset - region.base) * 8
        return ((self.value & self.mask) >> shift) & 0xFF

    def write(self, region: MMURegion, offset: int, data: int) -> None:
        """Replace the byte of the value at ``offset`` within ``region``."""
        shift = (offset - region.base) * 8
        full = (1 << (8 * self.width)) - 1
        self.value &= ~(0xFF << shift) & full
        self.value |= ((data & 0xFF) << shift) & full
        self.value &= self.mask

    def region(self, base: int, size: int, description: str) -> MMURegion:
        """Build a region at ``base`` that reads and writes this cell."""
        return MMURegion(base, size, description, self.read, self.write, self)


def ignore_read(value: int) -> ReadFunction:
    """Return a read function that always yields ``value``."""
    constant = value & 0xFF

    def read(region: MMURegion, offset: int) -> int:
        return constant

    return read


def ignore_write(region: MMURegion, offset: int, data: int) -> None:
    """A write function that discards the data."""


class MMU:
    """Maps 24-bit data addresses and 20-bit code addresses onto regions.

    Segment 0 code is read straight from ``rom``.  Accesses to unmapped
    segments or addresses call ``on_memory_error`` with the address and
    yield zero.
    """

    def __init__(
        self,
        rom: bytes = b"",
        on_memory_error: Optional[MemoryErrorHandler] = None,
    ) -> None:
        self.rom = bytes(rom)
        self.on_memory_error = on_memory_error
        self._segments: Dict[int, List[Optional[MMURegion]]] = {}
        self._read_watches: Dict[int, WatchCallback] = {}
        self._write_watches: Dict[int, WatchCallback] = {}

    def generate_segment(self, segment_index: int) -> None:
        """Make the 64 KiB segment ``segment_index`` available for regions."""
        if not 0 <= segment_index < _SEGMENT_COUNT:
            raise ValueError(f"segment index {segment_index} out of range")
        self._segments[segment_index] = [None] * _SEGMENT_SIZE

    def _memory_error(self, offset: int) -> None:
        if self.on_memory_error is not None:
            self.on_memory_error(offset)

    def read_code(self, offset: int) -> int:
        """Read the 16-bit little-endian code word at ``offset``."""
        if not 0 <= offset < _CODE_LIMIT:
            raise MMUError("offset doesn't fit 20 bits")
        if offset & 1:
            raise MMUError("offset has LSB set")
        segment_index, segment_offset = offset >> 16, offset & 0xFFFF
        if segment_index == 0:
            if segment_offset + 1 >= len(self.rom):
                self._memory_error(offset)
                return 0
            return (self.rom[segment_offset + 1] << 8) | self.rom[segment_offset]
        segment = self._segments.get(segment_index)
        if segment is None:
            self._memory_error(offset)
            return 0
        region = segment[segment_offset]
        if region is None:
            self._memory_error(offset)
            return 0
        return ((region.read(region, offset + 1) & 0xFF) << 8) | (region.read(region, offset) & 0xFF)

    @staticmethod
    def _run_watch(callback: Optional[WatchCallback], offset: int, kind: str) -> None:
        if callback is None:
            return
        try:
            callback()
        except Exception as exc:  # a failing watch must not stop the access
            log.info("calling commands on %s at %06X failed: %s", kind, offset, exc)

    def read_data(self, offset: int) -> int:
        """Read the data byte at ``offset``."""
        if not 0 <= offset < _DATA_LIMIT:
            raise MMUError("offset doesn't fit 24 bits")
        segment = self._segments.get(offset >> 16)
        if segment is None:
            self._memory_error(offset)
            return 0
        region = segment[offset & 0xFFFF]
        self._run_watch(self._read_watches.get(offset), offset, "rwatch")
        if region is None:
            self._memory_error(offset)
            return 0
        return region.read(region, offset) & 0xFF

    def write_data(self, offset: int, data: int) -> None:
        """Write the data byte ``data`` at ``offset``."""
        if not 0 <= offset < _DATA_LIMIT:
            raise MMUError("offset doesn't fit 24 bits")
        segment = self._segments.get(offset >> 16)
        if segment is None:
            self._memory_error(offset)
            return
        region = segment[offset & 0xFFFF]
        self._run_watch(self._write_watches.get(offset), offset, "watch")
        if region is None:
            self._memory_error(offset)
            return
        region.write(region, offset, data & 0xFF)

    def register_region(self, region: MMURegion) -> None:
        """Map every address of ``region``; overlapping an existing region is an error."""
        for address in region.addresses:
            segment = self._segments.get(address >> 16)
            if segment is None:
                raise MMUError(f"MMU region at {address:06X} lies in an unmapped segment")
            if segment[address & 0xFFFF] is not None:
                raise MMUError(f"MMU region overlap at {address:06X}")
        for address in region.addresses:
            self._segments[address >> 16][address & 0xFFFF] = region

    def unregister_region(self, region: MMURegion) -> None:
        """Unmap every address of ``region``; unmapping a hole is an error."""
        for address in region.addresses:
            segment = self._segments.get(address >> 16)
            if segment is None or segment[address & 0xFFFF] is None:
                raise MMUError(f"MMU region double-hole at {address:06X}")
        for address in region.addresses:
            self._segments[address >> 16][address & 0xFFFF] = None

    def _set_watch(
        self,
        watches: Dict[int, WatchCallback],
        offset: int,
        callback: Optional[WatchCallback],
        kind: str,
    ) -> bool:
        if not 0 <= offset < _DATA_LIMIT:
            raise MMUError("offset doesn't fit 24 bits")
        if (offset >> 16) not in self._segments:
            log.info(
                "attempt to set %s from offset %04X of unmapped segment %02X",
                kind, offset & 0xFFFF, offset >> 16,
            )
            return False
        if callback is None:
            watches.pop(offset, None)
        else:
            watches[offset] = callback
        return True

    def watch_read(self, offset: int, callback: Optional[WatchCallback]) -> bool:
        """Call ``callback`` whenever ``offset`` is read as data; ``None`` clears it.

        Returns False, changing nothing, when the segment is unmapped.
        """
        return self._set_watch(self._read_watches, offset, callback, "rwatch")

    def watch_write(self, offset: int, callback: Optional[WatchCallback]) -> bool:
        """Call ``callback`` whenever ``offset`` is written as data; ``None`` clears it.

        Returns False, changing nothing, when the segment is unmapped.
        """
        return self._set_watch(self._write_watches, offset, callback, "watch")