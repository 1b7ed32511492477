"""Linear disassembler for nX-U8 machine code."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .hexfmt import to_hex
from .isa import Instruction, alu_instructions
from .isa_system import system_instructions

UNRECOGNIZED = "Unrecognized command"

# Widest encoding, in bytes; the text column starts after room for this many.
_MAX_LENGTH = 4
# Bytes consumed when nothing matches.
_UNIT_LENGTH = 2

_USAGE = (
    "usage: nxu8-disas <input file> <offset> <length> <output file>\n"
    "  offset and length accept decimal, 0x-prefixed hex or 0-prefixed octal\n"
)

BytesLike = Union[bytes, bytearray, memoryview, Sequence[int]]


@dataclass(frozen=True)
class DecodedInstruction:
    """One decoded instruction: where it lies, its bytes and its assembly text."""

    address: int
    raw: bytes
    text: str
    instruction: Optional[Instruction] = None

    @property
    def recognized(self) -> bool:
        return self.instruction is not None

    @property
    def length(self) -> int:
        return len(self.raw)

    def format(self) -> str:
        """Return the listing line: address, hex bytes, padding and text."""
        byte_text = "".join(f"{to_hex(b, 2)} " for b in self.raw)
        padding = " " * (7 + 3 * (_MAX_LENGTH - len(self.raw)))
        return f"{to_hex(self.address, 6)}   {byte_text}{padding}{self.text}"


@lru_cache(maxsize=None)
def _table() -> Tuple[Instruction, ...]:
    return tuple(alu_instructions()) + tuple(system_instructions())


def instruction_table() -> List[Instruction]:
    """Every known encoding in decode priority order."""
    return list(_table())


def decode(data: BytesLike, address: int = 0) -> DecodedInstruction:
    """Decode the instruction at the start of ``data``, located at ``address``."""
    window = bytes(data[:_MAX_LENGTH])
    if not window:
        raise ValueError("no bytes to decode")
    for instruction in _table():
        if instruction.matches(window):
            raw = window[: instruction.length]
            return DecodedInstruction(
                address, raw, instruction.render(raw, address), instruction
            )
    return DecodedInstruction(address, window[:_UNIT_LENGTH], UNRECOGNIZED)


def disassemble(data: BytesLike) -> Iterator[DecodedInstruction]:
    """Yield the instructions of ``data`` in order, addresses counted from 0."""
    buffer = bytes(data)
    position = 0
    while position < len(buffer):
        decoded = decode(buffer[position : position + _MAX_LENGTH], position)
        yield decoded
        position += decoded.length


def disassemble_file(
    path: Union[str, Path], offset: int, length: int
) -> List[DecodedInstruction]:
    """Disassemble ``length`` bytes of the file at ``path`` starting at ``offset``."""
    if offset < 0:
        raise ValueError(f"negative offset {offset}")
    if length < 0:
        raise ValueError(f"negative length {length}")
    with open(path, "rb") as handle:
        handle.seek(offset)
        data = handle.read(length)
    return list(disassemble(data))


_INT_RE = re.compile(r"\s*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")


def _parse_int(text: str) -> int:
    """Parse a leading integer with C-style base detection; trailing text is ignored."""
    match = _INT_RE.match(text)
    if match is None:
        raise ValueError(f"not a number: {text!r}")
    sign, digits = match.groups()
    if digits[:2].lower() == "0x":
        value = int(digits[2:], 16)
    elif digits.startswith("0"):
        value = int(digits, 8)
    else:
        value = int(digits)
    return -value if sign == "-" else value


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry: ``<input> <offset> <length> <output>``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 4:
        sys.stdout.write(_USAGE)
        return 0
    source, offset_text, length_text, target = args
    try:
        offset = _parse_int(offset_text)
        length = _parse_int(length_text)
        listing = disassemble_file(source, offset, length)
        with open(target, "w", encoding="ascii", newline="\n") as out:
            for decoded in listing:
                out.write(decoded.format() + "\n")
    except (OSError, ValueError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())