"""Instruction patterns of the nX-U8 core and the arithmetic/shift part of its table."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

from .hexfmt import to_hex

Renderer = Callable[[Mapping[str, int], int], str]


@dataclass(frozen=True)
class Field:
    """A named bit field lying inside one byte of an instruction."""

    name: str
    byte: int
    shift: int
    width: int

    @property
    def mask(self) -> int:
        return (1 << self.width) - 1

    def extract(self, data: Sequence[int]) -> int:
        return (data[self.byte] >> self.shift) & self.mask


def _parse_pattern(pattern: str) -> Tuple[Tuple[int, ...], Tuple[int, ...], Tuple[Field, ...]]:
    groups = pattern.split()
    if not groups:
        raise ValueError("empty instruction pattern")
    masks = []
    values = []
    spans: Dict[str, Tuple[int, int, int]] = {}
    for index, group in enumerate(groups):
        if len(group) != 8:
            raise ValueError(f"pattern byte {group!r} in {pattern!r} is not 8 characters")
        mask = value = 0
        for column, char in enumerate(group):
            mask <<= 1
            value <<= 1
            if char in "01":
                mask |= 1
                value |= int(char)
                continue
            if char in spans:
                byte, first, last = spans[char]
                if byte != index or last != column - 1:
                    raise ValueError(f"field {char!r} is not contiguous in {pattern!r}")
                spans[char] = (byte, first, column)
            else:
                spans[char] = (index, column, column)
        masks.append(mask)
        values.append(value)
    fields = tuple(
        Field(name, byte, 7 - last, last - first + 1)
        for name, (byte, first, last) in sorted(spans.items())
    )
    return tuple(masks), tuple(values), fields


@dataclass(frozen=True)
class Instruction:
    """One encoding: a bit pattern such as ``"mmmm0001 1000nnnn"`` and its text.

    ``0`` and ``1`` are fixed bits; any other character names a field.  The
    ``text`` callable receives the decoded fields and the instruction address.
    """

    pattern: str
    text: Renderer = field(compare=False)
    mask: Tuple[int, ...] = field(init=False)
    value: Tuple[int, ...] = field(init=False)
    fields: Tuple[Field, ...] = field(init=False)

    def __post_init__(self) -> None:
        mask, value, fields = _parse_pattern(self.pattern)
        object.__setattr__(self, "mask", mask)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "fields", fields)

    @property
    def length(self) -> int:
        """Size of the encoding in bytes."""
        return len(self.mask)

    def matches(self, data: Sequence[int]) -> bool:
        """Whether the leading bytes of ``data`` have this encoding."""
        if len(data) < self.length:
            return False
        return all((b & m) == v for b, m, v in zip(data, self.mask, self.value))

    def decode_fields(self, data: Sequence[int]) -> Dict[str, int]:
        """Extract every named field from ``data``."""
        if len(data) < self.length:
            raise ValueError(f"need {self.length} bytes, got {len(data)}")
        return {f.name: f.extract(data) for f in self.fields}

    def render(self, data: Sequence[int], address: int = 0) -> str:
        """Return the assembly text for ``data`` located at ``address``."""
        if not self.matches(data):
            raise ValueError(f"data does not match pattern {self.pattern!r}")
        return self.text(self.decode_fields(data), address)


def _op(pattern: str, mnemonic: str, operands: Optional[Renderer] = None) -> Instruction:
    if operands is None:
        return Instruction(pattern, lambda f, a: mnemonic)
    return Instruction(pattern, lambda f, a: f"{mnemonic:<8}{operands(f, a)}")


def _sext7(value: int) -> int:
    return value - 0x80 if value & 0x40 else value


def _r_r(f: Mapping[str, int], _: int) -> str:
    return f"R{f['n']}, R{f['m']}"


def _r_imm(f: Mapping[str, int], _: int) -> str:
    return f"R{f['n']}, #{f['i']}"


def _er_er(f: Mapping[str, int], _: int) -> str:
    return f"ER{f['n'] * 2}, ER{f['m'] * 2}"


def _r_width(f: Mapping[str, int], _: int) -> str:
    return f"R{f['n']}, #{f['w']}"


def alu_instructions() -> list:
    """DSR prefixes, arithmetic, logic and shift encodings in decode priority order."""
    return [
        _op("iiiiiiii 11100011", "DSR<-", lambda f, a: f"0{to_hex(f['i'], 2)}h"),
        _op("dddd1111 10010000", "DSR<-", lambda f, a: f"R{f['d']}"),
        _op("10011111 11111110", "DSR<-", lambda f, a: "DSR"),
        _op("mmmm0001 1000nnnn", "ADD", _r_r),
        _op("iiiiiiii 0001nnnn", "ADD", _r_imm),
        _op("mmm00110 1111nnn0", "ADD", _er_er),
        _op("1iiiiiii 1110nnn0", "ADD", lambda f, a: f"ER{f['n'] * 2}, #{_sext7(f['i'])}"),
        _op("mmmm0110 1000nnnn", "ADDC", _r_r),
        _op("iiiiiiii 0110nnnn", "ADDC", _r_imm),
        _op("mmmm0010 1000nnnn", "AND", _r_r),
        _op("iiiiiiii 0010nnnn", "AND", _r_imm),
        _op("mmmm0111 1000nnnn", "CMP", _r_r),
        _op("iiiiiiii 0111nnnn", "CMP", _r_imm),
        _op("mmmm0101 1000nnnn", "CMPC", _r_r),
        _op("iiiiiiii 0101nnnn", "CMPC", _r_imm),
        _op("mmm00101 1111nnn0", "MOV", _er_er),
        _op("0iiiiiii 1110nnn0", "MOV", lambda f, a: f"ER{f['n'] * 2}, #{f['i']}"),
        _op("mmmm0000 1000nnnn", "MOV", _r_r),
        _op("iiiiiiii 0000nnnn", "MOV", _r_imm),
        _op("mmmm0011 1000nnnn", "OR", _r_r),
        _op("iiiiiiii 0011nnnn", "OR", _r_imm),
        _op("mmmm0100 1000nnnn", "XOR", _r_r),
        _op("iiiiiiii 0100nnnn", "XOR", _r_imm),
        _op("mmm00111 1111nnn0", "CMP", _er_er),
        _op("mmmm1000 1000nnnn", "SUB", _r_r),
        _op("mmmm1001 1000nnnn", "SUBC", _r_r),
        _op("mmmm1010 1000nnnn", "SLL", _r_r),
        _op("0www1010 1001nnnn", "SLL", _r_width),
        _op("mmmm1011 1000nnnn", "SLLC", _r_r),
        _op("0www1011 1001nnnn", "SLLC", _r_width),
        _op("mmmm1110 1000nnnn", "SRA", _r_r),
        _op("0www1110 1001nnnn", "SRA", _r_width),
        _op("mmmm1100 1000nnnn", "SRL", _r_r),
        _op("0www1100 1001nnnn", "SRL", _r_width),
        _op("mmmm1101 1000nnnn", "SRLC", _r_r),
        _op("0www1101 1001nnnn", "SRLC", _r_width),
    ]