"""Opcode table of the nX-U8 core and the 64 Ki-entry dispatch built from it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

OPCODE_SPACE = 0x10000


class Hint(IntFlag):
    """Behaviour flags attached to an opcode source."""

    NONE = 0x0000
    IE = 0x0001  # sign-extend a 7-bit immediate for arithmetic instructions
    ST = 0x0002  # store rather than load (load/store/coprocessor)
    DW = 0x0004  # write a new DSR value
    DS = 0x0008  # the instruction is a DSR prefix
    IA = 0x0010  # increment EA after the access
    TI = 0x0020  # a second code word holds a long immediate
    WB = 0x0040  # write operand 0 back to the register file


@dataclass(frozen=True)
class OperandMask:
    """Where an operand lies in the opcode word.

    A ``register_size`` of 0 makes the operand an immediate; otherwise it is a
    register of that many bytes, indexed by the extracted value.
    """

    register_size: int = 0
    mask: int = 0
    shift: int = 0

    @property
    def bits(self) -> int:
        """The opcode bits this operand occupies."""
        return (self.mask << self.shift) & 0xFFFF

    def extract(self, opcode: int) -> int:
        """Return this operand's field of ``opcode``."""
        return (opcode >> self.shift) & self.mask


_NO_OPERAND = OperandMask()


@dataclass(frozen=True)
class OpcodeSource:
    """One table entry: handler name, hints, base opcode and two operand fields.

    ``param`` is the small selector some handlers use, such as the access
    size of load/store instructions or the register pair of control moves.
    """

    handler: str
    hint: Hint
    opcode: int
    operands: Tuple[OperandMask, OperandMask] = (_NO_OPERAND, _NO_OPERAND)
    param: int = 0

    @property
    def raw_hint(self) -> int:
        """Flags and selector packed into one number, the selector from bit 8 up."""
        return int(self.hint) | (self.param << 8)

    def varying_bits(self) -> int:
        """Opcode bits taken by operands; every combination of them selects this entry."""
        bits = 0
        for operand in self.operands:
            bits |= operand.bits
        return bits & 0xFFFF

    def expand(self) -> List[int]:
        """Every opcode word this entry covers."""
        varying = self.varying_bits()
        words = [self.opcode]
        for position in range(15, -1, -1):
            bit = 1 << position
            if varying & bit:
                words += [word | bit for word in words]
        return words


def _r(size: int, mask: int, shift: int) -> OperandMask:
    return OperandMask(size, mask, shift)


def _e(
    handler: str,
    hint: Hint,
    opcode: int,
    op0: OperandMask = _NO_OPERAND,
    op1: OperandMask = _NO_OPERAND,
    param: int = 0,
) -> OpcodeSource:
    return OpcodeSource(handler, hint, opcode, (op0, op1), param)


_N = Hint.NONE
_WB = Hint.WB
_RN = _r(1, 0x000F, 8)
_RM = _r(1, 0x000F, 4)
_IMM8 = _r(0, 0x00FF, 0)
_ERN = _r(2, 0x000E, 8)
_ERM = _r(2, 0x000E, 4)
_WIDTH = _r(0, 0x0007, 4)


def _load_store(store: bool) -> List[OpcodeSource]:
    st = Hint.ST if store else _N
    er = _r(0, 0x000E, 8)
    r = _r(0, 0x000F, 8)
    xr = _r(0, 0x000C, 8)
    qr = _r(0, 0x0008, 8)
    d6 = _r(0, 0x003F, 0)
    s = 1 if store else 0
    return [
        _e("LS_EA", st, 0x9032 + s, er, param=2),
        _e("LS_EA", st | Hint.IA, 0x9052 + s, er, param=2),
        _e("LS_R", st, 0x9002 + s, er, _ERM, param=2),
        _e("LS_I_R", st | Hint.TI, 0xA008 + s, er, _ERM, param=2),
        _e("LS_BP", st, 0xB080 if store else 0xB000, er, d6, param=2),
        _e("LS_FP", st, 0xB0C0 if store else 0xB040, er, d6, param=2),
        _e("LS_I", st | Hint.TI, 0x9012 + s, er, param=2),
        _e("LS_EA", st, 0x9030 + s, r, param=1),
        _e("LS_EA", st | Hint.IA, 0x9050 + s, r, param=1),
        _e("LS_R", st, 0x9000 + s, r, _ERM, param=1),
        _e("LS_I_R", st | Hint.TI, 0x9008 + s, r, _ERM, param=1),
        _e("LS_BP", st, 0xD080 if store else 0xD000, r, d6, param=1),
        _e("LS_FP", st, 0xD0C0 if store else 0xD040, r, d6, param=1),
        _e("LS_I", st | Hint.TI, 0x9010 + s, r, param=1),
        _e("LS_EA", st, 0x9034 + s, xr, param=4),
        _e("LS_EA", st | Hint.IA, 0x9054 + s, xr, param=4),
        _e("LS_EA", st, 0x9036 + s, qr, param=8),
        _e("LS_EA", st | Hint.IA, 0x9056 + s, qr, param=8),
    ]


def _coprocessor_ea(store: bool) -> List[OpcodeSource]:
    st = Hint.ST if store else _N
    base = 0xF08D if store else 0xF00D
    entries = []
    for size, mask, offset in ((2, 0x000E, 0x20), (1, 0x000F, 0x00), (4, 0x000C, 0x40), (8, 0x0008, 0x60)):
        field = _r(0, mask, 8)
        op0, op1 = (field, _NO_OPERAND) if store else (_NO_OPERAND, field)
        entries.append(_e("CR_EA", st, base + offset, op0, op1, param=size))
        entries.append(_e("CR_EA", st | Hint.IA, base + offset + 0x10, op0, op1, param=size))
    return entries


@lru_cache(maxsize=None)
def _sources() -> Tuple[OpcodeSource, ...]:
    table: List[OpcodeSource] = [
        # arithmetic
        _e("ADD", _WB, 0x8001, _RN, _RM),
        _e("ADD", _WB, 0x1000, _RN, _IMM8),
        _e("ADD16", _WB, 0xF006, _ERN, _ERM),
        _e("ADD16", _WB | Hint.IE, 0xE080, _ERN, _r(0, 0x007F, 0)),
        _e("ADDC", _WB, 0x8006, _RN, _RM),
        _e("ADDC", _WB, 0x6000, _RN, _IMM8),
        _e("AND", _WB, 0x8002, _RN, _RM),
        _e("AND", _WB, 0x2000, _RN, _IMM8),
        _e("SUB", _N, 0x8007, _RN, _RM),
        _e("SUB", _N, 0x7000, _RN, _IMM8),
        _e("SUBC", _N, 0x8005, _RN, _RM),
        _e("SUBC", _N, 0x5000, _RN, _IMM8),
        _e("MOV16", _WB, 0xF005, _ERN, _ERM),
        _e("MOV16", _WB | Hint.IE, 0xE000, _ERN, _r(0, 0x007F, 0)),
        _e("MOV", _WB, 0x8000, _RN, _RM),
        _e("MOV", _WB, 0x0000, _RN, _IMM8),
        _e("OR", _WB, 0x8003, _RN, _RM),
        _e("OR", _WB, 0x3000, _RN, _IMM8),
        _e("XOR", _WB, 0x8004, _RN, _RM),
        _e("XOR", _WB, 0x4000, _RN, _IMM8),
        _e("CMP16", _N, 0xF007, _ERN, _ERM),
        _e("SUB", _WB, 0x8008, _RN, _RM),
        _e("SUBC", _WB, 0x8009, _RN, _RM),
        # shifts
        _e("SLL", _WB, 0x800A, _RN, _RM),
        _e("SLL", _WB, 0x900A, _RN, _WIDTH),
        _e("SLLC", _WB, 0x800B, _RN, _RM),
        _e("SLLC", _WB, 0x900B, _RN, _WIDTH),
        _e("SRA", _WB, 0x800E, _RN, _RM),
        _e("SRA", _WB, 0x900E, _RN, _WIDTH),
        _e("SRL", _WB, 0x800C, _RN, _RM),
        _e("SRL", _WB, 0x900C, _RN, _WIDTH),
        _e("SRLC", _WB, 0x800D, _RN, _RM),
        _e("SRLC", _WB, 0x900D, _RN, _WIDTH),
    ]
    table += _load_store(store=False)
    table += _load_store(store=True)
    table += [
        # control register access
        _e("ADDSP", _N, 0xE100, _IMM8),
        _e("CTRL", _N, 0xA00F, _NO_OPERAND, _RM, param=1),
        _e("CTRL", _N, 0xA00D, _NO_OPERAND, _ERN, param=2),
        _e("CTRL", _N, 0xA00C, _NO_OPERAND, _RM, param=3),
        _e("CTRL", _WB, 0xA005, _ERN, param=4),
        _e("CTRL", _WB, 0xA01A, _ERN, param=5),
        _e("CTRL", _N, 0xA00B, _NO_OPERAND, _RM, param=6),
        _e("CTRL", _N, 0xE900, _NO_OPERAND, _IMM8, param=7),
        _e("CTRL", _WB, 0xA007, _RN, param=8),
        _e("CTRL", _WB, 0xA004, _RN, param=9),
        _e("CTRL", _WB, 0xA003, _RN, param=10),
        _e("CTRL", _N, 0xA10A, _NO_OPERAND, _ERM, param=11),
        # push / pop
        _e("PUSH", _N, 0xF05E, _NO_OPERAND, _ERN),
        _e("PUSH", _N, 0xF07E, _NO_OPERAND, _r(8, 0x0008, 8)),
        _e("PUSH", _N, 0xF04E, _NO_OPERAND, _RN),
        _e("PUSH", _N, 0xF06E, _NO_OPERAND, _r(4, 0x000C, 8)),
        _e("PUSHL", _N, 0xF0CE, _NO_OPERAND, _r(0, 0x000F, 8)),
        _e("POP", _WB, 0xF01E, _ERN),
        _e("POP", _WB, 0xF03E, _r(8, 0x0008, 8)),
        _e("POP", _WB, 0xF00E, _RN),
        _e("POP", _WB, 0xF02E, _r(4, 0x000C, 8)),
        _e("POPL", _N, 0xF08E, _r(0, 0x000F, 8)),
        # coprocessor data transfer
        _e("CR_R", _N, 0xA00E, _r(0, 0x000F, 8), _r(0, 0x000F, 4)),
    ]
    table += _coprocessor_ea(store=False)
    table.append(_e("CR_R", Hint.ST, 0xA006, _r(0, 0x000F, 8), _r(0, 0x000F, 4)))
    table += _coprocessor_ea(store=True)
    table += [
        # EA register
        _e("LEA", _N, 0xF00A, _NO_OPERAND, _ERM),
        _e("LEA", Hint.TI, 0xF00B, _NO_OPERAND, _ERM),
        _e("LEA", Hint.TI, 0xF00C),
        # ALU
        _e("DAA", _WB, 0x801F, _RN),
        _e("DAS", _WB, 0x803F, _RN),
        _e("NEG", _WB, 0x805F, _RN),
        # bit access
        _e("BITMOD", _N, 0xA000, _r(0, 0x000F, 8), _WIDTH),
        _e("BITMOD", Hint.TI, 0xA080, _NO_OPERAND, _WIDTH),
        _e("BITMOD", _N, 0xA002, _r(0, 0x000F, 8), _WIDTH),
        _e("BITMOD", Hint.TI, 0xA082, _NO_OPERAND, _WIDTH),
        _e("BITMOD", _N, 0xA001, _r(0, 0x000F, 8), _WIDTH),
        _e("BITMOD", Hint.TI, 0xA081, _NO_OPERAND, _WIDTH),
        # PSW access
        _e("PSW_OR", _N, 0xED08),
        _e("PSW_AND", _N, 0xEBF7),
        _e("PSW_OR", _N, 0xED80),
        _e("PSW_AND", _N, 0xEB7F),
        _e("CPLC", _N, 0xFECF),
    ]
    # conditional relative branches: conditions 0..14
    table += [_e("BC", _N, 0xC000 | (cond << 8), _IMM8) for cond in range(15)]
    # sign extension: EXTBW ERn for each even n
    table += [_e("EXTBW", _N, 0x810F | (n << 9) | (n << 5)) for n in range(8)]
    table += [
        # software interrupts
        _e("SWI", _N, 0xE500, _r(0, 0x003F, 0)),
        _e("BRK", _N, 0xFFFF),
        # branches
        _e("B", Hint.TI, 0xF000, _NO_OPERAND, _r(0, 0x000F, 8)),
        _e("B", _N, 0xF002, _NO_OPERAND, _ERM),
        _e("BL", Hint.TI, 0xF001, _NO_OPERAND, _r(0, 0x000F, 8)),
        _e("BL", _N, 0xF003, _NO_OPERAND, _ERM),
        # multiplication and division
        _e("MUL", _WB, 0xF004, _ERN, _RM),
        _e("DIV", _WB, 0xF009, _ERN, _RM),
        # miscellaneous
        _e("INC_EA", _N, 0xFE2F),
        _e("DEC_EA", _N, 0xFE3F),
        _e("RT", _N, 0xFE1F),
        _e("RTI", _N, 0xFE0F),
        _e("NOP", _N, 0xFE8F),
        _e("DSR", Hint.DS, 0xFE9F),
        _e("DSR", Hint.DS | Hint.DW, 0xE300, _IMM8),
        _e("DSR", Hint.DS | Hint.DW, 0x900F, _r(1, 0x000F, 4)),
    ]
    return tuple(table)


def opcode_sources() -> List[OpcodeSource]:
    """The full opcode table in priority order: earlier entries win overlaps."""
    return list(_sources())


def build_dispatch(
    sources: Optional[Iterable[OpcodeSource]] = None,
) -> Tuple[Optional[OpcodeSource], ...]:
    """Map every 16-bit opcode word to the first source covering it, or None."""
    dispatch: List[Optional[OpcodeSource]] = [None] * OPCODE_SPACE
    for source in _sources() if sources is None else sources:
        for word in source.expand():
            if dispatch[word] is None:
                dispatch[word] = source
    return tuple(dispatch)