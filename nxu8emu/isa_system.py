"""Load/store, control, stack, coprocessor, branch and misc encodings of the nX-U8 core."""

from __future__ import annotations

from typing import List, Mapping, Optional

from .hexfmt import signed_to_hex, to_hex
from .isa import Instruction, Renderer

CONDITIONS = (
    "GE", "LT", "GT", "LE", "GES", "LTS", "GTS", "LES",
    "NE", "EQ", "NV", "OV", "PS", "NS", "AL", "<Unrecognized>",
)


def _op(pattern: str, mnemonic: str, operands: Optional[Renderer] = None) -> Instruction:
    if operands is None:
        return Instruction(pattern, lambda f, a: mnemonic)
    return Instruction(pattern, lambda f, a: f"{mnemonic:<8}{operands(f, a)}")


def _text(text: str) -> Renderer:
    return lambda f, a: text


def _reg(kind: str, field: str, scale: int) -> Renderer:
    return lambda f, a: f"{kind}{f[field] * scale}"


def _reg_then(kind: str, field: str, scale: int, suffix: str) -> Renderer:
    return lambda f, a: f"{kind}{f[field] * scale}{suffix}"


def _then_reg(prefix: str, kind: str, field: str, scale: int) -> Renderer:
    return lambda f, a: f"{prefix}{kind}{f[field] * scale}"


def _reg_er(kind: str, scale: int) -> Renderer:
    return lambda f, a: f"{kind}{f['n'] * scale}, [ER{f['m'] * 2}]"


def _reg_disp6(kind: str, scale: int, base: str) -> Renderer:
    return lambda f, a: f"{kind}{f['n'] * scale}, {signed_to_hex(f['D'], 6)}h[{base}]"


def _word(f: Mapping[str, int]) -> int:
    return f["E"] * 256 + f["D"]


def _reg_disp16(kind: str, scale: int) -> Renderer:
    return lambda f, a: (
        f"{kind}{f['n'] * scale}, {signed_to_hex(_word(f), 16)}h[ER{f['m'] * 2}]"
    )


def _reg_abs(kind: str, scale: int) -> Renderer:
    return lambda f, a: f"{kind}{f['n'] * scale}, 0{to_hex(_word(f), 4)}h"


def _bit_abs(f: Mapping[str, int], _: int) -> str:
    return f"0{to_hex(_word(f), 4)}h.{f['b']}"


def _bit_reg(f: Mapping[str, int], _: int) -> str:
    return f"R{f['n']}.{f['b']}"


def _far(f: Mapping[str, int], _: int) -> str:
    return f"0{to_hex(f['g'], 1)}h:0{to_hex(f['D'] * 256 + f['C'], 4)}h"


def _branch(f: Mapping[str, int], address: int) -> str:
    r = f["r"]
    offset = r - 0x100 if r & 0x80 else r
    target = 2 + address + (offset << 1)
    return f"{CONDITIONS[f['c']]}, {to_hex(target, 5)}h"


def _extbw(f: Mapping[str, int], _: int) -> str:
    prefix = "" if f["m"] == f["n"] else "Wrong format - "
    return f"{prefix}EXTBW   ER{f['n'] * 2}"


def _register_list(flags: str, tail: str) -> Renderer:
    names = {"l": "LR, ", "e": flags[0], "p": flags[1]}

    def render(f: Mapping[str, int], _: int) -> str:
        parts = [names[key] for key in "lep" if f.get(key) == 1]
        return "".join(parts) + tail

    return render


def _load_store(mnemonic: str, ea: str, ea_inc: str, er: str, bp_er: str, fp_er: str,
                r_ea: str, r_ea_inc: str, r_er: str, bp_r: str, fp_r: str,
                xr_ea: str, xr_ea_inc: str, qr_ea: str, qr_ea_inc: str) -> List[Instruction]:
    return [
        _op(ea, mnemonic, _reg_then("ER", "n", 2, ", [EA]")),
        _op(ea_inc, mnemonic, _reg_then("ER", "n", 2, ", [EA+]")),
        _op(er, mnemonic, _reg_er("ER", 2)),
        _op(bp_er, mnemonic, _reg_disp6("ER", 2, "BP")),
        _op(fp_er, mnemonic, _reg_disp6("ER", 2, "FP")),
        _op(r_ea, mnemonic, _reg_then("R", "n", 1, ", [EA]")),
        _op(r_ea_inc, mnemonic, _reg_then("R", "n", 1, ", [EA+]")),
        _op(r_er, mnemonic, _reg_er("R", 1)),
        _op(bp_r, mnemonic, _reg_disp6("R", 1, "BP")),
        _op(fp_r, mnemonic, _reg_disp6("R", 1, "FP")),
        _op(xr_ea, mnemonic, _reg_then("XR", "n", 4, ", [EA]")),
        _op(xr_ea_inc, mnemonic, _reg_then("XR", "n", 4, ", [EA+]")),
        _op(qr_ea, mnemonic, _reg_then("QR", "n", 8, ", [EA]")),
        _op(qr_ea_inc, mnemonic, _reg_then("QR", "n", 8, ", [EA+]")),
    ]


def system_instructions() -> List[Instruction]:
    """Every encoding after the arithmetic/shift group, in decode priority order."""
    table: List[Instruction] = []
    table += _load_store(
        "L",
        "00110010 1001nnn0", "01010010 1001nnn0", "mmm00010 1001nnn0",
        "00DDDDDD 1011nnn0", "01DDDDDD 1011nnn0",
        "00110000 1001nnnn", "01010000 1001nnnn", "mmm00000 1001nnnn",
        "00DDDDDD 1101nnnn", "01DDDDDD 1101nnnn",
        "00110100 1001nn00", "01010100 1001nn00",
        "00110110 1001n000", "01010110 1001n000",
    )
    table += _load_store(
        "ST",
        "00110011 1001nnn0", "01010011 1001nnn0", "mmm00011 1001nnn0",
        "10DDDDDD 1011nnn0", "11DDDDDD 1011nnn0",
        "00110001 1001nnnn", "01010001 1001nnnn", "mmm00001 1001nnnn",
        "10DDDDDD 1101nnnn", "11DDDDDD 1101nnnn",
        "00110101 1001nn00", "01010101 1001nn00",
        "00110111 1001n000", "01010111 1001n000",
    )
    table += [
        _op("iiiiiiii 11100001", "ADD", lambda f, a: f"SP, #{signed_to_hex(f['i'], 8)}h"),
        _op("mmmm1111 10100000", "MOV", _then_reg("ECSR, ", "R", "m", 1)),
        _op("00001101 1010mmm0", "MOV", _then_reg("ELR, ", "ER", "m", 2)),
        _op("mmmm1100 10100000", "MOV", _then_reg("EPSW, ", "R", "m", 1)),
        _op("00000101 1010nnn0", "MOV", _reg_then("ER", "n", 2, ", ELR")),
        _op("00011010 1010nnn0", "MOV", _reg_then("ER", "n", 2, ", SP")),
        _op("mmmm1011 10100000", "MOV", _then_reg("PSW, ", "R", "m", 1)),
        _op("iiiiiiii 11101001", "MOV", lambda f, a: f"PSW, #{f['i']} "),
        _op("00000111 1010nnnn", "MOV", _reg_then("R", "n", 1, ", ECSR")),
        _op("00000100 1010nnnn", "MOV", _reg_then("R", "n", 1, ", EPSW")),
        _op("00000011 1010nnnn", "MOV", _reg_then("R", "n", 1, ", PSW")),
        _op("mmm01010 10100001", "MOV", _then_reg("SP, ", "ER", "m", 2)),
        _op("01011110 1111nnn0", "PUSH", _reg("ER", "n", 2)),
        _op("01111110 1111n000", "PUSH", _reg("QR", "n", 8)),
        _op("01001110 1111nnnn", "PUSH", _reg("R", "n", 1)),
        _op("01101110 1111nn00", "PUSH", _reg("XR", "n", 4)),
        _op("11001110 1111lep1", "PUSH", _register_list(("EPSW, ", "ELR, "), "EA")),
        _op("11001110 1111le10", "PUSH", _register_list(("EPSW, ", "ELR, "), "ELR")),
        _op("11001110 1111l100", "PUSH", _register_list(("EPSW, ", "ELR, "), "EPSW")),
        _op("11001110 11111000", "PUSH", _text("LR")),
        _op("00011110 1111nnn0", "POP", _reg("ER", "n", 2)),
        _op("00111110 1111n000", "POP", _reg("QR", "n", 8)),
        _op("00001110 1111nnnn", "POP", _reg("R", "n", 1)),
        _op("00101110 1111nn00", "POP", _reg("XR", "n", 4)),
        _op("10001110 1111lep1", "POP", _register_list(("PSW, ", "PC, "), "EA")),
        _op("10001110 1111le10", "POP", _register_list(("PSW, ", "PC, "), "PC")),
        _op("10001110 1111l100", "POP", _register_list(("PSW, ", "PC, "), "PSW")),
        _op("10001110 11111000", "POP", _text("LR")),
        _op("mmmm1110 1010nnnn", "MOV", lambda f, a: f"CR{f['n']}, R{f['m']}"),
        _op("00101101 1111nnn0", "MOV", _reg_then("CER", "n", 2, ", [EA]")),
        _op("00111101 1111nnn0", "MOV", _reg_then("CER", "n", 2, ", [EA+]")),
        _op("00001101 1111nnnn", "MOV", _reg_then("CR", "n", 1, ", [EA]")),
        _op("00011101 1111nnnn", "MOV", _reg_then("CR", "n", 1, ", [EA+]")),
        _op("01001101 1111nn00", "MOV", _reg_then("CXR", "n", 4, ", [EA]")),
        _op("01011101 1111nn00", "MOV", _reg_then("CXR", "n", 4, ", [EA+]")),
        _op("01101101 1111n000", "MOV", _reg_then("CQR", "n", 8, ", [EA]")),
        _op("01111101 1111n000", "MOV", _reg_then("CQR", "n", 8, ", [EA+]")),
        _op("mmmm0110 1010nnnn", "MOV", lambda f, a: f"R{f['n']}, CR{f['m']}"),
        _op("10101101 1111mmm0", "MOV", _then_reg("[EA], ", "CER", "m", 2)),
        _op("10111101 1111mmm0", "MOV", _then_reg("[EA+], ", "CER", "m", 2)),
        _op("10001101 1111mmmm", "MOV", _then_reg("[EA], ", "CR", "m", 1)),
        _op("10011101 1111mmmm", "MOV", _then_reg("[EA+], ", "CR", "m", 1)),
        _op("11001101 1111mm00", "MOV", _then_reg("[EA], ", "CXR", "m", 4)),
        _op("11011101 1111mm00", "MOV", _then_reg("[EA+], ", "CXR", "m", 4)),
        _op("11101101 1111m000", "MOV", _then_reg("[EA], ", "CQR", "m", 8)),
        _op("11111101 1111m000", "MOV", _then_reg("[EA+], ", "CQR", "m", 8)),
        _op("mmm01010 11110000", "LEA", lambda f, a: f"[ER{f['m'] * 2}]"),
        _op("00011111 1000nnnn", "DAA", _reg("R", "n", 1)),
        _op("00111111 1000nnnn", "DAS", _reg("R", "n", 1)),
        _op("01011111 1000nnnn", "NEG", _reg("R", "n", 1)),
        _op("0bbb0000 1010nnnn", "SB", _bit_reg),
        _op("0bbb0010 1010nnnn", "RB", _bit_reg),
        _op("0bbb0001 1010nnnn", "TB", _bit_reg),
        _op("00001000 11101101", "EI"),
        _op("11110111 11101011", "DI"),
        _op("10000000 11101101", "SC"),
        _op("01111111 11101011", "RC"),
        _op("11001111 11111110", "CPLC"),
        _op("rrrrrrrr 1100cccc", "BC", _branch),
        Instruction("nnn01111 1000mmm1", _extbw),
        _op("00iiiiii 11100101", "SWI", lambda f, a: f"#{f['i']}"),
        _op("11111111 11111111", "BRK"),
        _op("nnn00010 11110000", "B", _reg("ER", "n", 2)),
        _op("nnn00011 11110000", "BL", _reg("ER", "n", 2)),
        _op("mmmm0100 1111nnn0", "MUL", lambda f, a: f"ER{f['n'] * 2}, R{f['m']}"),
        _op("mmmm1001 1111nnn0", "DIV", lambda f, a: f"ER{f['n'] * 2}, R{f['m']}"),
        _op("00101111 11111110", "INC", _text("[EA]")),
        _op("00111111 11111110", "DEC", _text("[EA]")),
        _op("00011111 11111110", "RT"),
        _op("00001111 11111110", "RTI"),
        _op("10001111 11111110", "NOP"),
        # four-byte encodings
        _op("mmm01000 1010nnn0 DDDDDDDD EEEEEEEE", "L", _reg_disp16("ER", 2)),
        _op("00010010 1001nnn0 DDDDDDDD EEEEEEEE", "L", _reg_abs("ER", 2)),
        _op("mmm01000 1001nnnn DDDDDDDD EEEEEEEE", "L", _reg_disp16("R", 1)),
        _op("00010000 1001nnnn DDDDDDDD EEEEEEEE", "L", _reg_abs("R", 1)),
        _op("mmm01001 1010nnn0 DDDDDDDD EEEEEEEE", "ST", _reg_disp16("ER", 2)),
        _op("00010011 1001nnn0 DDDDDDDD EEEEEEEE", "ST", _reg_abs("ER", 2)),
        _op("mmm01001 1001nnnn DDDDDDDD EEEEEEEE", "ST", _reg_disp16("R", 1)),
        _op("00010001 1001nnnn DDDDDDDD EEEEEEEE", "ST", _reg_abs("R", 1)),
        _op("mmm01011 11110000 DDDDDDDD EEEEEEEE", "LEA",
            lambda f, a: f"{signed_to_hex(_word(f), 16)}h[ER{f['m'] * 2}]"),
        _op("00001100 11110000 DDDDDDDD EEEEEEEE", "LEA",
            lambda f, a: f"0{to_hex(_word(f), 4)}h"),
        _op("1bbb0000 10100000 DDDDDDDD EEEEEEEE", "SB", _bit_abs),
        _op("1bbb0010 10100000 DDDDDDDD EEEEEEEE", "RB", _bit_abs),
        _op("1bbb0001 10100000 DDDDDDDD EEEEEEEE", "TB", _bit_abs),
        _op("00000000 1111gggg CCCCCCCC DDDDDDDD", "B", _far),
        _op("00000001 1111gggg CCCCCCCC DDDDDDDD", "BL", _far),
    ]
    return table