import pytest

from nxu8emu.hexfmt import to_hex
from nxu8emu.isa import Field, Instruction, alu_instructions


def _first(data):
    return next(inst for inst in alu_instructions() if inst.matches(data))


def _encode(inst, values):
    out = list(inst.value)
    for f in inst.fields:
        out[f.byte] |= (values[f.name] & f.mask) << f.shift
    return bytes(out)


def test_pattern_fields_and_masks():
    inst = Instruction("mmmm0001 1000nnnn", lambda f, a: "")
    assert inst.fields == (Field("m", 0, 4, 4), Field("n", 1, 0, 4))
    assert inst.mask == (0b00001111, 0b11110000)
    assert inst.value == (0b00000001, 0b10000000)
    assert inst.length == 2


def test_fields_are_sorted_by_character():
    inst = Instruction("mmm01000 1010nnn0 DDDDDDDD EEEEEEEE", lambda f, a: "")
    assert [f.name for f in inst.fields] == ["D", "E", "m", "n"]
    assert inst.length == 4
    assert inst.fields[2] == Field("m", 0, 5, 3)


@pytest.mark.parametrize(
    "pattern",
    ["", "0000000 00000000", "mmm0m000 00000000", "0000000a a0000000", "000000000 0000000"],
)
def test_malformed_patterns_raise(pattern):
    with pytest.raises(ValueError):
        Instruction(pattern, lambda f, a: "")


def test_short_data_never_matches():
    inst = alu_instructions()[3]
    assert inst.matches(bytes([0x21])) is False
    with pytest.raises(ValueError):
        inst.decode_fields(bytes([0x21]))


def test_render_rejects_non_matching_data():
    inst = Instruction("11111111 11111111", lambda f, a: "BRK")
    with pytest.raises(ValueError):
        inst.render(bytes([0x00, 0x00]), 0)


def test_add_register_register():
    assert _first(bytes([0x21, 0x83])).render(bytes([0x21, 0x83]), 0) == "ADD     R3, R2"


def test_add_register_immediate():
    data = bytes([0x05, 0x13])
    assert _first(data).render(data, 0) == "ADD     R3, #5"


def test_add_er_immediate_is_sign_extended():
    data = bytes([0xFF, 0xE0])
    assert _first(data).render(data, 0) == "ADD     ER0, #-1"


def test_add_er_immediate_range():
    for i in range(0x80):
        data = bytes([0x80 | i, 0xE2])
        text = _first(data).render(data, 0)
        assert text.startswith("ADD     ER2, #")
        value = int(text.split("#")[1])
        assert -64 <= value < 64
        assert value & 0x7F == i


def test_mov_er_immediate_without_top_bit():
    data = bytes([0x3F, 0xE4])
    assert _first(data).render(data, 0) == "MOV     ER4, #63"


def test_dsr_immediate_prefix():
    data = bytes([0x12, 0xE3])
    assert _first(data).render(data, 0) == f"DSR<-   0{to_hex(0x12, 2)}h"


def test_dsr_without_operand_field():
    data = bytes([0x9F, 0xFE])
    assert _first(data).render(data, 0) == "DSR<-   DSR"


def test_decode_fields_round_trip_for_all_alu_instructions():
    for inst in alu_instructions():
        for fill in (0, 0xFF, 0x55):
            values = {f.name: fill & f.mask for f in inst.fields}
            data = _encode(inst, values)
            assert inst.matches(data)
            assert inst.decode_fields(data) == values


def test_operands_start_at_column_eight():
    for inst in alu_instructions():
        data = _encode(inst, {f.name: 1 for f in inst.fields})
        text = inst.render(data, 0)
        assert len(text) > 8
        assert text[7] == " " and text[8] != " "
        assert inst.length == 2