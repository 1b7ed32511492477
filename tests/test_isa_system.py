import pytest

from nxu8emu.isa_system import CONDITIONS, system_instructions


def by_pattern(pattern):
    found = [ins for ins in system_instructions() if ins.pattern == pattern]
    assert len(found) == 1
    return found[0]


def test_lengths_and_order():
    lengths = [ins.length for ins in system_instructions()]
    assert set(lengths) == {2, 4}
    first_long = lengths.index(4)
    assert all(length == 4 for length in lengths[first_long:])


def test_every_encoding_matches_its_fixed_bits_and_renders():
    for ins in system_instructions():
        data = list(ins.value)
        assert ins.matches(data)
        text = ins.render(data, 0)
        assert isinstance(text, str) and text


def test_simple_mnemonics():
    assert by_pattern("11111111 11111111").render([0xFF, 0xFF]) == "BRK"
    assert by_pattern("10001111 11111110").render([0x8F, 0xFE]) == "NOP"
    assert by_pattern("11001110 11111000").render([0xCE, 0xF8]) == "PUSH    LR"


def test_push_register_list_empty():
    ins = by_pattern("11001110 1111lep1")
    assert ins.render([0xCE, 0xF1]) == "PUSH    EA"


def test_push_register_list_full_contains_all_names():
    text = by_pattern("11001110 1111lep1").render([0xCE, 0xFF])
    assert text.startswith("PUSH    LR, ")
    assert "EPSW, " in text and "ELR, " in text and text.endswith("EA")


def test_pop_register_list_uses_psw_and_pc():
    text = by_pattern("10001110 1111lep1").render([0x8E, 0xFF])
    assert "PSW, " in text and "PC, " in text and "EPSW" not in text


def test_branch_target():
    ins = by_pattern("rrrrrrrr 1100cccc")
    assert ins.render([0xFE, 0xC9], 0x100) == "BC      EQ, 000FEh"


def test_branch_unrecognized_condition():
    ins = by_pattern("rrrrrrrr 1100cccc")
    assert CONDITIONS[15] in ins.render([0x00, 0xCF], 0)


def test_branch_moves_with_address():
    ins = by_pattern("rrrrrrrr 1100cccc")
    assert ins.render([0x00, 0xCE], 0x10) == ins.render([0x08, 0xCE], 0)


def test_extbw_format_check():
    ins = by_pattern("nnn01111 1000mmm1")
    good = ins.render([0x2F, 0x83])
    bad = ins.render([0x2F, 0x81])
    assert good.startswith("EXTBW")
    assert bad.startswith("Wrong format - ")


def test_bp_displacement_negative():
    ins = by_pattern("00DDDDDD 1011nnn0")
    assert ins.render([0x3F, 0xB2]) == "L       ER2, -01h[BP]"


def test_far_branch():
    ins = by_pattern("00000000 1111gggg CCCCCCCC DDDDDDDD")
    assert ins.render([0x00, 0xF3, 0x34, 0x12]) == "B       03h:01234h"


def test_mov_psw_immediate_keeps_trailing_space():
    text = by_pattern("iiiiiiii 11101001").render([0x05, 0xE9])
    assert text.startswith("MOV     PSW, #")
    assert text.endswith(" ")


def test_long_encoding_needs_four_bytes():
    ins = by_pattern("00000001 1111gggg CCCCCCCC DDDDDDDD")
    assert not ins.matches([0x01, 0xF0])
    with pytest.raises(ValueError):
        ins.render([0x01, 0xF0])


def test_render_rejects_mismatch():
    with pytest.raises(ValueError):
        by_pattern("11111111 11111111").render([0x00, 0xFF])