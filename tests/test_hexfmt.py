import pytest

from nxu8emu.hexfmt import signed_to_hex, to_bin, to_hex


def _parse_signed(text):
    if text.startswith("-"):
        return -int(text[1:], 16)
    return int(text, 16)


def test_to_hex_uses_upper_case_digits():
    assert to_hex(0xABCDEF, 6) == "ABCDEF"


@pytest.mark.parametrize("n,length", [(0, 2), (7, 1), (0x1234, 6), (0xFFFFFF, 6), (0x12345, 2)])
def test_to_hex_round_trip(n, length):
    text = to_hex(n, length)
    assert len(text) == length
    assert int(text, 16) == n & (16 ** length - 1)


def test_to_hex_negative_is_twos_complement():
    assert to_hex(-1, 4) == to_hex(0xFFFF, 4)


def test_to_hex_zero_length_is_empty():
    assert to_hex(0x1F, 0) == ""


def test_to_bin_pads_with_zeros():
    assert to_bin(5, 4) == "0101"


@pytest.mark.parametrize("n,length", [(0, 8), (0xA5, 8), (0x1FF, 8), (3, 2)])
def test_to_bin_round_trip(n, length):
    text = to_bin(n, length)
    assert len(text) == length
    assert set(text) <= {"0", "1"}
    assert int(text, 2) == n & ((1 << length) - 1)


def test_signed_to_hex_positive_keeps_digits():
    assert signed_to_hex(0x1F, 6) == "1F"


def test_signed_to_hex_negative_six_bits():
    assert signed_to_hex(0x3F, 6) == "-01"


def test_signed_to_hex_most_negative_sixteen_bits():
    assert signed_to_hex(0x8000, 16) == "-8000"


@pytest.mark.parametrize("bits", [6, 8, 16])
def test_signed_to_hex_round_trip(bits):
    digits = 1 + (bits - 1) // 4
    step = 1 if bits <= 8 else 257
    for n in range(0, 1 << bits, step):
        text = signed_to_hex(n, bits)
        assert len(text.lstrip("-")) == digits
        assert _parse_signed(text) % (1 << bits) == n
        assert text.startswith("-") == bool(n >> (bits - 1))