"""Fixed-width hexadecimal and binary text helpers used by the disassembler."""

_HEX_DIGITS = "0123456789ABCDEF"


def to_hex(n: int, length: int) -> str:
    """Return the lowest ``length`` hex digits of ``n``, upper case, zero padded.

    Negative numbers come out in two's complement, as the digits are taken
    nibble by nibble from the bottom.
    """
    return "".join(_HEX_DIGITS[(n >> (4 * k)) & 0xF] for k in reversed(range(length)))


def to_bin(n: int, length: int) -> str:
    """Return the lowest ``length`` binary digits of ``n``, zero padded."""
    return "".join("01"[(n >> k) & 1] for k in reversed(range(length)))


def signed_to_hex(n: int, bit_length: int) -> str:
    """Format ``n``, a two's-complement number of ``bit_length`` bits, as signed hex.

    The result has ``ceil((bit_length - 1) / 4)`` digits, zero padded, and a
    leading ``-`` when the sign bit is set.
    """
    top = bit_length - 1
    positive = (n >> top) == 0
    if not positive:
        n = (2 << top) - n
    digits = to_hex(n, 1 + top // 4)
    return digits if positive else "-" + digits