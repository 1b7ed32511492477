"""Disassembler, opcode table and segmented memory map for the nX-U8 microcontroller core."""

__version__ = "0.1.0"