# nxu8emu

Tools for working with machine code written for the nX-U8 8-bit microcontroller core:

- a table-driven **disassembler** (`nxu8emu.disassembler`),
- the instruction **opcode table** and a 64 Ki-entry dispatch built from it (`nxu8emu.opcodes`),
- a segmented **memory map** with pluggable regions and watch callbacks (`nxu8emu.mmu`),
- fixed-width hex and binary **formatting helpers** (`nxu8emu.hexfmt`).

The package has no dependencies outside the standard library.

## Installation

```
pip install .
```

## Disassembling from the command line

```
u8-disas ROM_FILE OFFSET LENGTH OUTPUT_FILE
```

`OFFSET` and `LENGTH` accept decimal, `0x` hexadecimal or `0` octal numbers.
With any other number of arguments the command prints its usage and exits.
Each output line holds the address (counted from the start of the slice), the
raw bytes and the assembly text:

```
000000   00 F1 34 12        B       01h:01234h
```

Two bytes that match no encoding are listed as `Unrecognized command`.

## Disassembling from Python

```python
from nxu8emu.disassembler import decode, disassemble, disassemble_file

insn = decode(bytes([0x05, 0x10]), 0)
print(insn.text)        # ADD     R0, #5
print(insn.format())    # full listing line

for line in disassemble(bytes([0x8F, 0xFE, 0x1F, 0xFE])):
    print(line.format())  # NOP, then RT

listing = disassemble_file("rom.bin", 0x100, 0x40)
```

`decode` returns a `DecodedInstruction` with `address`, `raw`, `text`,
`instruction`, `length` and `recognized`. `instruction_table()` lists every
known encoding in decode priority order; each is an `nxu8emu.isa.Instruction`
built from a bit pattern such as `"mmmm0001 1000nnnn"`, with `matches`,
`decode_fields` and `render`.

## Opcode table

`nxu8emu.opcodes.opcode_sources()` returns the table of `OpcodeSource` entries
(handler name, `Hint` flags, base opcode, two `OperandMask` fields and a size
or selector parameter). `OpcodeSource.expand()` lists every opcode word an
entry covers, and `build_dispatch()` maps all 65536 words to the first entry
that covers them, or `None`.

## Memory map

```python
from nxu8emu.mmu import MMU, RegisterCell

mmu = MMU(rom=open("rom.bin", "rb").read())
mmu.generate_segment(0)
cell = RegisterCell(width=2, mask=0x1FFF)
mmu.register_region(cell.region(0xF010, 2, "InterruptMask"))
mmu.write_data(0xF011, 0xFF)
assert mmu.read_data(0xF011) == 0x1F
```

`read_code` reads 16-bit code words (segment 0 straight from the ROM),
`read_data`/`write_data` go through the mapped `MMURegion`. Overlapping or
unmapping holes raises `MMUError`. Accesses to unmapped memory call the
optional `on_memory_error` handler and read as zero. `watch_read` and
`watch_write` attach callbacks to single addresses; `ignore_read` and
`ignore_write` provide constant or discarding region functions.

## What the package does not do

It does not execute instructions: there is no CPU core, no ALU, no
peripherals and no interrupt handling. The opcode table and the memory map
are provided as building blocks, and the disassembler only lists code.