[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nxu8emu"
version = "0.1.0"
description = "Disassembler, opcode table and segmented memory map for the nX-U8 microcontroller core"
requires-python = ">=3.10"
dependencies = []
keywords = ["nx-u8", "disassembler", "opcode", "mmu", "calculator"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
u8-disas = "nxu8emu.disassembler:main"

[tool.hatch.build.targets.wheel]
packages = ["nxu8emu"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
