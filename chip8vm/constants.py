"""Shared architecture constants for the CHIP-8 virtual machine.

This module centralizes the fixed sizes, addresses and the built-in font
used by the machine state, executor and tests.
"""

# Total addressable memory. Every address computation wraps with
# ``ADDRESS_MASK`` before it is used.
MEMORY_SIZE = 0x1000  # 4096 bytes
ADDRESS_MASK = MEMORY_SIZE - 1

# Programs are loaded here; the area below is reserved for the font.
PROGRAM_START = 0x200

REGISTER_COUNT = 16
FLAG_REGISTER = 0xF

STACK_DEPTH = 16

KEY_COUNT = 16

DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32

# Built-in hex digit glyphs: 16 sprites, 5 rows each, stored at 0x000.
FONT_BASE = 0x000
GLYPH_HEIGHT = 5
FONT_SET = bytes(
    [
        0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
        0x20, 0x60, 0x20, 0x20, 0x70,  # 1
        0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
        0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
        0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
        0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
        0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
        0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
        0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
        0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
        0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
        0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
        0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
        0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
        0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
        0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
    ]
)

# Wall-clock pause between ticks (seconds).
DEFAULT_TICK_INTERVAL = 0.004
