"""Machine state for the CHIP-8 virtual machine.

``MachineState`` owns everything a running program can observe: the
memory image, the register file, the call stack, both timers, the
framebuffer and the keypad snapshot. All address arithmetic performed
through its accessors wraps into the 4 KiB address space, and the stack
and keypad accessors are bounds-checked.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

import numpy as np

from .constants import (
    ADDRESS_MASK,
    DISPLAY_HEIGHT,
    DISPLAY_WIDTH,
    FONT_BASE,
    FONT_SET,
    KEY_COUNT,
    MEMORY_SIZE,
    PROGRAM_START,
    REGISTER_COUNT,
    STACK_DEPTH,
)

logger = logging.getLogger(__name__)


class Chip8Error(Exception):
    """Base class for recoverable interpreter conditions."""


class StackFault(Chip8Error):
    """Call stack misuse by the running program."""

    def __init__(self, message: str, pc: Optional[int] = None) -> None:
        super().__init__(message)
        self.pc = pc


class StackOverflow(StackFault):
    """A call was attempted with all 16 stack slots in use."""


class StackUnderflow(StackFault):
    """A return was attempted with an empty call stack."""


class InvalidKeyIndex(Chip8Error, IndexError):
    """A keypad lookup used an index outside 0x0-0xF."""


class MachineState:
    """Memory, registers, stack, timers, framebuffer and keypad."""

    def __init__(self) -> None:
        self.memory = bytearray(MEMORY_SIZE)
        self.registers = bytearray(REGISTER_COUNT)
        # Indexed [y, x]; one byte per pixel holding 0 or 1.
        self.framebuffer = np.zeros((DISPLAY_HEIGHT, DISPLAY_WIDTH), dtype=np.uint8)
        self.reset()

    def reset(self) -> None:
        """Restore power-on state with the font table preloaded."""

        self.memory[:] = bytes(MEMORY_SIZE)
        self.memory[FONT_BASE : FONT_BASE + len(FONT_SET)] = FONT_SET
        self.registers[:] = bytes(REGISTER_COUNT)
        self._pc = PROGRAM_START
        self._index = 0
        self._stack = [0] * STACK_DEPTH
        self._sp = 0
        self.delay_timer = 0
        self.sound_timer = 0
        self.framebuffer.fill(0)
        self.dirty = False
        self._keypad: Tuple[bool, ...] = (False,) * KEY_COUNT
        # Register awaiting a key press (FX0A), or None when running normally.
        self.waiting_for_key: Optional[int] = None

    # ------------------------------------------------------------------ #
    # Program counter / index register
    # ------------------------------------------------------------------ #
    @property
    def pc(self) -> int:
        return self._pc

    @pc.setter
    def pc(self, value: int) -> None:
        self._pc = int(value) & ADDRESS_MASK

    @property
    def index(self) -> int:
        return self._index

    @index.setter
    def index(self, value: int) -> None:
        self._index = int(value) & ADDRESS_MASK

    # ------------------------------------------------------------------ #
    # Memory
    # ------------------------------------------------------------------ #
    def load_rom(self, data: bytes) -> int:
        """Copy ``data`` to ``PROGRAM_START`` and return the bytes kept.

        Bytes that would land at or past the end of memory are dropped.
        """

        capacity = MEMORY_SIZE - PROGRAM_START
        kept = bytes(data[:capacity])
        self.memory[PROGRAM_START : PROGRAM_START + len(kept)] = kept
        if len(data) > capacity:
            logger.warning(
                "ROM is %d bytes; dropped %d bytes past 0x%03X",
                len(data),
                len(data) - capacity,
                ADDRESS_MASK,
            )
        logger.info("Loaded %d ROM bytes at 0x%03X", len(kept), PROGRAM_START)
        return len(kept)

    def read_byte(self, address: int) -> int:
        return self.memory[address & ADDRESS_MASK]

    def write_byte(self, address: int, value: int) -> None:
        self.memory[address & ADDRESS_MASK] = value & 0xFF

    def fetch_word(self) -> int:
        """Read the big-endian word at PC and advance PC by 2."""

        pc = self._pc
        word = (self.memory[pc] << 8) | self.memory[(pc + 1) & ADDRESS_MASK]
        self.pc = pc + 2
        return word

    # ------------------------------------------------------------------ #
    # Call stack
    # ------------------------------------------------------------------ #
    @property
    def sp(self) -> int:
        return self._sp

    @property
    def stack(self) -> Tuple[int, ...]:
        """Return addresses currently on the stack, oldest first."""

        return tuple(self._stack[: self._sp])

    def push(self, address: int) -> None:
        if self._sp >= STACK_DEPTH:
            raise StackOverflow(
                f"call stack full ({STACK_DEPTH} return addresses)", pc=self._pc
            )
        self._stack[self._sp] = address & ADDRESS_MASK
        self._sp += 1

    def pop(self) -> int:
        if self._sp <= 0:
            raise StackUnderflow("return with empty call stack", pc=self._pc)
        self._sp -= 1
        return self._stack[self._sp]

    # ------------------------------------------------------------------ #
    # Keypad
    # ------------------------------------------------------------------ #
    @property
    def keypad(self) -> Tuple[bool, ...]:
        return self._keypad

    def set_keypad(self, keys: Iterable[bool]) -> None:
        """Replace the keypad snapshot wholesale."""

        snapshot = tuple(bool(k) for k in keys)
        if len(snapshot) != KEY_COUNT:
            raise ValueError(
                f"keypad snapshot needs {KEY_COUNT} entries, got {len(snapshot)}"
            )
        self._keypad = snapshot

    def is_key_pressed(self, index: int) -> bool:
        if not 0 <= index < KEY_COUNT:
            raise InvalidKeyIndex(f"key index out of range: {index:#x}")
        return self._keypad[index]

    def first_pressed_key(self) -> Optional[int]:
        for index, pressed in enumerate(self._keypad):
            if pressed:
                return index
        return None

    # ------------------------------------------------------------------ #
    # Timers / display
    # ------------------------------------------------------------------ #
    def tick_timers(self) -> None:
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    def clear_framebuffer(self) -> None:
        self.framebuffer.fill(0)
        self.dirty = True

    def framebuffer_snapshot(self) -> np.ndarray:
        """Return a copy of the framebuffer safe to hand to a renderer."""

        return self.framebuffer.copy()


__all__ = [
    "Chip8Error",
    "StackFault",
    "StackOverflow",
    "StackUnderflow",
    "InvalidKeyIndex",
    "MachineState",
]
