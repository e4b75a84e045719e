"""Per-operation tests for the executor."""

from __future__ import annotations

import random
from typing import Tuple

import pytest

from chip8vm.decoding import decode_opcode
from chip8vm.executor import Executor
from chip8vm.state import MachineState, StackOverflow, StackUnderflow

VF = 0xF


def _machine(*words: int, seed: int = 0) -> Tuple[MachineState, Executor]:
    state = MachineState()
    state.load_rom(b"".join(word.to_bytes(2, "big") for word in words))
    return state, Executor(state, random.Random(seed))


def _step(state: MachineState, executor: Executor, count: int = 1) -> None:
    for _ in range(count):
        executor.execute(decode_opcode(state.fetch_word()))


def _keypad(*pressed: int) -> Tuple[bool, ...]:
    return tuple(index in pressed for index in range(16))


# ---------------------------------------------------------------------- #
# Control flow
# ---------------------------------------------------------------------- #
def test_nop_only_advances_pc() -> None:
    state, executor = _machine(0x0123)
    before = bytes(state.registers)

    _step(state, executor)

    assert state.pc == 0x202
    assert bytes(state.registers) == before
    assert not state.dirty


def test_clear_screen_zeroes_every_pixel_and_marks_dirty() -> None:
    state, executor = _machine(0x00E0)
    state.framebuffer[:, :] = 1

    _step(state, executor)

    assert state.framebuffer.size == 2048
    assert not state.framebuffer.any()
    assert state.dirty


def test_jump_sets_pc() -> None:
    state, executor = _machine(0x1ABC)
    _step(state, executor)
    assert state.pc == 0xABC


def test_call_then_return_resumes_after_call() -> None:
    state, executor = _machine(0x2300)
    state.memory[0x300:0x302] = b"\x00\xEE"

    _step(state, executor)
    assert state.pc == 0x300
    assert state.stack == (0x202,)

    _step(state, executor)
    assert state.pc == 0x202
    assert state.sp == 0


def test_nested_calls_up_to_depth_16_and_overflow_on_17th() -> None:
    # Each instruction calls the next word, nesting one level per step.
    words = [0x2000 | (0x200 + 2 * (i + 1)) for i in range(17)]
    state, executor = _machine(*words)

    _step(state, executor, 16)
    assert state.sp == 16
    assert state.pc == 0x220

    with pytest.raises(StackOverflow):
        _step(state, executor)
    assert state.sp == 16

    ret = decode_opcode(0x00EE)
    for depth in range(16, 0, -1):
        executor.execute(ret)
        assert state.pc == 0x200 + 2 * depth
    assert state.sp == 0


def test_return_with_empty_stack_underflows() -> None:
    state, executor = _machine(0x00EE)
    with pytest.raises(StackUnderflow):
        _step(state, executor)
    assert state.sp == 0


@pytest.mark.parametrize(
    "word, vx, vy, skipped",
    [
        (0x3142, 0x42, 0x00, True),
        (0x3142, 0x41, 0x00, False),
        (0x4142, 0x41, 0x00, True),
        (0x4142, 0x42, 0x00, False),
        (0x5120, 0x07, 0x07, True),
        (0x5120, 0x07, 0x08, False),
        (0x9120, 0x07, 0x08, True),
        (0x9120, 0x07, 0x07, False),
    ],
)
def test_conditional_skips(word: int, vx: int, vy: int, skipped: bool) -> None:
    state, executor = _machine(word)
    state.registers[1] = vx
    state.registers[2] = vy

    _step(state, executor)

    assert state.pc == (0x204 if skipped else 0x202)


def test_indexed_jump_wraps_into_address_space() -> None:
    state, executor = _machine(0xBFFF)
    state.registers[0] = 0xFF

    _step(state, executor)

    assert state.pc == 0x0FE


# ---------------------------------------------------------------------- #
# Data and arithmetic
# ---------------------------------------------------------------------- #
def test_load_immediate_and_add_immediate_wraps_without_flag() -> None:
    state, executor = _machine(0x61F0, 0x7120)
    state.registers[VF] = 0x55

    _step(state, executor, 2)

    assert state.registers[1] == 0x10
    assert state.registers[VF] == 0x55


def test_register_transfer_and_bitwise_ops() -> None:
    state, executor = _machine(0x8120, 0x8131, 0x8142, 0x8153)
    state.registers[2] = 0b1100_0000
    state.registers[3] = 0b0000_0011
    state.registers[4] = 0b1000_0001
    state.registers[5] = 0b1111_1111
    state.registers[VF] = 0x77

    _step(state, executor)
    assert state.registers[1] == 0b1100_0000
    _step(state, executor)
    assert state.registers[1] == 0b1100_0011
    _step(state, executor)
    assert state.registers[1] == 0b1000_0001
    _step(state, executor)
    assert state.registers[1] == 0b0111_1110
    assert state.registers[VF] == 0x77


@pytest.mark.parametrize(
    "a, b, result, flag",
    [
        (0xFF, 0x01, 0x00, 1),
        (0x01, 0x01, 0x02, 0),
        (0x80, 0x80, 0x00, 1),
        (0xFE, 0x01, 0xFF, 0),
    ],
)
def test_add_registers_sets_carry(a: int, b: int, result: int, flag: int) -> None:
    state, executor = _machine(0x8124)
    state.registers[1] = a
    state.registers[2] = b

    _step(state, executor)

    assert state.registers[1] == result
    assert state.registers[VF] == flag


@pytest.mark.parametrize(
    "a, b, result, flag",
    [
        (0x01, 0x02, 0xFF, 0),
        (0x05, 0x03, 0x02, 1),
        (0x07, 0x07, 0x00, 0),
    ],
)
def test_subtract_flag_is_one_only_when_minuend_greater(
    a: int, b: int, result: int, flag: int
) -> None:
    state, executor = _machine(0x8125)
    state.registers[1] = a
    state.registers[2] = b

    _step(state, executor)

    assert state.registers[1] == result
    assert state.registers[VF] == flag


def test_reverse_subtract() -> None:
    state, executor = _machine(0x8127, 0x8347)
    state.registers[1] = 0x02
    state.registers[2] = 0x01
    state.registers[3] = 0x01
    state.registers[4] = 0x05

    _step(state, executor)
    assert state.registers[1] == 0xFF
    assert state.registers[VF] == 0

    _step(state, executor)
    assert state.registers[3] == 0x04
    assert state.registers[VF] == 1


def test_shift_right_captures_lsb_and_ignores_y() -> None:
    state, executor = _machine(0x8126)
    state.registers[1] = 0b0000_0101
    state.registers[2] = 0xF0

    _step(state, executor)

    assert state.registers[1] == 0b0000_0010
    assert state.registers[2] == 0xF0
    assert state.registers[VF] == 1


def test_shift_left_captures_msb_and_ignores_y() -> None:
    state, executor = _machine(0x812E, 0x812E)
    state.registers[1] = 0b1100_0001
    state.registers[2] = 0x01

    _step(state, executor)
    assert state.registers[1] == 0b1000_0010
    assert state.registers[VF] == 1

    _step(state, executor)
    assert state.registers[1] == 0b0000_0100
    assert state.registers[VF] == 1

    state.registers[1] = 0x01
    state.pc = 0x200
    _step(state, executor)
    assert state.registers[VF] == 0


def test_add_into_vf_keeps_the_carry() -> None:
    state, executor = _machine(0x8F14)
    state.registers[VF] = 0x10
    state.registers[1] = 0x02

    _step(state, executor)

    # Sum 0x12 is overwritten by the carry flag.
    assert state.registers[VF] == 0


@pytest.mark.parametrize(
    "word, vf, v1, expected",
    [
        # Flag 1 is written, then VF - V1 = 1 - 2.
        (0x8F15, 0x05, 0x02, 0xFF),
        # Flag 1 is written, then V1 - VF = 9 - 1.
        (0x8F17, 0x05, 0x09, 0x08),
        # Flag 1 (lsb of 7) is written, then shifted out.
        (0x8F06, 0x07, 0x00, 0x00),
        # Flag 1 (msb of 0x81) is written, then shifted left.
        (0x8F0E, 0x81, 0x00, 0x02),
    ],
)
def test_result_wins_over_flag_when_vf_is_the_target(
    word: int, vf: int, v1: int, expected: int
) -> None:
    state, executor = _machine(word)
    state.registers[VF] = vf
    state.registers[1] = v1

    _step(state, executor)

    assert state.registers[VF] == expected


def test_load_index_and_add_to_index_wraps() -> None:
    state, executor = _machine(0xAFFF, 0xF01E)
    state.registers[0] = 0x02
    state.registers[VF] = 0x33

    _step(state, executor)
    assert state.index == 0xFFF
    _step(state, executor)
    assert state.index == 0x001
    assert state.registers[VF] == 0x33


def test_random_uses_injected_source_and_mask() -> None:
    state, executor = _machine(0xC10F, 0xC200, seed=1234)
    expected = random.Random(1234).randrange(256) & 0x0F

    _step(state, executor, 2)

    assert state.registers[1] == expected
    assert state.registers[2] == 0


# ---------------------------------------------------------------------- #
# Memory and sprites
# ---------------------------------------------------------------------- #
def test_font_sprite_address_is_digit_times_five() -> None:
    state, executor = _machine(0xF129)
    state.registers[1] = 0xA

    _step(state, executor)

    assert state.index == 50
    assert state.memory[state.index] == 0xF0


def test_bcd_of_156() -> None:
    state, executor = _machine(0xF133)
    state.registers[1] = 156
    state.index = 0x300

    _step(state, executor)

    assert list(state.memory[0x300:0x303]) == [1, 5, 6]
    assert state.index == 0x300


def test_bcd_wraps_at_end_of_memory() -> None:
    state, executor = _machine(0xF133)
    state.registers[1] = 255
    state.index = 0xFFF

    _step(state, executor)

    assert state.memory[0xFFF] == 2
    assert state.memory[0x000] == 5
    assert state.memory[0x001] == 5


def test_block_store_and_load_leave_index_unchanged() -> None:
    state, executor = _machine(0xF255, 0xF265)
    state.registers[0:4] = bytes([0x11, 0x22, 0x33, 0x44])
    state.index = 0x400

    _step(state, executor)
    assert list(state.memory[0x400:0x404]) == [0x11, 0x22, 0x33, 0x00]
    assert state.index == 0x400

    state.registers[0:4] = bytes(4)
    _step(state, executor)
    assert list(state.registers[0:4]) == [0x11, 0x22, 0x33, 0x00]
    assert state.index == 0x400


def test_draw_sets_pixels_and_reports_no_collision() -> None:
    state, executor = _machine(0xD015)
    state.registers[0] = 2
    state.registers[1] = 3
    state.index = 0  # glyph "0": F0 90 90 90 F0

    _step(state, executor)

    assert state.registers[VF] == 0
    assert state.dirty
    assert list(state.framebuffer[3, 2:6]) == [1, 1, 1, 1]
    assert list(state.framebuffer[4, 2:6]) == [1, 0, 0, 1]
    assert int(state.framebuffer.sum()) == 14


def test_drawing_twice_erases_and_reports_collision() -> None:
    state, executor = _machine(0xD015, 0xD015)
    state.registers[0] = 10
    state.registers[1] = 10
    state.index = 5  # glyph "1"

    _step(state, executor)
    assert state.registers[VF] == 0
    _step(state, executor)

    assert state.registers[VF] == 1
    assert not state.framebuffer.any()


def test_draw_wraps_at_screen_edges() -> None:
    state, executor = _machine(0xD012)
    state.registers[0] = 63
    state.registers[1] = 31
    state.index = 0x300
    state.memory[0x300:0x302] = b"\xFF\xFF"

    _step(state, executor)

    lit_rows = {int(y) for y in state.framebuffer.nonzero()[0]}
    lit_cols = {int(x) for x in state.framebuffer.nonzero()[1]}
    assert lit_rows == {31, 0}
    assert lit_cols == {63, 0, 1, 2, 3, 4, 5, 6}
    assert int(state.framebuffer.sum()) == 16


def test_draw_reads_sprite_rows_with_wrapped_addresses() -> None:
    state, executor = _machine(0xD012)
    state.index = 0xFFF
    state.memory[0xFFF] = 0x80
    state.memory[0x000] = 0xF0  # first font byte

    _step(state, executor)

    assert state.framebuffer[0, 0] == 1
    assert list(state.framebuffer[1, 0:5]) == [1, 1, 1, 1, 0]


def test_draw_clears_flag_before_reading_vf_coordinate() -> None:
    state, executor = _machine(0xDF01)
    state.registers[VF] = 5
    state.registers[0] = 7
    state.index = 0x300
    state.memory[0x300] = 0x80

    _step(state, executor)

    assert state.framebuffer[7, 0] == 1
    assert state.framebuffer[7, 5] == 0
    assert state.registers[VF] == 0


def test_draw_at_vf_coordinate_follows_collision_flag() -> None:
    state, executor = _machine(0xDF01)
    state.index = 0x300
    state.memory[0x300] = 0xC0
    state.framebuffer[0, 0] = 1

    _step(state, executor)

    # First pixel collides at x=0, so the second lands at VF(1) + 1.
    assert state.registers[VF] == 1
    assert state.framebuffer[0, 0] == 0
    assert state.framebuffer[0, 1] == 0
    assert state.framebuffer[0, 2] == 1


# ---------------------------------------------------------------------- #
# Timers and keys
# ---------------------------------------------------------------------- #
def test_timer_transfers() -> None:
    state, executor = _machine(0xF115, 0xF218, 0xF307)
    state.registers[1] = 30
    state.registers[2] = 40

    _step(state, executor, 2)
    assert state.delay_timer == 30
    assert state.sound_timer == 40

    state.delay_timer = 12
    _step(state, executor)
    assert state.registers[3] == 12


@pytest.mark.parametrize(
    "word, pressed, skipped",
    [
        (0xE19E, (0x7,), True),
        (0xE19E, (), False),
        (0xE1A1, (0x7,), False),
        (0xE1A1, (), True),
    ],
)
def test_key_skips(word: int, pressed: Tuple[int, ...], skipped: bool) -> None:
    state, executor = _machine(word)
    state.registers[1] = 0x7
    state.set_keypad(_keypad(*pressed))

    _step(state, executor)

    assert state.pc == (0x204 if skipped else 0x202)


@pytest.mark.parametrize("value", [0x10, 0x1F, 0x80, 0xFF])
def test_key_skips_mask_out_of_range_register_values(value: int) -> None:
    state, executor = _machine(0xE19E, 0xE1A1)
    state.registers[1] = value
    state.set_keypad(_keypad(value & 0x0F))

    _step(state, executor)
    assert state.pc == 0x204
    state.pc = 0x202
    _step(state, executor)
    assert state.pc == 0x204


def test_wait_for_key_suspends_until_a_key_is_pressed() -> None:
    state, executor = _machine(0xF30A)

    _step(state, executor)
    assert state.pc == 0x200
    assert state.waiting_for_key == 3

    _step(state, executor)
    assert state.pc == 0x200

    state.set_keypad(_keypad(0x9, 0x5))
    _step(state, executor)

    assert state.registers[3] == 0x5
    assert state.pc == 0x202
    assert state.waiting_for_key is None
