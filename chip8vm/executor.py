"""Operation handlers for the CHIP-8 instruction set.

Each handler mutates :class:`~chip8vm.state.MachineState` for one decoded
instruction. The program counter has already been advanced past the
instruction when a handler runs.

Two historically ambiguous families use one fixed interpretation:

* ``8XY6`` / ``8XYE`` shift ``Vx`` in place and ignore the ``Y`` field.
* ``FX55`` / ``FX65`` leave the index register unchanged afterwards.

``8XY4`` writes the sum first and ``VF`` last. ``8XY5``, ``8XY6``,
``8XY7`` and ``8XYE`` write ``VF`` first and then compute the result from
the registers as they stand, so with ``X`` = F the result wins. ``DXYN``
clears ``VF`` before reading its coordinate registers.
"""

from __future__ import annotations

import random
from typing import Callable, Dict, Optional

from .constants import (
    DISPLAY_HEIGHT,
    DISPLAY_WIDTH,
    FLAG_REGISTER,
    GLYPH_HEIGHT,
    FONT_BASE,
)
from .decoding import DecodedInstr, Op
from .state import MachineState

Handler = Callable[[DecodedInstr], None]


class Executor:
    """Dispatches decoded instructions to their handlers."""

    def __init__(
        self, state: MachineState, rng: Optional[random.Random] = None
    ) -> None:
        self.state = state
        self.rng = rng if rng is not None else random.Random()
        self._handlers: Dict[Op, Handler] = {
            Op.NOP: self._op_nop,
            Op.CLS: self._op_cls,
            Op.RET: self._op_ret,
            Op.JP: self._op_jp,
            Op.CALL: self._op_call,
            Op.SE_IMM: self._op_se_imm,
            Op.SNE_IMM: self._op_sne_imm,
            Op.SE_REG: self._op_se_reg,
            Op.LD_IMM: self._op_ld_imm,
            Op.ADD_IMM: self._op_add_imm,
            Op.LD_REG: self._op_ld_reg,
            Op.OR: self._op_or,
            Op.AND: self._op_and,
            Op.XOR: self._op_xor,
            Op.ADD_REG: self._op_add_reg,
            Op.SUB: self._op_sub,
            Op.SHR: self._op_shr,
            Op.SUBN: self._op_subn,
            Op.SHL: self._op_shl,
            Op.SNE_REG: self._op_sne_reg,
            Op.LD_I: self._op_ld_i,
            Op.JP_V0: self._op_jp_v0,
            Op.RND: self._op_rnd,
            Op.DRW: self._op_drw,
            Op.SKP: self._op_skp,
            Op.SKNP: self._op_sknp,
            Op.LD_VX_DT: self._op_ld_vx_dt,
            Op.LD_VX_K: self._op_ld_vx_k,
            Op.LD_DT_VX: self._op_ld_dt_vx,
            Op.LD_ST_VX: self._op_ld_st_vx,
            Op.ADD_I: self._op_add_i,
            Op.LD_F: self._op_ld_f,
            Op.LD_B: self._op_ld_b,
            Op.LD_MEM_VX: self._op_ld_mem_vx,
            Op.LD_VX_MEM: self._op_ld_vx_mem,
        }

    def execute(self, instr: DecodedInstr) -> None:
        self._handlers[instr.op](instr)

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.state.pc = self.state.pc + 2

    def _set_flag(self, value: int) -> None:
        self.state.registers[FLAG_REGISTER] = value

    # ------------------------------------------------------------------ #
    # Control flow
    # ------------------------------------------------------------------ #
    def _op_nop(self, instr: DecodedInstr) -> None:
        pass

    def _op_cls(self, instr: DecodedInstr) -> None:
        self.state.clear_framebuffer()

    def _op_ret(self, instr: DecodedInstr) -> None:
        self.state.pc = self.state.pop()

    def _op_jp(self, instr: DecodedInstr) -> None:
        self.state.pc = instr.nnn

    def _op_call(self, instr: DecodedInstr) -> None:
        self.state.push(self.state.pc)
        self.state.pc = instr.nnn

    def _op_se_imm(self, instr: DecodedInstr) -> None:
        self._skip_if(self.state.registers[instr.x] == instr.kk)

    def _op_sne_imm(self, instr: DecodedInstr) -> None:
        self._skip_if(self.state.registers[instr.x] != instr.kk)

    def _op_se_reg(self, instr: DecodedInstr) -> None:
        regs = self.state.registers
        self._skip_if(regs[instr.x] == regs[instr.y])

    def _op_sne_reg(self, instr: DecodedInstr) -> None:
        regs = self.state.registers
        self._skip_if(regs[instr.x] != regs[instr.y])

    def _op_jp_v0(self, instr: DecodedInstr) -> None:
        self.state.pc = instr.nnn + self.state.registers[0]

    # ------------------------------------------------------------------ #
    # Data and arithmetic
    # ------------------------------------------------------------------ #
    def _op_ld_imm(self, instr: DecodedInstr) -> None:
        self.state.registers[instr.x] = instr.kk

    def _op_add_imm(self, instr: DecodedInstr) -> None:
        regs = self.state.registers
        regs[instr.x] = (regs[instr.x] + instr.kk) & 0xFF

    def _op_ld_reg(self, instr: DecodedInstr) -> None:
        regs = self.state.registers
        regs[instr.x] = regs[instr.y]

    def _op_or(self, instr: DecodedInstr) -> None:
        regs = self.state.registers
        regs[instr.x] |= regs[instr.y]

    def _op_and(self, instr: DecodedInstr) -> None:
        regs = self.state.registers
        regs[instr.x] &= regs[instr.y]

    def _op_xor(self, instr: DecodedInstr) -> None:
        regs = self.state.registers
        regs[instr.x] ^= regs[instr.y]

    def _op_add_reg(self, instr: DecodedInstr) -> None:
        regs = self.state.registers
        total = regs[instr.x] + regs[instr.y]
        regs[instr.x] = total & 0xFF
        self._set_flag(1 if total > 0xFF else 0)

    # The flag is written before the result, which re-reads the registers.
    def _op_sub(self, instr: DecodedInstr) -> None:
        regs = self.state.registers
        # 1 only when strictly greater; equal operands give 0.
        self._set_flag(1 if regs[instr.x] > regs[instr.y] else 0)
        regs[instr.x] = (regs[instr.x] - regs[instr.y]) & 0xFF

    def _op_subn(self, instr: DecodedInstr) -> None:
        regs = self.state.registers
        self._set_flag(1 if regs[instr.y] > regs[instr.x] else 0)
        regs[instr.x] = (regs[instr.y] - regs[instr.x]) & 0xFF

    def _op_shr(self, instr: DecodedInstr) -> None:
        regs = self.state.registers
        self._set_flag(regs[instr.x] & 0x01)
        regs[instr.x] = regs[instr.x] >> 1

    def _op_shl(self, instr: DecodedInstr) -> None:
        regs = self.state.registers
        self._set_flag((regs[instr.x] >> 7) & 0x01)
        regs[instr.x] = (regs[instr.x] << 1) & 0xFF

    def _op_ld_i(self, instr: DecodedInstr) -> None:
        self.state.index = instr.nnn

    def _op_add_i(self, instr: DecodedInstr) -> None:
        self.state.index = self.state.index + self.state.registers[instr.x]

    def _op_rnd(self, instr: DecodedInstr) -> None:
        self.state.registers[instr.x] = self.rng.randrange(256) & instr.kk

    # ------------------------------------------------------------------ #
    # Memory and sprites
    # ------------------------------------------------------------------ #
    def _op_ld_f(self, instr: DecodedInstr) -> None:
        self.state.index = FONT_BASE + self.state.registers[instr.x] * GLYPH_HEIGHT

    def _op_ld_b(self, instr: DecodedInstr) -> None:
        state = self.state
        value = state.registers[instr.x]
        base = state.index
        state.write_byte(base, value // 100)
        state.write_byte(base + 1, (value // 10) % 10)
        state.write_byte(base + 2, value % 10)

    def _op_ld_mem_vx(self, instr: DecodedInstr) -> None:
        state = self.state
        base = state.index
        for i in range(instr.x + 1):
            state.write_byte(base + i, state.registers[i])

    def _op_ld_vx_mem(self, instr: DecodedInstr) -> None:
        state = self.state
        base = state.index
        for i in range(instr.x + 1):
            state.registers[i] = state.read_byte(base + i)

    def _op_drw(self, instr: DecodedInstr) -> None:
        state = self.state
        fb = state.framebuffer
        regs = state.registers
        # VF is cleared first and accumulates collisions as pixels are drawn;
        # Vy is read per row and Vx per pixel, so a VF coordinate sees the flag.
        self._set_flag(0)
        for row in range(instr.n):
            sprite = state.read_byte(state.index + row)
            py = (regs[instr.y] + row) % DISPLAY_HEIGHT
            for bit in range(8):
                if not (sprite >> (7 - bit)) & 0x01:
                    continue
                px = (regs[instr.x] + bit) % DISPLAY_WIDTH
                regs[FLAG_REGISTER] |= int(fb[py, px])
                fb[py, px] ^= 1
        state.dirty = True

    # ------------------------------------------------------------------ #
    # Timers and keys
    # ------------------------------------------------------------------ #
    def _op_ld_vx_dt(self, instr: DecodedInstr) -> None:
        self.state.registers[instr.x] = self.state.delay_timer

    def _op_ld_dt_vx(self, instr: DecodedInstr) -> None:
        self.state.delay_timer = self.state.registers[instr.x]

    def _op_ld_st_vx(self, instr: DecodedInstr) -> None:
        self.state.sound_timer = self.state.registers[instr.x]

    def _op_skp(self, instr: DecodedInstr) -> None:
        key = self.state.registers[instr.x] & 0x0F
        self._skip_if(self.state.is_key_pressed(key))

    def _op_sknp(self, instr: DecodedInstr) -> None:
        key = self.state.registers[instr.x] & 0x0F
        self._skip_if(not self.state.is_key_pressed(key))

    def _op_ld_vx_k(self, instr: DecodedInstr) -> None:
        state = self.state
        key = state.first_pressed_key()
        if key is None:
            # Suspend: re-decode this instruction on the next tick.
            state.waiting_for_key = instr.x
            state.pc = state.pc - 2
            return
        state.registers[instr.x] = key
        state.waiting_for_key = None


__all__ = ["Executor", "Handler"]
