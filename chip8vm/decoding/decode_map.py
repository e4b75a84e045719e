from __future__ import annotations

import logging
from typing import Dict

from .bind import DecodedInstr, Op

logger = logging.getLogger(__name__)

# High nibble alone selects the operation.
_BY_HIGH_NIBBLE: Dict[int, Op] = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_IMM,
    0x4: Op.SNE_IMM,
    0x6: Op.LD_IMM,
    0x7: Op.ADD_IMM,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}

# 0x0NNN: only two fixed words are recognised.
_SYSTEM_WORDS: Dict[int, Op] = {
    0x00E0: Op.CLS,
    0x00EE: Op.RET,
}

# 0x5XY0 / 0x9XY0 require a zero low nibble.
_REG_COMPARE: Dict[int, Op] = {
    0x5: Op.SE_REG,
    0x9: Op.SNE_REG,
}

# 0x8XYN keyed by the low nibble.
_ALU: Dict[int, Op] = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

# 0xEXKK keyed by the low byte.
_KEY_OPS: Dict[int, Op] = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

# 0xFXKK keyed by the low byte.
_MISC: Dict[int, Op] = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I,
    0x29: Op.LD_F,
    0x33: Op.LD_B,
    0x55: Op.LD_MEM_VX,
    0x65: Op.LD_VX_MEM,
}


def _select_op(word: int) -> Op:
    high = word >> 12
    kk = word & 0xFF
    n = word & 0xF

    op = _BY_HIGH_NIBBLE.get(high)
    if op is not None:
        return op
    if high == 0x0:
        return _SYSTEM_WORDS.get(word, Op.NOP)
    if high in _REG_COMPARE:
        return _REG_COMPARE[high] if n == 0 else Op.NOP
    if high == 0x8:
        return _ALU.get(n, Op.NOP)
    if high == 0xE:
        return _KEY_OPS.get(kk, Op.NOP)
    return _MISC.get(kk, Op.NOP)


def decode_opcode(word: int) -> DecodedInstr:
    """Decode a 16-bit instruction word.

    Unrecognised encodings decode to ``Op.NOP`` rather than failing.
    """

    if not 0 <= word <= 0xFFFF:
        raise ValueError(f"instruction word out of range: {word:#x}")

    op = _select_op(word)
    if op is Op.NOP:
        logger.debug("Unrecognised instruction word %04X treated as NOP", word)
    return DecodedInstr(
        word=word,
        op=op,
        nnn=word & 0x0FFF,
        x=(word >> 8) & 0xF,
        y=(word >> 4) & 0xF,
        kk=word & 0xFF,
        n=word & 0xF,
    )
