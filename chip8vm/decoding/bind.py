from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Op(str, Enum):
    """Operations of the CHIP-8 instruction set, named by mnemonic form."""

    NOP = "NOP"
    CLS = "CLS"
    RET = "RET"
    JP = "JP nnn"
    CALL = "CALL nnn"
    SE_IMM = "SE Vx, kk"
    SNE_IMM = "SNE Vx, kk"
    SE_REG = "SE Vx, Vy"
    LD_IMM = "LD Vx, kk"
    ADD_IMM = "ADD Vx, kk"
    LD_REG = "LD Vx, Vy"
    OR = "OR Vx, Vy"
    AND = "AND Vx, Vy"
    XOR = "XOR Vx, Vy"
    ADD_REG = "ADD Vx, Vy"
    SUB = "SUB Vx, Vy"
    SHR = "SHR Vx"
    SUBN = "SUBN Vx, Vy"
    SHL = "SHL Vx"
    SNE_REG = "SNE Vx, Vy"
    LD_I = "LD I, nnn"
    JP_V0 = "JP V0, nnn"
    RND = "RND Vx, kk"
    DRW = "DRW Vx, Vy, n"
    SKP = "SKP Vx"
    SKNP = "SKNP Vx"
    LD_VX_DT = "LD Vx, DT"
    LD_VX_K = "LD Vx, K"
    LD_DT_VX = "LD DT, Vx"
    LD_ST_VX = "LD ST, Vx"
    ADD_I = "ADD I, Vx"
    LD_F = "LD F, Vx"
    LD_B = "LD B, Vx"
    LD_MEM_VX = "LD [I], Vx"
    LD_VX_MEM = "LD Vx, [I]"


@dataclass(frozen=True, slots=True)
class DecodedInstr:
    """One instruction word split into its operation and operand fields.

    Every field is populated from the word regardless of whether the
    operation uses it; handlers read only the fields they need.
    """

    word: int
    op: Op
    nnn: int
    x: int
    y: int
    kk: int
    n: int

    def __post_init__(self) -> None:
        if not 0 <= self.word <= 0xFFFF:
            raise ValueError(f"instruction word out of range: {self.word:#x}")

    @property
    def mnemonic(self) -> str:
        return self.op.value

    def __str__(self) -> str:
        return f"{self.word:04X} {self.op.name}"
