"""Instruction decoding for the CHIP-8 virtual machine."""

from .bind import DecodedInstr, Op
from .decode_map import decode_opcode

__all__ = ["DecodedInstr", "Op", "decode_opcode"]
