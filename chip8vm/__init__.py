"""CHIP-8 virtual machine package."""

from .config import EmulatorConfig
from .decoding import DecodedInstr, Op, decode_opcode
from .emulator import Chip8Emulator
from .executor import Executor
from .interfaces import AudioDevice, InputSource, PollResult, Renderer
from .state import (
    Chip8Error,
    InvalidKeyIndex,
    MachineState,
    StackFault,
    StackOverflow,
    StackUnderflow,
)
from .state_model import (
    FieldDiff,
    MachineSnapshot,
    StateDiff,
    capture_state,
    diff_states,
)

__all__ = [
    "Chip8Emulator",
    "EmulatorConfig",
    "Executor",
    "MachineState",
    "DecodedInstr",
    "Op",
    "decode_opcode",
    "PollResult",
    "Renderer",
    "InputSource",
    "AudioDevice",
    "Chip8Error",
    "StackFault",
    "StackOverflow",
    "StackUnderflow",
    "InvalidKeyIndex",
    "MachineSnapshot",
    "FieldDiff",
    "StateDiff",
    "capture_state",
    "diff_states",
]
