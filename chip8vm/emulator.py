"""CHIP-8 emulator: timing loop around the machine state and executor."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional

from .config import EmulatorConfig
from .decoding import DecodedInstr, Op, decode_opcode
from .executor import Executor
from .interfaces import AudioDevice, InputSource, Renderer
from .state import MachineState, StackFault
from .tracing import CPU_TRACK, trace_dispatcher

logger = logging.getLogger(__name__)


class Chip8Emulator:
    """Owns the machine state and drives it one tick at a time.

    A tick polls input, renders a pending frame, counts the timers down,
    updates the tone and executes exactly one instruction. ``run`` repeats
    ticks until the input source asks to quit, a stack fault halts the
    machine under the ``"halt"`` policy, or the tick limit is reached.
    """

    def __init__(
        self,
        renderer: Renderer,
        input_source: InputSource,
        audio: AudioDevice,
        *,
        config: Optional[EmulatorConfig] = None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config if config is not None else EmulatorConfig()
        self.renderer = renderer
        self.input_source = input_source
        self.audio = audio
        self.state = MachineState()
        self.executor = Executor(
            self.state, rng if rng is not None else random.Random(self.config.seed)
        )
        self._sleep = sleep

        self.tick_count = 0
        self.instruction_count = 0
        self.frames_rendered = 0
        self.fault: Optional[StackFault] = None
        self.quit_requested = False
        self.last_instruction: Optional[DecodedInstr] = None

    # ------------------------------------------------------------------ #
    # Lifecycle helpers
    # ------------------------------------------------------------------ #
    @property
    def halted(self) -> bool:
        return self.fault is not None

    def load_rom(self, data: bytes) -> int:
        return self.state.load_rom(data)

    def reset(self) -> None:
        """Return to power-on state; the ROM must be loaded again."""

        self.state.reset()
        self.tick_count = 0
        self.instruction_count = 0
        self.frames_rendered = 0
        self.fault = None
        self.quit_requested = False
        self.last_instruction = None

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def step(self) -> DecodedInstr:
        """Fetch, decode and execute one instruction.

        Raises :class:`~chip8vm.state.StackFault` when the program
        overflows or underflows the call stack.
        """

        state = self.state
        address = state.pc
        was_waiting = state.waiting_for_key is not None
        instr = decode_opcode(state.fetch_word())
        self.last_instruction = instr
        self.executor.execute(instr)
        self.instruction_count += 1

        if state.waiting_for_key is not None and not was_waiting:
            logger.debug(
                "Waiting for key into V%X at 0x%03X", state.waiting_for_key, address
            )
        if trace_dispatcher.has_observers():
            self._trace_instruction(instr, address, was_waiting)
        return instr

    def _trace_instruction(
        self, instr: DecodedInstr, address: int, was_waiting: bool
    ) -> None:
        trace_dispatcher.record_counter("instructions", self.instruction_count)
        if instr.op is Op.CALL:
            trace_dispatcher.begin_function(CPU_TRACK, instr.nnn, address)
        elif instr.op is Op.RET:
            trace_dispatcher.end_function(CPU_TRACK, address)
        elif instr.op is Op.LD_VX_K and not was_waiting:
            trace_dispatcher.record_key_wait(address, instr.x)

    def tick(self) -> bool:
        """Run one loop iteration; return False when the loop should stop."""

        state = self.state

        poll = self.input_source.poll()
        state.set_keypad(poll.keypad)
        if poll.quit_requested:
            logger.info("Quit requested after %d ticks", self.tick_count)
            self.quit_requested = True
            self.audio.stop_tone()
            return False

        self._render_pending()

        state.tick_timers()

        if state.sound_timer > 0:
            self.audio.start_tone()
        else:
            self.audio.stop_tone()

        self.tick_count += 1
        try:
            self.step()
        except StackFault as exc:
            if not self._handle_stack_fault(exc):
                return False

        if self.config.tick_interval > 0:
            self._sleep(self.config.tick_interval)
        return True

    def _render_pending(self) -> None:
        state = self.state
        if not state.dirty:
            return
        self.renderer.render(state.framebuffer_snapshot())
        state.dirty = False
        self.frames_rendered += 1
        if trace_dispatcher.has_observers():
            trace_dispatcher.record_render(self.frames_rendered)

    def _handle_stack_fault(self, exc: StackFault) -> bool:
        # exc.pc was captured after the fetch advanced past the instruction.
        address = ((exc.pc if exc.pc is not None else self.state.pc) - 2) & 0xFFF
        if trace_dispatcher.has_observers():
            trace_dispatcher.record_stack_fault(
                type(exc).__name__, address, self.state.sp
            )
        if self.config.stack_fault_policy == "halt":
            logger.error("%s at 0x%03X: %s; halting", type(exc).__name__, address, exc)
            self.fault = exc
            return False
        logger.warning("%s at 0x%03X ignored: %s", type(exc).__name__, address, exc)
        return True

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Tick until stopped; return the number of ticks completed.

        A frame drawn by the last executed instruction is rendered before
        returning. A halted machine runs no ticks until :meth:`reset`.
        """

        if self.halted:
            logger.warning("Machine halted by %s; reset before running", self.fault)
            return 0
        logger.info(
            "Running (tick interval %.4fs, limit %s)",
            self.config.tick_interval,
            max_ticks if max_ticks is not None else "none",
        )
        completed = 0
        try:
            while max_ticks is None or completed < max_ticks:
                if not self.tick():
                    break
                completed += 1
        finally:
            self.audio.stop_tone()
            self._render_pending()
        logger.info(
            "Stopped after %d ticks: %d instructions, %d frames",
            completed,
            self.instruction_count,
            self.frames_rendered,
        )
        return completed


__all__ = ["Chip8Emulator"]
