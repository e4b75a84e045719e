"""Trace event fan-out for the CHIP-8 emulator.

The emulator reports calls, returns, frame renders, key waits and stack
faults to a single :data:`trace_dispatcher`. Observers such as the
Perfetto backend subscribe to it; with no observers registered the
emulator skips building events altogether.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

# Track names shared by the emulator and the trace backends.
CPU_TRACK = "CPU"
DISPLAY_TRACK = "Display"
INPUT_TRACK = "Input"
TRACKS = (CPU_TRACK, DISPLAY_TRACK, INPUT_TRACK)


class TraceEventType(Enum):
    START = "start"
    STOP = "stop"
    INSTANT = "instant"
    COUNTER = "counter"
    FUNCTION_BEGIN = "function_begin"
    FUNCTION_END = "function_end"


@dataclass
class TraceEvent:
    """One event; ``thread`` names the track it belongs on."""

    type: TraceEventType
    thread: Optional[str] = None
    name: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


class TraceObserver(Protocol):
    def handle_event(self, event: TraceEvent) -> None: ...


class TraceDispatcher:
    """Forwards events to every registered observer, in registration order."""

    def __init__(self) -> None:
        self._observers: List[TraceObserver] = []

    def register(self, observer: TraceObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def unregister(self, observer: TraceObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def observers(self) -> Iterable[TraceObserver]:
        return tuple(self._observers)

    def has_observers(self) -> bool:
        return bool(self._observers)

    # ------------------------------------------------------------------ #
    # Session control
    # ------------------------------------------------------------------ #
    def start_trace(self, output_path: Path | str) -> None:
        self._emit(TraceEventType.START, payload={"output_path": Path(output_path)})

    def stop_trace(self) -> None:
        self._emit(TraceEventType.STOP)

    # ------------------------------------------------------------------ #
    # Generic events
    # ------------------------------------------------------------------ #
    def record_instant(
        self, thread: str, name: str, payload: Optional[Dict[str, Any]] = None
    ) -> None:
        self._emit(TraceEventType.INSTANT, thread, name, payload)

    def record_counter(
        self, name: str, value: float, *, thread: str = CPU_TRACK
    ) -> None:
        self._emit(TraceEventType.COUNTER, thread, name, {"value": value})

    def begin_function(
        self, thread: str, pc: int, caller_pc: int, name: Optional[str] = None
    ) -> None:
        """Open a subroutine slice; unnamed targets become ``sub_NNN``."""

        self._emit(
            TraceEventType.FUNCTION_BEGIN,
            thread,
            name or f"sub_{pc:03X}",
            {"pc": pc, "caller_pc": caller_pc},
        )

    def end_function(self, thread: str, pc: int) -> None:
        self._emit(TraceEventType.FUNCTION_END, thread, payload={"pc": pc})

    # ------------------------------------------------------------------ #
    # Emulator events
    # ------------------------------------------------------------------ #
    def record_render(self, frame: int) -> None:
        self.record_instant(DISPLAY_TRACK, "render", {"frame": frame})

    def record_key_wait(self, pc: int, register: int) -> None:
        self.record_instant(INPUT_TRACK, "key_wait", {"pc": pc, "register": register})

    def record_stack_fault(self, kind: str, pc: int, sp: int) -> None:
        self.record_instant(CPU_TRACK, "stack_fault", {"kind": kind, "pc": pc, "sp": sp})

    def _emit(
        self,
        kind: TraceEventType,
        thread: Optional[str] = None,
        name: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = TraceEvent(kind, thread=thread, name=name, payload=payload or {})
        for observer in tuple(self._observers):
            observer.handle_event(event)


# Global dispatcher used by the emulator.
trace_dispatcher = TraceDispatcher()

__all__ = [
    "CPU_TRACK",
    "DISPLAY_TRACK",
    "INPUT_TRACK",
    "TRACKS",
    "TraceDispatcher",
    "TraceObserver",
    "TraceEvent",
    "TraceEventType",
    "trace_dispatcher",
]
