"""Tracing utilities for the CHIP-8 emulator.

The Perfetto backend lives in :mod:`chip8vm.tracing.perfetto_tracing` and
is imported on demand because it needs the optional ``retrobus-perfetto``
package.
"""

from .dispatcher import (
    CPU_TRACK,
    DISPLAY_TRACK,
    INPUT_TRACK,
    TRACKS,
    TraceDispatcher,
    TraceEvent,
    TraceEventType,
    TraceObserver,
    trace_dispatcher,
)

__all__ = [
    "CPU_TRACK",
    "DISPLAY_TRACK",
    "INPUT_TRACK",
    "TRACKS",
    "TraceDispatcher",
    "TraceEvent",
    "TraceEventType",
    "TraceObserver",
    "trace_dispatcher",
]
