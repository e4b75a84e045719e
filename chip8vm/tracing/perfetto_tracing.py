# chip8vm/tracing/perfetto_tracing.py
"""Perfetto trace backend.

Importing this module registers :data:`observer` with the global trace
dispatcher; events are dropped until a START event opens a trace file.
Subroutine calls become slices on the CPU track, renders and key waits
become instants and the instruction count is a counter track.
"""

import atexit
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from retrobus_perfetto import PerfettoTraceBuilder

from .dispatcher import CPU_TRACK, TRACKS, TraceEvent, TraceEventType, trace_dispatcher

logger = logging.getLogger(__name__)

DEFAULT_TRACE_PATH = "chip8.perfetto-trace"


class PerfettoTracer:
    """Collects slices, instants and counters into one trace file.

    Timestamps are wall-clock nanoseconds since :meth:`start`.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._builder: Optional[PerfettoTraceBuilder] = None
        self._path: Optional[str] = None
        self._origin = 0.0
        self._threads: Dict[str, int] = {}
        self._counters: Dict[str, int] = {}
        # Open slice names per track, innermost last.
        self._open: Dict[str, List[str]] = {}
        self._atexit_registered = False

    @property
    def enabled(self) -> bool:
        return self._builder is not None

    @property
    def path(self) -> Optional[str]:
        return self._path

    def _timestamp(self) -> int:
        return int((time.perf_counter() - self._origin) * 1e9)

    def _thread(self, name: str) -> int:
        if name not in self._threads:
            self._threads[name] = self._builder.add_thread(name)
            self._open[name] = []
        return self._threads[name]

    def _counter(self, name: str) -> int:
        if name not in self._counters:
            self._counters[name] = self._builder.add_counter_track(name, "count")
        return self._counters[name]

    def start(self, path: str = DEFAULT_TRACE_PATH) -> None:
        with self._lock:
            if self.enabled:
                logger.debug("Perfetto trace already recording to %s", self._path)
                return
            self._builder = PerfettoTraceBuilder("CHIP-8")
            self._path = path
            self._origin = time.perf_counter()
            self._threads.clear()
            self._counters.clear()
            self._open.clear()
            for track in TRACKS:
                self._thread(track)
            if not self._atexit_registered:
                atexit.register(self.safe_stop)
                self._atexit_registered = True
            logger.debug("Perfetto tracing started, writing %s", path)

    def stop(self) -> None:
        """Close any open slices and write the trace file."""
        with self._lock:
            if not self.enabled:
                return
            now = self._timestamp()
            for track, names in self._open.items():
                for _ in names:
                    self._builder.end_slice(self._threads[track], now)
                names.clear()
            path = self._path or DEFAULT_TRACE_PATH
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            self._builder.save(path)
            self._builder = None
            logger.info("Perfetto trace saved to %s", path)

    def safe_stop(self) -> None:
        try:
            self.stop()
        except Exception:  # pragma: no cover - interpreter shutdown
            logger.exception("Failed to save perfetto trace")

    def instant(self, track: str, name: str, args: Optional[Dict[str, Any]] = None) -> None:
        with self._lock:
            if not self.enabled:
                return
            event = self._builder.add_instant_event(
                self._thread(track), name, self._timestamp()
            )
            if args:
                event.add_annotations(args)

    def counter(self, name: str, value: float) -> None:
        with self._lock:
            if not self.enabled:
                return
            self._builder.update_counter(self._counter(name), value, self._timestamp())

    def begin_slice(self, track: str, name: str, args: Optional[Dict[str, Any]] = None) -> None:
        with self._lock:
            if not self.enabled:
                return
            uuid = self._thread(track)
            self._open[track].append(name)
            event = self._builder.begin_slice(uuid, name, self._timestamp())
            if args:
                event.add_annotations(args)

    def end_slice(self, track: str) -> None:
        with self._lock:
            if not self.enabled:
                return
            uuid = self._thread(track)
            # A RET with no traced CALL (tracing began inside a subroutine).
            if not self._open[track]:
                return
            self._open[track].pop()
            self._builder.end_slice(uuid, self._timestamp())


tracer = PerfettoTracer()


class _PerfettoObserver:
    """Routes dispatcher events onto :data:`tracer`."""

    def __init__(self, target: PerfettoTracer) -> None:
        self._tracer = target
        self._routes: Dict[TraceEventType, Callable[[TraceEvent], None]] = {
            TraceEventType.START: self._on_start,
            TraceEventType.STOP: lambda event: self._tracer.safe_stop(),
            TraceEventType.INSTANT: self._on_instant,
            TraceEventType.COUNTER: self._on_counter,
            TraceEventType.FUNCTION_BEGIN: self._on_function_begin,
            TraceEventType.FUNCTION_END: self._on_function_end,
        }

    def handle_event(self, event: TraceEvent) -> None:
        self._routes[event.type](event)

    def _on_start(self, event: TraceEvent) -> None:
        path = event.payload.get("output_path")
        self._tracer.start(str(path) if path else DEFAULT_TRACE_PATH)

    def _on_instant(self, event: TraceEvent) -> None:
        self._tracer.instant(event.thread or CPU_TRACK, event.name or "event", event.payload)

    def _on_counter(self, event: TraceEvent) -> None:
        value = event.payload.get("value")
        if value is not None:
            self._tracer.counter(event.name or "counter", value)

    def _on_function_begin(self, event: TraceEvent) -> None:
        self._tracer.begin_slice(event.thread or CPU_TRACK, event.name or "sub", event.payload)

    def _on_function_end(self, event: TraceEvent) -> None:
        self._tracer.end_slice(event.thread or CPU_TRACK)


observer = _PerfettoObserver(tracer)
trace_dispatcher.register(observer)


__all__ = ["PerfettoTracer", "tracer", "observer", "DEFAULT_TRACE_PATH"]
