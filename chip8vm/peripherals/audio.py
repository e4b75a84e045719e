"""Audio device that records tone transitions instead of playing them."""

from __future__ import annotations

import logging
from typing import List, Tuple

logger = logging.getLogger(__name__)


class ToneRecorder:
    """Idempotent tone switch that logs and records on/off transitions.

    ``transitions`` holds ``(call_index, playing)`` pairs, where
    ``call_index`` counts every start/stop call made so far. The loop makes
    one call per tick plus an extra ``stop_tone`` on quit and on exit, so
    the index tracks calls rather than ticks.
    """

    def __init__(self) -> None:
        self.playing = False
        self.transitions: List[Tuple[int, bool]] = []
        self._calls = 0

    def start_tone(self) -> None:
        self._set(True)

    def stop_tone(self) -> None:
        self._set(False)

    def _set(self, playing: bool) -> None:
        if playing != self.playing:
            self.playing = playing
            self.transitions.append((self._calls, playing))
            logger.debug("Tone %s at call %d", "on" if playing else "off", self._calls)
        self._calls += 1

    @property
    def tone_count(self) -> int:
        """Number of times the tone was switched on."""

        return sum(1 for _, playing in self.transitions if playing)
