"""Collaborator interfaces used by the timing loop.

The loop owns one renderer, one input source and one audio device. They
receive value snapshots only and never hold a reference into the
machine state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple

import numpy as np

from .constants import KEY_COUNT


@dataclass(frozen=True)
class PollResult:
    """Keypad snapshot plus a termination request from one poll."""

    keypad: Tuple[bool, ...] = (False,) * KEY_COUNT
    quit_requested: bool = False

    def __post_init__(self) -> None:
        if len(self.keypad) != KEY_COUNT:
            raise ValueError(
                f"keypad needs {KEY_COUNT} entries, got {len(self.keypad)}"
            )


class Renderer(Protocol):
    """Paints a (32, 64) array of 0/1 pixel values."""

    def render(self, framebuffer: np.ndarray) -> None: ...


class InputSource(Protocol):
    """Non-blocking source of keypad state."""

    def poll(self) -> PollResult: ...


class AudioDevice(Protocol):
    """Continuous tone control; both calls are idempotent."""

    def start_tone(self) -> None: ...

    def stop_tone(self) -> None: ...


__all__ = ["PollResult", "Renderer", "InputSource", "AudioDevice"]
