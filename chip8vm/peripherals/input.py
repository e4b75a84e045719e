"""Deterministic keypad input driven by a tick schedule."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from ..interfaces import PollResult
from ..keyboard_map import DEFAULT_KEY_MAP, keypad_from_keys


@dataclass(frozen=True)
class KeyEvent:
    """From poll ``tick`` onward, exactly ``keys`` are held."""

    tick: int
    keys: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.tick < 0:
            raise ValueError(f"KeyEvent tick must be >= 0, got {self.tick}")


def parse_key_script(text: str) -> List[KeyEvent]:
    """Parse ``"10:W,20:,30:Q+W"`` into key events.

    Each comma-separated item is ``tick:keys`` where keys are physical key
    names joined with ``+``; an empty key list releases everything.
    """

    events: List[KeyEvent] = []
    for chunk in text.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        tick_text, sep, keys_text = chunk.partition(":")
        if not sep:
            raise ValueError(f"Key script item {chunk!r} is missing ':'")
        try:
            tick = int(tick_text, 0)
        except ValueError:
            raise ValueError(f"Invalid tick {tick_text!r} in key script") from None
        keys = tuple(k.strip().upper() for k in keys_text.split("+") if k.strip())
        events.append(KeyEvent(tick, keys))
    return events


class ScriptedInput:
    """Input source replaying a fixed key schedule.

    Poll ``n`` (counting from 0) reports the keys of the last event whose
    tick is ``<= n``. A quit is requested on poll ``quit_after`` when set.
    """

    def __init__(
        self,
        events: Iterable[KeyEvent] = (),
        *,
        key_map: Mapping[str, int] = DEFAULT_KEY_MAP,
        quit_after: Optional[int] = None,
    ) -> None:
        self._events: Sequence[KeyEvent] = sorted(events, key=lambda e: e.tick)
        self._key_map = key_map
        self._quit_after = quit_after
        self._next_event = 0
        self._keypad = keypad_from_keys((), key_map)
        self.polls = 0
        # Fail on unknown key names up front rather than mid-run.
        for event in self._events:
            keypad_from_keys(event.keys, key_map)

    @classmethod
    def from_script(
        cls,
        text: str,
        *,
        key_map: Mapping[str, int] = DEFAULT_KEY_MAP,
        quit_after: Optional[int] = None,
    ) -> "ScriptedInput":
        return cls(parse_key_script(text), key_map=key_map, quit_after=quit_after)

    def poll(self) -> PollResult:
        tick = self.polls
        self.polls += 1
        while (
            self._next_event < len(self._events)
            and self._events[self._next_event].tick <= tick
        ):
            event = self._events[self._next_event]
            self._keypad = keypad_from_keys(event.keys, self._key_map)
            self._next_event += 1
        quit_requested = self._quit_after is not None and tick >= self._quit_after
        return PollResult(keypad=self._keypad, quit_requested=quit_requested)
