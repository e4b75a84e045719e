"""Physical keyboard layout for the 16-key hex keypad."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Tuple

from .constants import KEY_COUNT

# QWERTY block on the left of a PC keyboard, laid out like the COSMAC VIP
# keypad it stands in for.
#
#   physical        keypad
#   1 2 3 4         1 2 3 C
#   Q W E R         4 5 6 D
#   A S D F         7 8 9 E
#   Z X C V         A 0 B F
_PHYSICAL_LAYOUT: List[List[str]] = [
    ["1", "2", "3", "4"],
    ["Q", "W", "E", "R"],
    ["A", "S", "D", "F"],
    ["Z", "X", "C", "V"],
]

_KEYPAD_LAYOUT: List[List[int]] = [
    [0x1, 0x2, 0x3, 0xC],
    [0x4, 0x5, 0x6, 0xD],
    [0x7, 0x8, 0x9, 0xE],
    [0xA, 0x0, 0xB, 0xF],
]


def _build_default_key_map() -> Dict[str, int]:
    mapping: Dict[str, int] = {}
    for names, keys in zip(_PHYSICAL_LAYOUT, _KEYPAD_LAYOUT):
        for name, key in zip(names, keys):
            mapping[name] = key
    return mapping


DEFAULT_KEY_MAP: Dict[str, int] = _build_default_key_map()


def validate_key_map(key_map: Mapping[str, int]) -> None:
    """Raise ``ValueError`` when a mapping targets a key outside 0x0-0xF."""

    for name, key in key_map.items():
        if not isinstance(key, int) or not 0 <= key < KEY_COUNT:
            raise ValueError(f"key {name!r} maps to invalid keypad index {key!r}")


def keypad_from_keys(
    names: Iterable[str], key_map: Mapping[str, int] = DEFAULT_KEY_MAP
) -> Tuple[bool, ...]:
    """Return a 16-entry keypad snapshot with the named physical keys held.

    Unknown names raise ``KeyError``.
    """

    keypad = [False] * KEY_COUNT
    for name in names:
        keypad[key_map[name.upper()]] = True
    return tuple(keypad)


__all__ = ["DEFAULT_KEY_MAP", "keypad_from_keys", "validate_key_map"]
