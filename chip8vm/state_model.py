"""Immutable machine state snapshots and diff utilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .state import MachineState


@dataclass(frozen=True)
class MachineSnapshot:
    """Point-in-time copy of everything a program can observe."""

    registers: Tuple[int, ...]
    pc: int
    index: int
    sp: int
    stack: Tuple[int, ...]
    delay_timer: int
    sound_timer: int
    memory: bytes
    framebuffer: bytes
    keypad: Tuple[bool, ...]
    waiting_for_key: Optional[int]

    @property
    def lit_pixels(self) -> int:
        return sum(self.framebuffer)


@dataclass(frozen=True)
class FieldDiff:
    """Difference for a single named field."""

    name: str
    before: object
    after: object


@dataclass(frozen=True)
class StateDiff:
    """Aggregated differences between two snapshots."""

    fields: Tuple[FieldDiff, ...] = field(default_factory=tuple)
    memory_addresses: Tuple[int, ...] = field(default_factory=tuple)
    framebuffer_changed: bool = False

    def is_empty(self) -> bool:
        """Return True when no differences were recorded."""

        return not self.fields and not self.memory_addresses and not self.framebuffer_changed


def capture_state(state: MachineState) -> MachineSnapshot:
    """Capture the current machine state."""

    return MachineSnapshot(
        registers=tuple(state.registers),
        pc=state.pc,
        index=state.index,
        sp=state.sp,
        stack=state.stack,
        delay_timer=state.delay_timer,
        sound_timer=state.sound_timer,
        memory=bytes(state.memory),
        framebuffer=state.framebuffer.tobytes(),
        keypad=state.keypad,
        waiting_for_key=state.waiting_for_key,
    )


_SCALAR_FIELDS = (
    "pc",
    "index",
    "sp",
    "stack",
    "delay_timer",
    "sound_timer",
    "keypad",
    "waiting_for_key",
)


def diff_states(before: Optional[MachineSnapshot], after: MachineSnapshot) -> StateDiff:
    """Compute structured differences between two snapshots."""

    if before is None:
        return StateDiff()

    diffs: list[FieldDiff] = []
    for idx, (prev, curr) in enumerate(zip(before.registers, after.registers)):
        if prev != curr:
            diffs.append(FieldDiff(f"V{idx:X}", prev, curr))
    for name in _SCALAR_FIELDS:
        prev = getattr(before, name)
        curr = getattr(after, name)
        if prev != curr:
            diffs.append(FieldDiff(name, prev, curr))

    changed = tuple(
        addr
        for addr, (prev, curr) in enumerate(zip(before.memory, after.memory))
        if prev != curr
    )
    return StateDiff(
        fields=tuple(diffs),
        memory_addresses=changed,
        framebuffer_changed=before.framebuffer != after.framebuffer,
    )


__all__ = [
    "MachineSnapshot",
    "FieldDiff",
    "StateDiff",
    "capture_state",
    "diff_states",
]
