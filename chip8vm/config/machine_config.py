"""Emulator configuration for the CHIP-8 virtual machine."""

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple
import json

from ..constants import DEFAULT_TICK_INTERVAL
from ..keyboard_map import DEFAULT_KEY_MAP, validate_key_map

STACK_FAULT_POLICIES = ("halt", "ignore")

Color = Tuple[int, int, int]


def _color(value) -> Color:
    rgb = tuple(int(c) for c in value)
    if len(rgb) != 3 or not all(0 <= c <= 255 for c in rgb):
        raise ValueError(f"Invalid RGB colour {value!r}")
    return rgb  # type: ignore[return-value]


@dataclass
class EmulatorConfig:
    """Timing, display and input settings for one emulator run."""
    tick_interval: float = DEFAULT_TICK_INTERVAL  # seconds slept per tick
    pixel_scale: int = 8
    foreground: Color = (210, 210, 210)
    background: Color = (0, 0, 0)
    stack_fault_policy: str = "halt"
    seed: Optional[int] = None
    key_map: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_KEY_MAP))

    def __post_init__(self):
        if self.tick_interval < 0:
            raise ValueError(f"tick_interval must be >= 0, got {self.tick_interval}")
        if self.pixel_scale < 1:
            raise ValueError(f"pixel_scale must be >= 1, got {self.pixel_scale}")
        if self.stack_fault_policy not in STACK_FAULT_POLICIES:
            raise ValueError(
                f"Invalid stack_fault_policy {self.stack_fault_policy!r}. "
                f"Must be one of {', '.join(STACK_FAULT_POLICIES)}"
            )
        self.foreground = _color(self.foreground)
        self.background = _color(self.background)
        self.key_map = {name.upper(): key for name, key in self.key_map.items()}
        validate_key_map(self.key_map)

    def to_dict(self) -> dict:
        return {
            "tick_interval": self.tick_interval,
            "pixel_scale": self.pixel_scale,
            "foreground": list(self.foreground),
            "background": list(self.background),
            "stack_fault_policy": self.stack_fault_policy,
            "seed": self.seed,
            "key_map": {name: f"0x{key:X}" for name, key in self.key_map.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'EmulatorConfig':
        defaults = cls()
        key_map = data.get("key_map")
        if key_map is not None:
            key_map = {
                name: int(key, 16) if isinstance(key, str) else key
                for name, key in key_map.items()
            }
        return cls(
            tick_interval=float(data.get("tick_interval", defaults.tick_interval)),
            pixel_scale=int(data.get("pixel_scale", defaults.pixel_scale)),
            foreground=data.get("foreground", defaults.foreground),
            background=data.get("background", defaults.background),
            stack_fault_policy=data.get("stack_fault_policy", defaults.stack_fault_policy),
            seed=data.get("seed", defaults.seed),
            key_map=key_map if key_map is not None else defaults.key_map,
        )

    def save(self, path: str) -> None:
        """Save configuration to JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> 'EmulatorConfig':
        """Load configuration from JSON file."""
        with open(path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def for_profile(cls, profile: str) -> 'EmulatorConfig':
        """Get configuration for a named run profile."""
        base = cls()
        configs = {
            "default": base,
            # Unthrottled; for batch runs and benchmarks.
            "fast": replace(base, tick_interval=0.0),
            # Unthrottled and reproducible.
            "test": replace(base, tick_interval=0.0, seed=0),
        }
        if profile not in configs:
            raise ValueError(
                f"Unknown profile {profile!r}. Must be one of {', '.join(configs)}"
            )
        return configs[profile]
