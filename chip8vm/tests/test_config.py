import json

import pytest

from chip8vm.config import STACK_FAULT_POLICIES, EmulatorConfig
from chip8vm.keyboard_map import DEFAULT_KEY_MAP


def test_defaults():
    config = EmulatorConfig()
    assert config.tick_interval == pytest.approx(0.004)
    assert config.pixel_scale == 8
    assert config.stack_fault_policy == "halt"
    assert config.seed is None
    assert config.key_map == DEFAULT_KEY_MAP
    assert config.key_map is not DEFAULT_KEY_MAP


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "chip8.json"
    saved = EmulatorConfig(
        tick_interval=0.002,
        pixel_scale=4,
        foreground=(0, 255, 0),
        stack_fault_policy="ignore",
        seed=42,
        key_map={"x": 0x0, "Space": 0xA},
    )
    saved.save(str(path))

    data = json.loads(path.read_text())
    assert data["key_map"] == {"X": "0x0", "SPACE": "0xA"}

    loaded = EmulatorConfig.load(str(path))
    assert loaded == saved


def test_from_dict_fills_missing_fields():
    config = EmulatorConfig.from_dict({"seed": 7, "key_map": {"K": "0xF"}})
    assert config.seed == 7
    assert config.key_map == {"K": 0xF}
    assert config.pixel_scale == 8


@pytest.mark.parametrize(
    "kwargs",
    [
        {"tick_interval": -1.0},
        {"pixel_scale": 0},
        {"stack_fault_policy": "crash"},
        {"foreground": (0, 0, 256)},
        {"background": (1, 2)},
        {"key_map": {"Q": 0x10}},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        EmulatorConfig(**kwargs)


def test_profiles():
    assert EmulatorConfig.for_profile("default") == EmulatorConfig()
    fast = EmulatorConfig.for_profile("fast")
    assert fast.tick_interval == 0.0
    assert fast.seed is None
    test = EmulatorConfig.for_profile("test")
    assert (test.tick_interval, test.seed) == (0.0, 0)

    with pytest.raises(ValueError, match="Unknown profile"):
        EmulatorConfig.for_profile("turbo")


def test_policies_listed():
    assert STACK_FAULT_POLICIES == ("halt", "ignore")
