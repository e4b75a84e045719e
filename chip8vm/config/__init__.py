"""Configuration system for the CHIP-8 emulator."""

from .machine_config import EmulatorConfig, STACK_FAULT_POLICIES

__all__ = ["EmulatorConfig", "STACK_FAULT_POLICIES"]
