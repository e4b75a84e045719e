"""Display rendering for the CHIP-8 emulator."""

from .renderer import FrameRenderer

__all__ = ["FrameRenderer"]
