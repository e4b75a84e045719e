"""Framebuffer rendering to PIL images."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from ..constants import DISPLAY_HEIGHT, DISPLAY_WIDTH

logger = logging.getLogger(__name__)


class FrameRenderer:
    """Renders the 64x32 framebuffer to scaled RGB images.

    The most recent frame is kept in memory. When ``frames_dir`` is set
    every rendered frame is also written there as ``frame_NNNNN.png``.
    """

    def __init__(
        self,
        scale: int = 8,
        fg_color: Tuple[int, int, int] = (210, 210, 210),
        bg_color: Tuple[int, int, int] = (0, 0, 0),
        frames_dir: Optional[Path | str] = None,
    ):
        if scale < 1:
            raise ValueError(f"scale must be >= 1, got {scale}")
        self.scale = scale
        self.fg_color = fg_color
        self.bg_color = bg_color
        self.frames_dir = Path(frames_dir) if frames_dir is not None else None
        if self.frames_dir is not None:
            self.frames_dir.mkdir(parents=True, exist_ok=True)
        self.frame_count = 0
        self.last_frame: Optional[Image.Image] = None

    @property
    def size(self) -> Tuple[int, int]:
        return DISPLAY_WIDTH * self.scale, DISPLAY_HEIGHT * self.scale

    def to_image(self, framebuffer: np.ndarray) -> Image.Image:
        """Convert a (32, 64) array of 0/1 values to a scaled RGB image."""

        if framebuffer.shape != (DISPLAY_HEIGHT, DISPLAY_WIDTH):
            raise ValueError(f"unexpected framebuffer shape {framebuffer.shape}")
        lit = framebuffer.astype(bool)[..., np.newaxis]
        rgb = np.where(
            lit,
            np.array(self.fg_color, dtype=np.uint8),
            np.array(self.bg_color, dtype=np.uint8),
        ).astype(np.uint8)
        if self.scale > 1:
            rgb = rgb.repeat(self.scale, axis=0).repeat(self.scale, axis=1)
        return Image.fromarray(rgb, "RGB")

    def render(self, framebuffer: np.ndarray) -> None:
        self.last_frame = self.to_image(framebuffer)
        if self.frames_dir is not None:
            path = self.frames_dir / f"frame_{self.frame_count:05d}.png"
            self.last_frame.save(path)
            logger.debug("Wrote %s", path)
        self.frame_count += 1

    def save(self, filename: Path | str) -> bool:
        """Save the last rendered frame; returns False if nothing was drawn."""

        if self.last_frame is None:
            return False
        self.last_frame.save(filename)
        logger.info("Saved frame to %s", filename)
        return True
