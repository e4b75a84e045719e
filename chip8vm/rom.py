"""Reading ROM images from disk."""

from __future__ import annotations

from pathlib import Path


class RomLoadError(Exception):
    """The ROM file could not be read."""


def load_rom_file(path: Path | str) -> bytes:
    """Return the raw bytes of the ROM at ``path``.

    Oversized images are returned whole; the machine state drops whatever
    does not fit when it loads them.
    """

    rom_path = Path(path)
    if not rom_path.exists():
        raise RomLoadError(f"ROM not found: {rom_path}")
    if not rom_path.is_file():
        raise RomLoadError(f"ROM is not a regular file: {rom_path}")
    try:
        return rom_path.read_bytes()
    except OSError as exc:
        raise RomLoadError(f"Cannot read ROM {rom_path}: {exc.strerror or exc}") from exc


__all__ = ["RomLoadError", "load_rom_file"]
