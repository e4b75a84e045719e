#!/usr/bin/env python3
"""Headless command-line runner for the CHIP-8 emulator."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import STACK_FAULT_POLICIES, EmulatorConfig
from .display import FrameRenderer
from .emulator import Chip8Emulator
from .peripherals import ScriptedInput, ToneRecorder
from .rom import RomLoadError, load_rom_file
from .state_model import MachineSnapshot, capture_state, diff_states
from .tracing import trace_dispatcher


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8vm", description="Run a CHIP-8 ROM headlessly"
    )
    parser.add_argument("rom", help="Path to the ROM image")
    parser.add_argument("--config", type=str, help="JSON configuration file")
    parser.add_argument(
        "--profile",
        choices=["default", "fast", "test"],
        help="Start from a named configuration profile",
    )
    parser.add_argument(
        "--ticks", type=int, default=None, help="Stop after this many ticks"
    )
    parser.add_argument(
        "--tick-ms", type=float, default=None, help="Milliseconds slept per tick"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--scale", type=int, default=None, help="Pixel scale")
    parser.add_argument(
        "--keys",
        type=str,
        default="",
        help='Key script, e.g. "10:W,20:,30:Q+W" (tick:keys)',
    )
    parser.add_argument(
        "--frames-dir", type=str, help="Write every rendered frame as PNG here"
    )
    parser.add_argument(
        "--save-frame", type=str, help="Save the last rendered frame to this PNG"
    )
    parser.add_argument(
        "--stack-fault",
        choices=STACK_FAULT_POLICIES,
        default=None,
        help="Halt or ignore on call stack overflow/underflow",
    )
    parser.add_argument(
        "--perfetto", action="store_true", help="Record a Perfetto trace"
    )
    parser.add_argument(
        "--trace-file",
        type=str,
        default="chip8.perfetto-trace",
        help="Perfetto trace path",
    )
    parser.add_argument(
        "--stats", action="store_true", help="Print run statistics on exit"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="More logging (repeatable)"
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Errors only")
    return parser


def _configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _resolve_config(args: argparse.Namespace) -> EmulatorConfig:
    if args.config:
        config = EmulatorConfig.load(args.config)
    else:
        config = EmulatorConfig.for_profile(args.profile or "default")
    overrides = {}
    if args.tick_ms is not None:
        overrides["tick_interval"] = args.tick_ms / 1000.0
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.scale is not None:
        overrides["pixel_scale"] = args.scale
    if args.stack_fault is not None:
        overrides["stack_fault_policy"] = args.stack_fault
    return replace(config, **overrides) if overrides else config


def _print_stats(emu: Chip8Emulator, initial: MachineSnapshot) -> None:
    snap = capture_state(emu.state)
    print(f"Ticks:        {emu.tick_count}")
    print(f"Instructions: {emu.instruction_count}")
    print(f"Frames:       {emu.frames_rendered}")
    print(f"PC: {snap.pc:03X}  I: {snap.index:03X}  SP: {snap.sp}")
    print("V:  " + " ".join(f"{v:02X}" for v in snap.registers))
    print(f"DT: {snap.delay_timer}  ST: {snap.sound_timer}  lit pixels: {snap.lit_pixels}")
    if emu.last_instruction is not None:
        print(f"Last: {emu.last_instruction}")
    diff = diff_states(initial, snap)
    changed = ", ".join(f.name for f in diff.fields) or "none"
    print(f"Changed: {changed}; {len(diff.memory_addresses)} memory bytes")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose, args.quiet)

    try:
        rom = load_rom_file(args.rom)
        config = _resolve_config(args)
        input_source = ScriptedInput.from_script(args.keys, key_map=config.key_map)
    except RomLoadError as exc:
        print(f"chip8vm: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValueError, KeyError) as exc:
        print(f"chip8vm: invalid configuration: {exc}", file=sys.stderr)
        return 1

    renderer = FrameRenderer(
        scale=config.pixel_scale,
        fg_color=config.foreground,
        bg_color=config.background,
        frames_dir=args.frames_dir,
    )
    audio = ToneRecorder()
    emu = Chip8Emulator(renderer, input_source, audio, config=config)
    emu.load_rom(rom)
    initial = capture_state(emu.state)

    if args.perfetto:
        # Registers the Perfetto observer with the dispatcher.
        from .tracing import perfetto_tracing  # noqa: F401

        trace_dispatcher.start_trace(Path(args.trace_file))
    try:
        emu.run(max_ticks=args.ticks)
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Interrupted")
    finally:
        if args.perfetto:
            trace_dispatcher.stop_trace()

    if args.save_frame and not renderer.save(args.save_frame):
        print(
            f"chip8vm: warning: nothing was drawn; {args.save_frame} not written",
            file=sys.stderr,
        )
    if args.stats:
        _print_stats(emu, initial)
    return 1 if emu.halted else 0


if __name__ == "__main__":
    sys.exit(main())
