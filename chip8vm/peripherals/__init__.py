"""Headless collaborators: scripted keypad input and a tone recorder."""

from .audio import ToneRecorder
from .input import KeyEvent, ScriptedInput, parse_key_script

__all__ = ["KeyEvent", "ScriptedInput", "ToneRecorder", "parse_key_script"]
