"""CHIP-8 interpreter core."""

from chip8core.state import EmulatorState, Quirks, create_state, load_program, set_keypad
from chip8core.emulator import execute, fetch, step, run_n_instructions
from chip8core.decode import DecodedInstruction, decode, is_known_instruction, changes_display
from chip8core.faults import Fault, MachineFault
from chip8core.timers import TimerUnit, decrement_timers
from chip8core.interpreter import Interpreter, StepResult
from chip8core.runner import FrameRunner, FrameResult
from chip8core.constants import *
from chip8core.rendering import chip8_display_to_rgb, create_color_scheme, hex_to_rgb

__all__ = [
    "EmulatorState",
    "Quirks",
    "create_state",
    "load_program",
    "set_keypad",
    "fetch",
    "execute",
    "step",
    "run_n_instructions",
    "DecodedInstruction",
    "decode",
    "is_known_instruction",
    "changes_display",
    "Fault",
    "MachineFault",
    "TimerUnit",
    "decrement_timers",
    "Interpreter",
    "StepResult",
    "FrameRunner",
    "FrameResult",
    "PROGRAM_START",
    "FONT_START",
    "MEMORY_SIZE",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "chip8_display_to_rgb",
    "create_color_scheme",
    "hex_to_rgb",
]
