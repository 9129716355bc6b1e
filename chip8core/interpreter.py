"""Stateful CHIP-8 interpreter for host frame loops.

The functions in :mod:`chip8core.emulator` are pure and thread an
``EmulatorState`` through every call. ``Interpreter`` owns one such state
exclusively and gives a host the usual imperative surface: load a program,
hand in the keypad once per frame, step, and copy the framebuffer out.
"""

import dataclasses
import time
from typing import Callable, Optional, Sequence

import jax
import numpy as np

from chip8core.constants import PROGRAM_START, TIMER_FREQUENCY
from chip8core.decode import changes_display, is_known_instruction
from chip8core.emulator import step
from chip8core.faults import Fault, MachineFault
from chip8core.logging import ConsoleLogger
from chip8core.state import EmulatorState, Quirks, create_state, load_program, set_keypad
from chip8core.timers import TimerUnit

_compiled_step = jax.jit(step)


@dataclasses.dataclass(frozen=True)
class StepResult:
    """Outcome of one ``Interpreter.step`` call.

    Attributes:
        display_changed: The instruction cleared or drew on the framebuffer
        opcode: The instruction word that was fetched
        fault: The fault that aborted the step, if any
    """
    display_changed: bool
    opcode: int
    fault: Optional[MachineFault] = None

    @property
    def ok(self) -> bool:
        return self.fault is None

    def raise_for_fault(self):
        """Raise the recorded fault, if there is one."""
        if self.fault is not None:
            raise self.fault


class Interpreter:
    """A single CHIP-8 machine.

    Args:
        quirks: Behaviour of the ambiguous instructions
        seed: Seed for the random number generator (ignored when ``rng`` is given)
        rng: JAX PRNG key used by CXNN
        clock: Monotonic clock driving the 60 Hz timers
        timer_frequency: Timer decrements per second
        logger: Logger for loads, resets, faults and unknown opcodes
    """

    def __init__(
        self,
        quirks: Quirks = Quirks(),
        seed: int = 0,
        rng: Optional[jax.random.PRNGKey] = None,
        clock: Callable[[], float] = time.monotonic,
        timer_frequency: int = TIMER_FREQUENCY,
        logger: Optional[ConsoleLogger] = None,
    ):
        self.quirks = quirks
        self.initial_rng = rng if rng is not None else jax.random.PRNGKey(seed)
        self.timers = TimerUnit(clock, timer_frequency)
        self.logger = logger or ConsoleLogger("Interpreter", log_level="WARNING")
        self.program = b""
        self.state: EmulatorState = create_state(self.initial_rng, quirks)

    def load(self, program: bytes):
        """Power the machine on with ``program`` at 0x200.

        Memory is rebuilt first, so nothing from a previously loaded program
        survives. The program is kept for ``reset``.
        """
        program = bytes(program)
        self.state = self._power_on(program)
        self.program = program
        self.timers.restart()
        self.logger.info(f"Loaded {len(program)} byte program at 0x{PROGRAM_START:03X}")

    def reset(self):
        """Return to the power-on state and reload the current program.

        Memory is rebuilt from scratch, so bytes the program wrote into itself
        are discarded. The random generator restarts from its initial key.
        """
        self.state = self._power_on(self.program)
        self.timers.restart()
        self.logger.info("Machine reset")

    def _power_on(self, program: bytes) -> EmulatorState:
        return load_program(create_state(self.initial_rng, self.quirks), program)

    def set_keys(self, keys: Sequence[bool]):
        """Replace the keypad snapshot with 16 "is key held" flags."""
        self.state = set_keypad(self.state, keys)

    def update_timers(self):
        """Decrement the timers if a 1/60 s interval has elapsed."""
        self.state = self.timers.update(self.state)

    def step(self) -> StepResult:
        """Execute one instruction.

        A fault leaves the machine on the faulting instruction and is
        returned in the result; the caller decides whether to halt, reset or
        try again.
        """
        self.update_timers()
        new_state, instruction = _compiled_step(self.state)
        instruction = int(instruction)

        if int(new_state.fault) != Fault.NONE:
            fault = MachineFault.from_state(new_state)
            self.logger.error(str(fault))
            return StepResult(display_changed=False, opcode=instruction, fault=fault)

        if not is_known_instruction(instruction):
            self.logger.debug(f"Ignoring unknown opcode {instruction:04X} at 0x{int(self.state.pc):03X}")

        self.state = new_state
        return StepResult(display_changed=changes_display(instruction), opcode=instruction)

    @property
    def framebuffer(self) -> np.ndarray:
        """Copy of the (64, 32) pixel grid, indexed ``[x, y]``."""
        return np.array(self.state.display, dtype=np.bool_)

    @property
    def memory(self) -> np.ndarray:
        return np.array(self.state.memory, dtype=np.uint8)

    @property
    def registers(self) -> np.ndarray:
        return np.array(self.state.V, dtype=np.uint8)

    @property
    def pc(self) -> int:
        return int(self.state.pc)

    @property
    def index(self) -> int:
        return int(self.state.I)

    @property
    def stack(self) -> list[int]:
        """Return addresses, oldest first."""
        depth = int(self.state.stack.pointer)
        return [int(address) for address in self.state.stack.data[:depth]]

    @property
    def delay_timer(self) -> int:
        return int(self.state.delay_timer)

    @property
    def sound_timer(self) -> int:
        return int(self.state.sound_timer)

    @property
    def sound_active(self) -> bool:
        """Whether the buzzer should sound."""
        return self.sound_timer > 0
