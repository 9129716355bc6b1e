"""CHIP-8 delay and sound timers."""

import time
from typing import Callable

import jax.numpy as jnp

from chip8core.constants import TIMER_FREQUENCY
from chip8core.state import EmulatorState


def decrement_timers(state: EmulatorState) -> EmulatorState:
    """Decrement both timers by one, stopping at zero."""
    return state.replace(
        delay_timer=jnp.astype(jnp.maximum(jnp.astype(state.delay_timer, jnp.int32) - 1, 0), jnp.uint8),
        sound_timer=jnp.astype(jnp.maximum(jnp.astype(state.sound_timer, jnp.int32) - 1, 0), jnp.uint8),
    )


class TimerUnit:
    """Wall-clock cadence for the 60 Hz timers.

    Keeps the deadline of the next decrement and allows at most one
    decrement per call, however many instructions ran in between. Deadlines
    advance by whole intervals so the rate stays at ``frequency``; after a
    stall longer than one interval the schedule restarts from "now".

    Args:
        clock: Monotonic clock returning seconds
        frequency: Decrements per second
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, frequency: int = TIMER_FREQUENCY):
        if frequency <= 0:
            raise ValueError(f"Timer frequency must be positive, got {frequency}")
        self.clock = clock
        self.interval = 1.0 / frequency
        self.next_tick = clock() + self.interval

    def restart(self):
        """Start a new interval from the current time."""
        self.next_tick = self.clock() + self.interval

    def due(self) -> bool:
        """Consume one interval if it has elapsed."""
        now = self.clock()
        if now < self.next_tick:
            return False
        self.next_tick += self.interval
        if now >= self.next_tick:
            self.next_tick = now + self.interval
        return True

    def update(self, state: EmulatorState) -> EmulatorState:
        """Return ``state`` with the timers decremented when an interval elapsed."""
        if self.due():
            return decrement_timers(state)
        return state
