"""Test configuration and fixtures for CHIP-8 interpreter tests."""

import pytest
import jax.numpy as jnp
from chip8core import create_state, Quirks, Interpreter
from chip8core.logging import ConsoleLogger


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def clipping_state():
    """Provide a fresh state whose sprites clip at the right edge."""
    return create_state(quirks=Quirks(wrap_sprites=False))


@pytest.fixture
def legacy_index_state():
    """Provide a fresh state where FX55/FX65 advance I."""
    return create_state(quirks=Quirks(increment_index=True))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def interpreter(clock):
    """Interpreter with a hand-driven clock and a quiet logger."""
    return Interpreter(clock=clock, logger=ConsoleLogger(log_level="CRITICAL"))


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def set_registers(state, **registers):
    """Helper to set registers by name, e.g. ``set_registers(state, V1=3, VF=1)``."""
    V = state.V
    for name, value in registers.items():
        V = V.at[int(name[1:], 16)].set(value)
    return state.replace(V=V)


def program(*words):
    """Assemble instruction words into big-endian program bytes."""
    return b"".join(word.to_bytes(2, "big") for word in words)
