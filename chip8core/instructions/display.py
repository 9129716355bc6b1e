"""CHIP-8 display operations."""

import jax.numpy as jnp
from chip8core.state import EmulatorState
from chip8core.decode import DecodedInstruction
from chip8core.constants import SCREEN_WIDTH, SCREEN_HEIGHT, MEMORY_SIZE
from chip8core.faults import Fault, flag_fault

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def sprite_mask(state: EmulatorState, sprite_x, sprite_y, height) -> jnp.ndarray:
    """Boolean (width, height) grid of the pixels a sprite sets.

    Rows always wrap at the bottom edge. Columns wrap at the right edge when
    ``quirks.wrap_sprites`` is set and are clipped otherwise.
    """
    row_offset = (yy - sprite_y) % SCREEN_HEIGHT
    if state.quirks.wrap_sprites:
        col_offset = (xx - sprite_x) % SCREEN_WIDTH
    else:
        col_offset = xx - sprite_x
    in_sprite = (col_offset >= 0) & (col_offset < 8) & (row_offset < height)

    sprite_bytes = state.memory[jnp.clip(jnp.astype(state.I, jnp.int32) + row_offset, 0, MEMORY_SIZE - 1)]
    bits = (sprite_bytes >> jnp.astype(jnp.clip(7 - col_offset, 0, 7), jnp.uint8)) & 1
    return (bits == 1) & in_sprite


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N."""
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT
    height = instruction.n

    end_address = jnp.astype(state.I, jnp.int32) + height
    state = flag_fault(state, end_address > MEMORY_SIZE, Fault.MEMORY_OUT_OF_RANGE, end_address - 1)

    sprite = sprite_mask(state, sprite_x, sprite_y, height)
    collision = jnp.any(state.display & sprite)

    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[15].set(jnp.astype(collision, jnp.uint8))
    )
