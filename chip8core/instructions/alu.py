"""CHIP-8 ALU operations (8xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8core.state import EmulatorState
from chip8core.decode import DecodedInstruction

# Every operation takes (VX, VY, VF) and returns the new (VX, VF).


def alu_set(vx, vy, vf):
    """8XY0 - Set: VX = VY."""
    return vy, vf


def alu_or(vx, vy, vf):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, vf


def alu_and(vx, vy, vf):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, vf


def alu_xor(vx, vy, vf):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, vf


def alu_add(vx, vy, vf):
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.int32) + jnp.astype(vy, jnp.int32)
    carry = jnp.astype(result > 0xFF, jnp.uint8)
    return jnp.astype(result & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx, vy, vf):
    """8XY5 - Subtract: VX -= VY, VF = 1 when there is no borrow."""
    no_borrow = jnp.astype(vx >= vy, jnp.uint8)
    return vx - vy, no_borrow


def alu_sub_yx(vx, vy, vf):
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when there is no borrow."""
    no_borrow = jnp.astype(vy >= vx, jnp.uint8)
    return vy - vx, no_borrow


def alu_shift_right(source, vf):
    """8XY6 - Shift right, VF = dropped low bit."""
    return source >> 1, source & 1


def alu_shift_left(source, vf):
    """8XYE - Shift left, VF = dropped high bit."""
    return source << 1, (source >> 7) & 1


def execute_alu_operation(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """8XYN - ALU operations dispatcher."""
    vx = state.V[instruction.x]
    vy = state.V[instruction.y]
    vf = state.V[15]

    def _alu_shift_right(vx, vy, vf):
        return alu_shift_right(vy if state.quirks.shift_source_vy else vx, vf)

    def _alu_shift_left(vx, vy, vf):
        return alu_shift_left(vy if state.quirks.shift_source_vy else vx, vf)

    def _alu_undefined(vx, vy, vf):
        return vx, vf

    # Operations 8..D and F are undefined and leave every register alone.
    branch = jnp.array([0, 1, 2, 3, 4, 5, 6, 7, 9, 9, 9, 9, 9, 9, 8, 9])[instruction.n]

    result, flag = jax.lax.switch(
        branch,
        [alu_set, alu_or, alu_and, alu_xor, alu_add,
         alu_sub_xy, _alu_shift_right, alu_sub_yx, _alu_shift_left, _alu_undefined],
        vx, vy, vf
    )

    # VF is written last so the flag wins when X is F.
    new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
    new_V = new_V.at[15].set(jnp.astype(flag, jnp.uint8))
    return state.replace(V=new_V)
