"""CHIP-8 stack operations."""

import jax.numpy as jnp
from chip8core.constants import STACK_SIZE
from chip8core.state import StackState


def push(stack: StackState, address: jnp.ndarray) -> tuple[StackState, jnp.ndarray]:
    """Push address onto stack.

    Returns the new stack and whether the push overflowed. An overflowing
    push leaves the data untouched. Addresses are stored whole, so a return
    to 0x1000 faults on fetch instead of landing on 0x000.
    """
    overflow = stack.pointer >= STACK_SIZE
    new_data = stack.data.at[stack.pointer].set(jnp.astype(address, jnp.uint16), mode="drop")
    new_pointer = jnp.where(overflow, stack.pointer, stack.pointer + 1)
    return stack.replace(data=new_data, pointer=new_pointer), overflow


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray, jnp.ndarray]:
    """Pop address from stack.

    Returns the new stack, the popped address and whether the pop underflowed.
    """
    underflow = stack.pointer <= 0
    new_pointer = jnp.where(underflow, 0, stack.pointer - 1)
    popped_address = stack.data[new_pointer]
    new_data = stack.data.at[new_pointer].set(jnp.where(underflow, stack.data[new_pointer], 0))
    return stack.replace(data=new_data, pointer=new_pointer), popped_address, underflow
