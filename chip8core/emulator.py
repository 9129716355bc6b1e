"""Main CHIP-8 emulator execution engine."""

from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
from chip8core.state import EmulatorState
from chip8core.decode import decode
from chip8core.constants import MEMORY_SIZE
from chip8core.faults import Fault, flag_fault
from chip8core.instructions.system import execute_system_instruction
from chip8core.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset, execute_skip_if_key
)
from chip8core.instructions.alu import execute_alu_operation
from chip8core.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chip8core.instructions.display import execute_display
from chip8core.instructions.misc import execute_misc_instruction


def _rollback(original: EmulatorState, executed: EmulatorState, instruction) -> EmulatorState:
    """Keep ``executed`` unless it faulted, in which case return ``original``
    carrying the fault record."""
    faulted = executed.fault != Fault.NONE
    new_fault = faulted & (original.fault == Fault.NONE)
    record = original.replace(
        fault=executed.fault,
        fault_opcode=jnp.where(new_fault, jnp.astype(instruction, jnp.uint16), original.fault_opcode),
        fault_address=executed.fault_address,
    )
    return jax.tree.map(lambda old, new: jnp.where(faulted, old, new), record, executed)


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    A faulting instruction has no effect apart from the fault record.
    """
    decoded_instruction = decode(instruction)

    executed = jax.lax.switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )
    return _rollback(state, executed, instruction)


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory.

    A PC whose instruction word would run past the end of memory records a
    ``PC_OUT_OF_RANGE`` fault and fetches a zero word.
    """
    pc = jnp.astype(state.pc, jnp.int32)
    out_of_range = pc + 1 >= MEMORY_SIZE
    high = state.memory[jnp.clip(pc, 0, MEMORY_SIZE - 1)]
    low = state.memory[jnp.clip(pc + 1, 0, MEMORY_SIZE - 1)]
    instruction = jnp.where(out_of_range, jnp.uint16(0), _pack_u16(high, low))
    state = flag_fault(state, out_of_range, Fault.PC_OUT_OF_RANGE, pc)
    return state.replace(pc=state.pc + 2), instruction


def step(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch and execute one instruction.

    Returns the new state and the executed instruction word. On a fault the
    state is the one before the fetch (PC still on the faulting instruction)
    with the fault recorded, so a faulted machine stays halted.
    """
    fetched, instruction = fetch(state)
    executed = execute(fetched, instruction)
    return _rollback(state, executed, instruction), instruction


def _scan_step(state, _):
    state, instruction = step(state)
    return state, instruction


@partial(jax.jit, static_argnums=1)
def run_n_instructions(state: EmulatorState, n: int) -> EmulatorState:
    """Run ``n`` steps inside a single compiled ``lax.scan``."""
    state, _ = jax.lax.scan(_scan_step, state, length=n)
    return state
