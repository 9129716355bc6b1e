"""Malformed-program faults raised by the CHIP-8 core."""

import jax.numpy as jnp


class Fault:
    """Fault codes stored in ``EmulatorState.fault``.

    Plain integers so they mix freely with traced JAX values.
    """
    NONE = 0
    STACK_UNDERFLOW = 1
    STACK_OVERFLOW = 2
    MEMORY_OUT_OF_RANGE = 3
    PC_OUT_OF_RANGE = 4


_DESCRIPTIONS = {
    Fault.STACK_UNDERFLOW: "return with an empty call stack",
    Fault.STACK_OVERFLOW: "call with a full call stack",
    Fault.MEMORY_OUT_OF_RANGE: "memory access out of range",
    Fault.PC_OUT_OF_RANGE: "instruction fetch out of range",
}


def flag_fault(state, condition, kind: Fault, address):
    """Record ``kind`` at ``address`` when ``condition`` holds.

    Only the first fault of an instruction is kept. Works on traced values,
    so instruction handlers can call it inside ``jax.jit``.
    """
    record = condition & (state.fault == Fault.NONE)
    return state.replace(
        fault=jnp.where(record, jnp.uint8(kind), state.fault),
        fault_address=jnp.where(record, jnp.astype(address, jnp.int32), state.fault_address),
    )


class MachineFault(Exception):
    """A program tried something the machine cannot do.

    Attributes:
        kind: The ``Fault`` code
        opcode: The 16-bit instruction word that faulted
        pc: Address of the faulting instruction
        address: Memory address involved (equal to ``pc`` for stack faults)
    """

    def __init__(self, kind: Fault, opcode: int, pc: int, address: int):
        self.kind = int(kind)
        self.opcode = opcode
        self.pc = pc
        self.address = address
        super().__init__(
            f"{_DESCRIPTIONS[self.kind]}: opcode {opcode:04X} at 0x{pc:03X} (address 0x{address:03X})"
        )

    @classmethod
    def from_state(cls, state) -> "MachineFault":
        """Build the exception from a state carrying a fault record."""
        return cls(
            kind=int(state.fault),
            opcode=int(state.fault_opcode),
            pc=int(state.pc),
            address=int(state.fault_address),
        )
