"""CHIP-8 instruction decoding."""

from chex import dataclass


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


_ALU_OPERATIONS = {0x0, 0x1, 0x2, 0x3, 0x4, 0x5, 0x6, 0x7, 0xE}
_MISC_OPERATIONS = {0x07, 0x0A, 0x15, 0x18, 0x1E, 0x29, 0x33, 0x55, 0x65}


def is_known_instruction(instruction: int) -> bool:
    """Whether a concrete instruction word belongs to the base instruction set."""
    opcode = (instruction & 0xF000) >> 12
    n = instruction & 0x000F
    nn = instruction & 0x00FF

    if opcode == 0x0:
        return instruction in (0x00E0, 0x00EE)
    if opcode in (0x5, 0x9):
        return n == 0
    if opcode == 0x8:
        return n in _ALU_OPERATIONS
    if opcode == 0xE:
        return nn in (0x9E, 0xA1)
    if opcode == 0xF:
        return nn in _MISC_OPERATIONS
    return True


def changes_display(instruction: int) -> bool:
    """Whether executing the instruction reports a framebuffer change."""
    return instruction == 0x00E0 or (instruction & 0xF000) == 0xD000
