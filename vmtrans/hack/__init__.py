"""Hack target machine description: reserved cells and memory layout."""

from .memory import (
    SP, LCL, ARG, THIS, THAT, FRAME_REGISTERS,
    TEMP_BASE, TEMP_SIZE, SCRATCH_FRAME, SCRATCH_RETURN, SCRATCH_ADDRESS,
    STACK_BASE, FRAME_SIZE, MAX_INDEX, POINTER_ALIASES,
    temp_register, pointer_register,
)

__all__ = [
    'SP', 'LCL', 'ARG', 'THIS', 'THAT', 'FRAME_REGISTERS',
    'TEMP_BASE', 'TEMP_SIZE', 'SCRATCH_FRAME', 'SCRATCH_RETURN', 'SCRATCH_ADDRESS',
    'STACK_BASE', 'FRAME_SIZE', 'MAX_INDEX', 'POINTER_ALIASES',
    'temp_register', 'pointer_register',
]
