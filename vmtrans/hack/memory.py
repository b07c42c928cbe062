"""
Hack memory map.

Defines the reserved RAM cells the VM implementation relies on and the
helpers that map fixed segments (temp, pointer) onto them.

    RAM[0]       SP     stack pointer
    RAM[1]       LCL    base of the current function's local segment
    RAM[2]       ARG    base of the current function's argument segment
    RAM[3]       THIS   base of the this segment
    RAM[4]       THAT   base of the that segment
    RAM[5-12]           temp segment
    RAM[13-15]          general purpose scratch registers
    RAM[16-255]         static variables
    RAM[256-2047]       stack
"""

# Predefined symbols for the reserved cells
SP = 'SP'
LCL = 'LCL'
ARG = 'ARG'
THIS = 'THIS'
THAT = 'THAT'

# Caller context saved by call, in push order. return restores it reversed.
FRAME_REGISTERS = (LCL, ARG, THIS, THAT)

# Words between the last argument and the callee's LCL:
# return address + the saved frame registers
FRAME_SIZE = 1 + len(FRAME_REGISTERS)

TEMP_BASE = 5
TEMP_SIZE = 8

# Scratch cells used by generated code
SCRATCH_FRAME = 'R13'    # return: saved LCL of the returning function
SCRATCH_RETURN = 'R14'   # return: return address
SCRATCH_ADDRESS = 'R13'  # pop: target address of an indirect segment

STACK_BASE = 256

# Largest index or count a VM instruction can carry
MAX_INDEX = 0xFFFF

# pointer 0 / pointer 1
POINTER_ALIASES = (THIS, THAT)


def temp_register(index: int) -> str:
    """Symbol for temp segment cell `index` (R5-R12)."""
    if not 0 <= index < TEMP_SIZE:
        raise ValueError(f"temp index out of range: {index} (must be 0-{TEMP_SIZE - 1})")
    return f"R{TEMP_BASE + index}"


def pointer_register(index: int) -> str:
    """Symbol aliased by pointer segment cell `index` (THIS or THAT)."""
    if not 0 <= index < len(POINTER_ALIASES):
        raise ValueError(f"pointer index out of range: {index} (must be 0 or 1)")
    return POINTER_ALIASES[index]
