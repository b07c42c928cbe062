"""
Code generator - converts VM commands to Hack assembly.

Every command lowers to a fixed or parameterized sequence of Hack
instructions. The only state carried between commands is the unit name
(for static symbols and comparison labels) and the comparison counter.
"""

from typing import Callable, Dict, List

from ..hack import (
    SP, LCL, ARG, THIS, THAT, FRAME_REGISTERS, FRAME_SIZE, STACK_BASE,
    SCRATCH_FRAME, SCRATCH_RETURN, SCRATCH_ADDRESS,
    temp_register, pointer_register,
)
from ..parser.commands import (
    CommandType, ArithmeticOp, Segment, FunctionContext, Command,
    Arithmetic, Push, Pop, Label, Goto, IfGoto, Function, Call,
)


# Context name for the bootstrap call. Identifiers in VM source must start
# with a letter, so no source function can collide with it.
BOOTSTRAP_CONTEXT = '$bootstrap'

# Base pointer cell of each indirect segment
SEGMENT_BASES = {
    Segment.LOCAL: LCL,
    Segment.ARGUMENT: ARG,
    Segment.THIS: THIS,
    Segment.THAT: THAT,
}

# ALU computation applied to M (second operand, x) and D (top, y)
BINARY_OPS = {
    ArithmeticOp.ADD: 'M=M+D',
    ArithmeticOp.SUB: 'M=M-D',
    ArithmeticOp.AND: 'M=M&D',
    ArithmeticOp.OR: 'M=M|D',
}

UNARY_OPS = {
    ArithmeticOp.NEG: 'M=-M',
    ArithmeticOp.NOT: 'M=!M',
}

COMPARISON_JUMPS = {
    ArithmeticOp.EQ: 'JEQ',
    ArithmeticOp.GT: 'JGT',
    ArithmeticOp.LT: 'JLT',
}

# *SP = D; SP++
PUSH_D = ['@SP', 'A=M', 'M=D', '@SP', 'M=M+1']

# SP--; D = *SP
POP_D = ['@SP', 'AM=M-1', 'D=M']


class CodeGenerator:
    """Generates Hack assembly from VM commands."""

    def __init__(self, unit_name: str = "", static_scope: str = "unit"):
        if static_scope not in ('unit', 'global'):
            raise ValueError(f"unknown static scope: {static_scope!r}")
        self.static_scope = static_scope
        self.unit_name = unit_name
        self.compare_count = 0

        self._translators: Dict[CommandType, Callable[[Command], List[str]]] = {
            CommandType.ARITHMETIC: self.translate_arithmetic,
            CommandType.PUSH: self.translate_push,
            CommandType.POP: self.translate_pop,
            CommandType.LABEL: self.translate_label,
            CommandType.GOTO: self.translate_goto,
            CommandType.IF_GOTO: self.translate_if_goto,
            CommandType.FUNCTION: self.translate_function,
            CommandType.CALL: self.translate_call,
            CommandType.RETURN: self.translate_return,
        }

    def set_unit(self, unit_name: str):
        """
        Start a new translation unit.

        Comparison labels embed the unit name, so the counter restarts
        with each unit without risking collisions.
        """
        self.unit_name = unit_name
        self.compare_count = 0

    def translate(self, command: Command) -> List[str]:
        """Translate one command into Hack instruction lines."""
        return self._translators[command.command_type](command)

    # ---------- Bootstrap ----------

    def bootstrap(self, entry: str = "Sys.init") -> List[str]:
        """
        Generate the program prologue: SP = 256, then call the entry function.

        The call goes through the ordinary call translation, using a pseudo
        enclosing function to name its return address. If the entry function
        ever returns, it lands on a halt loop instead of falling into the
        first unit's code.
        """
        context = FunctionContext(BOOTSTRAP_CONTEXT)
        call = Call(entry, 0, context.next_return_address())
        return ([f'@{STACK_BASE}', 'D=A', f'@{SP}', 'M=D']
                + self.translate_call(call)
                + [f'@{call.return_address}', '0;JMP'])

    # ---------- Arithmetic ----------

    def translate_arithmetic(self, command: Arithmetic) -> List[str]:
        op = command.op
        if op.is_unary:
            # Rewrite the stack top in place
            return ['@SP', 'A=M-1', UNARY_OPS[op]]
        if op.is_comparison:
            return self._translate_comparison(op)
        # D = y, A -> x, x = x op y
        return POP_D + ['A=A-1', BINARY_OPS[op]]

    def _translate_comparison(self, op: ArithmeticOp) -> List[str]:
        """x op y -> true (-1) or false (0), written over x."""
        label = self._next_compare_label()
        return POP_D + [
            'A=A-1',
            'D=M-D',      # x - y
            'M=-1',       # assume true
            f'@{label}',
            f'D;{COMPARISON_JUMPS[op]}',
            '@SP',
            'A=M-1',
            'M=0',        # false
            f'({label})',
        ]

    def _next_compare_label(self) -> str:
        self.compare_count += 1
        return f"{self.unit_name}$cmp.{self.compare_count}"

    # ---------- Push / Pop ----------

    def static_symbol(self, index: int) -> str:
        """Symbol for static variable `index` under the configured scoping."""
        if self.static_scope == 'global':
            return f"Static.{index}"
        return f"{self.unit_name}.{index}"

    def translate_push(self, command: Push) -> List[str]:
        segment, index = command.segment, command.index

        # D = value to push
        if segment.is_indirect:
            instructions = [f'@{SEGMENT_BASES[segment]}', 'D=M', f'@{index}', 'A=D+A', 'D=M']
        elif segment == Segment.CONSTANT:
            instructions = [f'@{index}', 'D=A']
        elif segment == Segment.STATIC:
            instructions = [f'@{self.static_symbol(index)}', 'D=M']
        elif segment == Segment.POINTER:
            instructions = [f'@{self._pointer(command)}', 'D=M']
        elif segment == Segment.TEMP:
            instructions = [f'@{self._temp(command)}', 'D=M']
        else:
            raise ValueError(f"invalid segment for push: {segment}")

        return instructions + PUSH_D

    def translate_pop(self, command: Pop) -> List[str]:
        segment, index = command.segment, command.index

        if segment.is_indirect:
            # The target address is computed before the pop clobbers D
            return [
                f'@{SEGMENT_BASES[segment]}', 'D=M', f'@{index}', 'D=D+A',
                f'@{SCRATCH_ADDRESS}', 'M=D',
            ] + POP_D + [f'@{SCRATCH_ADDRESS}', 'A=M', 'M=D']

        if segment == Segment.STATIC:
            target = self.static_symbol(index)
        elif segment == Segment.POINTER:
            target = self._pointer(command)
        elif segment == Segment.TEMP:
            target = self._temp(command)
        else:
            raise ValueError(f"invalid operation: {command}")

        return POP_D + [f'@{target}', 'M=D']

    def _pointer(self, command) -> str:
        try:
            return pointer_register(command.index)
        except ValueError as e:
            raise ValueError(f"{command}: {e}") from e

    def _temp(self, command) -> str:
        try:
            return temp_register(command.index)
        except ValueError as e:
            raise ValueError(f"{command}: {e}") from e

    # ---------- Program flow ----------

    def translate_label(self, command: Label) -> List[str]:
        return [f'({command.name})']

    def translate_goto(self, command: Goto) -> List[str]:
        return [f'@{command.name}', '0;JMP']

    def translate_if_goto(self, command: IfGoto) -> List[str]:
        # Jump if the popped value is non-zero
        return POP_D + [f'@{command.name}', 'D;JNE']

    # ---------- Functions ----------

    def translate_function(self, command: Function) -> List[str]:
        """
        Function entry point followed by a loop that pushes local_count zeros.

            (f)
            D = k
            (f$locals.loop)
            if D == 0 goto f$locals.end
            D = D - 1
            push 0
            goto f$locals.loop
            (f$locals.end)
        """
        name = command.name
        loop = f"{name}$locals.loop"
        end = f"{name}$locals.end"
        return [
            f'({name})',
            f'@{command.local_count}',
            'D=A',
            f'({loop})',
            f'@{end}',
            'D;JEQ',
            'D=D-1',
            '@SP',
            'A=M',
            'M=0',
            '@SP',
            'M=M+1',
            f'@{loop}',
            '0;JMP',
            f'({end})',
        ]

    def translate_call(self, command: Call) -> List[str]:
        """
        call f n:
            push return-address
            push LCL, ARG, THIS, THAT
            ARG = SP - 5 - n
            LCL = SP
            goto f
            (return-address)
        """
        instructions = [f'@{command.return_address}', 'D=A'] + PUSH_D

        for register in FRAME_REGISTERS:
            instructions += [f'@{register}', 'D=M'] + PUSH_D

        instructions += [
            '@SP', 'D=M', f'@{FRAME_SIZE}', 'D=D-A', f'@{command.arg_count}', 'D=D-A',
            f'@{ARG}', 'M=D',
        ]
        instructions += ['@SP', 'D=M', f'@{LCL}', 'M=D']
        instructions += [f'@{command.callee}', '0;JMP', f'({command.return_address})']
        return instructions

    def translate_return(self, command: Command) -> List[str]:
        """
        return:
            FRAME = LCL
            RET = *(FRAME - 5)
            *ARG = pop()
            SP = ARG + 1
            THAT, THIS, ARG, LCL = *(FRAME - 1), ..., *(FRAME - 4)
            goto RET
        """
        instructions = [
            f'@{LCL}', 'D=M', f'@{SCRATCH_FRAME}', 'M=D',
            f'@{FRAME_SIZE}', 'A=D-A', 'D=M', f'@{SCRATCH_RETURN}', 'M=D',
        ]
        instructions += POP_D + [f'@{ARG}', 'A=M', 'M=D', 'D=A', f'@{SP}', 'M=D+1']

        for register in reversed(FRAME_REGISTERS):
            instructions += [f'@{SCRATCH_FRAME}', 'AM=M-1', 'D=M', f'@{register}', 'M=D']

        instructions += [f'@{SCRATCH_RETURN}', 'A=M', '0;JMP']
        return instructions
