"""
Command definitions for the VM language.

Each command represents one VM instruction. Commands are built by the
parser and consumed once by the code generator.
"""

from enum import Enum, auto


class CommandType(Enum):
    """VM command kinds."""
    ARITHMETIC = auto()   # add, sub, neg, eq, gt, lt, and, or, not
    PUSH = auto()         # push segment index
    POP = auto()          # pop segment index
    LABEL = auto()        # label name
    GOTO = auto()         # goto name
    IF_GOTO = auto()      # if-goto name
    FUNCTION = auto()     # function name nlocals
    CALL = auto()         # call name nargs
    RETURN = auto()       # return


class ArithmeticOp(Enum):
    """Arithmetic/logical operations. Values are the VM keywords."""
    ADD = 'add'
    SUB = 'sub'
    NEG = 'neg'
    EQ = 'eq'
    GT = 'gt'
    LT = 'lt'
    AND = 'and'
    OR = 'or'
    NOT = 'not'

    @property
    def is_unary(self) -> bool:
        return self in (ArithmeticOp.NEG, ArithmeticOp.NOT)

    @property
    def is_comparison(self) -> bool:
        return self in (ArithmeticOp.EQ, ArithmeticOp.GT, ArithmeticOp.LT)


class Segment(Enum):
    """Memory segments addressable by push/pop. Values are the VM keywords."""
    LOCAL = 'local'
    ARGUMENT = 'argument'
    THIS = 'this'
    THAT = 'that'
    CONSTANT = 'constant'
    STATIC = 'static'
    POINTER = 'pointer'
    TEMP = 'temp'

    @property
    def is_indirect(self) -> bool:
        """Segments addressed through a base pointer cell."""
        return self in (Segment.LOCAL, Segment.ARGUMENT, Segment.THIS, Segment.THAT)


class FunctionContext:
    """
    Enclosing-function state shared by label, call and return.

    Tracks the function name used to qualify labels and the call-site
    counter used to name return addresses. A new context is created for
    every function declaration, so the counter restarts per function.
    """

    def __init__(self, name: str):
        self.name = name
        self.call_count = 0

    def qualify(self, label: str) -> str:
        """Function-scoped form of a label: Function$label."""
        return f"{self.name}${label}"

    def next_return_address(self) -> str:
        """Allocate the return-address label for the next call site."""
        address = f"{self.name}$ret.{self.call_count}"
        self.call_count += 1
        return address

    def __repr__(self):
        return f"FunctionContext({self.name}, {self.call_count} calls)"


class Command:
    """Base class for all VM commands."""

    command_type: CommandType

    def __init__(self, line: int = 0, column: int = 0):
        self.line = line
        self.column = column

    def operands(self) -> tuple:
        """Values that identify this command (location excluded)."""
        return ()

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.operands() == other.operands()

    def __hash__(self):
        return hash((type(self), self.operands()))

    def __repr__(self):
        args = ', '.join(repr(op) for op in self.operands())
        return f"{self.__class__.__name__}({args})"


class Arithmetic(Command):
    """Arithmetic or logical command on the stack top."""
    command_type = CommandType.ARITHMETIC

    def __init__(self, op: ArithmeticOp, line: int = 0, column: int = 0):
        super().__init__(line, column)
        self.op = op

    def operands(self) -> tuple:
        return (self.op,)

    def __str__(self):
        return self.op.value


class Push(Command):
    """push segment index"""
    command_type = CommandType.PUSH

    def __init__(self, segment: Segment, index: int, line: int = 0, column: int = 0):
        super().__init__(line, column)
        self.segment = segment
        self.index = index

    def operands(self) -> tuple:
        return (self.segment, self.index)

    def __str__(self):
        return f"push {self.segment.value} {self.index}"


class Pop(Command):
    """pop segment index"""
    command_type = CommandType.POP

    def __init__(self, segment: Segment, index: int, line: int = 0, column: int = 0):
        super().__init__(line, column)
        self.segment = segment
        self.index = index

    def operands(self) -> tuple:
        return (self.segment, self.index)

    def __str__(self):
        return f"pop {self.segment.value} {self.index}"


class Label(Command):
    """label name (name is already function-qualified)"""
    command_type = CommandType.LABEL

    def __init__(self, name: str, line: int = 0, column: int = 0):
        super().__init__(line, column)
        self.name = name

    def operands(self) -> tuple:
        return (self.name,)

    def __str__(self):
        return f"label {self.name}"


class Goto(Command):
    """goto name (name is already function-qualified)"""
    command_type = CommandType.GOTO

    def __init__(self, name: str, line: int = 0, column: int = 0):
        super().__init__(line, column)
        self.name = name

    def operands(self) -> tuple:
        return (self.name,)

    def __str__(self):
        return f"goto {self.name}"


class IfGoto(Command):
    """if-goto name (name is already function-qualified)"""
    command_type = CommandType.IF_GOTO

    def __init__(self, name: str, line: int = 0, column: int = 0):
        super().__init__(line, column)
        self.name = name

    def operands(self) -> tuple:
        return (self.name,)

    def __str__(self):
        return f"if-goto {self.name}"


class Function(Command):
    """function name nlocals"""
    command_type = CommandType.FUNCTION

    def __init__(self, name: str, local_count: int, line: int = 0, column: int = 0):
        super().__init__(line, column)
        self.name = name
        self.local_count = local_count

    def operands(self) -> tuple:
        return (self.name, self.local_count)

    def __str__(self):
        return f"function {self.name} {self.local_count}"


class Call(Command):
    """call name nargs, with the return address synthesized by the parser"""
    command_type = CommandType.CALL

    def __init__(self, callee: str, arg_count: int, return_address: str,
                 line: int = 0, column: int = 0):
        super().__init__(line, column)
        self.callee = callee
        self.arg_count = arg_count
        self.return_address = return_address

    def operands(self) -> tuple:
        return (self.callee, self.arg_count, self.return_address)

    def __str__(self):
        return f"call {self.callee} {self.arg_count}"


class Return(Command):
    """return"""
    command_type = CommandType.RETURN

    def __str__(self):
        return "return"
