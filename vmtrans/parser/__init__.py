"""VM Parser - Builds commands from tokens."""

from .parser import Parser
from .commands import *

__all__ = [
    'Parser', 'CommandType', 'ArithmeticOp', 'Segment', 'FunctionContext', 'Command',
    'Arithmetic', 'Push', 'Pop', 'Label', 'Goto', 'IfGoto', 'Function', 'Call', 'Return',
]
