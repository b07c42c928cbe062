"""
VM Parser - Builds commands from tokens.

Reads one VM instruction per call, qualifying labels with the enclosing
function and naming the return address of every call site.
"""

from typing import Iterator, List, Optional, Set
from ..hack import MAX_INDEX
from ..lexer import Lexer, Token, TokenType
from .commands import (
    ArithmeticOp, Segment, FunctionContext, Command,
    Arithmetic, Push, Pop, Label, Goto, IfGoto, Function, Call, Return,
)


ARITHMETIC_KEYWORDS = {op.value: op for op in ArithmeticOp}
SEGMENT_KEYWORDS = {segment.value: segment for segment in Segment}


class Parser:
    """Parses VM tokens into commands, one instruction at a time."""

    def __init__(self, source: str, filename: str = "<input>"):
        self.lexer = Lexer(source)
        self.filename = filename
        self.current_token: Optional[Token] = None
        self.command_token: Optional[Token] = None
        self._context: Optional[FunctionContext] = None
        self.defined_functions: Set[str] = set()

    def error(self, message: str, token: Optional[Token] = None):
        """Raise a parser error with location information."""
        token = token or self.current_token
        if token:
            raise SyntaxError(f"{self.filename}:{token.line}:{token.column}: {message}")
        raise SyntaxError(f"{self.filename}: {message}")

    def advance(self) -> Token:
        """Consume and return the next token."""
        self.current_token = self.lexer.next_token()
        return self.current_token

    @property
    def current_function(self) -> Optional[str]:
        return self._context.name if self._context else None

    def require_context(self, what: str) -> FunctionContext:
        """Return the enclosing function or fail with '<what> outside function'."""
        if self._context is None:
            self.error(f"{what} outside function", self.command_token)
        return self._context

    def expect_word(self, description: str) -> Token:
        """Consume an identifier, failing with '<description> expected'."""
        token = self.advance()
        if token.type == TokenType.EOF:
            self.error(f"unexpected end of input: {description} expected")
        if token.type != TokenType.IDENTIFIER:
            self.error(f"{description} expected, got {token.value!r}")
        return token

    def expect_number(self, description: str) -> int:
        """Consume a non-negative integer in [0, MAX_INDEX]."""
        token = self.advance()
        if token.type == TokenType.EOF:
            self.error(f"unexpected end of input: {description} expected")
        if token.type != TokenType.NUMBER:
            self.error(f"{description} expected, got {token.value!r}")
        value = int(token.value)
        if value > MAX_INDEX:
            self.error(f"{description} out of range: {value} (max {MAX_INDEX})")
        return value

    def expect_symbol(self, symbol: str, description: str) -> Token:
        """Consume the given symbol or keyword literally."""
        token = self.advance()
        if token.value != symbol:
            if token.type == TokenType.EOF:
                self.error(f"unexpected end of input: {description} expected")
            self.error(f"{description} expected, got {token.value!r}")
        return token

    def next_command(self) -> Optional[Command]:
        """
        Parse the next VM instruction.

        Returns:
            The parsed command, or None at end of input.
        """
        token = self.advance()
        if token.type == TokenType.EOF:
            return None
        if token.type != TokenType.IDENTIFIER:
            self.error(f"invalid command: {token.value!r}")

        self.command_token = token
        keyword = token.value
        line, column = token.line, token.column

        if keyword in ARITHMETIC_KEYWORDS:
            return Arithmetic(ARITHMETIC_KEYWORDS[keyword], line, column)
        elif keyword in ('push', 'pop'):
            return self.parse_push_pop(keyword, line, column)
        elif keyword in ('label', 'goto'):
            return self.parse_label_goto(keyword, line, column)
        elif keyword == 'if':
            return self.parse_if_goto(line, column)
        elif keyword == 'function':
            return self.parse_function(line, column)
        elif keyword == 'call':
            return self.parse_call(line, column)
        elif keyword == 'return':
            self.require_context('return')
            return Return(line, column)

        self.error(f"invalid command: {keyword}", token)

    def parse_push_pop(self, keyword: str, line: int, column: int) -> Command:
        """push|pop <segment> <index>"""
        token = self.expect_word("memory segment")
        segment = SEGMENT_KEYWORDS.get(token.value)
        if segment is None:
            self.error(f"invalid memory segment: {token.value}")
        index = self.expect_number("segment index")
        if keyword == 'push':
            return Push(segment, index, line, column)
        return Pop(segment, index, line, column)

    def parse_label_goto(self, keyword: str, line: int, column: int) -> Command:
        """label|goto <name>"""
        label = self.expect_word("label").value
        scoped = self.require_context('label').qualify(label)
        if keyword == 'label':
            return Label(scoped, line, column)
        return Goto(scoped, line, column)

    def parse_if_goto(self, line: int, column: int) -> Command:
        """if-goto <name>; the lexer splits the keyword into if, -, goto."""
        self.expect_symbol('-', "if-goto")
        self.expect_symbol('goto', "if-goto")
        label = self.expect_word("label").value
        scoped = self.require_context('label').qualify(label)
        return IfGoto(scoped, line, column)

    def parse_function(self, line: int, column: int) -> Command:
        """function <name> <nlocals>"""
        name = self.expect_word("function name").value
        local_count = self.expect_number("local variable count")
        self._context = FunctionContext(name)
        self.defined_functions.add(name)
        return Function(name, local_count, line, column)

    def parse_call(self, line: int, column: int) -> Command:
        """call <name> <nargs>"""
        callee = self.expect_word("function name").value
        arg_count = self.expect_number("argument count")
        return_address = self.require_context('call').next_return_address()
        return Call(callee, arg_count, return_address, line, column)

    def parse(self) -> List[Command]:
        """Parse all remaining commands."""
        return list(self)

    def __iter__(self) -> Iterator[Command]:
        while True:
            command = self.next_command()
            if command is None:
                return
            yield command
