"""
VM Lexer - Tokenizes VM source code into tokens.

Handles:
- Identifiers and keywords (push, Main.main, LOOP$1, ...)
- Decimal numbers
- Single-character symbols (the '-' in if-goto)
- // line comments
"""

import unicodedata
from enum import Enum, auto
from dataclasses import dataclass
from typing import Optional, List


# Only ASCII digits and letters form numbers and names; anything else is
# a single-character SYMBOL the parser rejects.
DIGITS = '0123456789'


def is_letter(ch: str) -> bool:
    return ch.isascii() and ch.isalpha()


class TokenType(Enum):
    """VM token types."""
    IDENTIFIER = auto()  # keyword, segment, label or function name
    NUMBER = auto()      # 123
    SYMBOL = auto()      # any other single character

    # End of file
    EOF = auto()


@dataclass
class Token:
    """Represents a single token."""
    type: TokenType
    value: str
    line: int
    column: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class Lexer:
    """Tokenizes VM source code. Token lines and columns are zero-based."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 0
        self.column = 0

    def peek(self, offset: int = 0) -> Optional[str]:
        """Peek at character at current position + offset."""
        pos = self.pos + offset
        if pos < len(self.source):
            return self.source[pos]
        return None

    def advance(self) -> Optional[str]:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return None

        ch = self.source[self.pos]
        self.pos += 1

        if ch == '\n':
            self.line += 1
            self.column = 0
        else:
            self.column += 1

        return ch

    def skip_whitespace(self):
        """Skip whitespace characters."""
        while self.peek() and self.peek().isspace():
            self.advance()

    def skip_comment(self):
        """Skip a // comment up to (not including) the next control character."""
        if self.peek() != '/' or self.peek(1) != '/':
            return

        while self.peek() and unicodedata.category(self.peek()) != 'Cc':
            self.advance()

    def read_number(self) -> str:
        """Read a run of decimal digits."""
        chars = []
        while self.peek() and self.peek() in DIGITS:
            chars.append(self.advance())
        return ''.join(chars)

    def read_identifier(self) -> str:
        """Read an identifier: a letter followed by letters, digits, _ . or $."""
        chars = []
        while self.peek() and self.is_identifier_char(self.peek()):
            chars.append(self.advance())
        return ''.join(chars)

    def is_identifier_char(self, ch: str) -> bool:
        """Check if character can appear after the first letter of an identifier."""
        return ch in DIGITS or is_letter(ch) or ch in '_.$'

    def next_token(self) -> Token:
        """
        Return the next token, skipping whitespace and comments.

        Once the input is exhausted every call returns an EOF token.
        """
        while True:
            self.skip_whitespace()
            if self.peek() == '/' and self.peek(1) == '/':
                self.skip_comment()
            else:
                break

        line = self.line
        col = self.column
        ch = self.peek()

        if ch is None:
            return Token(TokenType.EOF, '', line, col)

        if ch in DIGITS:
            return Token(TokenType.NUMBER, self.read_number(), line, col)

        if is_letter(ch):
            return Token(TokenType.IDENTIFIER, self.read_identifier(), line, col)

        self.advance()
        return Token(TokenType.SYMBOL, ch, line, col)

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source code. The last token is always EOF."""
        tokens = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        return tokens


def tokenize(source: str) -> List[Token]:
    """Convenience function to tokenize VM source code."""
    lexer = Lexer(source)
    return lexer.tokenize()
