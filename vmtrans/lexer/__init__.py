"""VM Lexer - Tokenizes VM source code."""

from .lexer import Lexer, Token, TokenType, tokenize

__all__ = ['Lexer', 'Token', 'TokenType', 'tokenize']
