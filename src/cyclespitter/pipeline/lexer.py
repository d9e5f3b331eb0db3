"""
Operand and Expression Lexer
============================

This module tokenizes the text of a single operand field or directive
expression. The tokens serve two consumers:

- the expression evaluator (REPT counts, SET and EQU right-hand sides)
- the variable substitution pass of the macro expander, which rewrites
  identifier tokens in operand text and copies everything else through
  untouched

Because substitution must reproduce the original text exactly, every token
keeps the span (start, end) of the characters it was built from, and the
lexer never fails: characters it does not recognise become OTHER tokens,
which only the evaluator rejects.

Token Types
-----------
- IDENTIFIER: symbol names, registers, labels; may carry dotted suffixes
  ("d1.w", ".loop", "table.l")
- NUMBER: decimal, hex ($FF), binary (%1010), octal (@177)
- STRING: quoted text ('abcd' or "abcd")
- Operators: + - * / & | ^ ~ << >>
- Delimiters: , # ( )
- OTHER: anything else (kept for substitution, invalid in expressions)
- EOF: end of text

Example
-------
>>> [t.text for t in tokenize("add-8(a1)")]
['add', '-', '8', '(', 'a1', ')', '']
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator
import string


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Lexical categories for operand and expression text."""

    EOF = auto()

    # Values
    IDENTIFIER = auto()
    NUMBER = auto()
    STRING = auto()

    # Arithmetic operators
    PLUS = auto()        # +
    MINUS = auto()       # -
    STAR = auto()        # *
    SLASH = auto()       # /

    # Bitwise operators
    AMPERSAND = auto()   # &
    PIPE = auto()        # |
    CARET = auto()       # ^
    TILDE = auto()       # ~
    LSHIFT = auto()      # <<
    RSHIFT = auto()      # >>

    # Delimiters
    COMMA = auto()       # ,
    HASH = auto()        # #
    LPAREN = auto()      # (
    RPAREN = auto()      # )

    # Unrecognised character
    OTHER = auto()


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token with its source span.

    Attributes:
        type: The TokenType classification
        value: Identifier name, integer value of a number, or string contents
        text: The exact characters the token was built from
        start: Offset of the first character in the tokenized text
        end: Offset just past the last character
    """
    type: TokenType
    value: str | int | None
    text: str
    start: int
    end: int

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.start})"
        return f"Token({self.type.name}, {self.start})"

    @property
    def column(self) -> int:
        """1-indexed column of the token within the tokenized text."""
        return self.start + 1


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes one operand or expression string.

    Usage:
        tokens = list(Lexer("count*2+1").tokenize())
    """

    IDENT_START = string.ascii_letters + "_."
    IDENT_CHARS = string.ascii_letters + string.digits + "_."

    SINGLE_CHAR_TOKENS = {
        "+": TokenType.PLUS,
        "-": TokenType.MINUS,
        "*": TokenType.STAR,
        "/": TokenType.SLASH,
        "&": TokenType.AMPERSAND,
        "|": TokenType.PIPE,
        "^": TokenType.CARET,
        "~": TokenType.TILDE,
        "!": TokenType.PIPE,
        ",": TokenType.COMMA,
        "#": TokenType.HASH,
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
    }

    # Radix prefixes and the digits each accepts
    RADIX_PREFIXES = {
        "$": (16, string.hexdigits),
        "%": (2, "01"),
        "@": (8, string.octdigits),
    }

    def __init__(self, text: str):
        self.text = text
        self._pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the text.

        Yields:
            Token objects, always terminated by an EOF token
        """
        while self._pos < len(self.text):
            char = self.text[self._pos]
            if char in " \t":
                self._pos += 1
                continue
            yield self._scan_token(char)
        yield Token(TokenType.EOF, None, "", len(self.text), len(self.text))

    # =========================================================================
    # Token Scanners
    # =========================================================================

    def _peek(self, offset: int = 0) -> str:
        pos = self._pos + offset
        if pos >= len(self.text):
            return ""
        return self.text[pos]

    def _make(self, token_type: TokenType, value: str | int | None, start: int) -> Token:
        return Token(token_type, value, self.text[start:self._pos], start, self._pos)

    def _scan_token(self, char: str) -> Token:
        start = self._pos

        if char in self.RADIX_PREFIXES:
            base, digits = self.RADIX_PREFIXES[char]
            if self._peek(1) and self._peek(1) in digits:
                self._pos += 1
                return self._scan_number(start, base, digits)

        if char in string.digits:
            return self._scan_number(start, 10, string.digits)

        if char in self.IDENT_START:
            while self._peek() and self._peek() in self.IDENT_CHARS:
                self._pos += 1
            name = self.text[start:self._pos]
            return self._make(TokenType.IDENTIFIER, name, start)

        if char in "'\"":
            return self._scan_string(start, char)

        if char in "<>" and self._peek(1) == char:
            self._pos += 2
            token_type = TokenType.LSHIFT if char == "<" else TokenType.RSHIFT
            return self._make(token_type, None, start)

        self._pos += 1
        if char in self.SINGLE_CHAR_TOKENS:
            return self._make(self.SINGLE_CHAR_TOKENS[char], None, start)
        return self._make(TokenType.OTHER, char, start)

    def _scan_number(self, start: int, base: int, digits: str) -> Token:
        digit_start = self._pos
        while self._peek() and self._peek() in digits:
            self._pos += 1
        return self._make(TokenType.NUMBER, int(self.text[digit_start:self._pos], base), start)

    def _scan_string(self, start: int, quote: str) -> Token:
        # An unterminated string runs to the end of the text
        self._pos += 1
        while self._peek() and self._peek() != quote:
            self._pos += 1
        value = self.text[start + 1:self._pos]
        if self._peek() == quote:
            self._pos += 1
        return self._make(TokenType.STRING, value, start)


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(text: str) -> list[Token]:
    """Tokenize text into a list ending with an EOF token."""
    return list(Lexer(text).tokenize())
