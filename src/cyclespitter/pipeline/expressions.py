"""
Integer Expression Evaluator
============================

This module evaluates the integer expressions used by the directives:
REPT counts, SET assignments and EQU definitions.

Operator Precedence (lowest to highest)
---------------------------------------
1. Bitwise OR: | !
2. Bitwise XOR: ^
3. Bitwise AND: &
4. Shift: << >>
5. Additive: + -
6. Multiplicative: * /
7. Unary: - + ~
8. Primary: numbers, variables, quoted characters, (expr)

Integers are unbounded. Division truncates toward zero, as assemblers do,
so "-7/2" is -3.

Quoted text packs its characters big-endian into an integer, so 'AB' is
$4142.

Example
-------
>>> ExpressionEvaluator({"add": 224}).evaluate("add-8")
216
"""

from typing import Mapping, Optional, Sequence

from cyclespitter.errors import (
    ExpressionError,
    ReptContext,
    SourceLocation,
    UndefinedVariableError,
)
from cyclespitter.pipeline.lexer import Token, TokenType, tokenize


class ExpressionEvaluator:
    """
    Evaluates integer expressions against a read-only variable mapping.

    The evaluator never mutates the mapping; the macro expander owns all
    variable state and hands the evaluator the frame that is visible at
    the point of evaluation.

    Attributes:
        variables: Variable names to values (names are case-sensitive)
    """

    def __init__(
        self,
        variables: Optional[Mapping[str, int]] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        rept_path: Sequence[ReptContext] = (),
    ):
        self.variables = variables if variables is not None else {}
        self._location = location
        self._source_line = source_line
        self._rept_path = tuple(rept_path)
        self._tokens: list[Token] = []
        self._pos = 0
        self._syntax_only = False

    # =========================================================================
    # Main Evaluation Interface
    # =========================================================================

    def check_syntax(self, text: str) -> None:
        """
        Check that text is a well-formed expression without evaluating it.

        Variables are not resolved, so this can run before any frame exists.

        Raises:
            ExpressionError: If the expression is empty or malformed
        """
        self._syntax_only = True
        try:
            self.evaluate(text)
        finally:
            self._syntax_only = False

    def evaluate(self, text: str) -> int:
        """
        Evaluate an expression string.

        Args:
            text: Expression source, e.g. "add-8" or "(230*2)/4"

        Returns:
            The integer result

        Raises:
            ExpressionError: If the expression is empty or malformed
            UndefinedVariableError: If it references an unknown variable
        """
        self._tokens = tokenize(text)
        self._pos = 0

        if self._current().type == TokenType.EOF:
            raise self._error("empty expression")

        result = self._parse_or()

        tok = self._current()
        if tok.type != TokenType.EOF:
            raise self._error(f"unexpected '{tok.text}' in expression", tok)
        return result

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._current()
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _match(self, *types: TokenType) -> Optional[Token]:
        if self._current().type in types:
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, message: str) -> Token:
        if self._current().type != token_type:
            raise self._error(message, self._current())
        return self._advance()

    def _error(self, message: str, token: Optional[Token] = None) -> ExpressionError:
        location = self._location
        if location is not None and token is not None and self._source_line is not None:
            # Point the caret at the token when it can be found on the line
            offset = self._source_line.find(token.text) if token.text else -1
            if offset >= 0:
                location = SourceLocation(location.filename, location.line, offset + 1)
        return ExpressionError(
            message,
            location=location,
            source_line=self._source_line,
            rept_path=self._rept_path,
        )

    # =========================================================================
    # Recursive Descent Parser with Evaluation
    # =========================================================================

    def _parse_or(self) -> int:
        """Parse bitwise OR (lowest precedence)."""
        left = self._parse_xor()
        while self._match(TokenType.PIPE):
            left = left | self._parse_xor()
        return left

    def _parse_xor(self) -> int:
        left = self._parse_and()
        while self._match(TokenType.CARET):
            left = left ^ self._parse_and()
        return left

    def _parse_and(self) -> int:
        left = self._parse_shift()
        while self._match(TokenType.AMPERSAND):
            left = left & self._parse_shift()
        return left

    def _parse_shift(self) -> int:
        left = self._parse_additive()
        while token := self._match(TokenType.LSHIFT, TokenType.RSHIFT):
            right = self._parse_additive()
            if right < 0:
                raise self._error("negative shift count", token)
            left = left << right if token.type == TokenType.LSHIFT else left >> right
        return left

    def _parse_additive(self) -> int:
        left = self._parse_multiplicative()
        while True:
            if self._match(TokenType.PLUS):
                left = left + self._parse_multiplicative()
            elif self._match(TokenType.MINUS):
                left = left - self._parse_multiplicative()
            else:
                break
        return left

    def _parse_multiplicative(self) -> int:
        """Parse multiplication and truncating division."""
        left = self._parse_unary()
        while True:
            if self._match(TokenType.STAR):
                left = left * self._parse_unary()
            elif token := self._match(TokenType.SLASH):
                right = self._parse_unary()
                if right == 0:
                    if self._syntax_only:
                        continue
                    raise self._error("division by zero", token)
                quotient = abs(left) // abs(right)
                left = quotient if (left < 0) == (right < 0) else -quotient
            else:
                break
        return left

    def _parse_unary(self) -> int:
        if self._match(TokenType.PLUS):
            return self._parse_unary()
        if self._match(TokenType.MINUS):
            return -self._parse_unary()
        if self._match(TokenType.TILDE):
            return ~self._parse_unary()
        return self._parse_primary()

    def _parse_primary(self) -> int:
        tok = self._current()

        if tok.type == TokenType.NUMBER:
            self._advance()
            return tok.value

        if tok.type == TokenType.STRING:
            self._advance()
            value = 0
            for char in tok.value:
                value = (value << 8) | (ord(char) & 0xFF)
            return value

        if tok.type == TokenType.LPAREN:
            self._advance()
            result = self._parse_or()
            self._expect(TokenType.RPAREN, "expected ')' to close expression")
            return result

        if tok.type == TokenType.IDENTIFIER:
            self._advance()
            return self._resolve_variable(tok)

        if tok.type == TokenType.EOF:
            raise self._error("unexpected end of expression")
        raise self._error(f"expected a value, got '{tok.text}'", tok)

    def _resolve_variable(self, tok: Token) -> int:
        name = tok.value
        if self._syntax_only:
            return 1
        if name in self.variables:
            return self.variables[name]

        location = self._location
        if location is not None and self._source_line is not None:
            offset = self._source_line.find(name)
            if offset >= 0:
                location = SourceLocation(location.filename, location.line, offset + 1)
        raise UndefinedVariableError(
            name,
            location=location,
            source_line=self._source_line,
            similar_names=find_similar_names(name, self.variables),
            rept_path=self._rept_path,
        )


# =============================================================================
# Name Suggestions
# =============================================================================

def find_similar_names(name: str, candidates) -> list[str]:
    """
    Find candidate names close to a misspelt one.

    Uses a case-insensitive edit distance of at most 2.
    """
    name_lower = name.lower()
    similar = []
    for candidate in sorted(candidates):
        candidate_lower = candidate.lower()
        if candidate_lower == name_lower or (
            abs(len(candidate) - len(name)) <= 2
            and edit_distance(name_lower, candidate_lower) <= 2
        ):
            similar.append(candidate)
    return similar[:3]


def edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min(distances[j], distances[j + 1], new_distances[-1]))
        distances = new_distances
    return distances[-1]


# =============================================================================
# Convenience Functions
# =============================================================================

def evaluate_expression(
    text: str,
    variables: Optional[Mapping[str, int]] = None,
    location: Optional[SourceLocation] = None,
) -> int:
    """
    Convenience function to evaluate an expression.

    Args:
        text: Expression source
        variables: Visible variables
        location: Source location for errors

    Returns:
        Expression result
    """
    return ExpressionEvaluator(variables, location).evaluate(text)
