"""
REPT Macro Expander
===================

This module unrolls REPT/ENDR blocks into a flat stream of directive-free
lines, tracking SET variables and substituting their values into operand
text.

Variable Scoping
----------------
Each active REPT has a frame holding its own copy of the variables that
were visible when the REPT line was reached:

```asm
add         set 224
            rept 7
                rept 28
                    roxl.w  add(a1)     ; 224, 216, ... 8
add             set add-8
                endr
            endr
```

- The inner frame is created afresh every time its REPT is reached, so
  each outer iteration starts the inner walk from the outer value again.
- SET inside a frame persists across that frame's own iterations.
- Nothing a frame assigns leaks back to its parent.

Substitution
------------
Only operand text is rewritten, one identifier token at a time, with the
value in decimal. Labels, mnemonics and comments are never touched, and an
identifier only matches a variable whose name is identical, so "add" is
not replaced inside "address" or "add_hi". A trailing size suffix on an
operand identifier is kept: "ofs.w" becomes "16.w".
"""

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from cyclespitter.errors import (
    MalformedLineError,
    ReptContext,
    SourceError,
    SourceLocation,
    UnbalancedReptError,
)
from cyclespitter.pipeline.expressions import ExpressionEvaluator
from cyclespitter.pipeline.lexer import TokenType, tokenize
from cyclespitter.pipeline.parser import DirectiveKind, SourceLine

logger = logging.getLogger(__name__)

SIZE_SUFFIXES = frozenset({"b", "w", "l", "s"})


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class ExpandedLine:
    """
    A directive-free line after expansion.

    Attributes:
        source: The SourceLine this copy came from
        operands: Operand text with variable values substituted
        origin: Section title in effect, for output grouping
        rept_path: Active REPT nesting when the copy was produced
        equate: (name, expression) for pass-through EQU lines
    """
    source: SourceLine
    operands: str = ""
    origin: Optional[str] = None
    rept_path: tuple[ReptContext, ...] = ()
    equate: Optional[tuple[str, str]] = None

    @property
    def label(self) -> Optional[str]:
        return self.source.label

    @property
    def mnemonic(self) -> Optional[str]:
        return self.source.mnemonic

    @property
    def comment(self) -> Optional[str]:
        return self.source.comment

    @property
    def override(self) -> Optional[int]:
        return self.source.override

    @property
    def line_number(self) -> int:
        return self.source.line_number

    @property
    def location(self) -> SourceLocation:
        return self.source.location

    @property
    def is_instruction(self) -> bool:
        return self.source.is_instruction

    @property
    def instruction(self) -> str:
        """Mnemonic and substituted operands, e.g. 'roxl.w 216(a1)'."""
        if self.mnemonic is None:
            return ""
        return f"{self.mnemonic} {self.operands}".rstrip()


@dataclass
class ReptFrame:
    """
    One active REPT activation.

    Attributes:
        line: Source line number of the REPT directive
        count: Total iterations
        body_start: Index of the first body line
        body_end: Index of the matching ENDR
        variables: This frame's own variable values
        equates: Names whose current value came from EQU
        iteration: Current pass (1-indexed)
    """
    line: int
    count: int
    body_start: int
    body_end: int
    variables: dict[str, int] = field(default_factory=dict)
    equates: set[str] = field(default_factory=set)
    iteration: int = 1

    @property
    def substitutions(self) -> dict[str, int]:
        """Values substituted into operand text: SET variables only."""
        return {name: value for name, value in self.variables.items() if name not in self.equates}

    @property
    def remaining(self) -> int:
        """Passes left after the current one."""
        return self.count - self.iteration

    def context(self) -> ReptContext:
        return ReptContext(self.line, self.iteration, self.count)


# =============================================================================
# Variable Substitution
# =============================================================================

def substitute_variables(text: str, variables: Mapping[str, int]) -> str:
    """
    Replace variable identifiers in operand text with their decimal values.

        >>> substitute_variables("add(a1),#add+2", {"add": 216})
        '216(a1),#216+2'
    """
    if not text or not variables:
        return text

    pieces = []
    last = 0
    for tok in tokenize(text):
        if tok.type != TokenType.IDENTIFIER:
            continue
        replacement = _replacement(tok.value, variables)
        if replacement is None:
            continue
        pieces.append(text[last:tok.start])
        pieces.append(replacement)
        last = tok.end
    if not pieces:
        return text
    pieces.append(text[last:])
    return "".join(pieces)


def _replacement(name: str, variables: Mapping[str, int]) -> Optional[str]:
    if name in variables:
        return str(variables[name])
    stem, dot, suffix = name.rpartition(".")
    if dot and stem in variables and suffix.lower() in SIZE_SUFFIXES:
        return f"{variables[stem]}.{suffix}"
    return None


# =============================================================================
# Macro Expander
# =============================================================================

class MacroExpander:
    """
    Expands REPT blocks and SET variables over a parsed line sequence.

    The expander walks the lines with an explicit frame stack instead of
    recursion, so deeply nested blocks cannot exhaust the Python stack.

    Usage:
        expander = MacroExpander()
        flat = expander.expand(parse_source(text))

    Attributes:
        initial_variables: Values visible before the first line
    """

    def __init__(self, initial_variables: Optional[Mapping[str, int]] = None):
        self.initial_variables = dict(initial_variables or {})

    def expand(self, lines: Sequence[SourceLine]) -> list[ExpandedLine]:
        """
        Expand all REPT blocks.

        Args:
            lines: Parsed source lines in order

        Returns:
            Flat list of ExpandedLine, directives erased

        Raises:
            UnbalancedReptError: On an ENDR without REPT or an unclosed REPT
            MalformedLineError: On a negative repeat count
            UndefinedVariableError: On an unknown variable in an expression
            ExpressionError: On division by zero in an expression
        """
        matching = match_rept_blocks(lines)

        output: list[ExpandedLine] = []
        root = ReptFrame(line=0, count=1, body_start=0, body_end=len(lines),
                         variables=dict(self.initial_variables))
        stack = [root]
        pos = 0

        while stack:
            frame = stack[-1]

            if pos >= frame.body_end:
                if frame.remaining > 0:
                    frame.iteration += 1
                    pos = frame.body_start
                else:
                    stack.pop()
                    pos = frame.body_end + 1
                continue

            line = lines[pos]
            directive = line.directive
            kind = directive.kind if directive else None

            if kind is DirectiveKind.REPT:
                count = self._evaluate(directive.expression, line, stack)
                if count < 0:
                    raise MalformedLineError(
                        f"REPT count must not be negative, got {count}",
                        location=line.location,
                        source_line=line.text,
                        rept_path=self._path(stack),
                    )
                end = matching[pos]
                if count == 0:
                    pos = end + 1
                    continue
                stack.append(ReptFrame(
                    line=line.line_number,
                    count=count,
                    body_start=pos + 1,
                    body_end=end,
                    variables=dict(frame.variables),
                    equates=set(frame.equates),
                ))
                pos += 1
                continue

            if kind is DirectiveKind.SET:
                frame.variables[directive.name] = self._evaluate(directive.expression, line, stack)
                frame.equates.discard(directive.name)
            elif kind is DirectiveKind.EQU:
                output.append(self._equate(line, directive, frame, stack))
            elif kind is not DirectiveKind.ENDR:
                output.append(ExpandedLine(
                    source=line,
                    operands=substitute_variables(line.operands, frame.substitutions),
                    origin=line.section,
                    rept_path=self._path(stack),
                ))
            pos += 1

        logger.debug(f"expanded {len(lines)} source lines into {len(output)} lines")
        return output

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _path(stack: list[ReptFrame]) -> tuple[ReptContext, ...]:
        # The root frame is not a REPT
        return tuple(frame.context() for frame in stack[1:])

    def _evaluate(self, expression: str, line: SourceLine, stack: list[ReptFrame]) -> int:
        evaluator = ExpressionEvaluator(
            stack[-1].variables,
            location=line.location,
            source_line=line.text,
            rept_path=self._path(stack),
        )
        return evaluator.evaluate(expression)

    def _equate(self, line: SourceLine, directive, frame: ReptFrame, stack: list[ReptFrame]) -> ExpandedLine:
        """Pass an EQU through, binding its value when it can be computed."""
        expression = substitute_variables(directive.expression, frame.substitutions)
        try:
            frame.variables[directive.name] = self._evaluate(directive.expression, line, stack)
            frame.equates.add(directive.name)
        except SourceError as e:
            # EQU often names addresses that only the assembler knows
            logger.debug(f"{line.location}: '{directive.name}' left unbound: {e.message}")
        return ExpandedLine(
            source=line,
            origin=line.section,
            rept_path=self._path(stack),
            equate=(directive.name, expression),
        )


# =============================================================================
# Block Matching
# =============================================================================

def match_rept_blocks(lines: Sequence[SourceLine]) -> dict[int, int]:
    """
    Pair every REPT with its ENDR.

    Returns:
        Mapping from REPT line index to matching ENDR line index

    Raises:
        UnbalancedReptError: On an ENDR with no open REPT, or a REPT still
                             open at end of input
    """
    matching: dict[int, int] = {}
    open_blocks: list[int] = []

    for index, line in enumerate(lines):
        if line.directive is None:
            continue
        if line.directive.kind is DirectiveKind.REPT:
            open_blocks.append(index)
        elif line.directive.kind is DirectiveKind.ENDR:
            if not open_blocks:
                raise UnbalancedReptError(
                    "ENDR without a matching REPT",
                    location=line.location,
                    source_line=line.text,
                )
            matching[open_blocks.pop()] = index

    if open_blocks:
        unclosed = lines[open_blocks[-1]]
        raise UnbalancedReptError(
            "REPT is never closed by ENDR",
            location=unclosed.location,
            source_line=unclosed.text,
            hint=f"{len(open_blocks)} REPT block(s) still open at end of input",
        )
    return matching


def expand(lines: Sequence[SourceLine], initial_variables: Optional[Mapping[str, int]] = None) -> list[ExpandedLine]:
    """Convenience wrapper around MacroExpander.expand."""
    return MacroExpander(initial_variables).expand(lines)
