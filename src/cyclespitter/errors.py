"""
Cycle Spitter Error Hierarchy
=============================

This module defines the exception hierarchy for the whole tool. All
exceptions inherit from CycleSpitterError, allowing callers to catch every
tool-related failure with a single except clause.

Exception Hierarchy
-------------------
CycleSpitterError (base)
├── ConfigurationError - unreadable or invalid cost table file
├── SourceError (anything tied to a source line)
│   ├── MalformedLineError - unparseable directive arguments
│   │   └── ExpressionError - malformed or unevaluable expression
│   ├── UnbalancedReptError - REPT/ENDR nesting mismatch
│   ├── UndefinedVariableError - expression references an unknown variable
│   ├── UnknownInstructionCostError - no override, rule or table entry
│   └── TemplateFormatError - template does not yield the three segments
└── SchedulingError (scanline packing)
    ├── TemplateExceedsBudgetError - reserved cost >= scanline width
    ├── UnfillableGapError - remainder not coverable by whole NOPs
    └── InstructionExceedsBudgetError - one instruction wider than a scanline

Every error is fatal. A cycle-accurate listing is either emitted whole
and exact, or not at all.

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^
    hint: suggestion for fixing (when available)
    in: REPT@3 (2/45) > REPT@9 (1/27)
"""

from dataclasses import dataclass
from typing import Optional, Sequence


# =============================================================================
# Base Exception Class
# =============================================================================

class CycleSpitterError(Exception):
    """
    Base exception for all cycle spitter errors.

        try:
            spitter.spit_file("effect.s")
        except CycleSpitterError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(CycleSpitterError):
    """
    Invalid configuration input, such as a malformed cost table file.

    Attributes:
        path: The offending file, when there is one
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A location in source text for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int = 1

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


@dataclass(frozen=True)
class ReptContext:
    """
    One level of the active repeat-nesting path.

    Attributes:
        line: Source line of the REPT directive
        iteration: Current iteration (1-indexed)
        count: Total iterations of that block
    """
    line: int
    iteration: int
    count: int

    def __str__(self) -> str:
        return f"REPT@{self.line} ({self.iteration}/{self.count})"


def format_rept_path(path: Sequence[ReptContext]) -> str:
    """Render a nesting path as 'REPT@3 (2/45) > REPT@9 (1/27)'."""
    return " > ".join(str(ctx) for ctx in path)


# =============================================================================
# Source Errors
# =============================================================================

class SourceError(CycleSpitterError):
    """
    Base exception for errors attributable to a source line.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
        rept_path: Active repeat-nesting path when the error occurred
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        rept_path: Sequence[ReptContext] = (),
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        self.rept_path = tuple(rept_path)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            effect.s:15:9: error: undefined variable 'ofs'
                roxl.w  ofs(a1)
                        ^
            hint: did you mean 'off'?
            in: REPT@12 (1/7) > REPT@14 (3/28)
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        if self.rept_path:
            parts.append(f"in: {format_rept_path(self.rept_path)}")

        return "\n".join(parts)


class MalformedLineError(SourceError):
    """
    A recognised directive carries invalid arguments.

    Examples:
        - REPT with no count or a count like 3.5
        - SET with no symbol name or an unparseable expression
        - REPT with a negative count
    """
    pass


class ExpressionError(MalformedLineError):
    """
    Error parsing or evaluating an integer expression.

    Raised for syntax errors (unbalanced parentheses, dangling operators)
    and for arithmetic faults such as division by zero.
    """
    pass


class UnbalancedReptError(SourceError):
    """
    REPT/ENDR nesting mismatch.

    Raised for an ENDR with no open REPT, and for a REPT that is still open
    at end of input. The location points at the offending directive.
    """
    pass


class UndefinedVariableError(SourceError):
    """
    Reference to a variable that is not visible in the current frame.

    Similar names from the visible frame are offered as a hint, which
    catches the usual typos in long unrolled blocks.
    """

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar_names: Optional[list[str]] = None,
        rept_path: Sequence[ReptContext] = (),
    ):
        self.name = name
        self.similar_names = similar_names or []

        hint = None
        if self.similar_names:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_names[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined variable '{name}'",
            location=location,
            hint=hint,
            source_line=source_line,
            rept_path=rept_path,
        )


class UnknownInstructionCostError(SourceError):
    """
    No override, dynamic rule or Cost Table entry matches an instruction.

    The tool never guesses a cycle count. The fix is either an inline
    override in the comment or an entry in the external cost table.
    """

    def __init__(
        self,
        instruction: str,
        shape: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        reason: Optional[str] = None,
        rept_path: Sequence[ReptContext] = (),
    ):
        self.instruction = instruction
        self.shape = shape

        message = f"no cycle cost known for '{instruction}'"
        if shape and shape != instruction:
            message += f" (shape '{shape}')"

        hint = reason or "add an explicit cycle count to the comment, e.g. '; (12)'"

        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
            rept_path=rept_path,
        )


class TemplateFormatError(SourceError):
    """
    The border/stabilizer template cannot be split into its three segments.

    Raised when a segment is missing, repeated or out of order.
    """
    pass


# =============================================================================
# Scheduling Errors
# =============================================================================

class SchedulingError(CycleSpitterError):
    """Base exception for scanline packing failures."""
    pass


class TemplateExceedsBudgetError(SchedulingError):
    """
    The template leaves no room for scheduled instructions.

    Raised at scheduler setup when left border + stabilizer + right border
    cost at least the configured scanline width.
    """

    def __init__(self, reserved: int, target_width: int):
        self.reserved = reserved
        self.target_width = target_width
        super().__init__(
            f"template reserves {reserved} cycles per scanline, "
            f"which leaves nothing of the {target_width}-cycle width"
        )


class UnfillableGapError(SchedulingError):
    """
    A scanline remainder cannot be covered by whole NOP units.

    Attributes:
        scanline: 1-indexed scanline number
        gap: Cycles left to fill
        nop_count: Whole NOPs that would fit
        remainder: Cycles no NOP can cover
    """

    def __init__(self, scanline: int, gap: int, nop_count: int, remainder: int, nop_cycles: int):
        self.scanline = scanline
        self.gap = gap
        self.nop_count = nop_count
        self.remainder = remainder
        self.nop_cycles = nop_cycles
        super().__init__(
            f"scanline {scanline}: gap of {gap} cycles takes {nop_count} NOPs "
            f"({nop_count * nop_cycles} cycles) and leaves {remainder} cycles uncovered\n"
            f"hint: round instruction costs up to a multiple of {nop_cycles}, "
            f"e.g. '; (16)' on a 14-cycle instruction"
        )


class InstructionExceedsBudgetError(SchedulingError):
    """
    A single instruction costs more than an entire scanline budget.

    Such an instruction cannot be placed anywhere without splitting it.
    """

    def __init__(self, instruction: str, cycles: int, budget: int,
                 location: Optional[SourceLocation] = None):
        self.instruction = instruction
        self.cycles = cycles
        self.budget = budget
        self.location = location
        where = f"{location}: " if location else ""
        super().__init__(
            f"{where}'{instruction}' costs {cycles} cycles but a scanline "
            f"only has {budget} cycles for scheduled code"
        )
