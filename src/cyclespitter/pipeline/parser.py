"""
68000 Source Line Parser
========================

This module converts raw source lines into SourceLine records: label,
directive, mnemonic and operands, trailing comment, and the optional cycle
override written in that comment.

Line Anatomy
------------
```asm
.loop:  move.l  (a0)+,8(a1)     ; copy (24)
^label  ^mnemonic ^operands     ^comment, override 24
```

- A label is the first field when it starts in column 1 (a trailing colon
  is optional there) or any first field ending in ':'.
- Comments start at ';' outside quotes, or at '*' in column 1.
- A cycle override is the first parenthesised group of the comment that
  holds nothing but a decimal integer: "(12)", "( 4)". Other groups such
  as "(see above)" are plain comment text.

Directives
----------
| Syntax                | Kind    |
|-----------------------|---------|
| REPT <expr>           | REPT    |
| ENDR                  | ENDR    |
| <name> SET <expr>     | SET     |
| <name> = <expr>       | SET     |
| <name> EQU <expr>     | EQU     |
| boxed/inline heading  | SECTION |

Directive keywords are case-insensitive; variable names are not.

Section Headings
----------------
Two comment forms name the block that follows them:

```asm
;---------------------------------------------
; SCROLLOOP: scroll the bitmap one pixel
;---------------------------------------------

; --------------- safe lea start ----------
```

The boxed form is recognised on its closing rule line, so the parser
carries a little state from one line to the next.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, Optional

from cyclespitter.cpu import is_known_mnemonic
from cyclespitter.errors import (
    ExpressionError,
    MalformedLineError,
    SourceLocation,
)
from cyclespitter.pipeline.expressions import ExpressionEvaluator

logger = logging.getLogger(__name__)


# =============================================================================
# Directive Data Classes
# =============================================================================

class DirectiveKind(Enum):
    """Structural directives understood by the macro expander."""
    REPT = auto()
    ENDR = auto()
    SET = auto()
    EQU = auto()
    SECTION = auto()


@dataclass(frozen=True)
class Directive:
    """
    A recognised directive and its arguments.

    Attributes:
        kind: Which directive this is
        name: Symbol being assigned (SET, EQU)
        expression: Count (REPT) or right-hand side (SET, EQU)
        title: Heading text (SECTION)
    """
    kind: DirectiveKind
    name: Optional[str] = None
    expression: Optional[str] = None
    title: Optional[str] = None


# Directive keywords and the assembler pseudo-ops that are never labels
REPT_KEYWORDS = frozenset({"rept"})
ENDR_KEYWORDS = frozenset({"endr"})
SET_KEYWORDS = frozenset({"set", "="})
EQU_KEYWORDS = frozenset({"equ"})
PSEUDO_OPS = frozenset({
    "rept", "endr", "dcb", "dc", "ds", "even", "section", "text", "data",
    "bss", "include", "incbin", "opt", "end", "cnop", "xdef", "xref",
})


# =============================================================================
# Source Line
# =============================================================================

@dataclass(frozen=True)
class SourceLine:
    """
    One physical input line after parsing.

    Attributes:
        text: The raw line as read (without line terminator)
        line_number: 1-indexed line number
        filename: Source file name for error reporting
        label: Label defined on this line, without its colon
        directive: Recognised directive, if any
        mnemonic: Instruction mnemonic as written, for instruction lines
        operands: Operand field text ('' when absent)
        comment: Comment text without its ';' or '*'
        override: Explicit cycle count from the comment
        section: Heading title in effect for this line
    """
    text: str
    line_number: int
    filename: str = "<input>"
    label: Optional[str] = None
    directive: Optional[Directive] = None
    mnemonic: Optional[str] = None
    operands: str = ""
    comment: Optional[str] = None
    override: Optional[int] = None
    section: Optional[str] = None

    @property
    def location(self) -> SourceLocation:
        return SourceLocation(self.filename, self.line_number)

    @property
    def is_instruction(self) -> bool:
        """True if this line carries an instruction body."""
        return self.mnemonic is not None and self.directive is None

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


# =============================================================================
# Lexical Helpers
# =============================================================================

_OVERRIDE_RE = re.compile(r"\(\s*(\d+)\s*\)")
_PAREN_GROUP_RE = re.compile(r"\(([^()]*)\)")
_RULE_RE = re.compile(r"^\s*([-=*#])\1{2,}\s*$")
_INLINE_HEADING_RE = re.compile(r"^\s*([-=*#]{3,})\s*(?P<title>[^-=*#\s].*?)\s*([-=*#]{3,})\s*$")
_LABEL_RE = re.compile(r"^[A-Za-z_.@][\w.@]*$")


def split_comment(text: str) -> tuple[str, Optional[str]]:
    """
    Split a line into code and comment parts.

    Returns:
        (code, comment) with the comment marker removed, or (code, None)
    """
    if text.startswith("*"):
        return "", text[1:]

    quote: Optional[str] = None
    for index, char in enumerate(text):
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == ";":
            return text[:index], text[index + 1:]
    return text, None


def parse_override(comment: Optional[str]) -> Optional[int]:
    """
    Extract an explicit cycle count from a comment.

        >>> parse_override(" screen offset preserved   ( 4)")
        4
        >>> parse_override(" (see table) (16) -- is 14 but padded")
        16
    """
    if not comment:
        return None
    for group in _PAREN_GROUP_RE.finditer(comment):
        match = _OVERRIDE_RE.fullmatch(group.group(0))
        if match:
            return int(match.group(1))
    return None


def rule_char(comment: Optional[str]) -> Optional[str]:
    """The repeated character of a rule comment ('-----'), else None."""
    if comment is None:
        return None
    match = _RULE_RE.match(comment)
    return match.group(1) if match else None


def inline_heading(comment: Optional[str]) -> Optional[str]:
    """Title of an inline heading comment ('--- title ---'), else None."""
    if comment is None:
        return None
    match = _INLINE_HEADING_RE.match(comment)
    return match.group("title") if match else None


# =============================================================================
# Line Parser
# =============================================================================

class LineParser:
    """
    Parses source lines one at a time, in order.

    The parser is a pure function of each line's text plus the current
    section state, which it updates when it recognises a heading.

    Usage:
        parser = LineParser("effect.s")
        lines = [parser.parse_line(text, n) for n, text in enumerate(src, 1)]

    Attributes:
        filename: Source file name for SourceLine records and errors
        section: Title of the most recent section heading
    """

    def __init__(self, filename: str = "<input>"):
        self.filename = filename
        self.section: Optional[str] = None
        # Boxed heading state: opened by a rule line, titled by the comment
        # line after it, closed by the next rule line
        self._box_open = False
        self._box: Optional[str] = None
        self._syntax = ExpressionEvaluator()

    def parse_line(self, text: str, line_number: int) -> SourceLine:
        """
        Parse one raw line.

        Args:
            text: Line text without its terminator
            line_number: 1-indexed line number

        Returns:
            The parsed SourceLine

        Raises:
            MalformedLineError: If a directive has invalid arguments
        """
        text = text.rstrip("\r\n")
        code, comment = split_comment(text)

        if not code.strip():
            return self._parse_comment_line(text, line_number, comment)

        self._box_open = False
        self._box = None

        label, mnemonic, operands = self._split_fields(code)
        override = parse_override(comment)
        directive = self._parse_directive(text, line_number, label, mnemonic, operands)

        if directive is not None:
            if directive.kind in (DirectiveKind.SET, DirectiveKind.EQU):
                label = None
            mnemonic = None
            operands = ""

        return SourceLine(
            text=text,
            line_number=line_number,
            filename=self.filename,
            label=label,
            directive=directive,
            mnemonic=mnemonic,
            operands=operands,
            comment=comment,
            override=override,
            section=self.section,
        )

    # =========================================================================
    # Comment-only Lines and Headings
    # =========================================================================

    def _parse_comment_line(self, text: str, line_number: int, comment: Optional[str]) -> SourceLine:
        directive = None

        if rule_char(comment):
            if self._box is not None:
                directive = Directive(DirectiveKind.SECTION, title=self._box)
                self._box = None
                self._box_open = False
            else:
                self._box_open = True
        elif (title := inline_heading(comment)) is not None:
            directive = Directive(DirectiveKind.SECTION, title=title)
            self._box_open = False
            self._box = None
        elif comment is not None and self._box_open and self._box is None and comment.strip():
            self._box = comment.strip()
        else:
            self._box_open = False
            self._box = None

        if directive is not None:
            self.section = directive.title
            logger.debug(f"{self.filename}:{line_number}: section '{directive.title}'")

        return SourceLine(
            text=text,
            line_number=line_number,
            filename=self.filename,
            directive=directive,
            comment=comment,
            section=self.section,
        )

    # =========================================================================
    # Field Splitting
    # =========================================================================

    def _split_fields(self, code: str) -> tuple[Optional[str], Optional[str], str]:
        """Split code into (label, mnemonic, operands)."""
        starts_in_column_one = not code[:1].isspace()
        fields = code.split(None, 1)
        first = fields[0]
        rest = fields[1].strip() if len(fields) > 1 else ""

        keyword = rest.split(None, 1)[0].lower() if rest else ""

        label = None
        if first.endswith(":") and len(first) > 1:
            label = first[:-1]
        elif (keyword in SET_KEYWORDS or keyword in EQU_KEYWORDS) and _LABEL_RE.match(first):
            label = first
        elif starts_in_column_one and self._is_column_one_label(first):
            label = first

        if label is None:
            return None, first, rest

        fields = rest.split(None, 1)
        if not fields:
            return label, None, ""
        return label, fields[0], fields[1].strip() if len(fields) > 1 else ""

    @staticmethod
    def _is_column_one_label(first: str) -> bool:
        """
        Decide if a column-one field is a label.

        Mnemonics and pseudo-ops in column one are still instructions.
        """
        if not _LABEL_RE.match(first):
            return False
        base = first.lower().partition(".")[0]
        return not (is_known_mnemonic(first) or base in PSEUDO_OPS)

    # =========================================================================
    # Directive Recognition
    # =========================================================================

    def _parse_directive(
        self,
        text: str,
        line_number: int,
        label: Optional[str],
        mnemonic: Optional[str],
        operands: str,
    ) -> Optional[Directive]:
        if mnemonic is None:
            return None
        keyword = mnemonic.lower()
        location = SourceLocation(self.filename, line_number)

        if keyword in REPT_KEYWORDS:
            if not operands:
                raise MalformedLineError(
                    "REPT needs a repeat count",
                    location=location,
                    source_line=text,
                    hint="write e.g. 'REPT 45'",
                )
            self._check_expression(operands, "REPT count", location, text)
            return Directive(DirectiveKind.REPT, expression=operands)

        if keyword in ENDR_KEYWORDS:
            return Directive(DirectiveKind.ENDR)

        if keyword in SET_KEYWORDS or keyword in EQU_KEYWORDS:
            kind = DirectiveKind.SET if keyword in SET_KEYWORDS else DirectiveKind.EQU
            if label is None:
                raise MalformedLineError(
                    f"{keyword.upper()} without a symbol name",
                    location=location,
                    source_line=text,
                    hint=f"write e.g. 'offset {keyword} 224'",
                )
            if not operands:
                raise MalformedLineError(
                    f"{keyword.upper()} needs a value for '{label}'",
                    location=location,
                    source_line=text,
                )
            if kind is DirectiveKind.SET:
                self._check_expression(operands, f"value of '{label}'", location, text)
            return Directive(kind, name=label, expression=operands)

        return None

    def _check_expression(self, expression: str, what: str, location: SourceLocation, text: str) -> None:
        try:
            self._syntax.check_syntax(expression)
        except ExpressionError as e:
            raise MalformedLineError(
                f"invalid {what} '{expression}': {e.message}",
                location=location,
                source_line=text,
            ) from e


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(source: str | Iterable[str], filename: str = "<input>") -> list[SourceLine]:
    """
    Parse a whole source text into SourceLine records.

    Args:
        source: Source text, or an iterable of lines
        filename: Name used in locations and errors

    Returns:
        One SourceLine per physical line
    """
    lines = source.splitlines() if isinstance(source, str) else list(source)
    parser = LineParser(filename)
    parsed = [parser.parse_line(text, number) for number, text in enumerate(lines, 1)]
    logger.debug(f"{filename}: parsed {len(parsed)} lines")
    return parsed
