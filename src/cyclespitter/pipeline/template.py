"""
Border and Stabilizer Templates
===============================

This module loads the code injected at every scanline boundary. A
template holds three segments:

- left border: opens every scanline
- stabilizer: follows the left border, before scheduled code
- right border: closes every scanline, before the NOP padding

Template Syntax
---------------
Templates use the same line syntax as the main source, including REPT
and cycle overrides. Segments are introduced by labels, in this order:

```asm
left_border:
        move.b  d7,$ffff8260.w
        move.w  d7,$ffff8260.w
right_border:
        move.w  d7,$ffff820a.w
        move.b  d7,$ffff820a.w
stabilizer:
        move.b  d7,$ffff8260.w
        move.w  d7,$ffff8260.w
```

Label spelling is loose: "LeftBorder", "left-border" and ".left_border"
all work, as do "stabiliser" and "stab".

Templates written for the older splitter, with the three blocks separated
by "dcb.w n,$4e71" fill lines instead of labels, are also accepted. The
fill lines are dropped, since the scheduler computes padding itself.

Every segment's cost is computed with the same Cycle Resolver used for
the main source.
"""

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

from cyclespitter.errors import SourceLocation, TemplateFormatError
from cyclespitter.pipeline.cycles import CostedLine, CycleResolver, nop_fill_count
from cyclespitter.pipeline.macros import MacroExpander
from cyclespitter.pipeline.parser import SourceLine, parse_source

logger = logging.getLogger(__name__)

BUILTIN_TEMPLATE_NAME = "built-in"

DEFAULT_TEMPLATE = """\
; Atari ST fullscreen border template
; d7 holds 0 for the 60Hz/low-res switches
left_border:
        move.b  d7,$ffff8260.w      ; left border: hi-res
        move.w  d7,$ffff8260.w      ; back to lo-res
right_border:
        move.w  d7,$ffff820a.w      ; right border: 60Hz
        move.b  d7,$ffff820a.w      ; back to 50Hz
stabilizer:
        move.b  d7,$ffff8260.w      ; stabilizer: hi-res
        move.w  d7,$ffff8260.w      ; back to lo-res
"""


# =============================================================================
# Data Classes
# =============================================================================

class SegmentKind(Enum):
    """The three template segments, in file order."""
    LEFT_BORDER = "left border"
    RIGHT_BORDER = "right border"
    STABILIZER = "stabilizer"

    def __str__(self) -> str:
        return self.value


SEGMENT_ORDER = (SegmentKind.LEFT_BORDER, SegmentKind.RIGHT_BORDER, SegmentKind.STABILIZER)

_MARKERS: dict[str, SegmentKind] = {
    "leftborder": SegmentKind.LEFT_BORDER,
    "left": SegmentKind.LEFT_BORDER,
    "rightborder": SegmentKind.RIGHT_BORDER,
    "right": SegmentKind.RIGHT_BORDER,
    "stabilizer": SegmentKind.STABILIZER,
    "stabiliser": SegmentKind.STABILIZER,
    "stab": SegmentKind.STABILIZER,
}

_MARKER_STRIP_RE = re.compile(r"[-_.\s]")


@dataclass(frozen=True)
class TemplateSegment:
    """
    One injected block with its precomputed cost.

    Attributes:
        kind: Which segment this is
        lines: Costed lines, comments included
        cycles: Total cost of the segment
    """
    kind: SegmentKind
    lines: tuple[CostedLine, ...]
    cycles: int


@dataclass(frozen=True)
class Template:
    """
    A loaded template, shared read-only by every scanline.

    Attributes:
        left_border: Segment opening each scanline
        right_border: Segment closing each scanline
        stabilizer: Segment following the left border
        source: Identifier of where the template came from
    """
    left_border: TemplateSegment
    right_border: TemplateSegment
    stabilizer: TemplateSegment
    source: str = BUILTIN_TEMPLATE_NAME

    @property
    def opening_cycles(self) -> int:
        """Cycles reserved at the start of every scanline."""
        return self.left_border.cycles + self.stabilizer.cycles

    @property
    def closing_cycles(self) -> int:
        """Cycles reserved at the end of every scanline."""
        return self.right_border.cycles

    @property
    def reserved_cycles(self) -> int:
        return self.opening_cycles + self.closing_cycles


# =============================================================================
# Segment Splitting
# =============================================================================

def marker_kind(label: Optional[str]) -> Optional[SegmentKind]:
    """Map a label to the segment it introduces, if it is a marker."""
    if not label:
        return None
    return _MARKERS.get(_MARKER_STRIP_RE.sub("", label.lower()))


def _split_by_markers(lines: list[SourceLine], filename: str) -> Optional[dict[SegmentKind, list[SourceLine]]]:
    if all(marker_kind(line.label) is None for line in lines):
        return None

    segments: dict[SegmentKind, list[SourceLine]] = {}
    current: Optional[SegmentKind] = None

    for line in lines:
        kind = marker_kind(line.label)
        if kind is not None:
            if kind in segments:
                raise TemplateFormatError(
                    f"template segment '{kind}' is defined twice",
                    location=line.location,
                    source_line=line.text,
                )
            expected = SEGMENT_ORDER[len(segments)]
            if kind is not expected:
                raise TemplateFormatError(
                    f"template segment '{kind}' found where '{expected}' was expected",
                    location=line.location,
                    source_line=line.text,
                    hint="segments go in the order left border, right border, stabilizer",
                )
            segments[kind] = []
            current = kind
            if not line.is_instruction:
                continue
            # Marker labels are never emitted
            line = replace(line, label=None)
        if current is not None:
            segments[current].append(line)
        elif line.is_instruction:
            raise TemplateFormatError(
                "instruction before the first template segment label",
                location=line.location,
                source_line=line.text,
            )

    missing = [str(kind) for kind in SEGMENT_ORDER if kind not in segments]
    if missing:
        raise TemplateFormatError(
            f"template is missing segment(s): {', '.join(missing)}",
            location=SourceLocation(filename, len(lines) or 1),
        )
    return segments


def _split_by_fill(lines: list[SourceLine], filename: str) -> dict[SegmentKind, list[SourceLine]]:
    groups: list[list[SourceLine]] = [[]]
    for line in lines:
        if _is_fill(line):
            if any(l.is_instruction for l in groups[-1]):
                groups.append([])
            continue
        if line.is_blank:
            continue
        groups[-1].append(line)

    groups = [g for g in groups if any(l.is_instruction for l in g)]
    if len(groups) != len(SEGMENT_ORDER):
        raise TemplateFormatError(
            f"template must have 3 segments (left border, right border, stabilizer), found {len(groups)}",
            location=SourceLocation(filename, 1),
            hint="label each block 'left_border:', 'right_border:' and 'stabilizer:'",
        )
    return dict(zip(SEGMENT_ORDER, groups))


def _is_fill(line: SourceLine) -> bool:
    if not line.is_instruction or line.mnemonic.lower() != "dcb.w":
        return False
    return nop_fill_count(line.operands) is not None


# =============================================================================
# Loading
# =============================================================================

def parse_template(
    text: str,
    source: str = BUILTIN_TEMPLATE_NAME,
    cost_overrides: Optional[Mapping[str, int]] = None,
) -> Template:
    """
    Parse and cost a template.

    Args:
        text: Template source text
        source: Identifier shown in the output header
        cost_overrides: External override table, as for the main source

    Returns:
        The loaded Template

    Raises:
        TemplateFormatError: If the three segments cannot be found
        CycleSpitterError: Any parse, expansion or cost error in a segment
    """
    lines = parse_source(text, source)
    resolver = CycleResolver(cost_overrides)

    grouped = _split_by_markers(lines, source)
    if grouped is None:
        logger.debug(f"{source}: no segment labels, splitting on fill lines")
        grouped = _split_by_fill(lines, source)

    expander = MacroExpander()
    segments = {}
    for kind in SEGMENT_ORDER:
        costed = tuple(resolver.resolve_all(expander.expand(grouped[kind])))
        cycles = sum(line.cycles for line in costed)
        segments[kind] = TemplateSegment(kind, costed, cycles)
        logger.debug(f"{source}: {kind} costs {cycles} cycles")

    return Template(
        left_border=segments[SegmentKind.LEFT_BORDER],
        right_border=segments[SegmentKind.RIGHT_BORDER],
        stabilizer=segments[SegmentKind.STABILIZER],
        source=source,
    )


def load_template(
    path: Optional[Path] = None,
    cost_overrides: Optional[Mapping[str, int]] = None,
) -> Template:
    """
    Load a template file, or the built-in template when path is None.

    Raises:
        OSError: If the file cannot be read
        TemplateFormatError: If the three segments cannot be found
    """
    if path is None:
        return parse_template(DEFAULT_TEMPLATE, BUILTIN_TEMPLATE_NAME, cost_overrides)
    path = Path(path)
    logger.debug(f"loading template {path}")
    return parse_template(path.read_text(encoding="utf-8"), str(path), cost_overrides)
